#!/usr/bin/env python3
# evosnake Training Entry Point
# Headless training script for the genetic algorithm.

from .train.train_evolution import main

if __name__ == "__main__":
    main()
