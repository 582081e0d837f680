"""
Training Module for evosnake

This module contains the headless training script for the genetic algorithm.
"""

from .train_evolution import train_evolution, plot_evolution_progress, main

__all__ = ['train_evolution', 'plot_evolution_progress', 'main']
