"""
AI Module for evosnake

This module contains the genome-decoded neural network, the fitness evaluator
and the genetic algorithm that evolves snake-playing networks.
"""

from .neural_network import NeuralNetwork, genome_size, random_genome
from .fitness import FitnessEvaluator, EvaluationResult, compute_fitness, evaluate_genome
from .history import GenerationReport, PopulationReplaySnapshot
from .genetic_algorithm import GeneticAlgorithm, Individual

__all__ = [
    'NeuralNetwork', 'genome_size', 'random_genome',
    'FitnessEvaluator', 'EvaluationResult', 'compute_fitness', 'evaluate_genome',
    'GenerationReport', 'PopulationReplaySnapshot',
    'GeneticAlgorithm', 'Individual',
]
