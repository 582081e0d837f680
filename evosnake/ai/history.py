"""
Read-only records a training run hands to the outside world: a per-generation
report for progress display and the best genome of each generation for replay.
"""

from dataclasses import dataclass, field
from typing import Tuple

import numpy as np

from .neural_network import NeuralNetwork


@dataclass(frozen=True)
class GenerationReport:
    generation: int
    best_fitness: float
    avg_fitness: float
    best_food_eaten: float
    avg_food_eaten: float
    best_steps: float
    elapsed: float


@dataclass(frozen=True, eq=False)
class PopulationReplaySnapshot:
    """Best genome of one generation plus what is needed to rebuild its network"""

    generation: int
    genome: np.ndarray = field(repr=False)
    seed: int
    fitness: float
    topology: Tuple[int, ...]

    def build_network(self, device=None):
        return NeuralNetwork(self.topology, self.genome, device=device)
