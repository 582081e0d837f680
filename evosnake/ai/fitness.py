"""
Fitness evaluation: one genome, one seed, one scalar.

evaluate_genome() is a plain module-level function so it can be shipped to
worker processes as well as threads.
"""

from collections import Counter
from dataclasses import dataclass
from typing import Tuple

import numpy as np

from ..config import FitnessConfig, GameConfig, NetworkConfig
from ..game.snake_game import GameResult, GameStatus, SnakeGame
from .neural_network import NeuralNetwork


@dataclass(frozen=True)
class EvaluationResult:
    fitness: float
    steps: float
    food_eaten: float
    seed: int
    status: GameStatus
    games: Tuple[GameResult, ...]


def compute_fitness(result, config=None):
    # Food is squared and weighted far above survival time; steps spent
    # wandering since the last food at the end of the game are penalised
    config = config or FitnessConfig()
    fitness = (
        config.step_weight * result.steps
        + config.food_weight * result.food_eaten ** config.food_exponent
        - config.idle_penalty * result.steps_since_food
    )
    if result.status is GameStatus.TIMED_OUT:
        fitness -= config.timeout_penalty
    return max(float(fitness), 0.0)


def game_seeds(seed, count):
    """Seeds of the games played for one evaluation.

    A single game uses the evaluation seed itself so the game can be
    replayed from a snapshot; more games get independent child seeds.
    """
    if count == 1:
        return [seed]
    return [int(child.generate_state(1)[0]) for child in np.random.SeedSequence(seed).spawn(count)]


class FitnessEvaluator:
    """Runs a genome through fresh games and reduces them to a fitness"""

    def __init__(self, network_config=None, game_config=None, fitness_config=None):
        self.network_config = network_config or NetworkConfig()
        self.game_config = game_config or GameConfig()
        self.fitness_config = fitness_config or FitnessConfig()

    def evaluate(self, genome, seed):
        network = NeuralNetwork(self.network_config.topology, genome)

        games = []
        for game_seed in game_seeds(seed, self.fitness_config.games_per_evaluation):
            game = SnakeGame(self.game_config, seed=game_seed)
            games.append(game.play(network))

        scores = [compute_fitness(game, self.fitness_config) for game in games]
        # Most frequent outcome; ties go to the earliest game
        status = Counter(game.status for game in games).most_common(1)[0][0]
        return EvaluationResult(
            fitness=float(np.mean(scores)),
            steps=float(np.mean([game.steps for game in games])),
            food_eaten=float(np.mean([game.food_eaten for game in games])),
            seed=seed,
            status=status,
            games=tuple(games),
        )


def evaluate_genome(genome, seed, config):
    # Worker entry point: config is a TrainingConfig
    evaluator = FitnessEvaluator(config.network, config.game, config.fitness)
    return evaluator.evaluate(genome, seed)
