"""
Pytest configuration and shared fixtures for evosnake tests.
"""

from collections import deque

import numpy as np
import pytest

from evosnake.config import build_config
from evosnake.game.snake import Direction


class ScriptedNetwork:
    """Stands in for a network: replays a fixed cycle of directions."""

    def __init__(self, directions):
        self.directions = list(directions)
        self.calls = 0

    def decide(self, state):
        direction = self.directions[self.calls % len(self.directions)]
        self.calls += 1
        return direction


@pytest.fixture
def scripted_network():
    return ScriptedNetwork


@pytest.fixture
def rng():
    return np.random.default_rng(42)


@pytest.fixture
def small_config():
    """Tiny but complete training run: 12 individuals, 4 generations, 8x8 board."""
    return build_config(
        population_size=12,
        generations=4,
        num_workers=2,
        seed=7,
        evaluation_seed=11,
        width=8,
        height=8,
    )


def place_snake(game, positions, direction):
    # Replace the snake body of a game with explicit cells, head first
    game.snake.positions = deque(positions)
    game.snake.occupied = set(positions)
    game.snake.direction = direction


@pytest.fixture
def set_snake():
    return place_snake


# Square loop a length-3 snake heading RIGHT can follow forever
SQUARE_LOOP = [Direction.DOWN, Direction.LEFT, Direction.UP, Direction.RIGHT]


@pytest.fixture
def square_loop():
    return list(SQUARE_LOOP)
