"""
Headless Snake game used as the fitness oracle.

A SnakeGame owns its board, its snake and its own food RNG, so any number
of games can run side by side in worker threads. Nothing is drawn here; the
replay window lives in evosnake.game.replay.
"""

from dataclasses import dataclass
from enum import Enum
from typing import Optional

import numpy as np

from ..config import GameConfig
from .snake import Snake, Direction

# Rays looked along from the head: N, NE, E, SE, S, SW, W, NW
RAY_DIRECTIONS = (
    (0, -1),
    (1, -1),
    (1, 0),
    (1, 1),
    (0, 1),
    (-1, 1),
    (-1, 0),
    (-1, -1),
)


class GameStatus(Enum):
    RUNNING = "running"
    DEAD = "dead"
    TIMED_OUT = "timed_out"
    WON = "won"


@dataclass(frozen=True)
class GameResult:
    steps: int
    food_eaten: int
    status: GameStatus
    steps_since_food: int
    seed: Optional[int] = None


class SnakeGame:
    """Snake game state machine driven one decision at a time"""

    def __init__(self, config=None, seed=None):
        self.config = config or GameConfig()
        self.width = self.config.width
        self.height = self.config.height
        self.max_steps_without_food = self.config.starvation_limit

        # Longest free run towards the wall along each ray, for normalisation
        diagonal = max(1, min(self.width, self.height) - 1)
        self._max_ray = {
            (dx, dy): (self.width - 1 if dy == 0 else self.height - 1 if dx == 0 else diagonal)
            for dx, dy in RAY_DIRECTIONS
        }

        self.seed = seed
        self.reset()

    def reset(self, seed=None):
        """Reset the game; the same seed always replays the same food sequence"""
        if seed is not None:
            self.seed = seed
        self.rng = np.random.default_rng(self.seed)

        self.snake = Snake(self.config.head_start, self.config.initial_length)
        self.status = GameStatus.RUNNING
        self.steps = 0
        self.food_eaten = 0
        self.steps_since_food = 0

        self.food_position = self._place_food()
        if self.food_position is None:
            self.status = GameStatus.WON

        return self.get_state()

    @property
    def done(self):
        return self.status is not GameStatus.RUNNING

    def _place_food(self):
        """Place food in an empty cell"""
        empty_cells = [
            (x, y)
            for x in range(self.width)
            for y in range(self.height)
            if (x, y) not in self.snake
        ]
        if not empty_cells:
            return None  # Board is full
        return empty_cells[int(self.rng.integers(len(empty_cells)))]

    def _in_bounds(self, cell):
        return 0 <= cell[0] < self.width and 0 <= cell[1] < self.height

    def _look(self, head, dx, dy):
        # Walk from the head to the wall, noting the first food and body cells seen
        x, y = head[0] + dx, head[1] + dy
        distance = 1
        food_seen = 0.0
        body_seen = 0.0
        while 0 <= x < self.width and 0 <= y < self.height:
            if not food_seen and (x, y) == self.food_position:
                food_seen = 1.0 / distance
            if not body_seen and (x, y) in self.snake:
                body_seen = 1.0 / distance
            x += dx
            y += dy
            distance += 1

        free_cells = distance - 1
        return [free_cells / self._max_ray[(dx, dy)], food_seen, body_seen]

    def get_state(self):
        """Sensory input for the network, 32 values.

        For each of the 8 rays: distance to the wall (normalised), inverse
        distance to food and inverse distance to the nearest body segment
        (0 when nothing is on the ray). Then one-hot head direction and one-hot
        tail direction in UP, RIGHT, DOWN, LEFT order.
        """
        head = self.snake.head
        state = []

        for dx, dy in RAY_DIRECTIONS:
            state.extend(self._look(head, dx, dy))  # 24 values

        direction_one_hot = [0.0, 0.0, 0.0, 0.0]
        direction_one_hot[Direction.get_index(self.snake.direction)] = 1.0
        state.extend(direction_one_hot)

        tail_one_hot = [0.0, 0.0, 0.0, 0.0]
        tail_one_hot[Direction.get_index(self.snake.tail_direction())] = 1.0
        state.extend(tail_one_hot)

        return np.array(state, dtype=np.float64)

    def step(self, direction):
        """Move one cell in the given absolute direction and return the new status.

        A direction that would reverse the snake into its neck is ignored and
        the snake keeps its heading. A fatal move does not count as a step.
        """
        if self.done:
            return self.status

        if not isinstance(direction, Direction):
            direction = Direction.from_index(int(direction))

        self.snake.turn(direction)
        new_head = self.snake.next_head()

        # Check wall and self collision
        if not self._in_bounds(new_head) or self.snake.collides(new_head):
            self.status = GameStatus.DEAD
            return self.status

        ate = new_head == self.food_position
        self.snake.advance(new_head, grow=ate)
        self.steps += 1

        if ate:
            self.food_eaten += 1
            self.steps_since_food = 0
            self.food_position = self._place_food()
            if self.food_position is None:
                self.status = GameStatus.WON
        else:
            self.steps_since_food += 1
            if self.steps_since_food >= self.max_steps_without_food:
                self.status = GameStatus.TIMED_OUT

        return self.status

    def play(self, network):
        """Let a network play until the game ends"""
        while not self.done:
            state = self.get_state()
            self.step(network.decide(state))
        return self.result()

    def result(self):
        return GameResult(
            steps=self.steps,
            food_eaten=self.food_eaten,
            status=self.status,
            steps_since_food=self.steps_since_food,
            seed=self.seed,
        )
