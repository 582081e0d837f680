"""
Replay window for evolved snakes.

Plays the best network of each given generation live on a fresh random
board, one generation after another. RIGHT skips to the next generation,
ESC or closing the window quits. Games are not the ones seen in training:
every replay draws a new seed.
"""

import numpy as np
import pygame

from ..config import GameConfig
from .snake_game import SnakeGame

CELL_SIZE = 48
HEADER_HEIGHT = 40
FPS = 10

WHITE = (255, 255, 255)
BLACK = (0, 0, 0)
GRAY = (128, 128, 128)
FOOD_COLOR = (255, 0, 0)
HEAD_COLOR = (15, 74, 4)
BODY_COLOR = (6, 140, 8)


class ReplayViewer:
    """Pygame window playing snapshots one after another"""

    def __init__(self, snapshots, game_config=None, fps=FPS, seed=None):
        self.snapshots = list(snapshots)
        self.game_config = game_config or GameConfig()
        self.fps = fps
        self.rng = np.random.default_rng(seed)

        pygame.init()
        self.width = self.game_config.width * CELL_SIZE
        self.height = self.game_config.height * CELL_SIZE + HEADER_HEIGHT
        self.window = pygame.display.set_mode((self.width, self.height))
        pygame.display.set_caption("evosnake - replay")
        self.clock = pygame.time.Clock()
        self.font = pygame.font.Font(None, 28)

    def run(self):
        try:
            for snapshot in self.snapshots:
                if not self._play(snapshot):
                    break
        finally:
            pygame.quit()

    def _play(self, snapshot):
        # Returns False when the user asked to quit
        network = snapshot.build_network()
        game = SnakeGame(self.game_config, seed=int(self.rng.integers(2**32)))

        while not game.done:
            for event in pygame.event.get():
                if event.type == pygame.QUIT:
                    return False
                if event.type == pygame.KEYDOWN:
                    if event.key == pygame.K_ESCAPE:
                        return False
                    if event.key == pygame.K_RIGHT:
                        return True

            game.step(network.decide(game.get_state()))
            self.render(game, snapshot)
            self.clock.tick(self.fps)

        return True

    def _cell_rect(self, cell):
        return pygame.Rect(cell[0] * CELL_SIZE, cell[1] * CELL_SIZE + HEADER_HEIGHT, CELL_SIZE, CELL_SIZE)

    def render(self, game, snapshot):
        self.window.fill(WHITE)

        # Draw grid lines
        for i in range(game.width + 1):
            pygame.draw.line(self.window, GRAY, (i * CELL_SIZE, HEADER_HEIGHT), (i * CELL_SIZE, self.height), 1)
        for i in range(game.height + 1):
            y = i * CELL_SIZE + HEADER_HEIGHT
            pygame.draw.line(self.window, GRAY, (0, y), (self.width, y), 1)

        if game.food_position:
            pygame.draw.rect(self.window, FOOD_COLOR, self._cell_rect(game.food_position))

        for i, position in enumerate(game.snake.positions):
            color = HEAD_COLOR if i == 0 else BODY_COLOR
            pygame.draw.rect(self.window, color, self._cell_rect(position))
            pygame.draw.rect(self.window, BLACK, self._cell_rect(position), 1)

        text = self.font.render(
            f"Gen: {snapshot.generation + 1}  Score: {game.food_eaten}  Steps: {game.steps}", True, BLACK
        )
        self.window.blit(text, (5, 10))

        pygame.display.flip()


def replay_snapshots(snapshots, game_config=None, fps=FPS, seed=None):
    """Open the replay window and block until it is closed"""
    ReplayViewer(snapshots, game_config, fps, seed).run()
