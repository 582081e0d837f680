"""
Snake Game Module

This module contains the headless game logic used to score networks. The
pygame replay window is in evosnake.game.replay and is imported on demand.
"""

from .snake_game import SnakeGame, GameStatus, GameResult
from .snake import Snake, Direction

__all__ = ['SnakeGame', 'GameStatus', 'GameResult', 'Snake', 'Direction']
