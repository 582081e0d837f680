"""
Snake body and movement directions.

The body is a deque of cells with the head at the front. A set mirrors the
deque so collision checks stay O(1) while the snake grows.
"""

from enum import Enum
from collections import deque


class Direction(Enum):
    UP = (0, -1)
    RIGHT = (1, 0)
    DOWN = (0, 1)
    LEFT = (-1, 0)

    @staticmethod
    def get_index(direction):
        return {Direction.UP: 0, Direction.RIGHT: 1, Direction.DOWN: 2, Direction.LEFT: 3}[direction]

    @staticmethod
    def from_index(index):
        return (Direction.UP, Direction.RIGHT, Direction.DOWN, Direction.LEFT)[index]

    def opposite(self):
        return Direction((-self.value[0], -self.value[1]))


class Snake:
    """Snake body on the board, head first"""

    def __init__(self, head, length, direction=Direction.RIGHT):
        # Body trails behind the head, opposite to the heading
        dx, dy = direction.value
        self.positions = deque((head[0] - dx * i, head[1] - dy * i) for i in range(length))
        self.occupied = set(self.positions)
        self.direction = direction

    def __len__(self):
        return len(self.positions)

    def __contains__(self, cell):
        return cell in self.occupied

    @property
    def head(self):
        return self.positions[0]

    @property
    def tail(self):
        return self.positions[-1]

    def tail_direction(self):
        """Direction the tail segment is moving in"""
        if len(self.positions) < 2:
            return self.direction
        tail, before_tail = self.positions[-1], self.positions[-2]
        return Direction((before_tail[0] - tail[0], before_tail[1] - tail[1]))

    def turn(self, direction):
        """Take a new heading unless it would reverse into the neck"""
        if len(self.positions) > 1 and direction == self.direction.opposite():
            return self.direction
        self.direction = direction
        return self.direction

    def next_head(self):
        head = self.positions[0]
        return (head[0] + self.direction.value[0], head[1] + self.direction.value[1])

    def collides(self, cell):
        # The tail cell is vacated during the same move, so it is safe to enter
        return cell in self.occupied and cell != self.positions[-1]

    def advance(self, new_head, grow=False):
        if not grow:
            self.occupied.discard(self.positions.pop())
        self.positions.appendleft(new_head)
        self.occupied.add(new_head)
