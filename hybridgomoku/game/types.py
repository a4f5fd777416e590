from __future__ import annotations

import enum
from typing import NamedTuple


class Player(enum.Enum):
    BLACK = 1
    WHITE = 2

    @property
    def other(self) -> Player:
        return Player.WHITE if self is Player.BLACK else Player.BLACK

    @property
    def initial(self) -> str:
        """Single-letter tag used in board and move signatures."""
        return "b" if self is Player.BLACK else "w"

    def __str__(self) -> str:
        return self.name.capitalize()


class Point(NamedTuple):
    x: int  # 0-indexed column, 0 = left
    y: int  # 0-indexed row, 0 = top


def chebyshev(a: Point, b: Point) -> int:
    """King-move distance between two points."""
    return max(abs(a.x - b.x), abs(a.y - b.y))
