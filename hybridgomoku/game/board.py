from __future__ import annotations

from dataclasses import dataclass
from typing import Iterator, Optional, Sequence

from hybridgomoku.errors import InvalidBoardError

from .types import Player, Point

BOARD_SIZE = 15
WIN_LENGTH = 5
CENTER = Point(BOARD_SIZE // 2, BOARD_SIZE // 2)

# Column labels: A-O (skipping no letters for 15x15)
COL_LABELS = "ABCDEFGHIJKLMNO"

# Four line axes: horizontal, vertical, diagonal, anti-diagonal
DIRECTIONS = [(1, 0), (0, 1), (1, 1), (1, -1)]

# Symbols accepted by Board.from_rows
_ROW_SYMBOLS = {".": None, "+": None, "X": Player.BLACK, "O": Player.WHITE}


def parse_coordinate(text: str) -> Optional[Point]:
    """Parse a coordinate string like 'E5' or 'H12' into a Point.

    Column is a letter A-O, row is a number 1-15 (row 1 is y = 0).
    Returns None if the string is invalid.
    """
    text = text.strip().upper()
    if len(text) < 2 or len(text) > 3:
        return None
    col_char = text[0]
    row_str = text[1:]
    if col_char not in COL_LABELS:
        return None
    try:
        row = int(row_str)
    except ValueError:
        return None
    if not (1 <= row <= BOARD_SIZE):
        return None
    return Point(COL_LABELS.index(col_char), row - 1)


def format_point(point: Point) -> str:
    """Format a Point as a coordinate string like 'E5'."""
    return f"{COL_LABELS[point.x]}{point.y + 1}"


@dataclass(frozen=True)
class Move:
    point: Point
    player: Player
    ply: int = 0

    def __str__(self) -> str:
        return f"{self.player}: {format_point(self.point)}"


class Board:
    """15x15 Gomoku board. Tracks stone placement."""

    def __init__(self) -> None:
        self._grid: dict[Point, Player] = {}

    @classmethod
    def from_rows(cls, rows: Sequence[str]) -> Board:
        """Build a board from 15 text rows (top row first).

        'X' is black, 'O' is white, '.' or '+' is empty. Whitespace is ignored.
        """
        if len(rows) != BOARD_SIZE:
            raise InvalidBoardError(
                "board must have 15 rows", context={"rows": len(rows)}
            )
        board = cls()
        for y, row in enumerate(rows):
            cells = row.replace(" ", "")
            if len(cells) != BOARD_SIZE:
                raise InvalidBoardError(
                    "board row must have 15 cells",
                    context={"row": y, "cells": len(cells)},
                )
            for x, symbol in enumerate(cells):
                if symbol not in _ROW_SYMBOLS:
                    raise InvalidBoardError(
                        "unknown cell symbol", context={"row": y, "symbol": symbol}
                    )
                player = _ROW_SYMBOLS[symbol]
                if player is not None:
                    board._grid[Point(x, y)] = player
        return board

    def copy(self) -> Board:
        clone = Board()
        clone._grid = dict(self._grid)
        return clone

    def with_stone(self, point: Point, player: Player) -> Board:
        """Return a new board with one extra stone; self is left untouched."""
        clone = self.copy()
        clone.place(point, player)
        return clone

    def place(self, point: Point, player: Player) -> None:
        assert self.is_empty(point), f"{format_point(point)} is occupied"
        self._grid[point] = player

    def remove(self, point: Point) -> None:
        del self._grid[point]

    def get(self, point: Point) -> Optional[Player]:
        return self._grid.get(point)

    def is_empty(self, point: Point) -> bool:
        return point not in self._grid

    def is_on_grid(self, point: Point) -> bool:
        return 0 <= point.x < BOARD_SIZE and 0 <= point.y < BOARD_SIZE

    def stones(self) -> Iterator[tuple[Point, Player]]:
        """Occupied cells in row-major order."""
        for y in range(BOARD_SIZE):
            for x in range(BOARD_SIZE):
                player = self._grid.get(Point(x, y))
                if player is not None:
                    yield Point(x, y), player

    def signature(self) -> str:
        """Canonical key for the stone layout, e.g. 'b7,7;w6,6'."""
        return ";".join(f"{p.initial}{pt.x},{pt.y}" for pt, p in self.stones())

    def is_five(self, point: Point, player: Player) -> bool:
        """Check if the stone at `point` makes 5-in-a-row for `player`."""
        for dx, dy in DIRECTIONS:
            count = 1
            # Count forward
            for step in range(1, WIN_LENGTH):
                p = Point(point.x + dx * step, point.y + dy * step)
                if not self.is_on_grid(p) or self.get(p) is not player:
                    break
                count += 1
            # Count backward
            for step in range(1, WIN_LENGTH):
                p = Point(point.x - dx * step, point.y - dy * step)
                if not self.is_on_grid(p) or self.get(p) is not player:
                    break
                count += 1
            if count >= WIN_LENGTH:
                return True
        return False

    @property
    def occupied_count(self) -> int:
        return len(self._grid)

    @property
    def empty_count(self) -> int:
        return BOARD_SIZE * BOARD_SIZE - len(self._grid)

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, Board):
            return NotImplemented
        return self._grid == other._grid

    def __repr__(self) -> str:
        return f"Board({self.signature()!r})"


class GomokuGameState:
    """Full game state for Gomoku (15x15, 5-in-a-row)."""

    def __init__(self) -> None:
        self.board = Board()
        self.current_player = Player.BLACK
        self.moves: list[Move] = []
        self._winner: Optional[Player] = None
        self._is_over = False

    @property
    def is_over(self) -> bool:
        return self._is_over

    @property
    def winner(self) -> Optional[Player]:
        return self._winner

    @property
    def is_draw(self) -> bool:
        return self._is_over and self._winner is None

    def legal_moves(self) -> list[Point]:
        if self._is_over:
            return []
        return [
            Point(x, y)
            for y in range(BOARD_SIZE)
            for x in range(BOARD_SIZE)
            if self.board.is_empty(Point(x, y))
        ]

    def apply_move(self, point: Point) -> Move:
        """Place a stone for the current player and advance the turn."""
        assert not self._is_over, "Game is already over"
        assert self.board.is_on_grid(point), f"Point {point} is off the grid"
        assert self.board.is_empty(point), f"Point {format_point(point)} is occupied"

        player = self.current_player
        self.board.place(point, player)
        move = Move(point=point, player=player, ply=len(self.moves))
        self.moves.append(move)

        if self.board.is_five(point, player):
            self._winner = player
            self._is_over = True
        elif self.board.occupied_count == BOARD_SIZE * BOARD_SIZE:
            self._is_over = True

        self.current_player = self.current_player.other
        return move

    def undo_move(self) -> Optional[Move]:
        """Undo the last move. Returns the undone Move, or None if no moves."""
        if not self.moves:
            return None
        move = self.moves.pop()
        self.board.remove(move.point)
        self.current_player = move.player
        self._winner = None
        self._is_over = False
        return move

    def resign(self, player: Player) -> None:
        """End the game with `player` conceding."""
        self._is_over = True
        self._winner = player.other
