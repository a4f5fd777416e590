"""Opening book: fixed replies for the first plies, keyed by move sequence."""

from __future__ import annotations

import logging
import random
from dataclasses import dataclass
from typing import Optional, Sequence

from hybridgomoku.agent.difficulty import Difficulty
from hybridgomoku.game.board import Move
from hybridgomoku.game.types import Point

logger = logging.getLogger(__name__)

MAX_DEPTH = 10


@dataclass(frozen=True)
class OpeningMove:
    point: Point
    name: str
    win_rate: float
    style: str  # standard | flexible | balanced | aggressive


def _entry(x: int, y: int, name: str, win_rate: float, style: str) -> OpeningMove:
    return OpeningMove(Point(x, y), name, win_rate, style)


# Signature: "<b|w><x><y>" per move, comma-joined. "" is the empty board.
# The empty-board entry holds only the centre so every tier opens on (7, 7).
_BOOK: dict[str, tuple[OpeningMove, ...]] = {
    "": (
        _entry(7, 7, "Centre opening", 0.52, "standard"),
    ),
    # White answers a centre opening
    "b77": (
        _entry(6, 6, "Diagonal star", 0.52, "balanced"),
        _entry(8, 8, "Diagonal star", 0.52, "balanced"),
        _entry(6, 7, "Direct contact", 0.50, "aggressive"),
        _entry(7, 6, "Direct contact", 0.50, "aggressive"),
    ),
    # Black's third move after centre + diagonal star
    "b77,w66": (
        _entry(8, 8, "Symmetric shape", 0.53, "standard"),
        _entry(7, 6, "Vertical press", 0.52, "aggressive"),
        _entry(6, 7, "Horizontal press", 0.52, "aggressive"),
    ),
    "b77,w88": (
        _entry(6, 6, "Symmetric shape", 0.53, "standard"),
        _entry(7, 8, "Vertical press", 0.52, "aggressive"),
    ),
    # White answers a star-point opening
    "b66": (
        _entry(8, 8, "Diagonal reply", 0.51, "balanced"),
        _entry(7, 7, "Centre control", 0.52, "standard"),
        _entry(6, 8, "Flank press", 0.50, "aggressive"),
    ),
    "b88": (
        _entry(6, 6, "Diagonal reply", 0.51, "balanced"),
        _entry(7, 7, "Centre control", 0.52, "standard"),
        _entry(8, 6, "Flank press", 0.50, "aggressive"),
    ),
    "b66,w77": (
        _entry(8, 8, "Triangle shape", 0.53, "standard"),
        _entry(5, 5, "Extended star", 0.51, "flexible"),
    ),
    "b88,w77": (
        _entry(6, 6, "Triangle shape", 0.53, "standard"),
        _entry(9, 9, "Extended star", 0.51, "flexible"),
    ),
}


def move_signature(history: Sequence[Move]) -> str:
    return ",".join(
        f"{m.player.initial}{m.point.x}{m.point.y}" for m in history
    )


class OpeningBook:
    """Static lookup table for the first MAX_DEPTH plies."""

    def __init__(
        self,
        max_depth: int = MAX_DEPTH,
        rng: Optional[random.Random] = None,
    ) -> None:
        self.max_depth = max_depth
        self._book = dict(_BOOK)
        self._rng = rng or random.Random()
        logger.debug("Opening book loaded: %d positions", len(self._book))

    def query(self, history: Sequence[Move]) -> Optional[tuple[OpeningMove, ...]]:
        if len(history) >= self.max_depth:
            return None
        signature = move_signature(history)
        entries = self._book.get(signature)
        if entries:
            logger.debug("Opening book hit: %r -> %d options", signature, len(entries))
        return entries

    def select_best_move(
        self, entries: Sequence[OpeningMove], difficulty: Difficulty
    ) -> Optional[OpeningMove]:
        if not entries:
            return None
        if difficulty is Difficulty.ELEMENTARY:
            return self._rng.choice(list(entries))
        if difficulty is Difficulty.MASTER:
            return next((e for e in entries if e.style == "aggressive"), entries[0])
        # max() keeps the first of equal win rates
        return max(entries, key=lambda e: e.win_rate)

    def stats(self) -> dict[str, int]:
        return {"positions": len(self._book), "max_depth": self.max_depth}
