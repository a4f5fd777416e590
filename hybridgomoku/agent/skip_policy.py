"""Admission gate deciding whether a remote consultation is worth making."""

from __future__ import annotations

import logging
from collections import deque
from typing import Optional, Sequence

from hybridgomoku.agent.difficulty import DifficultyProfile
from hybridgomoku.agent.types import Candidate
from hybridgomoku.game.board import DIRECTIONS, Board, Move
from hybridgomoku.game.types import Point

logger = logging.getLogger(__name__)

FORCED_SCORE = 10_000
CONFIDENT = 0.95
OPENING_PLIES = 10
ENDGAME_EMPTY = 30
FAILURE_WINDOW = 20
MAX_FAILURE_RATE = 0.5


def threat_level(board: Board) -> str:
    """Coarse complexity from maximal same-colour runs on the 4 line axes.

    'complex' if any run reaches 4, 'medium' with more than two runs of 3,
    otherwise 'simple'.
    """
    threes = 0
    for pt, player in board.stones():
        for dx, dy in DIRECTIONS:
            # Only count a run from its first stone
            prev = Point(pt.x - dx, pt.y - dy)
            if board.is_on_grid(prev) and board.get(prev) is player:
                continue
            length = 1
            nxt = Point(pt.x + dx, pt.y + dy)
            while board.is_on_grid(nxt) and board.get(nxt) is player:
                length += 1
                nxt = Point(nxt.x + dx, nxt.y + dy)
            if length >= 4:
                return "complex"
            if length == 3:
                threes += 1
    return "medium" if threes > 2 else "simple"


class SkipPolicy:
    """Tracks recent remote outcomes and vetoes calls that are not worth it."""

    def __init__(self, window: int = FAILURE_WINDOW) -> None:
        self._outcomes: deque[bool] = deque(maxlen=window)

    def skip_reason(
        self,
        board: Board,
        history: Sequence[Move],
        local: Candidate,
        profile: DifficultyProfile,
    ) -> Optional[str]:
        """First reason to stay local, or None when a remote call is worthwhile."""
        if local.score >= FORCED_SCORE:
            return "forced move"
        if local.confidence >= CONFIDENT:
            return "local evaluator is confident"
        if len(history) < OPENING_PLIES:
            return "opening phase"
        if board.empty_count < ENDGAME_EMPTY:
            return "endgame"
        if threat_level(board) == "simple":
            return "simple position"
        if not profile.use_remote:
            return f"remote disabled for {profile.level.value}"
        if self.failure_rate > MAX_FAILURE_RATE:
            return "remote failure rate too high"
        return None

    def should_skip_remote(
        self,
        board: Board,
        history: Sequence[Move],
        local: Candidate,
        profile: DifficultyProfile,
    ) -> bool:
        reason = self.skip_reason(board, history, local, profile)
        if reason:
            logger.info("Skipping remote advice: %s", reason)
        return reason is not None

    def record(self, success: bool) -> None:
        self._outcomes.append(success)

    @property
    def failure_rate(self) -> float:
        if not self._outcomes:
            return 0.0
        return self._outcomes.count(False) / len(self._outcomes)

    def reset(self) -> None:
        self._outcomes.clear()

    def stats(self) -> dict:
        return {
            "attempts": len(self._outcomes),
            "failures": self._outcomes.count(False),
            "failure_rate": self.failure_rate,
        }
