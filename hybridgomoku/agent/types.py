from __future__ import annotations

import enum
from dataclasses import dataclass

from hybridgomoku.game.board import format_point
from hybridgomoku.game.types import Point


class Category(str, enum.Enum):
    """Why a candidate was chosen."""

    WINNING = "winning"
    DEFEND_WIN = "defend-win"
    LIVE_FOUR = "live-four"
    DEFEND_LIVE_FOUR = "defend-live-four"
    BLOCKED_FOUR = "blocked-four"
    DEFEND_BLOCKED_FOUR = "defend-blocked-four"
    DOUBLE_THREAT = "double-threat"
    EVALUATED = "evaluated"
    RANDOM = "random"
    DEFAULT = "default"
    OPENING = "opening"
    REMOTE = "remote"
    AGREEMENT = "agreement"
    REMOTE_ENHANCED = "remote-enhanced"
    LOCAL_PRIMARY = "local-primary"


@dataclass(frozen=True)
class Candidate:
    """A proposed move with its score and rationale. Never mutated; use replace()."""

    point: Point
    score: float
    category: Category
    rationale: str
    confidence: float
    alternatives: tuple[Point, ...] = ()

    @property
    def x(self) -> int:
        return self.point.x

    @property
    def y(self) -> int:
        return self.point.y

    def __str__(self) -> str:
        return (
            f"{format_point(self.point)} [{self.category.value}] "
            f"score={self.score:.0f} conf={self.confidence:.2f}"
        )
