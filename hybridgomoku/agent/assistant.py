"""Hint assistant for the human player.

Hints come in three levels that differ in how many suggestions they return
and how much energy they cost. Energy starts at 100 per game and never
refills; deep hints also need DEEP_COOLDOWN moves since the last one (or since
the game started).
"""

from __future__ import annotations

import enum
import logging
import random
from dataclasses import dataclass
from typing import Optional

from hybridgomoku.agent.difficulty import Difficulty
from hybridgomoku.agent.heuristic import best_move, evaluate_position, generate_candidates
from hybridgomoku.errors import HintUnavailableError
from hybridgomoku.game.board import Board
from hybridgomoku.game.types import Player, Point

logger = logging.getLogger(__name__)

INITIAL_ENERGY = 100
DEEP_COOLDOWN = 3  # moves


class HintLevel(str, enum.Enum):
    QUICK = "quick"
    STANDARD = "standard"
    DEEP = "deep"


ENERGY_COSTS = {HintLevel.QUICK: 10, HintLevel.STANDARD: 30, HintLevel.DEEP: 50}
SUGGESTION_COUNTS = {HintLevel.QUICK: 1, HintLevel.STANDARD: 3, HintLevel.DEEP: 5}


class HintKind(str, enum.Enum):
    ATTACK = "attack"
    DEFENSE = "defense"
    STRATEGY = "strategy"


@dataclass(frozen=True)
class Suggestion:
    point: Point
    score: float
    reason: str
    kind: HintKind


@dataclass(frozen=True)
class Evaluation:
    score: float
    advantage: Optional[Player]  # None when the position is even
    threat: Optional[str]


@dataclass(frozen=True)
class HintResult:
    level: HintLevel
    suggestions: tuple[Suggestion, ...]
    evaluation: Evaluation
    energy_cost: int

    @property
    def best(self) -> Point:
        return self.suggestions[0].point


# ---------------------------------------------------------------------------
# Wording
# ---------------------------------------------------------------------------

_REASONS = [
    (100_000, "makes five and wins"),
    (50_000, "makes an open four the opponent cannot stop"),
    (10_000, "makes a four or stops the opponent's open four"),
    (5_000, "makes an open three or stops the opponent's four"),
    (1_000, "makes a closed three or stops the opponent's open three"),
    (500, "takes a key point and builds the advantage"),
]

_THREATS = [
    (100_000, "Winning position!"),
    (50_000, "Open four on the board, it must be answered"),
    (10_000, "A four is on the board, defend it"),
    (5_000, "Open three on the board, consider defending"),
]


def _reason(score: float, rank: int) -> str:
    prefix = ("Best", "Second choice", "Alternative")[min(rank, 2)]
    for threshold, text in _REASONS:
        if score >= threshold:
            return f"{prefix}: {text}"
    return f"{prefix}: steady development"


def _kind(score: float) -> HintKind:
    if score >= 5_000:
        return HintKind.ATTACK
    if score >= 1_000:
        return HintKind.DEFENSE
    return HintKind.STRATEGY


def evaluate_hint(player: Player, suggestions: tuple[Suggestion, ...]) -> Evaluation:
    if not suggestions:
        return Evaluation(0, None, None)
    score = suggestions[0].score
    threat = next((text for threshold, text in _THREATS if score >= threshold), None)
    return Evaluation(score, player if score > 1_000 else None, threat)


# ---------------------------------------------------------------------------
# HintAssistant
# ---------------------------------------------------------------------------

class HintAssistant:
    """Per-game hint service with an energy budget and a deep-hint cooldown."""

    def __init__(
        self,
        difficulty: Difficulty = Difficulty.COLLEGE,
        max_energy: int = INITIAL_ENERGY,
        rng: Optional[random.Random] = None,
    ) -> None:
        self.difficulty = difficulty
        self.max_energy = max_energy
        self._rng = rng or random.Random()
        self.reset()

    def reset(self, difficulty: Optional[Difficulty] = None) -> None:
        if difficulty is not None:
            self.difficulty = difficulty
        self.energy = self.max_energy
        self.last_result: Optional[HintResult] = None
        self._moves_since_deep = 0

    def step(self) -> None:
        """Count one move played on the board."""
        self._moves_since_deep += 1

    @property
    def deep_cooldown(self) -> int:
        return max(0, DEEP_COOLDOWN - self._moves_since_deep)

    def can_use(self, level: HintLevel) -> bool:
        level = HintLevel(level)
        if self.energy < ENERGY_COSTS[level]:
            return False
        return level is not HintLevel.DEEP or self.deep_cooldown == 0

    def suggest(self, board: Board, player: Player, count: int) -> tuple[Suggestion, ...]:
        """Engine's move first, then the best-scoring other candidates."""
        top = best_move(board, player, self.difficulty, self._rng)
        scored = [(top.point, top.score)]
        if count > 1:
            others = [
                (p, evaluate_position(board, p, player, self.difficulty))
                for p in generate_candidates(board)
                if p != top.point
            ]
            # Stable sort keeps row-major order among equal scores
            others.sort(key=lambda item: item[1], reverse=True)
            scored += others[:count - 1]
        return tuple(
            Suggestion(p, score, _reason(score, rank), _kind(score))
            for rank, (p, score) in enumerate(scored)
        )

    def hint(
        self, board: Board, player: Player, level: HintLevel = HintLevel.STANDARD
    ) -> HintResult:
        """Analyse the position for `player` and charge the level's energy cost.

        Raises HintUnavailableError when energy is short or a deep hint is
        still cooling down; nothing is charged in that case.
        """
        level = HintLevel(level)
        cost = ENERGY_COSTS[level]
        if self.energy < cost:
            raise HintUnavailableError(
                f"not enough energy for a {level.value} hint",
                context={"needed": cost, "energy": self.energy},
            )
        if level is HintLevel.DEEP and self.deep_cooldown:
            raise HintUnavailableError(
                "deep analysis is cooling down",
                context={"moves_left": self.deep_cooldown},
            )

        suggestions = self.suggest(board, player, SUGGESTION_COUNTS[level])
        result = HintResult(level, suggestions, evaluate_hint(player, suggestions), cost)
        self.energy -= cost
        if level is HintLevel.DEEP:
            self._moves_since_deep = 0
        self.last_result = result
        logger.info(
            "%s hint for %s: %s (energy %d/%d)",
            level.value, player, result.best, self.energy, self.max_energy,
        )
        return result
