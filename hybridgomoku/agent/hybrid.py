"""Hybrid orchestrator: opening book, prediction cache, local evaluator and
remote advice combined into one per-turn decision.

Per turn the orchestrator walks these stages:

    OPENING_LOOKUP -> CACHE_LOOKUP -> LOCAL_EVAL
        -> URGENT_RETURN                                  (forced local move)
        -> ADMISSION_CHECK [-> REMOTE_ATTEMPT -> VALIDATE -> BLEND]
    -> RESULT

The local evaluator always runs and is the floor: timeouts, transport errors,
malformed answers and rejected suggestions all end in the local candidate.
Every remote attempt is recorded in both the circuit breaker and the skip
policy. After a real decision a background prediction is started for the
opponent's likely replies, then the turn is paced by a short random delay.
"""

from __future__ import annotations

import asyncio
import enum
import logging
import random
from dataclasses import replace
from typing import Awaitable, Callable, Mapping, Optional, Sequence

from hybridgomoku.agent.base import Agent
from hybridgomoku.agent.breaker import CircuitBreaker
from hybridgomoku.agent.difficulty import PROFILES, Difficulty, DifficultyProfile
from hybridgomoku.agent.heuristic import best_move
from hybridgomoku.agent.opening_book import OpeningBook
from hybridgomoku.agent.prediction import PredictionCache, PredictiveEngine
from hybridgomoku.agent.skip_policy import SkipPolicy
from hybridgomoku.agent.timeouts import TimeoutController
from hybridgomoku.agent.types import Candidate, Category
from hybridgomoku.errors import AdvisoryError
from hybridgomoku.game.board import BOARD_SIZE, Board, GomokuGameState, Move
from hybridgomoku.game.types import Player, Point, chebyshev
from hybridgomoku.remote.advisory import build_messages, parse_completion
from hybridgomoku.remote.providers import ProviderDescriptor, ProviderSelector

logger = logging.getLogger(__name__)

NEAR_FORCED_SCORE = 10_000
MAX_DEVIATION = 2        # from the local point when the local move is near-forced
MAX_STONE_DISTANCE = 3   # from the nearest stone
AGREEMENT_BONUS = 0.1

_EDGE = BOARD_SIZE - 1
CORNERS = frozenset({Point(0, 0), Point(0, _EDGE), Point(_EDGE, 0), Point(_EDGE, _EDGE)})

Evaluator = Callable[[Board, Player, Difficulty, Optional[random.Random]], Candidate]


class DecisionStage(str, enum.Enum):
    OPENING_LOOKUP = "opening-lookup"
    CACHE_LOOKUP = "cache-lookup"
    LOCAL_EVAL = "local-eval"
    URGENT_RETURN = "urgent-return"
    ADMISSION_CHECK = "admission-check"
    REMOTE_ATTEMPT = "remote-attempt"
    VALIDATE = "validate"
    BLEND = "blend"
    RESULT = "result"


# ---------------------------------------------------------------------------
# Validation and blending
# ---------------------------------------------------------------------------

def validate_remote(remote: Candidate, board: Board, local: Candidate) -> Optional[str]:
    """Reason to reject a remote suggestion, or None if it is acceptable."""
    p = remote.point
    if not board.is_on_grid(p) or not board.is_empty(p):
        return "illegal position"
    if p in CORNERS:
        return "corner move"
    if local.score >= NEAR_FORCED_SCORE and chebyshev(p, local.point) > MAX_DEVIATION:
        return f"ignores an urgent local move (score {local.score:.0f})"
    if board.occupied_count and not any(
        chebyshev(p, stone) <= MAX_STONE_DISTANCE for stone, _ in board.stones()
    ):
        return "too far from the stones in play"
    return None


def playable_alternatives(
    board: Board, points: Sequence[Point], chosen: Point
) -> tuple[Point, ...]:
    """Keep the distinct on-board empty points other than `chosen`."""
    kept: list[Point] = []
    for p in points:
        if p == chosen or p in kept:
            continue
        if board.is_on_grid(p) and board.is_empty(p):
            kept.append(p)
    return tuple(kept)


def blend(
    local: Candidate, remote: Candidate, weight: float, rng: random.Random
) -> Candidate:
    """Merge the two suggestions; the unchosen one survives as an alternative."""
    if local.point == remote.point:
        return replace(
            local,
            category=Category.AGREEMENT,
            confidence=min(1.0, local.confidence + AGREEMENT_BONUS),
            rationale=f"Local engine and remote advice agree: {local.rationale}",
            alternatives=remote.alternatives,
        )
    if rng.random() < weight:
        others = tuple(p for p in remote.alternatives if p != local.point)
        return replace(
            remote,
            category=Category.REMOTE_ENHANCED,
            rationale=(
                f"Remote advice: {remote.rationale} "
                f"(local alternative: ({local.x},{local.y}) {local.category.value})"
            ),
            alternatives=(local.point,) + others,
        )
    return replace(
        local,
        category=Category.LOCAL_PRIMARY,
        rationale=f"{local.rationale} (remote alternative: ({remote.x},{remote.y}))",
        alternatives=(remote.point,),
    )


def _tagged(candidate: Candidate, source: str) -> Candidate:
    return replace(candidate, rationale=f"[{source}] {candidate.rationale}")


# ---------------------------------------------------------------------------
# HybridOrchestrator
# ---------------------------------------------------------------------------

class HybridOrchestrator:
    """Owns the per-game state of the engine and produces one move per call."""

    def __init__(
        self,
        selector: Optional[ProviderSelector] = None,
        *,
        book: Optional[OpeningBook] = None,
        cache: Optional[PredictionCache] = None,
        skip_policy: Optional[SkipPolicy] = None,
        timeouts: Optional[TimeoutController] = None,
        breaker: Optional[CircuitBreaker] = None,
        profiles: Mapping[Difficulty, DifficultyProfile] = PROFILES,
        evaluator: Evaluator = best_move,
        rng: Optional[random.Random] = None,
        sleep: Callable[[float], Awaitable[None]] = asyncio.sleep,
        pacing: bool = True,
    ) -> None:
        self.selector = selector
        self._rng = rng or random.Random()
        self.book = book or OpeningBook(rng=self._rng)
        self.cache = cache or PredictionCache()
        self.skip_policy = skip_policy or SkipPolicy()
        self.timeouts = timeouts or TimeoutController()
        self.breaker = breaker or CircuitBreaker()
        self.profiles = profiles
        self._evaluate = evaluator
        self._sleep = sleep
        self.pacing = pacing
        self.predictor = PredictiveEngine(self.cache, self._speculate)
        self.last_path: tuple[DecisionStage, ...] = ()

    async def decide(
        self,
        board: Board,
        history: Sequence[Move],
        player: Player,
        difficulty: Difficulty,
        *,
        speculative: bool = False,
    ) -> Candidate:
        """Choose `player`'s move on `board`. Never raises on remote failures.

        Speculative calls come from the predictive engine: they skip pacing
        and do not start further predictions.
        """
        difficulty = Difficulty(difficulty)
        profile = self.profiles[difficulty]
        path = [DecisionStage.OPENING_LOOKUP]

        opening = self._opening_move(board, history, difficulty)
        if opening is not None:
            path.append(DecisionStage.RESULT)
            if not speculative:
                self.last_path = tuple(path)
                logger.info("Opening book move %s", opening)
            await self._pace(profile, speculative)
            return opening

        path.append(DecisionStage.CACHE_LOOKUP)
        cached = self.cache.get(board)
        if cached is not None and board.is_empty(cached.point):
            path.append(DecisionStage.RESULT)
            return await self._finish(
                board, history, player, difficulty, _tagged(cached, "predicted"), path, speculative
            )

        path.append(DecisionStage.LOCAL_EVAL)
        local = self._evaluate(board, player, difficulty, self._rng)
        logger.debug("Local suggestion %s", local)

        if local.score >= profile.urgency_threshold:
            path += [DecisionStage.URGENT_RETURN, DecisionStage.RESULT]
            return await self._finish(
                board, history, player, difficulty, _tagged(local, "local"), path, speculative
            )

        path.append(DecisionStage.ADMISSION_CHECK)
        if not self._remote_allowed(board, history, local, profile):
            path.append(DecisionStage.RESULT)
            return await self._finish(
                board, history, player, difficulty, _tagged(local, "local"), path, speculative
            )

        path.append(DecisionStage.REMOTE_ATTEMPT)
        remote = await self._consult(board, history, player, local, profile)
        if remote is None:
            self._record(False)
            path.append(DecisionStage.RESULT)
            return await self._finish(
                board, history, player, difficulty, _tagged(local, "local"), path, speculative
            )

        path.append(DecisionStage.VALIDATE)
        rejection = validate_remote(remote, board, local)
        if rejection is not None:
            logger.warning("Rejected remote move (%d,%d): %s", remote.x, remote.y, rejection)
            self._record(False)
            path.append(DecisionStage.RESULT)
            return await self._finish(
                board, history, player, difficulty, _tagged(local, "local"), path, speculative
            )

        self._record(True)
        path += [DecisionStage.BLEND, DecisionStage.RESULT]
        final = blend(local, remote, profile.remote_weight, self._rng)
        return await self._finish(
            board, history, player, difficulty, _tagged(final, "hybrid"), path, speculative
        )

    # ------------------------------------------------------------------
    # Stages
    # ------------------------------------------------------------------

    def _opening_move(
        self, board: Board, history: Sequence[Move], difficulty: Difficulty
    ) -> Optional[Candidate]:
        entries = self.book.query(history)
        if not entries:
            return None
        choice = self.book.select_best_move(entries, difficulty)
        if choice is None or not board.is_empty(choice.point):
            return None
        return Candidate(
            point=choice.point,
            score=0,
            category=Category.OPENING,
            rationale=f"[opening] {choice.name} (win rate {choice.win_rate:.0%}, {choice.style})",
            confidence=1.0,
            alternatives=tuple(e.point for e in entries if e.point != choice.point),
        )

    def _remote_allowed(
        self,
        board: Board,
        history: Sequence[Move],
        local: Candidate,
        profile: DifficultyProfile,
    ) -> bool:
        if self.skip_policy.should_skip_remote(board, history, local, profile):
            return False
        if not profile.use_remote:
            return False
        if self.breaker.should_fallback():
            logger.info("Circuit breaker open (%s), staying local", self.breaker.level.value)
            return False
        if self.selector is None:
            logger.debug("No provider selector configured")
            return False
        return True

    async def _consult(
        self,
        board: Board,
        history: Sequence[Move],
        player: Player,
        local: Candidate,
        profile: DifficultyProfile,
    ) -> Optional[Candidate]:
        selector = self.selector
        if selector is None:
            return None
        messages = build_messages(board, history, player, local, profile.level)
        try:
            # Latency sweep runs under the probe timeout, not the call deadline
            provider = await selector.refresh()
            if provider is None:
                logger.warning("No AI provider is reachable, staying local")
                return None
            remote = await self.timeouts.run(
                self._ask(selector, provider, messages, profile), fallback=None
            )
        except AdvisoryError as e:
            logger.warning("Remote advice failed: %s", e)
            return None
        except Exception:
            logger.exception("Unexpected error while consulting remote advice")
            return None
        if remote is None:
            return None
        return replace(
            remote, alternatives=playable_alternatives(board, remote.alternatives, remote.point)
        )

    async def _ask(
        self,
        selector: ProviderSelector,
        provider: ProviderDescriptor,
        messages: list[dict[str, str]],
        profile: DifficultyProfile,
    ) -> Candidate:
        payload = await selector.call(
            messages, temperature=profile.temperature, provider=provider
        )
        return parse_completion(payload)

    def _record(self, success: bool) -> None:
        self.breaker.record(success)
        self.skip_policy.record(success)

    async def _finish(
        self,
        board: Board,
        history: Sequence[Move],
        player: Player,
        difficulty: Difficulty,
        result: Candidate,
        path: list[DecisionStage],
        speculative: bool,
    ) -> Candidate:
        if not speculative:
            self.last_path = tuple(path)
            logger.info(
                "Decision %s via %s", result, " -> ".join(s.value for s in path)
            )
            if board.is_empty(result.point):
                after = board.with_stone(result.point, player)
                # Nothing to predict once the game is won
                if not after.is_five(result.point, player):
                    after_history = tuple(history) + (Move(result.point, player, len(history)),)
                    self.predictor.trigger(after, after_history, player, difficulty)
        await self._pace(self.profiles[difficulty], speculative)
        return result

    async def _pace(self, profile: DifficultyProfile, speculative: bool) -> None:
        if speculative or not self.pacing:
            return
        low, high = profile.thinking_time
        await self._sleep(self._rng.uniform(low, high))

    async def _speculate(
        self,
        board: Board,
        history: Sequence[Move],
        player: Player,
        difficulty: Difficulty,
    ) -> Candidate:
        return await self.decide(board, history, player, difficulty, speculative=True)

    # ------------------------------------------------------------------
    # Lifecycle
    # ------------------------------------------------------------------

    def new_game(self) -> None:
        """Reset every per-game statistic and drop pending predictions."""
        self.breaker.reset()
        self.skip_policy.reset()
        self.timeouts.reset()
        self.predictor.reset()
        self.last_path = ()

    def stats(self) -> dict:
        return {
            "breaker": self.breaker.stats(),
            "skip_policy": self.skip_policy.stats(),
            "timeouts": self.timeouts.stats(),
            "prediction": self.predictor.stats(),
            "providers": self.selector.stats() if self.selector else None,
        }


# ---------------------------------------------------------------------------
# HybridAgent
# ---------------------------------------------------------------------------

class HybridAgent(Agent):
    """Agent adapter around a HybridOrchestrator."""

    def __init__(
        self,
        orchestrator: Optional[HybridOrchestrator] = None,
        difficulty: Difficulty = Difficulty.COLLEGE,
    ) -> None:
        self.orchestrator = orchestrator or HybridOrchestrator()
        self.difficulty = difficulty

    @property
    def name(self) -> str:
        return f"HybridAgent({self.difficulty.value})"

    async def select_move(self, game_state: GomokuGameState) -> Candidate:
        return await self.orchestrator.decide(
            game_state.board,
            tuple(game_state.moves),
            game_state.current_player,
            self.difficulty,
        )

    def new_game(self) -> None:
        self.orchestrator.new_game()
