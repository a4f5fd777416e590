"""Speculative precomputation of the engine's replies.

After every real decision the PredictiveEngine guesses the opponent's likeliest
replies, runs the full orchestrator on each resulting board in the background
and stores the answers in a PredictionCache. A later turn that reaches one of
those boards is answered straight from the cache.
"""

from __future__ import annotations

import asyncio
import logging
import time
from collections import OrderedDict
from typing import Awaitable, Callable, NamedTuple, Optional, Sequence

from hybridgomoku.agent.difficulty import Difficulty
from hybridgomoku.agent.heuristic import evaluate_position
from hybridgomoku.agent.types import Candidate
from hybridgomoku.game.board import BOARD_SIZE, Board, Move
from hybridgomoku.game.types import Player, Point

logger = logging.getLogger(__name__)

CACHE_CAPACITY = 50
CACHE_TTL = 30.0  # seconds

MIN_PLY = 6
MAX_PLY = 200
SCAN_RADIUS = 3
MAX_SCAN = 20
BRANCHES = 3

DecideFn = Callable[[Board, Sequence[Move], Player, Difficulty], Awaitable[Candidate]]


# ---------------------------------------------------------------------------
# Cache
# ---------------------------------------------------------------------------

class CacheEntry(NamedTuple):
    candidate: Candidate
    inserted_at: float


class PredictionCache:
    """Board signature -> Candidate with a TTL and insertion-order eviction.

    Eviction is FIFO: when full, the oldest-inserted key goes first. Reads do
    not refresh an entry's position, so this is not an LRU.
    """

    def __init__(
        self,
        capacity: int = CACHE_CAPACITY,
        ttl: float = CACHE_TTL,
        clock: Callable[[], float] = time.monotonic,
    ) -> None:
        self.capacity = capacity
        self.ttl = ttl
        self._clock = clock
        self._entries: OrderedDict[str, CacheEntry] = OrderedDict()
        self._hits = 0
        self._misses = 0

    def set(self, board: Board, candidate: Candidate) -> None:
        key = board.signature()
        # A re-set counts as a fresh insertion
        self._entries.pop(key, None)
        while len(self._entries) >= self.capacity:
            self._entries.popitem(last=False)
        self._entries[key] = CacheEntry(candidate, self._clock())
        logger.debug("Cached prediction for %s", key[:40])

    def get(self, board: Board) -> Optional[Candidate]:
        key = board.signature()
        entry = self._entries.get(key)
        if entry is None:
            self._misses += 1
            return None
        age = self._clock() - entry.inserted_at
        if age > self.ttl:
            del self._entries[key]
            self._misses += 1
            logger.debug("Prediction expired (%.1fs old)", age)
            return None
        self._hits += 1
        logger.info("Prediction cache hit (%.1fs old)", age)
        return entry.candidate

    def __len__(self) -> int:
        return len(self._entries)

    def __contains__(self, board: Board) -> bool:
        return board.signature() in self._entries

    def clear(self) -> None:
        self._entries.clear()
        self._hits = 0
        self._misses = 0

    def stats(self) -> dict:
        total = self._hits + self._misses
        return {
            "size": len(self._entries),
            "capacity": self.capacity,
            "hits": self._hits,
            "misses": self._misses,
            "hit_rate": self._hits / total if total > 0 else 0.0,
        }


# ---------------------------------------------------------------------------
# Predictive engine
# ---------------------------------------------------------------------------

def nearby_empty_cells(board: Board, radius: int = SCAN_RADIUS) -> list[Point]:
    """Empty cells within `radius` of any stone, row-major."""
    cells: list[Point] = []
    stones = [pt for pt, _ in board.stones()]
    for y in range(BOARD_SIZE):
        for x in range(BOARD_SIZE):
            p = Point(x, y)
            if not board.is_empty(p):
                continue
            if any(abs(s.x - x) <= radius and abs(s.y - y) <= radius for s in stones):
                cells.append(p)
    return cells


def likely_replies(
    board: Board, mover: Player, max_scan: int = MAX_SCAN, branches: int = BRANCHES
) -> list[Point]:
    """Guess `mover`'s best replies with a quick master-tier score."""
    scored = [
        (evaluate_position(board, p, mover, Difficulty.MASTER), p)
        for p in nearby_empty_cells(board)[:max_scan]
    ]
    # sorted() is stable: equal scores keep row-major order
    scored = sorted(scored, key=lambda sp: sp[0], reverse=True)
    return [p for _, p in scored[:branches]]


class PredictiveEngine:
    """Runs at most one speculative prediction at a time; extra triggers are dropped."""

    def __init__(
        self,
        cache: PredictionCache,
        decide: DecideFn,
        min_ply: int = MIN_PLY,
        max_ply: int = MAX_PLY,
        max_scan: int = MAX_SCAN,
        branches: int = BRANCHES,
    ) -> None:
        self.cache = cache
        self._decide = decide
        self.min_ply = min_ply
        self.max_ply = max_ply
        self.max_scan = max_scan
        self.branches = branches
        self._task: Optional[asyncio.Task] = None
        self._generation = 0
        self._completed = 0
        self._dropped = 0

    @property
    def busy(self) -> bool:
        return self._task is not None and not self._task.done()

    def trigger(
        self,
        board: Board,
        history: Sequence[Move],
        player: Player,
        difficulty: Difficulty,
    ) -> bool:
        """Start predicting `player`'s replies to the opponent's next move.

        `board`/`history` are the position with the opponent to move.
        Returns False if the trigger was dropped.
        """
        if self.busy:
            self._dropped += 1
            logger.debug("Prediction already running, trigger dropped")
            return False
        if not (self.min_ply <= len(history) <= self.max_ply):
            return False
        self._task = asyncio.get_running_loop().create_task(
            self._predict(board.copy(), tuple(history), player, difficulty, self._generation)
        )
        return True

    async def _predict(
        self,
        board: Board,
        history: tuple[Move, ...],
        player: Player,
        difficulty: Difficulty,
        generation: int,
    ) -> None:
        opponent = player.other
        replies = likely_replies(board, opponent, self.max_scan, self.branches)
        logger.info(
            "Predicting replies to %s",
            ", ".join(f"({p.x},{p.y})" for p in replies) or "nothing",
        )
        for reply in replies:
            simulated = board.with_stone(reply, opponent)
            sim_history = history + (Move(reply, opponent, len(history)),)
            try:
                answer = await self._decide(simulated, sim_history, player, difficulty)
            except Exception:
                logger.exception("Prediction for (%d,%d) failed", reply.x, reply.y)
                continue
            if generation != self._generation:
                logger.debug("Discarding prediction from a previous game")
                return
            self.cache.set(simulated, answer)
            self._completed += 1
            logger.info(
                "Predicted: if (%d,%d) then (%d,%d)", reply.x, reply.y, answer.x, answer.y
            )

    async def drain(self) -> None:
        """Wait for the in-flight prediction, if any."""
        if self._task is not None:
            await asyncio.wait({self._task})

    def reset(self) -> None:
        """Cancel any in-flight prediction and clear the cache."""
        self._generation += 1
        if self._task is not None and not self._task.done():
            self._task.cancel()
        self._task = None
        self.cache.clear()

    def stats(self) -> dict:
        return {
            **self.cache.stats(),
            "predicting": self.busy,
            "completed": self._completed,
            "dropped": self._dropped,
        }
