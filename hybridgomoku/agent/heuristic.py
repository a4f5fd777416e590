"""Heuristic evaluator: tiered threat checks plus single-ply pattern scoring.

Deterministic given (board, player, difficulty); the only randomness is the
elementary tier's deliberate random pick, drawn from an injectable RNG.
"""

from __future__ import annotations

import random
from typing import Optional

from hybridgomoku.agent.base import Agent
from hybridgomoku.agent.difficulty import Difficulty, DifficultyProfile, get_profile
from hybridgomoku.agent.types import Candidate, Category
from hybridgomoku.game.board import (
    BOARD_SIZE,
    CENTER,
    DIRECTIONS,
    Board,
    GomokuGameState,
)
from hybridgomoku.game.types import Player, Point, chebyshev

# ---------------------------------------------------------------------------
# Pattern library: 9-cell line centred on the cell.
# '1' = own stone, '0' = empty, '2' = opponent stone or off-board.
# ---------------------------------------------------------------------------

FIVE = "11111"
OPEN_FOUR = "011110"
BLOCKED_FOURS = ("211110", "011112", "11011", "10111", "11101")
THREAT_SHAPES = ("01110", "11110")

PATTERNS: list[tuple[str, int]] = [
    (FIVE, 1_000_000),
    (OPEN_FOUR, 100_000),
    *((p, 10_000) for p in BLOCKED_FOURS),
    ("011100", 5_000),  # live threes
    ("001110", 5_000),
    ("011010", 5_000),
    ("010110", 5_000),
    ("211100", 500),    # sleeping threes
    ("001112", 500),
    ("11001", 500),
    ("10011", 500),
    ("10101", 500),
    ("001100", 200),    # live twos
    ("011000", 200),
    ("000110", 200),
    ("010100", 200),
    ("001010", 200),
]

# Centre-favouring weights, 7 at the centre down to 0 at the edge
POSITION_WEIGHTS: list[list[int]] = [
    [max(0, 7 - chebyshev(Point(x, y), CENTER)) for x in range(BOARD_SIZE)]
    for y in range(BOARD_SIZE)
]

OFFENSE_WEIGHT = 1.5
DEFENSE_WEIGHT = 1.2
CONNECTIVITY_WEIGHT = 5
POSITION_WEIGHT = 10

CANDIDATE_RADIUS = 2
RANDOM_POOL = 5

_NEIGHBOURS = [(-1, -1), (-1, 0), (-1, 1), (0, -1), (0, 1), (1, -1), (1, 0), (1, 1)]


# ---------------------------------------------------------------------------
# Line patterns
# ---------------------------------------------------------------------------

def line_pattern(board: Board, point: Point, dx: int, dy: int, player: Player) -> str:
    """Encode the 9 cells through `point` along (dx, dy) from `player`'s view."""
    chars: list[str] = []
    for i in range(-4, 5):
        p = Point(point.x + i * dx, point.y + i * dy)
        if not board.is_on_grid(p):
            chars.append("2")
            continue
        stone = board.get(p)
        if stone is None:
            chars.append("0")
        elif stone is player:
            chars.append("1")
        else:
            chars.append("2")
    return "".join(chars)


def pattern_score(line: str) -> int:
    """Sum the scores of every library pattern found in `line`."""
    return sum(score for pat, score in PATTERNS if pat in line)


def _patterns_at(board: Board, point: Point, player: Player) -> int:
    return sum(
        pattern_score(line_pattern(board, point, dx, dy, player))
        for dx, dy in DIRECTIONS
    )


def _connectivity(board: Board, point: Point, player: Player) -> int:
    score = 0
    for dx, dy in _NEIGHBOURS:
        p = Point(point.x + dx, point.y + dy)
        if board.is_on_grid(p) and board.get(p) is player:
            score += 3
            pp = Point(point.x + 2 * dx, point.y + 2 * dy)
            if board.is_on_grid(pp) and board.get(pp) is player:
                score += 5
    return score


# ---------------------------------------------------------------------------
# Candidate generation
# ---------------------------------------------------------------------------

def generate_candidates(board: Board, radius: int = CANDIDATE_RADIUS) -> list[Point]:
    """Empty cells within Chebyshev `radius` of a stone, in row-major order.

    On an empty board, returns the center point.
    """
    if board.occupied_count == 0:
        return [CENTER]

    near: set[Point] = set()
    for pt, _ in board.stones():
        for dy in range(-radius, radius + 1):
            for dx in range(-radius, radius + 1):
                np = Point(pt.x + dx, pt.y + dy)
                if board.is_on_grid(np) and board.is_empty(np):
                    near.add(np)
    return sorted(near, key=lambda p: (p.y, p.x))


def _empty_cells(board: Board):
    for y in range(BOARD_SIZE):
        for x in range(BOARD_SIZE):
            p = Point(x, y)
            if board.is_empty(p):
                yield p


# ---------------------------------------------------------------------------
# Threat search (all scans row-major; first hit wins)
# ---------------------------------------------------------------------------

def find_winning_move(board: Board, player: Player) -> Optional[Point]:
    """First cell where `player` completes five."""
    work = board.copy()
    for p in _empty_cells(board):
        work.place(p, player)
        won = work.is_five(p, player)
        work.remove(p)
        if won:
            return p
    return None


def find_pattern_move(
    board: Board, player: Player, patterns: tuple[str, ...]
) -> Optional[Point]:
    """First cell where placing `player`'s stone forms any of `patterns`."""
    work = board.copy()
    for p in _empty_cells(board):
        work.place(p, player)
        hit = any(
            pat in line_pattern(work, p, dx, dy, player)
            for dx, dy in DIRECTIONS
            for pat in patterns
        )
        work.remove(p)
        if hit:
            return p
    return None


def find_double_threat_move(board: Board, player: Player) -> Optional[Point]:
    """First cell creating three/four threats on two lines at once."""
    work = board.copy()
    for p in _empty_cells(board):
        work.place(p, player)
        threats = 0
        for dx, dy in DIRECTIONS:
            line = line_pattern(work, p, dx, dy, player)
            if any(shape in line for shape in THREAT_SHAPES):
                threats += 1
        work.remove(p)
        if threats >= 2:
            return p
    return None


# ---------------------------------------------------------------------------
# Position evaluation
# ---------------------------------------------------------------------------

def _score_cell(
    work: Board, point: Point, player: Player, profile: DifficultyProfile
) -> float:
    """Score `point` on a scratch board; the board is restored before returning."""
    opponent = player.other
    score: float = POSITION_WEIGHTS[point.y][point.x] * POSITION_WEIGHT

    work.place(point, player)
    score += _patterns_at(work, point, player) * OFFENSE_WEIGHT
    work.remove(point)

    work.place(point, opponent)
    score += _patterns_at(work, point, opponent) * DEFENSE_WEIGHT
    work.remove(point)

    score += _connectivity(work, point, player) * CONNECTIVITY_WEIGHT
    return score * profile.score_scale


def evaluate_position(
    board: Board,
    point: Point,
    player: Player,
    difficulty: Difficulty = Difficulty.MASTER,
) -> float:
    """Offense + defense + connectivity + centre score of playing `point`."""
    return _score_cell(board.copy(), point, player, get_profile(difficulty))


# ---------------------------------------------------------------------------
# Best move
# ---------------------------------------------------------------------------

def best_move(
    board: Board,
    player: Player,
    difficulty: Difficulty = Difficulty.MASTER,
    rng: Optional[random.Random] = None,
) -> Candidate:
    """Pick a move for `player`. Always returns a candidate."""
    profile = get_profile(difficulty)
    opponent = player.other

    win = find_winning_move(board, player)
    if win is not None:
        return Candidate(win, 1_000_000, Category.WINNING, "Winning move found", 1.0)

    block = find_winning_move(board, opponent)
    if block is not None:
        return Candidate(
            block, 900_000, Category.DEFEND_WIN, "Blocks the opponent's five", 0.99
        )

    four = find_pattern_move(board, player, (OPEN_FOUR,))
    if four is not None:
        return Candidate(four, 100_000, Category.LIVE_FOUR, "Makes an open four", 0.95)

    four = find_pattern_move(board, opponent, (OPEN_FOUR,))
    if four is not None:
        return Candidate(
            four, 90_000, Category.DEFEND_LIVE_FOUR, "Stops the opponent's open four", 0.95
        )

    if profile.allow_blocked_four:
        four = find_pattern_move(board, player, BLOCKED_FOURS)
        if four is not None:
            return Candidate(
                four, 50_000, Category.BLOCKED_FOUR, "Makes a four with one open end", 0.85
            )

    four = find_pattern_move(board, opponent, BLOCKED_FOURS)
    if four is not None:
        return Candidate(
            four, 45_000, Category.DEFEND_BLOCKED_FOUR, "Stops the opponent's four", 0.90
        )

    if profile.seek_double_threat:
        fork = find_double_threat_move(board, player)
        if fork is not None:
            return Candidate(
                fork, 30_000, Category.DOUBLE_THREAT, "Creates a double threat", 0.80
            )

    candidates = generate_candidates(board)
    work = board.copy()
    best: Optional[Candidate] = None
    for pt in candidates:
        if not work.is_empty(pt):
            continue
        score = _score_cell(work, pt, player, profile)
        if best is None or score > best.score:
            best = Candidate(
                pt, score, Category.EVALUATED, f"Evaluated score {score:.0f}", 0.6
            )

    if profile.random_move_rate > 0 and candidates:
        rng = rng or random.Random()
        if rng.random() < profile.random_move_rate:
            pick = candidates[rng.randrange(min(RANDOM_POOL, len(candidates)))]
            if board.is_empty(pick):
                return Candidate(pick, 0, Category.RANDOM, "Random move", 0.3)

    if best is None:
        return Candidate(CENTER, 0, Category.DEFAULT, "Default to the centre", 0.5)
    return best


# ---------------------------------------------------------------------------
# HeuristicAgent
# ---------------------------------------------------------------------------

class HeuristicAgent(Agent):
    """Local-only agent: the evaluator with no remote advice."""

    def __init__(
        self,
        difficulty: Difficulty = Difficulty.COLLEGE,
        rng: Optional[random.Random] = None,
    ) -> None:
        self.difficulty = difficulty
        self._rng = rng or random.Random()

    @property
    def name(self) -> str:
        return f"HeuristicAgent({self.difficulty.value})"

    async def select_move(self, game_state: GomokuGameState) -> Candidate:
        return best_move(
            game_state.board, game_state.current_player, self.difficulty, self._rng
        )
