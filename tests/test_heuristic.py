"""Tests for the heuristic evaluator."""

import random

import pytest

from hybridgomoku.agent.difficulty import Difficulty
from hybridgomoku.agent.heuristic import (
    HeuristicAgent,
    best_move,
    evaluate_position,
    generate_candidates,
    line_pattern,
    pattern_score,
)
from hybridgomoku.agent.types import Category
from hybridgomoku.game.board import CENTER, Board, GomokuGameState
from hybridgomoku.game.types import Player, Point

CORNERS = [Point(0, 0), Point(14, 0), Point(0, 14), Point(14, 14)]


def _board(black, white):
    b = Board()
    for p in black:
        b.place(p, Player.BLACK)
    for p in white:
        b.place(p, Player.WHITE)
    return b


class _AlwaysRandom(random.Random):
    def random(self):
        return 0.0


# ---------------------------------------------------------------------------
# Line patterns
# ---------------------------------------------------------------------------

class TestLinePatterns:
    def test_centre_stone(self):
        b = _board([CENTER], [])
        assert line_pattern(b, CENTER, 1, 0, Player.BLACK) == "000010000"

    def test_opponent_is_two(self):
        b = _board([CENTER], [Point(8, 7)])
        assert line_pattern(b, CENTER, 1, 0, Player.BLACK) == "000012000"

    def test_off_board_is_two(self):
        b = _board([Point(0, 7)], [])
        assert line_pattern(b, Point(0, 7), 1, 0, Player.BLACK) == "222210000"

    def test_pattern_score_five(self):
        assert pattern_score("211111200") >= 1_000_000

    def test_pattern_score_open_four(self):
        assert pattern_score("000111100") >= 100_000

    def test_pattern_score_empty(self):
        assert pattern_score("000000000") == 0


# ---------------------------------------------------------------------------
# Candidate generation
# ---------------------------------------------------------------------------

class TestCandidates:
    def test_empty_board_is_centre(self):
        assert generate_candidates(Board()) == [CENTER]

    def test_radius_around_corner(self):
        b = _board([Point(0, 0)], [])
        cands = generate_candidates(b)
        assert len(cands) == 8
        assert Point(0, 0) not in cands
        assert cands[0] == Point(1, 0)

    def test_row_major_order(self):
        b = _board([CENTER], [])
        cands = generate_candidates(b)
        assert cands == sorted(cands, key=lambda p: (p.y, p.x))
        assert len(cands) == 24


# ---------------------------------------------------------------------------
# Tiered threat checks
# ---------------------------------------------------------------------------

class TestBestMove:
    def test_completes_five(self):
        b = _board([Point(x, 7) for x in range(5, 9)], CORNERS)
        c = best_move(b, Player.BLACK, Difficulty.COLLEGE)
        assert c.category is Category.WINNING
        assert c.point == Point(4, 7)
        assert c.score == 1_000_000
        assert c.confidence == 1.0

    def test_completes_five_at_every_tier(self):
        b = _board([Point(x, 7) for x in range(5, 9)], CORNERS)
        for level in Difficulty:
            assert best_move(b, Player.BLACK, level, random.Random(1)).category is Category.WINNING

    def test_vertical_four_wins(self):
        b = _board([Point(7, y) for y in range(6, 10)], [Point(2, 2), Point(2, 4), Point(12, 2), Point(12, 12)])
        c = best_move(b, Player.BLACK, Difficulty.MASTER)
        assert c.category is Category.WINNING
        assert c.point in (Point(7, 5), Point(7, 10))

    def test_blocks_opponent_open_four(self):
        b = _board(
            [Point(2, 2), Point(12, 2), Point(2, 12)],
            [Point(x, 7) for x in range(5, 9)],
        )
        c = best_move(b, Player.BLACK, Difficulty.COLLEGE)
        assert c.category is Category.DEFEND_WIN
        assert c.point in (Point(4, 7), Point(9, 7))

    def test_makes_open_four(self):
        b = _board([Point(6, 7), Point(7, 7), Point(8, 7)], CORNERS[:3])
        c = best_move(b, Player.BLACK, Difficulty.COLLEGE)
        assert c.category is Category.LIVE_FOUR
        assert c.point == Point(5, 7)

    def test_makes_blocked_four_college(self):
        b = _board([Point(6, 7), Point(7, 7), Point(8, 7)], [Point(5, 7), Point(0, 0), Point(14, 14)])
        c = best_move(b, Player.BLACK, Difficulty.COLLEGE)
        assert c.category is Category.BLOCKED_FOUR
        assert c.point == Point(9, 7)

    def test_elementary_skips_blocked_four(self):
        b = _board([Point(6, 7), Point(7, 7), Point(8, 7)], [Point(5, 7), Point(0, 0), Point(14, 14)])
        c = best_move(b, Player.BLACK, Difficulty.ELEMENTARY, random.Random(3))
        assert c.category is not Category.BLOCKED_FOUR

    def test_master_finds_double_threat(self):
        b = _board([Point(5, 7), Point(6, 7), Point(7, 5), Point(7, 6)], CORNERS)
        c = best_move(b, Player.BLACK, Difficulty.MASTER)
        assert c.category is Category.DOUBLE_THREAT
        assert c.point == Point(7, 7)

    def test_college_does_not_seek_double_threat(self):
        b = _board([Point(5, 7), Point(6, 7), Point(7, 5), Point(7, 6)], CORNERS)
        c = best_move(b, Player.BLACK, Difficulty.COLLEGE)
        assert c.category is Category.EVALUATED

    def test_deterministic(self):
        b = _board([CENTER, Point(8, 8)], [Point(6, 6), Point(9, 7)])
        first = best_move(b, Player.BLACK, Difficulty.MASTER)
        second = best_move(b, Player.BLACK, Difficulty.MASTER)
        assert first == second

    def test_evaluated_move_is_legal(self):
        b = _board([CENTER, Point(8, 8)], [Point(6, 6), Point(9, 7)])
        c = best_move(b, Player.WHITE, Difficulty.COLLEGE)
        assert c.category is Category.EVALUATED
        assert b.is_empty(c.point)
        assert c.confidence == pytest.approx(0.6)

    def test_empty_board_plays_centre(self):
        c = best_move(Board(), Player.BLACK, Difficulty.MASTER)
        assert c.point == CENTER

    def test_elementary_random_pick(self):
        b = _board([CENTER], [Point(6, 6)])
        c = best_move(b, Player.BLACK, Difficulty.ELEMENTARY, _AlwaysRandom())
        assert c.category is Category.RANDOM
        assert c.point in generate_candidates(b)[:5]
        assert c.confidence == pytest.approx(0.3)


class TestEvaluatePosition:
    def test_does_not_mutate_board(self):
        b = _board([CENTER], [Point(6, 6)])
        before = b.signature()
        evaluate_position(b, Point(8, 8), Player.BLACK)
        assert b.signature() == before

    def test_centre_beats_edge(self):
        b = Board()
        assert evaluate_position(b, CENTER, Player.BLACK) > evaluate_position(
            b, Point(0, 7), Player.BLACK
        )

    def test_scaled_by_difficulty(self):
        b = _board([CENTER], [])
        master = evaluate_position(b, Point(8, 7), Player.BLACK, Difficulty.MASTER)
        elementary = evaluate_position(b, Point(8, 7), Player.BLACK, Difficulty.ELEMENTARY)
        assert elementary == pytest.approx(master * 0.5)


class TestHeuristicAgent:
    @pytest.mark.asyncio
    async def test_select_move_returns_legal_move(self):
        g = GomokuGameState()
        g.apply_move(CENTER)
        agent = HeuristicAgent(Difficulty.COLLEGE)
        c = await agent.select_move(g)
        assert g.board.is_empty(c.point)

    def test_name(self):
        assert HeuristicAgent(Difficulty.MASTER).name == "HeuristicAgent(master)"
