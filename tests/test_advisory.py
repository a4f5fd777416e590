"""Tests for the remote prompt builder and answer parser."""

import json

import pytest

from hybridgomoku.agent.difficulty import Difficulty
from hybridgomoku.agent.types import Candidate, Category
from hybridgomoku.errors import AdvisoryError, MalformedResponseError
from hybridgomoku.game.board import CENTER, GomokuGameState
from hybridgomoku.game.types import Player, Point
from hybridgomoku.remote.advisory import (
    build_messages,
    parse_advice,
    parse_completion,
    serialize_board,
    strip_fences,
)

LOCAL = Candidate(Point(8, 8), 420, Category.EVALUATED, "Evaluated score 420", 0.6)


def _completion(content):
    return {"id": "cmpl-1", "choices": [{"index": 0, "message": {"role": "assistant", "content": content}}]}


class TestPayload:
    def test_serialize_board(self):
        g = GomokuGameState()
        g.apply_move(CENTER)
        g.apply_move(Point(0, 0))
        lines = serialize_board(g.board).splitlines()
        assert lines[0].split() == list("ABCDEFGHIJKLMNO")
        assert lines[1].split()[:2] == ["1", "O"]
        assert lines[8].split()[8] == "X"
        assert len(lines) == 16

    def test_messages(self):
        g = GomokuGameState()
        for p in [CENTER, Point(6, 6), Point(8, 8)]:
            g.apply_move(p)
        messages = build_messages(g.board, g.moves, Player.WHITE, LOCAL, Difficulty.MASTER)
        assert [m["role"] for m in messages] == ["system", "user"]
        assert "VCF" in messages[0]["content"]
        user = messages[1]["content"]
        assert "Move 4" in user
        assert "Last move: (8,8)" in user
        assert "(8,8)" in user and "evaluated" in user

    def test_recent_moves_are_limited(self):
        g = GomokuGameState()
        for i in range(10):
            g.apply_move(Point(i, i % 2 + 3 * (i % 3)))
        user = build_messages(g.board, g.moves, Player.BLACK, LOCAL, Difficulty.COLLEGE)[1]["content"]
        recent = user.split("Recent moves: ")[1].splitlines()[0]
        assert recent.count("(") == 8


class TestParseAdvice:
    def test_plain_json(self):
        c = parse_advice('{"move": {"x": 7, "y": 8}, "confidence": 0.9, "reasoning": "blocks"}')
        assert c.point == Point(7, 8)
        assert c.category is Category.REMOTE
        assert c.confidence == pytest.approx(0.9)
        assert c.rationale == "blocks"

    def test_fenced_json(self):
        text = '```json\n{"move": {"x": 3, "y": 4}}\n```'
        assert strip_fences(text) == '{"move": {"x": 3, "y": 4}}'
        c = parse_advice(text)
        assert c.point == Point(3, 4)
        assert c.confidence == pytest.approx(0.7)

    def test_prose_around_json(self):
        c = parse_advice('Sure! Here is my move: {"move": {"x": 5, "y": 6}} Good luck.')
        assert c.point == Point(5, 6)

    def test_alternatives(self):
        c = parse_advice('{"move": {"x": 5, "y": 6}, "alternatives": [{"x": 6, "y": 6}]}')
        assert c.alternatives == (Point(6, 6),)

    def test_confidence_clamped(self):
        c = parse_advice('{"move": {"x": 5, "y": 6}, "confidence": 3}')
        assert c.confidence == 1.0

    @pytest.mark.parametrize(
        "text",
        [
            "H8",
            "{not json}",
            '{"x": 7, "y": 7}',
            '{"move": {"x": "7", "y": 7}}',
            '{"move": {"x": 7.5, "y": 7}}',
            '{"move": {"x": 7}}',
        ],
    )
    def test_malformed(self, text):
        with pytest.raises(MalformedResponseError):
            parse_advice(text)

    def test_malformed_is_advisory_error(self):
        with pytest.raises(AdvisoryError):
            parse_advice("no move here")


class TestParseCompletion:
    def test_extracts_first_choice(self):
        content = json.dumps({"move": {"x": 9, "y": 7}, "reasoning": "extends"})
        c = parse_completion(_completion(content))
        assert c.point == Point(9, 7)

    def test_no_choices(self):
        with pytest.raises(MalformedResponseError):
            parse_completion({"choices": []})

    def test_not_a_completion(self):
        with pytest.raises(MalformedResponseError):
            parse_completion({"error": "rate limited"})

    def test_empty_content(self):
        with pytest.raises(MalformedResponseError):
            parse_completion(_completion(""))
