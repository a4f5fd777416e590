"""Prompt payloads for advisory services and parsing of their answers."""

from __future__ import annotations

import json
import re
from typing import Any, Optional, Sequence

from pydantic import BaseModel, ConfigDict, Field, StrictInt, ValidationError

from hybridgomoku.agent.difficulty import Difficulty
from hybridgomoku.agent.types import Candidate, Category
from hybridgomoku.errors import MalformedResponseError
from hybridgomoku.game.board import BOARD_SIZE, COL_LABELS, Board, Move
from hybridgomoku.game.types import Player, Point

RECENT_MOVES = 8
DEFAULT_CONFIDENCE = 0.7

_FENCE = re.compile(r"```(?:json)?\s*", re.IGNORECASE)

_RULES = """You are a five-in-a-row (Gomoku) opponent on a 15x15 board.
Five or more stones in a row (horizontal, vertical or diagonal) wins.
Coordinates are 0-indexed: x is the column (A=0 ... O=14), y is the row (1=0 ... 15=14).
Priorities: win now, block the opponent's five, make or stop open fours,
then build threes and keep stones connected near the centre.

Answer with JSON only:
{"move": {"x": 7, "y": 7}, "confidence": 0.8, "reasoning": "...",
 "alternatives": [{"x": 6, "y": 8}]}
"""

_STYLE = {
    Difficulty.ELEMENTARY: "Play like a beginner: look one move ahead and sometimes miss threats.",
    Difficulty.COLLEGE: "Play like a solid club player: read 3-5 moves ahead and balance attack and defence.",
    Difficulty.MASTER: "Play like a master: read forcing sequences (VCF/VCT) and build double threats.",
}


# ---------------------------------------------------------------------------
# Response schema
# ---------------------------------------------------------------------------

class MovePayload(BaseModel):
    x: StrictInt
    y: StrictInt


class AdvicePayload(BaseModel):
    model_config = ConfigDict(extra="ignore")

    move: MovePayload
    confidence: Optional[float] = None
    reasoning: Optional[str] = None
    alternatives: list[MovePayload] = Field(default_factory=list)


class _CompletionMessage(BaseModel):
    content: Optional[str] = None


class _CompletionChoice(BaseModel):
    message: _CompletionMessage


class ChatCompletion(BaseModel):
    model_config = ConfigDict(extra="ignore")

    choices: list[_CompletionChoice] = Field(min_length=1)


# ---------------------------------------------------------------------------
# Payload builder
# ---------------------------------------------------------------------------

def serialize_board(board: Board) -> str:
    """ASCII diagram: X black, O white, + empty; row 1 on top."""
    lines = ["    " + " ".join(COL_LABELS[:BOARD_SIZE])]
    for y in range(BOARD_SIZE):
        cells = []
        for x in range(BOARD_SIZE):
            stone = board.get(Point(x, y))
            cells.append("X" if stone is Player.BLACK else "O" if stone is Player.WHITE else "+")
        lines.append(f"{y + 1:>3} " + " ".join(cells))
    return "\n".join(lines)


def system_prompt(difficulty: Difficulty) -> str:
    return f"{_RULES}\n{_STYLE[difficulty]}"


def user_prompt(
    board: Board,
    history: Sequence[Move],
    player: Player,
    local: Candidate,
) -> str:
    recent = ", ".join(
        f"({m.point.x},{m.point.y})-{m.player}" for m in history[-RECENT_MOVES:]
    ) or "none"
    last = f"({history[-1].point.x},{history[-1].point.y})" if history else "none"
    stone = "X" if player is Player.BLACK else "O"
    return (
        f"Move {len(history) + 1}. You play {player} ({stone}).\n"
        f"Recent moves: {recent}\n"
        f"Last move: {last}\n\n"
        f"{serialize_board(board)}\n\n"
        f"Local engine suggests ({local.x},{local.y}) "
        f"[{local.category.value}, score {local.score:.0f}]: {local.rationale}\n"
        "Check the suggestion, look for something stronger, and answer in JSON."
    )


def build_messages(
    board: Board,
    history: Sequence[Move],
    player: Player,
    local: Candidate,
    difficulty: Difficulty,
) -> list[dict[str, str]]:
    return [
        {"role": "system", "content": system_prompt(difficulty)},
        {"role": "user", "content": user_prompt(board, history, player, local)},
    ]


# ---------------------------------------------------------------------------
# Response parsing
# ---------------------------------------------------------------------------

def extract_content(payload: Any) -> str:
    """Pull the assistant text out of a chat-completion response."""
    try:
        completion = ChatCompletion.model_validate(payload)
    except ValidationError as e:
        raise MalformedResponseError(
            "not a chat completion", raw=str(payload)[:200]
        ) from e
    content = completion.choices[0].message.content
    if not content:
        raise MalformedResponseError("empty completion")
    return content


def strip_fences(text: str) -> str:
    return _FENCE.sub("", text).strip()


def _load_json(text: str) -> Any:
    try:
        return json.loads(text)
    except json.JSONDecodeError:
        pass
    # Tolerate prose around a single JSON object
    start, end = text.find("{"), text.rfind("}")
    if start == -1 or end <= start:
        raise MalformedResponseError("no JSON object in response", raw=text[:200])
    try:
        return json.loads(text[start:end + 1])
    except json.JSONDecodeError as e:
        raise MalformedResponseError("invalid JSON in response", raw=text[:200]) from e


def parse_advice(text: str) -> Candidate:
    """Turn the service's text answer into a remote Candidate."""
    cleaned = strip_fences(text)
    data = _load_json(cleaned)
    try:
        advice = AdvicePayload.model_validate(data)
    except ValidationError as e:
        raise MalformedResponseError("response has no numeric move", raw=cleaned[:200]) from e

    confidence = DEFAULT_CONFIDENCE if advice.confidence is None else advice.confidence
    return Candidate(
        point=Point(advice.move.x, advice.move.y),
        score=0,
        category=Category.REMOTE,
        rationale=advice.reasoning or "Remote advice",
        confidence=min(1.0, max(0.0, confidence)),
        alternatives=tuple(Point(a.x, a.y) for a in advice.alternatives),
    )


def parse_completion(payload: Any) -> Candidate:
    return parse_advice(extract_content(payload))
