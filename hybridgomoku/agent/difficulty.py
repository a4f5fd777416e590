"""Per-tier behaviour tables for the engine."""

from __future__ import annotations

import enum
from dataclasses import dataclass


class Difficulty(str, enum.Enum):
    ELEMENTARY = "elementary"
    COLLEGE = "college"
    MASTER = "master"

    def __str__(self) -> str:
        return self.value.capitalize()


@dataclass(frozen=True)
class DifficultyProfile:
    level: Difficulty
    use_remote: bool             # attempt remote advice at all
    remote_weight: float         # chance of taking a disagreeing remote move
    temperature: float           # sampling temperature sent to providers
    thinking_time: tuple[float, float]  # pacing delay range, seconds
    urgency_threshold: float     # local score that short-circuits remote advice
    score_scale: float           # damping applied to evaluated scores
    random_move_rate: float      # chance of a deliberate random pick
    allow_blocked_four: bool     # look for own four-with-one-open-end
    seek_double_threat: bool     # look for double three/four forks


PROFILES: dict[Difficulty, DifficultyProfile] = {
    Difficulty.ELEMENTARY: DifficultyProfile(
        level=Difficulty.ELEMENTARY,
        use_remote=False,
        remote_weight=0.0,
        temperature=1.0,
        thinking_time=(0.5, 1.5),
        urgency_threshold=10_000,
        score_scale=0.5,
        random_move_rate=0.3,
        allow_blocked_four=False,
        seek_double_threat=False,
    ),
    Difficulty.COLLEGE: DifficultyProfile(
        level=Difficulty.COLLEGE,
        use_remote=True,
        remote_weight=0.3,
        temperature=0.8,
        thinking_time=(1.0, 2.5),
        urgency_threshold=10_000,
        score_scale=0.8,
        random_move_rate=0.0,
        allow_blocked_four=True,
        seek_double_threat=False,
    ),
    Difficulty.MASTER: DifficultyProfile(
        level=Difficulty.MASTER,
        use_remote=True,
        remote_weight=0.4,
        temperature=0.5,
        thinking_time=(2.0, 4.0),
        urgency_threshold=10_000,
        score_scale=1.0,
        random_move_rate=0.0,
        allow_blocked_four=True,
        seek_double_threat=True,
    ),
}

_missing = set(Difficulty) - set(PROFILES)
if _missing:
    raise RuntimeError(f"no DifficultyProfile for {sorted(d.value for d in _missing)}")


def get_profile(difficulty: Difficulty | str) -> DifficultyProfile:
    """Look up the profile for a tier; accepts the enum or its string value."""
    return PROFILES[Difficulty(difficulty)]
