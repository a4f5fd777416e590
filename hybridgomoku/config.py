"""Environment-driven settings for the engine and the play app."""

from __future__ import annotations

import os
from dataclasses import dataclass, field
from typing import Optional

from hybridgomoku.agent.difficulty import Difficulty

# Remote advisory providers: (id, display name, base URL, model, API-key variable)
PROVIDER_DEFAULTS: list[tuple[str, str, str, str, str]] = [
    ("kimi", "Kimi AI", "https://api.kimi.com/coding", "kimi-for-coding", "KIMI_API_KEY"),
    ("nyxar", "Nyxar AI", "https://api.nyxar.org", "gpt-4o-mini", "NYXAR_API_KEY"),
    (
        "siliconflow",
        "SiliconFlow AI",
        "https://api.siliconflow.cn",
        "deepseek-ai/DeepSeek-V3",
        "SILICONFLOW_API_KEY",
    ),
]

PROVIDER_TTL = 5 * 60.0   # seconds a latency sweep stays valid
PROBE_TIMEOUT = 5.0       # seconds per latency probe
REQUEST_TIMEOUT = 30.0    # hard ceiling for one completion request
MAX_TOKENS = 1000


def _env_bool(name: str, default: bool) -> bool:
    raw = os.getenv(name)
    if raw is None:
        return default
    return raw.strip().lower() in ("1", "true", "yes", "on")


@dataclass(frozen=True)
class Settings:
    provider_override: Optional[str] = None
    api_keys: dict[str, str] = field(default_factory=dict)
    difficulty: Difficulty = Difficulty.COLLEGE
    pacing: bool = True
    log_level: str = "INFO"

    @classmethod
    def from_env(cls) -> Settings:
        override = os.getenv("HYBRIDGOMOKU_PROVIDER", "").strip() or None
        if override == "auto":
            override = None
        keys = {
            pid: os.getenv(var, "")
            for pid, _, _, _, var in PROVIDER_DEFAULTS
        }
        try:
            difficulty = Difficulty(os.getenv("HYBRIDGOMOKU_DIFFICULTY", "college").lower())
        except ValueError:
            difficulty = Difficulty.COLLEGE
        return cls(
            provider_override=override,
            api_keys=keys,
            difficulty=difficulty,
            pacing=_env_bool("HYBRIDGOMOKU_PACING", True),
            log_level=os.getenv("HYBRIDGOMOKU_LOG_LEVEL", "INFO").upper(),
        )

    @property
    def has_remote(self) -> bool:
        return any(self.api_keys.values())
