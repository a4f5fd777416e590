"""Exception hierarchy for the hybrid move engine.

Everything raised on the remote-advice path derives from AdvisoryError, so the
orchestrator can fall back to the local evaluator with a single except clause.
InvalidBoardError is the only condition the engine treats as fatal.

Usage:
    from hybridgomoku.errors import AdvisoryError

    try:
        advice = await consult(board)
    except AdvisoryError as e:
        logger.warning("remote advice unavailable: %s (%s)", e.message, e.code)
"""

from __future__ import annotations

from typing import Any, Optional

__all__ = [
    "AdvisoryError",
    "HintUnavailableError",
    "HybridGomokuError",
    "InvalidBoardError",
    "MalformedResponseError",
    "NoProviderAvailableError",
    "ProviderError",
]


class HybridGomokuError(Exception):
    """Base exception for all engine errors.

    Attributes:
        code: Machine-readable error code for categorization
        message: Human-readable error description
        context: Additional context for debugging
    """

    code: str = "HYBRIDGOMOKU_ERROR"

    def __init__(
        self,
        message: str = "",
        *,
        code: Optional[str] = None,
        context: Optional[dict[str, Any]] = None,
    ) -> None:
        super().__init__(message)
        self.message = message
        if code is not None:
            self.code = code
        self.context = context or {}

    def __str__(self) -> str:
        if self.context:
            details = ", ".join(f"{k}={v!r}" for k, v in self.context.items())
            return f"[{self.code}] {self.message} ({details})"
        return f"[{self.code}] {self.message}"


class InvalidBoardError(HybridGomokuError):
    """Board input has the wrong shape or contains unknown cell symbols."""

    code = "INVALID_BOARD"


class HintUnavailableError(HybridGomokuError):
    """A hint was requested without enough energy or during its cooldown."""

    code = "HINT_UNAVAILABLE"


class AdvisoryError(HybridGomokuError):
    """Base for failures while consulting a remote move-advisory service."""

    code = "ADVISORY_ERROR"


class MalformedResponseError(AdvisoryError):
    """The service answered, but the payload does not describe a move."""

    code = "MALFORMED_RESPONSE"

    def __init__(self, message: str = "", *, raw: str = "", **kwargs: Any) -> None:
        super().__init__(message, **kwargs)
        self.raw = raw


class ProviderError(AdvisoryError):
    """Transport or HTTP failure talking to an advisory provider."""

    code = "PROVIDER_ERROR"

    def __init__(
        self,
        message: str = "",
        *,
        provider_id: Optional[str] = None,
        status: Optional[int] = None,
        **kwargs: Any,
    ) -> None:
        super().__init__(message, **kwargs)
        self.provider_id = provider_id
        self.status = status
        if provider_id is not None:
            self.context.setdefault("provider", provider_id)
        if status is not None:
            self.context.setdefault("status", status)


class NoProviderAvailableError(ProviderError):
    """No enabled provider is reachable."""

    code = "NO_PROVIDER"
