"""Latency-ranked registry of remote advisory providers.

Each provider speaks the OpenAI chat-completions dialect. The selector probes
every enabled provider, keeps the fastest as current for PROVIDER_TTL seconds,
and fails over once to the next-fastest provider when a call fails.
"""

from __future__ import annotations

import asyncio
import logging
import math
import time
from dataclasses import dataclass, field
from typing import Any, Callable, Iterable, Optional

import aiohttp

from hybridgomoku.config import (
    MAX_TOKENS,
    PROBE_TIMEOUT,
    PROVIDER_DEFAULTS,
    PROVIDER_TTL,
    REQUEST_TIMEOUT,
    Settings,
)
from hybridgomoku.errors import NoProviderAvailableError, ProviderError

logger = logging.getLogger(__name__)


def bearer_headers(provider: ProviderDescriptor) -> dict[str, str]:
    return {
        "Authorization": f"Bearer {provider.api_key}",
        "Content-Type": "application/json",
    }


@dataclass
class ProviderDescriptor:
    id: str
    name: str
    base_url: str
    model: str
    api_key: str = ""
    enabled: bool = True
    headers: Callable[[ProviderDescriptor], dict[str, str]] = bearer_headers
    latency: Optional[float] = None  # ms; inf after a failed probe or call
    last_checked: Optional[float] = field(default=None, compare=False)

    @property
    def available(self) -> bool:
        return self.enabled and bool(self.api_key)

    @property
    def reachable(self) -> bool:
        return self.latency is None or math.isfinite(self.latency)


def build_providers(settings: Settings) -> list[ProviderDescriptor]:
    """Default registry; providers without an API key are disabled."""
    return [
        ProviderDescriptor(
            id=pid,
            name=name,
            base_url=url,
            model=model,
            api_key=settings.api_keys.get(pid, ""),
        )
        for pid, name, url, model, _ in PROVIDER_DEFAULTS
    ]


class ProviderSelector:
    """Owns the provider table and the HTTP session used to reach it."""

    def __init__(
        self,
        providers: Iterable[ProviderDescriptor],
        override_id: Optional[str] = None,
        ttl: float = PROVIDER_TTL,
        probe_timeout: float = PROBE_TIMEOUT,
        request_timeout: float = REQUEST_TIMEOUT,
        session: Optional[aiohttp.ClientSession] = None,
        clock: Callable[[], float] = time.monotonic,
    ) -> None:
        self.providers = list(providers)
        self.override_id = override_id
        self.ttl = ttl
        self.probe_timeout = probe_timeout
        self.request_timeout = request_timeout
        self._clock = clock
        self._session = session
        self._owns_session = session is None
        self._current: Optional[ProviderDescriptor] = None
        self._last_refresh: Optional[float] = None
        self._refresh_lock = asyncio.Lock()

    async def __aenter__(self) -> ProviderSelector:
        return self

    async def __aexit__(self, *exc_info: Any) -> None:
        await self.close()

    @property
    def current(self) -> Optional[ProviderDescriptor]:
        return self._current

    def enabled(self) -> list[ProviderDescriptor]:
        return [p for p in self.providers if p.available]

    def get(self, provider_id: str) -> Optional[ProviderDescriptor]:
        return next((p for p in self.providers if p.id == provider_id), None)

    def select(self, provider_id: str) -> bool:
        """Manually switch the current provider. Returns False if unavailable."""
        provider = self.get(provider_id)
        if provider is None or not provider.available:
            return False
        self._current = provider
        self._last_refresh = self._clock()
        logger.info("Switched provider to %s", provider.name)
        return True

    async def _get_session(self) -> aiohttp.ClientSession:
        if self._session is None or self._session.closed:
            self._session = aiohttp.ClientSession()
            self._owns_session = True
        return self._session

    async def close(self) -> None:
        if self._owns_session and self._session is not None and not self._session.closed:
            await self._session.close()
        self._session = None

    # ------------------------------------------------------------------
    # Latency probing
    # ------------------------------------------------------------------

    async def probe(self, provider: ProviderDescriptor) -> float:
        """Round-trip time in ms for a lightweight GET; inf on any failure."""
        session = await self._get_session()
        start = self._clock()
        try:
            async with session.get(
                f"{provider.base_url}/v1/models",
                headers=provider.headers(provider),
                timeout=aiohttp.ClientTimeout(total=self.probe_timeout),
            ) as resp:
                if not 200 <= resp.status < 300:
                    logger.warning("%s probe failed: HTTP %d", provider.name, resp.status)
                    return math.inf
        except (aiohttp.ClientError, asyncio.TimeoutError) as e:
            logger.warning("%s probe failed: %s", provider.name, str(e) or type(e).__name__)
            return math.inf
        latency = (self._clock() - start) * 1000
        logger.info("%s latency: %.0fms", provider.name, latency)
        return latency

    def _is_fresh(self) -> bool:
        return (
            self._current is not None
            and self._last_refresh is not None
            and self._clock() - self._last_refresh < self.ttl
        )

    def _choose(self, candidates: list[ProviderDescriptor]) -> Optional[ProviderDescriptor]:
        if self.override_id:
            preferred = next((p for p in candidates if p.id == self.override_id), None)
            if preferred is not None:
                return preferred
        reachable = [p for p in candidates if p.latency is not None and math.isfinite(p.latency)]
        if not reachable:
            return None
        return min(reachable, key=lambda p: p.latency)

    async def refresh(self, force: bool = False) -> Optional[ProviderDescriptor]:
        """Probe all enabled providers concurrently and pick the current one.

        Only one sweep runs at a time; callers arriving mid-sweep reuse its result.
        """
        async with self._refresh_lock:
            if not force and self._is_fresh():
                return self._current
            enabled = self.enabled()
            if not enabled:
                logger.warning("No AI providers are configured")
                self._current = None
                return None
            latencies = await asyncio.gather(*(self.probe(p) for p in enabled))
            now = self._clock()
            for provider, latency in zip(enabled, latencies):
                provider.latency = latency
                provider.last_checked = now
            self._current = self._choose(enabled)
            if self._current is None:
                logger.warning("No AI provider is reachable")
            else:
                self._last_refresh = now
                logger.info("Selected provider %s", self._current.name)
            return self._current

    def _next_best(self, exclude: ProviderDescriptor) -> Optional[ProviderDescriptor]:
        others = [p for p in self.enabled() if p.id != exclude.id and p.reachable]
        if not others:
            return None
        return min(others, key=lambda p: math.inf if p.latency is None else p.latency)

    # ------------------------------------------------------------------
    # Completion calls
    # ------------------------------------------------------------------

    async def _post(
        self,
        provider: ProviderDescriptor,
        messages: list[dict[str, str]],
        temperature: float,
        max_tokens: int,
    ) -> dict:
        session = await self._get_session()
        body = {
            "model": provider.model,
            "messages": messages,
            "temperature": temperature,
            "max_tokens": max_tokens,
        }
        try:
            async with session.post(
                f"{provider.base_url}/v1/chat/completions",
                json=body,
                headers=provider.headers(provider),
                timeout=aiohttp.ClientTimeout(total=self.request_timeout),
            ) as resp:
                if not 200 <= resp.status < 300:
                    detail = await resp.text()
                    raise ProviderError(
                        f"{provider.name} returned HTTP {resp.status}",
                        provider_id=provider.id,
                        status=resp.status,
                        context={"body": detail[:200]},
                    )
                return await resp.json(content_type=None)
        except (aiohttp.ClientError, asyncio.TimeoutError, ValueError) as e:
            raise ProviderError(
                f"{provider.name} request failed: {str(e) or type(e).__name__}",
                provider_id=provider.id,
            ) from e

    async def call(
        self,
        messages: list[dict[str, str]],
        *,
        temperature: float = 0.7,
        max_tokens: int = MAX_TOKENS,
        provider: Optional[ProviderDescriptor] = None,
    ) -> dict:
        """Send a chat completion, failing over once to the next-fastest provider."""
        if provider is None:
            provider = self._current if self._is_fresh() else await self.refresh()
        if provider is None:
            raise NoProviderAvailableError("no AI provider is reachable")

        try:
            return await self._post(provider, messages, temperature, max_tokens)
        except ProviderError as e:
            logger.warning("%s", e)
            provider.latency = math.inf
            fallback = self._next_best(exclude=provider)
            if fallback is None:
                raise
            logger.info("Failing over from %s to %s", provider.name, fallback.name)
            self._current = fallback

        try:
            return await self._post(fallback, messages, temperature, max_tokens)
        except ProviderError:
            fallback.latency = math.inf
            raise

    def stats(self) -> dict:
        return {
            "current": self._current.id if self._current else None,
            "latencies": {p.id: p.latency for p in self.providers},
        }
