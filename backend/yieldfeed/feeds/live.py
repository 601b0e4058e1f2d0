from __future__ import annotations

import logging
from typing import Literal, Sequence

import httpx

from yieldfeed.cache import InflightRegistry, join
from yieldfeed.config.settings import ProtocolHint, Settings
from yieldfeed.providers.base import Clock, YieldProvider, now_ms
from yieldfeed.providers.selector import build_yield_chain, fetch_with_fallback
from yieldfeed.schemas.yields import LiveBundle, ProtocolRow

logger = logging.getLogger(__name__)

CacheState = Literal["empty", "fresh", "stale", "refreshing"]

_BUNDLE_KEY = "bundle"


class LiveYieldCache:
    """Snapshot of matched protocol yields, refreshed at most once per TTL."""

    def __init__(
        self,
        providers: Sequence[YieldProvider],
        hints: Sequence[ProtocolHint],
        ttl_seconds: float = 60.0,
        timeout_seconds: float = 6.0,
        clock: Clock = now_ms,
    ) -> None:
        self._providers = list(providers)
        self._hints = tuple(hints)
        self._ttl_seconds = ttl_seconds
        self._timeout_seconds = timeout_seconds
        self._clock = clock
        self._bundle: LiveBundle | None = None
        self._generation = 0
        self._inflight: InflightRegistry[LiveBundle] = InflightRegistry()

    @classmethod
    def init(
        cls,
        settings: Settings,
        client: httpx.AsyncClient | None = None,
        clock: Clock = now_ms,
    ) -> LiveYieldCache:
        return cls(
            build_yield_chain(settings, client=client),
            settings.yields.protocol_hints,
            ttl_seconds=settings.yields.ttl_seconds,
            timeout_seconds=settings.yields.timeout_seconds,
            clock=clock,
        )

    @property
    def is_live(self) -> bool:
        return bool(self._providers)

    def _is_fresh(self, bundle: LiveBundle) -> bool:
        return self._clock() - bundle.updated_at < self._ttl_seconds * 1000

    @property
    def state(self) -> CacheState:
        if _BUNDLE_KEY in self._inflight:
            return "refreshing"
        if self._bundle is None:
            return "empty"
        return "fresh" if self._is_fresh(self._bundle) else "stale"

    def cached_bundle(self) -> LiveBundle | None:
        return self._bundle

    async def get_live_bundle(self) -> LiveBundle:
        bundle = self._bundle
        if bundle is not None and self._is_fresh(bundle):
            return bundle
        if not self._providers:
            return LiveBundle(updated_at=self._clock())

        task = self._inflight.get(_BUNDLE_KEY)
        if task is None:
            task = self._inflight.start([_BUNDLE_KEY], self._refresh(self._generation))
        (result,) = await join([task])
        return result

    async def _refresh(self, generation: int) -> LiveBundle:
        result = await fetch_with_fallback(self._providers, self._hints, self._timeout_seconds)
        if result.ok:
            bundle = LiveBundle(updated_at=self._clock(), protocols=tuple(result.rows))
            if generation == self._generation:
                self._bundle = bundle
            logger.info(
                "yield refresh provider=%s count=%d hints=%d",
                result.provider,
                len(bundle.protocols),
                len(self._hints),
            )
            return bundle
        if self._bundle is not None:
            logger.warning("yield refresh failed, serving snapshot from %s", self._bundle.updated_at)
            return self._bundle
        return LiveBundle(updated_at=self._clock())

    def status(self) -> dict[str, object]:
        bundle = self._bundle
        return {
            "state": self.state,
            "updatedAt": bundle.updated_at if bundle else 0,
            "size": len(bundle.protocols) if bundle else 0,
            "ttlSeconds": self._ttl_seconds,
        }

    def clear(self) -> None:
        self._bundle = None
        self._generation += 1
        logger.info("yield cache cleared")


def filter_protocols(
    rows: Sequence[ProtocolRow],
    chain: str | None = None,
    asset: str | None = None,
    protocols: str | None = None,
) -> list[ProtocolRow]:
    selected = list(rows)
    if chain:
        selected = [row for row in selected if row.chain == chain]
    if asset:
        wanted = asset.strip().upper()
        selected = [row for row in selected if row.asset.upper() == wanted]
    needles = [name.strip().lower() for name in (protocols or "").split(",") if name.strip()]
    if needles:
        selected = [
            row
            for row in selected
            if any(needle in row.protocol.lower() for needle in needles)
        ]
    return selected
