from __future__ import annotations

import logging
from typing import Iterable, Sequence

import httpx

from yieldfeed.cache import InflightRegistry, is_expired, join
from yieldfeed.config.settings import Settings
from yieldfeed.providers.base import Clock, PriceProvider, normalize_symbol, now_ms
from yieldfeed.providers.selector import build_price_chain, fetch_with_fallback
from yieldfeed.schemas.price import Balance, CacheStatus, PriceRow

logger = logging.getLogger(__name__)


class PriceFeed:
    """Token prices served from a TTL cache in front of a provider fallback chain.

    Rows are keyed by ticker and, when the provider reports one, by
    ``TICKER-chain`` as well. Concurrent lookups for symbols that are
    already being fetched wait for the running refresh. A lookup for a
    chain caches its answer under ``TICKER-chain``: the row tagged with that
    chain, else an untagged row, else a zero-priced mock row.
    """

    def __init__(
        self,
        providers: Sequence[PriceProvider],
        ttl_seconds: float = 15.0,
        timeout_seconds: float = 6.0,
        clock: Clock = now_ms,
    ) -> None:
        if not providers:
            raise ValueError("PriceFeed needs at least one provider")
        self._providers = list(providers)
        self._ttl_seconds = ttl_seconds
        self._timeout_seconds = timeout_seconds
        self._clock = clock
        self._rows: dict[str, PriceRow] = {}
        self._last_fetch = 0
        self._generation = 0
        self._inflight: InflightRegistry[list[PriceRow]] = InflightRegistry()

    @classmethod
    def init(
        cls,
        settings: Settings,
        client: httpx.AsyncClient | None = None,
        clock: Clock = now_ms,
    ) -> PriceFeed:
        return cls(
            build_price_chain(settings, client=client, clock=clock),
            ttl_seconds=settings.prices.ttl_seconds,
            timeout_seconds=settings.prices.timeout_seconds,
            clock=clock,
        )

    @property
    def providers(self) -> list[str]:
        return [provider.name for provider in self._providers]

    @staticmethod
    def cache_key(symbol: str, chain: str | None = None) -> str:
        normalized = normalize_symbol(symbol)
        return f"{normalized}-{chain}" if chain else normalized

    def _fresh(self, key: str) -> PriceRow | None:
        row = self._rows.get(key)
        if row is None or is_expired(row.timestamp, self._clock(), self._ttl_seconds):
            return None
        return row

    def get_cached_price(self, symbol: str, chain: str | None = None) -> PriceRow | None:
        return self._fresh(self.cache_key(symbol, chain))

    async def get_price(self, symbol: str, chain: str | None = None) -> PriceRow:
        cached = self.get_cached_price(symbol, chain)
        if cached is not None:
            return cached

        normalized = normalize_symbol(symbol)
        generation = self._generation
        rows = [row for row in await self.refresh([normalized]) if row.symbol == normalized]
        if chain is None:
            if rows:
                return rows[0]
            return self._zero_row(normalized, None)

        # Untagged rows are chain-agnostic; rows from another chain never answer.
        matched = [row for row in rows if row.chain == chain] or [
            row for row in rows if row.chain is None
        ]
        row = matched[0] if matched else self._zero_row(normalized, chain)
        if generation == self._generation:
            self._rows[self.cache_key(normalized, chain)] = row
        return row

    def _zero_row(self, symbol: str, chain: str | None) -> PriceRow:
        return PriceRow(
            symbol=symbol,
            price=0.0,
            source="mock",
            timestamp=self._clock(),
            chain=chain,
        )

    async def get_prices(self, symbols: Iterable[str]) -> list[PriceRow]:
        ordered = list(dict.fromkeys(normalize_symbol(s) for s in symbols if s and s.strip()))
        found: dict[str, PriceRow] = {}
        misses: list[str] = []
        for symbol in ordered:
            cached = self._fresh(symbol)
            if cached is not None:
                found[symbol] = cached
            else:
                misses.append(symbol)

        if misses:
            wanted = set(misses)
            for row in await self.refresh(misses):
                if row.symbol in wanted:
                    found.setdefault(row.symbol, row)

        return [found[symbol] for symbol in ordered if symbol in found]

    async def refresh(self, symbols: Sequence[str]) -> list[PriceRow]:
        batch = list(dict.fromkeys(normalize_symbol(s) for s in symbols))
        tasks, uncovered = self._inflight.partition(batch)
        if uncovered:
            refresh = self._refresh_batch(uncovered, self._generation)
            tasks.append(self._inflight.start(uncovered, refresh))
        if not tasks:
            return []
        return [row for rows in await join(tasks) for row in rows]

    async def _refresh_batch(self, batch: list[str], generation: int) -> list[PriceRow]:
        result = await fetch_with_fallback(self._providers, batch, self._timeout_seconds)
        # A clear() while this batch was upstream discards its rows.
        if generation == self._generation:
            self._merge(result.rows)
        logger.info(
            "price refresh provider=%s count=%d symbols=%s",
            result.provider,
            len(result.rows),
            ",".join(batch),
        )
        return list(result.rows)

    def _merge(self, rows: Iterable[PriceRow]) -> None:
        for row in rows:
            self._rows[self.cache_key(row.symbol)] = row
            if row.chain:
                self._rows[self.cache_key(row.symbol, row.chain)] = row
        self._last_fetch = self._clock()

    def get_cache_status(self) -> CacheStatus:
        return CacheStatus(
            size=len(self._rows),
            last_fetch=self._last_fetch,
            ttl_seconds=self._ttl_seconds,
        )

    async def get_wallet_value(self, balances: Sequence[Balance]) -> float:
        prices = {
            row.symbol: row.price
            for row in await self.get_prices(balance.asset for balance in balances)
        }
        return sum(
            balance.amount * prices.get(normalize_symbol(balance.asset), 0.0)
            for balance in balances
        )

    def clear(self) -> None:
        self._rows.clear()
        self._last_fetch = 0
        self._generation += 1
        logger.info("price cache cleared")
