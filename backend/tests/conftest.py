from __future__ import annotations

import asyncio
from typing import Sequence

import pytest

from yieldfeed.config.settings import ProtocolHint
from yieldfeed.providers.errors import ProviderError, ProviderHTTPError
from yieldfeed.schemas.price import PriceRow
from yieldfeed.schemas.yields import ProtocolRow


class FakeClock:
    def __init__(self, start: int = 1_700_000_000_000) -> None:
        self.now = start

    def __call__(self) -> int:
        return self.now

    def advance(self, seconds: float) -> None:
        self.now += int(seconds * 1000)


class FakePriceProvider:
    """Records every batch it is asked for and answers after a short delay."""

    def __init__(
        self,
        clock: FakeClock,
        prices: dict[str, float],
        name: str = "fake",
        source: str = "live",
        error: ProviderError | None = None,
        delay: float = 0.01,
        chain: str | None = None,
    ) -> None:
        self.name = name
        self.source = source
        self._clock = clock
        self._prices = prices
        self._error = error
        self._delay = delay
        self._chain = chain
        self.calls: list[list[str]] = []

    async def fetch(self, symbols: Sequence[str]) -> list[PriceRow]:
        self.calls.append(list(symbols))
        await asyncio.sleep(self._delay)
        if self._error is not None:
            raise self._error
        return [
            PriceRow(
                symbol=symbol,
                price=self._prices[symbol],
                source=self.source,
                timestamp=self._clock(),
                chain=self._chain,
            )
            for symbol in symbols
            if symbol in self._prices
        ]


@pytest.fixture
def clock() -> FakeClock:
    return FakeClock()


HINTS = [ProtocolHint(protocol="Kamino", chain="solana", project_hint="kamino")]

ROWS = [
    ProtocolRow(id="kamino:solana:USDC", protocol="Kamino", chain="solana", asset="USDC",
                apy=5.0, tvl_usd=600_000_000, risk="low"),
    ProtocolRow(id="jupiter lend:solana:SOL", protocol="Jupiter Lend", chain="solana", asset="SOL",
                apy=9.0, tvl_usd=150_000_000, risk="medium"),
    ProtocolRow(id="helix:injective:INJ", protocol="Helix", chain="injective", asset="INJ",
                apy=20.0, tvl_usd=5_000_000, risk="high"),
]


class FakeYieldProvider:
    name = "fake-yields"

    def __init__(self, rows=None, fail: bool = False) -> None:
        self.rows = list(rows or ROWS)
        self.fail = fail
        self.calls = 0

    async def fetch(self, hints: Sequence[ProtocolHint]) -> list[ProtocolRow]:
        self.calls += 1
        await asyncio.sleep(0.01)
        if self.fail:
            raise ProviderHTTPError(self.name, "HTTP 500", 500)
        return list(self.rows)
