from __future__ import annotations

from typing import Sequence

from yieldfeed.providers.base import Clock, normalize_symbol, now_ms
from yieldfeed.schemas.price import PriceRow


class MockPriceProvider:
    """Static price table. Never fails; unknown symbols price at 0."""

    name = "mock"
    source = "mock"

    def __init__(self, prices: dict[str, float], clock: Clock = now_ms) -> None:
        self._prices = {normalize_symbol(symbol): float(price) for symbol, price in prices.items()}
        self._clock = clock

    def price_for(self, symbol: str) -> float:
        return self._prices.get(normalize_symbol(symbol), 0.0)

    async def fetch(self, symbols: Sequence[str]) -> list[PriceRow]:
        fetched_at = self._clock()
        return [
            PriceRow(
                symbol=normalize_symbol(symbol),
                price=self.price_for(symbol),
                source=self.source,
                timestamp=fetched_at,
            )
            for symbol in symbols
        ]
