from __future__ import annotations

import time
from typing import Callable, Protocol, Sequence

from yieldfeed.config.settings import ProtocolHint
from yieldfeed.schemas.price import PriceRow, PriceSource
from yieldfeed.schemas.yields import ProtocolRow


Clock = Callable[[], int]


def now_ms() -> int:
    return int(time.time() * 1000)


def normalize_symbol(symbol: str) -> str:
    return symbol.strip().upper()


class PriceProvider(Protocol):
    name: str
    source: PriceSource

    async def fetch(self, symbols: Sequence[str]) -> list[PriceRow]: ...


class YieldProvider(Protocol):
    name: str

    async def fetch(self, hints: Sequence[ProtocolHint]) -> list[ProtocolRow]: ...
