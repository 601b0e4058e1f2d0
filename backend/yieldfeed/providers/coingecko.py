from __future__ import annotations

from typing import Sequence

import httpx

from yieldfeed.providers.base import Clock, normalize_symbol, now_ms
from yieldfeed.providers.errors import ProviderParseError
from yieldfeed.providers.http import build_url, get_json
from yieldfeed.schemas.price import PriceRow


_SIMPLE_PRICE_PATH = "/simple/price"


class CoinGeckoPriceProvider:
    name = "coingecko"
    source = "fallback"

    def __init__(
        self,
        base_url: str,
        coin_ids: dict[str, str],
        client: httpx.AsyncClient | None = None,
        clock: Clock = now_ms,
    ) -> None:
        self._base_url = base_url
        self._coin_ids = {normalize_symbol(symbol): coin_id for symbol, coin_id in coin_ids.items()}
        self._client = client
        self._clock = clock

    async def fetch(self, symbols: Sequence[str]) -> list[PriceRow]:
        # Several tickers can share one id (ETH / WETH).
        requested: dict[str, list[str]] = {}
        for symbol in symbols:
            normalized = normalize_symbol(symbol)
            coin_id = self._coin_ids.get(normalized)
            if coin_id and normalized not in requested.get(coin_id, []):
                requested.setdefault(coin_id, []).append(normalized)
        if not requested:
            return []

        url = build_url(self._base_url, _SIMPLE_PRICE_PATH)
        params = {"ids": ",".join(requested), "vs_currencies": "usd"}
        payload = await get_json(self.name, url, params=params, client=self._client)
        if not isinstance(payload, dict):
            raise ProviderParseError(self.name, "expected an object keyed by coin id")

        fetched_at = self._clock()
        rows: list[PriceRow] = []
        for coin_id, quote in payload.items():
            if not isinstance(quote, dict):
                continue
            usd = quote.get("usd")
            if isinstance(usd, bool) or not isinstance(usd, (int, float)) or usd <= 0:
                continue
            for symbol in requested.get(coin_id, []):
                rows.append(
                    PriceRow(
                        symbol=symbol,
                        price=float(usd),
                        source=self.source,
                        timestamp=fetched_at,
                    )
                )
        return rows
