from __future__ import annotations

from typing import Any, Sequence

import httpx

from yieldfeed.config.settings import ProtocolHint
from yieldfeed.providers.base import Clock, normalize_symbol, now_ms
from yieldfeed.providers.errors import ProviderParseError
from yieldfeed.providers.http import build_url, get_json
from yieldfeed.schemas.price import PriceRow
from yieldfeed.schemas.yields import ProtocolRow
from yieldfeed.scoring.risk import coerce_amount, normalize_apy, risk_bucket


_PRICES_PATH = "/prices/current/{keys}"
_POOLS_PATH = "/pools"
_DEFAULT_ASSET = "USDC"


class DefiLlamaPriceProvider:
    """Prices from the DefiLlama coins API, keyed by ``chain:address`` coin ids."""

    name = "defillama"
    source = "live"

    def __init__(
        self,
        base_url: str,
        coin_ids: dict[str, str],
        client: httpx.AsyncClient | None = None,
        clock: Clock = now_ms,
    ) -> None:
        self._base_url = base_url
        self._coin_ids = {normalize_symbol(symbol): key for symbol, key in coin_ids.items()}
        self._client = client
        self._clock = clock

    async def fetch(self, symbols: Sequence[str]) -> list[PriceRow]:
        requested: dict[str, str] = {}
        for symbol in symbols:
            normalized = normalize_symbol(symbol)
            coin_key = self._coin_ids.get(normalized)
            if coin_key:
                requested.setdefault(coin_key, normalized)
        if not requested:
            return []

        url = build_url(self._base_url, _PRICES_PATH.format(keys=",".join(requested)))
        payload = await get_json(self.name, url, client=self._client)
        if not isinstance(payload, dict) or not isinstance(payload.get("coins"), dict):
            raise ProviderParseError(self.name, "expected an object with a 'coins' mapping")

        fetched_at = self._clock()
        rows: list[PriceRow] = []
        for coin_key, coin in payload["coins"].items():
            if not isinstance(coin, dict):
                continue
            price = coerce_amount(coin.get("price"))
            if price is None:
                continue
            symbol = requested.get(coin_key)
            if symbol is None:
                symbol = normalize_symbol(str(coin.get("symbol") or coin_key.split(":")[-1]))
            prefix = coin_key.split(":", 1)[0] if ":" in coin_key else None
            rows.append(
                PriceRow(
                    symbol=symbol,
                    price=price,
                    source=self.source,
                    timestamp=fetched_at,
                    chain=None if prefix in (None, "coingecko") else prefix,
                )
            )
        return rows


def _asset_candidates(candidates: list[dict[str, Any]], asset: str) -> list[dict[str, Any]]:
    target = asset.upper()
    exact = [
        pool
        for pool in candidates
        if str(pool.get("symbol") or "").upper().split("-")[0] == target
    ]
    if exact:
        return exact
    partial = [pool for pool in candidates if target in str(pool.get("symbol") or "").upper()]
    return partial or candidates


def _tvl(pool: dict[str, Any]) -> float:
    return coerce_amount(pool.get("tvlUsd")) or 0.0


def match_pools(
    pools: Sequence[Any], hints: Sequence[ProtocolHint], apy_ceiling: float
) -> list[ProtocolRow]:
    """Pick the highest-TVL pool per hint and turn it into a protocol row."""
    rows: list[ProtocolRow] = []
    seen: set[str] = set()
    for hint in hints:
        project_hint = hint.project_hint.lower()
        candidates = [
            pool
            for pool in pools
            if isinstance(pool, dict)
            and isinstance(pool.get("project"), str)
            and project_hint in pool["project"].lower()
            and isinstance(pool.get("chain"), str)
            and pool["chain"].lower() == hint.chain
        ]
        if not candidates:
            continue
        if hint.default_asset:
            candidates = _asset_candidates(candidates, hint.default_asset)
        top = max(candidates, key=_tvl)

        raw_apy = top.get("apy")
        if raw_apy is None:
            raw_apy = top.get("apyBase")
        apy = normalize_apy(raw_apy, apy_ceiling)
        tvl_usd = _tvl(top)
        symbol = str(top.get("symbol") or "").upper()
        asset = hint.default_asset or symbol.split("-")[0] or _DEFAULT_ASSET
        row_id = f"{hint.protocol.lower()}:{hint.chain}:{asset}"
        if row_id in seen:
            continue
        seen.add(row_id)
        rows.append(
            ProtocolRow(
                id=row_id,
                protocol=hint.protocol,
                chain=hint.chain,
                asset=asset,
                apy=apy,
                tvl_usd=tvl_usd,
                risk=risk_bucket(apy, tvl_usd),
                url=top.get("poolMeta") or top.get("url") or None,
            )
        )
    return rows


class DefiLlamaYieldProvider:
    """Yield pools from the DefiLlama yields API, matched against protocol hints."""

    name = "defillama-yields"

    def __init__(
        self,
        base_url: str,
        apy_ceiling: float,
        client: httpx.AsyncClient | None = None,
    ) -> None:
        self._base_url = base_url
        self._apy_ceiling = apy_ceiling
        self._client = client

    async def fetch(self, hints: Sequence[ProtocolHint]) -> list[ProtocolRow]:
        url = build_url(self._base_url, _POOLS_PATH)
        payload = await get_json(self.name, url, client=self._client)
        if not isinstance(payload, dict):
            raise ProviderParseError(self.name, "expected an object with a 'data' list")
        pools = payload.get("data")
        if pools is None:
            pools = []
        if not isinstance(pools, list):
            raise ProviderParseError(self.name, "'data' is not a list")
        return match_pools(pools, hints, self._apy_ceiling)
