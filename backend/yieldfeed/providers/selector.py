from __future__ import annotations

import asyncio
import logging
from typing import Any, Sequence

import httpx

from yieldfeed.config.settings import Settings
from yieldfeed.providers.base import Clock, PriceProvider, YieldProvider, now_ms
from yieldfeed.providers.coingecko import CoinGeckoPriceProvider
from yieldfeed.providers.defillama import DefiLlamaPriceProvider, DefiLlamaYieldProvider
from yieldfeed.providers.errors import ProviderError, ProviderTimeoutError
from yieldfeed.providers.mock import MockPriceProvider
from yieldfeed.schemas.provider import ProviderResult

logger = logging.getLogger(__name__)


async def run_provider(provider: Any, batch: Sequence[Any], timeout: float) -> ProviderResult:
    try:
        rows = await asyncio.wait_for(provider.fetch(batch), timeout=timeout)
    except asyncio.TimeoutError:
        error: ProviderError = ProviderTimeoutError(provider.name, f"no response within {timeout}s")
    except ProviderError as exc:
        error = exc
    else:
        return ProviderResult(provider=provider.name, rows=list(rows))

    logger.warning("provider %s failed: %s", provider.name, error.message)
    return ProviderResult(
        provider=provider.name,
        status=error.status,
        error=error.message,
    )


async def fetch_with_fallback(
    providers: Sequence[Any], batch: Sequence[Any], timeout: float
) -> ProviderResult:
    """Try ``providers`` in order; return the first success or the last failure."""
    if not providers:
        raise ValueError("fallback chain needs at least one provider")
    for provider in providers:
        result = await run_provider(provider, batch, timeout)
        if result.ok:
            return result
    return result


def build_price_chain(
    settings: Settings,
    client: httpx.AsyncClient | None = None,
    clock: Clock = now_ms,
) -> list[PriceProvider]:
    price_settings = settings.prices
    mock = MockPriceProvider(price_settings.mock_prices, clock=clock)
    if not price_settings.live_prices:
        return [mock]

    chain: list[PriceProvider] = [
        DefiLlamaPriceProvider(
            settings.providers.coins_base_url,
            price_settings.llama_coin_ids,
            client=client,
            clock=clock,
        )
    ]
    if price_settings.fallback_enabled:
        chain.append(
            CoinGeckoPriceProvider(
                settings.providers.coingecko_base_url,
                price_settings.coingecko_ids,
                client=client,
                clock=clock,
            )
        )
    chain.append(mock)
    return chain


def build_yield_chain(
    settings: Settings, client: httpx.AsyncClient | None = None
) -> list[YieldProvider]:
    if not settings.yields.live_yields:
        return []
    return [
        DefiLlamaYieldProvider(
            settings.providers.yields_base_url,
            settings.yields.apy_ceiling,
            client=client,
        )
    ]
