import datetime

from fastapi import APIRouter, Depends, Request

from yieldfeed.feeds.live import LiveYieldCache, filter_protocols
from yieldfeed.feeds.prices import PriceFeed
from yieldfeed.schemas.price import CacheStatus, PriceResponse, PriceRow, WalletValueRequest
from yieldfeed.schemas.yields import LiveBundle, LiveYieldsResponse

router = APIRouter()


def get_price_feed(request: Request) -> PriceFeed:
    return request.app.state.price_feed


def get_yield_cache(request: Request) -> LiveYieldCache:
    return request.app.state.yield_cache


def get_default_symbols(request: Request) -> list[str]:
    return list(request.app.state.settings.default_price_symbols)


def _split_symbols(raw: str | None) -> list[str]:
    if not raw:
        return []
    return [symbol.strip() for symbol in raw.split(",") if symbol.strip()]


@router.get("/health")
def health() -> dict:
    return {"status": "ok"}


@router.get("/api/live/protocols", response_model=LiveBundle)
async def live_protocols(
    chain: str | None = None,
    asset: str | None = None,
    cache: LiveYieldCache = Depends(get_yield_cache),
) -> LiveBundle:
    bundle = await cache.get_live_bundle()
    rows = filter_protocols(bundle.protocols, chain=chain, asset=asset)
    return LiveBundle(updated_at=bundle.updated_at, protocols=tuple(rows))


@router.get("/api/live-yields", response_model=LiveYieldsResponse)
async def live_yields(
    chain: str | None = None,
    protocols: str | None = None,
    cache: LiveYieldCache = Depends(get_yield_cache),
) -> LiveYieldsResponse:
    bundle = await cache.get_live_bundle()
    rows = filter_protocols(bundle.protocols, chain=chain, protocols=protocols)
    return LiveYieldsResponse(updated_at=bundle.updated_at, yields=rows)


@router.get("/api/data/prices", response_model=PriceResponse)
async def prices(
    symbols: str | None = None,
    feed: PriceFeed = Depends(get_price_feed),
    defaults: list[str] = Depends(get_default_symbols),
) -> PriceResponse:
    requested = _split_symbols(symbols) or defaults
    rows = await feed.get_prices(requested)
    provenance = "live" if any(row.source != "mock" for row in rows) else "mock"
    return PriceResponse(
        provenance=provenance,
        timestamp=datetime.datetime.now(datetime.UTC).isoformat(),
        data=rows,
    )


@router.get("/api/data/prices-status", response_model=CacheStatus)
def prices_status(feed: PriceFeed = Depends(get_price_feed)) -> CacheStatus:
    return feed.get_cache_status()


@router.get("/api/data/prices/{symbol}", response_model=PriceRow)
async def price(
    symbol: str, chain: str | None = None, feed: PriceFeed = Depends(get_price_feed)
) -> PriceRow:
    return await feed.get_price(symbol, chain)


@router.post("/api/data/wallet-value")
async def wallet_value(
    payload: WalletValueRequest, feed: PriceFeed = Depends(get_price_feed)
) -> dict:
    total = await feed.get_wallet_value(payload.balances)
    return {"totalUSD": total}


@router.get("/api/data/status")
def provider_status(
    feed: PriceFeed = Depends(get_price_feed),
    cache: LiveYieldCache = Depends(get_yield_cache),
) -> dict:
    return {
        "prices": "live" if feed.providers != ["mock"] else "mock",
        "yields": "live" if cache.is_live else "mock",
        "priceProviders": feed.providers,
        "yieldCache": cache.status(),
    }
