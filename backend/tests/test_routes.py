from fastapi.testclient import TestClient

from conftest import HINTS, FakeClock, FakePriceProvider, FakeYieldProvider
from yieldfeed.config.settings import PriceFeedSettings, Settings
from yieldfeed.feeds.live import LiveYieldCache
from yieldfeed.feeds.prices import PriceFeed
from yieldfeed.main import create_app
from yieldfeed.providers.errors import ProviderHTTPError
from yieldfeed.providers.mock import MockPriceProvider


def _client(price_feed: PriceFeed, yield_cache: LiveYieldCache) -> TestClient:
    settings = Settings(prices=PriceFeedSettings(live_prices=False))
    return TestClient(create_app(settings=settings, price_feed=price_feed, yield_cache=yield_cache))


def _mock_feed(clock: FakeClock) -> PriceFeed:
    return PriceFeed([MockPriceProvider({"USDC": 1.0, "SOL": 95.5, "WETH": 2850.0}, clock=clock)], clock=clock)


def test_health() -> None:
    clock = FakeClock()
    with _client(_mock_feed(clock), LiveYieldCache([], HINTS, clock=clock)) as client:
        response = client.get("/health")
    assert response.status_code == 200
    assert response.json() == {"status": "ok"}


def test_live_protocols_filters_and_uses_wire_names() -> None:
    clock = FakeClock()
    cache = LiveYieldCache([FakeYieldProvider()], HINTS, clock=clock)
    with _client(_mock_feed(clock), cache) as client:
        response = client.get("/api/live/protocols", params={"chain": "solana", "asset": "usdc"})

    body = response.json()
    assert response.status_code == 200
    assert body["updatedAt"] == clock.now
    assert [row["id"] for row in body["protocols"]] == ["kamino:solana:USDC"]
    assert body["protocols"][0]["tvlUSD"] == 600_000_000


def test_live_yields_filters_by_protocol_names() -> None:
    clock = FakeClock()
    cache = LiveYieldCache([FakeYieldProvider()], HINTS, clock=clock)
    with _client(_mock_feed(clock), cache) as client:
        response = client.get("/api/live-yields", params={"protocols": "jupiter,helix"})

    body = response.json()
    assert [row["protocol"] for row in body["yields"]] == ["Jupiter Lend", "Helix"]


def test_live_yields_degrade_to_empty_list_on_upstream_failure() -> None:
    clock = FakeClock()
    cache = LiveYieldCache([FakeYieldProvider(fail=True)], HINTS, clock=clock)
    with _client(_mock_feed(clock), cache) as client:
        response = client.get("/api/live-yields")

    assert response.status_code == 200
    assert response.json() == {"updatedAt": clock.now, "yields": []}


def test_prices_default_symbols_are_mock_when_live_disabled() -> None:
    clock = FakeClock()
    with _client(_mock_feed(clock), LiveYieldCache([], HINTS, clock=clock)) as client:
        response = client.get("/api/data/prices")

    body = response.json()
    assert body["schemaVersion"] == "v1"
    assert body["provenance"] == "mock"
    assert [(row["symbol"], row["price"]) for row in body["data"]] == [
        ("USDC", 1.0),
        ("WETH", 2850.0),
        ("SOL", 95.5),
    ]


def test_prices_report_live_provenance() -> None:
    clock = FakeClock()
    primary = FakePriceProvider(clock, {}, name="llama", error=ProviderHTTPError("llama", "HTTP 500", 500))
    secondary = FakePriceProvider(clock, {"ETH": 2990.0}, name="gecko", source="fallback")
    feed = PriceFeed([primary, secondary], clock=clock)
    with _client(feed, LiveYieldCache([], HINTS, clock=clock)) as client:
        response = client.get("/api/data/prices", params={"symbols": "eth"})

    body = response.json()
    assert body["provenance"] == "live"
    assert body["data"] == [
        {"symbol": "ETH", "price": 2990.0, "source": "fallback", "timestamp": clock.now, "chain": None}
    ]


def test_single_price_and_status() -> None:
    clock = FakeClock()
    with _client(_mock_feed(clock), LiveYieldCache([], HINTS, clock=clock)) as client:
        price = client.get("/api/data/prices/sol").json()
        status = client.get("/api/data/prices-status").json()
        providers = client.get("/api/data/status").json()

    assert price["symbol"] == "SOL"
    assert price["source"] == "mock"
    assert status == {"size": 1, "lastFetch": clock.now, "ttlSeconds": 15.0}
    assert providers["prices"] == "mock"
    assert providers["yields"] == "mock"
    assert providers["yieldCache"]["state"] == "empty"


def test_wallet_value() -> None:
    clock = FakeClock()
    with _client(_mock_feed(clock), LiveYieldCache([], HINTS, clock=clock)) as client:
        response = client.post(
            "/api/data/wallet-value",
            json={"balances": [{"asset": "SOL", "amount": 2}, {"asset": "USDC", "amount": 10}]},
        )

    assert response.json() == {"totalUSD": 201.0}
