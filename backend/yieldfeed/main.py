import logging
import os
from contextlib import asynccontextmanager

import httpx
from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from yieldfeed.api.routes import router
from yieldfeed.config.settings import Settings, settings as default_settings
from yieldfeed.feeds.live import LiveYieldCache
from yieldfeed.feeds.prices import PriceFeed

logger = logging.getLogger(__name__)


def configure_logging(level: str) -> None:
    logging.basicConfig(
        level=level.upper(),
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )


def create_app(
    settings: Settings | None = None,
    price_feed: PriceFeed | None = None,
    yield_cache: LiveYieldCache | None = None,
) -> FastAPI:
    app_settings = settings or default_settings

    @asynccontextmanager
    async def lifespan(app: FastAPI):
        configure_logging(app_settings.log_level)
        client = httpx.AsyncClient(
            timeout=max(app_settings.prices.timeout_seconds, app_settings.yields.timeout_seconds),
            headers={"User-Agent": app_settings.providers.user_agent},
        )
        app.state.settings = app_settings
        app.state.price_feed = price_feed or PriceFeed.init(app_settings, client=client)
        app.state.yield_cache = yield_cache or LiveYieldCache.init(app_settings, client=client)
        logger.info(
            "live data: prices=%s yields=%s",
            app_settings.prices.live_prices,
            app_settings.yields.live_yields,
        )
        yield
        await client.aclose()

    app = FastAPI(
        title="yieldfeed",
        description="Live price and yield aggregation cache.",
        version="0.1.0",
        lifespan=lifespan,
    )
    app.add_middleware(
        CORSMiddleware,
        allow_origins=["*"],
        allow_methods=["*"],
        allow_headers=["*"],
    )
    app.include_router(router)
    return app


app = create_app()


if __name__ == "__main__":
    import uvicorn

    port = int(os.getenv("PORT", "5050"))
    uvicorn.run("yieldfeed.main:app", host="0.0.0.0", port=port, reload=True)
