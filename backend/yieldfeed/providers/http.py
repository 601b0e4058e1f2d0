from __future__ import annotations

from typing import Any

import httpx

from yieldfeed.config.settings import settings
from yieldfeed.providers.errors import (
    ProviderHTTPError,
    ProviderParseError,
    ProviderTimeoutError,
)


def build_url(base_url: str, path: str) -> str:
    return f"{base_url.rstrip('/')}{path}"


async def _request(
    client: httpx.AsyncClient, url: str, params: dict[str, str] | None
) -> httpx.Response:
    response = await client.get(url, params=params)
    response.raise_for_status()
    return response


async def get_json(
    provider: str,
    url: str,
    params: dict[str, str] | None = None,
    client: httpx.AsyncClient | None = None,
    timeout: float = 10.0,
) -> Any:
    """GET ``url`` and decode the JSON body, mapping failures to provider errors."""
    try:
        if client is not None:
            response = await _request(client, url, params)
        else:
            headers = {"User-Agent": settings.providers.user_agent}
            async with httpx.AsyncClient(timeout=timeout, headers=headers) as owned:
                response = await _request(owned, url, params)
    except httpx.HTTPStatusError as exc:
        status_code = exc.response.status_code
        raise ProviderHTTPError(provider, f"HTTP {status_code}", status_code) from exc
    except httpx.TimeoutException as exc:
        raise ProviderTimeoutError(provider, "request timed out") from exc
    except httpx.HTTPError as exc:
        raise ProviderHTTPError(provider, f"transport error: {exc}") from exc

    try:
        return response.json()
    except ValueError as exc:
        raise ProviderParseError(provider, "response body is not valid JSON") from exc
