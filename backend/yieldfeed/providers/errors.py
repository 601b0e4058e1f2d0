from __future__ import annotations


class ProviderError(Exception):
    """Base class for failures of a single upstream provider call."""

    status = "http_error"

    def __init__(self, provider: str, message: str) -> None:
        super().__init__(f"{provider}: {message}")
        self.provider = provider
        self.message = message


class ProviderHTTPError(ProviderError):
    status = "http_error"

    def __init__(self, provider: str, message: str, status_code: int | None = None) -> None:
        super().__init__(provider, message)
        self.status_code = status_code


class ProviderTimeoutError(ProviderError):
    status = "timeout"


class ProviderParseError(ProviderError):
    status = "parse_error"
