from __future__ import annotations

from typing import Any, Literal

from pydantic import BaseModel, Field


ResultStatus = Literal["ok", "http_error", "timeout", "parse_error"]


class ProviderResult(BaseModel):
    provider: str
    rows: list[Any] = Field(default_factory=list)
    status: ResultStatus = "ok"
    error: str | None = None

    @property
    def ok(self) -> bool:
        return self.status == "ok"
