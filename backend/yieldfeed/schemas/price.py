from __future__ import annotations

from typing import Literal

from pydantic import BaseModel, ConfigDict, Field


PriceSource = Literal["live", "fallback", "mock"]


class PriceRow(BaseModel):
    model_config = ConfigDict(frozen=True)

    symbol: str
    price: float = Field(ge=0)
    source: PriceSource
    timestamp: int
    chain: str | None = None


class Balance(BaseModel):
    asset: str
    amount: float


class WalletValueRequest(BaseModel):
    balances: list[Balance] = Field(default_factory=list)


class CacheStatus(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    size: int
    last_fetch: int = Field(alias="lastFetch")
    ttl_seconds: float = Field(alias="ttlSeconds")


class PriceResponse(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    schema_version: Literal["v1"] = Field(default="v1", alias="schemaVersion")
    provenance: Literal["live", "mock"]
    timestamp: str
    data: list[PriceRow] = Field(default_factory=list)
