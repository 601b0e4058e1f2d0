from __future__ import annotations

from typing import Literal

from pydantic import BaseModel, ConfigDict, Field

from yieldfeed.config.settings import Chain


RiskLevel = Literal["low", "medium", "high"]


class ProtocolRow(BaseModel):
    model_config = ConfigDict(frozen=True, populate_by_name=True)

    id: str
    protocol: str
    chain: Chain
    asset: str
    apy: float
    tvl_usd: float = Field(default=0.0, ge=0, alias="tvlUSD")
    risk: RiskLevel
    url: str | None = None


class LiveBundle(BaseModel):
    model_config = ConfigDict(frozen=True, populate_by_name=True)

    updated_at: int = Field(alias="updatedAt")
    protocols: tuple[ProtocolRow, ...] = ()


class LiveYieldsResponse(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    updated_at: int = Field(alias="updatedAt")
    yields: list[ProtocolRow] = Field(default_factory=list)
