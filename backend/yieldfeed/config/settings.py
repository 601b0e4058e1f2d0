from __future__ import annotations

from typing import Dict, List, Literal

from pydantic import AliasChoices, BaseModel, ConfigDict, Field, NonNegativeFloat
from pydantic_settings import BaseSettings, SettingsConfigDict


Chain = Literal["solana", "injective"]


class ProtocolHint(BaseModel):
    model_config = ConfigDict(frozen=True)

    protocol: str
    chain: Chain
    project_hint: str
    default_asset: str | None = None


def _default_protocol_hints() -> List[ProtocolHint]:
    rows = [
        # Injective
        ("HYDRO", "injective", "hydro", None),
        ("Helix", "injective", "helix", None),
        ("Neptune Finance", "injective", "neptune", None),
        ("Hydro Lending", "injective", "hydro", None),
        ("Helix Spot", "injective", "helix", None),
        ("Mito Finance", "injective", "mito", None),
        ("Dojoswap", "injective", "dojo", None),
        ("Dojoswap LSD", "injective", "dojo", None),
        # Solana
        ("Jito (Liquid Staking)", "solana", "jito", "SOL"),
        ("Raydium", "solana", "raydium", "USDC"),
        ("Kamino", "solana", "kamino", None),
        ("Jupiter Lend", "solana", "jupiter", None),
        ("Orca", "solana", "orca", None),
        ("Sanctum Infinity", "solana", "sanctum", "SOL"),
        ("Save (marginfi Save)", "solana", "marginfi", None),
        ("Meteora vaults", "solana", "meteora", None),
    ]
    return [
        ProtocolHint(protocol=protocol, chain=chain, project_hint=hint, default_asset=asset)
        for protocol, chain, hint, asset in rows
    ]


class ProviderSettings(BaseSettings):
    model_config = SettingsConfigDict(
        env_prefix="YIELDFEED_",
        env_file=("../.env", ".env"),
        env_file_encoding="utf-8",
        extra="ignore",
    )
    yields_base_url: str = "https://yields.llama.fi"
    coins_base_url: str = "https://coins.llama.fi"
    coingecko_base_url: str = "https://api.coingecko.com/api/v3"
    user_agent: str = "yieldfeed/0.1"


class PriceFeedSettings(BaseSettings):
    model_config = SettingsConfigDict(
        env_prefix="YIELDFEED_PRICE_",
        env_file=("../.env", ".env"),
        env_file_encoding="utf-8",
        extra="ignore",
        populate_by_name=True,
    )
    ttl_seconds: float = Field(
        default=15.0,
        validation_alias=AliasChoices("PRICE_TTL_SECONDS", "YIELDFEED_PRICE_TTL_SECONDS"),
    )
    live_prices: bool = Field(
        default=False,
        validation_alias=AliasChoices("LIVE_PRICES", "YIELDFEED_LIVE_PRICES"),
    )
    fallback_enabled: bool = True
    timeout_seconds: float = 6.0
    mock_prices: Dict[str, NonNegativeFloat] = Field(
        default_factory=lambda: {
            "USDC": 1.00,
            "USDT": 1.00,
            "DAI": 1.00,
            "SOL": 95.50,
            "ETH": 2850.00,
            "WETH": 2850.00,
            "INJ": 24.75,
        }
    )
    coingecko_ids: Dict[str, str] = Field(
        default_factory=lambda: {
            "SOL": "solana",
            "ETH": "ethereum",
            "WETH": "ethereum",
            "INJ": "injective-protocol",
            "USDC": "usd-coin",
            "USDT": "tether",
            "DAI": "dai",
        }
    )
    llama_coin_ids: Dict[str, str] = Field(
        default_factory=lambda: {
            "SOL": "coingecko:solana",
            "ETH": "coingecko:ethereum",
            "WETH": "ethereum:0xC02aaA39b223FE8D0A0e5C4F27eAD9083C756Cc2",
            "INJ": "coingecko:injective-protocol",
            "USDC": "ethereum:0xA0b86991c6218b36c1d19D4a2e9Eb0cE3606eB48",
            "USDT": "ethereum:0xdAC17F958D2ee523a2206206994597C13D831ec7",
            "DAI": "ethereum:0x6B175474E89094C44Da98b954EedeAC495271d0F",
        }
    )


class LiveYieldSettings(BaseSettings):
    model_config = SettingsConfigDict(
        env_prefix="YIELDFEED_YIELD_",
        env_file=("../.env", ".env"),
        env_file_encoding="utf-8",
        extra="ignore",
        populate_by_name=True,
    )
    ttl_seconds: float = Field(
        default=60.0,
        validation_alias=AliasChoices("LIVE_REFRESH_SECONDS", "YIELDFEED_YIELD_TTL_SECONDS"),
    )
    timeout_seconds: float = Field(
        default=6.0,
        validation_alias=AliasChoices("LIVE_TIMEOUT_SECONDS", "YIELDFEED_YIELD_TIMEOUT_SECONDS"),
    )
    live_yields: bool = Field(
        default=True,
        validation_alias=AliasChoices("LIVE_YIELDS", "YIELDFEED_LIVE_YIELDS"),
    )
    # Anything above this is treated as corrupt upstream data.
    apy_ceiling: float = 500.0
    protocol_hints: List[ProtocolHint] = Field(default_factory=_default_protocol_hints)


class Settings(BaseSettings):
    model_config = SettingsConfigDict(
        env_prefix="YIELDFEED_",
        env_file=("../.env", ".env"),
        env_file_encoding="utf-8",
        extra="ignore",
    )

    log_level: str = Field(
        default="INFO",
        validation_alias=AliasChoices("LOG_LEVEL", "YIELDFEED_LOG_LEVEL"),
    )
    default_price_symbols: List[str] = Field(default_factory=lambda: ["USDC", "WETH", "SOL"])

    prices: PriceFeedSettings = Field(default_factory=PriceFeedSettings)
    yields: LiveYieldSettings = Field(default_factory=LiveYieldSettings)
    providers: ProviderSettings = Field(default_factory=ProviderSettings)


settings = Settings()
