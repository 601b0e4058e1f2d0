from __future__ import annotations

import math

from yieldfeed.schemas.yields import RiskLevel


LOW_RISK_MIN_TVL = 500_000_000
LOW_RISK_MAX_APY = 8.0
MEDIUM_RISK_MIN_TVL = 100_000_000
MEDIUM_RISK_MAX_APY = 15.0


def _as_float(value: object) -> float | None:
    if isinstance(value, bool):
        return None
    if isinstance(value, (int, float)):
        number = float(value)
    elif isinstance(value, str):
        try:
            number = float(value.strip())
        except ValueError:
            return None
    else:
        return None
    if math.isnan(number) or math.isinf(number):
        return None
    return number


def normalize_apy(value: object, ceiling: float) -> float:
    """Return ``value`` as a percentage.

    Upstreams mix fractional (0.0644) and percentage (6.44) notation; anything
    below 1 is taken as a fraction. Values above ``ceiling`` are zeroed.
    """
    apy = _as_float(value)
    if apy is None or apy <= 0:
        return 0.0
    if apy < 1:
        apy = apy * 100
    if apy > ceiling:
        return 0.0
    return apy


def coerce_amount(value: object) -> float | None:
    """Non-negative number or None, for prices and TVL figures."""
    number = _as_float(value)
    if number is None or number < 0:
        return None
    return number


def risk_bucket(apy: float, tvl_usd: float) -> RiskLevel:
    if tvl_usd > LOW_RISK_MIN_TVL and apy <= LOW_RISK_MAX_APY:
        return "low"
    if tvl_usd > MEDIUM_RISK_MIN_TVL and apy <= MEDIUM_RISK_MAX_APY:
        return "medium"
    return "high"
