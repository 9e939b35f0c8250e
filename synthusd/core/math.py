"""Pure fixed-point arithmetic for the synthusd engine.

Every function is stateless and operates on plain Python ints.

Amounts, USD values and health factors share one scale: 18 fractional digits
(`PRECISION`). Feed prices arrive with their own decimals (8 for USD feeds) and
are normalized to 18 decimals before multiplication. All inputs are
non-negative, so `//` truncates toward zero, in both conversion directions.
"""

from __future__ import annotations

from ..errors import InvalidInput

# Domain constants
PRECISION: int = 10**18
PRECISION_DECIMALS: int = 18
FEED_DECIMALS: int = 8
ADDITIONAL_FEED_PRECISION: int = 10**10  # 10 ** (PRECISION_DECIMALS - FEED_DECIMALS)

LIQUIDATION_THRESHOLD: int = 50  # collateral must be worth 2x the debt
LIQUIDATION_PRECISION: int = 100
LIQUIDATION_BONUS: int = 10  # percent of the covered collateral

MIN_HEALTH_FACTOR: int = PRECISION
MAX_HEALTH_FACTOR: int = 2**256 - 1


# -- Price normalization -----------------------------------------------------

def normalize_price(price: int, decimals: int) -> int:
    """Rescale a feed price with `decimals` fractional digits to 18 decimals."""
    if decimals < 0:
        raise InvalidInput(f"feed decimals must be non-negative: {decimals}")
    if decimals <= PRECISION_DECIMALS:
        return price * 10 ** (PRECISION_DECIMALS - decimals)
    return price // 10 ** (decimals - PRECISION_DECIMALS)


# -- Valuation ---------------------------------------------------------------

def usd_value_from_price(price_e18: int, amount: int) -> int:
    """USD value of `amount`: ``price * amount / 1e18``."""
    return (price_e18 * amount) // PRECISION


def token_amount_from_price(price_e18: int, usd_amount: int) -> int:
    """Token amount worth `usd_amount`: ``usd * 1e18 / price``."""
    return (usd_amount * PRECISION) // price_e18


# -- Health factor -----------------------------------------------------------

def adjusted_collateral(
    collateral_value_usd: int,
    liquidation_threshold: int = LIQUIDATION_THRESHOLD,
    liquidation_precision: int = LIQUIDATION_PRECISION,
) -> int:
    """Collateral value counted towards solvency (threshold-weighted)."""
    return (collateral_value_usd * liquidation_threshold) // liquidation_precision


def calculate_health_factor(
    total_dsc_minted: int,
    collateral_value_usd: int,
    liquidation_threshold: int = LIQUIDATION_THRESHOLD,
    liquidation_precision: int = LIQUIDATION_PRECISION,
) -> int:
    """Health factor in 18-decimal fixed point; `MAX_HEALTH_FACTOR` when there is no debt."""
    if total_dsc_minted < 0 or collateral_value_usd < 0:
        raise InvalidInput("debt and collateral value must be non-negative")
    if total_dsc_minted == 0:
        return MAX_HEALTH_FACTOR
    adjusted = adjusted_collateral(collateral_value_usd, liquidation_threshold, liquidation_precision)
    return (adjusted * PRECISION) // total_dsc_minted


def max_mintable(
    collateral_value_usd: int,
    liquidation_threshold: int = LIQUIDATION_THRESHOLD,
    liquidation_precision: int = LIQUIDATION_PRECISION,
) -> int:
    """Largest total debt that keeps the health factor at or above 1.0."""
    return adjusted_collateral(collateral_value_usd, liquidation_threshold, liquidation_precision)


# -- Liquidation helpers -----------------------------------------------------

def liquidation_bonus_amount(
    collateral_amount: int,
    liquidation_bonus: int = LIQUIDATION_BONUS,
    liquidation_precision: int = LIQUIDATION_PRECISION,
) -> int:
    """Bonus paid to the liquidator on top of the covered collateral."""
    return (collateral_amount * liquidation_bonus) // liquidation_precision
