"""Asset <-> USD conversion against registered price feeds.

Both conversions read the asset's feed on every call and refuse to use a
reading that is stale or non-positive. They never mutate state.
"""

from __future__ import annotations

import logging
from typing import Any

from ..errors import EngineError, InvalidInput, OracleStale
from ..state.registry import AssetRegistry
from .math import normalize_price, token_amount_from_price, usd_value_from_price

logger = logging.getLogger(__name__)


def read_price(registry: AssetRegistry, asset: Any) -> int:
    """Current price of `asset` in USD, 18 decimals.

    Raises:
        UnregisteredAsset: Asset has no registered feed.
        OracleStale: The feed reported stale data, a non-positive price, or failed.
    """
    entry = registry.require(asset)
    try:
        reading = entry.price_feed.latest_price()
    except EngineError:
        raise
    except Exception as exc:
        raise OracleStale(entry.asset_id, f"feed read failed: {exc}") from exc
    if reading.is_stale:
        raise OracleStale(entry.asset_id)
    if reading.price <= 0:
        raise OracleStale(entry.asset_id, f"non-positive price {reading.price}")
    price = normalize_price(reading.price, reading.decimals)
    if price == 0:
        raise OracleStale(entry.asset_id, "price below 18-decimal resolution")
    return price


def usd_value(registry: AssetRegistry, asset: Any, amount: int) -> int:
    """USD value (18 decimals) of `amount` units of `asset`."""
    if amount < 0:
        raise InvalidInput(f"amount must be non-negative: {amount}")
    price = read_price(registry, asset)
    value = usd_value_from_price(price, amount)
    logger.debug("usd_value(%s, %d) = %d at price %d", asset, amount, value, price)
    return value


def token_amount_for_usd(registry: AssetRegistry, asset: Any, usd_amount: int) -> int:
    """Units of `asset` worth `usd_amount` (18 decimals), truncated."""
    if usd_amount < 0:
        raise InvalidInput(f"usd amount must be non-negative: {usd_amount}")
    price = read_price(registry, asset)
    amount = token_amount_from_price(price, usd_amount)
    logger.debug("token_amount_for_usd(%s, %d) = %d at price %d", asset, usd_amount, amount, price)
    return amount
