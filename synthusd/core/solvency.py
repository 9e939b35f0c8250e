"""Health-factor computation and the minimum-health-factor check.

Health factors are recomputed from the ledger and live prices on every call;
nothing here is cached.
"""

from __future__ import annotations

from ..errors import HealthFactorBroken
from ..state.balances import Address
from ..state.registry import AssetRegistry
from .math import MAX_HEALTH_FACTOR, calculate_health_factor
from .types import AccountInformation, EngineConfig
from .updates import LedgerState
from .valuation import usd_value


def collateral_usd_value(state: LedgerState, registry: AssetRegistry, user: Address) -> int:
    """Sum of the USD value of every registered asset `user` holds.

    Assets with a zero balance contribute nothing and their feeds are not read.
    """
    total = 0
    for asset_id in registry.asset_ids:
        amount = state.collateral.get(user, asset_id)
        if amount:
            total += usd_value(registry, asset_id, amount)
    return total


def account_information(state: LedgerState, registry: AssetRegistry, user: Address) -> AccountInformation:
    return AccountInformation(
        total_dsc_minted=state.debts.get(user),
        collateral_value_usd=collateral_usd_value(state, registry, user),
    )


def health_factor(
    state: LedgerState, registry: AssetRegistry, user: Address, config: EngineConfig,
) -> int:
    """Health factor of `user`; accounts without debt never read a price."""
    debt = state.debts.get(user)
    if debt == 0:
        return MAX_HEALTH_FACTOR
    return calculate_health_factor(
        debt,
        collateral_usd_value(state, registry, user),
        config.liquidation_threshold,
        config.liquidation_precision,
    )


def enforce_healthy(
    state: LedgerState, registry: AssetRegistry, user: Address, config: EngineConfig,
) -> int:
    """Return the health factor, raising `HealthFactorBroken` below the minimum."""
    value = health_factor(state, registry, user, config)
    if value < config.min_health_factor:
        raise HealthFactorBroken(value)
    return value
