"""Liquidation protocol: pure planning over the ledger.

`plan_liquidation()` runs every ledger step and check of a liquidation against
a PRE-state and returns the staged POST-state. The engine then performs the
token movements and commits; if any check fails here, nothing was touched.

Steps:
1. the target must be under-collateralized (`HealthFactorOk` otherwise),
2. the covered debt is converted to collateral units at the live price,
3. a bonus is added on top,
4. collateral is debited from the target (`InsufficientBalance` if short),
5. the covered debt is burned from the target's position,
6. the target's health factor must strictly improve,
7. the liquidator must remain healthy.

If total collateral value drops below total debt, liquidators cannot be made
whole and liquidations may stop being executable; that state is not recovered
from here.
"""

from __future__ import annotations

from dataclasses import dataclass

from ..errors import HealthFactorNotImproved, HealthFactorOk
from ..state.balances import Address, AssetId
from ..state.registry import AssetRegistry
from .math import liquidation_bonus_amount
from .solvency import enforce_healthy, health_factor
from .types import EngineConfig
from .updates import LedgerState, apply_burn, apply_withdraw, require_positive
from .valuation import token_amount_for_usd


@dataclass(frozen=True)
class LiquidationQuote:
    """Collateral a liquidator receives for covering `debt_to_cover`."""

    collateral_asset: AssetId
    debt_to_cover: int
    collateral_covered: int
    bonus_collateral: int

    @property
    def total_collateral_seized(self) -> int:
        return self.collateral_covered + self.bonus_collateral


@dataclass(frozen=True)
class LiquidationPlan:
    quote: LiquidationQuote
    user: Address
    liquidator: Address
    health_factor_before: int
    health_factor_after: int
    state: LedgerState


def quote_liquidation(
    registry: AssetRegistry, collateral_asset: AssetId, debt_to_cover: int, config: EngineConfig,
) -> LiquidationQuote:
    require_positive(debt_to_cover, name="debt_to_cover")
    covered = token_amount_for_usd(registry, collateral_asset, debt_to_cover)
    bonus = liquidation_bonus_amount(covered, config.liquidation_bonus, config.liquidation_precision)
    return LiquidationQuote(
        collateral_asset=collateral_asset,
        debt_to_cover=debt_to_cover,
        collateral_covered=covered,
        bonus_collateral=bonus,
    )


def plan_liquidation(
    state: LedgerState,
    registry: AssetRegistry,
    config: EngineConfig,
    *,
    collateral_asset: AssetId,
    user: Address,
    liquidator: Address,
    debt_to_cover: int,
) -> LiquidationPlan:
    require_positive(debt_to_cover, name="debt_to_cover")
    asset_id = registry.require(collateral_asset).asset_id

    before = health_factor(state, registry, user, config)
    if before >= config.min_health_factor:
        raise HealthFactorOk(before)

    quote = quote_liquidation(registry, asset_id, debt_to_cover, config)

    staged = apply_withdraw(state, user, asset_id, quote.total_collateral_seized)
    staged = apply_burn(staged, user, debt_to_cover)

    after = health_factor(staged, registry, user, config)
    if after <= before:
        raise HealthFactorNotImproved(before, after)

    enforce_healthy(staged, registry, liquidator, config)

    return LiquidationPlan(
        quote=quote,
        user=user,
        liquidator=liquidator,
        health_factor_before=before,
        health_factor_after=after,
        state=staged,
    )
