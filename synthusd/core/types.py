"""Data types for the synthusd engine.

Units/conventions:
- amounts, USD values and health factors are 18-decimal fixed-point ints,
- DSC is pegged 1:1 to USD, so DSC amounts are also USD values,
- `*_threshold` / `*_bonus` are percents over `liquidation_precision`.
"""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum, unique
from typing import NamedTuple

from ..errors import InvalidInput
from .math import (
    LIQUIDATION_BONUS,
    LIQUIDATION_PRECISION,
    LIQUIDATION_THRESHOLD,
    MIN_HEALTH_FACTOR,
)


@unique
class Action(Enum):
    """One member per mutating engine entry point."""
    DEPOSIT_COLLATERAL = "deposit_collateral"
    MINT_DSC = "mint_dsc"
    DEPOSIT_COLLATERAL_AND_MINT_DSC = "deposit_collateral_and_mint_dsc"
    REDEEM_COLLATERAL = "redeem_collateral"
    BURN_DSC = "burn_dsc"
    REDEEM_COLLATERAL_FOR_DSC = "redeem_collateral_for_dsc"
    LIQUIDATE = "liquidate"


@unique
class Event(Enum):
    COLLATERAL_DEPOSITED = "CollateralDeposited"
    COLLATERAL_REDEEMED = "CollateralRedeemed"


@dataclass(frozen=True)
class EngineEvent:
    """Ledger event, recorded only when its operation commits.

    For redemptions `user` is the account redeemed from and `recipient` the
    account that received the collateral (the liquidator during liquidation).
    """

    event: Event
    user: str
    asset: str
    amount: int
    recipient: str | None = None


class AccountInformation(NamedTuple):
    total_dsc_minted: int
    collateral_value_usd: int


@dataclass(frozen=True)
class EngineConfig:
    """Risk parameters of one engine instance."""

    # Identity the engine holds custody under; must own the DSC token.
    engine_address: str = "dsc-engine"
    # Percent of collateral value counted towards solvency (50 => 200% overcollateralized).
    liquidation_threshold: int = LIQUIDATION_THRESHOLD
    liquidation_precision: int = LIQUIDATION_PRECISION
    # Percent of the covered collateral paid to liquidators on top.
    liquidation_bonus: int = LIQUIDATION_BONUS
    min_health_factor: int = MIN_HEALTH_FACTOR

    def __post_init__(self) -> None:
        if not isinstance(self.engine_address, str) or not self.engine_address:
            raise InvalidInput("engine_address must be a non-empty string")
        if self.liquidation_precision <= 0:
            raise InvalidInput(f"liquidation_precision must be positive: {self.liquidation_precision}")
        if not 0 < self.liquidation_threshold <= self.liquidation_precision:
            raise InvalidInput(
                f"liquidation_threshold must be in (0, {self.liquidation_precision}]: "
                f"{self.liquidation_threshold}"
            )
        if self.liquidation_bonus < 0:
            raise InvalidInput(f"liquidation_bonus must be non-negative: {self.liquidation_bonus}")
        if self.min_health_factor <= 0:
            raise InvalidInput(f"min_health_factor must be positive: {self.min_health_factor}")
