"""`core`: the synthetic-dollar accounting and risk engine.

- deterministic, integer-only valuation and health-factor math,
- pure ledger transitions over an immutable `LedgerState`,
- one imperative shell (`DSCEngine`) that stages, checks, interacts and commits.

Public API:
- `DSCEngine(collateral_tokens, price_feeds, dsc, config=None)`
- `EngineConfig`, `EngineEvent`, `AccountInformation`
- `check_all(engine) -> list[str]` (violated system invariants)
"""

from .engine import DSCEngine
from .invariants import INVARIANT_REGISTRY, check_all
from .liquidation import LiquidationPlan, LiquidationQuote, plan_liquidation, quote_liquidation
from .oracle import AggregatorPriceFeed, PriceFeed, PriceReading
from .types import AccountInformation, Action, EngineConfig, EngineEvent, Event
from .updates import LedgerState, state_to_dict

__all__ = [
    "DSCEngine",
    "INVARIANT_REGISTRY",
    "check_all",
    "LiquidationPlan",
    "LiquidationQuote",
    "plan_liquidation",
    "quote_liquidation",
    "AggregatorPriceFeed",
    "PriceFeed",
    "PriceReading",
    "AccountInformation",
    "Action",
    "EngineConfig",
    "EngineEvent",
    "Event",
    "LedgerState",
    "state_to_dict",
]
