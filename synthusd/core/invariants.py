"""System-wide invariant checkers for a `DSCEngine`.

Each function returns True when the invariant holds, and `check_all()` returns
the list of violated invariant IDs (empty = all pass).

These are global, multi-account properties: they compare the engine's ledger
against the token contracts it moves value through. `inv_protocol_solvent`
reads live prices, so a stale feed propagates `OracleStale` out of `check_all()`.
"""

from __future__ import annotations

from typing import TYPE_CHECKING, Callable

from .valuation import usd_value

if TYPE_CHECKING:
    from .engine import DSCEngine


def inv_collateral_non_negative(engine: DSCEngine) -> bool:
    return all(engine.get_total_collateral(a) >= 0 for a in engine.get_collateral_tokens())


def inv_debt_non_negative(engine: DSCEngine) -> bool:
    return engine.get_total_debt() >= 0


def inv_debt_equals_supply(engine: DSCEngine) -> bool:
    return engine.get_total_debt() == engine.get_dsc().total_supply()


def inv_custody_covers_collateral(engine: DSCEngine) -> bool:
    for entry in engine.registry:
        if entry.token.balance_of(engine.address) < engine.get_total_collateral(entry.asset_id):
            return False
    return True


def inv_protocol_solvent(engine: DSCEngine) -> bool:
    total_value = 0
    for asset_id in engine.get_collateral_tokens():
        amount = engine.get_total_collateral(asset_id)
        if amount:
            total_value += usd_value(engine.registry, asset_id, amount)
    return total_value >= engine.get_dsc().total_supply()


# ---------------------------------------------------------------------------
# Registry + check_all
# ---------------------------------------------------------------------------

INVARIANT_REGISTRY: dict[str, Callable[[DSCEngine], bool]] = {
    "inv_collateral_non_negative": inv_collateral_non_negative,
    "inv_debt_non_negative": inv_debt_non_negative,
    "inv_debt_equals_supply": inv_debt_equals_supply,
    "inv_custody_covers_collateral": inv_custody_covers_collateral,
    "inv_protocol_solvent": inv_protocol_solvent,
}


def check_all(engine: DSCEngine) -> list[str]:
    """Return list of violated invariant IDs (empty = all pass)."""
    return [
        inv_id
        for inv_id, check_fn in INVARIANT_REGISTRY.items()
        if not check_fn(engine)
    ]
