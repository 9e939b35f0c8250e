"""Ledger state and its transition functions.

One pure function per ledger operation. Each validates its inputs against the
PRE-state and returns a new `LedgerState`; the input state is never mutated, so
the engine can stage a whole operation and commit it only if every check passes.

External effects (token transfers, mint, burn) are not performed here: the
engine schedules them after the staged state has been validated.
"""

from __future__ import annotations

from dataclasses import dataclass, field

from ..errors import InvalidInput
from ..state.balances import Address, AssetId, BalanceTable
from ..state.debts import DebtTable


@dataclass(frozen=True)
class LedgerState:
    """Collateral and debt positions of every account."""

    collateral: BalanceTable = field(default_factory=BalanceTable)
    debts: DebtTable = field(default_factory=DebtTable)

    def copy(self) -> LedgerState:
        return LedgerState(collateral=self.collateral.copy(), debts=self.debts.copy())


def require_positive(amount: int, *, name: str = "amount") -> int:
    if not isinstance(amount, int) or isinstance(amount, bool):
        raise InvalidInput(f"{name} must be an int")
    if amount <= 0:
        raise InvalidInput(f"{name} must be more than zero")
    return amount


def apply_deposit(state: LedgerState, user: Address, asset: AssetId, amount: int) -> LedgerState:
    require_positive(amount)
    collateral = state.collateral.copy()
    collateral.add(user, asset, amount)
    return LedgerState(collateral=collateral, debts=state.debts)


def apply_withdraw(state: LedgerState, from_user: Address, asset: AssetId, amount: int) -> LedgerState:
    """Debit collateral; raises `InsufficientBalance` carrying the held amount."""
    require_positive(amount)
    collateral = state.collateral.copy()
    collateral.subtract(from_user, asset, amount)
    return LedgerState(collateral=collateral, debts=state.debts)


def apply_mint(state: LedgerState, user: Address, amount: int) -> LedgerState:
    require_positive(amount)
    debts = state.debts.copy()
    debts.add(user, amount)
    return LedgerState(collateral=state.collateral, debts=debts)


def apply_burn(state: LedgerState, on_behalf_of: Address, amount: int) -> LedgerState:
    """Reduce debt; burning more than is owed raises `InsufficientBalance`."""
    require_positive(amount)
    debts = state.debts.copy()
    debts.subtract(on_behalf_of, amount)
    return LedgerState(collateral=state.collateral, debts=debts)


def state_to_dict(state: LedgerState) -> dict[str, list[dict[str, int | str]]]:
    """Serialize positions to plain, deterministically ordered lists."""
    return {
        "collateral": [
            {"user": user, "asset": asset, "amount": amount}
            for (user, asset), amount in state.collateral.items_sorted()
        ],
        "debts": [
            {"user": user, "amount": amount}
            for user, amount in sorted(state.debts.get_all().items())
        ],
    }
