"""
Debt table: per-account synthetic-token debt.

Same spirit as `BalanceTable`: a small explicit state table with copy and
deterministic iteration helpers. Debt is denominated in DSC units (18 decimals).
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Dict, Mapping

from ..errors import InsufficientBalance
from .balances import Address


@dataclass
class DebtTable:
    """Mutable mapping: account -> DSC minted on the account's behalf."""

    _debts: Dict[Address, int] = field(default_factory=dict)

    def get(self, account: Address) -> int:
        return self._debts.get(account, 0)

    def add(self, account: Address, amount: int) -> None:
        if amount < 0:
            raise ValueError(f"amount must be non-negative: {amount}")
        new_debt = self.get(account) + amount
        if new_debt:
            self._debts[account] = new_debt

    def subtract(self, account: Address, amount: int) -> None:
        if amount < 0:
            raise ValueError(f"amount must be non-negative: {amount}")
        current = self.get(account)
        if amount > current:
            raise InsufficientBalance(actual=current, requested=amount)
        if amount == current:
            self._debts.pop(account, None)
        else:
            self._debts[account] = current - amount

    def total(self) -> int:
        return sum(self._debts.values())

    def get_all(self) -> Mapping[Address, int]:
        # Shallow copy so callers cannot mutate the table during iteration.
        return dict(self._debts)

    def copy(self) -> DebtTable:
        return DebtTable(dict(self._debts))
