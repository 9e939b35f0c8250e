"""
Per-account, per-asset balance tracking with deterministic ordering.

Implements BalanceTable[Address, AssetId] -> Amount. The engine uses one table
for collateral positions; the in-memory token ledgers reuse it for holdings.
"""

from typing import Dict, Tuple

from ..errors import InsufficientBalance


# Type aliases
Address = str  # account identifier (user, liquidator or the engine itself)
AssetId = str  # collateral token address
Amount = int  # Non-negative integer, 18-decimal fixed point


class BalanceTable:
    """
    Balance table mapping (account, asset) -> amount.

    Missing entries read as zero, so positions are created implicitly on first
    reference. Zero balances are dropped to keep the table sparse; callers that
    need a stable order sort keys explicitly (see `items_sorted`).
    """

    def __init__(self):
        self._balances: Dict[Tuple[Address, AssetId], Amount] = {}

    def get(self, account: Address, asset: AssetId) -> Amount:
        """Get balance for (account, asset). Returns 0 if not found."""
        return self._balances.get((account, asset), 0)

    def set(self, account: Address, asset: AssetId, amount: Amount) -> None:
        """
        Set balance for (account, asset).

        Raises:
            ValueError: If amount is negative
        """
        if amount < 0:
            raise ValueError(f"Balance cannot be negative: {amount}")
        if amount == 0:
            self._balances.pop((account, asset), None)
        else:
            self._balances[(account, asset)] = amount

    def add(self, account: Address, asset: AssetId, delta: Amount) -> None:
        """
        Credit a non-negative delta to (account, asset).

        Raises:
            ValueError: If delta is negative
        """
        if delta < 0:
            raise ValueError(f"Delta must be non-negative: {delta}")
        self.set(account, asset, self.get(account, asset) + delta)

    def subtract(self, account: Address, asset: AssetId, delta: Amount) -> None:
        """
        Debit a non-negative delta from (account, asset).

        Raises:
            ValueError: If delta is negative
            InsufficientBalance: If delta exceeds the current balance
        """
        if delta < 0:
            raise ValueError(f"Delta must be non-negative: {delta}")
        current = self.get(account, asset)
        if delta > current:
            raise InsufficientBalance(actual=current, requested=delta)
        self.set(account, asset, current - delta)

    def total_for_asset(self, asset: AssetId) -> Amount:
        """Sum of all balances held in `asset`."""
        return sum(amount for (_, a), amount in self._balances.items() if a == asset)

    def get_all_balances(self) -> Dict[Tuple[Address, AssetId], Amount]:
        """Get all non-zero balances as a dictionary (shallow copy)."""
        return dict(self._balances)

    def items_sorted(self):
        """Non-zero ((account, asset), amount) pairs in sorted key order."""
        return sorted(self._balances.items())

    def copy(self) -> "BalanceTable":
        copied = BalanceTable()
        copied._balances = dict(self._balances)
        return copied

    def verify_non_negative(self) -> bool:
        """True if all balances are >= 0."""
        return all(amount >= 0 for amount in self._balances.values())

    def __repr__(self) -> str:
        return f"BalanceTable({len(self._balances)} entries)"
