"""
In-memory fungible tokens: the collaborators the engine moves value through.

`InMemoryToken` is an ERC20-shaped balance ledger with allowances. Its optional
`transfer_hook` runs before every balance move (the way ERC777 hooks do), which
lets tests model a malicious token that calls back into the engine.
`SyntheticDollar` is the pegged token: only its owner may mint or burn, and the
engine becomes owner via `transfer_ownership`.
"""

from __future__ import annotations

import itertools
from typing import Callable, Dict, Optional, Protocol, Tuple, runtime_checkable

from .state.balances import Address, BalanceTable

TransferHook = Callable[[Address, Address, int], None]

_ANON_IDS = itertools.count(1)


class TokenError(Exception):
    """Raised by token ledgers for rejected transfers, approvals or mints."""


class NotOwner(TokenError):
    pass


@runtime_checkable
class FungibleToken(Protocol):
    address: str

    def balance_of(self, holder: Address) -> int: ...

    def transfer(self, sender: Address, to: Address, amount: int) -> bool: ...

    def transfer_from(self, spender: Address, owner: Address, to: Address, amount: int) -> bool: ...


@runtime_checkable
class SyntheticToken(FungibleToken, Protocol):
    def total_supply(self) -> int: ...

    def mint(self, caller: Address, to: Address, amount: int) -> bool: ...

    def burn(self, caller: Address, amount: int) -> None: ...


class InMemoryToken:
    def __init__(self, name: str, symbol: str, address: Optional[str] = None, decimals: int = 18) -> None:
        self.name = name
        self.symbol = symbol
        self.address = address or f"{symbol.lower()}-{next(_ANON_IDS)}"
        self.decimals = decimals
        self._balances = BalanceTable()
        self._allowances: Dict[Tuple[Address, Address], int] = {}
        self._total_supply = 0
        self.transfer_hook: Optional[TransferHook] = None
        # When set, transfers report failure by returning False (non-reverting tokens).
        self.fail_transfers = False

    def total_supply(self) -> int:
        return self._total_supply

    def balance_of(self, holder: Address) -> int:
        return self._balances.get(holder, self.address)

    def allowance(self, owner: Address, spender: Address) -> int:
        return self._allowances.get((owner, spender), 0)

    def approve(self, owner: Address, spender: Address, amount: int) -> bool:
        if amount < 0:
            raise TokenError(f"approval must be non-negative: {amount}")
        self._allowances[(owner, spender)] = amount
        return True

    def transfer(self, sender: Address, to: Address, amount: int) -> bool:
        if self.fail_transfers:
            return False
        self._move(sender, to, amount)
        return True

    def transfer_from(self, spender: Address, owner: Address, to: Address, amount: int) -> bool:
        if self.fail_transfers:
            return False
        allowed = self.allowance(owner, spender)
        if amount > allowed:
            raise TokenError(f"insufficient allowance: {allowed} < {amount}")
        self._move(owner, to, amount)
        self._allowances[(owner, spender)] = allowed - amount
        return True

    def _move(self, sender: Address, to: Address, amount: int) -> None:
        if amount < 0:
            raise TokenError(f"transfer amount must be non-negative: {amount}")
        if not to:
            raise TokenError("transfer to the empty address")
        if self.balance_of(sender) < amount:
            raise TokenError(f"transfer amount exceeds balance of {sender!r}")
        if self.transfer_hook is not None:
            self.transfer_hook(sender, to, amount)
        self._balances.subtract(sender, self.address, amount)
        self._balances.add(to, self.address, amount)

    def _mint(self, to: Address, amount: int) -> None:
        if not to:
            raise TokenError("mint to the empty address")
        if amount < 0:
            raise TokenError(f"mint amount must be non-negative: {amount}")
        self._balances.add(to, self.address, amount)
        self._total_supply += amount

    def _burn(self, holder: Address, amount: int) -> None:
        if self.balance_of(holder) < amount:
            raise TokenError(f"burn amount exceeds balance of {holder!r}")
        self._balances.subtract(holder, self.address, amount)
        self._total_supply -= amount

    def __repr__(self) -> str:
        return f"{type(self).__name__}({self.symbol!r}, address={self.address!r})"


class MockCollateralToken(InMemoryToken):
    """Collateral token with an open faucet, for tests and demos."""

    def mint(self, to: Address, amount: int) -> None:
        self._mint(to, amount)


class SyntheticDollar(InMemoryToken):
    """Burnable, owner-mintable dollar-pegged token."""

    def __init__(
        self,
        owner: Address,
        name: str = "DecentralizedStableCoin",
        symbol: str = "DSC",
        address: Optional[str] = None,
    ) -> None:
        super().__init__(name, symbol, address=address)
        self.owner = owner

    def _require_owner(self, caller: Address) -> None:
        if caller != self.owner:
            raise NotOwner(f"{caller!r} is not the owner of {self.symbol}")

    def transfer_ownership(self, caller: Address, new_owner: Address) -> None:
        self._require_owner(caller)
        if not new_owner:
            raise TokenError("new owner must not be empty")
        self.owner = new_owner

    def mint(self, caller: Address, to: Address, amount: int) -> bool:
        self._require_owner(caller)
        if not to:
            raise TokenError("cannot mint to the empty address")
        if amount <= 0:
            raise TokenError("mint amount must be more than zero")
        self._mint(to, amount)
        return True

    def burn(self, caller: Address, amount: int) -> None:
        """Destroy `amount` tokens held by the owner itself."""
        self._require_owner(caller)
        if amount <= 0:
            raise TokenError("burn amount must be more than zero")
        self._burn(caller, amount)
