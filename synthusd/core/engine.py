"""DSC engine: the imperative shell around the ledger, solvency and liquidation core.

Every mutating entry point runs through ``_execute()``, which:

1. Serializes callers on the engine lock and rejects re-entrant calls.
2. Stages ledger transitions on a copy of the committed state.
3. Runs the health-factor checks against the staged state.
4. Performs the token interactions: inbound transfers and burns first, then at
   most one outbound payment (mint or collateral transfer).
5. Commits the staged state and its events, or, on any failure, compensates
   the interactions that already ran and leaves the committed state untouched.
   If a compensation itself fails, `CompensationFailed` replaces the original
   error (chained as its cause) so the token-side divergence is never silent.
"""

from __future__ import annotations

import logging
import threading
from contextlib import contextmanager
from dataclasses import dataclass
from typing import Any, Callable, Iterator, Optional, Sequence, TypeVar

from ..errors import CompensationFailed, MintFailed, ReentrantCall, TransferFailed
from ..state.balances import Address, AssetId
from ..state.registry import AssetRegistry, RegisteredAsset
from ..tokens import FungibleToken, SyntheticToken
from . import invariants
from .liquidation import LiquidationQuote, plan_liquidation
from .math import ADDITIONAL_FEED_PRECISION, PRECISION, calculate_health_factor
from .oracle import PriceFeed
from .solvency import account_information, collateral_usd_value, enforce_healthy, health_factor
from .types import AccountInformation, Action, EngineConfig, EngineEvent, Event
from .updates import (
    LedgerState,
    apply_burn,
    apply_deposit,
    apply_mint,
    apply_withdraw,
    require_positive,
    state_to_dict,
)
from .valuation import token_amount_for_usd, usd_value

logger = logging.getLogger(__name__)

T = TypeVar("T")


def _call_token(what: str, fn: Callable[..., Any], *args: Any, error: type[TransferFailed] = TransferFailed) -> None:
    """Invoke a token method; a raised exception or a False return is a failure."""
    try:
        ok = fn(*args)
    except Exception as exc:
        raise error(f"{what} failed: {exc}") from exc
    if ok is False:
        raise error(f"{what} returned false")


@dataclass(frozen=True)
class _Interaction:
    description: str
    run: Callable[[], None]
    undo: Optional[Callable[[], None]] = None


class _Transaction:
    """Staged ledger state, events and token interactions of one operation."""

    def __init__(self, state: LedgerState) -> None:
        self.state = state
        self.events: list[EngineEvent] = []
        self._inbound: list[_Interaction] = []
        self._outbound: Optional[_Interaction] = None
        self._completed: list[_Interaction] = []

    def collect(self, interaction: _Interaction) -> None:
        self._inbound.append(interaction)

    def pay_out(self, interaction: _Interaction) -> None:
        # A single payout runs last, so a failure never needs to claw back funds already paid.
        if self._outbound is not None:
            raise RuntimeError(
                f"second outbound interaction {interaction.description!r} "
                f"after {self._outbound.description!r}"
            )
        self._outbound = interaction

    def run_interactions(self) -> None:
        pending = list(self._inbound)
        if self._outbound is not None:
            pending.append(self._outbound)
        for interaction in pending:
            interaction.run()
            self._completed.append(interaction)

    def rollback(self) -> list[tuple[str, Exception]]:
        """Undo completed interactions in reverse; return the ones that could not be undone."""
        failures: list[tuple[str, Exception]] = []
        for interaction in reversed(self._completed):
            if interaction.undo is None:
                continue
            try:
                interaction.undo()
            except Exception as exc:
                logger.exception("compensation for %r failed", interaction.description)
                failures.append((interaction.description, exc))
        self._completed.clear()
        return failures


class DSCEngine:
    """
    Overcollateralized synthetic-dollar engine.

    Users deposit registered collateral and mint DSC against it while their
    health factor stays at or above `config.min_health_factor`. Positions that
    fall below it can be liquidated by anyone holding DSC.

    `sender` on every mutating call is the account acting (the transaction
    sender); the engine holds custody under `config.engine_address`, which must
    own the DSC token.
    """

    def __init__(
        self,
        collateral_tokens: Sequence[FungibleToken],
        price_feeds: Sequence[PriceFeed],
        dsc: SyntheticToken,
        config: Optional[EngineConfig] = None,
    ) -> None:
        self._config = config or EngineConfig()
        self._registry = AssetRegistry.from_lists(collateral_tokens, price_feeds)
        self._dsc = dsc
        self._state = LedgerState()
        self._events: list[EngineEvent] = []
        self._lock = threading.Lock()
        self._active_thread: Optional[int] = None
        self._active_action: Optional[Action] = None
        logger.info(
            "engine %s created with collateral %s",
            self.address, ", ".join(self._registry.asset_ids),
        )

    @property
    def address(self) -> Address:
        return self._config.engine_address

    @property
    def config(self) -> EngineConfig:
        return self._config

    @property
    def registry(self) -> AssetRegistry:
        return self._registry

    # -- Serialization ---------------------------------------------------------

    @contextmanager
    def _non_reentrant(self, action: Action) -> Iterator[None]:
        me = threading.get_ident()
        if self._active_thread == me:
            active = self._active_action.value if self._active_action else None
            raise ReentrantCall(action.value, active)
        with self._lock:
            self._active_thread = me
            self._active_action = action
            try:
                yield
            finally:
                self._active_thread = None
                self._active_action = None

    def _execute(self, action: Action, body: Callable[[_Transaction], T]) -> T:
        with self._non_reentrant(action):
            tx = _Transaction(self._state)
            try:
                result = body(tx)
                tx.run_interactions()
            except Exception as exc:
                failures = tx.rollback()
                if failures:
                    logger.error("%s rejected (%s) and %d compensation(s) failed", action.value, exc, len(failures))
                    raise CompensationFailed(action.value, failures) from exc
                logger.warning("%s rejected: %s", action.value, exc)
                raise
            self._state = tx.state
            self._events.extend(tx.events)
            logger.info("%s committed", action.value)
            return result

    # -- Ledger operations (staged) ----------------------------------------------

    def _deposit(self, tx: _Transaction, user: Address, asset: Any, amount: int) -> None:
        require_positive(amount)
        entry = self._registry.require(asset)
        tx.state = apply_deposit(tx.state, user, entry.asset_id, amount)
        tx.events.append(EngineEvent(Event.COLLATERAL_DEPOSITED, user, entry.asset_id, amount))
        token = entry.token
        tx.collect(_Interaction(
            f"transfer_from {entry.asset_id} {user} -> engine",
            lambda: _call_token(
                f"{entry.asset_id}.transfer_from", token.transfer_from, self.address, user, self.address, amount,
            ),
            undo=lambda: _call_token(f"{entry.asset_id}.transfer", token.transfer, self.address, user, amount),
        ))

    def _withdraw(self, tx: _Transaction, from_user: Address, to: Address, asset: Any, amount: int) -> None:
        require_positive(amount)
        entry = self._registry.require(asset)
        tx.state = apply_withdraw(tx.state, from_user, entry.asset_id, amount)
        self._schedule_payout(tx, entry, from_user, to, amount)

    def _schedule_payout(
        self, tx: _Transaction, entry: RegisteredAsset, from_user: Address, to: Address, amount: int,
    ) -> None:
        tx.events.append(EngineEvent(Event.COLLATERAL_REDEEMED, from_user, entry.asset_id, amount, recipient=to))
        token = entry.token
        tx.pay_out(_Interaction(
            f"transfer {entry.asset_id} engine -> {to}",
            lambda: _call_token(f"{entry.asset_id}.transfer", token.transfer, self.address, to, amount),
        ))

    def _record_mint(self, tx: _Transaction, user: Address, amount: int) -> None:
        tx.state = apply_mint(tx.state, user, amount)
        tx.pay_out(_Interaction(
            f"mint dsc -> {user}",
            lambda: _call_token("dsc.mint", self._dsc.mint, self.address, user, amount, error=MintFailed),
        ))

    def _record_burn(self, tx: _Transaction, on_behalf_of: Address, payer: Address, amount: int) -> None:
        tx.state = apply_burn(tx.state, on_behalf_of, amount)
        self._schedule_burn(tx, payer, amount)

    def _schedule_burn(self, tx: _Transaction, payer: Address, amount: int) -> None:
        dsc = self._dsc
        tx.collect(_Interaction(
            f"transfer_from dsc {payer} -> engine",
            lambda: _call_token("dsc.transfer_from", dsc.transfer_from, self.address, payer, self.address, amount),
            undo=lambda: _call_token("dsc.transfer", dsc.transfer, self.address, payer, amount),
        ))
        tx.collect(_Interaction(
            "burn dsc",
            lambda: _call_token("dsc.burn", dsc.burn, self.address, amount),
            undo=lambda: _call_token("dsc.mint", dsc.mint, self.address, self.address, amount, error=MintFailed),
        ))

    def _enforce_healthy(self, tx: _Transaction, user: Address) -> int:
        return enforce_healthy(tx.state, self._registry, user, self._config)

    # -- Mutating entry points ---------------------------------------------------

    def deposit_collateral(self, sender: Address, asset: Any, amount: int) -> None:
        """Lock `amount` of `asset` as collateral; depositing never needs a health check."""
        def body(tx: _Transaction) -> None:
            self._deposit(tx, sender, asset, amount)

        self._execute(Action.DEPOSIT_COLLATERAL, body)

    def mint_dsc(self, sender: Address, amount: int) -> None:
        def body(tx: _Transaction) -> None:
            self._record_mint(tx, sender, amount)
            self._enforce_healthy(tx, sender)

        self._execute(Action.MINT_DSC, body)

    def deposit_collateral_and_mint_dsc(
        self, sender: Address, asset: Any, collateral_amount: int, amount_dsc_to_mint: int,
    ) -> None:
        def body(tx: _Transaction) -> None:
            self._deposit(tx, sender, asset, collateral_amount)
            self._record_mint(tx, sender, amount_dsc_to_mint)
            self._enforce_healthy(tx, sender)

        self._execute(Action.DEPOSIT_COLLATERAL_AND_MINT_DSC, body)

    def redeem_collateral(self, sender: Address, asset: Any, amount: int) -> None:
        def body(tx: _Transaction) -> None:
            self._withdraw(tx, sender, sender, asset, amount)
            self._enforce_healthy(tx, sender)

        self._execute(Action.REDEEM_COLLATERAL, body)

    def burn_dsc(self, sender: Address, amount: int) -> None:
        """Repay own debt. The trailing health check cannot fail; it guards future changes."""
        def body(tx: _Transaction) -> None:
            self._record_burn(tx, sender, sender, amount)
            self._enforce_healthy(tx, sender)

        self._execute(Action.BURN_DSC, body)

    def redeem_collateral_for_dsc(
        self, sender: Address, asset: Any, collateral_amount: int, amount_dsc_to_burn: int,
    ) -> None:
        def body(tx: _Transaction) -> None:
            self._record_burn(tx, sender, sender, amount_dsc_to_burn)
            self._withdraw(tx, sender, sender, asset, collateral_amount)
            self._enforce_healthy(tx, sender)

        self._execute(Action.REDEEM_COLLATERAL_FOR_DSC, body)

    def liquidate(self, sender: Address, collateral_asset: Any, user: Address, debt_to_cover: int) -> LiquidationQuote:
        """
        Cover `debt_to_cover` of `user`'s debt with the sender's DSC and receive
        the equivalent `collateral_asset` plus the liquidation bonus.

        Raises:
            HealthFactorOk: `user` is not under-collateralized.
            InsufficientBalance: `user` holds too little of `collateral_asset`,
                or owes less than `debt_to_cover`.
            HealthFactorNotImproved: The liquidation would not raise `user`'s health factor.
            HealthFactorBroken: The liquidator would end up under-collateralized.
        """
        def body(tx: _Transaction) -> LiquidationQuote:
            require_positive(debt_to_cover, name="debt_to_cover")
            entry = self._registry.require(collateral_asset)
            plan = plan_liquidation(
                tx.state, self._registry, self._config,
                collateral_asset=entry.asset_id,
                user=user,
                liquidator=sender,
                debt_to_cover=debt_to_cover,
            )
            tx.state = plan.state
            self._schedule_burn(tx, sender, debt_to_cover)
            self._schedule_payout(tx, entry, user, sender, plan.quote.total_collateral_seized)
            logger.info(
                "liquidating %s: covering %d, seizing %d %s (hf %d -> %d)",
                user, debt_to_cover, plan.quote.total_collateral_seized, entry.asset_id,
                plan.health_factor_before, plan.health_factor_after,
            )
            return plan.quote

        return self._execute(Action.LIQUIDATE, body)

    # -- Queries -------------------------------------------------------------------

    def get_account_information(self, user: Address) -> AccountInformation:
        return account_information(self._state, self._registry, user)

    def get_account_collateral_value(self, user: Address) -> int:
        return collateral_usd_value(self._state, self._registry, user)

    def get_health_factor(self, user: Address) -> int:
        return health_factor(self._state, self._registry, user, self._config)

    def calculate_health_factor(self, total_dsc_minted: int, collateral_value_usd: int) -> int:
        return calculate_health_factor(
            total_dsc_minted,
            collateral_value_usd,
            self._config.liquidation_threshold,
            self._config.liquidation_precision,
        )

    def get_usd_value(self, asset: Any, amount: int) -> int:
        return usd_value(self._registry, asset, amount)

    def get_token_amount_from_usd(self, asset: Any, usd_amount: int) -> int:
        return token_amount_for_usd(self._registry, asset, usd_amount)

    def get_collateral_balance_of_user(self, user: Address, asset: Any) -> int:
        return self._state.collateral.get(user, self._registry.require(asset).asset_id)

    def get_collateral_tokens(self) -> tuple[AssetId, ...]:
        return self._registry.asset_ids

    def get_collateral_token_price_feed(self, asset: Any) -> PriceFeed:
        return self._registry.price_feed(asset)

    def get_dsc(self) -> SyntheticToken:
        return self._dsc

    def get_debt(self, user: Address) -> int:
        return self._state.debts.get(user)

    def get_total_debt(self) -> int:
        return self._state.debts.total()

    def get_total_collateral(self, asset: Any) -> int:
        return self._state.collateral.total_for_asset(self._registry.require(asset).asset_id)

    def get_precision(self) -> int:
        return PRECISION

    def get_additional_feed_precision(self) -> int:
        return ADDITIONAL_FEED_PRECISION

    def get_liquidation_threshold(self) -> int:
        return self._config.liquidation_threshold

    def get_liquidation_bonus(self) -> int:
        return self._config.liquidation_bonus

    def get_liquidation_precision(self) -> int:
        return self._config.liquidation_precision

    def get_min_health_factor(self) -> int:
        return self._config.min_health_factor

    @property
    def events(self) -> tuple[EngineEvent, ...]:
        return tuple(self._events)

    def snapshot(self) -> dict[str, list[dict[str, int | str]]]:
        """Committed positions as plain sorted data."""
        return state_to_dict(self._state)

    def check_invariants(self) -> list[str]:
        """Ids of violated system-wide invariants (empty = all hold)."""
        return invariants.check_all(self)
