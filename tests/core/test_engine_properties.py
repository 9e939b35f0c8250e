"""Property tests for DSCEngine accounting (Hypothesis)."""

from __future__ import annotations

import importlib.util

import pytest

if importlib.util.find_spec("hypothesis") is None:  # pragma: no cover
    pytest.skip("hypothesis not installed", allow_module_level=True)

import hypothesis.strategies as st
from hypothesis import given, settings

from synthusd import AggregatorPriceFeed, DSCEngine, MockCollateralToken, SyntheticDollar
from synthusd.core.math import MAX_HEALTH_FACTOR, max_mintable
from synthusd.core.oracle import PriceReading
from synthusd.core.valuation import token_amount_for_usd, usd_value
from synthusd.errors import HealthFactorBroken
from synthusd.state.registry import AssetRegistry

NOW = 1_700_000_000
USER = "alice"

amounts = st.integers(min_value=1, max_value=10**30)
prices_e8 = st.integers(min_value=1, max_value=10**16)


def _deploy(price_e8: int) -> tuple[DSCEngine, MockCollateralToken]:
    weth = MockCollateralToken("Wrapped Ether", "WETH", address="weth")
    feed = AggregatorPriceFeed(8, price_e8, clock=lambda: NOW)
    dsc = SyntheticDollar("deployer")
    engine = DSCEngine([weth], [feed], dsc)
    dsc.transfer_ownership("deployer", engine.address)
    return engine, weth


def _deposit(engine: DSCEngine, weth: MockCollateralToken, amount: int) -> None:
    weth.mint(USER, amount)
    weth.approve(USER, engine.address, amount)
    engine.deposit_collateral(USER, "weth", amount)


class _Feed:
    def __init__(self, price_e8: int) -> None:
        self.price_e8 = price_e8

    def latest_price(self) -> PriceReading:
        return PriceReading(price=self.price_e8, decimals=8, is_stale=False)


# ---------------------------------------------------------------------------
# Ledger round trips
# ---------------------------------------------------------------------------

@settings(max_examples=50, deadline=None)
@given(amount=amounts, price=prices_e8)
def test_deposit_then_redeem_restores_balance(amount: int, price: int) -> None:
    engine, weth = _deploy(price)
    _deposit(engine, weth, amount)
    engine.redeem_collateral(USER, "weth", amount)
    assert engine.get_collateral_balance_of_user(USER, "weth") == 0
    assert weth.balance_of(USER) == amount
    assert engine.get_health_factor(USER) == MAX_HEALTH_FACTOR


@settings(max_examples=100, deadline=None)
@given(amount=st.integers(min_value=0, max_value=10**30), price=prices_e8)
def test_valuation_round_trip_within_one_unit(amount: int, price: int) -> None:
    registry = AssetRegistry.from_lists(["weth"], [_Feed(price)])
    back = token_amount_for_usd(registry, "weth", usd_value(registry, "weth", amount))
    assert back <= amount
    if price >= 10**8:
        # Price of at least $1: a round trip loses at most one unit.
        assert amount - back <= 1


# ---------------------------------------------------------------------------
# Mint boundary
# ---------------------------------------------------------------------------

@settings(max_examples=50, deadline=None)
@given(amount=amounts, price=prices_e8)
def test_max_mintable_is_the_exact_boundary(amount: int, price: int) -> None:
    engine, weth = _deploy(price)
    _deposit(engine, weth, amount)
    limit = max_mintable(engine.get_account_collateral_value(USER))

    before = engine.snapshot()
    events = len(engine.events)
    with pytest.raises(HealthFactorBroken):
        engine.mint_dsc(USER, limit + 1)
    assert engine.snapshot() == before
    assert len(engine.events) == events

    if limit > 0:
        engine.mint_dsc(USER, limit)
        assert engine.get_health_factor(USER) >= engine.get_min_health_factor()
        assert engine.check_invariants() == []
