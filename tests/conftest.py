"""Shared fixtures: a WETH/WBTC deployment on in-memory tokens and feeds."""

from __future__ import annotations

from dataclasses import dataclass

import pytest

from synthusd import AggregatorPriceFeed, DSCEngine, MockCollateralToken, SyntheticDollar

ETHER = 10**18
START = 1_700_000_000
WETH_USD = 2000 * 10**8
WBTC_USD = 1000 * 10**8


class ManualClock:
    """Deterministic clock for feeds; tests advance it explicitly."""

    def __init__(self, now: int = START) -> None:
        self.now = now

    def __call__(self) -> int:
        return self.now

    def advance(self, seconds: int) -> None:
        self.now += seconds


@dataclass
class Deployment:
    engine: DSCEngine
    dsc: SyntheticDollar
    weth: MockCollateralToken
    wbtc: MockCollateralToken
    weth_feed: AggregatorPriceFeed
    wbtc_feed: AggregatorPriceFeed
    clock: ManualClock

    def fund(self, user: str, token: MockCollateralToken, amount: int) -> None:
        """Mint collateral to `user` and approve the engine to pull it."""
        token.mint(user, amount)
        token.approve(user, self.engine.address, token.allowance(user, self.engine.address) + amount)

    def open_position(self, user: str, collateral: int, debt: int, token: MockCollateralToken | None = None) -> None:
        token = token or self.weth
        self.fund(user, token, collateral)
        self.engine.deposit_collateral_and_mint_dsc(user, token, collateral, debt)


@pytest.fixture
def clock() -> ManualClock:
    return ManualClock()


@pytest.fixture
def deployment(clock: ManualClock) -> Deployment:
    weth = MockCollateralToken("Wrapped Ether", "WETH", address="weth")
    wbtc = MockCollateralToken("Wrapped Bitcoin", "WBTC", address="wbtc")
    weth_feed = AggregatorPriceFeed(8, WETH_USD, description="ETH / USD", clock=clock)
    wbtc_feed = AggregatorPriceFeed(8, WBTC_USD, description="BTC / USD", clock=clock)
    dsc = SyntheticDollar("deployer")
    engine = DSCEngine([weth, wbtc], [weth_feed, wbtc_feed], dsc)
    dsc.transfer_ownership("deployer", engine.address)
    return Deployment(
        engine=engine,
        dsc=dsc,
        weth=weth,
        wbtc=wbtc,
        weth_feed=weth_feed,
        wbtc_feed=wbtc_feed,
        clock=clock,
    )


@pytest.fixture
def engine(deployment: Deployment) -> DSCEngine:
    return deployment.engine
