#!/usr/bin/env python3
"""Offline walk-through: deposit, mint, price crash, liquidation.

Runs entirely against in-memory tokens and feeds. Without `--config` the
deployment is WETH at $2000 and WBTC at $1000 with the default risk parameters.
"""

from __future__ import annotations

import argparse
import logging
import sys
from dataclasses import dataclass
from pathlib import Path
from typing import Optional, Sequence

import yaml

ROOT = Path(__file__).resolve().parents[1]
if str(ROOT) not in sys.path:
    sys.path.insert(0, str(ROOT))

from synthusd import AggregatorPriceFeed, DSCEngine, EngineError, MockCollateralToken, SyntheticDollar
from synthusd.config import AssetConfig, DeploymentConfig, FeedConfig, load_config
from synthusd.core.math import PRECISION
from synthusd.logging_setup import configure_logging

logger = logging.getLogger("liquidation_demo")

DEMO_TIMESTAMP = 1_700_000_000
DEPLOYER = "deployer"
USER = "alice"
LIQUIDATOR = "bob"

ETHER = PRECISION


def default_config() -> DeploymentConfig:
    return DeploymentConfig(
        assets=(
            AssetConfig(symbol="WETH", address="weth", feed=FeedConfig(initial_answer=2000 * 10**8)),
            AssetConfig(symbol="WBTC", address="wbtc", feed=FeedConfig(initial_answer=1000 * 10**8)),
        ),
    )


@dataclass
class Deployment:
    engine: DSCEngine
    dsc: SyntheticDollar
    tokens: dict[str, MockCollateralToken]
    feeds: dict[str, AggregatorPriceFeed]


def build_deployment(config: DeploymentConfig, now: int = DEMO_TIMESTAMP) -> Deployment:
    """Create tokens, feeds and the engine, and hand DSC ownership to the engine."""
    if not config.assets:
        raise ValueError("deployment needs at least one collateral asset")

    def clock() -> int:
        return now

    tokens: dict[str, MockCollateralToken] = {}
    feeds: dict[str, AggregatorPriceFeed] = {}
    for asset in config.assets:
        tokens[asset.address] = MockCollateralToken(
            f"Wrapped {asset.symbol}", asset.symbol, address=asset.address, decimals=asset.decimals,
        )
        feeds[asset.address] = AggregatorPriceFeed(
            decimals=asset.feed.decimals,
            initial_answer=asset.feed.initial_answer,
            description=f"{asset.symbol} / USD",
            max_staleness_seconds=asset.feed.max_staleness_seconds,
            clock=clock,
        )

    dsc = SyntheticDollar(DEPLOYER, name=config.dsc_name, symbol=config.dsc_symbol)
    engine = DSCEngine(list(tokens.values()), list(feeds.values()), dsc, config.engine)
    dsc.transfer_ownership(DEPLOYER, engine.address)
    return Deployment(engine=engine, dsc=dsc, tokens=tokens, feeds=feeds)


def _fmt(amount: int) -> str:
    return f"{amount / ETHER:,.6f}"


def run_scenario(deployment: Deployment, crash_answer: int) -> int:
    engine = deployment.engine
    dsc = deployment.dsc
    asset = engine.get_collateral_tokens()[0]
    token = deployment.tokens[asset]
    feed = deployment.feeds[asset]

    collateral = 10 * ETHER
    debt = 100 * ETHER

    token.mint(USER, collateral)
    token.approve(USER, engine.address, collateral)
    engine.deposit_collateral_and_mint_dsc(USER, asset, collateral, debt)
    print(f"[liquidation-demo] {USER}: deposited {_fmt(collateral)} {asset}, minted {_fmt(debt)} DSC")
    print(f"[liquidation-demo] {USER}: health factor {_fmt(engine.get_health_factor(USER))}")

    token.mint(LIQUIDATOR, 2 * collateral)
    token.approve(LIQUIDATOR, engine.address, 2 * collateral)
    engine.deposit_collateral_and_mint_dsc(LIQUIDATOR, asset, 2 * collateral, debt)
    dsc.approve(LIQUIDATOR, engine.address, debt)

    feed.update_answer(crash_answer)
    print(f"[liquidation-demo] {asset} price -> {crash_answer / 10**feed.decimals:,.2f} USD")
    print(f"[liquidation-demo] {USER}: health factor {_fmt(engine.get_health_factor(USER))}")

    before = token.balance_of(LIQUIDATOR)
    try:
        quote = engine.liquidate(LIQUIDATOR, asset, USER, debt)
    except EngineError as exc:
        print(f"[liquidation-demo] FAIL (liquidate): {exc}")
        return 1

    print(
        f"[liquidation-demo] {LIQUIDATOR}: covered {_fmt(quote.debt_to_cover)} DSC, "
        f"seized {_fmt(quote.total_collateral_seized)} {asset} "
        f"(bonus {_fmt(quote.bonus_collateral)})"
    )
    print(f"[liquidation-demo] {LIQUIDATOR}: {asset} delta={token.balance_of(LIQUIDATOR) - before}")
    print(f"[liquidation-demo] {USER}: remaining collateral {_fmt(engine.get_collateral_balance_of_user(USER, asset))}")

    violated = engine.check_invariants()
    if violated:
        print(f"[liquidation-demo] FAIL (invariants): {', '.join(violated)}")
        return 1
    print("[liquidation-demo] OK: liquidation executed")
    return 0


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(description=__doc__.splitlines()[0])
    parser.add_argument("--config", default=None, help="YAML deployment config (default: built-in WETH/WBTC)")
    parser.add_argument("--crash-price", type=int, default=18 * 10**8, help="feed answer after the crash")
    parser.add_argument("--log-level", default="WARNING", help="logging level (default: WARNING)")
    return parser


def main(argv: Optional[Sequence[str]] = None) -> int:
    args = build_parser().parse_args(argv)
    configure_logging(args.log_level)
    try:
        config = load_config(args.config) if args.config else default_config()
    except (OSError, ValueError, EngineError, yaml.YAMLError) as exc:
        print(f"[liquidation-demo] FAIL (config): {exc}")
        return 1
    try:
        deployment = build_deployment(config)
    except (EngineError, ValueError) as exc:
        print(f"[liquidation-demo] FAIL (deployment): {exc}")
        return 1
    logger.info("running scenario on %s", deployment.engine.get_collateral_tokens()[0])
    return run_scenario(deployment, args.crash_price)


if __name__ == "__main__":
    raise SystemExit(main())
