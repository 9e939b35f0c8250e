"""Configuration: engine risk parameters and YAML-described deployments."""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Mapping, Optional

import yaml

from .core.oracle import DEFAULT_MAX_STALENESS_SECONDS
from .core.types import EngineConfig

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class FeedConfig:
    decimals: int = 8
    # None publishes no round: the feed reads as stale until its first update.
    initial_answer: Optional[int] = None
    max_staleness_seconds: int = DEFAULT_MAX_STALENESS_SECONDS


@dataclass(frozen=True)
class AssetConfig:
    symbol: str
    address: str
    decimals: int = 18
    feed: FeedConfig = field(default_factory=FeedConfig)


@dataclass(frozen=True)
class DeploymentConfig:
    engine: EngineConfig = field(default_factory=EngineConfig)
    dsc_name: str = "DecentralizedStableCoin"
    dsc_symbol: str = "DSC"
    assets: tuple[AssetConfig, ...] = ()


def _require_int(value: Any, *, name: str, positive: bool = False) -> int:
    if not isinstance(value, int) or isinstance(value, bool):
        raise ValueError(f"{name} must be an int")
    if value < 0 or (positive and value == 0):
        raise ValueError(f"{name} must be {'positive' if positive else 'non-negative'}")
    return value


def _optional_positive_int(value: Any, *, name: str) -> Optional[int]:
    if value is None:
        return None
    return _require_int(value, name=name, positive=True)


def _require_str(value: Any, *, name: str) -> str:
    if not isinstance(value, str) or not value:
        raise ValueError(f"{name} must be a non-empty string")
    return value


def _parse_engine(raw: Mapping[str, Any]) -> EngineConfig:
    defaults = EngineConfig()
    return EngineConfig(
        engine_address=_require_str(raw.get("address", defaults.engine_address), name="engine.address"),
        liquidation_threshold=_require_int(
            raw.get("liquidation_threshold", defaults.liquidation_threshold), name="engine.liquidation_threshold",
        ),
        liquidation_precision=_require_int(
            raw.get("liquidation_precision", defaults.liquidation_precision), name="engine.liquidation_precision",
        ),
        liquidation_bonus=_require_int(
            raw.get("liquidation_bonus", defaults.liquidation_bonus), name="engine.liquidation_bonus",
        ),
        min_health_factor=_require_int(
            raw.get("min_health_factor", defaults.min_health_factor), name="engine.min_health_factor",
        ),
    )


def _parse_asset(i: int, raw: Any) -> AssetConfig:
    if not isinstance(raw, Mapping):
        raise ValueError(f"collateral[{i}] must be a mapping")
    feed_raw = raw.get("feed") or {}
    if not isinstance(feed_raw, Mapping):
        raise ValueError(f"collateral[{i}].feed must be a mapping")
    feed = FeedConfig(
        decimals=_require_int(feed_raw.get("decimals", 8), name=f"collateral[{i}].feed.decimals"),
        initial_answer=_optional_positive_int(
            feed_raw.get("initial_answer"), name=f"collateral[{i}].feed.initial_answer",
        ),
        max_staleness_seconds=_require_int(
            feed_raw.get("max_staleness_seconds", DEFAULT_MAX_STALENESS_SECONDS),
            name=f"collateral[{i}].feed.max_staleness_seconds",
            positive=True,
        ),
    )
    symbol = _require_str(raw.get("symbol"), name=f"collateral[{i}].symbol")
    return AssetConfig(
        symbol=symbol,
        address=_require_str(raw.get("address", symbol.lower()), name=f"collateral[{i}].address"),
        decimals=_require_int(raw.get("decimals", 18), name=f"collateral[{i}].decimals"),
        feed=feed,
    )


def parse_config(raw: Mapping[str, Any]) -> DeploymentConfig:
    """Validate a decoded config mapping. Raises ValueError / InvalidInput on bad input."""
    if not isinstance(raw, Mapping):
        raise ValueError("config root must be a mapping")
    engine_raw = raw.get("engine") or {}
    if not isinstance(engine_raw, Mapping):
        raise ValueError("engine must be a mapping")
    dsc_raw = raw.get("dsc") or {}
    if not isinstance(dsc_raw, Mapping):
        raise ValueError("dsc must be a mapping")
    assets_raw = raw.get("collateral") or []
    if not isinstance(assets_raw, list):
        raise ValueError("collateral must be a list")

    assets = tuple(_parse_asset(i, a) for i, a in enumerate(assets_raw))
    addresses = [a.address for a in assets]
    if len(set(addresses)) != len(addresses):
        raise ValueError("collateral addresses must be unique")

    return DeploymentConfig(
        engine=_parse_engine(engine_raw),
        dsc_name=_require_str(dsc_raw.get("name", "DecentralizedStableCoin"), name="dsc.name"),
        dsc_symbol=_require_str(dsc_raw.get("symbol", "DSC"), name="dsc.symbol"),
        assets=assets,
    )


def load_config(path: str | Path) -> DeploymentConfig:
    """Load and validate a YAML deployment config."""
    config_path = Path(path)
    raw = yaml.safe_load(config_path.read_text(encoding="utf-8")) or {}
    config = parse_config(raw)
    logger.info("Configuration loaded from %s (%d collateral assets)", config_path, len(config.assets))
    return config
