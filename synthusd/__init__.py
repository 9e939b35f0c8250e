"""
synthusd: an overcollateralized synthetic-dollar engine.

Users lock registered collateral, mint DSC against it while their health factor
stays at or above 1.0, and under-collateralized positions can be liquidated for
a bonus.
"""

from .core import AggregatorPriceFeed, DSCEngine, EngineConfig
from .errors import (
    CompensationFailed,
    EngineError,
    HealthFactorBroken,
    HealthFactorNotImproved,
    HealthFactorOk,
    InsufficientBalance,
    InvalidInput,
    MintFailed,
    OracleStale,
    ReentrantCall,
    TransferFailed,
    UnregisteredAsset,
)
from .tokens import InMemoryToken, MockCollateralToken, SyntheticDollar

__version__ = "0.1.0"

__all__ = [
    "AggregatorPriceFeed",
    "CompensationFailed",
    "DSCEngine",
    "EngineConfig",
    "EngineError",
    "HealthFactorBroken",
    "HealthFactorNotImproved",
    "HealthFactorOk",
    "InsufficientBalance",
    "InvalidInput",
    "MintFailed",
    "OracleStale",
    "ReentrantCall",
    "TransferFailed",
    "UnregisteredAsset",
    "InMemoryToken",
    "MockCollateralToken",
    "SyntheticDollar",
]
