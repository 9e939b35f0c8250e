"""Exception types for the synthusd engine.

Every error rejects the whole attempted operation: the engine never commits a
partially applied state, so callers may resubmit after fixing the cause.
"""

from __future__ import annotations


class EngineError(Exception):
    """Base class for all engine rejections."""


class InvalidInput(EngineError):
    """Raised for zero amounts where a positive one is required, or bad configuration."""


class UnregisteredAsset(EngineError):
    """Raised when an operation references an asset without a registered price feed."""

    def __init__(self, asset: str) -> None:
        self.asset = asset
        super().__init__(f"asset not allowed as collateral: {asset!r}")


class InsufficientBalance(EngineError):
    """Raised when a withdrawal, seizure or debt burn exceeds the recorded balance."""

    def __init__(self, actual: int, requested: int) -> None:
        self.actual = actual
        self.requested = requested
        super().__init__(f"insufficient balance: requested {requested}, actual {actual}")


class TransferFailed(EngineError):
    """Raised when a collateral or synthetic-token transfer reports failure."""


class MintFailed(TransferFailed):
    """Raised when the synthetic token refuses to mint."""


class HealthFactorBroken(EngineError):
    """Raised when a post-operation health factor is below the minimum."""

    def __init__(self, value: int) -> None:
        self.value = value
        super().__init__(f"health factor broken: {value}")


class HealthFactorOk(EngineError):
    """Raised when liquidating an account that is not under-collateralized."""

    def __init__(self, value: int) -> None:
        self.value = value
        super().__init__(f"health factor is ok: {value}")


class HealthFactorNotImproved(EngineError):
    """Raised when a liquidation does not raise the target's health factor."""

    def __init__(self, before: int, after: int) -> None:
        self.before = before
        self.after = after
        super().__init__(f"health factor not improved: {before} -> {after}")


class OracleStale(EngineError):
    """Raised when a price reading is stale or otherwise unusable."""

    def __init__(self, asset: str, reason: str = "stale price") -> None:
        self.asset = asset
        self.reason = reason
        super().__init__(f"oracle unusable for {asset!r}: {reason}")


class ReentrantCall(EngineError):
    """Raised when a mutating operation is entered while another one is in progress."""

    def __init__(self, action: str, active: str | None = None) -> None:
        self.action = action
        self.active = active
        super().__init__(f"re-entrant call to {action} while {active} is in progress")


class CompensationFailed(EngineError):
    """Raised when a rejected operation's completed token interactions cannot all be undone.

    The ledger keeps its pre-operation state, but token balances do not:
    `failures` pairs each interaction that could not be undone with its error.
    The rejection that triggered the rollback is the `__cause__`.
    """

    def __init__(self, action: str, failures: list[tuple[str, Exception]]) -> None:
        self.action = action
        self.failures = failures
        names = ", ".join(description for description, _ in failures)
        super().__init__(f"{action} rejected; could not undo: {names}")
