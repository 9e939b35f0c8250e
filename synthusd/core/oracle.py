"""
Price feed adapters and the oracle freshness kernel.

The functional core (`OracleState`, `is_fresh`) decides freshness
deterministically. Feed adapters are the imperative shell: they hold the latest
answer, read a clock, and report a `PriceReading` whose `is_stale` flag the
engine treats as a hard failure.
"""

from __future__ import annotations

import logging
import time
from dataclasses import dataclass, replace
from typing import Callable, Protocol, runtime_checkable

logger = logging.getLogger(__name__)

# Chainlink heartbeats are one hour or less; three hours leaves room for delays.
DEFAULT_MAX_STALENESS_SECONDS = 3 * 60 * 60


@dataclass(frozen=True)
class OracleState:
    """Minimal oracle freshness state."""

    price_timestamp: int
    max_staleness_seconds: int

    def __post_init__(self) -> None:
        if self.price_timestamp < 0:
            raise ValueError(f"price_timestamp must be non-negative: {self.price_timestamp}")
        if self.max_staleness_seconds <= 0:
            raise ValueError(
                f"max_staleness_seconds must be positive: {self.max_staleness_seconds}"
            )


def init_oracle_state(max_staleness_seconds: int = DEFAULT_MAX_STALENESS_SECONDS) -> OracleState:
    """Initialize oracle state with an empty (0) price timestamp."""
    return OracleState(price_timestamp=0, max_staleness_seconds=max_staleness_seconds)


def is_fresh(state: OracleState, current_timestamp: int) -> bool:
    """Return True if the oracle price timestamp is within the max staleness window."""
    if current_timestamp < 0:
        raise ValueError(f"current_timestamp must be non-negative: {current_timestamp}")
    if state.price_timestamp == 0:
        return False
    if state.price_timestamp > current_timestamp:
        return False
    return (current_timestamp - state.price_timestamp) <= state.max_staleness_seconds


def update_price_timestamp(state: OracleState, current_timestamp: int) -> OracleState:
    """Update oracle state to record a new price timestamp."""
    if current_timestamp < 0:
        raise ValueError(f"current_timestamp must be non-negative: {current_timestamp}")
    return replace(state, price_timestamp=current_timestamp)


# ---------------------------------------------------------------------------
# Feed interface
# ---------------------------------------------------------------------------

@dataclass(frozen=True)
class PriceReading:
    """One price observation. `price` carries `decimals` fractional digits."""

    price: int
    decimals: int
    is_stale: bool
    updated_at: int = 0


@runtime_checkable
class PriceFeed(Protocol):
    def latest_price(self) -> PriceReading: ...


@dataclass(frozen=True)
class RoundData:
    round_id: int
    answer: int
    started_at: int
    updated_at: int
    answered_in_round: int


def _wall_clock() -> int:
    return int(time.time())


class AggregatorPriceFeed:
    """
    In-memory aggregator in the shape of a Chainlink `AggregatorV3Interface`.

    Answers carry `decimals` fractional digits (8 for USD pairs). A reading is
    stale when no answer was ever published, when the answering round lags the
    current round, or when the last update is older than the staleness bound.
    """

    def __init__(
        self,
        decimals: int = 8,
        initial_answer: int | None = None,
        *,
        description: str = "",
        max_staleness_seconds: int = DEFAULT_MAX_STALENESS_SECONDS,
        clock: Callable[[], int] = _wall_clock,
    ) -> None:
        if decimals < 0:
            raise ValueError(f"decimals must be non-negative: {decimals}")
        self.decimals = decimals
        self.description = description
        self._clock = clock
        self._state = init_oracle_state(max_staleness_seconds)
        self._round_id = 0
        self._answered_in_round = 0
        self._answer = 0
        self._started_at = 0
        if initial_answer is not None:
            self.update_answer(initial_answer)

    @property
    def max_staleness_seconds(self) -> int:
        return self._state.max_staleness_seconds

    def update_answer(self, answer: int, timestamp: int | None = None) -> None:
        """Publish a new answer as a fresh round."""
        now = self._clock() if timestamp is None else timestamp
        self._round_id += 1
        self._answered_in_round = self._round_id
        self._answer = int(answer)
        self._started_at = now
        self._state = update_price_timestamp(self._state, now)
        logger.debug("feed %s round %d answer=%d at %d", self.description, self._round_id, answer, now)

    def update_round_data(self, round_id: int, answer: int, timestamp: int, started_at: int) -> None:
        """Overwrite the latest round verbatim (test hook for lagging rounds)."""
        self._round_id = round_id
        self._answer = int(answer)
        self._started_at = started_at
        self._state = update_price_timestamp(self._state, timestamp)

    def latest_round_data(self) -> RoundData:
        return RoundData(
            round_id=self._round_id,
            answer=self._answer,
            started_at=self._started_at,
            updated_at=self._state.price_timestamp,
            answered_in_round=self._answered_in_round,
        )

    def latest_answer(self) -> int:
        return self._answer

    def latest_price(self) -> PriceReading:
        data = self.latest_round_data()
        stale = (
            data.answered_in_round < data.round_id
            or not is_fresh(self._state, self._clock())
        )
        if stale:
            logger.warning(
                "feed %s is stale (round %d, updated_at %d)",
                self.description, data.round_id, data.updated_at,
            )
        return PriceReading(
            price=data.answer,
            decimals=self.decimals,
            is_stale=stale,
            updated_at=data.updated_at,
        )

    def __repr__(self) -> str:
        return f"AggregatorPriceFeed({self.description!r}, answer={self._answer}, decimals={self.decimals})"
