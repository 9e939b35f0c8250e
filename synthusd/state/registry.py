"""
Collateral asset registry.

Maps each accepted collateral asset to its token and its price feed. The
registry is populated once, from two equal-length lists, and is append-only:
the insertion order is the iteration order used for whole-account valuation.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Dict, Iterator, Sequence, Tuple

from ..errors import InvalidInput, UnregisteredAsset
from .balances import AssetId


def asset_id_of(asset: Any) -> AssetId:
    """Accept either an asset id string or a token object exposing `.address`."""
    if isinstance(asset, str):
        return asset
    address = getattr(asset, "address", None)
    if not isinstance(address, str) or not address:
        raise InvalidInput(f"cannot derive an asset id from {asset!r}")
    return address


@dataclass(frozen=True)
class RegisteredAsset:
    asset_id: AssetId
    token: Any
    price_feed: Any


class AssetRegistry:
    """Ordered asset id -> (token, price feed) table."""

    def __init__(self) -> None:
        self._entries: Dict[AssetId, RegisteredAsset] = {}
        self._order: list[AssetId] = []

    @classmethod
    def from_lists(cls, tokens: Sequence[Any], price_feeds: Sequence[Any]) -> AssetRegistry:
        """
        Build a registry from parallel lists.

        Raises:
            InvalidInput: If the lists differ in length, are empty, or repeat an asset.
        """
        if len(tokens) != len(price_feeds):
            raise InvalidInput(
                f"token addresses and price feed addresses must be the same length: "
                f"{len(tokens)} != {len(price_feeds)}"
            )
        if not tokens:
            raise InvalidInput("at least one collateral asset is required")
        registry = cls()
        for token, feed in zip(tokens, price_feeds):
            registry._register(token, feed)
        return registry

    def _register(self, token: Any, price_feed: Any) -> None:
        if price_feed is None:
            raise InvalidInput("price feed must not be None")
        asset_id = asset_id_of(token)
        if asset_id in self._entries:
            raise InvalidInput(f"asset registered twice: {asset_id!r}")
        self._entries[asset_id] = RegisteredAsset(asset_id=asset_id, token=token, price_feed=price_feed)
        self._order.append(asset_id)

    def require(self, asset: Any) -> RegisteredAsset:
        """Look up a registered asset, raising `UnregisteredAsset` when absent."""
        asset_id = asset if isinstance(asset, str) else getattr(asset, "address", repr(asset))
        entry = self._entries.get(asset_id)
        if entry is None:
            raise UnregisteredAsset(str(asset_id))
        return entry

    def is_registered(self, asset: Any) -> bool:
        try:
            self.require(asset)
        except UnregisteredAsset:
            return False
        return True

    def price_feed(self, asset: Any) -> Any:
        return self.require(asset).price_feed

    def token(self, asset: Any) -> Any:
        return self.require(asset).token

    @property
    def asset_ids(self) -> Tuple[AssetId, ...]:
        return tuple(self._order)

    def __iter__(self) -> Iterator[RegisteredAsset]:
        return (self._entries[a] for a in self._order)

    def __len__(self) -> int:
        return len(self._order)

    def __repr__(self) -> str:
        return f"AssetRegistry({list(self._order)!r})"
