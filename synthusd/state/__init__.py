"""
Ledger state tables for the synthusd engine
"""

from .balances import Address, Amount, AssetId, BalanceTable
from .debts import DebtTable
from .registry import AssetRegistry, RegisteredAsset, asset_id_of

__all__ = [
    "Address",
    "Amount",
    "AssetId",
    "BalanceTable",
    "DebtTable",
    "AssetRegistry",
    "RegisteredAsset",
    "asset_id_of",
]
