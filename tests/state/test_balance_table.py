from __future__ import annotations

import pytest

from synthusd.errors import InsufficientBalance
from synthusd.state import BalanceTable


def test_missing_entries_read_as_zero() -> None:
    table = BalanceTable()
    assert table.get("alice", "weth") == 0
    assert table.get_all_balances() == {}


def test_zero_balances_are_dropped() -> None:
    table = BalanceTable()
    table.add("alice", "weth", 5)
    table.subtract("alice", "weth", 5)
    assert table.get_all_balances() == {}


def test_subtract_more_than_balance() -> None:
    table = BalanceTable()
    table.set("alice", "weth", 3)
    with pytest.raises(InsufficientBalance) as excinfo:
        table.subtract("alice", "weth", 4)
    assert (excinfo.value.actual, excinfo.value.requested) == (3, 4)
    assert table.get("alice", "weth") == 3


def test_negative_values_rejected() -> None:
    table = BalanceTable()
    with pytest.raises(ValueError):
        table.set("alice", "weth", -1)
    with pytest.raises(ValueError):
        table.add("alice", "weth", -1)
    with pytest.raises(ValueError):
        table.subtract("alice", "weth", -1)


def test_total_for_asset_and_sorted_items() -> None:
    table = BalanceTable()
    table.set("bob", "weth", 2)
    table.set("alice", "weth", 1)
    table.set("alice", "wbtc", 7)
    assert table.total_for_asset("weth") == 3
    assert table.items_sorted() == [
        (("alice", "wbtc"), 7),
        (("alice", "weth"), 1),
        (("bob", "weth"), 2),
    ]
    assert table.verify_non_negative()


def test_copy_is_independent() -> None:
    table = BalanceTable()
    table.set("alice", "weth", 1)
    copied = table.copy()
    copied.add("alice", "weth", 1)
    assert table.get("alice", "weth") == 1
    assert copied.get("alice", "weth") == 2
