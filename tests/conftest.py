"""
Pytest configuration and fixtures for wallet coin tests.
"""

from __future__ import annotations

from collections.abc import Callable

import pytest

from ccwallet.coin.manager import CoinManager
from ccwallet.constants import TxStatus
from ccwallet.models import CoinRecord

CURRENT_HEIGHT = 100
NOW = 1_700_000_000


def make_txid(n: int) -> str:
    return f"{n:064x}"


@pytest.fixture
def manager() -> CoinManager:
    """Coin manager at height 100 with a fixed clock."""
    return CoinManager(get_current_height=lambda: CURRENT_HEIGHT, clock=lambda: NOW)


@pytest.fixture
def add_coin(manager: CoinManager) -> Callable[..., CoinRecord]:
    """Factory adding a coin record (and its tx status) to the manager."""

    def _add(
        n: int,
        value: int = 10_000,
        status: TxStatus = TxStatus.CONFIRMED,
        spent: bool = False,
        lock_time: int = 0,
        addresses: list[str] | None = None,
        color_id: int | None = None,
        color_value: int | None = None,
        oidx: int = 0,
    ) -> CoinRecord:
        record = CoinRecord(
            txid=make_txid(n),
            oidx=oidx,
            value=value,
            script="76a914" + "00" * 20 + "88ac",
            addresses=addresses if addresses is not None else [f"addr{n}"],
            lock_time=lock_time,
            color_id=color_id,
            color_value=color_value,
        )
        manager.add_coin(record)
        manager.set_tx_status(record.txid, status)
        if spent:
            manager.mark_spent(record.txid, oidx)
        return record

    return _add


@pytest.fixture
def universe(manager: CoinManager, add_coin) -> dict[str, CoinRecord]:
    """One spendable, one spent, one unconfirmed and one frozen coin."""
    return {
        "spendable": add_coin(1),
        "spent": add_coin(2, spent=True),
        "unconfirmed": add_coin(3, status=TxStatus.UNCONFIRMED),
        "frozen": add_coin(4, lock_time=CURRENT_HEIGHT + 50),
    }
