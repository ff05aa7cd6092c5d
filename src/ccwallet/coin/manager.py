"""
In-memory coin manager.

Keeps the wallet's coin records, spends, transaction statuses and freeze
lock-times, and serves as both the coin authority and the coin-set provider
for queries.
"""

from __future__ import annotations

import asyncio
import time
from collections.abc import Callable
from typing import Any

from loguru import logger

from ccwallet.coin.base import CoinAuthority, CoinSetProvider
from ccwallet.coin.coin import Coin
from ccwallet.coin.query import CoinQuery
from ccwallet.constants import LOCKTIME_THRESHOLD, TxStatus
from ccwallet.errors import CoinNotFoundError, InvalidArgumentError, TxNotFoundError
from ccwallet.models import ColorValue, CoinRecord, FreezeOptions


class CoinManager(CoinAuthority, CoinSetProvider):
    def __init__(
        self,
        get_current_height: Callable[[], int] = lambda: 0,
        clock: Callable[[], float] = time.time,
    ):
        self._get_current_height = get_current_height
        self._clock = clock

        self._records: dict[tuple[str, int], CoinRecord] = {}
        self._spends: dict[str, set[int]] = {}
        self._tx_statuses: dict[str, TxStatus] = {}
        self._lock = asyncio.Lock()

    def query(self) -> CoinQuery:
        """Default query over this manager's coins"""
        return CoinQuery(self)

    # Records

    def add_coin(self, record: CoinRecord) -> None:
        key = (record.txid, record.oidx)
        if key in self._records:
            logger.debug(f"Coin {record.txid}:{record.oidx} already known, updating record")
        self._records[key] = record
        logger.info(f"Added coin {record.txid}:{record.oidx} ({record.value} sats)")

    def remove_coin(self, txid: str, oidx: int) -> None:
        if self._records.pop((txid, oidx), None) is None:
            raise CoinNotFoundError(f"Coin: {txid}:{oidx}")
        logger.info(f"Removed coin {txid}:{oidx}")

    def get_record(self, txid: str, oidx: int) -> CoinRecord:
        record = self._records.get((txid, oidx))
        if record is None:
            raise CoinNotFoundError(f"Coin: {txid}:{oidx}")
        return record

    def mark_spent(self, txid: str, oidx: int) -> None:
        self._spends.setdefault(txid, set()).add(oidx)

    def unmark_spent(self, txid: str, oidx: int) -> None:
        spent = self._spends.get(txid)
        if spent is None:
            return
        spent.discard(oidx)
        if not spent:
            del self._spends[txid]

    def set_tx_status(self, txid: str, status: TxStatus) -> None:
        self._tx_statuses[txid] = TxStatus(status)

    def get_tx_status(self, txid: str) -> TxStatus | None:
        return self._tx_statuses.get(txid)

    # CoinSetProvider

    def get_coins(self, addresses: str | list[str] | None = None) -> list[Coin]:
        records = list(self._records.values())
        if addresses is not None:
            if isinstance(addresses, str):
                addresses = [addresses]
            for address in addresses:
                if not isinstance(address, str):
                    raise InvalidArgumentError(f"Address must be a string, got {address!r}")
            wanted = set(addresses)
            records = [r for r in records if wanted.intersection(r.addresses)]

        return [
            Coin(
                r.to_raw_coin(),
                authority=self,
                address=r.addresses[0] if r.addresses else None,
            )
            for r in records
        ]

    # CoinAuthority

    def _tx_status_for(self, coin: Coin) -> TxStatus:
        status = self._tx_statuses.get(coin.txid)
        if status is None:
            raise TxNotFoundError(f"TxId: {coin.txid}")
        return status

    def is_coin_valid(self, coin: Coin) -> bool:
        return self._tx_status_for(coin).is_valid()

    def is_coin_available(self, coin: Coin) -> bool:
        return self._tx_status_for(coin).is_available()

    def is_coin_spent(self, coin: Coin) -> bool:
        return coin.oidx in self._spends.get(coin.txid, ())

    def is_coin_frozen(self, coin: Coin) -> bool:
        lock_time = self.get_record(coin.txid, coin.oidx).lock_time
        if lock_time == 0:
            return False
        if lock_time < LOCKTIME_THRESHOLD:
            return lock_time > self._get_current_height()
        return lock_time > int(self._clock())

    async def get_coin_color_value(self, coin: Coin) -> ColorValue:
        return self.get_record(coin.txid, coin.oidx).get_color_value()

    async def _set_lock_time(self, coin: Coin, lock_time: int) -> None:
        async with self._lock:
            key = (coin.txid, coin.oidx)
            record = self._records.get(key)
            if record is None:
                raise CoinNotFoundError(f"Coin: {coin}")
            self._records[key] = record.model_copy(update={"lock_time": lock_time})

    async def freeze_coin(self, coin: Coin, options: FreezeOptions) -> None:
        lock_time = options.lock_time(int(self._clock()))
        await self._set_lock_time(coin, lock_time)
        logger.info(f"Froze coin {coin} until lock-time {lock_time}")

    async def unfreeze_coin(self, coin: Coin) -> None:
        await self._set_lock_time(coin, 0)
        logger.info(f"Unfroze coin {coin}")

    # Persistence

    def to_snapshot(self) -> dict[str, Any]:
        return {
            "coins": [r.model_dump() for r in self._records.values()],
            "spends": {txid: sorted(oidxs) for txid, oidxs in self._spends.items()},
            "tx_statuses": {txid: int(s) for txid, s in self._tx_statuses.items()},
        }

    def load_snapshot(self, snapshot: dict[str, Any]) -> None:
        # validate everything before replacing current state
        records = [CoinRecord.model_validate(raw) for raw in snapshot.get("coins", [])]
        spends = {txid: set(oidxs) for txid, oidxs in snapshot.get("spends", {}).items()}
        statuses = {txid: TxStatus(s) for txid, s in snapshot.get("tx_statuses", {}).items()}

        self._records = {(r.txid, r.oidx): r for r in records}
        self._spends = spends
        self._tx_statuses = statuses
        logger.debug(f"Loaded {len(self._records)} coin records")
