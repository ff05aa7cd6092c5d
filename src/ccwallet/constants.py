"""
Colored-coin wallet constants.

Transaction status values follow the wallet state machine:
- UNCONFIRMED: seen in the mempool but not pushed by us
- CONFIRMED: included in a block
- INVALID: double-spent or otherwise rejected by the network
- PENDING: accepted by the network, not yet mined
- DISPATCH: built by us, waiting to be broadcast
"""

from __future__ import annotations

from enum import IntEnum

# Color id of plain bitcoin value
UNCOLORED_COLOR_ID = 0

# Lock-times below this are block heights, at or above are unix timestamps
LOCKTIME_THRESHOLD = 500_000_000

# Version of the on-disk coin snapshot
COIN_STORAGE_VERSION = 3


class TxStatus(IntEnum):
    UNKNOWN = 0
    UNCONFIRMED = 1
    CONFIRMED = 2
    INVALID = 3
    PENDING = 4
    DISPATCH = 5

    def is_valid(self) -> bool:
        return self in _VALID_STATUSES

    def is_available(self) -> bool:
        return self in _AVAILABLE_STATUSES


_VALID_STATUSES = frozenset(
    {TxStatus.UNCONFIRMED, TxStatus.CONFIRMED, TxStatus.PENDING, TxStatus.DISPATCH}
)
_AVAILABLE_STATUSES = frozenset({TxStatus.CONFIRMED, TxStatus.PENDING, TxStatus.DISPATCH})
