"""
ccwallet - Colored-coin wallet coin layer

Tracks wallet coins and answers filtered queries by validity, spend,
confirmation, freeze status and color.
"""

__version__ = "0.1.0"

from ccwallet.coin import (
    Coin,
    CoinAuthority,
    CoinList,
    CoinListValues,
    CoinManager,
    CoinQuery,
    CoinQueryCriteria,
    CoinSetProvider,
)
from ccwallet.constants import LOCKTIME_THRESHOLD, UNCOLORED_COLOR_ID, TxStatus
from ccwallet.errors import (
    CCWalletError,
    CoinNotFoundError,
    IncompatibleColorError,
    InvalidArgumentError,
    NoAuthorityBoundError,
    StorageError,
    TxNotFoundError,
)
from ccwallet.models import (
    ColorDefinition,
    ColorValue,
    CoinRecord,
    FreezeOptions,
    RawCoin,
)

__all__ = [
    "CCWalletError",
    "Coin",
    "CoinAuthority",
    "CoinList",
    "CoinListValues",
    "CoinManager",
    "CoinNotFoundError",
    "CoinQuery",
    "CoinQueryCriteria",
    "CoinRecord",
    "CoinSetProvider",
    "ColorDefinition",
    "ColorValue",
    "FreezeOptions",
    "IncompatibleColorError",
    "InvalidArgumentError",
    "LOCKTIME_THRESHOLD",
    "NoAuthorityBoundError",
    "RawCoin",
    "StorageError",
    "TxNotFoundError",
    "TxStatus",
    "UNCOLORED_COLOR_ID",
]
