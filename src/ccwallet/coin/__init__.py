"""
Wallet coin tracking and querying.

- Coin: unspent output reference bound to a CoinAuthority
- CoinQuery: immutable filter builder, executed with get_coins()
- CoinList: ordered query result with per-color totals
- CoinManager: in-memory authority and coin-set provider
"""

from ccwallet.coin.base import CoinAuthority, CoinSetProvider
from ccwallet.coin.coin import Coin
from ccwallet.coin.coin_list import CoinList, CoinListValues
from ccwallet.coin.manager import CoinManager
from ccwallet.coin.query import CoinQuery, CoinQueryCriteria

__all__ = [
    "Coin",
    "CoinAuthority",
    "CoinList",
    "CoinListValues",
    "CoinManager",
    "CoinQuery",
    "CoinQueryCriteria",
    "CoinSetProvider",
]
