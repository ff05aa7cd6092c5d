"""
Base coin authority and coin-set provider interfaces.
"""

from __future__ import annotations

from abc import ABC, abstractmethod
from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from ccwallet.coin.coin import Coin
    from ccwallet.models import ColorValue, FreezeOptions


class CoinAuthority(ABC):
    """
    Source of truth for coin state.

    Status predicates answer from the authority's current in-memory view and
    are synchronous. Color resolution may need a round trip and is async.
    """

    @abstractmethod
    def is_coin_valid(self, coin: Coin) -> bool:
        """True if the coin's transaction has a valid status"""

    @abstractmethod
    def is_coin_available(self, coin: Coin) -> bool:
        """True if the coin's transaction is confirmed or ours and accepted"""

    @abstractmethod
    def is_coin_spent(self, coin: Coin) -> bool:
        """True if some known transaction spends the coin"""

    @abstractmethod
    def is_coin_frozen(self, coin: Coin) -> bool:
        """True if the coin is under an unexpired freeze"""

    @abstractmethod
    async def get_coin_color_value(self, coin: Coin) -> ColorValue:
        """Resolve the dominant color value of the coin"""

    @abstractmethod
    async def freeze_coin(self, coin: Coin, options: FreezeOptions) -> None:
        """Freeze the coin until the expiry described by options"""

    @abstractmethod
    async def unfreeze_coin(self, coin: Coin) -> None:
        """Release a freeze"""


class CoinSetProvider(ABC):
    @abstractmethod
    def get_coins(self, addresses: list[str] | None = None) -> list[Coin]:
        """Snapshot of candidate coins, optionally restricted to addresses"""
