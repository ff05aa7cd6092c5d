"""
Coin: a thin projection of an unspent output bound to a coin authority.
"""

from __future__ import annotations

from typing import TYPE_CHECKING

from ccwallet.errors import NoAuthorityBoundError
from ccwallet.models import ColorValue, FreezeOptions, RawCoin

if TYPE_CHECKING:
    from ccwallet.coin.base import CoinAuthority


class Coin:
    """
    Reference to one unspent transaction output.

    Holds only the raw output fields. Validity, spend, confirmation and
    freeze status as well as the color value are asked from the authority
    on every call and never cached here.
    """

    __slots__ = ("_raw", "_address", "_authority")

    def __init__(
        self,
        raw: RawCoin,
        authority: CoinAuthority | None = None,
        address: str | None = None,
    ):
        self._raw = raw
        self._address = address
        self._authority = authority

    @property
    def txid(self) -> str:
        return self._raw.txid

    @property
    def oidx(self) -> int:
        return self._raw.oidx

    @property
    def value(self) -> int:
        return self._raw.value

    @property
    def script(self) -> str:
        return self._raw.script

    @property
    def address(self) -> str | None:
        return self._address

    @property
    def authority(self) -> CoinAuthority | None:
        return self._authority

    def _authority_or_raise(self) -> CoinAuthority:
        if self._authority is None:
            raise NoAuthorityBoundError(f"Coin {self} has no authority bound")
        return self._authority

    async def freeze(self, options: FreezeOptions) -> None:
        await self._authority_or_raise().freeze_coin(self, options)

    async def unfreeze(self) -> None:
        await self._authority_or_raise().unfreeze_coin(self)

    def is_valid(self) -> bool:
        return self._authority_or_raise().is_coin_valid(self)

    def is_available(self) -> bool:
        return self._authority_or_raise().is_coin_available(self)

    def is_spent(self) -> bool:
        return self._authority_or_raise().is_coin_spent(self)

    def is_frozen(self) -> bool:
        return self._authority_or_raise().is_coin_frozen(self)

    async def get_color_value(self) -> ColorValue:
        return await self._authority_or_raise().get_coin_color_value(self)

    def to_raw_record(self) -> RawCoin:
        return self._raw

    @property
    def outpoint(self) -> tuple[str, int]:
        return (self.txid, self.oidx)

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, Coin):
            return NotImplemented
        return self.outpoint == other.outpoint

    def __hash__(self) -> int:
        return hash(self.outpoint)

    def __str__(self) -> str:
        return f"{self.txid}:{self.oidx}"

    def __repr__(self) -> str:
        return f"Coin({self}, value={self.value})"
