"""
Ordered, immutable result collection of a coin query.
"""

from __future__ import annotations

import asyncio
from collections.abc import Iterable, Iterator, Sequence
from dataclasses import dataclass
from typing import overload

from loguru import logger

from ccwallet.coin.coin import Coin
from ccwallet.coin.tasks import gather_or_abort
from ccwallet.models import ColorValue


@dataclass(frozen=True)
class CoinListValues:
    """Per-color sums of a coin list"""

    total: list[ColorValue]
    available: list[ColorValue]
    unconfirmed: list[ColorValue]


class CoinList(Sequence[Coin]):
    """
    Coins in discovery order.

    The list itself cannot be changed after construction. Color totals are
    computed lazily on the first get_values() call and cached; concurrent
    callers share the same computation.
    """

    def __init__(self, coins: Iterable[Coin] = ()):
        self._coins: tuple[Coin, ...] = tuple(coins)
        for coin in self._coins:
            if not isinstance(coin, Coin):
                raise TypeError(f"Expected Coin, got {type(coin).__name__}")

        self._values_cache: CoinListValues | None = None
        self._values_task: asyncio.Task[CoinListValues] | None = None

    @property
    def coins(self) -> tuple[Coin, ...]:
        return self._coins

    @overload
    def __getitem__(self, index: int) -> Coin: ...

    @overload
    def __getitem__(self, index: slice) -> tuple[Coin, ...]: ...

    def __getitem__(self, index: int | slice) -> Coin | tuple[Coin, ...]:
        return self._coins[index]

    def __len__(self) -> int:
        return len(self._coins)

    def __iter__(self) -> Iterator[Coin]:
        return iter(self._coins)

    def __repr__(self) -> str:
        return f"CoinList({[str(c) for c in self._coins]})"

    async def _compute_values(self) -> CoinListValues:
        color_values = await gather_or_abort(coin.get_color_value() for coin in self._coins)

        total: dict[int, ColorValue] = {}
        available: dict[int, ColorValue] = {}
        unconfirmed: dict[int, ColorValue] = {}

        for coin, cv in zip(self._coins, color_values, strict=True):
            if cv.color_id not in total:
                zero = cv.zero()
                total[cv.color_id] = zero
                available[cv.color_id] = zero
                unconfirmed[cv.color_id] = zero

            total[cv.color_id] = total[cv.color_id] + cv
            if coin.is_available():
                available[cv.color_id] = available[cv.color_id] + cv
            else:
                unconfirmed[cv.color_id] = unconfirmed[cv.color_id] + cv

        return CoinListValues(
            total=list(total.values()),
            available=list(available.values()),
            unconfirmed=list(unconfirmed.values()),
        )

    async def get_values(self) -> CoinListValues:
        """
        Sum coin values per color.

        A coin counts towards `available` when its transaction is available,
        otherwise towards `unconfirmed`. A failed computation is not cached.
        """
        if self._values_cache is not None:
            logger.debug("CoinList values served from cache")
            return self._values_cache

        if self._values_task is None:
            self._values_task = asyncio.ensure_future(self._compute_values())

        task = self._values_task
        try:
            values = await asyncio.shield(task)
        finally:
            if self._values_task is task and task.done():
                self._values_task = None

        self._values_cache = values
        return values

    async def get_total_value(self) -> list[ColorValue]:
        values = await self.get_values()
        return values.total
