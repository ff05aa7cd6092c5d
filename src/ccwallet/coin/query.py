"""
CoinQuery: immutable, chainable filter over the wallet coin set.

Filter cascade applied to each candidate coin, in order:
1. validity: invalid or unknown transactions are never returned
2. spent: only_spent > include_spent > default (unspent only)
3. confirmation: only_unconfirmed > include_unconfirmed > default (available only)
4. freeze: only_frozen > include_frozen > default (not frozen only)
5. color: dominant color must be in only_colored_as, if set

Gates 1-4 are synchronous. Gate 5 is the only async step and runs for all
surviving coins concurrently; the first failure cancels the rest.
"""

from __future__ import annotations

from collections.abc import Iterable

from loguru import logger
from pydantic import BaseModel

from ccwallet.coin.base import CoinSetProvider
from ccwallet.coin.coin import Coin
from ccwallet.coin.coin_list import CoinList
from ccwallet.coin.tasks import gather_or_abort
from ccwallet.errors import InvalidArgumentError
from ccwallet.models import ColorDefinition


class CoinQueryCriteria(BaseModel):
    only_colored_as: tuple[int, ...] | None = None
    only_addresses: tuple[str, ...] | None = None

    include_spent: bool = False
    only_spent: bool = False

    include_unconfirmed: bool = False
    only_unconfirmed: bool = False

    include_frozen: bool = False
    only_frozen: bool = False

    model_config = {"frozen": True}


def _as_list(value: object) -> list[object]:
    # strings and models are iterable but always a single item here
    if isinstance(value, (str, bytes, BaseModel)) or not isinstance(value, Iterable):
        return [value]
    return list(value)


def _to_color_id(color: object) -> int:
    if isinstance(color, ColorDefinition):
        return color.color_id
    # bool is an int subclass but never a color id
    if isinstance(color, int) and not isinstance(color, bool) and color >= 0:
        return color
    raise InvalidArgumentError(f"Invalid color identifier: {color!r}")


class CoinQuery:
    """
    Query builder over the coins of a CoinSetProvider.

    Every narrowing method returns a new CoinQuery; the receiver is never
    modified, so a query can be kept and executed again later.
    """

    def __init__(
        self,
        provider: CoinSetProvider,
        criteria: CoinQueryCriteria | None = None,
    ):
        self._provider = provider
        self._criteria = criteria if criteria is not None else CoinQueryCriteria()

    @property
    def criteria(self) -> CoinQueryCriteria:
        return self._criteria

    def _extend(self, **update: object) -> CoinQuery:
        return CoinQuery(self._provider, self._criteria.model_copy(update=update, deep=True))

    def clone(self) -> CoinQuery:
        return CoinQuery(self._provider, self._criteria.model_copy(deep=True))

    def only_colored_as(
        self, colors: ColorDefinition | int | Iterable[ColorDefinition | int]
    ) -> CoinQuery:
        """Restrict to coins whose dominant color is one of colors (replaces prior)."""
        items = _as_list(colors)
        if not items:
            raise InvalidArgumentError("only_colored_as requires at least one color")
        color_ids = tuple(_to_color_id(c) for c in items)
        return self._extend(only_colored_as=color_ids)

    def only_addresses(self, addresses: str | Iterable[str]) -> CoinQuery:
        """Restrict to coins of the given addresses (replaces prior)."""
        items = _as_list(addresses)
        if not items:
            raise InvalidArgumentError("only_addresses requires at least one address")
        for address in items:
            if not isinstance(address, str):
                raise InvalidArgumentError(f"Address must be a string, got {address!r}")
        return self._extend(only_addresses=tuple(items))

    def include_spent(self) -> CoinQuery:
        return self._extend(include_spent=True)

    def only_spent(self) -> CoinQuery:
        return self._extend(only_spent=True)

    def include_unconfirmed(self) -> CoinQuery:
        return self._extend(include_unconfirmed=True)

    def only_unconfirmed(self) -> CoinQuery:
        return self._extend(only_unconfirmed=True)

    def include_frozen(self) -> CoinQuery:
        return self._extend(include_frozen=True)

    def only_frozen(self) -> CoinQuery:
        return self._extend(only_frozen=True)

    def _passes_status_gates(self, coin: Coin) -> bool:
        q = self._criteria

        if not coin.is_valid():
            return False

        if q.only_spent:
            if not coin.is_spent():
                return False
        elif not q.include_spent and coin.is_spent():
            return False

        if q.only_unconfirmed:
            if coin.is_available():
                return False
        elif not q.include_unconfirmed and not coin.is_available():
            return False

        if q.only_frozen:
            if not coin.is_frozen():
                return False
        elif not q.include_frozen and coin.is_frozen():
            return False

        return True

    async def _passes_color_gate(self, coin: Coin) -> bool:
        color_ids = self._criteria.only_colored_as
        if color_ids is None:
            return True
        color_value = await coin.get_color_value()
        return color_value.color_id in color_ids

    def _fetch_candidates(self) -> list[Coin]:
        addresses = self._criteria.only_addresses
        if addresses is None:
            return self._provider.get_coins()
        return self._provider.get_coins(list(addresses))

    async def get_coins(self) -> CoinList:
        """
        Execute the query.

        Any error from the provider or from a per-coin lookup aborts the
        whole call and is re-raised unchanged, with a note naming the stage.
        """
        try:
            candidates = self._fetch_candidates()
        except Exception as e:
            logger.warning(f"Coin query failed during provider fetch: {e}")
            e.add_note("coin query stage: provider fetch")
            raise

        try:
            survivors = [coin for coin in candidates if self._passes_status_gates(coin)]
            # results keep input order regardless of completion order
            keep = await gather_or_abort(self._passes_color_gate(c) for c in survivors)
        except Exception as e:
            logger.warning(f"Coin query failed during per-coin lookup: {e}")
            e.add_note("coin query stage: per-coin lookup")
            raise

        coins = [coin for coin, ok in zip(survivors, keep, strict=True) if ok]
        logger.debug(
            f"Coin query selected {len(coins)} of {len(candidates)} candidates "
            f"(criteria: {self._criteria.model_dump(exclude_defaults=True)})"
        )
        return CoinList(coins)

    def __repr__(self) -> str:
        return f"CoinQuery({self._criteria!r})"
