"""
Tests for CoinQuery building and execution.
"""

from __future__ import annotations

import asyncio

import pytest

from ccwallet.coin.base import CoinAuthority, CoinSetProvider
from ccwallet.coin.coin import Coin
from ccwallet.coin.coin_list import CoinList
from ccwallet.coin.query import CoinQuery, CoinQueryCriteria
from ccwallet.constants import TxStatus
from ccwallet.errors import InvalidArgumentError, NoAuthorityBoundError, TxNotFoundError
from ccwallet.models import ColorDefinition, ColorValue, FreezeOptions, RawCoin

from .conftest import CURRENT_HEIGHT, make_txid


class StubAuthority(CoinAuthority):
    """Every coin valid and spendable; colors resolved after a per-coin delay."""

    def __init__(self, colors: dict[str, int], delays: dict[str, float] | None = None):
        self.colors = colors
        self.delays = delays or {}
        self.color_calls: list[str] = []

    def is_coin_valid(self, coin):
        return True

    def is_coin_available(self, coin):
        return True

    def is_coin_spent(self, coin):
        return False

    def is_coin_frozen(self, coin):
        return False

    async def get_coin_color_value(self, coin):
        await asyncio.sleep(self.delays.get(coin.txid, 0))
        self.color_calls.append(coin.txid)
        return ColorValue(color_id=self.colors[coin.txid], value=coin.value)

    async def freeze_coin(self, coin, options: FreezeOptions) -> None:
        raise NotImplementedError

    async def unfreeze_coin(self, coin) -> None:
        raise NotImplementedError


class FailingColorAuthority(StubAuthority):
    """Color lookups of the given txids raise after their delay."""

    def __init__(self, colors, delays=None, errors: dict[str, Exception] | None = None):
        super().__init__(colors, delays)
        self.errors = errors or {}

    async def get_coin_color_value(self, coin):
        if coin.txid in self.errors:
            await asyncio.sleep(self.delays.get(coin.txid, 0))
            raise self.errors[coin.txid]
        return await super().get_coin_color_value(coin)


class ListProvider(CoinSetProvider):
    def __init__(self, coins: list[Coin]):
        self.coins = coins
        self.calls: list[list[str] | None] = []

    def get_coins(self, addresses=None):
        self.calls.append(addresses)
        return list(self.coins)


class FailingProvider(CoinSetProvider):
    def __init__(self, error: Exception):
        self.error = error

    def get_coins(self, addresses=None):
        raise self.error


def make_coin(n: int, authority: CoinAuthority | None) -> Coin:
    return Coin(RawCoin(txid=make_txid(n), oidx=0, value=1000 * n, script="00"), authority)


def outpoints(coin_list: CoinList) -> list[str]:
    return [coin.txid for coin in coin_list]


class TestBuilder:
    @pytest.fixture
    def query(self) -> CoinQuery:
        return CoinQuery(ListProvider([]))

    def test_defaults(self, query):
        assert query.criteria == CoinQueryCriteria()
        assert query.criteria.only_colored_as is None
        assert query.criteria.only_addresses is None
        assert not query.criteria.include_spent
        assert not query.criteria.only_frozen

    @pytest.mark.parametrize(
        "method,field",
        [
            ("include_spent", "include_spent"),
            ("only_spent", "only_spent"),
            ("include_unconfirmed", "include_unconfirmed"),
            ("only_unconfirmed", "only_unconfirmed"),
            ("include_frozen", "include_frozen"),
            ("only_frozen", "only_frozen"),
        ],
    )
    def test_flag_methods_set_one_flag(self, query, method, field):
        narrowed = getattr(query, method)()

        assert narrowed is not query
        assert getattr(narrowed.criteria, field) is True
        assert getattr(query.criteria, field) is False
        others = narrowed.criteria.model_dump(exclude={field})
        assert others == CoinQueryCriteria().model_dump(exclude={field})

    def test_only_addresses_last_write_wins(self, query):
        narrowed = query.only_addresses(["b"]).only_addresses(["a"])
        assert narrowed.criteria.only_addresses == ("a",)

    def test_only_addresses_single_string(self, query):
        assert query.only_addresses("addr1").criteria.only_addresses == ("addr1",)

    def test_only_addresses_any_iterable(self, query):
        narrowed = query.only_addresses(a for a in ["x", "y"])
        assert narrowed.criteria.only_addresses == ("x", "y")

    def test_only_colored_as_last_write_wins(self, query):
        narrowed = query.only_colored_as([1, 2]).only_colored_as(3)
        assert narrowed.criteria.only_colored_as == (3,)

    def test_only_colored_as_accepts_definitions(self, query):
        colors = [ColorDefinition(color_id=4, desc="epobc:x:0:0"), 5]
        assert query.only_colored_as(colors).criteria.only_colored_as == (4, 5)

    @pytest.mark.parametrize("colors", ["red", [1, "red"], True, [None], -1, []])
    def test_only_colored_as_rejects_invalid(self, query, colors):
        with pytest.raises(InvalidArgumentError):
            query.only_colored_as(colors)

    @pytest.mark.parametrize("addresses", [1, ["a", 2], [None], []])
    def test_only_addresses_rejects_invalid(self, query, addresses):
        with pytest.raises(InvalidArgumentError):
            query.only_addresses(addresses)

    def test_invalid_argument_is_value_error(self, query):
        with pytest.raises(ValueError):
            query.only_addresses([b"bytes"])

    def test_clone_is_independent(self, query):
        original = query.only_addresses(["a"]).include_spent()
        clone = original.clone()

        assert clone is not original
        assert clone.criteria == original.criteria
        assert clone.criteria is not original.criteria

        clone.only_frozen().only_addresses(["z"])
        narrowed = clone.only_frozen()

        assert narrowed.criteria.only_frozen is True
        assert original.criteria.only_frozen is False
        assert original.criteria.only_addresses == ("a",)

    def test_criteria_immutable(self, query):
        with pytest.raises(ValueError):
            query.criteria.include_spent = True


class TestStatusGates:
    @pytest.mark.asyncio
    async def test_default_returns_spendable_only(self, manager, universe):
        result = await manager.query().get_coins()
        assert outpoints(result) == [universe["spendable"].txid]

    @pytest.mark.asyncio
    async def test_include_spent(self, manager, universe):
        result = await manager.query().include_spent().get_coins()
        assert outpoints(result) == [universe["spendable"].txid, universe["spent"].txid]

    @pytest.mark.asyncio
    async def test_only_spent(self, manager, universe):
        result = await manager.query().only_spent().get_coins()
        assert outpoints(result) == [universe["spent"].txid]

    @pytest.mark.asyncio
    async def test_include_unconfirmed(self, manager, universe):
        result = await manager.query().include_unconfirmed().get_coins()
        assert outpoints(result) == [universe["spendable"].txid, universe["unconfirmed"].txid]

    @pytest.mark.asyncio
    async def test_only_unconfirmed(self, manager, universe):
        result = await manager.query().only_unconfirmed().get_coins()
        assert outpoints(result) == [universe["unconfirmed"].txid]

    @pytest.mark.asyncio
    async def test_include_frozen(self, manager, universe):
        result = await manager.query().include_frozen().get_coins()
        assert outpoints(result) == [universe["spendable"].txid, universe["frozen"].txid]

    @pytest.mark.asyncio
    async def test_only_frozen_overrides_includes(self, manager, universe):
        query = manager.query().include_spent().include_unconfirmed().only_frozen()
        result = await query.get_coins()
        assert outpoints(result) == [universe["frozen"].txid]

    @pytest.mark.asyncio
    async def test_only_spent_overrides_include_spent(self, manager, universe):
        result = await manager.query().include_spent().only_spent().get_coins()
        assert outpoints(result) == [universe["spent"].txid]

    @pytest.mark.asyncio
    async def test_include_everything_keeps_discovery_order(self, manager, universe):
        query = manager.query().include_spent().include_unconfirmed().include_frozen()
        result = await query.get_coins()
        assert outpoints(result) == [record.txid for record in universe.values()]

    @pytest.mark.asyncio
    async def test_only_gates_combine(self, manager, universe, add_coin):
        spent_unconfirmed = add_coin(5, status=TxStatus.PENDING, spent=True)
        spent_unconfirmed_2 = add_coin(6, status=TxStatus.UNCONFIRMED, spent=True)

        result = await manager.query().only_spent().only_unconfirmed().get_coins()

        assert spent_unconfirmed.txid not in outpoints(result)
        assert outpoints(result) == [spent_unconfirmed_2.txid]

    @pytest.mark.asyncio
    @pytest.mark.parametrize("status", [TxStatus.INVALID, TxStatus.UNKNOWN])
    async def test_invalid_coin_never_returned(self, manager, add_coin, status):
        add_coin(7, status=status, spent=True, lock_time=CURRENT_HEIGHT + 1)
        base = manager.query()
        queries = [
            base,
            base.include_spent().include_unconfirmed().include_frozen(),
            base.only_spent(),
            base.only_unconfirmed(),
            base.only_frozen().include_spent(),
            base.only_colored_as(0).include_spent().include_frozen(),
        ]
        for query in queries:
            assert len(await query.get_coins()) == 0

    @pytest.mark.asyncio
    async def test_only_addresses_pushed_to_provider(self, manager, add_coin):
        add_coin(1, addresses=["alice"])
        add_coin(2, addresses=["bob"])
        bob_and_alice = add_coin(3, addresses=["bob", "alice"])

        result = await manager.query().only_addresses(["bob"]).get_coins()

        assert outpoints(result) == [make_txid(2), bob_and_alice.txid]

    @pytest.mark.asyncio
    async def test_provider_called_once_with_addresses(self):
        provider = ListProvider([])

        await CoinQuery(provider).get_coins()
        await CoinQuery(provider).only_addresses(["a", "b"]).get_coins()

        assert provider.calls == [None, ["a", "b"]]

    @pytest.mark.asyncio
    async def test_reexecution_sees_new_coins(self, manager, add_coin):
        query = manager.query()
        add_coin(1)
        assert len(await query.get_coins()) == 1
        add_coin(2)
        assert len(await query.get_coins()) == 2


class TestColorGate:
    @pytest.mark.asyncio
    async def test_no_color_filter_skips_lookup(self):
        authority = StubAuthority({make_txid(1): 1})
        result = await CoinQuery(ListProvider([make_coin(1, authority)])).get_coins()

        assert len(result) == 1
        assert authority.color_calls == []

    @pytest.mark.asyncio
    async def test_filters_by_color_preserving_order(self):
        color_a, color_b = 10, 20
        # the color_b coin resolves first
        authority = StubAuthority(
            colors={make_txid(1): color_b, make_txid(2): color_a, make_txid(3): color_a},
            delays={make_txid(1): 0.0, make_txid(2): 0.05, make_txid(3): 0.01},
        )
        coins = [make_coin(n, authority) for n in (1, 2, 3)]

        result = await CoinQuery(ListProvider(coins)).only_colored_as(color_a).get_coins()

        assert authority.color_calls[0] == make_txid(1)
        assert outpoints(result) == [make_txid(2), make_txid(3)]

    @pytest.mark.asyncio
    async def test_lookups_run_concurrently(self):
        txids = [make_txid(n) for n in range(1, 6)]
        authority = StubAuthority(
            colors={txid: 1 for txid in txids},
            delays={txid: 0.05 * (5 - i) for i, txid in enumerate(txids)},
        )
        coins = [make_coin(n, authority) for n in range(1, 6)]

        result = await CoinQuery(ListProvider(coins)).only_colored_as(1).get_coins()

        # completion order is reversed, output order is not
        assert authority.color_calls == list(reversed(txids))
        assert outpoints(result) == txids

    @pytest.mark.asyncio
    async def test_manager_color_annotations(self, manager, add_coin):
        add_coin(1, color_id=3, color_value=100)
        add_coin(2)
        add_coin(3, color_id=4, color_value=1)

        colored = await manager.query().only_colored_as([3, 4]).get_coins()
        uncolored = await manager.query().only_colored_as(0).get_coins()

        assert outpoints(colored) == [make_txid(1), make_txid(3)]
        assert outpoints(uncolored) == [make_txid(2)]


class TestFailures:
    @pytest.mark.asyncio
    async def test_provider_error_propagates_unchanged(self):
        error = RuntimeError("coin set unavailable")

        with pytest.raises(RuntimeError) as exc_info:
            await CoinQuery(FailingProvider(error)).get_coins()

        assert exc_info.value is error
        assert "coin query stage: provider fetch" in exc_info.value.__notes__

    @pytest.mark.asyncio
    async def test_status_lookup_error_aborts(self, manager, add_coin):
        add_coin(1)
        manager.add_coin(
            manager.get_record(make_txid(1), 0).model_copy(update={"txid": make_txid(99)})
        )

        with pytest.raises(TxNotFoundError) as exc_info:
            await manager.query().get_coins()

        assert "coin query stage: per-coin lookup" in exc_info.value.__notes__

    @pytest.mark.asyncio
    async def test_color_lookup_error_aborts(self):
        authority = StubAuthority({make_txid(1): 1})
        coins = [make_coin(1, authority), make_coin(2, authority)]

        with pytest.raises(KeyError):
            await CoinQuery(ListProvider(coins)).only_colored_as(1).get_coins()

    @pytest.mark.asyncio
    async def test_unbound_coin_aborts(self):
        with pytest.raises(NoAuthorityBoundError):
            await CoinQuery(ListProvider([make_coin(1, None)])).get_coins()

    @pytest.mark.asyncio
    async def test_color_lookup_error_cancels_pending_lookups(self):
        error = RuntimeError("color lookup failed")
        authority = FailingColorAuthority(
            colors={make_txid(2): 1},
            delays={make_txid(2): 0.05},
            errors={make_txid(1): error},
        )
        coins = [make_coin(1, authority), make_coin(2, authority)]

        with pytest.raises(RuntimeError) as exc_info:
            await CoinQuery(ListProvider(coins)).only_colored_as(1).get_coins()
        await asyncio.sleep(0.1)

        assert exc_info.value is error
        assert "coin query stage: per-coin lookup" in exc_info.value.__notes__
        assert authority.color_calls == []

    @pytest.mark.asyncio
    async def test_first_of_several_color_errors_raised(self):
        first = RuntimeError("first")
        authority = FailingColorAuthority(
            colors={},
            delays={make_txid(2): 0.01},
            errors={make_txid(1): first, make_txid(2): RuntimeError("second")},
        )
        coins = [make_coin(1, authority), make_coin(2, authority)]

        with pytest.raises(RuntimeError) as exc_info:
            await CoinQuery(ListProvider(coins)).only_colored_as(1).get_coins()

        assert exc_info.value is first
