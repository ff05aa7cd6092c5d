"""
Colored-coin wallet CLI - inspect, query, freeze and import wallet coins.
"""

from __future__ import annotations

import asyncio
import re
import sys
from pathlib import Path

import typer
from loguru import logger

from ccwallet.coin.coin import Coin
from ccwallet.coin.manager import CoinManager
from ccwallet.coin.query import CoinQuery
from ccwallet.config import DATA_DIR_ENV, WalletConfig, load_config
from ccwallet.constants import TxStatus
from ccwallet.errors import CCWalletError
from ccwallet.models import TXID_PATTERN, CoinRecord, FreezeOptions
from ccwallet.storage import CoinStorage

app = typer.Typer(
    name="cc-wallet",
    help="Colored-coin wallet coin management",
    add_completion=False,
)


def setup_logging(level: str = "INFO") -> None:
    """Configure loguru logging."""
    logger.remove()
    logger.add(
        sys.stderr,
        level=level.upper(),
        format="<green>{time:HH:mm:ss}</green> | <level>{level: <8}</level> | {message}",
    )


def parse_txid(txid: str) -> str:
    if not re.fullmatch(TXID_PATTERN, txid):
        raise typer.BadParameter(f"Expected a 64 character hex txid, got {txid!r}")
    return txid


def parse_outpoint(outpoint: str) -> tuple[str, int]:
    """Parse 'txid:oidx'."""
    txid, sep, oidx = outpoint.rpartition(":")
    if not sep or not txid or not oidx.isdigit():
        raise typer.BadParameter(f"Expected TXID:OIDX, got {outpoint!r}")
    return parse_txid(txid), int(oidx)


def parse_status(name: str) -> TxStatus:
    """Parse a transaction status name such as "confirmed"."""
    try:
        return TxStatus[name.upper()]
    except KeyError as e:
        choices = ", ".join(s.name.lower() for s in TxStatus)
        raise typer.BadParameter(f"Unknown status {name!r}, expected one of: {choices}") from e


def _load(
    config_file: Path | None, data_dir: Path | None, height: int, log_level: str | None
) -> tuple[WalletConfig, CoinStorage, CoinManager]:
    config = load_config(config_file)
    if log_level is None:
        setup_logging(config.log_level)
    if data_dir is not None:
        config = config.model_copy(update={"data_dir": data_dir})

    storage = CoinStorage(config.data_dir)
    manager = storage.load_into(CoinManager(get_current_height=lambda: height))
    return config, storage, manager


ConfigOption = typer.Option(None, "--config", "-c", help="Path to JSON config file")
DataDirOption = typer.Option(None, "--data-dir", "-d", envvar=DATA_DIR_ENV, help="Data directory")
HeightOption = typer.Option(0, "--height", help="Current block height for freeze checks")
LogLevelOption = typer.Option(
    None, "--log-level", "-l", help="Log level, defaults to the configured one"
)


@app.command()
def coins(
    include_spent: bool = typer.Option(False, "--include-spent"),
    only_spent: bool = typer.Option(False, "--only-spent"),
    include_unconfirmed: bool = typer.Option(False, "--include-unconfirmed"),
    only_unconfirmed: bool = typer.Option(False, "--only-unconfirmed"),
    include_frozen: bool = typer.Option(False, "--include-frozen"),
    only_frozen: bool = typer.Option(False, "--only-frozen"),
    color: list[int] | None = typer.Option(None, "--color", help="Color id (repeatable)"),
    address: list[str] | None = typer.Option(None, "--address", "-a", help="Address (repeatable)"),
    config_file: Path | None = ConfigOption,
    data_dir: Path | None = DataDirOption,
    height: int = HeightOption,
    log_level: str | None = LogLevelOption,
) -> None:
    """List wallet coins matching the given filters."""
    setup_logging(log_level or "INFO")

    try:
        config, _, manager = _load(config_file, data_dir, height, log_level)

        query = manager.query()
        defaults = config.default_query
        if include_spent or defaults.include_spent:
            query = query.include_spent()
        if only_spent:
            query = query.only_spent()
        if include_unconfirmed or defaults.include_unconfirmed:
            query = query.include_unconfirmed()
        if only_unconfirmed:
            query = query.only_unconfirmed()
        if include_frozen or defaults.include_frozen:
            query = query.include_frozen()
        if only_frozen:
            query = query.only_frozen()
        if color:
            query = query.only_colored_as(color)
        if address:
            query = query.only_addresses(address)
    except CCWalletError as e:
        logger.error(str(e))
        raise typer.Exit(1) from e

    asyncio.run(_show_coins(query))


async def _show_coins(query: CoinQuery) -> None:
    try:
        coin_list = await query.get_coins()
    except CCWalletError as e:
        logger.error(f"Query failed: {e}")
        raise typer.Exit(1) from e

    if not coin_list:
        typer.echo("No coins found")
        return

    for coin in coin_list:
        color_value = await coin.get_color_value()
        typer.echo(
            f"{coin}  {coin.value:>15,} sats  color={color_value.color_id} "
            f"amount={color_value.value}  {coin.address or ''}"
        )


@app.command()
def balance(
    config_file: Path | None = ConfigOption,
    data_dir: Path | None = DataDirOption,
    height: int = HeightOption,
    log_level: str | None = LogLevelOption,
) -> None:
    """Show per-color balances of unspent, unfrozen coins."""
    setup_logging(log_level or "INFO")

    try:
        _, _, manager = _load(config_file, data_dir, height, log_level)
        asyncio.run(_show_balance(manager))
    except CCWalletError as e:
        logger.error(str(e))
        raise typer.Exit(1) from e


async def _show_balance(manager: CoinManager) -> None:
    coin_list = await manager.query().include_unconfirmed().get_coins()
    values = await coin_list.get_values()

    if not values.total:
        typer.echo("Wallet is empty")
        return

    available = {cv.color_id: cv.value for cv in values.available}
    unconfirmed = {cv.color_id: cv.value for cv in values.unconfirmed}
    typer.echo("Balance by color:")
    for cv in values.total:
        typer.echo(
            f"  Color {cv.color_id}: total={cv.value:,}  "
            f"available={available.get(cv.color_id, 0):,}  "
            f"unconfirmed={unconfirmed.get(cv.color_id, 0):,}"
        )


@app.command()
def freeze(
    outpoint: str = typer.Argument(..., help="Coin as TXID:OIDX"),
    until_height: int | None = typer.Option(None, "--until-height", help="Block height"),
    until_timestamp: int | None = typer.Option(None, "--until-timestamp", help="Unix time"),
    from_now: int | None = typer.Option(None, "--from-now", help="Seconds from now"),
    config_file: Path | None = ConfigOption,
    data_dir: Path | None = DataDirOption,
    log_level: str | None = LogLevelOption,
) -> None:
    """Freeze a coin so default queries skip it until the freeze expires."""
    setup_logging(log_level or "INFO")
    txid, oidx = parse_outpoint(outpoint)

    try:
        options = FreezeOptions(height=until_height, timestamp=until_timestamp, from_now=from_now)
    except ValueError as e:
        logger.error(f"Invalid freeze options: {e}")
        raise typer.Exit(1) from e

    try:
        _, storage, manager = _load(config_file, data_dir, 0, log_level)
        asyncio.run(_set_freeze(manager, txid, oidx, options))
        storage.save(manager)
    except CCWalletError as e:
        logger.error(str(e))
        raise typer.Exit(1) from e

    typer.echo(f"Frozen {txid}:{oidx}")


@app.command()
def unfreeze(
    outpoint: str = typer.Argument(..., help="Coin as TXID:OIDX"),
    config_file: Path | None = ConfigOption,
    data_dir: Path | None = DataDirOption,
    log_level: str | None = LogLevelOption,
) -> None:
    """Release a coin freeze."""
    setup_logging(log_level or "INFO")
    txid, oidx = parse_outpoint(outpoint)

    try:
        _, storage, manager = _load(config_file, data_dir, 0, log_level)
        asyncio.run(_set_freeze(manager, txid, oidx, None))
        storage.save(manager)
    except CCWalletError as e:
        logger.error(str(e))
        raise typer.Exit(1) from e

    typer.echo(f"Unfrozen {txid}:{oidx}")


async def _set_freeze(
    manager: CoinManager, txid: str, oidx: int, options: FreezeOptions | None
) -> None:
    record = manager.get_record(txid, oidx)
    coin = Coin(record.to_raw_coin(), authority=manager)
    if options is None:
        await coin.unfreeze()
    else:
        await coin.freeze(options)


@app.command("import-coin")
def import_coin(
    outpoint: str = typer.Argument(..., help="Coin as TXID:OIDX"),
    value: int = typer.Option(..., "--value", "-v", help="Value in sats"),
    script: str = typer.Option(..., "--script", "-s", help="Locking script (hex)"),
    address: list[str] | None = typer.Option(None, "--address", "-a"),
    color_id: int | None = typer.Option(None, "--color", help="Color id"),
    color_value: int | None = typer.Option(None, "--color-value", help="Colored amount"),
    status: str = typer.Option("confirmed", "--status", help="Transaction status name"),
    config_file: Path | None = ConfigOption,
    data_dir: Path | None = DataDirOption,
    log_level: str | None = LogLevelOption,
) -> None:
    """Add a coin record to the wallet."""
    setup_logging(log_level or "INFO")
    txid, oidx = parse_outpoint(outpoint)
    tx_status = parse_status(status)

    try:
        record = CoinRecord(
            txid=txid,
            oidx=oidx,
            value=value,
            script=script,
            addresses=address or [],
            color_id=color_id,
            color_value=color_value,
        )
    except ValueError as e:
        logger.error(f"Invalid coin: {e}")
        raise typer.Exit(1) from e

    try:
        _, storage, manager = _load(config_file, data_dir, 0, log_level)
        manager.add_coin(record)
        if manager.get_tx_status(txid) is None:
            manager.set_tx_status(txid, tx_status)
        storage.save(manager)
    except CCWalletError as e:
        logger.error(str(e))
        raise typer.Exit(1) from e

    typer.echo(f"Imported {txid}:{oidx}")


@app.command("set-status")
def set_status(
    txid: str = typer.Argument(..., help="Transaction id"),
    status: str = typer.Argument(..., help="Transaction status name"),
    config_file: Path | None = ConfigOption,
    data_dir: Path | None = DataDirOption,
    log_level: str | None = LogLevelOption,
) -> None:
    """Set the status of a wallet transaction."""
    setup_logging(log_level or "INFO")
    txid = parse_txid(txid)
    tx_status = parse_status(status)

    try:
        _, storage, manager = _load(config_file, data_dir, 0, log_level)
        manager.set_tx_status(txid, tx_status)
        storage.save(manager)
    except CCWalletError as e:
        logger.error(str(e))
        raise typer.Exit(1) from e

    typer.echo(f"{txid}: {tx_status.name.lower()}")


@app.command()
def spend(
    outpoint: str = typer.Argument(..., help="Coin as TXID:OIDX"),
    undo: bool = typer.Option(False, "--undo", help="Mark as unspent again"),
    config_file: Path | None = ConfigOption,
    data_dir: Path | None = DataDirOption,
    log_level: str | None = LogLevelOption,
) -> None:
    """Mark a coin as spent."""
    setup_logging(log_level or "INFO")
    txid, oidx = parse_outpoint(outpoint)

    try:
        _, storage, manager = _load(config_file, data_dir, 0, log_level)
        manager.get_record(txid, oidx)
        if undo:
            manager.unmark_spent(txid, oidx)
        else:
            manager.mark_spent(txid, oidx)
        storage.save(manager)
    except CCWalletError as e:
        logger.error(str(e))
        raise typer.Exit(1) from e

    typer.echo(f"{'Unspent' if undo else 'Spent'} {txid}:{oidx}")


def main() -> None:
    """CLI entry point."""
    app()


if __name__ == "__main__":
    main()
