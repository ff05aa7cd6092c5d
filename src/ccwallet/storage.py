"""
JSON file persistence for coin manager state.

File format (coins.json):
{
    "version": 3,
    "coins": [{"txid": ..., "oidx": ..., "value": ..., "script": ...,
               "addresses": [...], "lock_time": 0, ...}],
    "spends": {"<txid>": [oidx, ...]},
    "tx_statuses": {"<txid>": status}
}
"""

from __future__ import annotations

import json
import os
import tempfile
from pathlib import Path
from typing import Any

from loguru import logger

from ccwallet.coin.manager import CoinManager
from ccwallet.constants import COIN_STORAGE_VERSION
from ccwallet.errors import StorageError

COIN_STORAGE_FILENAME = "coins.json"


class CoinStorage:
    def __init__(self, data_dir: Path):
        self.data_dir = Path(data_dir)
        self.path = self.data_dir / COIN_STORAGE_FILENAME

    def read(self) -> dict[str, Any]:
        """Read the raw snapshot, empty if no file exists yet"""
        if not self.path.exists():
            return {"version": COIN_STORAGE_VERSION, "coins": [], "spends": {}, "tx_statuses": {}}

        try:
            with open(self.path, encoding="utf-8") as f:
                data = json.load(f)
        except (OSError, json.JSONDecodeError) as e:
            raise StorageError(f"Failed to read {self.path}: {e}") from e

        if not isinstance(data, dict):
            raise StorageError(f"Malformed coin storage file: {self.path}")
        version = data.get("version")
        if version != COIN_STORAGE_VERSION:
            raise StorageError(f"Unsupported coin storage version: {version}")
        return data

    def write(self, snapshot: dict[str, Any]) -> None:
        data = {"version": COIN_STORAGE_VERSION, **snapshot}
        self.data_dir.mkdir(parents=True, exist_ok=True)

        # Write to a temp file in the same directory, then atomically replace
        fd, tmp_name = tempfile.mkstemp(dir=self.data_dir, prefix=".coins-", suffix=".json")
        try:
            with os.fdopen(fd, "w", encoding="utf-8") as f:
                json.dump(data, f, indent=2)
            os.replace(tmp_name, self.path)
        except OSError as e:
            Path(tmp_name).unlink(missing_ok=True)
            raise StorageError(f"Failed to write {self.path}: {e}") from e

        logger.debug(f"Saved {len(data.get('coins', []))} coins to {self.path}")

    def load_into(self, manager: CoinManager) -> CoinManager:
        snapshot = self.read()
        try:
            manager.load_snapshot(snapshot)
        except (TypeError, ValueError) as e:
            raise StorageError(f"Invalid coin data in {self.path}: {e}") from e
        return manager

    def save(self, manager: CoinManager) -> None:
        self.write(manager.to_snapshot())
