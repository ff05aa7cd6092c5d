"""
Wallet configuration.

Settings come from, highest priority first: a JSON config file,
CCWALLET_* environment variables (nested fields use "__", e.g.
CCWALLET_DEFAULT_QUERY__INCLUDE_SPENT=true), a .env file, then defaults.
"""

from __future__ import annotations

import json
from pathlib import Path

from pydantic import BaseModel, Field, ValidationError, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

from ccwallet.errors import CCWalletError

ENV_PREFIX = "CCWALLET_"
DATA_DIR_ENV = f"{ENV_PREFIX}DATA_DIR"


class QueryDefaults(BaseModel):
    """Include flags applied to CLI coin listings unless overridden."""

    include_spent: bool = False
    include_unconfirmed: bool = False
    include_frozen: bool = False


class WalletConfig(BaseSettings):
    model_config = SettingsConfigDict(
        env_prefix=ENV_PREFIX,
        env_nested_delimiter="__",
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore",
    )

    data_dir: Path = Field(default_factory=lambda: Path.home() / ".ccwallet")
    log_level: str = "INFO"
    default_query: QueryDefaults = Field(default_factory=QueryDefaults)

    @field_validator("log_level")
    @classmethod
    def validate_log_level(cls, v: str) -> str:
        level = v.upper()
        if level not in {"TRACE", "DEBUG", "INFO", "SUCCESS", "WARNING", "ERROR", "CRITICAL"}:
            raise ValueError(f"Unknown log level: {v}")
        return level


def load_config(path: Path | None = None) -> WalletConfig:
    """Load configuration, reading the JSON file at path if given."""
    data: dict = {}
    if path is not None:
        try:
            data = json.loads(Path(path).read_text(encoding="utf-8"))
        except (OSError, json.JSONDecodeError) as e:
            raise CCWalletError(f"Failed to load config {path}: {e}") from e

    try:
        return WalletConfig(**data)
    except (TypeError, ValidationError) as e:
        raise CCWalletError(f"Invalid config {path}: {e}") from e
