"""
Core data models using Pydantic for validation and serialization.
"""

from __future__ import annotations

import time

from pydantic import BaseModel, Field, model_validator

from ccwallet.constants import UNCOLORED_COLOR_ID
from ccwallet.errors import IncompatibleColorError

HEX_PATTERN = r"^([0-9a-fA-F]{2})*$"
TXID_PATTERN = r"^[0-9a-fA-F]{64}$"


class RawCoin(BaseModel):
    """Interchange format of a single unspent output reference."""

    txid: str = Field(..., pattern=TXID_PATTERN)
    oidx: int = Field(..., ge=0)
    value: int = Field(..., ge=0)
    script: str = Field(..., pattern=HEX_PATTERN)

    model_config = {"frozen": True}


class ColorDefinition(BaseModel):
    color_id: int = Field(..., ge=0)
    desc: str = ""

    model_config = {"frozen": True}

    def is_uncolored(self) -> bool:
        return self.color_id == UNCOLORED_COLOR_ID


UNCOLORED = ColorDefinition(color_id=UNCOLORED_COLOR_ID, desc="")


class ColorValue(BaseModel):
    """
    Quantity of a single color.

    Values of the same color can be added and subtracted; mixing colors
    raises IncompatibleColorError.
    """

    color_id: int = Field(..., ge=0)
    value: int

    model_config = {"frozen": True}

    @classmethod
    def uncolored(cls, value: int) -> ColorValue:
        return cls(color_id=UNCOLORED_COLOR_ID, value=value)

    def is_uncolored(self) -> bool:
        return self.color_id == UNCOLORED_COLOR_ID

    def zero(self) -> ColorValue:
        return ColorValue(color_id=self.color_id, value=0)

    def _check_compatibility(self, other: ColorValue) -> None:
        if self.color_id != other.color_id:
            raise IncompatibleColorError(
                f"Cannot combine color {self.color_id} with color {other.color_id}"
            )

    def __add__(self, other: ColorValue) -> ColorValue:
        self._check_compatibility(other)
        return ColorValue(color_id=self.color_id, value=self.value + other.value)

    def __sub__(self, other: ColorValue) -> ColorValue:
        self._check_compatibility(other)
        return ColorValue(color_id=self.color_id, value=self.value - other.value)

    def __str__(self) -> str:
        return f"{self.color_id}: {self.value}"


class FreezeOptions(BaseModel):
    """
    When a freeze expires. Exactly one of the fields must be set:
    - height: block height lock
    - timestamp: absolute unix timestamp lock
    - from_now: seconds from the moment the freeze is applied
    """

    height: int | None = Field(default=None, ge=0)
    timestamp: int | None = Field(default=None, ge=0)
    from_now: int | None = Field(default=None, ge=0)

    model_config = {"frozen": True}

    @model_validator(mode="after")
    def check_single_expiry(self) -> FreezeOptions:
        provided = [v for v in (self.height, self.timestamp, self.from_now) if v is not None]
        if len(provided) != 1:
            raise ValueError("Exactly one of height, timestamp or from_now is required")
        return self

    def lock_time(self, now: int | None = None) -> int:
        if self.height is not None:
            return self.height
        if self.timestamp is not None:
            return self.timestamp
        if now is None:
            now = int(time.time())
        return now + (self.from_now or 0)


class CoinRecord(BaseModel):
    """Authority-side record of a wallet coin."""

    txid: str = Field(..., pattern=TXID_PATTERN)
    oidx: int = Field(..., ge=0)
    value: int = Field(..., ge=0)
    script: str = Field(..., pattern=HEX_PATTERN)
    addresses: list[str] = Field(default_factory=list)
    lock_time: int = Field(default=0, ge=0)
    # Color annotation, uncolored when unset
    color_id: int | None = Field(default=None, ge=0)
    color_value: int | None = None

    def to_raw_coin(self) -> RawCoin:
        return RawCoin(txid=self.txid, oidx=self.oidx, value=self.value, script=self.script)

    def get_color_value(self) -> ColorValue:
        if self.color_id is None or self.color_id == UNCOLORED_COLOR_ID:
            return ColorValue.uncolored(self.value)
        value = self.color_value if self.color_value is not None else self.value
        return ColorValue(color_id=self.color_id, value=value)
