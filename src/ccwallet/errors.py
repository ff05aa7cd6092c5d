"""
Exception hierarchy for the wallet coin layer.
"""

from __future__ import annotations


class CCWalletError(Exception):
    """Base class for wallet errors."""

    pass


class NoAuthorityBoundError(CCWalletError):
    """A coin state method was called on a coin without an authority."""

    pass


class InvalidArgumentError(CCWalletError, ValueError):
    """A query builder or manager method received malformed input."""

    pass


class CoinNotFoundError(CCWalletError):
    pass


class TxNotFoundError(CCWalletError):
    pass


class IncompatibleColorError(CCWalletError):
    """Arithmetic between color values of different colors."""

    pass


class StorageError(CCWalletError):
    pass
