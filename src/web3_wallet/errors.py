"""Exception hierarchy shared by the wallet services."""

from __future__ import annotations


class WalletError(Exception):
    """Base class for every error raised by ``web3_wallet``."""


class NotFoundError(WalletError, KeyError):
    """A referenced chain, token, wallet or store entry does not exist."""

    def __str__(self) -> str:
        # KeyError quotes its argument; keep plain messages.
        return Exception.__str__(self)


class ValidationError(WalletError, ValueError):
    """Malformed user input (amount, address, key material)."""


class CryptoError(WalletError):
    """Key material could not be decrypted (wrong password, corrupt blob)."""


class NetworkError(WalletError):
    """JSON-RPC failure or rejected transaction."""


class PersistenceError(WalletError):
    """The store could not be read or written."""
