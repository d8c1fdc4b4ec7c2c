"""Encrypted keystore management using eth-account.

Each wallet is one Web3 Secret Storage (v3) JSON blob stored under
``keystores/<lowercase address>.json``.
"""

from __future__ import annotations

import asyncio
import json
import logging
from typing import Optional

from eth_account import Account
from web3 import Web3

from web3_wallet.errors import CryptoError, NotFoundError, ValidationError
from web3_wallet.storage.base import Store

logger = logging.getLogger("web3_wallet.wallet.keystore")

KEYSTORE_PREFIX = "keystores"


class Keystore:
    """Encrypts, stores and decrypts private keys.

    Parameters
    ----------
    store:
        Where keystore blobs are kept.
    kdf:
        ``"scrypt"`` or ``"pbkdf2"``, passed to ``Account.encrypt``.
    iterations:
        Work factor for *kdf*; ``None`` keeps the eth-account default.
    """

    def __init__(self, store: Store, kdf: str = "scrypt", iterations: Optional[int] = None) -> None:
        self.store = store
        self.kdf = kdf
        self.iterations = iterations

    @staticmethod
    def _key(address: str) -> str:
        if not Web3.is_address(address):
            raise ValidationError(f"Invalid wallet address: {address!r}")
        return f"{KEYSTORE_PREFIX}/{address.lower()}.json"

    async def save(self, private_key: bytes | str, password: str) -> str:
        """Encrypt *private_key* with *password* and store it.

        Returns
        -------
        str
            The checksummed address the key controls.

        Raises
        ------
        ValidationError
            If *private_key* is not a valid secp256k1 key.
        """
        try:
            address = Account.from_key(private_key).address
        except (ValueError, TypeError) as exc:
            raise ValidationError(f"Invalid private key: {exc}") from exc

        encrypted = await asyncio.to_thread(
            Account.encrypt, private_key, password, kdf=self.kdf, iterations=self.iterations
        )
        await self.store.write(self._key(address), json.dumps(encrypted, indent=2))
        logger.info(f"Keystore saved for {address}")
        return address

    async def load(self, address: str, password: str) -> bytes:
        """Decrypt the private key for *address*.

        Raises
        ------
        ValidationError
            If *address* is not a hex address.
        NotFoundError
            If no keystore exists for *address*.
        CryptoError
            If the password is wrong or the blob is corrupt.
        """
        raw = await self.store.read(self._key(address))
        try:
            data = json.loads(raw)
            key = await asyncio.to_thread(Account.decrypt, data, password)
        except (ValueError, KeyError, TypeError) as exc:
            raise CryptoError(f"Failed to decrypt keystore for {address}: {exc}") from exc
        return bytes(key)

    async def list(self) -> list[str]:
        """Addresses with a stored keystore (lowercase, sorted)."""
        names = await self.store.list(KEYSTORE_PREFIX)
        return sorted(n[: -len(".json")] for n in names if n.endswith(".json"))

    async def exists(self, address: str) -> bool:
        return await self.store.exists(self._key(address))

    async def delete(self, address: str) -> None:
        if not await self.exists(address):
            raise NotFoundError(f"No wallet {address}")
        await self.store.delete(self._key(address))
        logger.info(f"Keystore deleted for {address}")
