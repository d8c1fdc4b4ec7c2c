"""High-level wallet lifecycle used by the CLI and other front ends."""

from __future__ import annotations

import logging
from dataclasses import dataclass

from eth_account import Account
from eth_keys import keys
from eth_utils import ValidationError as EthValidationError
from web3 import Web3

from web3_wallet.errors import ValidationError
from web3_wallet.wallet.keystore import Keystore

logger = logging.getLogger("web3_wallet.wallet.manager")

Account.enable_unaudited_hdwallet_features()


@dataclass(frozen=True)
class WalletCreateResult:
    address: str
    public_key: str
    private_key: str
    mnemonic: str


def _public_key_hex(private_key: bytes) -> str:
    """Uncompressed SEC1 public key (``0x04`` + X + Y)."""
    return "0x04" + keys.PrivateKey(private_key).public_key.to_bytes().hex()


class WalletManager:
    """Creates, imports, exports and deletes keystore-backed wallets."""

    def __init__(self, keystore: Keystore) -> None:
        self.keystore = keystore

    # ------------------------------------------------------------------
    # Wallet lifecycle
    # ------------------------------------------------------------------

    async def create(self, password: str) -> WalletCreateResult:
        """Generate a new account with a BIP-39 mnemonic and store it encrypted."""
        acct, mnemonic = Account.create_with_mnemonic()
        await self.keystore.save(acct.key, password)
        logger.info(f"Wallet created: {acct.address}")
        return WalletCreateResult(
            address=acct.address,
            public_key=_public_key_hex(bytes(acct.key)),
            private_key=Web3.to_hex(acct.key),
            mnemonic=mnemonic,
        )

    async def import_private_key(self, private_key: str, password: str) -> str:
        """Store an existing private key. Returns the address."""
        if not private_key.startswith("0x"):
            private_key = f"0x{private_key}"
        try:
            acct = Account.from_key(private_key)
        except (ValueError, TypeError) as exc:
            raise ValidationError(f"Invalid private key: {exc}") from exc
        return await self._store_new(acct.key, acct.address, password)

    async def import_mnemonic(self, phrase: str, password: str) -> str:
        """Derive the first account (``m/44'/60'/0'/0/0``) and store it."""
        try:
            acct = Account.from_mnemonic(" ".join(phrase.split()))
        except (EthValidationError, ValueError) as exc:
            raise ValidationError(f"Invalid mnemonic: {exc}") from exc
        return await self._store_new(acct.key, acct.address, password)

    async def _store_new(self, key: bytes, address: str, password: str) -> str:
        if await self.keystore.exists(address):
            raise ValidationError(f"Wallet with address {address} already exists")
        await self.keystore.save(key, password)
        logger.info(f"Wallet imported: {address}")
        return address

    # ------------------------------------------------------------------
    # Key access
    # ------------------------------------------------------------------

    async def export_private_key(self, address: str, password: str) -> str:
        return Web3.to_hex(await self.keystore.load(address, password))

    async def get_public_key(self, address: str, password: str) -> str:
        return _public_key_hex(await self.keystore.load(address, password))

    # ------------------------------------------------------------------
    # Listing / deletion
    # ------------------------------------------------------------------

    async def list(self) -> list[str]:
        """Checksummed addresses of all stored wallets."""
        return [Web3.to_checksum_address(addr) for addr in await self.keystore.list()]

    async def delete(self, address: str) -> None:
        await self.keystore.delete(address)
        logger.info(f"Wallet deleted: {address}")
