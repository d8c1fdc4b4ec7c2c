"""Wires stores, registries, keystore, provider and orchestrator together.

Every front end builds its own :class:`WalletServices` and passes it down;
there are no module-level service singletons.
"""

from __future__ import annotations

import logging
from pathlib import Path
from typing import Optional

from web3_wallet.config import CONFIG_FILENAME, WalletConfig, get_home_dir, load_config, resolve_path
from web3_wallet.registry.chains import ChainRegistry
from web3_wallet.registry.tokens import TokenRegistry
from web3_wallet.settings import SettingsService
from web3_wallet.storage.base import Store
from web3_wallet.storage.database import SqliteStore
from web3_wallet.storage.files import FileStore
from web3_wallet.transfer.orchestrator import TransferOrchestrator
from web3_wallet.wallet.keystore import Keystore
from web3_wallet.wallet.manager import WalletManager
from web3_wallet.wallet.provider import Web3Provider

logger = logging.getLogger("web3_wallet.services")


class WalletServices:
    """All service handles for one process, built around one store."""

    def __init__(
        self,
        config: WalletConfig,
        store: Store,
        provider: Optional[Web3Provider] = None,
    ) -> None:
        self.config = config
        self.store = store
        self.chains = ChainRegistry(store)
        self.tokens = TokenRegistry(store)
        self.settings = SettingsService(store)
        self.keystore = Keystore(
            store, kdf=config.keystore.kdf, iterations=config.keystore.iterations
        )
        self.wallets = WalletManager(self.keystore)
        self.provider = provider or Web3Provider(
            priority_fee_gwei=config.transfer.priority_fee_gwei,
            receipt_timeout=config.transfer.receipt_timeout,
            inject_poa_middleware=config.transfer.inject_poa_middleware,
        )
        self.transfers = TransferOrchestrator(
            self.keystore,
            self.provider,
            legacy_fee_divisor=config.transfer.legacy_fee_divisor,
        )

    @classmethod
    async def load(cls, home: Path | None = None) -> "WalletServices":
        """Build services from ``<home>/config.yaml`` (defaults if absent)."""
        home = home or get_home_dir()
        config = load_config(home / CONFIG_FILENAME)

        store: Store
        if config.storage.backend == "sqlite":
            store = SqliteStore(resolve_path(config.storage.sqlite_path, home))
            await store.connect()
        else:
            store = FileStore(home)
        logger.debug(f"Using {config.storage.backend} store at {home}")
        return cls(config=config, store=store)

    async def shutdown(self) -> None:
        """Clean shutdown."""
        if isinstance(self.store, SqliteStore):
            await self.store.close()
        self.provider.clear()
