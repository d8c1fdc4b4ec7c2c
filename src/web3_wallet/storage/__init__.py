"""Persistent store adapters -- plain files or async SQLite."""

from web3_wallet.storage.base import Store
from web3_wallet.storage.database import SqliteStore
from web3_wallet.storage.files import FileStore

__all__ = [
    "Store",
    "FileStore",
    "SqliteStore",
]
