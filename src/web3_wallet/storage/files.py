"""Directory-backed store: one file per key under a root directory."""

from __future__ import annotations

import asyncio
import logging
import os
import tempfile
from pathlib import Path

from web3_wallet.errors import NotFoundError, PersistenceError

logger = logging.getLogger("web3_wallet.storage.files")


class FileStore:
    """Stores blobs as UTF-8 files below *root*.

    Writes go to a temporary sibling file that is then renamed over the
    target, so a failed write never leaves a truncated blob behind.
    """

    def __init__(self, root: Path) -> None:
        self.root = Path(root)

    def _path(self, key: str) -> Path:
        path = (self.root / key).resolve()
        if self.root.resolve() not in path.parents:
            raise PersistenceError(f"Store key escapes the store root: {key!r}")
        return path

    # ------------------------------------------------------------------
    # Blocking helpers (run in a worker thread)
    # ------------------------------------------------------------------

    def _read_sync(self, key: str) -> str:
        path = self._path(key)
        try:
            return path.read_text(encoding="utf-8")
        except FileNotFoundError:
            raise NotFoundError(f"No stored entry '{key}'") from None
        except OSError as exc:
            raise PersistenceError(f"Failed to read '{key}': {exc}") from exc

    def _write_sync(self, key: str, text: str) -> None:
        path = self._path(key)
        try:
            path.parent.mkdir(parents=True, exist_ok=True)
            fd, tmp_name = tempfile.mkstemp(dir=path.parent, prefix=f".{path.name}.")
            try:
                with os.fdopen(fd, "w", encoding="utf-8") as fh:
                    fh.write(text)
                os.replace(tmp_name, path)
            except BaseException:
                Path(tmp_name).unlink(missing_ok=True)
                raise
        except OSError as exc:
            raise PersistenceError(f"Failed to write '{key}': {exc}") from exc

    def _list_sync(self, prefix: str) -> list[str]:
        directory = self._path(prefix) if prefix else self.root
        if not directory.is_dir():
            return []
        try:
            return sorted(
                p.name
                for p in directory.iterdir()
                if p.is_file() and not p.name.startswith(".")
            )
        except OSError as exc:
            raise PersistenceError(f"Failed to list '{prefix}': {exc}") from exc

    def _delete_sync(self, key: str) -> None:
        path = self._path(key)
        try:
            path.unlink()
        except FileNotFoundError:
            raise NotFoundError(f"No stored entry '{key}'") from None
        except OSError as exc:
            raise PersistenceError(f"Failed to delete '{key}': {exc}") from exc

    # ------------------------------------------------------------------
    # Store protocol
    # ------------------------------------------------------------------

    async def read(self, key: str) -> str:
        return await asyncio.to_thread(self._read_sync, key)

    async def write(self, key: str, text: str) -> None:
        await asyncio.to_thread(self._write_sync, key, text)
        logger.debug(f"Wrote {key} ({len(text)} chars)")

    async def exists(self, key: str) -> bool:
        return await asyncio.to_thread(self._path(key).is_file)

    async def list(self, prefix: str) -> list[str]:
        return await asyncio.to_thread(self._list_sync, prefix)

    async def delete(self, key: str) -> None:
        await asyncio.to_thread(self._delete_sync, key)
        logger.debug(f"Deleted {key}")
