"""Store protocol consumed by registries, settings and the keystore."""

from __future__ import annotations

from typing import Protocol


class Store(Protocol):
    """Asynchronous key -> text blob storage.

    Keys are ``/``-separated relative names such as ``chains.json`` or
    ``keystores/0xabc....json``. ``write`` must replace the whole blob in a
    single step so readers never observe a partial value.
    """

    async def read(self, key: str) -> str:
        """Return the blob. Raises ``NotFoundError`` if it does not exist."""
        ...

    async def write(self, key: str, text: str) -> None:
        ...

    async def exists(self, key: str) -> bool:
        ...

    async def list(self, prefix: str) -> list[str]:
        """Return the names (last path segment) stored directly under *prefix*."""
        ...

    async def delete(self, key: str) -> None:
        ...
