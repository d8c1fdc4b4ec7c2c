"""Overlay engine shared by the chain and token registries.

The effective list of entities is the compiled-in defaults with a persisted
:class:`Overlay` applied on top. The overlay is the only persisted state;
it is re-read from the store on every call and rewritten in full on every
change, so several processes sharing one store see each other's edits.

Two JSON shapes are understood:

* current -- ``{"added": [<entity>, ...], "removed": [<key>, ...]}``
* legacy  -- a flat ``[<entity>, ...]`` snapshot that duplicated every
  default. It is converted on first read and written back in the current
  shape straight away.
"""

from __future__ import annotations

import json
import logging
from abc import ABC, abstractmethod
from typing import Any, Callable, ClassVar, Generic, Optional, Sequence

from pydantic import ValidationError as PydanticValidationError

from web3_wallet.errors import PersistenceError
from web3_wallet.registry.models import (
    DeleteCustom,
    HideDefault,
    K,
    Overlay,
    Removal,
    T,
)
from web3_wallet.storage.base import Store

logger = logging.getLogger("web3_wallet.registry.engine")


class RegistryEngine(ABC, Generic[K, T]):
    """Merge/override/removal logic over defaults plus a persisted overlay.

    Subclasses set :attr:`entity_type`, :attr:`store_key` and
    :attr:`DEFAULTS` and define how an entity maps to its natural key.
    """

    entity_type: ClassVar[type]
    store_key: ClassVar[str]
    DEFAULTS: ClassVar[Sequence[Any]] = ()

    def __init__(self, store: Store, defaults: Optional[Sequence[T]] = None) -> None:
        self.store = store
        self._defaults: tuple[T, ...] = tuple(self.DEFAULTS if defaults is None else defaults)

    # ------------------------------------------------------------------
    # Key handling (per registry)
    # ------------------------------------------------------------------

    @abstractmethod
    def key_of(self, entity: T) -> K:
        """Natural key of *entity*."""

    @abstractmethod
    def normalize_key(self, key: Any) -> K:
        """Canonical form of a caller-supplied key."""

    @abstractmethod
    def dump_key(self, key: K) -> Any:
        """JSON representation of *key* in the ``removed`` list."""

    @abstractmethod
    def load_key(self, raw: Any) -> K:
        """Inverse of :meth:`dump_key`."""

    # ------------------------------------------------------------------
    # Public API
    # ------------------------------------------------------------------

    def list_defaults(self) -> list[T]:
        """Return a fresh copy of the compiled-in defaults."""
        return list(self._defaults)

    async def list(self, where: Optional[Callable[[T], bool]] = None) -> list[T]:
        """Effective entities: defaults first (in fixed order), then custom ones."""
        overlay = await self._load_overlay()
        merged = self._merge(overlay)
        if where is None:
            return merged
        return [entity for entity in merged if where(entity)]

    async def get(self, key: Any) -> Optional[T]:
        wanted = self.normalize_key(key)
        for entity in await self.list():
            if self.key_of(entity) == wanted:
                return entity
        return None

    async def add(self, entity: T) -> None:
        """Insert or override *entity*; re-adding a hidden default un-hides it."""
        key = self.key_of(entity)
        overlay = (await self._load_overlay()).copy()
        overlay.added[key] = entity
        if key in overlay.removed:
            overlay.removed.remove(key)
        await self._save_overlay(overlay)
        logger.info(f"{self.store_key}: saved {key!r}")

    async def remove(self, key: Any) -> bool:
        """Hide a default or delete a custom entity. ``False`` if nothing changed."""
        key = self.normalize_key(key)
        overlay = await self._load_overlay()
        removal = self._plan_removal(overlay, key)
        if removal is None:
            return False
        await self._save_overlay(self._apply_removal(overlay, removal))
        logger.info(f"{self.store_key}: {type(removal).__name__} {key!r}")
        return True

    # ------------------------------------------------------------------
    # Merge / removal
    # ------------------------------------------------------------------

    def _default_keys(self) -> set[K]:
        return {self.key_of(d) for d in self._defaults}

    def _merge(self, overlay: Overlay[K, T]) -> list[T]:
        pending = dict(overlay.added)
        removed = set(overlay.removed)
        result: list[T] = []
        for default in self._defaults:
            key = self.key_of(default)
            if key in removed:
                continue
            result.append(pending.pop(key, default))
        result.extend(pending.values())
        return result

    def _plan_removal(self, overlay: Overlay[K, T], key: K) -> Optional[Removal]:
        if key in self._default_keys():
            if key in overlay.removed and key not in overlay.added:
                return None
            return HideDefault(key)
        if key in overlay.added:
            return DeleteCustom(key)
        return None

    @staticmethod
    def _apply_removal(overlay: Overlay[K, T], removal: Removal) -> Overlay[K, T]:
        result = overlay.copy()
        result.added.pop(removal.key, None)
        if isinstance(removal, HideDefault) and removal.key not in result.removed:
            result.removed.append(removal.key)
        return result

    # ------------------------------------------------------------------
    # Persistence
    # ------------------------------------------------------------------

    def _parse_entity(self, raw: Any) -> T:
        try:
            return self.entity_type.model_validate(raw)
        except PydanticValidationError as exc:
            raise PersistenceError(f"Invalid entry in {self.store_key}: {exc}") from exc

    def _migrate(self, legacy: list[Any]) -> Overlay[K, T]:
        """Keep only entries that are new or differ from their default."""
        defaults = {self.key_of(d): d for d in self._defaults}
        overlay: Overlay[K, T] = Overlay()
        for raw in legacy:
            entity = self._parse_entity(raw)
            key = self.key_of(entity)
            if defaults.get(key) != entity:
                overlay.added[key] = entity
        return overlay

    def _decode(self, data: dict) -> Overlay[K, T]:
        added = data.get("added", [])
        removed = data.get("removed", [])
        if not isinstance(added, list) or not isinstance(removed, list):
            raise PersistenceError(f"Malformed overlay in {self.store_key}")
        overlay: Overlay[K, T] = Overlay()
        for raw in added:
            entity = self._parse_entity(raw)
            overlay.added[self.key_of(entity)] = entity
        for raw in removed:
            try:
                key = self.load_key(raw)
            except (TypeError, ValueError) as exc:
                raise PersistenceError(f"Invalid key {raw!r} in {self.store_key}") from exc
            if key not in overlay.added and key not in overlay.removed:
                overlay.removed.append(key)
        return overlay

    def _encode(self, overlay: Overlay[K, T]) -> str:
        data = {
            "added": [
                entity.model_dump(mode="json", by_alias=True, exclude_none=True)
                for entity in overlay.added.values()
            ],
            "removed": [self.dump_key(key) for key in overlay.removed],
        }
        return json.dumps(data, indent=2)

    async def _load_overlay(self) -> Overlay[K, T]:
        if not await self.store.exists(self.store_key):
            return Overlay()
        raw = await self.store.read(self.store_key)
        try:
            data = json.loads(raw)
        except json.JSONDecodeError as exc:
            raise PersistenceError(f"{self.store_key} is not valid JSON: {exc}") from exc

        if isinstance(data, list):
            overlay = self._migrate(data)
            await self._save_overlay(overlay)
            logger.info(
                f"Migrated legacy {self.store_key}: {len(data)} entries -> "
                f"{len(overlay.added)} custom"
            )
            return overlay
        if isinstance(data, dict):
            return self._decode(data)
        raise PersistenceError(f"Unrecognized overlay format in {self.store_key}")

    async def _save_overlay(self, overlay: Overlay[K, T]) -> None:
        await self.store.write(self.store_key, self._encode(overlay))
