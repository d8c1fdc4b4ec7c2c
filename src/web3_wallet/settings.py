"""User preferences persisted next to the registries as ``settings.json``."""

from __future__ import annotations

import json
import logging
from typing import Any, Literal

from pydantic import BaseModel, ConfigDict, Field
from pydantic import ValidationError as PydanticValidationError

from web3_wallet.errors import ValidationError
from web3_wallet.storage.base import Store

logger = logging.getLogger("web3_wallet.settings")

SETTINGS_KEY = "settings.json"


class AppSettings(BaseModel):
    """Display preferences shared by every front end."""

    model_config = ConfigDict(populate_by_name=True)

    currency: Literal["usd", "eur"] = "usd"
    show_testnets: bool = Field(default=False, alias="showTestnets")
    private_wallets: bool = Field(default=False, alias="privateWallets")
    private_balances: bool = Field(default=False, alias="privateBalances")


class SettingsService:
    """Read-merge-write access to :class:`AppSettings`."""

    def __init__(self, store: Store) -> None:
        self.store = store

    async def get(self) -> AppSettings:
        """Stored settings merged over the defaults.

        A missing or unreadable blob yields the defaults; preferences are not
        worth failing a command over.
        """
        if not await self.store.exists(SETTINGS_KEY):
            return AppSettings()
        raw = await self.store.read(SETTINGS_KEY)
        try:
            return AppSettings.model_validate(json.loads(raw))
        except (json.JSONDecodeError, PydanticValidationError) as exc:
            logger.warning(f"Ignoring corrupt {SETTINGS_KEY}: {exc}")
            return AppSettings()

    async def update(self, **changes: Any) -> AppSettings:
        """Apply *changes* (snake_case field names) and persist the result."""
        unknown = set(changes) - set(AppSettings.model_fields)
        if unknown:
            raise ValidationError(f"Unknown setting(s): {', '.join(sorted(unknown))}")
        current = await self.get()
        merged = current.model_dump() | changes
        try:
            updated = AppSettings.model_validate(merged)
        except PydanticValidationError as exc:
            raise ValidationError(f"Invalid settings: {exc}") from exc
        await self.store.write(
            SETTINGS_KEY, json.dumps(updated.model_dump(by_alias=True), indent=2)
        )
        return updated
