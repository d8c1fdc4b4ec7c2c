import json

import pytest

from web3_wallet.errors import ValidationError
from web3_wallet.settings import SETTINGS_KEY, AppSettings, SettingsService


@pytest.mark.asyncio
async def test_defaults_when_nothing_stored(store):
    assert await SettingsService(store).get() == AppSettings()


@pytest.mark.asyncio
async def test_update_persists_camel_case(store):
    service = SettingsService(store)

    updated = await service.update(show_testnets=True, currency="eur")

    assert updated.show_testnets is True
    saved = json.loads(store.blobs[SETTINGS_KEY])
    assert saved == {
        "currency": "eur",
        "showTestnets": True,
        "privateWallets": False,
        "privateBalances": False,
    }


@pytest.mark.asyncio
async def test_update_merges_with_stored_values(store):
    service = SettingsService(store)
    await service.update(private_wallets=True)

    await service.update(currency="eur")

    current = await service.get()
    assert current.private_wallets is True
    assert current.currency == "eur"


@pytest.mark.asyncio
async def test_string_values_are_coerced(store):
    updated = await SettingsService(store).update(private_balances="true")

    assert updated.private_balances is True


@pytest.mark.asyncio
async def test_unknown_setting_is_rejected(store):
    with pytest.raises(ValidationError, match="Unknown setting"):
        await SettingsService(store).update(theme="dark")
    assert store.writes == []


@pytest.mark.asyncio
async def test_invalid_value_is_rejected(store):
    with pytest.raises(ValidationError):
        await SettingsService(store).update(currency="btc")
    assert store.writes == []


@pytest.mark.asyncio
async def test_corrupt_settings_fall_back_to_defaults(store):
    store.blobs[SETTINGS_KEY] = "{oops"

    assert await SettingsService(store).get() == AppSettings()
