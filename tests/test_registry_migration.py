import json

import pytest

from web3_wallet.errors import PersistenceError
from web3_wallet.registry.chains import DEFAULT_CHAINS, ChainRegistry
from web3_wallet.registry.models import ChainDefinition
from web3_wallet.registry.tokens import TokenRegistry

from conftest import MemoryStore


def _dump(chain):
    return chain.model_dump(mode="json", by_alias=True, exclude_none=True)


@pytest.mark.asyncio
async def test_legacy_list_keeps_only_changed_and_new_entries():
    eth = _dump(DEFAULT_CHAINS[0]) | {"rpcUrl": "https://custom-eth.example"}
    polygon = _dump(next(c for c in DEFAULT_CHAINS if c.id == 137))
    custom = {"id": 999, "name": "Custom", "symbol": "CST", "rpcUrl": "https://rpc.custom", "decimals": 18}
    store = MemoryStore({"chains.json": json.dumps([eth, polygon, custom])})
    chains = ChainRegistry(store)

    result = await chains.list()

    assert len(result) == 7
    assert (await chains.get(1)).rpc_url == "https://custom-eth.example"
    saved = json.loads(store.blobs["chains.json"])
    assert [c["id"] for c in saved["added"]] == [1, 999]
    assert saved["removed"] == []


@pytest.mark.asyncio
async def test_legacy_snapshot_of_defaults_migrates_to_empty_overlay():
    store = MemoryStore({"chains.json": json.dumps([_dump(c) for c in DEFAULT_CHAINS])})
    chains = ChainRegistry(store)

    result = await chains.list()

    assert result == list(DEFAULT_CHAINS)
    assert json.loads(store.blobs["chains.json"]) == {"added": [], "removed": []}


@pytest.mark.asyncio
async def test_legacy_entry_without_testnet_flag_equals_default():
    eth = _dump(DEFAULT_CHAINS[0])
    eth.pop("testnet", None)
    store = MemoryStore({"chains.json": json.dumps([eth])})

    await ChainRegistry(store).list()

    assert json.loads(store.blobs["chains.json"])["added"] == []


@pytest.mark.asyncio
async def test_migration_writes_back_once():
    legacy = [{"id": 999, "name": "Custom", "symbol": "CST", "rpcUrl": "https://rpc.custom", "decimals": 18}]
    store = MemoryStore({"chains.json": json.dumps(legacy)})
    chains = ChainRegistry(store)

    first = await chains.list()
    second = await chains.list()
    await chains.get(999)

    assert first == second
    assert store.writes == ["chains.json"]


@pytest.mark.asyncio
async def test_legacy_token_list_migrates():
    legacy = [
        {"address": "0xdAC17F958D2ee523a2206206994597C13D831ec7", "symbol": "USDT", "decimals": 6, "chainId": 1},
        {"address": "0x1111111111111111111111111111111111111111", "symbol": "NEW", "decimals": 18, "chainId": 1},
    ]
    store = MemoryStore({"tokens.json": json.dumps(legacy)})
    tokens = TokenRegistry(store)

    await tokens.list()

    saved = json.loads(store.blobs["tokens.json"])
    assert [t["symbol"] for t in saved["added"]] == ["NEW"]


@pytest.mark.asyncio
async def test_corrupt_json_raises_persistence_error():
    store = MemoryStore({"chains.json": "{not json"})

    with pytest.raises(PersistenceError):
        await ChainRegistry(store).list()


@pytest.mark.asyncio
async def test_unrecognized_shape_raises_persistence_error():
    store = MemoryStore({"chains.json": json.dumps("just a string")})

    with pytest.raises(PersistenceError):
        await ChainRegistry(store).list()


@pytest.mark.asyncio
async def test_invalid_entry_raises_persistence_error():
    store = MemoryStore({"chains.json": json.dumps({"added": [{"id": "abc"}], "removed": []})})

    with pytest.raises(PersistenceError):
        await ChainRegistry(store).list()


@pytest.mark.asyncio
async def test_failed_write_leaves_previous_overlay(store):
    chains = ChainRegistry(store)
    await chains.remove(56)
    before = store.blobs["chains.json"]
    store.fail_writes = True

    with pytest.raises(PersistenceError):
        await chains.add(ChainDefinition(id=10, name="OP", symbol="ETH", rpc_url="https://op", decimals=18))

    assert store.blobs["chains.json"] == before
    assert await chains.get(10) is None
    assert await chains.get(56) is None


@pytest.mark.asyncio
async def test_failed_write_during_remove_leaves_previous_overlay(store):
    chains = ChainRegistry(store)
    await chains.add(ChainDefinition(id=10, name="OP", symbol="ETH", rpc_url="https://op", decimals=18))
    before = store.blobs["chains.json"]
    store.fail_writes = True

    with pytest.raises(PersistenceError):
        await chains.remove(1)
    with pytest.raises(PersistenceError):
        await chains.remove(10)

    assert store.blobs["chains.json"] == before
    assert await chains.get(1) is not None
    assert await chains.get(10) is not None


@pytest.mark.asyncio
async def test_read_failure_is_fatal_for_every_operation(store):
    chains = ChainRegistry(store)
    await chains.remove(56)
    store.fail_reads = True

    with pytest.raises(PersistenceError):
        await chains.list()
    with pytest.raises(PersistenceError):
        await chains.get(1)
    with pytest.raises(PersistenceError):
        await chains.remove(1)
    assert store.writes == ["chains.json"]
