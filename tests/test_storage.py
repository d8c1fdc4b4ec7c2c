import pytest
import pytest_asyncio

from web3_wallet.errors import NotFoundError, PersistenceError
from web3_wallet.registry.chains import ChainRegistry
from web3_wallet.storage.database import SqliteStore
from web3_wallet.storage.files import FileStore


@pytest_asyncio.fixture
async def sqlite_store(tmp_path):
    async with SqliteStore(tmp_path / "db" / "wallet.db") as store:
        yield store


@pytest_asyncio.fixture(params=["files", "sqlite"])
async def any_store(request, tmp_path):
    if request.param == "files":
        yield FileStore(tmp_path)
    else:
        async with SqliteStore(tmp_path / "wallet.db") as store:
            yield store


@pytest.mark.asyncio
async def test_write_then_read(any_store):
    await any_store.write("chains.json", '{"added": []}')

    assert await any_store.read("chains.json") == '{"added": []}'
    assert await any_store.exists("chains.json")


@pytest.mark.asyncio
async def test_overwrite_replaces_whole_blob(any_store):
    await any_store.write("settings.json", "first version, longer")
    await any_store.write("settings.json", "second")

    assert await any_store.read("settings.json") == "second"


@pytest.mark.asyncio
async def test_read_missing_raises_not_found(any_store):
    assert not await any_store.exists("nope.json")
    with pytest.raises(NotFoundError):
        await any_store.read("nope.json")


@pytest.mark.asyncio
async def test_list_returns_direct_children_only(any_store):
    await any_store.write("keystores/0xb.json", "b")
    await any_store.write("keystores/0xa.json", "a")
    await any_store.write("keystores/nested/0xc.json", "c")
    await any_store.write("tokens.json", "t")

    assert await any_store.list("keystores") == ["0xa.json", "0xb.json"]
    assert await any_store.list("missing") == []


@pytest.mark.asyncio
async def test_delete(any_store):
    await any_store.write("keystores/0xa.json", "a")

    await any_store.delete("keystores/0xa.json")

    assert not await any_store.exists("keystores/0xa.json")
    with pytest.raises(NotFoundError):
        await any_store.delete("keystores/0xa.json")


@pytest.mark.asyncio
async def test_registry_persists_across_instances(any_store):
    await ChainRegistry(any_store).remove(56)

    assert await ChainRegistry(any_store).get(56) is None


@pytest.mark.asyncio
async def test_file_store_leaves_no_temp_files(tmp_path):
    store = FileStore(tmp_path)

    await store.write("chains.json", "x")
    await store.write("chains.json", "y")

    assert sorted(p.name for p in tmp_path.iterdir()) == ["chains.json"]


@pytest.mark.asyncio
async def test_file_store_rejects_keys_outside_root(tmp_path):
    store = FileStore(tmp_path / "home")

    with pytest.raises(PersistenceError):
        await store.write("../escape.json", "x")


@pytest.mark.asyncio
async def test_sqlite_store_creates_parent_directories(sqlite_store, tmp_path):
    await sqlite_store.write("chains.json", "x")

    assert (tmp_path / "db" / "wallet.db").exists()
