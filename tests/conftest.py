import pytest

from web3_wallet.errors import NotFoundError, PersistenceError
from web3_wallet.registry.chains import ChainRegistry
from web3_wallet.registry.models import ChainDefinition
from web3_wallet.registry.tokens import TokenRegistry
from web3_wallet.transfer.fees import FeeData

SENDER = "0xf39Fd6e51aad88F6F4ce6aB8827279cffFb92266"
SENDER_KEY = "0xac0974bec39a17e36ba4a6b4d238ff944bacb478cbed5efcae784d7bf4f2ff80"


class MemoryStore:
    """In-memory store that counts writes and can be told to fail I/O."""

    def __init__(self, blobs=None):
        self.blobs = dict(blobs or {})
        self.writes = []
        self.fail_writes = False
        self.fail_reads = False

    async def read(self, key):
        if self.fail_reads:
            raise PersistenceError(f"I/O error while reading {key}")
        if key not in self.blobs:
            raise NotFoundError(f"No stored entry '{key}'")
        return self.blobs[key]

    async def write(self, key, text):
        if self.fail_writes:
            raise PersistenceError(f"disk full while writing {key}")
        self.writes.append(key)
        self.blobs[key] = text

    async def exists(self, key):
        return key in self.blobs

    async def list(self, prefix):
        base = prefix.rstrip("/") + "/"
        return sorted(k[len(base):] for k in self.blobs if k.startswith(base) and "/" not in k[len(base):])

    async def delete(self, key):
        if key not in self.blobs:
            raise NotFoundError(f"No stored entry '{key}'")
        del self.blobs[key]


class FakeKeystore:
    def __init__(self, secret=b"\x01" * 32, error=None):
        self.secret = secret
        self.error = error
        self.calls = []

    async def load(self, address, password):
        self.calls.append((address, password))
        if self.error is not None:
            raise self.error
        return self.secret


class FakeNetwork:
    """Records submissions; ``failures`` maps 1-based call number -> exception."""

    def __init__(self, fee_data=None, failures=None):
        self.fee_data = fee_data or FeeData(gas_price=50_000_000_000, max_fee_per_gas=60_000_000_000)
        self.failures = failures or {}
        self.fee_queries = 0
        self.submitted = []

    async def get_fee_estimate(self, chain):
        self.fee_queries += 1
        return self.fee_data

    async def _record(self, kind, to, value, fee, token=None):
        self.submitted.append({"kind": kind, "to": to, "value": value, "fee": fee, "token": token})
        call = len(self.submitted)
        if call in self.failures:
            raise self.failures[call]
        return f"0xtx{call}"

    async def submit(self, secret, chain, to, value, fee):
        return await self._record("native", to, value, fee)

    async def submit_token_transfer(self, secret, chain, token, to, value, fee):
        return await self._record("token", to, value, fee, token=token)


@pytest.fixture
def store():
    return MemoryStore()


@pytest.fixture
def chains(store):
    return ChainRegistry(store)


@pytest.fixture
def tokens(store):
    return TokenRegistry(store)


@pytest.fixture
def sepolia():
    return ChainDefinition(
        id=11155111,
        name="Sepolia",
        symbol="ETH",
        rpc_url="https://rpc.sepolia.org",
        decimals=18,
        testnet=True,
    )
