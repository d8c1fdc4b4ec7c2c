"""Chain definitions for supported EVM networks."""

from __future__ import annotations

from typing import Any, Callable, Optional

from web3_wallet.registry.engine import RegistryEngine
from web3_wallet.registry.models import ChainDefinition

DEFAULT_CHAINS: tuple[ChainDefinition, ...] = (
    ChainDefinition(
        id=1,
        name="Ethereum",
        symbol="ETH",
        rpc_url="https://eth.llamarpc.com",
        decimals=18,
        explorer_url="https://etherscan.io",
    ),
    ChainDefinition(
        id=137,
        name="Polygon",
        symbol="POL",
        rpc_url="https://polygon-rpc.com",
        decimals=18,
        explorer_url="https://polygonscan.com",
    ),
    ChainDefinition(
        id=56,
        name="BNB Smart Chain",
        symbol="BNB",
        rpc_url="https://bsc-dataseed.binance.org",
        decimals=18,
        explorer_url="https://bscscan.com",
    ),
    ChainDefinition(
        id=42161,
        name="Arbitrum One",
        symbol="ETH",
        rpc_url="https://arb1.arbitrum.io/rpc",
        decimals=18,
        explorer_url="https://arbiscan.io",
    ),
    ChainDefinition(
        id=8453,
        name="Base",
        symbol="ETH",
        rpc_url="https://mainnet.base.org",
        decimals=18,
        explorer_url="https://basescan.org",
    ),
    ChainDefinition(
        id=11155111,
        name="Sepolia",
        symbol="ETH",
        rpc_url="https://ethereum-sepolia-rpc.publicnode.com",
        decimals=18,
        testnet=True,
        explorer_url="https://sepolia.etherscan.io",
    ),
)


class ChainRegistry(RegistryEngine[int, ChainDefinition]):
    """Chains keyed by numeric chain id, persisted as ``chains.json``."""

    entity_type = ChainDefinition
    store_key = "chains.json"
    DEFAULTS = DEFAULT_CHAINS

    def key_of(self, entity: ChainDefinition) -> int:
        return entity.id

    def normalize_key(self, key: Any) -> int:
        return int(key)

    def dump_key(self, key: int) -> int:
        return key

    def load_key(self, raw: Any) -> int:
        if isinstance(raw, bool):
            raise TypeError("chain id cannot be a boolean")
        return int(raw)

    async def list(
        self,
        where: Optional[Callable[[ChainDefinition], bool]] = None,
        *,
        include_testnets: bool = True,
    ) -> list[ChainDefinition]:
        chains = await super().list(where)
        if include_testnets:
            return chains
        return [c for c in chains if not c.testnet]
