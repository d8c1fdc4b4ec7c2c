"""Chain and token registries: compiled-in defaults plus a persisted overlay."""

from web3_wallet.registry.chains import DEFAULT_CHAINS, ChainRegistry
from web3_wallet.registry.engine import RegistryEngine
from web3_wallet.registry.models import (
    ChainDefinition,
    DeleteCustom,
    HideDefault,
    Overlay,
    TokenDefinition,
)
from web3_wallet.registry.tokens import DEFAULT_TOKENS, TokenRegistry

__all__ = [
    "ChainDefinition",
    "ChainRegistry",
    "DEFAULT_CHAINS",
    "DEFAULT_TOKENS",
    "DeleteCustom",
    "HideDefault",
    "Overlay",
    "RegistryEngine",
    "TokenDefinition",
    "TokenRegistry",
]
