"""Built-in ERC-20 tokens and the token registry."""

from __future__ import annotations

from typing import Any

from web3_wallet.registry.engine import RegistryEngine
from web3_wallet.registry.models import TokenDefinition

TokenKey = tuple[int, str]


def _t(chain_id: int, symbol: str, address: str, decimals: int) -> TokenDefinition:
    return TokenDefinition(address=address, symbol=symbol, decimals=decimals, chain_id=chain_id)


DEFAULT_TOKENS: tuple[TokenDefinition, ...] = (
    # Ethereum (1)
    _t(1, "USDT", "0xdAC17F958D2ee523a2206206994597C13D831ec7", 6),
    _t(1, "USDC", "0xA0b86991c6218b36c1d19D4a2e9Eb0cE3606eB48", 6),
    _t(1, "DAI", "0x6B175474E89094C44Da98b954EedeAC495271d0F", 18),
    _t(1, "WBTC", "0x2260FAC5E5542a773Aa44fBCfeDf7C193bc2C599", 8),
    _t(1, "WETH", "0xC02aaA39b223FE8D0A0e5C4F27eAD9083C756Cc2", 18),
    _t(1, "LINK", "0x514910771AF9Ca656af840dff83E8264EcF986CA", 18),
    # Polygon (137)
    _t(137, "USDT", "0xc2132D05D31c914a87C6611C10748AEb04B58e8F", 6),
    _t(137, "USDC", "0x3c499c542cEF5E3811e1192ce70d8cC03d5c3359", 6),
    _t(137, "USDC.e", "0x2791Bca1f2de4661ED88A30C99A7a9449Aa84174", 6),
    _t(137, "DAI", "0x8f3Cf7ad23Cd3CaDbD9735AFf958023239c6A063", 18),
    _t(137, "WETH", "0x7ceB23fD6bC0adD59E62ac25578270cFf1b9f619", 18),
    _t(137, "LINK", "0xb0897686c545045aFc77CF20eC7A532E3120E0F1", 18),
    # BNB Smart Chain (56)
    _t(56, "USDT", "0x55d398326f99059fF775485246999027B3197955", 18),
    _t(56, "USDC", "0x8AC76a51cc950d9822D68b83fE1Ad97B32Cd580d", 18),
    _t(56, "WETH", "0x2170Ed0880ac9A755fd29B2688956BD959F933F8", 18),
    _t(56, "LINK", "0xF8A0BF9cF54Bb92F17374d9e9A321E6a111a51bD", 18),
    # Arbitrum One (42161)
    _t(42161, "USDT", "0xFd086bC7CD5C481DCC9C85ebE478A1C0b69FCbb9", 6),
    _t(42161, "USDC", "0xaf88d065e77c8cC2239327C5EDb3A432268e5831", 6),
    _t(42161, "DAI", "0xDA10009cBd5D07dd0CeCc66161FC93D7c9000da1", 18),
    _t(42161, "WETH", "0x82aF49447D8a07e3bd95BD0d56f35241523fBab1", 18),
    _t(42161, "LINK", "0xf97f4df75117a78c1A5a0DBb814Af92458539FB4", 18),
    # Base (8453)
    _t(8453, "USDC", "0x833589fCD6eDb6E08f4c7C32D4f71b54bdA02913", 6),
    _t(8453, "WETH", "0x4200000000000000000000000000000000000006", 18),
)


class TokenRegistry(RegistryEngine[TokenKey, TokenDefinition]):
    """Tokens keyed by ``(chain_id, lowercase address)``, persisted as ``tokens.json``.

    Keys may be given as a ``(chain_id, address)`` tuple in any address
    case, or in the persisted ``"<chainId>:<address>"`` form.
    """

    entity_type = TokenDefinition
    store_key = "tokens.json"
    DEFAULTS = DEFAULT_TOKENS

    def key_of(self, entity: TokenDefinition) -> TokenKey:
        return (entity.chain_id, entity.address.lower())

    def normalize_key(self, key: Any) -> TokenKey:
        if isinstance(key, str):
            return self.load_key(key)
        chain_id, address = key
        return (int(chain_id), str(address).lower())

    def dump_key(self, key: TokenKey) -> str:
        return f"{key[0]}:{key[1]}"

    def load_key(self, raw: Any) -> TokenKey:
        chain_id, sep, address = str(raw).partition(":")
        if not sep or not address:
            raise ValueError(f"Malformed token key {raw!r}")
        return (int(chain_id), address.lower())

    async def for_chain(self, chain_id: int) -> list[TokenDefinition]:
        """Effective tokens owned by *chain_id*."""
        return await self.list(lambda t: t.chain_id == chain_id)
