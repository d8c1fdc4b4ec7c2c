"""Web3 multi-chain provider for Ethereum-compatible networks."""

from __future__ import annotations

import asyncio
import logging
from typing import Any, Optional

import aiohttp
from eth_account import Account
from web3 import AsyncWeb3, Web3
from web3.exceptions import Web3Exception
from web3.middleware import ExtraDataToPOAMiddleware
from web3.providers import AsyncHTTPProvider

from web3_wallet.errors import NetworkError, ValidationError
from web3_wallet.registry.models import ChainDefinition, TokenDefinition
from web3_wallet.transfer.fees import FeeData, FeeStrategy, LegacyFee
from web3_wallet.transfer.units import format_units

logger = logging.getLogger("web3_wallet.wallet.provider")

ERC20_ABI = [
    {
        "inputs": [{"name": "to", "type": "address"}, {"name": "amount", "type": "uint256"}],
        "name": "transfer",
        "outputs": [{"name": "", "type": "bool"}],
        "stateMutability": "nonpayable",
        "type": "function",
    },
    {
        "inputs": [{"name": "owner", "type": "address"}],
        "name": "balanceOf",
        "outputs": [{"name": "", "type": "uint256"}],
        "stateMutability": "view",
        "type": "function",
    },
    {
        "inputs": [],
        "name": "decimals",
        "outputs": [{"name": "", "type": "uint8"}],
        "stateMutability": "view",
        "type": "function",
    },
    {
        "inputs": [],
        "name": "symbol",
        "outputs": [{"name": "", "type": "string"}],
        "stateMutability": "view",
        "type": "function",
    },
    {
        "inputs": [],
        "name": "name",
        "outputs": [{"name": "", "type": "string"}],
        "stateMutability": "view",
        "type": "function",
    },
]

# Errors raised by web3.py, eth-account and aiohttp while talking to a node.
_RPC_ERRORS = (
    Web3Exception,
    ValueError,
    OSError,
    TimeoutError,
    asyncio.TimeoutError,
    aiohttp.ClientError,
)


def _checksum(address: str) -> str:
    try:
        return Web3.to_checksum_address(address)
    except (ValueError, TypeError) as exc:
        raise ValidationError(f"Invalid address: {address!r}") from exc


class Web3Provider:
    """Manages AsyncWeb3 connections across EVM chains.

    Instances are cached per (chain id, RPC URL) so an overridden chain
    definition gets a fresh connection.
    """

    def __init__(
        self,
        priority_fee_gwei: float = 1.5,
        receipt_timeout: float = 120.0,
        inject_poa_middleware: bool = True,
    ) -> None:
        self.priority_fee_wei = Web3.to_wei(priority_fee_gwei, "gwei")
        self.receipt_timeout = receipt_timeout
        self.inject_poa_middleware = inject_poa_middleware
        self._instances: dict[tuple[int, str], AsyncWeb3] = {}

    def get_web3(self, chain: ChainDefinition) -> AsyncWeb3:
        """Return a (cached) AsyncWeb3 instance for *chain*.

        Injects POA middleware for non-mainnet chains.
        """
        cache_key = (chain.id, chain.rpc_url)
        if cache_key in self._instances:
            return self._instances[cache_key]

        w3 = AsyncWeb3(AsyncHTTPProvider(chain.rpc_url))
        if self.inject_poa_middleware and chain.id != 1:
            w3.middleware_onion.inject(ExtraDataToPOAMiddleware, layer=0)

        self._instances[cache_key] = w3
        return w3

    def clear(self) -> None:
        self._instances.clear()

    # ------------------------------------------------------------------
    # Balances
    # ------------------------------------------------------------------

    async def get_native_balance(self, address: str, chain: ChainDefinition) -> str:
        """Native balance in human-readable units (e.g. ``"0.25"`` ETH)."""
        w3 = self.get_web3(chain)
        owner = _checksum(address)
        try:
            balance = await w3.eth.get_balance(owner)
        except _RPC_ERRORS as exc:
            raise NetworkError(str(exc)) from exc
        return format_units(balance, chain.decimals)

    async def get_token_balance(
        self, address: str, token: TokenDefinition, chain: ChainDefinition
    ) -> str:
        contract = self.get_web3(chain).eth.contract(address=_checksum(token.address), abi=ERC20_ABI)
        owner = _checksum(address)
        try:
            balance = await contract.functions.balanceOf(owner).call()
        except _RPC_ERRORS as exc:
            raise NetworkError(str(exc)) from exc
        return format_units(balance, token.decimals)

    async def get_token_info(self, token_address: str, chain: ChainDefinition) -> dict[str, Any]:
        """Read ``name``, ``symbol`` and ``decimals`` from an ERC-20 contract."""
        contract = self.get_web3(chain).eth.contract(address=_checksum(token_address), abi=ERC20_ABI)
        try:
            name = await contract.functions.name().call()
            symbol = await contract.functions.symbol().call()
            decimals = await contract.functions.decimals().call()
        except _RPC_ERRORS as exc:
            raise NetworkError(str(exc)) from exc
        return {"name": name, "symbol": symbol, "decimals": int(decimals)}

    async def get_all_native_balances(
        self, address: str, chains: list[ChainDefinition]
    ) -> dict[int, dict[str, Optional[str]]]:
        """Get native balances across *chains*.

        Returns a dict mapping chain id to ``{balance, symbol, error}``.
        Errors on individual chains don't abort the whole operation.
        """
        results: dict[int, dict[str, Optional[str]]] = {}
        for chain in chains:
            try:
                balance = await self.get_native_balance(address, chain)
                results[chain.id] = {"balance": balance, "symbol": chain.symbol, "error": None}
            except NetworkError as e:
                logger.warning(f"Failed to get balance on {chain.name}: {e}")
                results[chain.id] = {"balance": "0", "symbol": chain.symbol, "error": str(e)}
        return results

    # ------------------------------------------------------------------
    # Fees
    # ------------------------------------------------------------------

    async def _priority_fee(self, w3: AsyncWeb3) -> int:
        try:
            return await w3.eth.max_priority_fee
        except _RPC_ERRORS:
            return self.priority_fee_wei

    async def get_fee_estimate(self, chain: ChainDefinition) -> FeeData:
        """Current gas price plus an EIP-1559 max fee when the chain has a base fee."""
        w3 = self.get_web3(chain)
        try:
            gas_price = await w3.eth.gas_price
            latest = await w3.eth.get_block("latest")
            base_fee = latest.get("baseFeePerGas")
            max_fee = None
            if base_fee is not None:
                max_fee = base_fee * 2 + await self._priority_fee(w3)
        except _RPC_ERRORS as exc:
            raise NetworkError(f"Fee query failed on {chain.name}: {exc}") from exc
        return FeeData(gas_price=gas_price, max_fee_per_gas=max_fee)

    async def _fee_fields(self, w3: AsyncWeb3, fee: FeeStrategy) -> dict[str, int]:
        if isinstance(fee, LegacyFee):
            return {"gasPrice": fee.gas_price}
        latest = await w3.eth.get_block("latest")
        base_fee = latest.get("baseFeePerGas") or 0
        priority = await self._priority_fee(w3)
        return {"maxFeePerGas": base_fee * 2 + priority, "maxPriorityFeePerGas": priority}

    # ------------------------------------------------------------------
    # Submission
    # ------------------------------------------------------------------

    async def _sign_and_send(self, w3: AsyncWeb3, tx: dict, secret: bytes) -> str:
        tx["gas"] = await w3.eth.estimate_gas(tx)
        signed = Account.sign_transaction(tx, secret)
        tx_hash = await w3.eth.send_raw_transaction(signed.raw_transaction)
        receipt = await w3.eth.wait_for_transaction_receipt(tx_hash, timeout=self.receipt_timeout)
        if receipt.get("status") == 0:
            raise NetworkError(f"Transaction {Web3.to_hex(tx_hash)} reverted")
        return Web3.to_hex(tx_hash)

    async def submit(
        self,
        secret: bytes,
        chain: ChainDefinition,
        to: str,
        value: int,
        fee: FeeStrategy,
    ) -> str:
        """Build, sign, send and confirm a native-asset transfer.

        Returns the transaction hash as a ``0x`` hex string.
        """
        w3 = self.get_web3(chain)
        sender = Account.from_key(secret).address
        try:
            tx: dict = {
                "from": sender,
                "to": _checksum(to),
                "value": value,
                "nonce": await w3.eth.get_transaction_count(sender, "pending"),
                "chainId": chain.id,
            }
            tx.update(await self._fee_fields(w3, fee))
            return await self._sign_and_send(w3, tx, secret)
        except ValidationError:
            raise
        except _RPC_ERRORS as exc:
            raise NetworkError(str(exc)) from exc

    async def submit_token_transfer(
        self,
        secret: bytes,
        chain: ChainDefinition,
        token: TokenDefinition,
        to: str,
        value: int,
        fee: FeeStrategy,
    ) -> str:
        """Build, sign, send and confirm an ERC-20 ``transfer(to, value)`` call."""
        w3 = self.get_web3(chain)
        sender = Account.from_key(secret).address
        contract = w3.eth.contract(address=_checksum(token.address), abi=ERC20_ABI)
        try:
            params: dict = {
                "from": sender,
                "nonce": await w3.eth.get_transaction_count(sender, "pending"),
                "chainId": chain.id,
                "value": 0,
            }
            params.update(await self._fee_fields(w3, fee))
            tx = await contract.functions.transfer(_checksum(to), value).build_transaction(params)
            return await self._sign_and_send(w3, dict(tx), secret)
        except ValidationError:
            raise
        except _RPC_ERRORS as exc:
            raise NetworkError(str(exc)) from exc
