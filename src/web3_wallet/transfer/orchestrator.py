"""Single and bulk transfer submission under one decrypted key.

A call decrypts the sender's key once, asks the network for fee data once,
then submits items strictly one after another so nonces stay ordered.
In bulk mode every item ends up as a :class:`TransferSuccess` or
:class:`TransferFailure`; an error in one item never stops the batch.
Single transfers raise instead.
"""

from __future__ import annotations

import inspect
import logging
from typing import Callable, Optional, Protocol, Sequence

from web3 import Web3

from web3_wallet.errors import ValidationError
from web3_wallet.registry.models import ChainDefinition, TokenDefinition
from web3_wallet.transfer.fees import (
    DEFAULT_LEGACY_FEE_DIVISOR,
    FeeData,
    FeeStrategy,
    select_fee_strategy,
)
from web3_wallet.transfer.models import (
    ProgressCallback,
    TransferFailure,
    TransferItem,
    TransferOutcome,
    TransferSuccess,
)
from web3_wallet.transfer.units import parse_units

logger = logging.getLogger("web3_wallet.transfer.orchestrator")


class KeySource(Protocol):
    async def load(self, address: str, password: str) -> bytes: ...


class TransferNetwork(Protocol):
    async def get_fee_estimate(self, chain: ChainDefinition) -> FeeData: ...

    async def submit(
        self, secret: bytes, chain: ChainDefinition, to: str, value: int, fee: FeeStrategy
    ) -> str: ...

    async def submit_token_transfer(
        self,
        secret: bytes,
        chain: ChainDefinition,
        token: TokenDefinition,
        to: str,
        value: int,
        fee: FeeStrategy,
    ) -> str: ...


class TransferOrchestrator:
    """Submits transfers through injected keystore and network collaborators."""

    def __init__(
        self,
        keystore: KeySource,
        network: TransferNetwork,
        legacy_fee_divisor: int = DEFAULT_LEGACY_FEE_DIVISOR,
        is_valid_address: Callable[[str], bool] = Web3.is_address,
    ) -> None:
        self.keystore = keystore
        self.network = network
        self.legacy_fee_divisor = legacy_fee_divisor
        self.is_valid_address = is_valid_address

    # ------------------------------------------------------------------
    # Single transfers
    # ------------------------------------------------------------------

    async def transfer_native(
        self,
        from_address: str,
        password: str,
        to: str,
        amount: str,
        chain: ChainDefinition,
    ) -> TransferSuccess:
        """Send *amount* of the chain's native asset. Errors propagate."""
        secret, fee = await self._prepare(from_address, password, chain, None)
        tx_hash = await self._submit_item(secret, TransferItem(to, amount), chain, None, fee)
        return TransferSuccess(recipient=to, amount=amount, tx_hash=tx_hash)

    async def transfer_token(
        self,
        from_address: str,
        password: str,
        to: str,
        amount: str,
        token: TokenDefinition,
        chain: ChainDefinition,
    ) -> TransferSuccess:
        """Send *amount* of an ERC-20 token. Errors propagate."""
        secret, fee = await self._prepare(from_address, password, chain, token)
        tx_hash = await self._submit_item(secret, TransferItem(to, amount), chain, token, fee)
        return TransferSuccess(recipient=to, amount=amount, tx_hash=tx_hash)

    # ------------------------------------------------------------------
    # Bulk transfers
    # ------------------------------------------------------------------

    async def bulk_transfer(
        self,
        from_address: str,
        password: str,
        items: Sequence[TransferItem],
        chain: ChainDefinition,
        token: Optional[TokenDefinition] = None,
        on_progress: Optional[ProgressCallback] = None,
    ) -> list[TransferOutcome]:
        """Submit *items* in order; one outcome per item, same order.

        Decryption and fee-query errors abort the call before any item is
        sent. Errors while parsing, validating or submitting an item are
        recorded in that item's outcome.
        """
        secret, fee = await self._prepare(from_address, password, chain, token)
        total = len(items)
        asset = token.symbol if token else chain.symbol
        logger.info(f"Bulk transfer of {total} {asset} item(s) on {chain.name} from {from_address}")

        outcomes: list[TransferOutcome] = []
        for index, item in enumerate(items, start=1):
            try:
                tx_hash = await self._submit_item(secret, item, chain, token, fee)
            except Exception as exc:
                message = str(exc) or type(exc).__name__
                logger.warning(f"Item {index}/{total} to {item.to} failed: {message}")
                outcomes.append(TransferFailure(recipient=item.to, amount=item.amount, error=message))
            else:
                logger.info(f"Item {index}/{total} to {item.to} sent: tx={tx_hash}")
                outcomes.append(TransferSuccess(recipient=item.to, amount=item.amount, tx_hash=tx_hash))

            if on_progress is not None:
                result = on_progress(index, total)
                if inspect.isawaitable(result):
                    await result

        failed = sum(1 for o in outcomes if not o.success)
        logger.info(f"Bulk transfer finished: {total - failed} sent, {failed} failed")
        return outcomes

    # ------------------------------------------------------------------
    # Internals
    # ------------------------------------------------------------------

    async def _prepare(
        self,
        from_address: str,
        password: str,
        chain: ChainDefinition,
        token: Optional[TokenDefinition],
    ) -> tuple[bytes, FeeStrategy]:
        if token is not None and token.chain_id != chain.id:
            raise ValidationError(
                f"Token {token.symbol} belongs to chain {token.chain_id}, not {chain.id}"
            )
        secret = await self.keystore.load(from_address, password)
        fee_data = await self.network.get_fee_estimate(chain)
        fee = select_fee_strategy(fee_data, self.legacy_fee_divisor)
        return secret, fee

    async def _submit_item(
        self,
        secret: bytes,
        item: TransferItem,
        chain: ChainDefinition,
        token: Optional[TokenDefinition],
        fee: FeeStrategy,
    ) -> str:
        if not self.is_valid_address(item.to):
            raise ValidationError(f"Invalid recipient address: {item.to!r}")
        if token is None:
            value = parse_units(item.amount, chain.decimals)
            return await self.network.submit(secret, chain, item.to, value, fee)
        value = parse_units(item.amount, token.decimals)
        return await self.network.submit_token_transfer(secret, chain, token, item.to, value, fee)
