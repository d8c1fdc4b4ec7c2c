"""Fee strategy selection for outgoing transactions.

Some RPC endpoints report a modern (EIP-1559) max fee that is wildly lower
than their own legacy gas price, which gets transactions stuck. When that
happens the batch is sent with a plain ``gasPrice`` instead.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Optional, Union

logger = logging.getLogger("web3_wallet.transfer.fees")

DEFAULT_LEGACY_FEE_DIVISOR = 10


@dataclass(frozen=True)
class FeeData:
    """Network fee snapshot, in wei."""

    gas_price: int
    max_fee_per_gas: Optional[int] = None


@dataclass(frozen=True)
class LegacyFee:
    """Send with a single ``gasPrice``."""

    gas_price: int


@dataclass(frozen=True)
class ModernFee:
    """Send with EIP-1559 fields filled in by the network client."""


FeeStrategy = Union[LegacyFee, ModernFee]


def select_fee_strategy(
    fee_data: FeeData,
    legacy_fee_divisor: int = DEFAULT_LEGACY_FEE_DIVISOR,
) -> FeeStrategy:
    """Pick legacy pricing when modern fee data is missing or implausibly low.

    "Implausibly low" means ``max_fee_per_gas < gas_price / legacy_fee_divisor``.
    The divisor is a heuristic, not a protocol rule.
    """
    max_fee = fee_data.max_fee_per_gas
    if max_fee is None:
        logger.debug("No EIP-1559 fee data; using legacy gas price")
        return LegacyFee(fee_data.gas_price)
    if max_fee * legacy_fee_divisor < fee_data.gas_price:
        logger.info(
            f"maxFeePerGas {max_fee} is below 1/{legacy_fee_divisor} of gasPrice "
            f"{fee_data.gas_price}; falling back to legacy pricing"
        )
        return LegacyFee(fee_data.gas_price)
    return ModernFee()
