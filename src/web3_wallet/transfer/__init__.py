"""Fee selection and sequential transfer submission."""

from web3_wallet.transfer.fees import FeeData, LegacyFee, ModernFee, select_fee_strategy
from web3_wallet.transfer.models import (
    TransferFailure,
    TransferItem,
    TransferOutcome,
    TransferSuccess,
)
from web3_wallet.transfer.orchestrator import TransferOrchestrator

__all__ = [
    "FeeData",
    "LegacyFee",
    "ModernFee",
    "TransferFailure",
    "TransferItem",
    "TransferOrchestrator",
    "TransferOutcome",
    "TransferSuccess",
    "select_fee_strategy",
]
