"""Transfer inputs and per-item outcomes."""

from __future__ import annotations

from dataclasses import dataclass
from typing import Awaitable, Callable, Optional, Union


@dataclass(frozen=True)
class TransferItem:
    """One recipient of a batch. The address is not validated here."""

    to: str
    amount: str  # decimal string, parsed with the asset's decimals


@dataclass(frozen=True)
class TransferSuccess:
    recipient: str
    amount: str
    tx_hash: str

    @property
    def success(self) -> bool:
        return True

    def to_dict(self) -> dict:
        return {"to": self.recipient, "amount": self.amount, "success": True, "txHash": self.tx_hash}


@dataclass(frozen=True)
class TransferFailure:
    recipient: str
    amount: str
    error: str

    @property
    def success(self) -> bool:
        return False

    def to_dict(self) -> dict:
        return {"to": self.recipient, "amount": self.amount, "success": False, "error": self.error}


TransferOutcome = Union[TransferSuccess, TransferFailure]

ProgressCallback = Callable[[int, int], Optional[Awaitable[None]]]
