"""Chain/token definitions and the persisted overlay that customizes them."""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Generic, Optional, TypeVar, Union

from pydantic import BaseModel, ConfigDict, Field


class ChainDefinition(BaseModel):
    """An EVM-compatible network.

    Immutable; an update replaces the whole definition. JSON aliases keep
    the camelCase field names of earlier overlay files.
    """

    model_config = ConfigDict(frozen=True, populate_by_name=True)

    id: int
    name: str
    symbol: str
    rpc_url: str = Field(alias="rpcUrl")
    decimals: int = Field(default=18, ge=0)
    testnet: bool = False
    explorer_url: Optional[str] = Field(default=None, alias="explorerUrl")


class TokenDefinition(BaseModel):
    """An ERC-20 contract on one chain."""

    model_config = ConfigDict(frozen=True, populate_by_name=True)

    address: str
    symbol: str
    decimals: int = Field(ge=0)
    chain_id: int = Field(alias="chainId")


K = TypeVar("K")
T = TypeVar("T", bound=BaseModel)


@dataclass
class Overlay(Generic[K, T]):
    """User delta over the compiled-in defaults.

    ``added`` holds new entities and overrides of defaults, in insertion
    order. ``removed`` holds keys of hidden defaults. A key is never in
    both.
    """

    added: dict[K, T] = field(default_factory=dict)
    removed: list[K] = field(default_factory=list)

    def copy(self) -> "Overlay[K, T]":
        return Overlay(added=dict(self.added), removed=list(self.removed))


@dataclass(frozen=True)
class HideDefault(Generic[K]):
    """Removing a compiled-in default: leave a tombstone in ``removed``."""

    key: K


@dataclass(frozen=True)
class DeleteCustom(Generic[K]):
    """Removing a purely custom entity: drop it from ``added``."""

    key: K


Removal = Union[HideDefault, DeleteCustom]
