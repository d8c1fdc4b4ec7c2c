"""Configuration system for the wallet manager.

Loads ``config.yaml`` from the wallet home directory (``~/.web3-wallet`` by
default, overridable with ``WEB3_WALLET_HOME``), supports environment
variable expansion, and validates everything through pydantic models.
"""

from __future__ import annotations

import os
import re
from pathlib import Path
from typing import Literal, Optional

import yaml
from pydantic import BaseModel, Field
from pydantic import ValidationError as PydanticValidationError

from web3_wallet.errors import PersistenceError, ValidationError

HOME_ENV_VAR = "WEB3_WALLET_HOME"
CONFIG_FILENAME = "config.yaml"


# ---------------------------------------------------------------------------
# Environment-variable expansion helper
# ---------------------------------------------------------------------------

_ENV_VAR_RE = re.compile(r"\$\{([^}]+)\}")


def _expand_env_vars(value: str) -> str:
    """Replace ``${VAR_NAME}`` placeholders with their environment values.

    If the variable is not set the placeholder is left as-is so that
    validation can catch it later.
    """

    def _replace(match: re.Match) -> str:
        var_name = match.group(1)
        return os.environ.get(var_name, match.group(0))

    return _ENV_VAR_RE.sub(_replace, value)


def _expand_env_recursive(obj: object) -> object:
    """Walk an arbitrary nested structure and expand env vars in strings."""
    if isinstance(obj, str):
        return _expand_env_vars(obj)
    if isinstance(obj, dict):
        return {k: _expand_env_recursive(v) for k, v in obj.items()}
    if isinstance(obj, list):
        return [_expand_env_recursive(item) for item in obj]
    return obj


# ---------------------------------------------------------------------------
# Pydantic v2 models
# ---------------------------------------------------------------------------


class StorageConfig(BaseModel):
    """Where overlays, settings and keystores are persisted."""

    backend: Literal["files", "sqlite"] = "files"
    sqlite_path: str = "wallet.db"  # relative paths resolve against the home dir


class KeystoreConfig(BaseModel):
    """Key-derivation parameters for newly written keystores."""

    kdf: Literal["scrypt", "pbkdf2"] = "scrypt"
    iterations: Optional[int] = Field(default=None, ge=1)  # None = eth-account default


class TransferConfig(BaseModel):
    """Fee heuristic and broadcast settings for the transfer orchestrator."""

    legacy_fee_divisor: int = Field(default=10, ge=1)
    priority_fee_gwei: float = 1.5    # used when the node has no eth_maxPriorityFeePerGas
    receipt_timeout: float = 120.0    # seconds to wait for a mined receipt
    inject_poa_middleware: bool = True


class LoggingConfig(BaseModel):
    """Log level for the CLI's rich handler."""

    level: str = "WARNING"


class WalletConfig(BaseModel):
    """Root configuration object."""

    storage: StorageConfig = Field(default_factory=StorageConfig)
    keystore: KeystoreConfig = Field(default_factory=KeystoreConfig)
    transfer: TransferConfig = Field(default_factory=TransferConfig)
    logging: LoggingConfig = Field(default_factory=LoggingConfig)


# ---------------------------------------------------------------------------
# Public helpers
# ---------------------------------------------------------------------------


def get_home_dir() -> Path:
    """Return the wallet home directory (no auto-create)."""
    override = os.environ.get(HOME_ENV_VAR)
    if override:
        return Path(override).expanduser()
    return Path.home() / ".web3-wallet"


def resolve_path(value: str, home: Path) -> Path:
    """Resolve *value* relative to *home* unless it is already absolute."""
    path = Path(value).expanduser()
    return path if path.is_absolute() else home / path


def load_config(path: Path) -> WalletConfig:
    """Load and validate a configuration from a YAML file.

    A missing file yields the defaults. Environment variable placeholders
    (``${VAR}``) are expanded before validation. Unreadable YAML raises
    ``PersistenceError``; values the models reject raise ``ValidationError``.
    """
    if not path.exists():
        return WalletConfig()
    try:
        raw_text = path.read_text(encoding="utf-8")
        raw_data = yaml.safe_load(raw_text) or {}
    except (OSError, yaml.YAMLError) as exc:
        raise PersistenceError(f"Cannot read {path}: {exc}") from exc
    expanded = _expand_env_recursive(raw_data)
    try:
        return WalletConfig.model_validate(expanded)
    except PydanticValidationError as exc:
        raise ValidationError(f"Invalid config {path}: {exc}") from exc


def save_config(config: WalletConfig, path: Path) -> None:
    """Serialize a :class:`WalletConfig` to a YAML file."""
    path.parent.mkdir(parents=True, exist_ok=True)
    data = config.model_dump(mode="python", exclude_none=True)
    with open(path, "w", encoding="utf-8") as fh:
        yaml.dump(data, fh, default_flow_style=False, sort_keys=False)
