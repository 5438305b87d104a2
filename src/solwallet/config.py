"""Configuration and file locations for solwallet.

Settings live in ``config.yaml`` inside the application directory
(``typer.get_app_dir("solwallet")``) next to the wallet file and the price
cache. ``${VAR}`` placeholders in the YAML are expanded from the
environment before validation.
"""

from __future__ import annotations

import os
import re
from pathlib import Path
from typing import Optional

import typer
import yaml
from pydantic import BaseModel, ValidationError, field_validator

from solwallet.errors import AppDataDirError
from solwallet.wallet.clusters import get_cluster, list_cluster_names

APP_NAME = "solwallet"
WALLET_FILE_NAME = "solwallet.json"
CACHE_FILE_NAME = "cache.json"
CONFIG_FILE_NAME = "config.yaml"


# ---------------------------------------------------------------------------
# Environment-variable expansion helper
# ---------------------------------------------------------------------------

_ENV_VAR_RE = re.compile(r"\$\{([^}]+)\}")


def _expand_env_vars(value: str) -> str:
    """Replace ``${VAR_NAME}`` placeholders with their environment values.

    Unset variables are left as-is.
    """

    def _replace(match: re.Match) -> str:
        return os.environ.get(match.group(1), match.group(0))

    return _ENV_VAR_RE.sub(_replace, value)


def _expand_env_recursive(obj: object) -> object:
    if isinstance(obj, str):
        return _expand_env_vars(obj)
    if isinstance(obj, dict):
        return {k: _expand_env_recursive(v) for k, v in obj.items()}
    if isinstance(obj, list):
        return [_expand_env_recursive(item) for item in obj]
    return obj


# ---------------------------------------------------------------------------
# Settings model
# ---------------------------------------------------------------------------


class WalletSettings(BaseModel):
    """User settings for network access."""

    cluster: str = "devnet"
    rpc_url: Optional[str] = None  # overrides the cluster's public endpoint
    price_api: str = "https://api.solscan.io/market"
    request_timeout: float = 15.0
    cache_ttl_seconds: int = 300
    confirm_attempts: int = 30
    confirm_interval: float = 2.0

    @field_validator("cluster")
    @classmethod
    def _known_cluster(cls, value: str) -> str:
        if value not in list_cluster_names():
            raise ValueError(f"Unknown cluster '{value}'. Available: {list_cluster_names()}")
        return value

    def resolved_rpc_url(self) -> str:
        return self.rpc_url or get_cluster(self.cluster).rpc_url


# ---------------------------------------------------------------------------
# Paths
# ---------------------------------------------------------------------------


def get_app_dir(create: bool = True) -> Path:
    """Return the per-user application directory, creating it by default."""
    app_dir = Path(typer.get_app_dir(APP_NAME))
    if create and not app_dir.exists():
        try:
            app_dir.mkdir(parents=True, exist_ok=True)
        except OSError as exc:
            raise AppDataDirError(f"Failed to create app data directory: {exc}") from exc
    return app_dir


def app_file_path(app_file: Path | str | None = None) -> Path:
    """Return the wallet file location.

    An explicit *app_file* wins; its parent directories are created when
    missing. Otherwise the file lives in the application directory.
    """
    if app_file is None:
        return get_app_dir() / WALLET_FILE_NAME

    path = Path(app_file).expanduser()
    if not path.exists():
        try:
            path.parent.mkdir(parents=True, exist_ok=True)
        except OSError as exc:
            raise AppDataDirError(f"Failed to create app data directory: {exc}") from exc
    return path


def cache_file_path() -> Path:
    return get_app_dir() / CACHE_FILE_NAME


def config_file_path() -> Path:
    return get_app_dir() / CONFIG_FILE_NAME


# ---------------------------------------------------------------------------
# Load / save
# ---------------------------------------------------------------------------


def load_settings(path: Path | None = None) -> WalletSettings:
    """Load settings from YAML, falling back to defaults when the file is missing."""
    path = path or config_file_path()
    if not path.exists():
        return WalletSettings()
    try:
        raw_data = yaml.safe_load(path.read_text(encoding="utf-8")) or {}
        return WalletSettings.model_validate(_expand_env_recursive(raw_data))
    except (OSError, yaml.YAMLError, ValidationError) as exc:
        raise AppDataDirError(f"Failed to load config file `{path}`: {exc}") from exc


def save_settings(settings: WalletSettings, path: Path | None = None) -> None:
    path = path or config_file_path()
    path.parent.mkdir(parents=True, exist_ok=True)
    data = settings.model_dump(mode="python", exclude_none=True)
    with open(path, "w", encoding="utf-8") as fh:
        yaml.dump(data, fh, default_flow_style=False, sort_keys=False)
