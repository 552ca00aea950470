"""Typed configuration loading and access.

The optional ``psr.toml`` looks like::

    [store]
    base_url = "https://api.shopware.com"
    timeout = 30.0
    review_poll_attempts = 30
    review_poll_interval = 10.0

    [account]
    username = "developer@example.com"

    [notify]
    webhook_url = "https://hooks.example.com/releases"

Every key is optional; missing keys fall back to the defaults below.
"""

from __future__ import annotations

import os
from collections.abc import Mapping
from dataclasses import dataclass, field
from pathlib import Path

from .result import Err, Ok, Result
from .structured import StrDict, as_str_dict, get_float, get_int, get_str, get_table

__all__ = [
    "AccountConfig",
    "Config",
    "ConfigError",
    "NotifyConfig",
    "StoreConfig",
    "CONFIG_ENV_VAR",
    "CONFIG_FILE_NAME",
    "DEFAULT_STORE_URL",
    "load_config",
    "resolve_config_path",
]

CONFIG_FILE_NAME = "psr.toml"
CONFIG_ENV_VAR = "PSR_CONFIG"

DEFAULT_STORE_URL = "https://api.shopware.com"
DEFAULT_TIMEOUT_SECONDS = 30.0
DEFAULT_REVIEW_POLL_ATTEMPTS = 30
DEFAULT_REVIEW_POLL_INTERVAL_SECONDS = 10.0


@dataclass(frozen=True, slots=True)
class ConfigError:
    """Error when config cannot be loaded or parsed."""

    message: str
    path: Path | None = None


@dataclass(frozen=True, slots=True)
class StoreConfig:
    """Store API endpoint and timing."""

    base_url: str = DEFAULT_STORE_URL
    timeout: float = DEFAULT_TIMEOUT_SECONDS
    review_poll_attempts: int = DEFAULT_REVIEW_POLL_ATTEMPTS
    review_poll_interval: float = DEFAULT_REVIEW_POLL_INTERVAL_SECONDS


@dataclass(frozen=True, slots=True)
class AccountConfig:
    username: str | None = None


@dataclass(frozen=True, slots=True)
class NotifyConfig:
    # Receives a JSON event after a plugin version was published.
    webhook_url: str | None = None


@dataclass(frozen=True, slots=True)
class Config:
    """Main configuration container."""

    store: StoreConfig = field(default_factory=StoreConfig)
    account: AccountConfig = field(default_factory=AccountConfig)
    notify: NotifyConfig = field(default_factory=NotifyConfig)

    @classmethod
    def from_dict(cls, data: Mapping[str, object]) -> Config:
        """Create Config from a mapping (parsed TOML)."""
        store: StrDict = get_table(data, "store") or {}
        account: StrDict = get_table(data, "account") or {}
        notify: StrDict = get_table(data, "notify") or {}

        attempts = get_int(store, "review_poll_attempts")
        if attempts is not None and attempts < 1:
            raise ValueError("store.review_poll_attempts must be >= 1")

        return cls(
            store=StoreConfig(
                base_url=(get_str(store, "base_url") or DEFAULT_STORE_URL).rstrip("/"),
                timeout=get_float(store, "timeout") or DEFAULT_TIMEOUT_SECONDS,
                review_poll_attempts=attempts or DEFAULT_REVIEW_POLL_ATTEMPTS,
                review_poll_interval=get_float(store, "review_poll_interval")
                or DEFAULT_REVIEW_POLL_INTERVAL_SECONDS,
            ),
            account=AccountConfig(username=get_str(account, "username")),
            notify=NotifyConfig(webhook_url=get_str(notify, "webhook_url")),
        )


def _parse_toml(path: Path) -> Result[StrDict, ConfigError]:
    """Parse a TOML file, handling read and parse errors."""
    import tomllib

    try:
        content = path.read_bytes()
        data_obj: object = tomllib.loads(content.decode("utf-8"))
        data = as_str_dict(data_obj)
        if data is None:
            return Err(ConfigError("Config root must be a TOML table", path=path))
        return Ok(data)
    except FileNotFoundError:
        return Err(ConfigError(f"Config file not found: {path}", path=path))
    except PermissionError:
        return Err(ConfigError(f"Permission denied reading: {path}", path=path))
    except tomllib.TOMLDecodeError as e:
        return Err(ConfigError(f"Invalid TOML syntax: {e}", path=path))
    except UnicodeDecodeError as e:
        return Err(ConfigError(f"Error reading config: {e}", path=path))


def load_config(path: Path) -> Result[Config, ConfigError]:
    """Load and parse configuration from a TOML file.

    Args:
        path: Path to psr.toml

    Returns:
        Ok(Config) on success, Err(ConfigError) on failure
    """
    result = _parse_toml(path)
    if isinstance(result, Err):
        return result

    try:
        return Ok(Config.from_dict(result.value))
    except (KeyError, TypeError, ValueError) as e:
        return Err(ConfigError(f"Invalid config structure: {e}", path=path))


def resolve_config_path(explicit: Path | None, *, cwd: Path | None = None) -> Path | None:
    """Pick the config file to use.

    Order: explicit path, then $PSR_CONFIG, then ./psr.toml if it exists.
    An explicit or env-provided path is returned even if missing so that
    loading reports it.
    """
    if explicit is not None:
        return explicit.expanduser()

    env = os.environ.get(CONFIG_ENV_VAR)
    if env:
        return Path(env).expanduser()

    local = (cwd or Path.cwd()) / CONFIG_FILE_NAME
    if local.is_file():
        return local
    return None
