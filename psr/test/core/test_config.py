"""Tests for psr.core.config module."""

from __future__ import annotations

from pathlib import Path

import pytest

from psr.core.config import (
    CONFIG_ENV_VAR,
    DEFAULT_STORE_URL,
    Config,
    StoreConfig,
    load_config,
    resolve_config_path,
)
from psr.core.result import Err, Ok


class TestDefaults:
    def test_store_defaults(self) -> None:
        config = StoreConfig()
        assert config.base_url == DEFAULT_STORE_URL
        assert config.timeout == 30.0
        assert config.review_poll_attempts == 30
        assert config.review_poll_interval == 10.0

    def test_config_defaults(self) -> None:
        config = Config()
        assert config.account.username is None
        assert config.notify.webhook_url is None

    def test_frozen(self) -> None:
        config = StoreConfig()
        with pytest.raises(AttributeError):
            config.timeout = 1.0  # type: ignore[misc]


class TestFromDict:
    def test_full(self) -> None:
        config = Config.from_dict(
            {
                "store": {
                    "base_url": "https://store.example.com/",
                    "timeout": 5,
                    "review_poll_attempts": 3,
                    "review_poll_interval": 0.5,
                },
                "account": {"username": " dev@example.com "},
                "notify": {"webhook_url": "https://hooks.example.com/x"},
            }
        )
        assert config.store.base_url == "https://store.example.com"
        assert config.store.timeout == 5.0
        assert config.store.review_poll_attempts == 3
        assert config.store.review_poll_interval == 0.5
        assert config.account.username == "dev@example.com"
        assert config.notify.webhook_url == "https://hooks.example.com/x"

    def test_wrong_types_fall_back_to_defaults(self) -> None:
        config = Config.from_dict({"store": {"timeout": "fast"}, "account": "nope"})
        assert config.store.timeout == 30.0
        assert config.account.username is None

    def test_rejects_non_positive_poll_attempts(self) -> None:
        with pytest.raises(ValueError):
            Config.from_dict({"store": {"review_poll_attempts": 0}})


class TestLoadConfig:
    def test_load_valid(self, tmp_path: Path) -> None:
        path = tmp_path / "psr.toml"
        path.write_text('[account]\nusername = "dev"\n', encoding="utf-8")
        result = load_config(path)
        assert isinstance(result, Ok)
        assert result.value.account.username == "dev"

    def test_missing_file(self, tmp_path: Path) -> None:
        result = load_config(tmp_path / "missing.toml")
        assert isinstance(result, Err)
        assert "not found" in result.error.message

    def test_invalid_toml(self, tmp_path: Path) -> None:
        path = tmp_path / "psr.toml"
        path.write_text("[store\n", encoding="utf-8")
        result = load_config(path)
        assert isinstance(result, Err)
        assert "Invalid TOML" in result.error.message

    def test_invalid_structure(self, tmp_path: Path) -> None:
        path = tmp_path / "psr.toml"
        path.write_text("[store]\nreview_poll_attempts = -1\n", encoding="utf-8")
        result = load_config(path)
        assert isinstance(result, Err)
        assert "Invalid config structure" in result.error.message


class TestResolveConfigPath:
    def test_explicit_wins(self, tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> None:
        monkeypatch.setenv(CONFIG_ENV_VAR, str(tmp_path / "env.toml"))
        explicit = tmp_path / "explicit.toml"
        assert resolve_config_path(explicit, cwd=tmp_path) == explicit

    def test_env(self, tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> None:
        monkeypatch.setenv(CONFIG_ENV_VAR, str(tmp_path / "env.toml"))
        assert resolve_config_path(None, cwd=tmp_path) == tmp_path / "env.toml"

    def test_local_file(self, tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> None:
        monkeypatch.delenv(CONFIG_ENV_VAR, raising=False)
        (tmp_path / "psr.toml").write_text("", encoding="utf-8")
        assert resolve_config_path(None, cwd=tmp_path) == tmp_path / "psr.toml"

    def test_nothing(self, tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> None:
        monkeypatch.delenv(CONFIG_ENV_VAR, raising=False)
        assert resolve_config_path(None, cwd=tmp_path) is None
