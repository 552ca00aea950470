from __future__ import annotations

import os
from pathlib import Path

import pytest
import typer

from psr.cli.context import build_context
from psr.core.errors import ErrorCode


@pytest.fixture
def workdir(tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> Path:
    monkeypatch.chdir(tmp_path)
    # Registered so teardown removes whatever .env loading sets.
    monkeypatch.setenv("PSR_USERNAME", "placeholder")
    monkeypatch.delenv("PSR_USERNAME")
    monkeypatch.delenv("PSR_CONFIG", raising=False)
    return tmp_path


def test_defaults_without_config(workdir: Path) -> None:
    ctx = build_context(None)
    assert ctx.config.store.base_url == "https://api.shopware.com"
    assert ctx.config.account.username is None


def test_local_config_file(workdir: Path) -> None:
    (workdir / "psr.toml").write_text(
        '[account]\nusername = "dev@example.com"\n\n[store]\ntimeout = 5\n',
        encoding="utf-8",
    )
    ctx = build_context(None)
    assert ctx.config.account.username == "dev@example.com"
    assert ctx.config.store.timeout == 5.0


def test_invalid_config_is_env_error(workdir: Path) -> None:
    path = workdir / "broken.toml"
    path.write_text("[store\n", encoding="utf-8")
    with pytest.raises(typer.Exit) as exc:
        build_context(path)
    assert exc.value.exit_code == int(ErrorCode.ENV_ERROR)


def test_missing_explicit_config_is_env_error(workdir: Path) -> None:
    with pytest.raises(typer.Exit) as exc:
        build_context(workdir / "nope.toml")
    assert exc.value.exit_code == int(ErrorCode.ENV_ERROR)


def test_dotenv_is_loaded(workdir: Path) -> None:
    (workdir / ".env").write_text("PSR_USERNAME=from-dotenv\n", encoding="utf-8")
    build_context(None)
    assert os.environ["PSR_USERNAME"] == "from-dotenv"


def test_environment_wins_over_dotenv(workdir: Path, monkeypatch: pytest.MonkeyPatch) -> None:
    (workdir / ".env").write_text("PSR_USERNAME=from-dotenv\n", encoding="utf-8")
    monkeypatch.setenv("PSR_USERNAME", "from-env")
    build_context(None)
    assert os.environ["PSR_USERNAME"] == "from-env"
