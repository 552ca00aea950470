from __future__ import annotations

from dataclasses import dataclass
from pathlib import Path

import typer
from dotenv import load_dotenv

from psr.core.config import Config, load_config, resolve_config_path
from psr.core.errors import ErrorCode
from psr.core.result import Err
from psr.output.console import ConsoleProtocol, RichConsole


@dataclass(frozen=True, slots=True)
class CLIContext:
    config: Config
    console: ConsoleProtocol


def build_context(config_path: Path | None = None) -> CLIContext:
    """Load .env, then the TOML config, and set up the console.

    Variables already set in the environment win over the .env file.
    """
    load_dotenv(Path.cwd() / ".env", override=False)

    config = Config()
    path = resolve_config_path(config_path)
    if path is not None:
        config_result = load_config(path)
        if isinstance(config_result, Err):
            typer.echo(f"error: {config_result.error.message}", err=True)
            raise typer.Exit(code=int(ErrorCode.ENV_ERROR))
        config = config_result.value

    return CLIContext(config=config, console=RichConsole())
