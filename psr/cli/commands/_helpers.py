"""Shared helpers for CLI commands."""

from __future__ import annotations

import os
from typing import TYPE_CHECKING, NoReturn

import typer

from psr.output.errors import print_release_error, release_error_exit_code

if TYPE_CHECKING:
    from psr.cli.context import CLIContext
    from psr.services.release_errors import ReleaseError

USERNAME_ENV_VAR = "PSR_USERNAME"
PASSWORD_ENV_VAR = "PSR_PASSWORD"


def exit_on_release_error(error: ReleaseError, ctx: CLIContext) -> NoReturn:
    """Render a release error and exit with its mapped code."""
    print_release_error(error, ctx.console)
    raise typer.Exit(code=release_error_exit_code(error))


def resolve_username(option: str | None, ctx: CLIContext) -> str | None:
    """Username from --username, then $PSR_USERNAME, then [account] in config."""
    for candidate in (option, os.environ.get(USERNAME_ENV_VAR), ctx.config.account.username):
        if candidate and candidate.strip():
            return candidate.strip()
    return None


def get_password(username: str) -> str:
    """Password from $PSR_PASSWORD, or a hidden interactive prompt."""
    password = os.environ.get(PASSWORD_ENV_VAR)
    if password:
        return password
    return typer.prompt(f"Password for {username}", hide_input=True)
