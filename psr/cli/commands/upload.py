from __future__ import annotations

import asyncio
from functools import partial
from pathlib import Path

import typer

from psr.cli.commands._helpers import exit_on_release_error, get_password, resolve_username
from psr.cli.context import CLIContext, build_context
from psr.core.config import Config
from psr.core.errors import ErrorCode
from psr.core.result import Err, Result
from psr.services.plugin import PluginDescriptor, read_plugin_archive
from psr.services.release.events import publish_release_event
from psr.services.release.model import ReleaseOutcome
from psr.services.release.orchestrator import ReleaseNotifier, ReleaseOrchestrator
from psr.services.release_errors import ReleaseError
from psr.services.store.client import StoreClient
from psr.services.store.http import HttpStoreClient


def create_store_client(username: str, password: str, config: Config) -> StoreClient:
    return HttpStoreClient(username, password, config.store)


async def _run_release(
    ctx: CLIContext,
    client: StoreClient,
    descriptor: PluginDescriptor,
    archive: Path,
    *,
    force: bool,
    request_review: bool,
) -> Result[ReleaseOutcome, ReleaseError]:
    notify: ReleaseNotifier | None = None
    if ctx.config.notify.webhook_url:
        notify = partial(publish_release_event, ctx.config.notify.webhook_url)

    orchestrator = ReleaseOrchestrator(
        client,
        ctx.console,
        force=force,
        request_review=request_review,
        notify=notify,
    )
    try:
        with ctx.console.status(f"Releasing {descriptor.name} {descriptor.version}..."):
            return await orchestrator.release(descriptor, archive)
    finally:
        await client.aclose()


def _report_outcome(ctx: CLIContext, outcome: ReleaseOutcome) -> None:
    console = ctx.console
    for diagnostic in outcome.diagnostics:
        console.warning(diagnostic.message)

    version = outcome.binary.version
    name = outcome.plugin.name
    if outcome.published:
        console.success(
            f"Review succeeded! Version {version} of plugin {name} is now available in the store."
        )
    else:
        console.warning("Don't forget to manually release the version by requesting a review.")


def upload(
    archive: Path = typer.Argument(..., help="Plugin zip archive to upload."),
    username: str | None = typer.Option(
        None, "--username", "-u", help="Store account username (or $PSR_USERNAME)."
    ),
    no_release: bool = typer.Option(
        False, "--no-release", "-R", help="Do not submit the uploaded binary for review."
    ),
    force: bool = typer.Option(
        False, "--force", "-f", help="Replace the plugin version if it already exists."
    ),
    config: Path | None = typer.Option(
        None, "--config", help="Config file (default: $PSR_CONFIG or ./psr.toml)."
    ),
) -> None:
    """Upload a plugin binary to the store and request its release."""
    ctx = build_context(config)

    user = resolve_username(username, ctx)
    if user is None:
        ctx.console.error("No username given!")
        raise typer.Exit(code=int(ErrorCode.USER_ERROR))

    archive_path = archive.expanduser().resolve()
    descriptor = read_plugin_archive(archive_path)
    if isinstance(descriptor, Err):
        exit_on_release_error(descriptor.error, ctx)

    password = get_password(user)
    client = create_store_client(user, password, ctx.config)
    result = asyncio.run(
        _run_release(
            ctx,
            client,
            descriptor.value,
            archive_path,
            force=force,
            request_review=not no_release,
        )
    )
    if isinstance(result, Err):
        exit_on_release_error(result.error, ctx)

    _report_outcome(ctx, result.value)
