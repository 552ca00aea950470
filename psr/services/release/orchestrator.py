from __future__ import annotations

from collections.abc import Awaitable, Callable
from pathlib import Path

from psr.core.result import Err, Ok, Result
from psr.output.console import ConsoleProtocol, Style
from psr.services.plugin.descriptor import PluginDescriptor
from psr.services.release.conflict import resolve_upload
from psr.services.release.metadata import assemble_binary, language_of
from psr.services.release.model import Diagnostic, ReleaseOutcome
from psr.services.release.review import evaluate_review
from psr.services.release_errors import (
    PluginNotFound,
    ReleaseError,
    StoreError,
    StoreRequestFailed,
)
from psr.services.store.client import DEFAULT_EXPAND, StoreClient
from psr.services.store.model import BinaryRecord, PluginRecord

type ReleaseNotifier = Callable[[PluginDescriptor], Awaitable[Result[None, StoreError]]]


def _failed(operation: str) -> Callable[[StoreError], ReleaseError]:
    def wrap(error: StoreError) -> ReleaseError:
        return StoreRequestFailed(operation=operation, error=error)

    return wrap


def _latest_binary(plugin: PluginRecord, operation: str) -> Result[BinaryRecord, ReleaseError]:
    if plugin.latest_binary is None:
        return Err(
            StoreRequestFailed(
                operation=operation,
                error=StoreError(message=f"store returned no binary for {plugin.name}"),
            )
        )
    return Ok(plugin.latest_binary)


class ReleaseOrchestrator:
    """Turns a plugin archive into a saved (and optionally published) store binary.

    One instance handles one release. Steps run strictly in order and the
    first failure ends the release; nothing already saved is rolled back.

    Args:
        client: Store access.
        console: Progress output.
        force: Replace the payload of an existing binary with the same version.
        request_review: Submit the saved binary for review. When False the
            release ends as "awaiting_release".
        notify: Called after publication; a failure only adds a diagnostic.
    """

    def __init__(
        self,
        client: StoreClient,
        console: ConsoleProtocol,
        *,
        force: bool = False,
        request_review: bool = True,
        notify: ReleaseNotifier | None = None,
    ) -> None:
        self._client = client
        self._console = console
        self._force = force
        self._request_review = request_review
        self._notify = notify

    async def release(
        self, descriptor: PluginDescriptor, archive: Path
    ) -> Result[ReleaseOutcome, ReleaseError]:
        console = self._console

        found = await self._client.find_plugin(descriptor.name, DEFAULT_EXPAND)
        if isinstance(found, Err):
            return found.map_err(_failed("find plugin"))
        if found.value is None:
            return Err(PluginNotFound(name=descriptor.name))
        plugin = found.value

        # Decided on fetched data only, so a conflict leaves the store untouched.
        plan = resolve_upload(plugin, descriptor.version, force=self._force)
        if isinstance(plan, Err):
            return plan

        encrypted = await self._client.enable_partial_encryption(plugin)
        if isinstance(encrypted, Err):
            return encrypted.map_err(_failed("enable partial encryption"))
        plugin = encrypted.value

        if plan.value.target is not None:
            target = plugin.binary_by_id(plan.value.target.id) or plan.value.target
            console.print(f"Replacing existing binary {target.version}", Style.DIM)
            staged = await self._client.update_binary(plugin, target, archive)
            operation = "replace binary"
        else:
            console.print(f"Uploading {archive.name}", Style.DIM)
            staged = await self._client.upload_binary(plugin, archive)
            operation = "upload binary"
        if isinstance(staged, Err):
            return staged.map_err(_failed(operation))
        plugin = staged.value

        binary = _latest_binary(plugin, operation)
        if isinstance(binary, Err):
            return binary

        versions = await self._client.platform_versions()
        if isinstance(versions, Err):
            return versions.map_err(_failed("load platform versions"))

        assembled = assemble_binary(binary.value, descriptor, versions.value)
        self._report_metadata(assembled.binary)
        diagnostics: tuple[Diagnostic, ...] = assembled.diagnostics

        saved = await self._client.save_plugin_binary(plugin, assembled.binary)
        if isinstance(saved, Err):
            return saved.map_err(_failed("save binary"))
        plugin = saved.value
        committed = plugin.latest_binary or assembled.binary
        console.success(f"New version {committed.version} of plugin {plugin.name} uploaded!")

        if not self._request_review:
            return Ok(
                ReleaseOutcome(
                    status="awaiting_release",
                    plugin=plugin,
                    binary=committed,
                    diagnostics=diagnostics,
                )
            )

        console.print("Requesting review", Style.DIM)
        reviewed = await self._client.request_binary_review(plugin)
        if isinstance(reviewed, Err):
            return reviewed.map_err(_failed("request review"))
        plugin = reviewed.value

        review = evaluate_review(plugin, committed.version)
        if isinstance(review, Err):
            return review

        if self._notify is not None:
            event = await self._notify(descriptor)
            if isinstance(event, Err):
                diagnostics = (
                    *diagnostics,
                    Diagnostic(
                        kind="event_failed",
                        message=f"Release event could not be published: {event.error}",
                    ),
                )

        return Ok(
            ReleaseOutcome(
                status="published",
                plugin=plugin,
                binary=committed,
                diagnostics=diagnostics,
            )
        )

    def _report_metadata(self, binary: BinaryRecord) -> None:
        console = self._console
        console.print(f"Set version to {binary.version}", Style.DIM)
        for entry in binary.changelogs:
            console.print(f"Set changelog for language '{language_of(entry.locale)}'", Style.DIM)
        names = binary.compatible_version_names
        if names:
            console.print(f"Set platform version compatibility: {', '.join(names)}", Style.DIM)
