"""Store client abstraction.

This module provides:
- StoreClient: Protocol for the store operations a release needs
- MockStoreClient: In-memory implementation for tests

The HTTP implementation lives in psr.services.store.http.
"""

from __future__ import annotations

from collections.abc import Iterable, Mapping
from dataclasses import replace
from pathlib import Path
from typing import Protocol, runtime_checkable

from psr.core.result import Err, Ok, Result
from psr.services.release_errors import StoreError
from psr.services.store.model import (
    BinaryRecord,
    ChangelogEntry,
    PlatformVersion,
    PluginRecord,
    ReviewRecord,
)

__all__ = ["StoreClient", "MockStoreClient", "DEFAULT_EXPAND"]

DEFAULT_EXPAND = frozenset({"binaries", "reviews"})


@runtime_checkable
class StoreClient(Protocol):
    """Operations the release flow performs against the store.

    Every mutating call returns the new authoritative PluginRecord snapshot.
    Timeouts are the implementation's concern.
    """

    async def find_plugin(
        self, name: str, expand: frozenset[str] = DEFAULT_EXPAND
    ) -> Result[PluginRecord | None, StoreError]:
        """Look up a plugin by technical name; Ok(None) if the account has none."""
        ...

    async def enable_partial_encryption(
        self, plugin: PluginRecord
    ) -> Result[PluginRecord, StoreError]: ...

    async def upload_binary(
        self, plugin: PluginRecord, archive: Path
    ) -> Result[PluginRecord, StoreError]:
        """Create a new binary from the archive; it becomes plugin.latest_binary."""
        ...

    async def update_binary(
        self, plugin: PluginRecord, binary: BinaryRecord, archive: Path
    ) -> Result[PluginRecord, StoreError]:
        """Replace the payload of an existing binary, keeping its identity."""
        ...

    async def save_plugin_binary(
        self, plugin: PluginRecord, binary: BinaryRecord
    ) -> Result[PluginRecord, StoreError]:
        """Commit version, changelogs and compatibility of a binary."""
        ...

    async def request_binary_review(
        self, plugin: PluginRecord
    ) -> Result[PluginRecord, StoreError]:
        """Submit the latest binary for review; the result carries the new review."""
        ...

    async def platform_versions(self) -> Result[tuple[PlatformVersion, ...], StoreError]:
        """Platform versions known to the store, in store order."""
        ...

    async def aclose(self) -> None:
        """Release network resources."""
        ...


class MockStoreClient:
    """In-memory store for testing.

    Usage:
        client = MockStoreClient(
            plugins=[PluginRecord(id=1, name="MyPlugin")],
            locales=("de_DE", "en_GB"),
            review_status="approved",
        )
        result = await client.find_plugin("MyPlugin")
        assert client.calls == [("find_plugin", "MyPlugin")]
    """

    def __init__(
        self,
        *,
        plugins: Iterable[PluginRecord] = (),
        versions: Iterable[PlatformVersion] = (),
        locales: Iterable[str] = ("de_DE", "en_GB"),
        review_status: str = "approved",
        review_comment: str = "",
        failures: Mapping[str, StoreError] | None = None,
    ) -> None:
        self._plugins: dict[str, PluginRecord] = {p.name: p for p in plugins}
        self._versions = tuple(versions)
        self._locales = tuple(locales)
        self.review_status = review_status
        self.review_comment = review_comment
        self._failures: dict[str, StoreError] = dict(failures or {})
        self.calls: list[tuple[str, ...]] = []
        self.saved: list[BinaryRecord] = []
        self.closed = False

    def fail(self, operation: str, error: StoreError) -> None:
        """Make the named operation return Err(error) from now on."""
        self._failures[operation] = error

    def plugin(self, name: str) -> PluginRecord:
        """Current stored state of a plugin (test helper)."""
        return self._plugins[name]

    def _failure(self, operation: str) -> Err[StoreError] | None:
        error = self._failures.get(operation)
        return Err(error) if error is not None else None

    def _store(self, plugin: PluginRecord) -> Ok[PluginRecord]:
        self._plugins[plugin.name] = plugin
        return Ok(plugin)

    def _next_id(self, plugin: PluginRecord) -> int:
        return max((b.id for b in plugin.binaries), default=0) + 1

    async def find_plugin(
        self, name: str, expand: frozenset[str] = DEFAULT_EXPAND
    ) -> Result[PluginRecord | None, StoreError]:
        self.calls.append(("find_plugin", name))
        if failed := self._failure("find_plugin"):
            return failed
        return Ok(self._plugins.get(name))

    async def enable_partial_encryption(
        self, plugin: PluginRecord
    ) -> Result[PluginRecord, StoreError]:
        self.calls.append(("enable_partial_encryption", plugin.name))
        if failed := self._failure("enable_partial_encryption"):
            return failed
        return self._store(replace(plugin, partial_encryption=True))

    async def upload_binary(
        self, plugin: PluginRecord, archive: Path
    ) -> Result[PluginRecord, StoreError]:
        self.calls.append(("upload_binary", plugin.name, str(archive)))
        if failed := self._failure("upload_binary"):
            return failed
        binary = BinaryRecord(
            id=self._next_id(plugin),
            version="",
            changelogs=tuple(ChangelogEntry(locale=loc, text="") for loc in self._locales),
        )
        return self._store(
            replace(plugin, binaries=(*plugin.binaries, binary), latest_binary=binary)
        )

    async def update_binary(
        self, plugin: PluginRecord, binary: BinaryRecord, archive: Path
    ) -> Result[PluginRecord, StoreError]:
        self.calls.append(("update_binary", plugin.name, str(binary.id), str(archive)))
        if failed := self._failure("update_binary"):
            return failed
        return self._store(replace(plugin, latest_binary=binary))

    async def save_plugin_binary(
        self, plugin: PluginRecord, binary: BinaryRecord
    ) -> Result[PluginRecord, StoreError]:
        self.calls.append(("save_plugin_binary", plugin.name, str(binary.id)))
        if failed := self._failure("save_plugin_binary"):
            return failed
        self.saved.append(binary)
        binaries = tuple(binary if b.id == binary.id else b for b in plugin.binaries)
        if plugin.binary_by_id(binary.id) is None:
            binaries = (*binaries, binary)
        return self._store(replace(plugin, binaries=binaries, latest_binary=binary))

    async def request_binary_review(
        self, plugin: PluginRecord
    ) -> Result[PluginRecord, StoreError]:
        self.calls.append(("request_binary_review", plugin.name))
        if failed := self._failure("request_binary_review"):
            return failed
        review = ReviewRecord(
            id=len(plugin.reviews) + 1,
            status=self.review_status,
            comment=self.review_comment,
        )
        return self._store(replace(plugin, reviews=(*plugin.reviews, review)))

    async def platform_versions(self) -> Result[tuple[PlatformVersion, ...], StoreError]:
        self.calls.append(("platform_versions",))
        if failed := self._failure("platform_versions"):
            return failed
        return Ok(self._versions)

    async def aclose(self) -> None:
        self.closed = True

    def called(self, operation: str) -> int:
        """Number of calls made to an operation."""
        return sum(1 for c in self.calls if c[0] == operation)
