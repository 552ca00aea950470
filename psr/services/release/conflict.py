from __future__ import annotations

from psr.core.result import Err, Ok, Result
from psr.services.release.model import UploadPlan
from psr.services.release.semver import versions_equal
from psr.services.release_errors import VersionConflict
from psr.services.store.model import BinaryRecord, PluginRecord


def find_conflicting_binary(plugin: PluginRecord, version: str) -> BinaryRecord | None:
    """Existing binary with the same semantic version; placeholders never match."""
    for binary in plugin.binaries:
        if binary.is_placeholder:
            continue
        if versions_equal(binary.version, version):
            return binary
    return None


def resolve_upload(
    plugin: PluginRecord, version: str, *, force: bool
) -> Result[UploadPlan, VersionConflict]:
    """Decide how the archive reaches the store. Performs no store calls."""
    conflicting = find_conflicting_binary(plugin, version)
    if conflicting is None:
        return Ok(UploadPlan(mode="upload"))
    if force:
        return Ok(UploadPlan(mode="replace", target=conflicting))
    return Err(VersionConflict(plugin=plugin.name, version=conflicting.version))
