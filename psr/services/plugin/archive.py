from __future__ import annotations

import json
import zipfile
from pathlib import Path, PurePosixPath
from types import MappingProxyType

from psr.core.result import Err, Ok, Result
from psr.core.structured import StrDict, as_str_dict, get_list, get_str, get_table
from psr.services.plugin.changelog import changelog_for_version, parse_changelog
from psr.services.plugin.descriptor import Compatibility, PluginDescriptor
from psr.services.release.semver import parse_version
from psr.services.release_errors import (
    InvalidManifest,
    MissingArchive,
    MissingChangelogForVersion,
    MissingManifest,
    ReleaseError,
)

MANIFEST_NAME = "plugin.json"
CHANGELOG_NAME = "changelog.md"


def _find_manifest(names: list[str]) -> PurePosixPath | None:
    candidates = [PurePosixPath(n) for n in names if PurePosixPath(n).name == MANIFEST_NAME]
    if not candidates:
        return None
    # The shallowest manifest belongs to the plugin itself, not to a vendored dependency.
    return min(candidates, key=lambda p: (len(p.parts), str(p)))


def _find_changelog(names: list[str], directory: PurePosixPath) -> str | None:
    for name in names:
        p = PurePosixPath(name)
        if p.parent == directory and p.name.lower() == CHANGELOG_NAME:
            return name
    return None


def _parse_compatibility(manifest: StrDict, path: Path) -> Result[Compatibility, InvalidManifest]:
    compat = get_table(manifest, "compatibility") or {}
    for key in ("minimumVersion", "maximumVersion"):
        bound = get_str(compat, key)
        if bound is not None and parse_version(bound) is None:
            reason = f"compatibility.{key} is not a version: {bound!r}"
            return Err(InvalidManifest(path=path, reason=reason))
    blacklist = tuple(
        item.strip() for item in get_list(compat, "blacklist") or [] if isinstance(item, str)
    )
    return Ok(
        Compatibility(
            minimum_version=get_str(compat, "minimumVersion"),
            maximum_version=get_str(compat, "maximumVersion"),
            blacklist=blacklist,
        )
    )


def _parse_label(manifest: StrDict) -> dict[str, str]:
    label = get_table(manifest, "label") or {}
    return {k: v for k, v in label.items() if isinstance(v, str)}


def read_plugin_archive(path: Path) -> Result[PluginDescriptor, ReleaseError]:
    """Read the plugin descriptor and the release changelog from a plugin zip.

    The plugin name is the directory holding plugin.json; the changelog is the
    CHANGELOG.md next to it and must have a section for the manifest's
    currentVersion.
    """
    if not path.is_file():
        return Err(MissingArchive(path=path))

    try:
        with zipfile.ZipFile(path) as archive:
            names = archive.namelist()
            manifest_path = _find_manifest(names)
            if manifest_path is None:
                return Err(MissingManifest(path=path))
            manifest_raw = archive.read(str(manifest_path))
            changelog_name = _find_changelog(names, manifest_path.parent)
            changelog_raw = archive.read(changelog_name) if changelog_name else None
    except zipfile.BadZipFile:
        return Err(InvalidManifest(path=path, reason="not a zip archive"))
    except OSError as e:
        return Err(InvalidManifest(path=path, reason=str(e)))

    try:
        manifest = as_str_dict(json.loads(manifest_raw.decode("utf-8")))
    except (json.JSONDecodeError, UnicodeDecodeError) as e:
        return Err(InvalidManifest(path=path, reason=f"cannot parse {MANIFEST_NAME}: {e}"))
    if manifest is None:
        return Err(InvalidManifest(path=path, reason=f"{MANIFEST_NAME} must be a JSON object"))

    version = get_str(manifest, "currentVersion")
    if version is None:
        return Err(InvalidManifest(path=path, reason="currentVersion is missing"))

    name = manifest_path.parent.name or get_str(manifest, "name") or path.stem
    compatibility = _parse_compatibility(manifest, path)
    if isinstance(compatibility, Err):
        return compatibility

    if changelog_raw is None:
        return Err(MissingChangelogForVersion(version=version))
    try:
        changelog_text = changelog_raw.decode("utf-8")
    except UnicodeDecodeError as e:
        return Err(InvalidManifest(path=path, reason=f"cannot read CHANGELOG.md: {e}"))

    changelogs = changelog_for_version(parse_changelog(changelog_text), version)
    if isinstance(changelogs, Err):
        return changelogs

    return Ok(
        PluginDescriptor(
            name=name,
            version=version,
            compatibility=compatibility.value,
            changelogs=MappingProxyType(changelogs.value),
            label=MappingProxyType(_parse_label(manifest)),
        )
    )
