"""Binary metadata assembled from the plugin descriptor before saving."""

from __future__ import annotations

import re
from collections.abc import Callable, Iterable
from dataclasses import dataclass, replace

from psr.services.plugin.descriptor import PluginDescriptor
from psr.services.release.model import Diagnostic
from psr.services.store.model import BinaryRecord, ChangelogEntry, PlatformVersion

# The store rejects changelogs shorter than 20 characters; non-breaking spaces
# get past that check without adding visible content.
CHANGELOG_PADDING = 20
NBSP = "\u00a0"

_REGION_SEPARATOR_RE = re.compile(r"[_-]")


@dataclass(frozen=True, slots=True)
class AssembledBinary:
    binary: BinaryRecord
    diagnostics: tuple[Diagnostic, ...] = ()


def language_of(locale: str) -> str:
    """Language part of a store locale: "de_DE" -> "de", "en-GB" -> "en"."""
    return _REGION_SEPARATOR_RE.split(locale.strip(), maxsplit=1)[0].lower()


def pad_changelog(text: str) -> str:
    return text + NBSP * CHANGELOG_PADDING


def assign_changelogs(
    entries: Iterable[ChangelogEntry], descriptor: PluginDescriptor
) -> tuple[tuple[ChangelogEntry, ...], tuple[Diagnostic, ...]]:
    """Fill every store-defined locale with the descriptor's text for its language."""
    assigned: list[ChangelogEntry] = []
    diagnostics: list[Diagnostic] = []
    for entry in entries:
        language = language_of(entry.locale)
        text = descriptor.changelog_for(language)
        if text is None:
            diagnostics.append(
                Diagnostic(
                    kind="missing_changelog",
                    message=(
                        f"Changelog for language '{language}' is missing "
                        f"in version {descriptor.version}"
                    ),
                )
            )
            text = ""
        assigned.append(replace(entry, text=pad_changelog(text)))
    return tuple(assigned), tuple(diagnostics)


def compatible_versions(
    versions: Iterable[PlatformVersion], is_compatible: Callable[[str], bool]
) -> tuple[PlatformVersion, ...]:
    """Selectable platform versions accepted by the predicate, in store order."""
    return tuple(v for v in versions if v.selectable and is_compatible(v.name))


def assemble_binary(
    binary: BinaryRecord,
    descriptor: PluginDescriptor,
    versions: Iterable[PlatformVersion],
) -> AssembledBinary:
    changelogs, diagnostics = assign_changelogs(binary.changelogs, descriptor)
    compatible = compatible_versions(versions, descriptor.is_compatible)
    if not compatible:
        diagnostics = (
            *diagnostics,
            Diagnostic(
                kind="no_compatible_versions",
                message=(
                    "The plugin's compatibility constraints don't match any "
                    "available platform versions!"
                ),
            ),
        )
    assembled = replace(
        binary,
        version=descriptor.version,
        changelogs=changelogs,
        compatible_versions=compatible,
    )
    return AssembledBinary(binary=assembled, diagnostics=diagnostics)
