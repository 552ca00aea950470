"""Store-side records.

All records are immutable snapshots. Every store call returns a fresh
PluginRecord; the release flow threads those snapshots through its steps
instead of mutating shared objects.
"""

from __future__ import annotations

from dataclasses import dataclass

APPROVED_STATUS = "approved"


@dataclass(frozen=True, slots=True)
class PlatformVersion:
    """A platform release the store offers as a compatibility target."""

    name: str
    selectable: bool
    id: int | None = None


@dataclass(frozen=True, slots=True)
class ChangelogEntry:
    locale: str  # store locale, region-qualified (e.g. "de_DE")
    text: str
    id: int | None = None


@dataclass(frozen=True, slots=True)
class BinaryRecord:
    id: int
    version: str
    changelogs: tuple[ChangelogEntry, ...] = ()
    compatible_versions: tuple[PlatformVersion, ...] = ()

    @property
    def is_placeholder(self) -> bool:
        """True for a binary the store created without a version yet."""
        return self.version == ""

    @property
    def compatible_version_names(self) -> tuple[str, ...]:
        return tuple(v.name for v in self.compatible_versions)


@dataclass(frozen=True, slots=True)
class ReviewRecord:
    id: int
    status: str
    comment: str = ""

    @property
    def approved(self) -> bool:
        return self.status == APPROVED_STATUS


@dataclass(frozen=True, slots=True)
class PluginRecord:
    id: int
    name: str
    binaries: tuple[BinaryRecord, ...] = ()
    reviews: tuple[ReviewRecord, ...] = ()
    # The binary most recently uploaded, replaced or saved through the client.
    latest_binary: BinaryRecord | None = None
    partial_encryption: bool = False

    @property
    def latest_review(self) -> ReviewRecord | None:
        if not self.reviews:
            return None
        return self.reviews[-1]

    def binary_by_id(self, binary_id: int) -> BinaryRecord | None:
        for binary in self.binaries:
            if binary.id == binary_id:
                return binary
        return None
