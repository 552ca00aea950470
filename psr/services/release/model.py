from __future__ import annotations

from dataclasses import dataclass
from typing import Literal

from psr.services.store.model import BinaryRecord, PluginRecord

UploadMode = Literal["upload", "replace"]
DiagnosticKind = Literal["missing_changelog", "no_compatible_versions", "event_failed"]
OutcomeStatus = Literal["published", "awaiting_release"]


@dataclass(frozen=True, slots=True)
class UploadPlan:
    mode: UploadMode
    # The existing binary whose payload gets replaced (mode == "replace").
    target: BinaryRecord | None = None


@dataclass(frozen=True, slots=True)
class Diagnostic:
    """A non-fatal problem worth showing to the user."""

    kind: DiagnosticKind
    message: str


@dataclass(frozen=True, slots=True)
class ReleaseOutcome:
    status: OutcomeStatus
    plugin: PluginRecord
    binary: BinaryRecord
    diagnostics: tuple[Diagnostic, ...] = ()

    @property
    def published(self) -> bool:
        return self.status == "published"

