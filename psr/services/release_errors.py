from __future__ import annotations

from dataclasses import dataclass
from pathlib import Path


@dataclass(frozen=True, slots=True)
class StoreError:
    """A failed store API call (transport error or non-2xx response)."""

    message: str
    status: int = 0
    url: str | None = None

    def __str__(self) -> str:
        if self.status:
            return f"HTTP {self.status}: {self.message}"
        return self.message


@dataclass(frozen=True, slots=True)
class MissingArchive:
    path: Path

    @property
    def message(self) -> str:
        return f"File {self.path} does not exist"


@dataclass(frozen=True, slots=True)
class MissingManifest:
    path: Path

    @property
    def message(self) -> str:
        return "Cannot upload plugin binary, because it is missing a plugin.json file."


@dataclass(frozen=True, slots=True)
class InvalidManifest:
    path: Path
    reason: str

    @property
    def message(self) -> str:
        return f"Invalid plugin.json in {self.path.name}: {self.reason}"


@dataclass(frozen=True, slots=True)
class MissingChangelogForVersion:
    version: str

    @property
    def message(self) -> str:
        return f"Changelog is missing entries for provided version {self.version}."


@dataclass(frozen=True, slots=True)
class PluginNotFound:
    name: str

    @property
    def message(self) -> str:
        return f"Plugin {self.name} not found in the store"


@dataclass(frozen=True, slots=True)
class VersionConflict:
    plugin: str
    version: str

    @property
    def message(self) -> str:
        return (
            f"The binary version {self.version} you're trying to upload "
            f"already exists for plugin {self.plugin}"
        )


@dataclass(frozen=True, slots=True)
class ReviewRejected:
    plugin: str
    version: str
    status: str
    comment: str

    @property
    def message(self) -> str:
        return (
            f"The review of {self.plugin} v{self.version} finished with status "
            f"'{self.status}':\n\n{self.comment}"
        )


@dataclass(frozen=True, slots=True)
class StoreRequestFailed:
    operation: str
    error: StoreError

    @property
    def message(self) -> str:
        return f"{self.operation} failed: {self.error}"


ReleaseError = (
    MissingArchive
    | MissingManifest
    | InvalidManifest
    | MissingChangelogForVersion
    | PluginNotFound
    | VersionConflict
    | ReviewRejected
    | StoreRequestFailed
)
