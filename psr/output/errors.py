"""Error presentation utilities.

Centralized release error formatting and exit code mapping.
"""

from __future__ import annotations

from typing import TYPE_CHECKING

from psr.core.errors import ErrorCode
from psr.output.console import Style
from psr.services.release_errors import (
    InvalidManifest,
    MissingArchive,
    MissingChangelogForVersion,
    MissingManifest,
    PluginNotFound,
    ReleaseError,
    ReviewRejected,
    StoreRequestFailed,
    VersionConflict,
)

if TYPE_CHECKING:
    from psr.output.console import ConsoleProtocol

__all__ = ["print_release_error", "release_error_exit_code"]


def print_release_error(error: ReleaseError, console: ConsoleProtocol) -> None:
    """Print a release error with a hint where one helps."""
    match error:
        case ReviewRejected(status=status, comment=comment):
            console.error(
                f"The review of {error.plugin} v{error.version} finished with status '{status}'"
            )
            if comment:
                console.newline()
                console.print(comment)
        case VersionConflict():
            console.error(error.message)
            console.print("hint: pass --force to replace the existing binary", Style.DIM)
        case MissingChangelogForVersion(version=version):
            console.error(error.message)
            console.print(f"hint: add a '## {version}' section to CHANGELOG.md", Style.DIM)
        case StoreRequestFailed(error=store_error):
            console.error(error.message)
            if store_error.url:
                console.print(f"url: {store_error.url}", Style.DIM)
        case MissingArchive() | MissingManifest() | InvalidManifest() | PluginNotFound():
            console.error(error.message)


def release_error_exit_code(error: ReleaseError) -> int:
    match error:
        case MissingArchive():
            return int(ErrorCode.IO_ERROR)
        case StoreRequestFailed():
            return int(ErrorCode.NETWORK_ERROR)
        case (
            MissingManifest()
            | InvalidManifest()
            | MissingChangelogForVersion()
            | PluginNotFound()
            | VersionConflict()
            | ReviewRejected()
        ):
            return int(ErrorCode.RELEASE_ERROR)
    return int(ErrorCode.RELEASE_ERROR)
