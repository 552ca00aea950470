"""Error codes for CLI exit status.

The numeric values are process exit codes and should remain stable:
- 0: Success (including an upload that was not submitted for review)
- 1: User error (missing username, bad input)
- 2: Environment error (invalid config file); also Typer's usage error code
- 3: Release error (version conflict, rejected review, broken archive content)
- 4: Network error (store API unreachable or failing)
- 5: I/O error (archive not found or unreadable)
"""

from enum import IntEnum

__all__ = ["ErrorCode"]


class ErrorCode(IntEnum):
    """Exit codes for CLI commands."""

    OK = 0
    USER_ERROR = 1
    ENV_ERROR = 2
    RELEASE_ERROR = 3
    NETWORK_ERROR = 4
    IO_ERROR = 5

    def __str__(self) -> str:
        """Return human-readable name."""
        return self.name.lower().replace("_", " ")

    @property
    def is_success(self) -> bool:
        return self == ErrorCode.OK

    @property
    def is_error(self) -> bool:
        return self != ErrorCode.OK
