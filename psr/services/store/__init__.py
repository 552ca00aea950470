"""Store access: records, client protocol and the HTTP client."""

from .client import DEFAULT_EXPAND, MockStoreClient, StoreClient
from .model import (
    APPROVED_STATUS,
    BinaryRecord,
    ChangelogEntry,
    PlatformVersion,
    PluginRecord,
    ReviewRecord,
)

__all__ = [
    "APPROVED_STATUS",
    "BinaryRecord",
    "ChangelogEntry",
    "DEFAULT_EXPAND",
    "MockStoreClient",
    "PlatformVersion",
    "PluginRecord",
    "ReviewRecord",
    "StoreClient",
]
