"""
Cloud sync -- the whole document set as one JSON backup.

Backups are throttled and always overwrite the same remote object.
Restore happens once, on the first sign-in, and only ever adds
documents locally.

Stores: Google Drive, local directory.
"""

from .client import SyncClient
from .coordinator import AutoSyncCoordinator
from .errors import SyncError, SyncErrorKind, SyncResult
from .state import AutoSyncStateStore

__all__ = [
    "AutoSyncCoordinator",
    "AutoSyncStateStore",
    "SyncClient",
    "SyncError",
    "SyncErrorKind",
    "SyncResult",
]
