"""
Sync data models -- the backup envelope, remote handles, and persisted state.
"""

from __future__ import annotations

from datetime import datetime
from typing import Optional

from pydantic import BaseModel, ConfigDict, Field

from ..models import Document

BACKUP_FORMAT_VERSION = 1
BACKUP_FILE_NAME = "oneclickcopy_backup.json"
BACKUP_MIME_TYPE = "application/json"


class BackupEnvelope(BaseModel):
    """The whole document set as stored in the remote backup object.

    Built fresh for every backup and parsed fresh on every restore.
    """

    model_config = ConfigDict(extra="ignore")

    version: int = BACKUP_FORMAT_VERSION
    timestamp: int = 0
    documents: list[Document]


class RemoteHandle(BaseModel):
    """Reference to an object in a remote backup store."""

    id: str
    name: str
    mime_type: Optional[str] = None
    modified_at: Optional[datetime] = None


class AutoSyncState(BaseModel):
    """Auto-sync state persisted across runs.

    Attributes:
        last_backup_at: Completion time (epoch ms) of the last successful
            automatic backup, or None if there has never been one.
        has_restored_once: Set once the first auto-restore attempt finishes.
    """

    last_backup_at: Optional[int] = None
    has_restored_once: bool = False
    last_error: Optional[str] = None
    backup_count: int = Field(default=0, ge=0)
