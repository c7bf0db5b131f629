"""
Remote backup stores -- where the backup object lives.

Each store is a small blob store addressed by name: find, create,
overwrite, download. Trashed objects are invisible to lookups.

GDrive: Google Drive API (see :mod:`oneclickcopy.sync.gdrive`).
Local: a plain directory. For USB drives, NAS mounts, and tests.
"""

from __future__ import annotations

import json
import logging
import os
import uuid
from abc import ABC, abstractmethod
from datetime import datetime, timezone
from pathlib import Path
from typing import Optional

from ..config import RemoteBackendType, RemoteConfig
from .errors import RemoteStoreError
from .models import RemoteHandle

logger = logging.getLogger("oneclickcopy.sync.remote")


class RemoteBackupStore(ABC):
    """Abstract remote blob store."""

    @abstractmethod
    def find_by_name(self, name: str) -> Optional[RemoteHandle]:
        """Find the first live (non-trashed) object called ``name``.

        Raises:
            RemoteStoreError: On transport, quota, or auth problems.
        """

    @abstractmethod
    def create(self, name: str, mime_type: str, data: bytes) -> RemoteHandle:
        """Create a new object and return its handle."""

    @abstractmethod
    def update(self, handle: RemoteHandle, data: bytes) -> None:
        """Overwrite the content of an existing object in place."""

    @abstractmethod
    def download(self, handle: RemoteHandle) -> bytes:
        """Return the full content of an object."""

    @property
    @abstractmethod
    def name(self) -> str:
        """Human-readable store name."""


class LocalDirectoryStore(RemoteBackupStore):
    """Blob store in a local directory.

    Layout::

        <root>/index.json        # id -> {name, mime_type, trashed, modified_at}
        <root>/objects/<id>      # object content
    """

    INDEX_FILE = "index.json"

    def __init__(self, root: Path):
        self.root = Path(root).expanduser()
        self.objects = self.root / "objects"
        try:
            self.objects.mkdir(parents=True, exist_ok=True)
        except OSError as exc:
            raise RemoteStoreError(f"Cannot open local store {self.root}: {exc}") from exc

    @property
    def name(self) -> str:
        return "local"

    def _read_index(self) -> dict[str, dict]:
        index_file = self.root / self.INDEX_FILE
        if not index_file.exists():
            return {}
        try:
            return json.loads(index_file.read_text(encoding="utf-8"))
        except json.JSONDecodeError as exc:
            raise RemoteStoreError(f"Corrupt store index {index_file}: {exc}") from exc
        except OSError as exc:
            raise RemoteStoreError(str(exc)) from exc

    def _write_index(self, index: dict[str, dict]) -> None:
        index_file = self.root / self.INDEX_FILE
        tmp = index_file.with_suffix(".tmp")
        try:
            tmp.write_text(json.dumps(index, indent=2), encoding="utf-8")
            os.replace(tmp, index_file)
        except OSError as exc:
            raise RemoteStoreError(str(exc)) from exc

    @staticmethod
    def _handle(object_id: str, meta: dict) -> RemoteHandle:
        return RemoteHandle(
            id=object_id,
            name=meta["name"],
            mime_type=meta.get("mime_type"),
            modified_at=meta.get("modified_at"),
        )

    def find_by_name(self, name: str) -> Optional[RemoteHandle]:
        for object_id, meta in self._read_index().items():
            if meta.get("name") == name and not meta.get("trashed", False):
                return self._handle(object_id, meta)
        return None

    def create(self, name: str, mime_type: str, data: bytes) -> RemoteHandle:
        object_id = uuid.uuid4().hex
        index = self._read_index()
        try:
            (self.objects / object_id).write_bytes(data)
        except OSError as exc:
            raise RemoteStoreError(str(exc)) from exc
        index[object_id] = {
            "name": name,
            "mime_type": mime_type,
            "trashed": False,
            "modified_at": datetime.now(timezone.utc).isoformat(),
        }
        self._write_index(index)
        logger.info("Created %s in local store %s", name, self.root)
        return self._handle(object_id, index[object_id])

    def update(self, handle: RemoteHandle, data: bytes) -> None:
        index = self._read_index()
        if handle.id not in index:
            raise RemoteStoreError(f"No such object: {handle.id}")
        try:
            (self.objects / handle.id).write_bytes(data)
        except OSError as exc:
            raise RemoteStoreError(str(exc)) from exc
        index[handle.id]["modified_at"] = datetime.now(timezone.utc).isoformat()
        self._write_index(index)
        logger.info("Updated %s in local store %s", handle.name, self.root)

    def download(self, handle: RemoteHandle) -> bytes:
        try:
            return (self.objects / handle.id).read_bytes()
        except OSError as exc:
            raise RemoteStoreError(f"Cannot read {handle.name}: {exc}") from exc

    def trash(self, handle: RemoteHandle) -> None:
        """Move an object to the trash (kept on disk, hidden from lookups)."""
        index = self._read_index()
        if handle.id in index:
            index[handle.id]["trashed"] = True
            self._write_index(index)

    def list_names(self, include_trashed: bool = False) -> list[str]:
        return [
            meta["name"]
            for meta in self._read_index().values()
            if include_trashed or not meta.get("trashed", False)
        ]


def create_remote(config: RemoteConfig, home: Path, auth=None) -> RemoteBackupStore:
    """Factory for the configured remote store.

    Args:
        config: Remote store configuration.
        home: App home directory.
        auth: Authenticator that supplies Drive credentials (Drive only).

    Returns:
        RemoteBackupStore: The instantiated store.

    Raises:
        ValueError: If the backend type is not supported.
    """
    if config.backend_type == RemoteBackendType.LOCAL:
        return LocalDirectoryStore(config.local_path or (home / "remote"))
    if config.backend_type == RemoteBackendType.GDRIVE:
        from .gdrive import GoogleDriveStore

        if auth is None or not hasattr(auth, "drive_service"):
            raise ValueError("Google Drive store needs a GoogleAuthenticator")
        return GoogleDriveStore(auth.drive_service)
    raise ValueError(f"Unsupported remote store: {config.backend_type}")
