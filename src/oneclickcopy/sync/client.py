"""
Sync client -- backup and restore of the whole document set.

There is exactly one backup object, found by its fixed name. Backup
creates it the first time and overwrites it afterwards; restore reads
it back. Nothing here retries: retry policy belongs to the caller.
"""

from __future__ import annotations

import logging
from typing import Callable, Sequence

from ..auth import Authenticator
from ..models import Document, Identity, now_ms
from . import codec
from .errors import (
    NoBackupFound,
    NotSignedIn,
    RemoteStoreError,
    SyncError,
    SyncResult,
    TransportFailure,
)
from .models import BACKUP_FILE_NAME, BACKUP_MIME_TYPE
from .remote import RemoteBackupStore

logger = logging.getLogger("oneclickcopy.sync.client")


class SyncClient:
    """Backs up to and restores from the single well-known backup object.

    Args:
        remote: Where the backup object lives.
        auth: Sign-in state; every call requires a signed-in identity.
        clock: Epoch-ms clock used for the envelope timestamp.
        file_name: Name of the backup object.
    """

    def __init__(
        self,
        remote: RemoteBackupStore,
        auth: Authenticator,
        clock: Callable[[], int] = now_ms,
        file_name: str = BACKUP_FILE_NAME,
    ):
        self.remote = remote
        self.auth = auth
        self.file_name = file_name
        self._clock = clock

    def _require_identity(self) -> Identity:
        identity = self.auth.current_identity()
        if identity is None:
            raise NotSignedIn("Not signed in")
        return identity

    def backup(self, documents: Sequence[Document]) -> SyncResult[None]:
        """Write ``documents`` to the backup object, creating it if needed.

        Returns:
            SyncResult: Empty success, or a failure carrying the reason.
        """
        try:
            identity = self._require_identity()
            payload = codec.encode(documents, clock=self._clock)
            handle = self.remote.find_by_name(self.file_name)
            if handle is not None:
                self.remote.update(handle, payload)
            else:
                self.remote.create(self.file_name, BACKUP_MIME_TYPE, payload)
        except SyncError as exc:
            logger.info("Backup skipped: %s", exc.message)
            return SyncResult.failure(exc)
        except RemoteStoreError as exc:
            logger.warning("Backup to %s failed: %s", self.remote.name, exc)
            return SyncResult.failure(TransportFailure(str(exc)))

        logger.info(
            "Backed up %d document(s) to %s for %s",
            len(documents), self.remote.name, identity.email,
        )
        return SyncResult.success()

    def restore(self) -> SyncResult[list[Document]]:
        """Read the document set back from the backup object.

        Returns:
            SyncResult: The decoded documents (possibly empty), or a failure
            of kind ``NO_BACKUP_FOUND``, ``MALFORMED_BACKUP``,
            ``NOT_SIGNED_IN`` or ``TRANSPORT_FAILURE``.
        """
        try:
            self._require_identity()
            handle = self.remote.find_by_name(self.file_name)
            if handle is None:
                raise NoBackupFound("No backup found")
            documents = codec.decode(self.remote.download(handle))
        except SyncError as exc:
            log = logger.warning if exc.alarming else logger.info
            log("Restore from %s: %s", self.remote.name, exc.message)
            return SyncResult.failure(exc)
        except RemoteStoreError as exc:
            logger.warning("Restore from %s failed: %s", self.remote.name, exc)
            return SyncResult.failure(TransportFailure(str(exc)))

        logger.info("Restored %d document(s) from %s", len(documents), self.remote.name)
        return SyncResult.success(documents)
