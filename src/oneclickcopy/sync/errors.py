"""
Sync error taxonomy and the outcome type returned by the sync client.

Callers branch on ``SyncErrorKind`` rather than on message text:
``NO_BACKUP_FOUND`` is an expected outcome for first-time users,
everything else except ``NOT_SIGNED_IN`` is worth telling the user.
"""

from __future__ import annotations

from enum import Enum
from typing import Generic, Optional, TypeVar

T = TypeVar("T")


class SyncErrorKind(str, Enum):
    """Why a sync operation did not succeed."""

    NOT_SIGNED_IN = "not_signed_in"
    NO_BACKUP_FOUND = "no_backup_found"
    MALFORMED_BACKUP = "malformed_backup"
    TRANSPORT_FAILURE = "transport_failure"


class SyncError(Exception):
    """Base class for sync failures."""

    kind: SyncErrorKind = SyncErrorKind.TRANSPORT_FAILURE

    def __init__(self, message: str = ""):
        self.message = message or self.default_message()
        super().__init__(self.message)

    @classmethod
    def default_message(cls) -> str:
        return cls.kind.value.replace("_", " ").capitalize()

    @property
    def alarming(self) -> bool:
        """Whether the user should be told about this failure."""
        return self.kind not in (SyncErrorKind.NOT_SIGNED_IN, SyncErrorKind.NO_BACKUP_FOUND)


class NotSignedIn(SyncError):
    kind = SyncErrorKind.NOT_SIGNED_IN


class NoBackupFound(SyncError):
    kind = SyncErrorKind.NO_BACKUP_FOUND


class MalformedBackup(SyncError):
    kind = SyncErrorKind.MALFORMED_BACKUP


class TransportFailure(SyncError):
    kind = SyncErrorKind.TRANSPORT_FAILURE


class RemoteStoreError(Exception):
    """Raised by remote store implementations for any I/O, quota, or auth problem."""


class SyncResult(Generic[T]):
    """Success-or-failure outcome of a sync operation.

    Use :meth:`success` / :meth:`failure` to build one; inspect with
    ``ok``, ``value`` and ``error``.
    """

    __slots__ = ("value", "error")

    def __init__(self, value: Optional[T] = None, error: Optional[SyncError] = None):
        self.value = value
        self.error = error

    @classmethod
    def success(cls, value: Optional[T] = None) -> "SyncResult[T]":
        return cls(value=value)

    @classmethod
    def failure(cls, error: SyncError) -> "SyncResult[T]":
        return cls(error=error)

    @property
    def ok(self) -> bool:
        return self.error is None

    @property
    def kind(self) -> Optional[SyncErrorKind]:
        return self.error.kind if self.error else None

    def __repr__(self) -> str:
        if self.ok:
            return f"SyncResult(ok, value={self.value!r})"
        return f"SyncResult({self.error.kind.value}: {self.error.message!r})"
