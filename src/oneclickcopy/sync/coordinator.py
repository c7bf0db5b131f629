"""
Auto-sync coordinator -- when to back up, and the one-time restore.

    document list shown  ->  request_backup(docs)  ->  now, or after cooldown
    sign-in completed    ->  try_auto_restore()    ->  once per installation

Backups are throttled to one per cooldown window. A request that
lands inside the window is scheduled for the moment the window
closes; a newer request replaces it, so what finally goes out is
always the latest document set. Failures are reported, never retried
here: the next time the list is shown is the retry.
"""

from __future__ import annotations

import itertools
import logging
import threading
from typing import Any, Callable, Optional, Sequence

from ..auth import Authenticator
from ..models import Document, now_ms
from ..scheduler import ThreadScheduler
from .client import SyncClient
from .state import AutoSyncStateStore

logger = logging.getLogger("oneclickcopy.sync.coordinator")

DEFAULT_COOLDOWN_MS = 60_000

MessageCallback = Callable[[str], None]
DocumentsCallback = Callable[[list[Document]], None]


class AutoSyncCoordinator:
    """Cooldown-throttled backups and one-shot restore-on-first-login.

    Args:
        client: Performs the actual backup/restore.
        auth: Sign-in state; nothing happens while signed out.
        state: Persisted ``last_backup_at`` / ``has_restored_once``.
        scheduler: Runs backup and restore off the caller's thread and
            delays backups that land inside the cooldown window.
        clock: Epoch-ms clock.
        cooldown_ms: Minimum time between two completed backups.
        on_backup_failed: Called with the error text when a backup fails.
        on_restore_failed: Called with the error text when a restore fails
            for any reason other than there being no backup yet.
        on_restore_success: Called with the restored documents when the
            backup was non-empty.
    """

    def __init__(
        self,
        client: SyncClient,
        auth: Authenticator,
        state: AutoSyncStateStore,
        scheduler: ThreadScheduler,
        clock: Callable[[], int] = now_ms,
        cooldown_ms: int = DEFAULT_COOLDOWN_MS,
        on_backup_failed: Optional[MessageCallback] = None,
        on_restore_failed: Optional[MessageCallback] = None,
        on_restore_success: Optional[DocumentsCallback] = None,
    ):
        self.client = client
        self.auth = auth
        self.state = state
        self.cooldown_ms = cooldown_ms
        self.on_backup_failed = on_backup_failed
        self.on_restore_failed = on_restore_failed
        self.on_restore_success = on_restore_success
        self._scheduler = scheduler
        self._clock = clock

        self._lock = threading.Lock()
        self._pending = None
        self._pending_token: Optional[int] = None
        self._pending_documents: Optional[list[Document]] = None
        self._next_documents: Optional[list[Document]] = None
        self._backup_in_flight = False
        self._tokens = itertools.count(1)
        self._restore_in_flight = False
        self._closed = False

    # ------------------------------------------------------------------
    # Introspection
    # ------------------------------------------------------------------

    @property
    def closed(self) -> bool:
        return self._closed

    @property
    def has_pending_backup(self) -> bool:
        """A backup is waiting, for its cooldown or for the running one."""
        return self._pending is not None or self._next_documents is not None

    @property
    def backup_in_flight(self) -> bool:
        return self._backup_in_flight

    @property
    def pending_documents(self) -> Optional[list[Document]]:
        """Snapshot the next backup will send, if one is waiting."""
        with self._lock:
            waiting = self._next_documents
            if waiting is None:
                waiting = self._pending_documents
            return list(waiting) if waiting is not None else None

    # ------------------------------------------------------------------
    # Backup
    # ------------------------------------------------------------------

    def request_backup(self, documents: Sequence[Document]) -> None:
        """Back up ``documents`` now, or once the cooldown window closes.

        Replaces any backup still waiting for its window. While a backup
        is running the request is held and decided once it completes, so
        two backups never run at the same time. Does nothing while signed
        out; the request is not remembered.
        """
        if not self.auth.is_signed_in():
            logger.debug("Not signed in, ignoring backup request")
            return

        snapshot = list(documents)
        with self._lock:
            if self._closed:
                return
            self._cancel_pending_locked()
            if self._backup_in_flight:
                self._next_documents = snapshot
                logger.debug("Backup in flight, holding %d document(s)", len(snapshot))
                return
            run_now = self._plan_locked(snapshot)

        if run_now:
            self._scheduler.submit(self._perform_backup, snapshot)

    def _plan_locked(self, snapshot: list[Document]) -> bool:
        """Apply the cooldown to ``snapshot``.

        Returns:
            bool: True if the caller must submit the backup now; it is
            then already marked in flight.
        """
        now = self._clock()
        last = self.state.last_backup_at
        elapsed = None if last is None else max(now - last, 0)

        if elapsed is None or elapsed >= self.cooldown_ms:
            logger.debug("Cooldown passed, backing up %d document(s) now", len(snapshot))
            self._backup_in_flight = True
            return True

        delay_ms = self.cooldown_ms - elapsed
        token = next(self._tokens)
        self._pending_token = token
        self._pending_documents = snapshot
        self._pending = self._scheduler.call_later(
            delay_ms / 1000.0, self._run_scheduled, token, snapshot
        )
        logger.debug("Backup of %d document(s) scheduled in %d ms", len(snapshot), delay_ms)
        return False

    def _cancel_pending_locked(self) -> None:
        if self._pending is not None:
            self._pending.cancel()
            logger.debug("Superseded pending backup")
        self._pending = None
        self._pending_token = None
        self._pending_documents = None
        self._next_documents = None

    def _run_scheduled(self, token: int, snapshot: list[Document]) -> None:
        with self._lock:
            if self._pending_token != token or self._closed:
                return
            self._pending = None
            self._pending_token = None
            self._pending_documents = None
            self._backup_in_flight = True
        self._perform_backup(snapshot)

    def _perform_backup(self, snapshot: list[Document]) -> None:
        try:
            if not self._closed:
                self._send_backup(snapshot)
        finally:
            self._backup_finished()

    def _send_backup(self, snapshot: list[Document]) -> None:
        result = self.client.backup(snapshot)
        if result.ok:
            self.state.record_backup(self._clock())
            return
        if not result.error.alarming:
            logger.info("Auto-backup skipped: %s", result.error.message)
            return
        self.state.record_error(result.error.message)
        logger.warning("Auto-backup failed: %s", result.error.message)
        self._emit(self.on_backup_failed, result.error.message)

    def _backup_finished(self) -> None:
        with self._lock:
            self._backup_in_flight = False
            held, self._next_documents = self._next_documents, None
            if held is None or self._closed:
                return
            run_now = self._plan_locked(held)
        if run_now:
            self._scheduler.submit(self._perform_backup, held)

    # ------------------------------------------------------------------
    # Restore
    # ------------------------------------------------------------------

    def try_auto_restore(self) -> bool:
        """Restore from the backup once, right after the first sign-in.

        The attempt is consumed whatever its outcome, so a failed or
        empty restore is never retried on later sign-ins.

        Returns:
            bool: True if a restore attempt was started.
        """
        if not self.auth.is_signed_in():
            return False
        with self._lock:
            if self._closed or self._restore_in_flight or self.state.has_restored_once:
                return False
            self._restore_in_flight = True
        self._scheduler.submit(self._perform_restore)
        return True

    def _perform_restore(self) -> None:
        try:
            result = self.client.restore()
        finally:
            self.state.mark_restored()
            with self._lock:
                self._restore_in_flight = False

        if result.ok:
            if result.value:
                self._emit(self.on_restore_success, result.value)
            return
        if not result.error.alarming:
            return
        logger.warning("Auto-restore failed: %s", result.error.message)
        self._emit(self.on_restore_failed, result.error.message)

    # ------------------------------------------------------------------
    # Lifecycle
    # ------------------------------------------------------------------

    def _emit(self, callback: Optional[Callable[[Any], None]], payload: Any) -> None:
        if callback is None or self._closed:
            return
        callback(payload)

    def cleanup(self) -> None:
        """Cancel any scheduled backup and stop reporting. Safe to repeat."""
        with self._lock:
            if self._closed:
                return
            self._closed = True
            self._cancel_pending_locked()
        logger.debug("Auto-sync coordinator closed")
