"""
Application session -- wires the store, editor and sync engine together.

This is the layer a UI talks to. It mirrors the app's screens:
showing the document list may trigger an auto-backup, finishing a
sign-in triggers the one-time restore, and restored documents are
merged in as new local documents.
"""

from __future__ import annotations

import logging
from pathlib import Path
from typing import Callable, Optional, Sequence

from .auth import Authenticator, LocalAuthenticator
from .config import AppConfig, RemoteBackendType, load_config, resolve_home
from .editor import EditorSession
from .models import Document, now_ms
from .scheduler import ThreadScheduler
from .store import DocumentNotFoundError, DocumentStore
from .sync.client import SyncClient
from .sync.coordinator import AutoSyncCoordinator
from .sync.errors import SyncResult
from .sync.remote import create_remote
from .sync.state import STATE_FILE, AutoSyncStateStore

logger = logging.getLogger("oneclickcopy.app")

Notifier = Callable[[str], None]


class ListVisit:
    """One showing of the document list.

    Requests at most one auto-backup per visit, with the first
    non-empty document list it sees.
    """

    def __init__(self, store: DocumentStore, coordinator: AutoSyncCoordinator):
        self.coordinator = coordinator
        self.documents: list[Document] = []
        self.backup_requested = False
        self._unsubscribe = store.subscribe(self._on_documents)

    def _on_documents(self, documents: list[Document]) -> None:
        self.documents = documents
        if not self.backup_requested and documents:
            self.backup_requested = True
            self.coordinator.request_backup(documents)

    def close(self) -> None:
        self._unsubscribe()


class NotesSession:
    """Everything one running app instance needs.

    Args:
        store: Local document store.
        client: Sync client for manual and automatic sync.
        auth: Sign-in state.
        state: Persisted auto-sync state.
        scheduler: Background execution for sync and debounced saves.
        notify: Shows a transient message to the user.
        clock: Epoch-ms clock.
        cooldown_ms: Auto-backup cooldown window.
        debounce_ms: Editor auto-save quiet period.
    """

    def __init__(
        self,
        store: DocumentStore,
        client: SyncClient,
        auth: Authenticator,
        state: AutoSyncStateStore,
        scheduler: Optional[ThreadScheduler] = None,
        notify: Optional[Notifier] = None,
        clock: Callable[[], int] = now_ms,
        cooldown_ms: int = 60_000,
        debounce_ms: int = 500,
    ):
        self.store = store
        self.client = client
        self.auth = auth
        self.scheduler = scheduler or ThreadScheduler()
        self.notify = notify or (lambda message: logger.info("%s", message))
        self.debounce_ms = debounce_ms
        self._clock = clock
        self.coordinator = AutoSyncCoordinator(
            client=client,
            auth=auth,
            state=state,
            scheduler=self.scheduler,
            clock=clock,
            cooldown_ms=cooldown_ms,
            on_backup_failed=lambda msg: self.notify(f"Auto-backup failed: {msg}"),
            on_restore_failed=lambda msg: self.notify(f"Auto-restore failed: {msg}"),
            on_restore_success=self.merge_restored,
        )

    # ------------------------------------------------------------------
    # Screens
    # ------------------------------------------------------------------

    def open_list(self) -> ListVisit:
        """Show the document list (may start an auto-backup)."""
        return ListVisit(self.store, self.coordinator)

    def open_editor(self, doc_id: Optional[int] = None) -> EditorSession:
        """Open an existing document, or a new one when ``doc_id`` is None.

        Raises:
            DocumentNotFoundError: If ``doc_id`` does not exist.
        """
        document = None
        if doc_id is not None:
            document = self.store.get(doc_id)
            if document is None:
                raise DocumentNotFoundError(doc_id)
        return EditorSession(
            self.store,
            document,
            scheduler=self.scheduler,
            debounce_ms=self.debounce_ms,
            clock=self._clock,
        )

    def delete_document(self, doc_id: int) -> bool:
        return self.store.delete_by_id(doc_id)

    # ------------------------------------------------------------------
    # Sync
    # ------------------------------------------------------------------

    def sign_in_completed(self) -> bool:
        """Call after a successful sign-in; runs the first-login restore."""
        identity = self.auth.current_identity()
        if identity is not None:
            self.notify(f"Signed in as {identity.email}")
        return self.coordinator.try_auto_restore()

    def sign_out(self) -> None:
        self.auth.sign_out()
        self.notify("Signed out")

    def merge_restored(self, documents: Sequence[Document]) -> list[int]:
        """Add restored documents as new local documents.

        Existing documents are never touched; nothing is deduplicated.

        Returns:
            list[int]: Ids assigned to the inserted documents.
        """
        new_ids = self.store.insert_many(doc.model_copy(update={"id": 0}) for doc in documents)
        logger.info("Merged %d restored document(s)", len(new_ids))
        return new_ids

    def backup_now(self) -> SyncResult[None]:
        """Manual backup of every document, ignoring the cooldown."""
        return self.client.backup(self.store.list_all())

    def restore_now(self) -> SyncResult[list[int]]:
        """Manual restore: merge the backup into local documents.

        Unlike the first-login restore this can be repeated, and every
        run adds the backed-up documents again.

        Returns:
            SyncResult: Ids of the merged documents, or the restore failure.
        """
        result = self.client.restore()
        if not result.ok:
            return SyncResult.failure(result.error)
        return SyncResult.success(self.merge_restored(result.value))

    def wait_idle(self, timeout: Optional[float] = None) -> None:
        """Block until background sync work already started has finished."""
        self.scheduler.drain(timeout)

    def close(self) -> None:
        self.coordinator.cleanup()
        self.scheduler.shutdown()


def create_authenticator(config: AppConfig, home: Path) -> Authenticator:
    """Authenticator matching the configured remote store."""
    if config.remote.backend_type == RemoteBackendType.GDRIVE:
        from .sync.gdrive import GoogleAuthenticator

        return GoogleAuthenticator(
            token_path=config.remote.gdrive_token_path or home / "gdrive_token.json",
            client_secrets_path=(
                config.remote.gdrive_credentials_path or home / "gdrive_credentials.json"
            ),
        )
    return LocalAuthenticator(home)


def build_session(
    home: Optional[Path] = None,
    notify: Optional[Notifier] = None,
    config: Optional[AppConfig] = None,
) -> NotesSession:
    """Build a fully wired session from the app home and its config.

    Args:
        home: App home directory. Defaults to ``~/.oneclickcopy``.
        notify: Shows transient messages to the user.
        config: Overrides ``<home>/config.yaml``.

    Returns:
        NotesSession: Ready-to-use session. Call ``close()`` when done.
    """
    home_path = resolve_home(home)
    home_path.mkdir(parents=True, exist_ok=True)
    config = config or load_config(home_path)

    auth = create_authenticator(config, home_path)
    remote = create_remote(config.remote, home_path, auth=auth)
    store = DocumentStore(home_path / config.database)
    client = SyncClient(remote, auth)
    state = AutoSyncStateStore(home_path / STATE_FILE)

    logger.debug("Session home=%s remote=%s", home_path, remote.name)
    return NotesSession(
        store=store,
        client=client,
        auth=auth,
        state=state,
        notify=notify,
        cooldown_ms=int(config.cooldown_seconds * 1000),
        debounce_ms=config.debounce_ms,
    )
