"""Shared test fixtures for oneclickcopy."""

from __future__ import annotations

from pathlib import Path

import pytest

from oneclickcopy.auth import LocalAuthenticator
from oneclickcopy.models import Document
from oneclickcopy.store import DocumentStore
from oneclickcopy.sync.client import SyncClient
from oneclickcopy.sync.errors import SyncResult
from oneclickcopy.sync.remote import LocalDirectoryStore
from oneclickcopy.sync.state import AutoSyncStateStore


class ManualClock:
    """Epoch-ms clock that only moves when told to."""

    def __init__(self, now: int = 0):
        self.now = now

    def __call__(self) -> int:
        return self.now


class ManualHandle:
    def __init__(self, due: int, fn, args):
        self.due = due
        self.fn = fn
        self.args = args
        self.cancelled = False
        self.started = False

    def cancel(self) -> bool:
        if self.started:
            return False
        self.cancelled = True
        return True


class ManualScheduler:
    """Deterministic scheduler: timers fire on ``advance``.

    ``submit`` runs inline unless ``defer_submits`` is set, in which case
    work queues up until ``run_submitted`` is called.
    """

    def __init__(self, clock: ManualClock):
        self.clock = clock
        self.timers: list[ManualHandle] = []
        self.submitted = 0
        self.defer_submits = False
        self.queued: list[tuple] = []

    def call_later(self, delay: float, fn, *args) -> ManualHandle:
        handle = ManualHandle(self.clock.now + int(round(delay * 1000)), fn, args)
        self.timers.append(handle)
        return handle

    def submit(self, fn, *args) -> None:
        self.submitted += 1
        if self.defer_submits:
            self.queued.append((fn, args))
            return
        fn(*args)

    def run_submitted(self) -> None:
        """Run queued work in order, including work it submits."""
        while self.queued:
            fn, args = self.queued.pop(0)
            fn(*args)

    @property
    def pending(self) -> list[ManualHandle]:
        return [h for h in self.timers if not h.cancelled and not h.started]

    def advance(self, ms: int) -> None:
        target = self.clock.now + ms
        while True:
            due = sorted((h for h in self.pending if h.due <= target), key=lambda h: h.due)
            if not due:
                break
            handle = due[0]
            self.clock.now = handle.due
            handle.started = True
            handle.fn(*handle.args)
        self.clock.now = target

    def drain(self, timeout=None) -> None:
        pass

    def shutdown(self) -> None:
        for handle in self.pending:
            handle.cancel()


class RecordingClient:
    """Stands in for SyncClient; records every call and replays scripted results."""

    def __init__(self, clock: ManualClock):
        self.clock = clock
        self.backups: list[tuple[int, list[Document]]] = []
        self.restores: list[int] = []
        self.backup_results: list[SyncResult] = []
        self.restore_result: SyncResult = SyncResult.success([])

    def backup(self, documents):
        self.backups.append((self.clock.now, list(documents)))
        if self.backup_results:
            return self.backup_results.pop(0)
        return SyncResult.success()

    def restore(self):
        self.restores.append(self.clock.now)
        return self.restore_result


@pytest.fixture
def make_doc():
    """Factory for Documents with sensible defaults."""

    def _make(doc_id: int = 0, title: str = "Doc", content: str = "one\ntwo", **kwargs) -> Document:
        kwargs.setdefault("created_at", 1_700_000_000_000)
        kwargs.setdefault("updated_at", 1_700_000_000_000)
        return Document(id=doc_id, title=title, content=content, **kwargs)

    return _make


@pytest.fixture
def clock() -> ManualClock:
    return ManualClock(0)


@pytest.fixture
def scheduler(clock: ManualClock) -> ManualScheduler:
    return ManualScheduler(clock)


@pytest.fixture
def home(tmp_path: Path) -> Path:
    """Provide a temporary app home directory."""
    app_home = tmp_path / ".oneclickcopy"
    app_home.mkdir()
    return app_home


@pytest.fixture
def store(home: Path, clock: ManualClock) -> DocumentStore:
    return DocumentStore(home / "documents.db", clock=clock)


@pytest.fixture
def auth(home: Path) -> LocalAuthenticator:
    """A signed-in local authenticator."""
    authenticator = LocalAuthenticator(home)
    authenticator.sign_in("tester@example.com")
    return authenticator


@pytest.fixture
def remote(home: Path) -> LocalDirectoryStore:
    return LocalDirectoryStore(home / "remote")


@pytest.fixture
def client(remote: LocalDirectoryStore, auth: LocalAuthenticator, clock: ManualClock) -> SyncClient:
    return SyncClient(remote, auth, clock=clock)


@pytest.fixture
def state(home: Path) -> AutoSyncStateStore:
    return AutoSyncStateStore(home / "sync-state.json")


@pytest.fixture
def recording_client(clock: ManualClock) -> RecordingClient:
    return RecordingClient(clock)
