"""
Tests for the application session -- list visits, sign-in restore,
and merging restored documents.
"""

from __future__ import annotations

from pathlib import Path
from unittest.mock import MagicMock

import pytest

from oneclickcopy.app import NotesSession, build_session, create_authenticator
from oneclickcopy.auth import LocalAuthenticator
from oneclickcopy.config import AppConfig, RemoteBackendType, RemoteConfig
from oneclickcopy.store import DocumentNotFoundError
from oneclickcopy.sync.errors import RemoteStoreError, SyncErrorKind
from oneclickcopy.sync.models import BACKUP_FILE_NAME
from oneclickcopy.sync.state import AutoSyncStateStore


@pytest.fixture
def notify():
    return MagicMock()


@pytest.fixture
def session(store, client, auth, scheduler, clock, notify) -> NotesSession:
    return NotesSession(
        store=store,
        client=client,
        auth=auth,
        state=AutoSyncStateStore(),
        scheduler=scheduler,
        notify=notify,
        clock=clock,
    )


class TestListVisit:
    """Tests for auto-backup requests from the document list."""

    def test_empty_list_requests_nothing(self, session, remote):
        visit = session.open_list()
        assert visit.documents == []
        assert not visit.backup_requested
        assert remote.find_by_name(BACKUP_FILE_NAME) is None

    def test_first_non_empty_list_backs_up(self, session, store, remote, make_doc):
        visit = session.open_list()
        store.insert(make_doc(0, "A"))

        assert visit.backup_requested
        assert [d.title for d in visit.documents] == ["A"]
        assert remote.find_by_name(BACKUP_FILE_NAME) is not None

    def test_one_request_per_visit(self, session, store, make_doc):
        coordinator = MagicMock()
        session.coordinator = coordinator
        store.insert(make_doc(0, "A"))

        visit = session.open_list()
        store.insert(make_doc(0, "B"))
        store.insert(make_doc(0, "C"))
        visit.close()
        assert coordinator.request_backup.call_count == 1

        session.open_list().close()
        assert coordinator.request_backup.call_count == 2

    def test_close_unsubscribes(self, session, store, make_doc):
        visit = session.open_list()
        visit.close()
        store.insert(make_doc(0, "A"))
        assert visit.documents == []


class TestSignInRestore:
    """Tests for the restore that follows the first sign-in."""

    def test_restore_merges_as_new_documents(self, session, store, client, make_doc, notify):
        client.backup([make_doc(1, "R1"), make_doc(2, "R2")])
        store.insert(make_doc(0, "Local"))

        assert session.sign_in_completed() is True

        titles = sorted(d.title for d in store.list_all())
        assert titles == ["Local", "R1", "R2"]
        notify.assert_any_call("Signed in as tester@example.com")

    def test_second_sign_in_does_not_restore(self, session, store, client, make_doc):
        client.backup([make_doc(1, "R1")])
        session.sign_in_completed()
        assert session.sign_in_completed() is False
        assert store.count() == 1

    def test_no_backup_is_quiet(self, session, store, notify):
        session.sign_in_completed()
        assert store.count() == 0
        for call in notify.call_args_list:
            assert "failed" not in call.args[0]

    def test_malformed_backup_notifies(self, session, remote, notify):
        remote.create(BACKUP_FILE_NAME, "application/json", b"garbage")
        session.sign_in_completed()
        messages = [call.args[0] for call in notify.call_args_list]
        assert any(m.startswith("Auto-restore failed:") for m in messages)

    def test_backup_failure_notifies(self, session, store, make_doc, notify):
        session.client.remote = MagicMock()
        session.client.remote.find_by_name.side_effect = RemoteStoreError("boom")
        store.insert(make_doc(0, "A"))
        session.open_list()
        notify.assert_called_with("Auto-backup failed: boom")


class TestManualSync:
    """Tests for backup_now, restore_now and merge_restored."""

    def test_merge_adds_every_record(self, session, store, make_doc):
        store.insert(make_doc(0, "L1"))
        store.insert(make_doc(0, "L2"))
        ids = session.merge_restored([make_doc(1, "L1"), make_doc(7, "R")])

        assert len(ids) == 2
        assert store.count() == 4

    def test_merge_notifies_once(self, session, store, make_doc):
        seen = []
        store.subscribe(seen.append)
        session.merge_restored([make_doc(i, f"R{i}") for i in range(1, 6)])
        assert len(seen) == 2
        assert len(seen[-1]) == 5

    def test_restore_now_repeats(self, session, store, make_doc):
        store.insert(make_doc(0, "A"))
        assert session.backup_now().ok
        assert session.restore_now().ok
        assert session.restore_now().ok
        assert store.count() == 3

    def test_restore_now_without_backup(self, session):
        assert session.restore_now().kind == SyncErrorKind.NO_BACKUP_FOUND

    def test_open_missing_document(self, session):
        with pytest.raises(DocumentNotFoundError):
            session.open_editor(99)

    def test_delete_document(self, session, store, make_doc):
        doc_id = store.insert(make_doc(0, "A"))
        assert session.delete_document(doc_id) is True
        assert session.delete_document(doc_id) is False

    def test_sign_out(self, session, auth, notify):
        session.sign_out()
        assert not auth.is_signed_in()
        notify.assert_called_with("Signed out")

    def test_close_is_idempotent(self, session):
        session.close()
        session.close()
        assert session.coordinator.closed


class TestBuildSession:
    """Tests for build_session and create_authenticator."""

    def test_local_defaults(self, tmp_path: Path):
        session = build_session(tmp_path / "home")
        try:
            assert isinstance(session.auth, LocalAuthenticator)
            assert session.client.remote.name == "local"
            assert session.coordinator.cooldown_ms == 60_000
        finally:
            session.close()

    def test_config_overrides(self, tmp_path: Path):
        config = AppConfig(cooldown_seconds=5, debounce_ms=10)
        session = build_session(tmp_path, config=config)
        try:
            assert session.coordinator.cooldown_ms == 5_000
            assert session.debounce_ms == 10
        finally:
            session.close()

    def test_google_authenticator_paths(self, tmp_path: Path):
        config = AppConfig(remote=RemoteConfig(backend_type=RemoteBackendType.GDRIVE))
        auth = create_authenticator(config, tmp_path)
        assert auth.token_path == tmp_path / "gdrive_token.json"
        assert auth.client_secrets_path == tmp_path / "gdrive_credentials.json"
