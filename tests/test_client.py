"""
Tests for the sync client -- one backup object, created once then overwritten.
"""

from __future__ import annotations

import json
from unittest.mock import MagicMock

from oneclickcopy.auth import LocalAuthenticator
from oneclickcopy.sync.client import SyncClient
from oneclickcopy.sync.errors import RemoteStoreError, SyncErrorKind
from oneclickcopy.sync.models import BACKUP_FILE_NAME, RemoteHandle


class TestBackup:
    """Tests for SyncClient.backup."""

    def test_first_backup_creates_object(self, client, remote, make_doc):
        result = client.backup([make_doc(1, "A")])

        assert result.ok
        handle = remote.find_by_name(BACKUP_FILE_NAME)
        assert handle is not None
        assert handle.mime_type == "application/json"

    def test_second_backup_overwrites(self, client, remote, make_doc):
        client.backup([make_doc(1, "A")])
        client.backup([make_doc(1, "A"), make_doc(2, "B")])

        assert remote.list_names() == [BACKUP_FILE_NAME]
        data = json.loads(remote.download(remote.find_by_name(BACKUP_FILE_NAME)))
        assert [d["title"] for d in data["documents"]] == ["A", "B"]

    def test_envelope_timestamp_from_clock(self, client, remote, clock, make_doc):
        clock.now = 42_000
        client.backup([make_doc(1, "A")])
        data = json.loads(remote.download(remote.find_by_name(BACKUP_FILE_NAME)))
        assert data["timestamp"] == 42_000

    def test_not_signed_in(self, remote, home, make_doc):
        client = SyncClient(remote, LocalAuthenticator(home))
        result = client.backup([make_doc(1, "A")])

        assert not result.ok
        assert result.kind == SyncErrorKind.NOT_SIGNED_IN
        assert remote.find_by_name(BACKUP_FILE_NAME) is None

    def test_transport_failure(self, auth, make_doc):
        remote = MagicMock()
        remote.find_by_name.side_effect = RemoteStoreError("quota exceeded")
        result = SyncClient(remote, auth).backup([make_doc(1, "A")])

        assert result.kind == SyncErrorKind.TRANSPORT_FAILURE
        assert "quota exceeded" in result.error.message
        remote.create.assert_not_called()

    def test_update_used_when_object_exists(self, auth, make_doc):
        handle = RemoteHandle(id="abc", name=BACKUP_FILE_NAME)
        remote = MagicMock()
        remote.find_by_name.return_value = handle

        assert SyncClient(remote, auth).backup([make_doc(1, "A")]).ok
        remote.update.assert_called_once()
        assert remote.update.call_args.args[0] == handle
        remote.create.assert_not_called()


class TestRestore:
    """Tests for SyncClient.restore."""

    def test_round_trip(self, client, make_doc):
        docs = [make_doc(1, "A", "x\ny"), make_doc(2, "B", "")]
        client.backup(docs)
        result = client.restore()

        assert result.ok
        assert result.value == docs

    def test_no_backup_found(self, client):
        result = client.restore()
        assert result.kind == SyncErrorKind.NO_BACKUP_FOUND
        assert not result.error.alarming

    def test_malformed_backup(self, client, remote):
        remote.create(BACKUP_FILE_NAME, "application/json", b"{broken")
        result = client.restore()
        assert result.kind == SyncErrorKind.MALFORMED_BACKUP
        assert result.error.alarming

    def test_empty_backup(self, client):
        client.backup([])
        result = client.restore()
        assert result.ok
        assert result.value == []

    def test_trashed_backup_is_invisible(self, client, remote, make_doc):
        client.backup([make_doc(1, "A")])
        remote.trash(remote.find_by_name(BACKUP_FILE_NAME))
        assert client.restore().kind == SyncErrorKind.NO_BACKUP_FOUND

    def test_not_signed_in(self, client, auth):
        auth.sign_out()
        assert client.restore().kind == SyncErrorKind.NOT_SIGNED_IN

    def test_download_failure(self, auth):
        remote = MagicMock()
        remote.find_by_name.return_value = RemoteHandle(id="abc", name=BACKUP_FILE_NAME)
        remote.download.side_effect = RemoteStoreError("connection reset")
        result = SyncClient(remote, auth).restore()
        assert result.kind == SyncErrorKind.TRANSPORT_FAILURE
