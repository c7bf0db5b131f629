"""
Tests for the local directory remote store and the store factory.
"""

from __future__ import annotations

from pathlib import Path
from unittest.mock import MagicMock

import pytest

from oneclickcopy.config import RemoteBackendType, RemoteConfig
from oneclickcopy.sync.errors import RemoteStoreError
from oneclickcopy.sync.models import RemoteHandle
from oneclickcopy.sync.remote import LocalDirectoryStore, create_remote


class TestLocalDirectoryStore:
    """Tests for LocalDirectoryStore."""

    def test_create_and_find(self, remote: LocalDirectoryStore):
        handle = remote.create("backup.json", "application/json", b"{}")
        found = remote.find_by_name("backup.json")

        assert found is not None
        assert found.id == handle.id
        assert found.name == "backup.json"
        assert remote.download(found) == b"{}"

    def test_find_missing(self, remote: LocalDirectoryStore):
        assert remote.find_by_name("nothing.json") is None

    def test_update_overwrites_in_place(self, remote: LocalDirectoryStore):
        handle = remote.create("backup.json", "application/json", b"one")
        remote.update(handle, b"two")

        assert remote.download(remote.find_by_name("backup.json")) == b"two"
        assert remote.list_names() == ["backup.json"]

    def test_update_unknown_object(self, remote: LocalDirectoryStore):
        with pytest.raises(RemoteStoreError):
            remote.update(RemoteHandle(id="missing", name="x"), b"data")

    def test_trashed_objects_hidden(self, remote: LocalDirectoryStore):
        handle = remote.create("backup.json", "application/json", b"old")
        remote.trash(handle)

        assert remote.find_by_name("backup.json") is None
        assert remote.list_names() == []
        assert remote.list_names(include_trashed=True) == ["backup.json"]

    def test_survives_reopen(self, remote: LocalDirectoryStore):
        remote.create("backup.json", "application/json", b"persisted")
        reopened = LocalDirectoryStore(remote.root)
        assert reopened.download(reopened.find_by_name("backup.json")) == b"persisted"

    def test_corrupt_index(self, remote: LocalDirectoryStore):
        (remote.root / LocalDirectoryStore.INDEX_FILE).write_text("{nope", encoding="utf-8")
        with pytest.raises(RemoteStoreError):
            remote.find_by_name("backup.json")

    def test_missing_object_content(self, remote: LocalDirectoryStore):
        handle = remote.create("backup.json", "application/json", b"x")
        (remote.objects / handle.id).unlink()
        with pytest.raises(RemoteStoreError):
            remote.download(handle)


class TestCreateRemote:
    """Tests for the create_remote factory."""

    def test_local_default_path(self, home: Path):
        store = create_remote(RemoteConfig(), home)
        assert isinstance(store, LocalDirectoryStore)
        assert store.root == home / "remote"

    def test_local_custom_path(self, home: Path, tmp_path: Path):
        config = RemoteConfig(backend_type=RemoteBackendType.LOCAL, local_path=tmp_path / "usb")
        store = create_remote(config, home)
        assert store.root == tmp_path / "usb"
        assert store.name == "local"

    def test_gdrive_needs_google_auth(self, home: Path):
        config = RemoteConfig(backend_type=RemoteBackendType.GDRIVE)
        with pytest.raises(ValueError):
            create_remote(config, home, auth=None)

    def test_gdrive_uses_auth_service(self, home: Path):
        auth = MagicMock()
        files = auth.drive_service.return_value.files.return_value
        files.list.return_value.execute.return_value = {"files": []}
        config = RemoteConfig(backend_type=RemoteBackendType.GDRIVE)
        store = create_remote(config, home, auth=auth)
        assert store.name == "gdrive"
        assert store.find_by_name("x") is None
        auth.drive_service.assert_called_once()
