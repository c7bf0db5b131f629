"""
Google Drive remote store and Google account sign-in.

The backup is one JSON file in the user's Drive, created by this
app under the ``drive.file`` scope, so the app can only see files
it created itself.

Credentials:
    client secrets   -- OAuth desktop client JSON from the Cloud Console
    token            -- cached user token, refreshed when expired
"""

from __future__ import annotations

import io
import logging
from pathlib import Path
from typing import Any, Callable, Optional

from google.auth.exceptions import GoogleAuthError, RefreshError
from google.auth.transport.requests import Request
from google.oauth2.credentials import Credentials
from google_auth_oauthlib.flow import InstalledAppFlow
from googleapiclient.discovery import build
from googleapiclient.errors import HttpError
from googleapiclient.http import MediaIoBaseDownload, MediaIoBaseUpload

from ..auth import Authenticator
from ..models import Identity
from .errors import RemoteStoreError
from .models import RemoteHandle
from .remote import RemoteBackupStore

logger = logging.getLogger("oneclickcopy.sync.gdrive")

SCOPES = ["https://www.googleapis.com/auth/drive.file"]

_FILE_FIELDS = "id, name, mimeType, modifiedTime"

# Library errors that mean "the remote call failed"
_DRIVE_ERRORS = (HttpError, GoogleAuthError, OSError)


def build_drive_service(credentials: Credentials) -> Any:
    """Build a Drive v3 API client."""
    return build("drive", "v3", credentials=credentials, cache_discovery=False)


def _escape_query(value: str) -> str:
    return value.replace("\\", "\\\\").replace("'", "\\'")


def _to_handle(item: dict) -> RemoteHandle:
    return RemoteHandle(
        id=item["id"],
        name=item.get("name", ""),
        mime_type=item.get("mimeType"),
        modified_at=item.get("modifiedTime"),
    )


class GoogleDriveStore(RemoteBackupStore):
    """Remote store backed by the Google Drive v3 API.

    Args:
        service_factory: Returns an authorized Drive service. Called per
            operation so a refreshed or revoked token takes effect at once.
    """

    def __init__(self, service_factory: Callable[[], Any]):
        self._service_factory = service_factory

    @property
    def name(self) -> str:
        return "gdrive"

    def _files(self) -> Any:
        try:
            return self._service_factory().files()
        except _DRIVE_ERRORS as exc:
            raise RemoteStoreError(f"Drive unavailable: {exc}") from exc

    def find_by_name(self, name: str) -> Optional[RemoteHandle]:
        try:
            result = self._files().list(
                q=f"name='{_escape_query(name)}' and trashed=false",
                spaces="drive",
                fields=f"files({_FILE_FIELDS})",
            ).execute()
        except _DRIVE_ERRORS as exc:
            raise RemoteStoreError(f"Drive search failed: {exc}") from exc
        files = result.get("files") or []
        if not files:
            return None
        if len(files) > 1:
            logger.warning("Found %d Drive files named %s, using the first", len(files), name)
        return _to_handle(files[0])

    def create(self, name: str, mime_type: str, data: bytes) -> RemoteHandle:
        media = MediaIoBaseUpload(io.BytesIO(data), mimetype=mime_type, resumable=False)
        try:
            item = self._files().create(
                body={"name": name, "mimeType": mime_type},
                media_body=media,
                fields=_FILE_FIELDS,
            ).execute()
        except _DRIVE_ERRORS as exc:
            raise RemoteStoreError(f"Drive upload failed: {exc}") from exc
        logger.info("Created Drive file %s (%s)", name, item.get("id"))
        return _to_handle(item)

    def update(self, handle: RemoteHandle, data: bytes) -> None:
        media = MediaIoBaseUpload(
            io.BytesIO(data), mimetype=handle.mime_type or "application/octet-stream", resumable=False
        )
        try:
            self._files().update(fileId=handle.id, media_body=media).execute()
        except _DRIVE_ERRORS as exc:
            raise RemoteStoreError(f"Drive update failed: {exc}") from exc
        logger.info("Updated Drive file %s (%s)", handle.name, handle.id)

    def download(self, handle: RemoteHandle) -> bytes:
        buffer = io.BytesIO()
        try:
            request = self._files().get_media(fileId=handle.id)
            downloader = MediaIoBaseDownload(buffer, request)
            done = False
            while not done:
                _, done = downloader.next_chunk()
        except _DRIVE_ERRORS as exc:
            raise RemoteStoreError(f"Drive download failed: {exc}") from exc
        return buffer.getvalue()


class GoogleAuthenticator(Authenticator):
    """Google account sign-in with a cached OAuth token."""

    def __init__(self, token_path: Path, client_secrets_path: Optional[Path] = None):
        self.token_path = Path(token_path).expanduser()
        self.client_secrets_path = (
            Path(client_secrets_path).expanduser() if client_secrets_path else None
        )
        self._email: Optional[str] = None

    def _load_credentials(self) -> Optional[Credentials]:
        if not self.token_path.exists():
            return None
        try:
            creds = Credentials.from_authorized_user_file(str(self.token_path), SCOPES)
        except (ValueError, OSError) as exc:
            logger.warning("Unreadable Google token %s: %s", self.token_path, exc)
            return None
        if creds.valid:
            return creds
        if creds.expired and creds.refresh_token:
            try:
                creds.refresh(Request())
            except RefreshError as exc:
                logger.warning("Google token refresh failed: %s", exc)
                return None
            self._save_credentials(creds)
            return creds
        return None

    def _save_credentials(self, creds: Credentials) -> None:
        self.token_path.parent.mkdir(parents=True, exist_ok=True)
        self.token_path.write_text(creds.to_json(), encoding="utf-8")

    def is_signed_in(self) -> bool:
        return self._load_credentials() is not None

    def current_identity(self) -> Optional[Identity]:
        creds = self._load_credentials()
        if creds is None:
            return None
        if self._email is None:
            try:
                about = build_drive_service(creds).about().get(fields="user").execute()
                self._email = about.get("user", {}).get("emailAddress")
            except _DRIVE_ERRORS as exc:
                logger.debug("Could not look up Drive account email: %s", exc)
        return Identity(email=self._email)

    def drive_service(self) -> Any:
        """Authorized Drive service for the signed-in account.

        Raises:
            RemoteStoreError: If nobody is signed in.
        """
        creds = self._load_credentials()
        if creds is None:
            raise RemoteStoreError("Not signed in to Google")
        return build_drive_service(creds)

    def sign_in(self) -> Identity:
        """Run the browser OAuth flow and cache the token.

        Raises:
            FileNotFoundError: If the client secrets file is missing.
        """
        if not self.client_secrets_path or not self.client_secrets_path.exists():
            raise FileNotFoundError(
                f"Google client secrets not found: {self.client_secrets_path}. "
                "Create a desktop OAuth client with the Drive API enabled and "
                "save its JSON there."
            )
        flow = InstalledAppFlow.from_client_secrets_file(str(self.client_secrets_path), SCOPES)
        creds = flow.run_local_server(port=0)
        self._save_credentials(creds)
        self._email = None
        identity = self.current_identity() or Identity()
        logger.info("Signed in to Google as %s", identity.email)
        return identity

    def sign_out(self) -> None:
        if self.token_path.exists():
            self.token_path.unlink()
        self._email = None
        logger.info("Signed out of Google")
