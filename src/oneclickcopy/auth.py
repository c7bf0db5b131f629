"""
Account sign-in state.

The sync engine only asks two questions -- is anyone signed in, and
who -- so every authenticator implements the same tiny interface.
Google sign-in lives next to the Drive store in
:mod:`oneclickcopy.sync.gdrive`.
"""

from __future__ import annotations

import json
import logging
from abc import ABC, abstractmethod
from pathlib import Path
from typing import Optional

from .models import Identity

logger = logging.getLogger("oneclickcopy.auth")


class Authenticator(ABC):
    """Opaque signed-in / signed-out capability."""

    @abstractmethod
    def current_identity(self) -> Optional[Identity]:
        """The signed-in account, or None."""

    @abstractmethod
    def sign_out(self) -> None:
        """Forget the signed-in account."""

    def is_signed_in(self) -> bool:
        return self.current_identity() is not None


class LocalAuthenticator(Authenticator):
    """Sign-in recorded as an identity file in the app home.

    Used with the local directory store, where there is no real
    account to authenticate against.
    """

    IDENTITY_FILE = "identity.json"

    def __init__(self, home: Path):
        self.identity_file = Path(home) / self.IDENTITY_FILE

    def current_identity(self) -> Optional[Identity]:
        if not self.identity_file.exists():
            return None
        try:
            data = json.loads(self.identity_file.read_text(encoding="utf-8"))
            return Identity(**data)
        except (json.JSONDecodeError, OSError, ValueError) as exc:
            logger.warning("Unreadable identity file %s: %s", self.identity_file, exc)
            return None

    def sign_in(self, email: str) -> Identity:
        identity = Identity(email=email)
        self.identity_file.parent.mkdir(parents=True, exist_ok=True)
        self.identity_file.write_text(identity.model_dump_json(indent=2), encoding="utf-8")
        logger.info("Signed in as %s", email)
        return identity

    def sign_out(self) -> None:
        if self.identity_file.exists():
            self.identity_file.unlink()
            logger.info("Signed out")
