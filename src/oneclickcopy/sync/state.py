"""
Persisted auto-sync state -- last backup time and the one-shot restore flag.
"""

from __future__ import annotations

import json
import logging
import threading
from pathlib import Path
from typing import Optional

from .models import AutoSyncState

logger = logging.getLogger("oneclickcopy.sync.state")

STATE_FILE = "sync-state.json"


class AutoSyncStateStore:
    """Small JSON-backed key/value state for the auto-sync coordinator.

    Read once at construction, written on every transition. With no
    ``path`` the state lives in memory only.
    """

    def __init__(self, path: Optional[Path] = None):
        self.path = Path(path) if path else None
        self._lock = threading.Lock()
        self._state = self._load()

    def _load(self) -> AutoSyncState:
        if self.path is None or not self.path.exists():
            return AutoSyncState()
        try:
            data = json.loads(self.path.read_text(encoding="utf-8"))
            return AutoSyncState(**data)
        except (json.JSONDecodeError, OSError, ValueError) as exc:
            logger.warning("Failed to load sync state %s: %s", self.path, exc)
            return AutoSyncState()

    def _save(self) -> None:
        if self.path is None:
            return
        try:
            self.path.parent.mkdir(parents=True, exist_ok=True)
            self.path.write_text(self._state.model_dump_json(indent=2), encoding="utf-8")
        except OSError as exc:
            logger.error("Failed to save sync state %s: %s", self.path, exc)

    def snapshot(self) -> AutoSyncState:
        with self._lock:
            return self._state.model_copy()

    @property
    def last_backup_at(self) -> Optional[int]:
        return self._state.last_backup_at

    @property
    def has_restored_once(self) -> bool:
        return self._state.has_restored_once

    def record_backup(self, completed_at: int) -> None:
        """Record a successful backup finishing at ``completed_at`` (epoch ms)."""
        with self._lock:
            self._state.last_backup_at = completed_at
            self._state.backup_count += 1
            self._state.last_error = None
            self._save()

    def record_error(self, message: str) -> None:
        with self._lock:
            self._state.last_error = message
            self._save()

    def mark_restored(self) -> bool:
        """Consume the one-shot restore.

        Returns:
            bool: True if this call flipped the flag, False if already set.
        """
        with self._lock:
            if self._state.has_restored_once:
                return False
            self._state.has_restored_once = True
            self._save()
            return True
