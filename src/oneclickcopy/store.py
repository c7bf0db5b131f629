"""
Local document store -- a SQLite table of documents.

Every mutation notifies subscribers with a fresh snapshot of the
whole list (newest first), which is what the document list view
and the auto-sync coordinator consume.
"""

from __future__ import annotations

import logging
import sqlite3
import threading
from contextlib import contextmanager
from pathlib import Path
from typing import Callable, Iterable, Iterator, Optional

from .models import Document, now_ms

logger = logging.getLogger("oneclickcopy.store")

Listener = Callable[[list[Document]], None]


class DocumentNotFoundError(LookupError):
    """Raised when a document id does not exist in the store."""

    def __init__(self, doc_id: int):
        self.doc_id = doc_id
        super().__init__(f"Document not found: {doc_id}")


class DocumentStore:
    """SQLite-backed keyed document table with change subscriptions."""

    def __init__(self, db_path: Path | str, clock: Callable[[], int] = now_ms):
        self.db_path = Path(db_path)
        self.db_path.parent.mkdir(parents=True, exist_ok=True)
        self._clock = clock
        self._listeners: list[Listener] = []
        self._lock = threading.Lock()
        self.ensure_schema()

    @contextmanager
    def get_connection(self) -> Iterator[sqlite3.Connection]:
        conn = sqlite3.connect(self.db_path)
        conn.row_factory = sqlite3.Row
        try:
            yield conn
        finally:
            conn.close()

    def ensure_schema(self) -> None:
        with self.get_connection() as conn:
            conn.execute(
                """
                CREATE TABLE IF NOT EXISTS documents (
                    id INTEGER PRIMARY KEY AUTOINCREMENT,
                    title TEXT NOT NULL,
                    content TEXT NOT NULL,
                    copied_items TEXT NOT NULL DEFAULT '',
                    created_at INTEGER NOT NULL,
                    updated_at INTEGER NOT NULL
                )
                """
            )
            conn.commit()

    # ------------------------------------------------------------------
    # Queries
    # ------------------------------------------------------------------

    def list_all(self) -> list[Document]:
        """All documents, most recently updated first."""
        with self.get_connection() as conn:
            rows = conn.execute(
                "SELECT * FROM documents ORDER BY updated_at DESC, id DESC"
            ).fetchall()
        return [_row_to_document(row) for row in rows]

    def get(self, doc_id: int) -> Optional[Document]:
        with self.get_connection() as conn:
            row = conn.execute("SELECT * FROM documents WHERE id = ?", (doc_id,)).fetchone()
        return _row_to_document(row) if row else None

    def count(self) -> int:
        with self.get_connection() as conn:
            return conn.execute("SELECT COUNT(*) FROM documents").fetchone()[0]

    # ------------------------------------------------------------------
    # Mutations
    # ------------------------------------------------------------------

    def insert(self, document: Document) -> int:
        """Insert ``document`` as a new row, ignoring any id it carries.

        Timestamps of 0 are stamped with the current time; non-zero
        timestamps (e.g. from a restored backup) are kept as-is.

        Returns:
            int: The newly assigned id.
        """
        return self.insert_many([document])[0]

    def insert_many(self, documents: Iterable[Document]) -> list[int]:
        """Insert several documents in one transaction, notifying once.

        Returns:
            list[int]: The newly assigned ids, in input order.
        """
        now = self._clock()
        ids: list[int] = []
        with self.get_connection() as conn:
            for document in documents:
                cursor = conn.execute(
                    """
                    INSERT INTO documents (title, content, copied_items, created_at, updated_at)
                    VALUES (?, ?, ?, ?, ?)
                    """,
                    (
                        document.title,
                        document.content,
                        document.copied_items,
                        document.created_at or now,
                        document.updated_at or now,
                    ),
                )
                ids.append(cursor.lastrowid)
                logger.debug("Inserted document %d (%r)", cursor.lastrowid, document.title)
            conn.commit()
        if ids:
            self._notify()
        return ids

    def update(self, document: Document) -> None:
        """Overwrite an existing row with ``document``'s fields.

        Raises:
            DocumentNotFoundError: If ``document.id`` is not in the table.
        """
        with self.get_connection() as conn:
            cursor = conn.execute(
                """
                UPDATE documents
                SET title = ?, content = ?, copied_items = ?, created_at = ?, updated_at = ?
                WHERE id = ?
                """,
                (
                    document.title,
                    document.content,
                    document.copied_items,
                    document.created_at,
                    document.updated_at,
                    document.id,
                ),
            )
            conn.commit()
            if cursor.rowcount == 0:
                raise DocumentNotFoundError(document.id)
        self._notify()

    def delete(self, document: Document) -> None:
        self.delete_by_id(document.id)

    def delete_by_id(self, doc_id: int) -> bool:
        """Delete a row by id.

        Returns:
            bool: True if a row was removed.
        """
        with self.get_connection() as conn:
            cursor = conn.execute("DELETE FROM documents WHERE id = ?", (doc_id,))
            conn.commit()
            removed = cursor.rowcount > 0
        if removed:
            logger.debug("Deleted document %d", doc_id)
            self._notify()
        return removed

    # ------------------------------------------------------------------
    # Subscriptions
    # ------------------------------------------------------------------

    def subscribe(self, listener: Listener) -> Callable[[], None]:
        """Receive the current list now and after every change.

        Returns:
            A callable that removes the subscription.
        """
        with self._lock:
            self._listeners.append(listener)
        listener(self.list_all())

        def _unsubscribe() -> None:
            with self._lock:
                if listener in self._listeners:
                    self._listeners.remove(listener)

        return _unsubscribe

    def _notify(self) -> None:
        with self._lock:
            listeners = list(self._listeners)
        if not listeners:
            return
        snapshot = self.list_all()
        for listener in listeners:
            listener(list(snapshot))


def _row_to_document(row: sqlite3.Row) -> Document:
    return Document(
        id=row["id"],
        title=row["title"],
        content=row["content"],
        copied_items=row["copied_items"],
        created_at=row["created_at"],
        updated_at=row["updated_at"],
    )
