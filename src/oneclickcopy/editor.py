"""
Editor session -- the working copy of one open document.

Edits are buffered and written back to the store after a quiet
period (trailing-edge debounce), so a burst of keystrokes is one
write. Two views share the buffer:

    edit view   the raw text, one snippet per line
    list view   the non-blank lines as copyable items, reorderable

Copied state is keyed by line text: moving a line keeps its check
mark, editing the line's text drops it.
"""

from __future__ import annotations

import logging
import threading
from typing import Callable, Optional

from .models import Document, encode_copied_keys, now_ms
from .scheduler import Debouncer, ThreadScheduler
from .store import DocumentStore

logger = logging.getLogger("oneclickcopy.editor")

DEFAULT_DEBOUNCE_MS = 500


class EditorSession:
    """Mutable working copy of a document with debounced auto-save.

    Args:
        store: Document store to save into.
        document: Document to edit; a new, unsaved one if omitted.
        scheduler: Timer source for the debounce.
        debounce_ms: Quiet period before a save.
        clock: Epoch-ms clock for ``updated_at``.
    """

    def __init__(
        self,
        store: DocumentStore,
        document: Optional[Document] = None,
        scheduler: Optional[ThreadScheduler] = None,
        debounce_ms: int = DEFAULT_DEBOUNCE_MS,
        clock: Callable[[], int] = now_ms,
    ):
        self.store = store
        self._clock = clock
        self._lock = threading.RLock()

        doc = document or Document(created_at=clock())
        self._id = doc.id
        self._created_at = doc.created_at or clock()
        self.title = doc.title
        self.content = doc.content
        self.copied_keys: set[str] = set(doc.copied_keys)

        self._list_view = False
        self._items: list[str] = []
        self._reordered = False
        self._closed = False
        self._debouncer = Debouncer(debounce_ms / 1000.0, self.save, scheduler or ThreadScheduler())

    @property
    def document_id(self) -> int:
        return self._id

    @property
    def in_list_view(self) -> bool:
        return self._list_view

    @property
    def save_pending(self) -> bool:
        return self._debouncer.pending

    def _changed(self) -> None:
        if self._closed:
            raise RuntimeError("Editor session is closed")
        self._debouncer.trigger()

    # ------------------------------------------------------------------
    # Edit view
    # ------------------------------------------------------------------

    def set_title(self, title: str) -> None:
        with self._lock:
            if title == self.title:
                return
            self.title = title
        self._changed()

    def set_content(self, content: str) -> None:
        with self._lock:
            if self._list_view:
                raise RuntimeError("Leave list view before editing the text")
            if content == self.content:
                return
            self.content = content
        self._changed()

    # ------------------------------------------------------------------
    # List view
    # ------------------------------------------------------------------

    @property
    def items(self) -> list[str]:
        """Copyable items: non-blank lines, trimmed, in display order."""
        with self._lock:
            if self._list_view:
                return list(self._items)
            return [line.strip() for line in self.content.splitlines() if line.strip()]

    def enter_list_view(self) -> list[str]:
        with self._lock:
            self._items = [line.strip() for line in self.content.splitlines() if line.strip()]
            self._reordered = False
            self._list_view = True
            return list(self._items)

    def move(self, from_index: int, to_index: int) -> None:
        """Drag the item at ``from_index`` to ``to_index``."""
        with self._lock:
            if not self._list_view:
                raise RuntimeError("Items can only be reordered in list view")
            if from_index == to_index:
                return
            item = self._items.pop(from_index)
            self._items.insert(to_index, item)
            self._reordered = True

    def exit_list_view(self) -> None:
        """Back to edit view. The text is rewritten only if items were moved,
        so blank lines survive a visit to the list without reordering."""
        changed = False
        with self._lock:
            if not self._list_view:
                return
            if self._reordered:
                new_content = "\n".join(self._items)
                if new_content != self.content:
                    self.content = new_content
                    changed = True
            self._list_view = False
            self._reordered = False
            self._items = []
        if changed:
            self._changed()

    def is_copied(self, text: str) -> bool:
        return text in self.copied_keys

    def mark_copied(self, index: int) -> str:
        """Mark the item at ``index`` as copied.

        Returns:
            str: The item text (what goes on the clipboard).

        Raises:
            IndexError: If ``index`` is not a position in ``items``.
        """
        with self._lock:
            items = self.items
            if not 0 <= index < len(items):
                raise IndexError(f"No item at position {index}")
            text = items[index]
            if text in self.copied_keys:
                return text
            self.copied_keys.add(text)
        self._changed()
        return text

    def reset_copied(self) -> None:
        with self._lock:
            if not self.copied_keys:
                return
            self.copied_keys.clear()
        self._changed()

    # ------------------------------------------------------------------
    # Persistence
    # ------------------------------------------------------------------

    def to_document(self) -> Document:
        with self._lock:
            return Document(
                id=self._id,
                title=self.title,
                content=self.content,
                copied_items=encode_copied_keys(self.copied_keys),
                created_at=self._created_at,
                updated_at=self._clock(),
            )

    def save(self) -> Document:
        """Write the full working state to the store now."""
        with self._lock:
            doc = self.to_document()
            if doc.is_new:
                self._id = self.store.insert(doc)
                self._created_at = self._created_at or doc.updated_at
                doc = doc.model_copy(update={"id": self._id, "created_at": self._created_at})
                logger.debug("Saved new document %d", self._id)
            else:
                self.store.update(doc)
                logger.debug("Saved document %d", self._id)
            return doc

    def flush(self) -> bool:
        """Save immediately if a debounced save is waiting."""
        return self._debouncer.flush()

    def close(self) -> None:
        """Flush pending edits and stop accepting new ones."""
        if self._closed:
            return
        self.exit_list_view()
        self.flush()
        self._debouncer.cancel()
        self._closed = True
