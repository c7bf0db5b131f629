"""
Pydantic models for the documents the app owns.

Timestamps are epoch milliseconds so records round-trip unchanged
through the backup JSON.
"""

from __future__ import annotations

import json
import logging
import time
from typing import Iterable, Optional

from pydantic import BaseModel, ConfigDict, Field

logger = logging.getLogger("oneclickcopy.models")


def now_ms() -> int:
    """Current wall-clock time in epoch milliseconds."""
    return int(time.time() * 1000)


def encode_copied_keys(keys: Iterable[str]) -> str:
    """Serialize copied line keys to the JSON-array text stored on a document.

    Args:
        keys: Line texts that have been copied.

    Returns:
        str: JSON array (sorted for stable output), or "" when empty.
    """
    keys = sorted(set(keys))
    if not keys:
        return ""
    return json.dumps(keys, ensure_ascii=False)


def decode_copied_keys(raw: str) -> set[str]:
    """Parse the stored copied-items text back into a set of line keys."""
    if not raw:
        return set()
    try:
        data = json.loads(raw)
    except json.JSONDecodeError:
        logger.debug("Ignoring unparsable copied items: %r", raw[:40])
        return set()
    if not isinstance(data, list):
        return set()
    return {str(item) for item in data}


class Document(BaseModel):
    """A titled note whose content is one copyable snippet per line.

    ``id`` is 0 until the document store assigns one on insert.
    Field aliases match the backup JSON schema (``copiedItems``,
    ``createdAt``, ``updatedAt``).
    """

    model_config = ConfigDict(populate_by_name=True, extra="ignore")

    id: int = 0
    title: str = ""
    content: str = ""
    copied_items: str = Field(default="", alias="copiedItems")
    created_at: int = Field(default=0, alias="createdAt")
    updated_at: int = Field(default=0, alias="updatedAt")

    @property
    def is_new(self) -> bool:
        return self.id == 0

    @property
    def copied_keys(self) -> set[str]:
        """The set of line texts marked as copied."""
        return decode_copied_keys(self.copied_items)

    def lines(self) -> list[str]:
        """Copyable items: the non-blank lines of the content, trimmed."""
        return [line.strip() for line in self.content.splitlines() if line.strip()]


class Identity(BaseModel):
    """Opaque signed-in account identity."""

    email: Optional[str] = None
