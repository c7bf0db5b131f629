"""
Backup codec -- the full document set to and from one JSON envelope.

    {"version": 1, "timestamp": <epoch-ms>, "documents": [...]}
"""

from __future__ import annotations

import json
from typing import Callable, Iterable

from pydantic import ValidationError

from ..models import Document, now_ms
from .errors import MalformedBackup
from .models import BACKUP_FORMAT_VERSION, BackupEnvelope


def encode(documents: Iterable[Document], clock: Callable[[], int] = now_ms) -> bytes:
    """Serialize ``documents`` into backup JSON bytes.

    Args:
        documents: Documents in the order they should be stored.
        clock: Source of the envelope timestamp (epoch ms).

    Returns:
        bytes: UTF-8 JSON.
    """
    envelope = BackupEnvelope(
        version=BACKUP_FORMAT_VERSION,
        timestamp=clock(),
        documents=list(documents),
    )
    return envelope.model_dump_json(by_alias=True).encode("utf-8")


def decode_envelope(data: bytes | str) -> BackupEnvelope:
    """Parse backup JSON into a :class:`BackupEnvelope`.

    Raises:
        MalformedBackup: Not JSON, not an object, no ``documents`` array,
            or a record with wrongly typed fields.
    """
    if isinstance(data, bytes):
        try:
            data = data.decode("utf-8")
        except UnicodeDecodeError as exc:
            raise MalformedBackup(f"Backup is not UTF-8: {exc}") from exc
    try:
        payload = json.loads(data)
    except json.JSONDecodeError as exc:
        raise MalformedBackup(f"Backup is not valid JSON: {exc}") from exc

    if not isinstance(payload, dict):
        raise MalformedBackup("Backup is not a JSON object")
    if not isinstance(payload.get("documents"), list):
        raise MalformedBackup("Backup has no documents array")

    try:
        return BackupEnvelope.model_validate(payload)
    except ValidationError as exc:
        raise MalformedBackup(f"Backup has invalid records: {exc.error_count()} error(s)") from exc


def decode(data: bytes | str) -> list[Document]:
    """Parse backup JSON and return its documents."""
    return decode_envelope(data).documents

