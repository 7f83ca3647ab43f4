"""JSON encoding shared by snapshot gateways."""

from __future__ import annotations

import json
import logging
from typing import Any

logger = logging.getLogger(__name__)


def encode_snapshot(snapshot: dict[str, Any]) -> str:
    return json.dumps(snapshot, ensure_ascii=False, separators=(",", ":"))


def decode_snapshot(payload: str | None, *, source: str) -> dict[str, Any] | None:
    """Decode a stored payload; undecodable or non-object payloads read as absent."""
    if payload is None:
        return None
    try:
        decoded = json.loads(payload)
    except json.JSONDecodeError as exc:
        logger.warning("snapshot.decode_failed source=%s error=%s", source, exc.msg)
        return None
    if not isinstance(decoded, dict):
        logger.warning(
            "snapshot.decode_failed source=%s error=not_an_object type=%s",
            source,
            type(decoded).__name__,
        )
        return None
    return decoded


def human_readable_size(num_bytes: int) -> str:
    if num_bytes < 1024:
        return f"{num_bytes} B"
    if num_bytes < 1024 * 1024:
        return f"{num_bytes / 1024:.2f} KB"
    return f"{num_bytes / (1024 * 1024):.2f} MB"


def payload_size(payload: str | None) -> str:
    return human_readable_size(len(payload.encode("utf-8")) if payload else 0)
