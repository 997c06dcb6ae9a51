"""Utility helpers for the beads runner."""

from __future__ import annotations

import json
from typing import Any


def parse_json_records(text: str) -> list[dict[str, Any]] | None:
    """Parse ``bd --json`` output into a list of objects.

    A single object is treated as a one-element list. Returns ``None`` for empty,
    malformed or non-object output.
    """

    if not text.strip():
        return None
    try:
        payload = json.loads(text)
    except json.JSONDecodeError:
        return None
    if isinstance(payload, dict):
        payload = [payload]
    if not isinstance(payload, list):
        return None
    if not all(isinstance(item, dict) for item in payload):
        return None
    return payload
