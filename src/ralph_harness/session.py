"""Session continuity for repeated assistant CLI invocations.

The last session id reported by the assistant is persisted together with its
creation time. A later invocation may resume it while it is younger than
24 hours. Malformed or missing records simply mean "start fresh".
"""

from __future__ import annotations

import json
import logging
from datetime import datetime, timezone
from typing import Any, Callable

from pydantic import AliasChoices, BaseModel, ConfigDict, Field, ValidationError, field_validator

from .config import RalphSettings, get_settings, load_settings
from .dates import get_iso_timestamp, parse_iso_timestamp
from .storage import FileSlotStore, SlotStore

logger = logging.getLogger(__name__)

SESSION_EXPIRY_SECONDS = 24 * 60 * 60


class SessionRecord(BaseModel):
    """Persisted pointer to a resumable assistant session."""

    model_config = ConfigDict(populate_by_name=True)

    session_id: str
    created_at: datetime = Field(validation_alias=AliasChoices("timestamp", "created_at"))

    @field_validator("session_id", mode="before")
    @classmethod
    def _require_session_id(cls, value: Any) -> str:
        if not isinstance(value, str) or not value.strip():
            raise ValueError("session_id must be a non-empty string")
        return value

    @field_validator("created_at", mode="before")
    @classmethod
    def _parse_created_at(cls, value: Any) -> datetime:
        if isinstance(value, datetime):
            return value if value.tzinfo else value.replace(tzinfo=timezone.utc)
        if not isinstance(value, str):
            raise ValueError("timestamp must be an ISO-8601 string")
        return parse_iso_timestamp(value)

    def to_document(self) -> dict[str, str]:
        return {"session_id": self.session_id, "timestamp": get_iso_timestamp(self.created_at)}


class SessionTracker:
    """Reads and writes the session record through a single-slot store."""

    def __init__(
        self,
        store: SlotStore | None = None,
        *,
        settings: RalphSettings | None = None,
        clock: Callable[[], datetime] | None = None,
    ) -> None:
        if store is None:
            store = FileSlotStore((settings or get_settings()).session_path)
        self._store = store
        self._clock = clock or (lambda: datetime.now(timezone.utc))

    def load_session(self) -> SessionRecord | None:
        raw = self._store.read()
        if raw is None:
            return None
        try:
            document = json.loads(raw)
        except json.JSONDecodeError:
            logger.debug("Session file is not valid JSON")
            return None
        if not isinstance(document, dict):
            return None
        try:
            return SessionRecord.model_validate(document)
        except ValidationError as exc:
            logger.debug("Session record rejected", extra={"error": str(exc)})
            return None

    def session_age_seconds(self, record: SessionRecord | None = None) -> int | None:
        record = record or self.load_session()
        if record is None:
            return None
        return int(self._clock().timestamp()) - int(record.created_at.timestamp())

    def should_resume_session(self) -> bool:
        record = self.load_session()
        if record is None:
            return False
        age = self.session_age_seconds(record)
        resumable = age is not None and age < SESSION_EXPIRY_SECONDS
        logger.debug(
            "Session resume check",
            extra={"session_id": record.session_id, "age_seconds": age, "resumable": resumable},
        )
        return resumable

    def store_session_id(self, session_id: str) -> SessionRecord:
        if not session_id or not session_id.strip():
            raise ValueError("Session id must not be empty")
        record = SessionRecord(session_id=session_id, created_at=self._clock())
        self._store.write(json.dumps(record.to_document()))
        logger.info("Stored session id", extra={"session_id": session_id})
        return record

    def get_last_session_id(self) -> str | None:
        record = self.load_session()
        return record.session_id if record is not None else None

    def clear_session(self) -> None:
        self._store.clear()


def should_resume_session() -> bool:
    return SessionTracker(settings=load_settings()).should_resume_session()


def store_session_id(session_id: str) -> SessionRecord:
    return SessionTracker(settings=load_settings()).store_session_id(session_id)


def get_last_session_id() -> str | None:
    return SessionTracker(settings=load_settings()).get_last_session_id()


__all__ = [
    "SESSION_EXPIRY_SECONDS",
    "SessionRecord",
    "SessionTracker",
    "get_last_session_id",
    "should_resume_session",
    "store_session_id",
]
