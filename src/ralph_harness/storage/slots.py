"""Single-slot stores backing the current-task pointer and the session record."""

from __future__ import annotations

import logging
from pathlib import Path
from typing import Protocol

logger = logging.getLogger(__name__)


class SlotStore(Protocol):
    """A durable slot holding at most one text value."""

    def exists(self) -> bool:
        ...

    def read(self) -> str | None:
        ...

    def write(self, value: str) -> None:
        ...

    def clear(self) -> None:
        ...


class FileSlotStore:
    """Slot persisted as the whole content of a single file.

    Writes overwrite the file in place; there is no locking and no atomic rename,
    so concurrent writers resolve as last-write-wins. ``errors`` is the decoder
    error policy used by ``read``.
    """

    def __init__(self, path: Path, *, errors: str = "strict") -> None:
        self._path = Path(path)
        self._errors = errors

    @property
    def path(self) -> Path:
        return self._path

    def exists(self) -> bool:
        return self._path.is_file()

    def read(self) -> str | None:
        try:
            return self._path.read_text(encoding="utf-8", errors=self._errors)
        except FileNotFoundError:
            return None
        except (OSError, UnicodeDecodeError) as exc:
            logger.debug("Slot unreadable", extra={"path": str(self._path), "error": str(exc)})
            return None

    def write(self, value: str) -> None:
        self._path.parent.mkdir(parents=True, exist_ok=True)
        self._path.write_text(value, encoding="utf-8")

    def clear(self) -> None:
        self._path.unlink(missing_ok=True)

    def __repr__(self) -> str:  # pragma: no cover - debugging aid
        return f"FileSlotStore({str(self._path)!r})"


class MemorySlotStore:
    """In-memory slot for tests and dry runs."""

    def __init__(self, value: str | None = None) -> None:
        self.value = value
        self.writes: list[str] = []

    def exists(self) -> bool:
        return self.value is not None

    def read(self) -> str | None:
        return self.value

    def write(self, value: str) -> None:
        self.writes.append(value)
        self.value = value

    def clear(self) -> None:
        self.value = None


__all__ = ["FileSlotStore", "MemorySlotStore", "SlotStore"]
