"""Task source abstraction over the beads tracker and the fix-plan checklist.

Backend selection is derived from the filesystem and PATH on every call:
beads wins when its marker directory exists and ``bd`` is reachable, the
checklist is used when ``@fix_plan.md`` exists, otherwise the source is
``none``. Tracker failures never propagate; they degrade to zero, ``None`` or
``False`` exactly as if the tracker were absent.

The module-level functions re-read settings on every call, so their paths follow
the current working directory. ``TaskSourceManager()`` without settings uses the
process-wide cached settings.
"""

from __future__ import annotations

import logging
from typing import Any

from pydantic import ValidationError

from ..beads import BeadsNotFoundError, BeadsRunner
from ..config import RalphSettings, get_settings, load_settings
from ..storage import FileSlotStore, SlotStore
from .checklist import (
    checklist_pointer,
    checklist_task,
    FIX_PLAN_TASK_ID,
    is_checklist_id,
    unchecked_titles,
)
from .models import Task, TaskSource

logger = logging.getLogger(__name__)

DEFAULT_COMPLETE_REASON = "Completed by Ralph loop"
DEFAULT_RELEASE_REASON = "Released by Ralph"
DEFAULT_SUMMARY_PRIORITY = 2
STATUS_IN_PROGRESS = "in_progress"
STATUS_OPEN = "open"


class TaskSourceManager:
    """Uniform read/claim/complete/release lifecycle over the active task source."""

    def __init__(
        self,
        settings: RalphSettings | None = None,
        *,
        beads_runner: BeadsRunner | None = None,
        pointer_store: SlotStore | None = None,
        checklist_store: SlotStore | None = None,
    ) -> None:
        self._settings = settings or get_settings()
        self._beads_runner = beads_runner
        self._pointer = pointer_store or FileSlotStore(self._settings.current_task_path)
        self._checklist = checklist_store or FileSlotStore(
            self._settings.fix_plan_path, errors="replace"
        )

    @property
    def settings(self) -> RalphSettings:
        return self._settings

    # ------------------------------------------------------------------
    # Detection

    def _runner(self) -> BeadsRunner | None:
        """Return a tracker runner when beads is usable for this project."""

        if not self._settings.beads_path.is_dir():
            return None
        if self._beads_runner is not None:
            return self._beads_runner
        try:
            return BeadsRunner(command=self._settings.beads_cmd, cwd=self._settings.project_root)
        except BeadsNotFoundError as exc:
            logger.debug("Beads CLI unavailable", extra={"error": str(exc)})
            return None

    def beads_available(self) -> bool:
        return self._runner() is not None

    def fix_plan_available(self) -> bool:
        return self._checklist.exists()

    def get_task_source(self) -> TaskSource:
        if self.beads_available():
            return TaskSource.BEADS
        if self.fix_plan_available():
            return TaskSource.FIX_PLAN
        return TaskSource.NONE

    # ------------------------------------------------------------------
    # Reading

    def _checklist_titles(self) -> list[str]:
        return unchecked_titles(self._checklist.read())

    @staticmethod
    def _ready_records(runner: BeadsRunner, *, limit: int | None = None) -> list[dict[str, Any]] | None:
        result = runner.ready(limit=limit)
        records = result.records()
        if records is None:
            logger.debug(
                "Beads ready query failed",
                extra={"returncode": result.returncode, "stderr": result.stderr[:200]},
            )
        return records

    @staticmethod
    def _to_task(record: dict[str, Any]) -> Task | None:
        try:
            return Task.model_validate({**record, "source": TaskSource.BEADS})
        except ValidationError as exc:
            logger.debug("Discarding malformed beads record", extra={"error": str(exc)})
            return None

    def get_ready_task_count(self) -> int:
        runner = self._runner()
        if runner is not None:
            records = self._ready_records(runner)
            return len(records) if records is not None else 0
        if self.fix_plan_available():
            return len(self._checklist_titles())
        return 0

    def get_next_task(self) -> Task | None:
        """Return the highest-priority ready task, in the tracker's own order."""

        runner = self._runner()
        if runner is not None:
            records = self._ready_records(runner, limit=1)
            if not records:
                return None
            return self._to_task(records[0])
        titles = self._checklist_titles()
        if titles and titles[0]:
            return checklist_task(titles[0])
        return None

    def get_task_by_id(self, task_id: str | None) -> Task | None:
        if not task_id or not task_id.strip() or is_checklist_id(task_id):
            return None
        runner = self._runner()
        if runner is None:
            return None
        records = runner.show(task_id.strip()).records()
        if not records:
            return None
        return self._to_task(records[0])

    def all_tasks_complete(self) -> bool:
        return self.get_ready_task_count() == 0

    # ------------------------------------------------------------------
    # Lifecycle

    def get_current_task_id(self) -> str | None:
        content = self._pointer.read()
        if content is None:
            return None
        return content.strip() or None

    def claim_next_task(self, assignee: str | None = None) -> str | None:
        """Claim the next ready task and record it as the current pointer.

        Returns the claimed id (the ``fix_plan`` sentinel for checklist tasks), or
        ``None`` when nothing could be claimed. The checklist file is never modified.
        """

        runner = self._runner()
        if runner is None:
            titles = self._checklist_titles()
            if not titles or not titles[0]:
                return None
            self._pointer.write(checklist_pointer(titles[0]) + "\n")
            logger.info("Claimed checklist task", extra={"title": titles[0]})
            return FIX_PLAN_TASK_ID

        records = self._ready_records(runner, limit=1)
        task = self._to_task(records[0]) if records else None
        if task is None:
            return None

        owner = assignee or self._settings.default_assignee
        result = runner.update(task.id, status=STATUS_IN_PROGRESS, assignee=owner)
        if not result.ok:
            logger.info(
                "Beads claim failed",
                extra={"task_id": task.id, "returncode": result.returncode},
            )
            return None

        self._pointer.write(task.id + "\n")
        logger.info("Claimed beads task", extra={"task_id": task.id, "assignee": owner})
        return task.id

    def complete_task(self, task_id: str | None = None, reason: str | None = None) -> bool:
        """Mark the given (or current) task complete.

        The pointer survives a failed close so the same task can be retried.
        """

        resolved = task_id or self.get_current_task_id()
        if not resolved:
            return False

        if is_checklist_id(resolved):
            # The assistant edits the checklist itself; only the claim is dropped.
            self._pointer.clear()
            return True

        runner = self._runner()
        if runner is None:
            logger.debug("Cannot complete task without beads", extra={"task_id": resolved})
            return False

        result = runner.close(resolved, reason=reason or DEFAULT_COMPLETE_REASON)
        if result.ok:
            self._pointer.clear()
            logger.info("Completed beads task", extra={"task_id": resolved})
        else:
            logger.info(
                "Beads close failed",
                extra={"task_id": resolved, "returncode": result.returncode},
            )
        return result.ok

    def release_task(self, task_id: str | None = None, reason: str | None = None) -> bool:
        """Un-claim a task without completing it.

        The pointer is always removed, even when reopening the tracker task fails.
        """

        resolved = task_id or self.get_current_task_id()
        if not resolved or is_checklist_id(resolved):
            self._pointer.clear()
            return True

        runner = self._runner()
        if runner is None:
            self._pointer.clear()
            return True

        result = runner.update(resolved, status=STATUS_OPEN)
        self._pointer.clear()
        logger.info(
            "Released beads task",
            extra={
                "task_id": resolved,
                "reason": reason or DEFAULT_RELEASE_REASON,
                "reopened": result.ok,
            },
        )
        return result.ok

    # ------------------------------------------------------------------
    # Context

    def build_task_context(self) -> str:
        """One-line description of the task state, for prompts and logs."""

        parts = [
            f"Task source: {self.get_task_source().value}.",
            f"Ready tasks: {self.get_ready_task_count()}.",
        ]
        current = self.get_current_task_id()
        if current and not is_checklist_id(current):
            task = self.get_task_by_id(current)
            title = task.title if task is not None and task.title else "unknown"
            parts.append(f"Current: {current} ({title}).")
        return " ".join(parts)

    def get_task_summary(self, limit: int = 3) -> list[str]:
        if limit <= 0:
            return []

        runner = self._runner()
        if runner is not None:
            records = self._ready_records(runner, limit=limit) or []
            lines: list[str] = []
            for record in records[:limit]:
                task = self._to_task(record)
                if task is None:
                    continue
                priority = task.priority if task.priority is not None else DEFAULT_SUMMARY_PRIORITY
                lines.append(f"[{priority}] {task.id}: {task.title}")
            return lines

        if self.fix_plan_available():
            return [f"[?] {FIX_PLAN_TASK_ID}: {title}" for title in self._checklist_titles()[:limit]]
        return []

    def init_beads_integration(self) -> TaskSource:
        """Drop a stale beads pointer when beads is gone; return the active source."""

        source = self.get_task_source()
        current = self.get_current_task_id()
        if current and not is_checklist_id(current) and not self.beads_available():
            logger.warning(
                "Removing stale beads task pointer",
                extra={"task_id": current},
            )
            self._pointer.clear()
        return source


def _default_manager() -> TaskSourceManager:
    return TaskSourceManager(load_settings())


def beads_available() -> bool:
    return _default_manager().beads_available()


def fix_plan_available() -> bool:
    return _default_manager().fix_plan_available()


def get_task_source() -> TaskSource:
    return _default_manager().get_task_source()


def get_ready_task_count() -> int:
    return _default_manager().get_ready_task_count()


def get_next_task() -> Task | None:
    return _default_manager().get_next_task()


def get_task_by_id(task_id: str | None) -> Task | None:
    return _default_manager().get_task_by_id(task_id)


def all_tasks_complete() -> bool:
    return _default_manager().all_tasks_complete()


def claim_next_task(assignee: str | None = None) -> str | None:
    return _default_manager().claim_next_task(assignee)


def complete_task(task_id: str | None = None, reason: str | None = None) -> bool:
    return _default_manager().complete_task(task_id, reason)


def get_current_task_id() -> str | None:
    return _default_manager().get_current_task_id()


def release_task(task_id: str | None = None, reason: str | None = None) -> bool:
    return _default_manager().release_task(task_id, reason)


def build_task_context() -> str:
    return _default_manager().build_task_context()


def get_task_summary(limit: int = 3) -> list[str]:
    return _default_manager().get_task_summary(limit)


def init_beads_integration() -> TaskSource:
    return _default_manager().init_beads_integration()


__all__ = [
    "DEFAULT_COMPLETE_REASON",
    "DEFAULT_RELEASE_REASON",
    "TaskSourceManager",
    "all_tasks_complete",
    "beads_available",
    "build_task_context",
    "claim_next_task",
    "complete_task",
    "fix_plan_available",
    "get_current_task_id",
    "get_next_task",
    "get_ready_task_count",
    "get_task_by_id",
    "get_task_source",
    "get_task_summary",
    "init_beads_integration",
    "release_task",
]
