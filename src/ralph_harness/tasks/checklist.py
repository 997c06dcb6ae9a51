"""Parsing for the ``@fix_plan.md`` markdown checklist."""

from __future__ import annotations

import re

from .models import Task, TaskSource

FIX_PLAN_TASK_ID = "fix_plan"
POINTER_PREFIX = f"{FIX_PLAN_TASK_ID}:"

_UNCHECKED_PATTERN = re.compile(r"^- \[ \] (?P<title>.*)$")


def unchecked_titles(text: str | None) -> list[str]:
    """Return the titles of unchecked ``- [ ] `` lines in file order."""

    if not text:
        return []
    titles: list[str] = []
    for line in text.splitlines():
        match = _UNCHECKED_PATTERN.match(line)
        if match:
            titles.append(match.group("title").rstrip())
    return titles


def checklist_task(title: str) -> Task:
    return Task(id=FIX_PLAN_TASK_ID, title=title, source=TaskSource.FIX_PLAN)


def checklist_pointer(title: str) -> str:
    return f"{POINTER_PREFIX}{title}"


def is_checklist_id(task_id: str | None) -> bool:
    """True for the sentinel id and for ``fix_plan:<title>`` pointer values."""

    if not task_id:
        return False
    return task_id == FIX_PLAN_TASK_ID or task_id.startswith(POINTER_PREFIX)


__all__ = [
    "FIX_PLAN_TASK_ID",
    "POINTER_PREFIX",
    "checklist_pointer",
    "checklist_task",
    "is_checklist_id",
    "unchecked_titles",
]
