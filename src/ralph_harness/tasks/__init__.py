"""Task source abstraction: beads tracker with a fix-plan checklist fallback."""

from .checklist import FIX_PLAN_TASK_ID, is_checklist_id, unchecked_titles
from .models import Task, TaskSource
from .source import (
    TaskSourceManager,
    all_tasks_complete,
    beads_available,
    build_task_context,
    claim_next_task,
    complete_task,
    fix_plan_available,
    get_current_task_id,
    get_next_task,
    get_ready_task_count,
    get_task_by_id,
    get_task_source,
    get_task_summary,
    init_beads_integration,
    release_task,
)

__all__ = [
    "FIX_PLAN_TASK_ID",
    "Task",
    "TaskSource",
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
    "is_checklist_id",
    "unchecked_titles",
]
