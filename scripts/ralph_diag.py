"""Ralph harness diagnostics CLI."""

from __future__ import annotations

import argparse
import json
from pathlib import Path

from ralph_harness.config import RalphSettings
from ralph_harness.session import SESSION_EXPIRY_SECONDS, SessionTracker
from ralph_harness.tasks import TaskSourceManager


def load_settings(args: argparse.Namespace) -> RalphSettings:
    if getattr(args, "project_root", None):
        return RalphSettings(project_root=Path(args.project_root).resolve())
    return RalphSettings()


def load_manager(settings: RalphSettings) -> TaskSourceManager:
    return TaskSourceManager(settings)


def load_tracker(settings: RalphSettings) -> SessionTracker:
    return SessionTracker(settings=settings)


def cmd_state(args: argparse.Namespace) -> None:
    settings = load_settings(args)
    manager = load_manager(settings)
    payload = {
        "project_root": str(settings.project_root),
        "source": manager.get_task_source().value,
        "beads_available": manager.beads_available(),
        "fix_plan_available": manager.fix_plan_available(),
        "ready_count": manager.get_ready_task_count(),
        "current_task": manager.get_current_task_id(),
        "context": manager.build_task_context(),
    }
    print(json.dumps(payload, indent=2))


def cmd_tasks(args: argparse.Namespace) -> None:
    settings = load_settings(args)
    manager = load_manager(settings)
    summary = manager.get_task_summary(args.limit)
    if args.json:
        print(json.dumps(summary, indent=2))
    else:
        for line in summary:
            print(line)


def cmd_session(args: argparse.Namespace) -> None:
    settings = load_settings(args)
    tracker = load_tracker(settings)
    record = tracker.load_session()
    age = tracker.session_age_seconds(record) if record is not None else None
    payload = {
        "path": str(settings.session_path),
        "session_id": record.session_id if record is not None else None,
        "created_at": record.created_at.isoformat() if record is not None else None,
        "age_seconds": age,
        "expiry_seconds": SESSION_EXPIRY_SECONDS,
        "resumable": tracker.should_resume_session(),
    }
    print(json.dumps(payload, indent=2))


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(description="Ralph harness diagnostics")
    parser.add_argument("--project-root", default=None)
    sub = parser.add_subparsers(dest="cmd")

    p_state = sub.add_parser("state", help="Show task source and pointer state")
    p_state.set_defaults(func=cmd_state)

    p_tasks = sub.add_parser("tasks", help="List the top ready tasks")
    p_tasks.add_argument("--json", action="store_true", help="Output JSON")
    p_tasks.add_argument("--limit", type=int, default=10)
    p_tasks.set_defaults(func=cmd_tasks)

    p_session = sub.add_parser("session", help="Show the stored assistant session")
    p_session.set_defaults(func=cmd_session)

    return parser


def main(argv: list[str] | None = None) -> None:
    parser = build_parser()
    args = parser.parse_args(argv)
    if not hasattr(args, "func"):
        parser.print_help()
        return
    args.func(args)


if __name__ == "__main__":
    main()
