"""Command-line surface used by the Ralph loop shell scripts.

Predicates and lifecycle commands report through the exit status (0 for
success or true, 1 otherwise); data is printed to stdout and logs go to
stderr so command substitution stays clean.
"""

from __future__ import annotations

import argparse
import json
import logging
import sys
from pathlib import Path
from typing import Callable

from . import __version__
from .config import RalphSettings, get_settings
from .dates import get_basic_timestamp, get_epoch_seconds, get_iso_timestamp, get_next_hour_time
from .session import SessionTracker
from .tasks import Task, TaskSourceManager
from .timeout import InvalidDurationError, portable_timeout


def configure_logging(level: str) -> None:
    """Configure root logging for harness commands."""

    logging.basicConfig(
        level=getattr(logging, level, logging.INFO),
        format="[%(asctime)s] [%(levelname)s] %(name)s: %(message)s",
        stream=sys.stderr,
    )


def _settings_from_args(args: argparse.Namespace) -> RalphSettings:
    if getattr(args, "project_root", None):
        return RalphSettings(project_root=Path(args.project_root).expanduser().resolve())
    return get_settings()


def _manager(args: argparse.Namespace) -> TaskSourceManager:
    return TaskSourceManager(_settings_from_args(args))


def _tracker(args: argparse.Namespace) -> SessionTracker:
    return SessionTracker(settings=_settings_from_args(args))


def _print_task(task: Task | None) -> int:
    if task is None:
        return 1
    print(json.dumps(task.model_dump(mode="json")))
    return 0


def _print_optional(value: str | None) -> int:
    if value is None:
        return 1
    print(value)
    return 0


def cmd_source(args: argparse.Namespace) -> int:
    print(_manager(args).get_task_source().value)
    return 0


def cmd_ready_count(args: argparse.Namespace) -> int:
    print(_manager(args).get_ready_task_count())
    return 0


def cmd_next(args: argparse.Namespace) -> int:
    return _print_task(_manager(args).get_next_task())


def cmd_show(args: argparse.Namespace) -> int:
    return _print_task(_manager(args).get_task_by_id(args.task_id))


def cmd_all_complete(args: argparse.Namespace) -> int:
    return 0 if _manager(args).all_tasks_complete() else 1


def cmd_claim(args: argparse.Namespace) -> int:
    return _print_optional(_manager(args).claim_next_task(args.assignee))


def cmd_complete(args: argparse.Namespace) -> int:
    return 0 if _manager(args).complete_task(args.task_id, args.reason) else 1


def cmd_current(args: argparse.Namespace) -> int:
    current = _manager(args).get_current_task_id()
    if current:
        print(current)
    return 0


def cmd_release(args: argparse.Namespace) -> int:
    return 0 if _manager(args).release_task(args.task_id, args.reason) else 1


def cmd_context(args: argparse.Namespace) -> int:
    print(_manager(args).build_task_context())
    return 0


def cmd_summary(args: argparse.Namespace) -> int:
    for line in _manager(args).get_task_summary(args.limit):
        print(line)
    return 0


def cmd_init(args: argparse.Namespace) -> int:
    print(_manager(args).init_beads_integration().value)
    return 0


def cmd_session_should_resume(args: argparse.Namespace) -> int:
    return 0 if _tracker(args).should_resume_session() else 1


def cmd_session_store(args: argparse.Namespace) -> int:
    try:
        _tracker(args).store_session_id(args.session_id)
    except ValueError as exc:
        print(f"Error: {exc}", file=sys.stderr)
        return 1
    return 0


def cmd_session_last(args: argparse.Namespace) -> int:
    session_id = _tracker(args).get_last_session_id()
    if session_id:
        print(session_id)
    return 0


def cmd_session_clear(args: argparse.Namespace) -> int:
    _tracker(args).clear_session()
    return 0


_TIMESTAMP_FORMATS: dict[str, Callable[[], object]] = {
    "iso": get_iso_timestamp,
    "epoch": get_epoch_seconds,
    "basic": get_basic_timestamp,
    "next-hour": get_next_hour_time,
}


def cmd_timestamp(args: argparse.Namespace) -> int:
    print(_TIMESTAMP_FORMATS[args.format]())
    return 0


def cmd_timeout(args: argparse.Namespace) -> int:
    try:
        return portable_timeout(args.duration, args.command, *args.args)
    except InvalidDurationError as exc:
        print(f"Error: {exc}", file=sys.stderr)
        return 1


def _add_timeout_arguments(parser: argparse.ArgumentParser) -> None:
    parser.add_argument("duration", help="NUMBER with optional s/m/h suffix (default seconds)")
    parser.add_argument("command", help="Command to run")
    parser.add_argument("args", nargs=argparse.REMAINDER, help="Arguments passed to the command")
    parser.set_defaults(func=cmd_timeout)


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(prog="ralph-harness", description="Ralph loop task and session helpers")
    parser.add_argument("--version", action="version", version=f"%(prog)s {__version__}")
    parser.add_argument("--project-root", help="Project directory holding the task and session files")
    parser.add_argument("--log-level", default=None, help="Override RALPH_LOG_LEVEL")
    sub = parser.add_subparsers(dest="cmd")

    sub.add_parser("source", help="Print the active task source").set_defaults(func=cmd_source)
    sub.add_parser("ready-count", help="Print the number of ready tasks").set_defaults(
        func=cmd_ready_count
    )
    sub.add_parser("next", help="Print the next ready task as JSON").set_defaults(func=cmd_next)

    p_show = sub.add_parser("show", help="Print a tracker task as JSON")
    p_show.add_argument("task_id")
    p_show.set_defaults(func=cmd_show)

    sub.add_parser("all-complete", help="Exit 0 when no ready tasks remain").set_defaults(
        func=cmd_all_complete
    )

    p_claim = sub.add_parser("claim", help="Claim the next ready task")
    p_claim.add_argument("--assignee", default=None)
    p_claim.set_defaults(func=cmd_claim)

    p_complete = sub.add_parser("complete", help="Complete the current or given task")
    p_complete.add_argument("task_id", nargs="?", default=None)
    p_complete.add_argument("--reason", default=None)
    p_complete.set_defaults(func=cmd_complete)

    sub.add_parser("current", help="Print the claimed task id").set_defaults(func=cmd_current)

    p_release = sub.add_parser("release", help="Release the current or given task")
    p_release.add_argument("task_id", nargs="?", default=None)
    p_release.add_argument("--reason", default=None)
    p_release.set_defaults(func=cmd_release)

    sub.add_parser("context", help="Print a one-line task context").set_defaults(func=cmd_context)

    p_summary = sub.add_parser("summary", help="Print the top ready tasks")
    p_summary.add_argument("--limit", type=int, default=3)
    p_summary.set_defaults(func=cmd_summary)

    sub.add_parser("init", help="Drop stale pointers and print the task source").set_defaults(
        func=cmd_init
    )

    p_session = sub.add_parser("session", help="Assistant session continuity")
    session_sub = p_session.add_subparsers(dest="session_cmd")
    session_sub.add_parser(
        "should-resume", help="Exit 0 when the stored session is younger than 24h"
    ).set_defaults(func=cmd_session_should_resume)
    p_store = session_sub.add_parser("store", help="Persist a new session id")
    p_store.add_argument("session_id")
    p_store.set_defaults(func=cmd_session_store)
    session_sub.add_parser("last", help="Print the stored session id").set_defaults(
        func=cmd_session_last
    )
    session_sub.add_parser("clear", help="Forget the stored session").set_defaults(
        func=cmd_session_clear
    )

    p_timestamp = sub.add_parser("timestamp", help="Print a timestamp")
    p_timestamp.add_argument("--format", choices=sorted(_TIMESTAMP_FORMATS), default="iso")
    p_timestamp.set_defaults(func=cmd_timestamp)

    _add_timeout_arguments(sub.add_parser("timeout", help="Run a command under a deadline"))

    return parser


def main(argv: list[str] | None = None) -> int:
    parser = build_parser()
    args = parser.parse_args(argv)
    if not hasattr(args, "func"):
        parser.print_help()
        return 1

    level = args.log_level.upper() if args.log_level else _settings_from_args(args).log_level
    configure_logging(level)
    return args.func(args)


def timeout_main(argv: list[str] | None = None) -> int:
    """Entry point for ``ralph-timeout DURATION COMMAND [ARGS...]``."""

    parser = argparse.ArgumentParser(
        prog="ralph-timeout",
        description="Run a command with a wall-clock deadline; exits 124 on timeout.",
    )
    _add_timeout_arguments(parser)
    args = parser.parse_args(argv)
    return args.func(args)


if __name__ == "__main__":
    raise SystemExit(main())
