"""Beads task tracker CLI integration."""

from .runner import (
    BeadsExecutionResult,
    BeadsNotFoundError,
    BeadsRunner,
    BeadsRunnerError,
    FakeBeadsRunner,
    json_result,
)

__all__ = [
    "BeadsExecutionResult",
    "BeadsNotFoundError",
    "BeadsRunner",
    "BeadsRunnerError",
    "FakeBeadsRunner",
    "json_result",
]
