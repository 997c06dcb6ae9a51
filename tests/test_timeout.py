from __future__ import annotations

import shutil
import time
from pathlib import Path

import pytest

from ralph_harness.timeout import (
    FALLBACK_STRATEGY,
    InvalidDurationError,
    PortableTimeout,
    parse_duration,
    portable_timeout,
)


def _no_utilities(_name: str) -> str | None:
    return None


@pytest.mark.parametrize(
    ("duration", "seconds"),
    [("30", 30), ("30s", 30), ("5m", 300), ("2h", 7200), ("0", 0)],
)
def test_parse_duration(duration: str, seconds: int) -> None:
    assert parse_duration(duration) == seconds


@pytest.mark.parametrize("duration", ["", "-5", "abc", "5x", "1.5s", "s", "5 s", "5ms", "5\n", "5s\n"])
def test_parse_duration_rejects_invalid(duration: str) -> None:
    with pytest.raises(InvalidDurationError, match="Invalid duration format"):
        parse_duration(duration)


def test_resolve_strategy_prefers_gtimeout() -> None:
    runner = PortableTimeout(which=lambda name: f"/opt/bin/{name}")
    assert runner.resolve_strategy() == ("gtimeout", "/opt/bin/gtimeout")


def test_resolve_strategy_uses_timeout_then_fallback() -> None:
    runner = PortableTimeout(which=lambda name: "/usr/bin/timeout" if name == "timeout" else None)
    assert runner.resolve_strategy() == ("timeout", "/usr/bin/timeout")
    assert PortableTimeout(which=_no_utilities).resolve_strategy() == (FALLBACK_STRATEGY, None)


def test_fallback_kills_command_after_deadline(tmp_path: Path) -> None:
    marker = tmp_path / "late.txt"
    runner = PortableTimeout(which=_no_utilities, grace_period=0.5)

    started = time.monotonic()
    result = runner.run("1s", "sh", "-c", f"sleep 2; echo late > {marker}")
    elapsed = time.monotonic() - started

    assert result.returncode == 124
    assert result.timed_out
    assert result.strategy == FALLBACK_STRATEGY
    assert elapsed < 2

    time.sleep(1.5)
    assert not marker.exists()


def test_fallback_passes_exit_code_through() -> None:
    runner = PortableTimeout(which=_no_utilities)
    result = runner.run("5", "sh", "-c", "exit 3")

    assert result.returncode == 3
    assert not result.timed_out


def test_fallback_reports_missing_command(tmp_path: Path) -> None:
    runner = PortableTimeout(which=_no_utilities)
    assert runner.run("5s", str(tmp_path / "missing")).returncode == 127


def test_invalid_duration_never_runs_command(tmp_path: Path) -> None:
    marker = tmp_path / "ran.txt"
    utility = tmp_path / "timeout"
    utility.write_text(f"#!/bin/sh\ntouch {marker}\n", encoding="utf-8")
    utility.chmod(0o755)
    runner = PortableTimeout(which=lambda name: str(utility) if name == "timeout" else None)

    with pytest.raises(InvalidDurationError):
        runner.run("soon", "echo", "x")

    assert not marker.exists()


def test_utility_strategy_receives_duration_and_command(tmp_path: Path) -> None:
    log = tmp_path / "args.txt"
    utility = tmp_path / "gtimeout"
    utility.write_text(f"#!/bin/sh\necho \"$@\" > {log}\nexit 5\n", encoding="utf-8")
    utility.chmod(0o755)
    runner = PortableTimeout(which=lambda name: str(utility) if name == "gtimeout" else None)

    result = runner.run("5m", "make", "test")

    assert result.returncode == 5
    assert result.strategy == "gtimeout"
    assert log.read_text(encoding="utf-8").strip() == "5m make test"


@pytest.mark.skipif(shutil.which("timeout") is None, reason="coreutils timeout not installed")
def test_host_timeout_utility_returns_124() -> None:
    assert portable_timeout("1s", "sleep", "10") == 124


def test_portable_timeout_returns_child_status() -> None:
    assert portable_timeout("5s", "true") == 0
    assert portable_timeout("5s", "false") == 1
