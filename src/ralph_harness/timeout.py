"""Portable wall-clock timeout for external commands."""

from __future__ import annotations

import logging
import re
import shutil
import signal
import subprocess
from dataclasses import dataclass
from typing import Callable, Sequence

logger = logging.getLogger(__name__)

TIMEOUT_EXIT_CODE = 124
COMMAND_NOT_FOUND_EXIT_CODE = 127
DEFAULT_GRACE_PERIOD = 1.0

_DURATION_PATTERN = re.compile(r"^([0-9]+)([smh])?$")
_UNIT_SECONDS = {"s": 1, "m": 60, "h": 3600}

# Checked in order; gtimeout is the Homebrew coreutils name on macOS.
_TIMEOUT_BINARIES = ("gtimeout", "timeout")
FALLBACK_STRATEGY = "fallback"


class InvalidDurationError(ValueError):
    """Raised when a duration does not match ``NUMBER[s|m|h]``."""

    def __init__(self, duration: str) -> None:
        super().__init__(f"Invalid duration format: {duration}")
        self.duration = duration


def parse_duration(duration: str) -> int:
    """Convert ``30``, ``30s``, ``5m`` or ``2h`` into seconds."""

    match = _DURATION_PATTERN.fullmatch(duration or "")
    if match is None:
        raise InvalidDurationError(duration)
    amount, unit = match.groups()
    return int(amount) * _UNIT_SECONDS[unit or "s"]


@dataclass(slots=True)
class TimeoutResult:
    """Outcome of a command run under a deadline."""

    args: tuple[str, ...]
    returncode: int
    strategy: str

    @property
    def timed_out(self) -> bool:
        return self.returncode == TIMEOUT_EXIT_CODE


class PortableTimeout:
    """Run commands under a deadline using the best strategy the host offers."""

    def __init__(
        self,
        *,
        grace_period: float = DEFAULT_GRACE_PERIOD,
        which: Callable[[str], str | None] = shutil.which,
    ) -> None:
        self._grace_period = grace_period
        self._which = which

    def resolve_strategy(self) -> tuple[str, str | None]:
        """Return ``(strategy_name, executable)``; the fallback has no executable."""

        for name in _TIMEOUT_BINARIES:
            binary = self._which(name)
            if binary:
                return name, binary
        return FALLBACK_STRATEGY, None

    def run(self, duration: str, command: str, *args: str) -> TimeoutResult:
        seconds = parse_duration(duration)
        cmd = (command, *args)
        strategy, binary = self.resolve_strategy()
        logger.debug(
            "Running command under timeout",
            extra={"duration": duration, "strategy": strategy, "command": command},
        )

        if binary is not None:
            returncode = self._run_utility(binary, duration, cmd)
        else:
            returncode = self._run_fallback(seconds, cmd)

        if returncode == TIMEOUT_EXIT_CODE:
            logger.info(
                "Command timed out",
                extra={"duration": duration, "strategy": strategy, "command": command},
            )
        return TimeoutResult(args=cmd, returncode=returncode, strategy=strategy)

    @staticmethod
    def _run_utility(binary: str, duration: str, cmd: Sequence[str]) -> int:
        try:
            completed = subprocess.run([binary, duration, *cmd], check=False)
        except OSError as exc:
            logger.debug("Timeout utility failed to start", extra={"binary": binary, "error": str(exc)})
            return COMMAND_NOT_FOUND_EXIT_CODE
        return completed.returncode

    def _run_fallback(self, seconds: int, cmd: Sequence[str]) -> int:
        try:
            process = subprocess.Popen(list(cmd))
        except OSError as exc:
            logger.debug("Command failed to start", extra={"command": cmd[0], "error": str(exc)})
            return COMMAND_NOT_FOUND_EXIT_CODE

        try:
            # A zero duration disables the deadline, as with coreutils timeout.
            returncode = process.wait(timeout=seconds or None)
        except subprocess.TimeoutExpired:
            self._terminate(process)
            return TIMEOUT_EXIT_CODE

        if returncode < 0:
            return 128 + abs(returncode)
        return returncode

    def _terminate(self, process: subprocess.Popen[bytes]) -> None:
        try:
            process.send_signal(signal.SIGTERM)
        except OSError:
            return
        try:
            process.wait(timeout=self._grace_period)
        except subprocess.TimeoutExpired:
            try:
                process.kill()
            except OSError:
                return
            process.wait()


def portable_timeout(duration: str, command: str, *args: str) -> int:
    """Run ``command`` with ``args``; return its exit code, or 124 if the deadline passed.

    Raises ``InvalidDurationError`` before running anything when ``duration`` is malformed.
    """

    return PortableTimeout().run(duration, command, *args).returncode


__all__ = [
    "COMMAND_NOT_FOUND_EXIT_CODE",
    "FALLBACK_STRATEGY",
    "InvalidDurationError",
    "PortableTimeout",
    "TIMEOUT_EXIT_CODE",
    "TimeoutResult",
    "parse_duration",
    "portable_timeout",
]
