"""Runner for the beads (``bd``) task tracker CLI."""

from __future__ import annotations

import json
import shutil
import subprocess
from dataclasses import dataclass
from pathlib import Path
from typing import Any, Iterable

from .utils import parse_json_records

LAUNCH_FAILURE_EXIT_CODE = 127


class BeadsRunnerError(RuntimeError):
    """Base class for beads runner errors."""


class BeadsNotFoundError(BeadsRunnerError):
    """Raised when the beads CLI executable cannot be located."""


@dataclass(slots=True)
class BeadsExecutionResult:
    """Holds the outcome of a beads CLI invocation."""

    args: tuple[str, ...]
    returncode: int
    stdout: str
    stderr: str

    @property
    def ok(self) -> bool:
        return self.returncode == 0

    def records(self) -> list[dict[str, Any]] | None:
        """Return the JSON records printed on success, or ``None``."""

        if not self.ok:
            return None
        return parse_json_records(self.stdout)


class BeadsRunner:
    """Execute beads CLI commands with ``--json`` output."""

    def __init__(
        self,
        executable: Path | None = None,
        *,
        command: str = "bd",
        cwd: Path | None = None,
    ) -> None:
        self._executable_path = self._resolve_executable(executable, command)
        self._cwd = cwd

    @staticmethod
    def _resolve_executable(explicit: Path | None, command: str) -> Path:
        if explicit is not None:
            candidate = Path(explicit)
            if candidate.exists() and candidate.is_file():
                return candidate
            raise BeadsNotFoundError(f"Beads executable not found at {candidate}")

        binary = shutil.which(command)
        if binary is None:
            raise BeadsNotFoundError(f"Beads CLI '{command}' not found on PATH")
        return Path(binary)

    @property
    def executable(self) -> Path:
        return self._executable_path

    def ready(self, *, limit: int | None = None) -> BeadsExecutionResult:
        args: list[str] = ["ready", "--json"]
        if limit is not None:
            args.extend(["--limit", str(limit)])
        return self._invoke(*args)

    def show(self, task_id: str) -> BeadsExecutionResult:
        return self._invoke("show", task_id, "--json")

    def update(
        self,
        task_id: str,
        *,
        status: str,
        assignee: str | None = None,
    ) -> BeadsExecutionResult:
        args: list[str] = ["update", task_id, "--status", status]
        if assignee:
            args.extend(["--assignee", assignee])
        args.append("--json")
        return self._invoke(*args)

    def close(self, task_id: str, *, reason: str) -> BeadsExecutionResult:
        return self._invoke("close", task_id, "--reason", reason, "--json")

    def _invoke(self, *args: str) -> BeadsExecutionResult:
        cmd = [str(self._executable_path), *args]
        try:
            completed = subprocess.run(
                cmd,
                stdin=subprocess.DEVNULL,
                capture_output=True,
                cwd=str(self._cwd) if self._cwd is not None else None,
                check=False,
            )
        except OSError as exc:
            return BeadsExecutionResult(
                args=tuple(cmd),
                returncode=LAUNCH_FAILURE_EXIT_CODE,
                stdout="",
                stderr=str(exc),
            )
        stdout = completed.stdout.decode("utf-8", errors="replace")
        stderr = completed.stderr.decode("utf-8", errors="replace")
        return BeadsExecutionResult(
            args=tuple(cmd), returncode=completed.returncode, stdout=stdout, stderr=stderr
        )


class FakeBeadsRunner(BeadsRunner):
    """Test double that simulates beads CLI responses.

    ``responses`` maps a subcommand (``ready``, ``show``, ``update``, ``close``) to
    either a single result or a list consumed in order; unmapped calls succeed with
    an empty JSON list.
    """

    def __init__(  # type: ignore[override]
        self,
        responses: dict[str, BeadsExecutionResult | Iterable[BeadsExecutionResult]] | None = None,
    ) -> None:
        self._responses: dict[str, list[BeadsExecutionResult] | BeadsExecutionResult] = {}
        for subcommand, response in (responses or {}).items():
            if isinstance(response, BeadsExecutionResult):
                self._responses[subcommand] = response
            else:
                self._responses[subcommand] = list(response)
        self._invocations: list[tuple[str, ...]] = []
        self._executable_path = Path("/tmp/fake-bd")
        self._cwd = None

    def _invoke(self, *args: str) -> BeadsExecutionResult:  # type: ignore[override]
        self._invocations.append(tuple(args))
        response = self._responses.get(args[0])
        if isinstance(response, BeadsExecutionResult):
            return response
        if response:
            return response.pop(0)
        return BeadsExecutionResult(args=tuple(args), returncode=0, stdout="[]", stderr="")

    @property
    def invocations(self) -> list[tuple[str, ...]]:
        return self._invocations


def json_result(payload: Any, *, returncode: int = 0) -> BeadsExecutionResult:
    """Build a result whose stdout is ``payload`` serialized as JSON."""

    return BeadsExecutionResult(
        args=("bd",), returncode=returncode, stdout=json.dumps(payload), stderr=""
    )
