from __future__ import annotations

from pathlib import Path

import pytest

from ralph_harness.config import RalphSettings


@pytest.fixture(autouse=True)
def _isolate_environment(monkeypatch: pytest.MonkeyPatch) -> None:
    for name in (
        "RALPH_PROJECT_ROOT",
        "RALPH_BEADS_DIR",
        "RALPH_BEADS_CMD",
        "RALPH_FIX_PLAN_FILE",
        "RALPH_CURRENT_TASK_FILE",
        "RALPH_SESSION_FILE",
        "RALPH_ASSIGNEE",
        "RALPH_LOG_LEVEL",
    ):
        monkeypatch.delenv(name, raising=False)


@pytest.fixture
def settings(tmp_path: Path) -> RalphSettings:
    return RalphSettings(project_root=tmp_path)


@pytest.fixture
def beads_dir(settings: RalphSettings) -> Path:
    path = settings.beads_path
    path.mkdir()
    return path


@pytest.fixture
def write_fix_plan(settings: RalphSettings):
    def _write(*lines: str) -> Path:
        path = settings.fix_plan_path
        path.write_text("\n".join(lines) + "\n", encoding="utf-8")
        return path

    return _write
