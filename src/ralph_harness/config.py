"""Configuration management for the Ralph harness."""

from __future__ import annotations

from functools import lru_cache
from pathlib import Path

from pydantic import Field, field_validator
from pydantic_settings import (
    BaseSettings,
    PydanticBaseSettingsSource,
    SettingsConfigDict,
    YamlConfigSettingsSource,
)


class RalphSettings(BaseSettings):
    """Runtime configuration sourced from environment variables, .env and .ralph.yml."""

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        yaml_file=".ralph.yml",
        extra="ignore",
        populate_by_name=True,
    )

    project_root: Path = Field(default=Path("."), validation_alias="RALPH_PROJECT_ROOT")
    beads_dir: str = Field(default=".beads", validation_alias="RALPH_BEADS_DIR")
    beads_cmd: str = Field(default="bd", validation_alias="RALPH_BEADS_CMD")
    fix_plan_file: str = Field(default="@fix_plan.md", validation_alias="RALPH_FIX_PLAN_FILE")
    current_task_file: str = Field(
        default=".ralph_current_task", validation_alias="RALPH_CURRENT_TASK_FILE"
    )
    session_file: str = Field(default=".claude_session_id", validation_alias="RALPH_SESSION_FILE")
    default_assignee: str = Field(default="ralph", validation_alias="RALPH_ASSIGNEE")
    log_level: str = Field(default="INFO", validation_alias="RALPH_LOG_LEVEL")

    @classmethod
    def settings_customise_sources(
        cls,
        settings_cls: type[BaseSettings],
        init_settings: PydanticBaseSettingsSource,
        env_settings: PydanticBaseSettingsSource,
        dotenv_settings: PydanticBaseSettingsSource,
        file_secret_settings: PydanticBaseSettingsSource,
    ) -> tuple[PydanticBaseSettingsSource, ...]:
        return (
            init_settings,
            env_settings,
            dotenv_settings,
            YamlConfigSettingsSource(settings_cls),
            file_secret_settings,
        )

    @field_validator("log_level")
    @classmethod
    def _normalize_log_level(cls, value: str) -> str:
        normalized = value.strip().upper()
        if normalized not in {"CRITICAL", "ERROR", "WARNING", "INFO", "DEBUG"}:
            raise ValueError(
                "RALPH_LOG_LEVEL must be one of CRITICAL, ERROR, WARNING, INFO, DEBUG"
            )
        return normalized

    @field_validator("beads_cmd", "default_assignee")
    @classmethod
    def _require_value(cls, value: str) -> str:
        normalized = value.strip()
        if not normalized:
            raise ValueError("beads_cmd and default_assignee must not be empty")
        return normalized

    def resolve(self, name: str) -> Path:
        """Return a project-relative path for one of the configured file names."""

        path = Path(name).expanduser()
        if path.is_absolute():
            return path
        return self.project_root / path

    @property
    def beads_path(self) -> Path:
        return self.resolve(self.beads_dir)

    @property
    def fix_plan_path(self) -> Path:
        return self.resolve(self.fix_plan_file)

    @property
    def current_task_path(self) -> Path:
        return self.resolve(self.current_task_file)

    @property
    def session_path(self) -> Path:
        return self.resolve(self.session_file)


def load_settings() -> RalphSettings:
    """Build settings from the current environment and working directory."""

    settings = RalphSettings()
    settings.project_root = settings.project_root.expanduser().resolve()
    return settings


@lru_cache(maxsize=1)
def get_settings() -> RalphSettings:
    """Return cached settings instance."""

    return load_settings()


__all__ = ["RalphSettings", "get_settings", "load_settings"]
