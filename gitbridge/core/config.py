"""Unified configuration via pydantic-settings."""

from pathlib import Path

from pydantic import AliasChoices, Field, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict


class GitBridgeConfig(BaseSettings):
    model_config = SettingsConfigDict(
        env_prefix="GITBRIDGE_",
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
        populate_by_name=True,
    )

    # Executable resolution
    use_local_git: bool = Field(
        default=True,
        validation_alias=AliasChoices("GITBRIDGE_USE_LOCAL_GIT", "USE_LOCAL_GIT"),
    )
    local_git_directory: Path | None = Field(
        default=None,
        validation_alias=AliasChoices(
            "GITBRIDGE_LOCAL_GIT_DIRECTORY", "LOCAL_GIT_DIRECTORY"
        ),
    )
    local_git_path: Path | None = Field(
        default=None,
        validation_alias=AliasChoices("GITBRIDGE_LOCAL_GIT_PATH", "LOCAL_GIT_PATH"),
    )

    # Logging
    log_level: str = "INFO"
    log_dir: Path | None = None
    log_max_bytes: int = 10_485_760
    log_backup_count: int = 5

    @field_validator("local_git_directory", "local_git_path", mode="before")
    @classmethod
    def parse_optional_path(cls, v: Path | str | None) -> Path | None:
        if isinstance(v, str):
            v = v.strip()
            if not v:
                return None
            return Path(v)
        return v

    @field_validator("local_git_directory", "local_git_path")
    @classmethod
    def expand_user(cls, v: Path | None) -> Path | None:
        return v.expanduser() if v is not None else None

    @field_validator("log_level")
    @classmethod
    def normalize_log_level(cls, v: str) -> str:
        level = v.strip().upper()
        if level not in {"DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"}:
            raise ValueError(f"unknown log level: {v}")
        return level
