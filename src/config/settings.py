# src/config/settings.py - v1
"""Typed configuration loaded from .env via pydantic-settings.

Single source of truth for deployment-specific settings: where component
and provider records live, git remote, command timeouts and logging.
"""

from __future__ import annotations

import re
from pathlib import Path
from typing import Literal

from pydantic import field_validator, model_validator
from pydantic_settings import BaseSettings, SettingsConfigDict


class ConfigurationError(Exception):
    """Raised when configuration is internally inconsistent."""


_SIZE_RE = re.compile(r"^\d+\s*(KB|MB|GB)$", re.IGNORECASE)


class Settings(BaseSettings):
    """Application settings loaded from .env file."""

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
    )

    # === Storage ===
    config_root: Path = Path("~/.releaseflow")

    # === Release ===
    git_remote: str = "origin"
    default_bump: Literal["patch", "minor", "major"] = "patch"
    command_timeout_s: float = 600.0
    # A dirty tree under --no-commit is fatal when true, a warning otherwise.
    strict_clean_tree: bool = True
    # Bumping with an empty unreleased changelog section is fatal when true.
    require_changelog_entries: bool = True

    # === Logging ===
    log_level: Literal["DEBUG", "INFO", "WARNING", "ERROR"] = "INFO"
    log_format: Literal["json", "text"] = "text"
    log_file: Path | None = None
    log_rotation: str = "10MB"
    log_retention: int = 5

    # --- Validators ---

    @field_validator("command_timeout_s")
    @classmethod
    def validate_timeout(cls, v: float) -> float:
        if v <= 0:
            raise ValueError("command_timeout_s must be > 0")
        return v

    @model_validator(mode="after")
    def validate_config_consistency(self) -> Settings:
        """Validate cross-field consistency rules."""
        errors: list[str] = []

        if not self.git_remote.strip():
            errors.append("GIT_REMOTE must not be empty")

        if self.log_file is not None:
            if not _SIZE_RE.match(self.log_rotation.strip()):
                errors.append(
                    f"LOG_ROTATION must look like '10MB', got {self.log_rotation!r}"
                )
            if self.log_retention < 0:
                errors.append("LOG_RETENTION must be >= 0")

        if errors:
            raise ConfigurationError("; ".join(errors))

        return self

    # --- Helpers ---

    @property
    def root_path(self) -> Path:
        return self.config_root.expanduser()

    @property
    def components_dir(self) -> Path:
        """Directory holding one <component_id>.json per component."""
        return self.root_path / "components"

    @property
    def modules_dir(self) -> Path:
        """Directory holding one sub-directory per action provider."""
        return self.root_path / "modules"


def load_settings(**overrides: object) -> Settings:
    """Load settings from .env with optional overrides.

    Args:
        **overrides: Field-level overrides (for testing or CLI flags).

    Returns:
        Validated Settings instance.

    Raises:
        ConfigurationError: If configuration is internally inconsistent.
    """
    return Settings(**overrides)  # type: ignore[arg-type]
