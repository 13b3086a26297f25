# src/pipeline/plugin_kit/models.py - v1
"""Handler plugin models: HandlerOutput."""

from __future__ import annotations

from typing import Any

from pydantic import BaseModel, Field

from releaseflow.core.models import PayloadUpdate


class HandlerOutput(BaseModel):
    """Standard return type for every step handler.

    A non-zero exit_code marks the step failed; stdout/stderr are kept
    for diagnostics either way.
    """

    output: dict[str, Any] = Field(default_factory=dict)
    stdout: str = ""
    stderr: str = ""
    exit_code: int = 0
    error: str | None = None
    payload_update: PayloadUpdate | None = None
    warnings: list[str] = Field(default_factory=list)

    @property
    def success(self) -> bool:
        return self.exit_code == 0
