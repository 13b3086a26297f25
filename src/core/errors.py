# src/core/errors.py - v1
"""Exception hierarchy shared by planning, dispatch and the CLI.

Fatal errors (PlanError, PreflightError, ComponentNotFoundError) abort
before any step runs. StepError never escapes the dispatcher: it is turned
into a failed or missing StepResult.
"""

from __future__ import annotations

from typing import Literal


class ReleaseFlowError(Exception):
    """Base class for all releaseflow errors."""


PlanErrorCode = Literal[
    "duplicate_id", "unknown_dependency", "cycle_detected", "invalid_step"
]


class PlanError(ReleaseFlowError):
    """Raised when raw steps cannot form a valid plan."""

    def __init__(
        self,
        code: PlanErrorCode,
        message: str,
        step_ids: list[str] | None = None,
    ) -> None:
        super().__init__(message)
        self.code = code
        self.message = message
        self.step_ids = step_ids or []

    def __str__(self) -> str:
        return f"{self.code}: {self.message}"


StepErrorKind = Literal[
    "handler_not_found",
    "handler_exit_nonzero",
    "handler_malformed_output",
    "invalid_config",
]


class StepError(ReleaseFlowError):
    """Raised by handlers for failures that carry process diagnostics."""

    def __init__(
        self,
        kind: StepErrorKind,
        message: str,
        *,
        stdout: str = "",
        stderr: str = "",
        exit_code: int | None = None,
        hints: list[str] | None = None,
    ) -> None:
        super().__init__(message)
        self.kind = kind
        self.message = message
        self.stdout = stdout
        self.stderr = stderr
        self.exit_code = exit_code
        self.hints = hints or []


class PreflightError(ReleaseFlowError):
    """Working tree is not in a releasable state."""

    def __init__(
        self,
        message: str,
        dirty_paths: list[str] | None = None,
        hint: str | None = None,
    ) -> None:
        super().__init__(message)
        self.message = message
        self.dirty_paths = dirty_paths or []
        self._hint = hint

    @property
    def hint(self) -> str:
        if self._hint:
            return self._hint
        if self.dirty_paths:
            return "Commit or stash these changes, or drop --no-commit to include them"
        return ""


class ComponentNotFoundError(ReleaseFlowError):
    """No component record exists for the requested id."""

    def __init__(self, component_id: str, available: list[str] | None = None) -> None:
        self.component_id = component_id
        self.available = available or []
        msg = f"Component '{component_id}' not found"
        if self.available:
            msg += f" (available: {', '.join(self.available)})"
        super().__init__(msg)


class GitError(ReleaseFlowError):
    """A git command exited with a non-zero status."""
