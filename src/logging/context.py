# src/logging/context.py - v1
"""Contextual logging support: attach component_id, run_id and step to log records."""

from __future__ import annotations

import contextvars
from dataclasses import dataclass
from typing import Any

# Set once per release run, then per step by the scheduler.
_component_id: contextvars.ContextVar[str | None] = contextvars.ContextVar(
    "component_id", default=None
)
_run_id: contextvars.ContextVar[str | None] = contextvars.ContextVar(
    "run_id", default=None
)
_step_id: contextvars.ContextVar[str | None] = contextvars.ContextVar(
    "step_id", default=None
)
_step_type: contextvars.ContextVar[str | None] = contextvars.ContextVar(
    "step_type", default=None
)


@dataclass
class LogContext:
    """Immutable snapshot of current logging context."""

    component_id: str | None = None
    run_id: str | None = None
    step_id: str | None = None
    step_type: str | None = None

    def as_dict(self) -> dict[str, Any]:
        """Return non-None fields as dict for JSON log injection."""
        return {k: v for k, v in self.__dict__.items() if v is not None}


def get_context() -> LogContext:
    """Snapshot current context variables."""
    return LogContext(
        component_id=_component_id.get(),
        run_id=_run_id.get(),
        step_id=_step_id.get(),
        step_type=_step_type.get(),
    )


def set_run_context(component_id: str, run_id: str) -> None:
    """Set run-level context (called once per release run)."""
    _component_id.set(component_id)
    _run_id.set(run_id)


def set_step_context(step_id: str | None, step_type: str | None = None) -> None:
    """Set step-level context; pass None to leave step scope."""
    _step_id.set(step_id)
    _step_type.set(step_type)


def clear_context() -> None:
    """Reset all context variables."""
    _component_id.set(None)
    _run_id.set(None)
    _step_id.set(None)
    _step_type.set(None)
