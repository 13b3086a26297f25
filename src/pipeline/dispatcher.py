# src/pipeline/dispatcher.py - v1
"""Dispatcher: resolve a step's handler, call it, capture the outcome.

Handler failures never escape: they become failed or missing StepResults
carrying stdout, stderr and exit code for diagnostics. KeyboardInterrupt
is the only exception that propagates.
"""

from __future__ import annotations

import copy
import logging
import time
from dataclasses import dataclass, field
from typing import Any

from pydantic import ValidationError

from releaseflow.core.errors import StepError
from releaseflow.core.models import PayloadUpdate, ReleasePayload, Step, StepResult, StepStatus
from releaseflow.pipeline.plugin_kit.models import HandlerOutput
from releaseflow.pipeline.registry import ActionRegistry

logger = logging.getLogger(__name__)


@dataclass
class DispatchOutcome:
    """A step result plus the payload changes the handler proposed."""

    result: StepResult
    payload_update: PayloadUpdate | None = None
    warnings: list[str] = field(default_factory=list)


class Dispatcher:
    """Invoke handlers from an ActionRegistry."""

    def __init__(self, registry: ActionRegistry) -> None:
        self._registry = registry

    @property
    def registry(self) -> ActionRegistry:
        return self._registry

    def dispatch(self, step: Step, payload: ReleasePayload) -> DispatchOutcome:
        """Run one step synchronously.

        Args:
            step: Step to execute.
            payload: Frozen payload snapshot.

        Returns:
            DispatchOutcome with status succeeded, failed or missing.
        """
        handler = self._registry.resolve(step.type)
        if handler is None:
            reason = self._registry.missing_reason(step.type)
            logger.warning("Step '%s': %s", step.id, reason)
            return DispatchOutcome(
                result=_result(step, StepStatus.MISSING, error=reason, error_kind="handler_not_found")
            )

        start_ns = time.monotonic_ns()
        try:
            raw = handler(copy.deepcopy(step.config), payload)
            output = _coerce_output(raw)
        except StepError as exc:
            status = StepStatus.MISSING if exc.kind == "handler_not_found" else StepStatus.FAILED
            logger.error("Step '%s' %s: %s", step.id, status.value, exc.message)
            return DispatchOutcome(
                result=_result(
                    step,
                    status,
                    output={"hints": exc.hints} if exc.hints else {},
                    stdout=exc.stdout,
                    stderr=exc.stderr,
                    exit_code=exc.exit_code,
                    error=exc.message,
                    error_kind=exc.kind,
                    duration_ms=_elapsed_ms(start_ns),
                )
            )
        except Exception as exc:
            logger.exception("Step '%s' handler raised", step.id)
            return DispatchOutcome(
                result=_result(
                    step,
                    StepStatus.FAILED,
                    error=f"{type(exc).__name__}: {exc}",
                    error_kind="handler_error",
                    duration_ms=_elapsed_ms(start_ns),
                )
            )

        duration_ms = _elapsed_ms(start_ns)
        if not output.success:
            error = output.error or f"Handler exited with code {output.exit_code}"
            logger.error("Step '%s' failed: %s", step.id, error)
            return DispatchOutcome(
                result=_result(
                    step,
                    StepStatus.FAILED,
                    output=output.output,
                    stdout=output.stdout,
                    stderr=output.stderr,
                    exit_code=output.exit_code,
                    error=error,
                    error_kind="handler_exit_nonzero",
                    duration_ms=duration_ms,
                ),
                warnings=list(output.warnings),
            )

        logger.info("Step '%s' succeeded in %dms", step.id, duration_ms)
        return DispatchOutcome(
            result=_result(
                step,
                StepStatus.SUCCEEDED,
                output=output.output,
                stdout=output.stdout,
                stderr=output.stderr,
                exit_code=output.exit_code,
                duration_ms=duration_ms,
            ),
            payload_update=output.payload_update,
            warnings=list(output.warnings),
        )


def _coerce_output(raw: Any) -> HandlerOutput:
    """Accept a HandlerOutput or a dict shaped like one."""
    if isinstance(raw, HandlerOutput):
        return raw
    if isinstance(raw, dict):
        try:
            return HandlerOutput.model_validate(raw)
        except ValidationError as exc:
            raise StepError(
                "handler_malformed_output",
                f"Handler returned an invalid result: {exc.error_count()} validation error(s): "
                + "; ".join(f"{'.'.join(map(str, e['loc']))}: {e['msg']}" for e in exc.errors()),
            ) from exc
    raise StepError(
        "handler_malformed_output",
        f"Handler returned {type(raw).__name__}, expected HandlerOutput or dict",
    )


def _result(step: Step, status: StepStatus, **fields: Any) -> StepResult:
    clean = {k: v for k, v in fields.items() if v is not None}
    return StepResult(step_id=step.id, step_type=step.type, status=status, **clean)


def _elapsed_ms(start_ns: int) -> int:
    return (time.monotonic_ns() - start_ns) // 1_000_000
