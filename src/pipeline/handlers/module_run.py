# src/pipeline/handlers/module_run.py - v1
"""module.run: run a named provider's entry point with the release payload.

Step config:
    module: provider id (required)
    inputs: [{"id": ..., "value": ...}] forwarded to the provider
    args:   extra command-line arguments
"""

from __future__ import annotations

from typing import Any

from releaseflow.config.steps import MODULE_RUN
from releaseflow.core.errors import StepError
from releaseflow.core.models import PayloadUpdate, ReleasePayload
from releaseflow.modules import runtime
from releaseflow.modules.models import ProviderSnapshot
from releaseflow.pipeline.handlers._shared import command_fields, parse_artifacts
from releaseflow.pipeline.plugin_kit.base_handler import BaseHandler
from releaseflow.pipeline.plugin_kit.models import HandlerOutput

_RESERVED_KEYS = ("module", "inputs", "args")


class ModuleRunHandler(BaseHandler):
    """Run an action provider directly by id."""

    def __init__(self, providers: ProviderSnapshot, timeout: float | None = None) -> None:
        self._providers = providers
        self._timeout = timeout

    @property
    def step_type(self) -> str:
        return MODULE_RUN

    def execute(self, config: dict[str, Any], payload: ReleasePayload) -> HandlerOutput:
        module_id = config.get("module")
        if not isinstance(module_id, str) or not module_id:
            raise StepError("invalid_config", "module.run requires config.module")

        provider = self._providers.get(module_id)
        if provider is None:
            raise StepError(
                "handler_not_found",
                f"Provider '{module_id}' is not available "
                f"(loaded: {', '.join(self._providers) or 'none'})",
            )

        inputs = parse_inputs(config.get("inputs"))
        args = parse_args(config.get("args"))
        step_config = {k: v for k, v in config.items() if k not in _RESERVED_KEYS}

        out, response = runtime.invoke(
            provider,
            MODULE_RUN,
            payload,
            step_config,
            inputs=inputs,
            args=args,
            timeout=self._timeout,
        )

        output: dict[str, Any] = {"module": module_id, "exitCode": out.exit_code}
        output.update(response)
        update = None
        if out.success and "artifacts" in response:
            update = PayloadUpdate(artifacts=parse_artifacts(response["artifacts"]))
        return HandlerOutput(output=output, payload_update=update, **command_fields(out))


def parse_inputs(value: Any) -> dict[str, Any]:
    """[{"id": "artist", "value": "x"}] -> {"artist": "x"}."""
    if value is None:
        return {}
    if not isinstance(value, list):
        raise StepError("invalid_config", "config.inputs must be a list of {id, value} objects")
    inputs: dict[str, Any] = {}
    for item in value:
        if not isinstance(item, dict) or not isinstance(item.get("id"), str):
            raise StepError("invalid_config", f"Invalid input entry: {item!r}")
        inputs[item["id"]] = item.get("value")
    return inputs


def parse_args(value: Any) -> list[str]:
    if value is None:
        return []
    if not isinstance(value, list) or not all(isinstance(a, (str, int, float)) for a in value):
        raise StepError("invalid_config", "config.args must be a list of strings")
    return [str(a) for a in value]
