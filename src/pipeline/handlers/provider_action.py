# src/pipeline/handlers/provider_action.py - v1
"""Handler for step types served by external providers ('release.<type>').

Every provider in the snapshot that declares the action is invoked in
provider-id order. The step fails at the first provider that fails.
"""

from __future__ import annotations

import logging
from typing import Any

from releaseflow.core.models import PayloadUpdate, ReleaseArtifact, ReleasePayload
from releaseflow.modules import runtime
from releaseflow.modules.models import ProviderEntry
from releaseflow.pipeline.handlers._shared import command_fields, parse_artifacts
from releaseflow.pipeline.plugin_kit.base_handler import BaseHandler
from releaseflow.pipeline.plugin_kit.models import HandlerOutput

logger = logging.getLogger(__name__)


class ProviderActionHandler(BaseHandler):
    """Invoke a provider action for a non built-in step type."""

    def __init__(
        self,
        step_type: str,
        action_id: str,
        providers: list[ProviderEntry],
        timeout: float | None = None,
    ) -> None:
        self._step_type = step_type
        self._action_id = action_id
        self._providers = list(providers)
        self._timeout = timeout

    @property
    def step_type(self) -> str:
        return self._step_type

    @property
    def action_id(self) -> str:
        return self._action_id

    def execute(self, config: dict[str, Any], payload: ReleasePayload) -> HandlerOutput:
        results: list[dict[str, Any]] = []
        artifacts: list[ReleaseArtifact] = []
        stdout: list[str] = []
        stderr: list[str] = []

        for provider in self._providers:
            out, response = runtime.invoke(
                provider, self._action_id, payload, config, timeout=self._timeout
            )
            results.append({"module": provider.id, "exitCode": out.exit_code, "response": response})
            stdout.append(out.stdout)
            stderr.append(out.stderr)
            if not out.success:
                logger.error("Provider %s failed %s (exit %d)", provider.id, self._action_id, out.exit_code)
                fields = command_fields(out)
                fields["error"] = f"Provider '{provider.id}': {fields.get('error', 'failed')}"
                return HandlerOutput(
                    output={"action": self._action_id, "results": results}, **fields
                )
            artifacts.extend(parse_artifacts(response.get("artifacts")))

        return HandlerOutput(
            output={"action": self._action_id, "results": results},
            stdout="".join(stdout),
            stderr="".join(stderr),
            payload_update=PayloadUpdate(artifacts=artifacts) if artifacts else None,
        )
