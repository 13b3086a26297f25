# src/pipeline/handlers/build.py - v1
"""build: run the component's build command in its working tree."""

from __future__ import annotations

import logging
from typing import Any

from releaseflow.config.steps import BUILD
from releaseflow.core.models import ComponentConfig, ReleasePayload
from releaseflow.core.process import run_command
from releaseflow.pipeline.handlers._shared import command_fields
from releaseflow.pipeline.plugin_kit.base_handler import BaseHandler
from releaseflow.pipeline.plugin_kit.models import HandlerOutput

logger = logging.getLogger(__name__)


class BuildHandler(BaseHandler):
    """Run the component build command."""

    def __init__(self, component: ComponentConfig, timeout: float | None = None) -> None:
        self._component = component
        self._timeout = timeout

    @property
    def step_type(self) -> str:
        return BUILD

    def execute(self, config: dict[str, Any], payload: ReleasePayload) -> HandlerOutput:
        command = config.get("command") or self._component.build_command
        if not command:
            return HandlerOutput(
                output={"skipped": True, "reason": "no build command configured"}
            )

        output = run_command(
            command, cwd=payload.local_path, timeout=self._timeout, shell=True
        )
        return HandlerOutput(
            output={"command": command, "exitCode": output.exit_code},
            **command_fields(output),
        )
