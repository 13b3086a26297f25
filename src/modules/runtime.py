# src/modules/runtime.py - v1
"""Invoke an action provider's entry point.

Invocation protocol:
  - the entry point runs with the provider directory as cwd, with any
    step args appended to its command line;
  - stdin receives one JSON document:
    {"action": ..., "release": {payload}, "config": {...}, "inputs": {...}}
  - each input is also exported as RELEASEFLOW_INPUT_<ID>;
  - stdout must be empty or a single JSON object.
"""

from __future__ import annotations

import json
import logging
import re
import shlex
from typing import Any

from releaseflow.core.errors import StepError
from releaseflow.core.models import CommandOutput, ReleasePayload
from releaseflow.core.process import run_command
from releaseflow.modules.models import ProviderEntry

logger = logging.getLogger(__name__)


def build_request(
    action_id: str,
    payload: ReleasePayload,
    config: dict[str, Any],
    inputs: dict[str, Any] | None = None,
) -> dict[str, Any]:
    return {
        "action": action_id,
        "release": payload.model_dump(mode="json"),
        "config": config,
        "inputs": inputs or {},
    }


def _input_env(inputs: dict[str, Any]) -> dict[str, str]:
    env = {}
    for key, value in inputs.items():
        name = re.sub(r"[^A-Z0-9]+", "_", key.upper()).strip("_")
        env[f"RELEASEFLOW_INPUT_{name}"] = value if isinstance(value, str) else json.dumps(value)
    return env


def parse_response(stdout: str) -> dict[str, Any]:
    """Parse provider stdout into a dict.

    Raises:
        StepError: handler_malformed_output when stdout is not a JSON object.
    """
    text = stdout.strip()
    if not text:
        return {}
    try:
        data = json.loads(text)
    except json.JSONDecodeError as exc:
        raise StepError(
            "handler_malformed_output",
            f"Provider output is not valid JSON: {exc.msg} at line {exc.lineno} column {exc.colno}",
            stdout=stdout,
        ) from exc
    if not isinstance(data, dict):
        raise StepError(
            "handler_malformed_output",
            f"Provider output must be a JSON object, got {type(data).__name__}",
            stdout=stdout,
        )
    return data


def invoke(
    provider: ProviderEntry,
    action_id: str,
    payload: ReleasePayload,
    config: dict[str, Any],
    *,
    inputs: dict[str, Any] | None = None,
    args: list[str] | None = None,
    timeout: float | None = None,
) -> tuple[CommandOutput, dict[str, Any]]:
    """Run one provider action.

    Returns:
        The raw command output and the parsed response object. The response
        is only parsed when the command exits zero.

    Raises:
        StepError: invalid_config when the provider has no entry point,
            handler_malformed_output when stdout cannot be parsed.
    """
    if not provider.entrypoint:
        raise StepError(
            "invalid_config",
            f"Provider '{provider.id}' declares no runtime entrypoint",
        )

    command = shlex.split(provider.entrypoint) + list(args or [])
    request = build_request(action_id, payload, config, inputs)
    env = _input_env(inputs or {})
    env["RELEASEFLOW_ACTION"] = action_id

    logger.info("Invoking provider %s for %s", provider.id, action_id)
    output = run_command(
        command,
        cwd=provider.path or None,
        input_text=json.dumps(request),
        env=env,
        timeout=timeout,
    )
    if not output.success:
        return output, {}

    try:
        response = parse_response(output.stdout)
    except StepError as exc:
        exc.stderr = output.stderr
        exc.exit_code = output.exit_code
        raise
    return output, response
