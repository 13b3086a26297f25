# src/pipeline/handlers/_shared.py - v1
"""Helpers shared by built-in handlers."""

from __future__ import annotations

from typing import Any

from releaseflow.core.errors import StepError
from releaseflow.core.models import CommandOutput, ReleaseArtifact, ReleasePayload


def render(template: str, payload: ReleasePayload) -> str:
    """Fill {version} and {tag} placeholders from the payload."""
    version = payload.version or "unknown"
    tag = payload.tag or f"v{version}"
    return template.replace("{version}", version).replace("{tag}", tag)


def command_fields(output: CommandOutput) -> dict[str, Any]:
    """HandlerOutput keyword arguments for a finished command."""
    fields: dict[str, Any] = {
        "stdout": output.stdout,
        "stderr": output.stderr,
        "exit_code": output.exit_code,
    }
    if output.timed_out:
        fields["error"] = f"Command timed out: {output.command}"
    elif not output.success:
        fields["error"] = f"Command failed with exit code {output.exit_code}: {output.command}"
    return fields


def parse_artifacts(value: Any) -> list[ReleaseArtifact]:
    """Accept a path string, an artifact object, or a list of either.

    Raises:
        StepError: handler_malformed_output for entries without a path.
    """
    if value is None:
        return []
    items = value if isinstance(value, list) else [value]
    artifacts: list[ReleaseArtifact] = []
    for item in items:
        if isinstance(item, str):
            artifacts.append(ReleaseArtifact(path=item))
        elif isinstance(item, dict) and isinstance(item.get("path"), str):
            artifacts.append(
                ReleaseArtifact(
                    path=item["path"],
                    type=item.get("type"),
                    platform=item.get("platform"),
                )
            )
        else:
            raise StepError(
                "handler_malformed_output",
                f"Artifact entry is invalid (expected path string or object with 'path'): {item!r}",
            )
    return artifacts
