# src/storage/components.py - v1
"""Read component records stored as <components_dir>/<id>.json.

The orchestrator never writes these records.
"""

from __future__ import annotations

import json
import logging
from pathlib import Path

from pydantic import ValidationError

from releaseflow.config.settings import ConfigurationError
from releaseflow.core.errors import ComponentNotFoundError
from releaseflow.core.models import ComponentConfig

logger = logging.getLogger(__name__)


def component_path(components_dir: Path, component_id: str) -> Path:
    return components_dir / f"{component_id}.json"


def list_components(components_dir: Path) -> list[str]:
    """Return sorted ids of all stored components."""
    if not components_dir.is_dir():
        return []
    return sorted(p.stem for p in components_dir.glob("*.json"))


def load_component(components_dir: Path, component_id: str) -> ComponentConfig:
    """Load and validate a component record.

    Args:
        components_dir: Directory holding component JSON files.
        component_id: Record key (file stem).

    Returns:
        Validated ComponentConfig. The id defaults to the file stem.

    Raises:
        ComponentNotFoundError: If no record exists.
        ConfigurationError: If the record is not valid JSON or fails validation.
    """
    path = component_path(components_dir, component_id)
    if not path.is_file():
        raise ComponentNotFoundError(component_id, list_components(components_dir))

    try:
        data = json.loads(path.read_text(encoding="utf-8"))
    except json.JSONDecodeError as exc:
        raise ConfigurationError(f"Component record {path} is not valid JSON: {exc}") from exc

    if not isinstance(data, dict):
        raise ConfigurationError(f"Component record {path} must be a JSON object")
    data.setdefault("id", component_id)

    try:
        component = ComponentConfig(**data)
    except ValidationError as exc:
        raise ConfigurationError(f"Invalid component record {path}: {exc}") from exc

    logger.debug("Loaded component %s from %s", component.id, path)
    return component
