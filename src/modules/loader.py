# src/modules/loader.py - v1
"""Discover action provider manifests on disk.

Each provider lives in <modules_dir>/<id>/ with a manifest.json. Broken
manifests are logged and ignored so one bad provider cannot block a release.
"""

from __future__ import annotations

import json
import logging
from pathlib import Path

from pydantic import ValidationError

from releaseflow.modules.models import ProviderManifest, ProviderSnapshot, make_snapshot

logger = logging.getLogger(__name__)

MANIFEST_FILENAME = "manifest.json"


def load_manifest(provider_dir: Path) -> ProviderManifest | None:
    """Load one provider manifest, or None if absent or invalid."""
    path = provider_dir / MANIFEST_FILENAME
    if not path.is_file():
        return None
    try:
        data = json.loads(path.read_text(encoding="utf-8"))
        data.setdefault("id", provider_dir.name)
        manifest = ProviderManifest(**data)
    except (OSError, json.JSONDecodeError, ValidationError, AttributeError) as exc:
        logger.warning("Ignoring invalid provider manifest %s: %s", path, exc)
        return None
    return manifest.model_copy(update={"path": str(provider_dir)})


def discover(modules_dir: Path) -> list[ProviderManifest]:
    """Load every provider under *modules_dir*, sorted by id."""
    if not modules_dir.is_dir():
        return []
    manifests = []
    for child in sorted(modules_dir.iterdir()):
        if child.is_dir():
            manifest = load_manifest(child)
            if manifest is not None:
                manifests.append(manifest)
    return manifests


def snapshot_providers(
    modules_dir: Path, selected: list[str] | None = None
) -> ProviderSnapshot:
    """Capture the providers available for one run.

    Args:
        modules_dir: Root directory of installed providers.
        selected: Provider ids configured for the component; when empty,
            every installed provider is included.

    Returns:
        Read-only mapping provider id -> ProviderEntry.
    """
    manifests = discover(modules_dir)
    if selected:
        wanted = set(selected)
        found = {m.id for m in manifests}
        for missing in sorted(wanted - found):
            logger.warning("Configured provider '%s' is not installed", missing)
        manifests = [m for m in manifests if m.id in wanted]

    snapshot = make_snapshot(manifests)
    logger.info(
        "Provider snapshot: %d providers (%s)",
        len(snapshot),
        ", ".join(snapshot) or "none",
    )
    return snapshot
