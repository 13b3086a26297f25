# tests/unit/pipeline/handlers/test_version_handler.py - v1
"""Tests for pipeline/handlers/version.py - bump, changelog and idempotent re-run."""

from __future__ import annotations

from datetime import date
from pathlib import Path

import pytest

from releaseflow.core.errors import StepError
from releaseflow.core.models import ComponentConfig, ReleasePayload
from releaseflow.pipeline.handlers.version import VersionHandler

CHANGELOG = """# Changelog

## Unreleased

- Added export command

## [1.2.3] - 2024-01-01

- First release
"""


@pytest.fixture
def project(tmp_path: Path) -> Path:
    (tmp_path / "pyproject.toml").write_text(
        '[project]\nname = "demo"\nversion = "1.2.3"\n', encoding="utf-8"
    )
    (tmp_path / "CHANGELOG.md").write_text(CHANGELOG, encoding="utf-8")
    return tmp_path


@pytest.fixture
def handler(project: Path) -> VersionHandler:
    return VersionHandler(
        ComponentConfig(id="demo", local_path=str(project), version_file="pyproject.toml")
    )


@pytest.fixture
def release(project: Path) -> ReleasePayload:
    return ReleasePayload(version="1.2.3", component_id="demo", local_path=str(project))


class TestVersionHandler:
    def test_patch_bump(self, handler, release, project):
        out = handler({"bump": "patch"}, release)
        assert out.success
        assert out.output["from"] == "1.2.3"
        assert out.output["to"] == "1.2.4"
        assert 'version = "1.2.4"' in (project / "pyproject.toml").read_text()
        assert out.payload_update.version == "1.2.4"
        assert out.payload_update.tag == "v1.2.4"

    def test_minor_bump(self, handler, release):
        assert handler({"bump": "minor"}, release).output["to"] == "1.3.0"

    def test_changelog_finalized_and_notes_extracted(self, handler, release, project):
        out = handler({"bump": "patch"}, release)
        content = (project / "CHANGELOG.md").read_text()
        assert f"## [1.2.4] - {date.today().isoformat()}" in content
        assert "## Unreleased" not in content
        assert out.output["changelog"] == "finalized"
        assert out.payload_update.notes == "- Added export command"

    def test_missing_changelog_is_fine(self, handler, release, project):
        (project / "CHANGELOG.md").unlink()
        out = handler({"bump": "patch"}, release)
        assert out.output["changelog"] == "absent"
        assert out.payload_update.notes is None

    def test_rerun_at_target_is_noop(self, handler, release, project):
        handler({"to": "1.2.4"}, release)
        out = handler({"to": "1.2.4"}, release)
        assert out.success
        assert out.output["skipped"] is True
        assert 'version = "1.2.4"' in (project / "pyproject.toml").read_text()

    def test_from_mismatch_is_invalid_config(self, handler, release):
        with pytest.raises(StepError) as exc_info:
            handler({"from": "9.9.9", "to": "10.0.0"}, release)
        assert exc_info.value.kind == "invalid_config"

    def test_no_version_file(self, release, project):
        handler = VersionHandler(ComponentConfig(id="demo", local_path=str(project)))
        with pytest.raises(StepError) as exc_info:
            handler({}, release)
        assert exc_info.value.kind == "invalid_config"

    def test_step_config_file_overrides_component(self, release, project):
        (project / "VERSION").write_text("0.9.0\n", encoding="utf-8")
        handler = VersionHandler(ComponentConfig(id="demo", local_path=str(project)))
        out = handler({"file": "VERSION", "bump": "major"}, release)
        assert out.output["to"] == "1.0.0"
        assert (project / "VERSION").read_text() == "1.0.0\n"

    def test_unparseable_version_raises(self, release, project):
        (project / "VERSION").write_text("latest\n", encoding="utf-8")
        handler = VersionHandler(
            ComponentConfig(id="demo", local_path=str(project), version_file="VERSION")
        )
        with pytest.raises(ValueError):
            handler({}, release)
