# tests/unit/modules/test_loader.py - v1
"""Tests for modules/loader.py - manifest discovery and provider snapshots."""

from __future__ import annotations

import json

import pytest

from releaseflow.modules.loader import discover, load_manifest, snapshot_providers


def _install(root, provider_id, manifest):
    path = root / provider_id
    path.mkdir(parents=True)
    (path / "manifest.json").write_text(json.dumps(manifest), encoding="utf-8")
    return path


class TestLoadManifest:
    def test_valid_manifest(self, tmp_path):
        path = _install(tmp_path, "gh", {
            "id": "gh", "actions": [{"id": "release.publish"}], "runtime": {"entrypoint": "./run.sh"},
        })
        manifest = load_manifest(path)
        assert manifest.id == "gh"
        assert manifest.path == str(path)
        assert manifest.runtime.entrypoint == "./run.sh"

    def test_id_defaults_to_dir_name(self, tmp_path):
        path = _install(tmp_path, "store", {"actions": []})
        assert load_manifest(path).id == "store"

    def test_absent_manifest(self, tmp_path):
        assert load_manifest(tmp_path) is None

    def test_invalid_manifest_ignored(self, tmp_path, caplog):
        path = tmp_path / "broken"
        path.mkdir()
        (path / "manifest.json").write_text("[1, 2", encoding="utf-8")
        with caplog.at_level("WARNING"):
            assert load_manifest(path) is None
        assert "Ignoring invalid provider manifest" in caplog.text

    def test_non_object_manifest_ignored(self, tmp_path):
        path = tmp_path / "listy"
        path.mkdir()
        (path / "manifest.json").write_text("[]", encoding="utf-8")
        assert load_manifest(path) is None


class TestSnapshot:
    @pytest.fixture
    def modules_dir(self, tmp_path):
        root = tmp_path / "modules"
        _install(root, "zeta", {"actions": [{"id": "release.publish"}], "runtime": {"entrypoint": "z"}})
        _install(root, "alpha", {"actions": [{"id": "release.notify"}]})
        (root / "stray.txt").write_text("ignored", encoding="utf-8")
        return root

    def test_discover_sorted(self, modules_dir):
        assert [m.id for m in discover(modules_dir)] == ["alpha", "zeta"]

    def test_discover_missing_dir(self, tmp_path):
        assert discover(tmp_path / "none") == []

    def test_snapshot_all(self, modules_dir):
        snapshot = snapshot_providers(modules_dir)
        assert list(snapshot) == ["alpha", "zeta"]
        assert snapshot["zeta"].supports("release.publish")
        assert snapshot["alpha"].entrypoint is None

    def test_snapshot_selected(self, modules_dir, caplog):
        with caplog.at_level("WARNING"):
            snapshot = snapshot_providers(modules_dir, ["zeta", "ghost"])
        assert list(snapshot) == ["zeta"]
        assert "ghost" in caplog.text

    def test_snapshot_is_read_only(self, modules_dir):
        snapshot = snapshot_providers(modules_dir)
        with pytest.raises(TypeError):
            snapshot["new"] = snapshot["alpha"]  # type: ignore[index]
