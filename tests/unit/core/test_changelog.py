# tests/unit/core/test_changelog.py - v1
"""Tests for core/changelog.py."""

from __future__ import annotations

from datetime import date

from releaseflow.core import changelog

SAMPLE = """# Changelog

## [Unreleased]

- Fix crash on empty config

## [0.9.0] - 2024-05-01

- Initial release
"""


class TestFinalize:
    def test_renames_unreleased_heading(self):
        updated = changelog.finalize(SAMPLE, "1.0.0", today=date(2024, 6, 1))
        assert "## [1.0.0] - 2024-06-01\n" in updated
        assert "Unreleased" not in updated
        assert "## [0.9.0] - 2024-05-01" in updated

    def test_aliases(self):
        for alias in ("## Next", "## upcoming", "## [unreleased]"):
            content = f"{alias}\n\n- x\n"
            assert changelog.finalize(content, "1.0.0", today=date(2024, 1, 1)).startswith(
                "## [1.0.0] - 2024-01-01"
            )

    def test_no_unreleased_section(self):
        assert changelog.finalize("## [0.9.0]\n- x\n", "1.0.0") is None


class TestQueries:
    def test_has_version_section(self):
        assert changelog.has_version_section(SAMPLE, "0.9.0")
        assert not changelog.has_version_section(SAMPLE, "1.0.0")

    def test_extract_latest_notes(self):
        updated = changelog.finalize(SAMPLE, "1.0.0")
        assert changelog.extract_latest_notes(updated) == "- Fix crash on empty config"

    def test_extract_skips_unversioned_sections(self):
        assert changelog.extract_latest_notes(SAMPLE) == "- Initial release"

    def test_extract_empty_section(self):
        assert changelog.extract_latest_notes("## [1.0.0]\n\n## [0.9.0]\n- x\n") is None


class TestUnreleasedStatus:
    def test_has_entries(self):
        assert changelog.unreleased_status(SAMPLE) == "has_entries"

    def test_empty_section(self):
        content = "# Changelog\n\n## Unreleased\n\n## [0.9.0] - 2024-05-01\n\n- Old\n"
        assert changelog.unreleased_status(content) == "empty"

    def test_headers_only(self):
        content = "## Unreleased\n\n### Added\n\n### Fixed\n"
        assert changelog.unreleased_status(content) == "subsection_headers_only"

    def test_entries_under_subsection(self):
        content = "## Next\n\n### Added\n- Export command\n"
        assert changelog.unreleased_status(content) == "has_entries"

    def test_missing_section(self):
        assert changelog.unreleased_status("## [0.9.0] - 2024-05-01\n- Old\n") == "missing"
