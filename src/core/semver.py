# src/core/semver.py - v1
"""Version parsing, bumping and in-place rewriting of version files."""

from __future__ import annotations

import re
from pathlib import Path

SEMVER_RE = re.compile(r"^(\d+)\.(\d+)\.(\d+)$")


def default_pattern_for_file(filename: str) -> str:
    """Regex (one capture group) locating the version in a file of this kind."""
    if filename.endswith(".toml"):
        return r'version\s*=\s*"(\d+\.\d+\.\d+)"'
    if filename.endswith(".json"):
        return r'"version"\s*:\s*"(\d+\.\d+\.\d+)"'
    if filename.endswith(".php"):
        return r"Version:\s*(\d+\.\d+\.\d+)"
    if filename.endswith(".py"):
        return r'__version__\s*=\s*["\'](\d+\.\d+\.\d+)["\']'
    return r"(\d+\.\d+\.\d+)"


def parse_version(content: str, pattern: str) -> str | None:
    """Return the first capture of *pattern* in *content*, or None."""
    match = re.search(pattern, content, re.MULTILINE)
    if match is None or not match.groups():
        return None
    return match.group(1)


def increment_version(version: str, bump_type: str) -> str | None:
    """Bump a MAJOR.MINOR.PATCH version; None for invalid input."""
    match = SEMVER_RE.match(version.strip())
    if match is None:
        return None
    major, minor, patch = (int(part) for part in match.groups())
    if bump_type == "patch":
        return f"{major}.{minor}.{patch + 1}"
    if bump_type == "minor":
        return f"{major}.{minor + 1}.0"
    if bump_type == "major":
        return f"{major + 1}.0.0"
    return None


def read_version_file(path: Path, pattern: str | None = None) -> str:
    """Read the current version from *path*.

    Raises:
        OSError: If the file cannot be read.
        ValueError: If no version matches the pattern.
    """
    pattern = pattern or default_pattern_for_file(path.name)
    content = path.read_text(encoding="utf-8")
    version = parse_version(content, pattern)
    if version is None:
        raise ValueError(f"No version matching {pattern!r} in {path}")
    return version


def write_version_file(
    path: Path, new_version: str, pattern: str | None = None
) -> str:
    """Replace the first version occurrence in *path*; return the old version."""
    pattern = pattern or default_pattern_for_file(path.name)
    content = path.read_text(encoding="utf-8")
    match = re.search(pattern, content, re.MULTILINE)
    if match is None or not match.groups():
        raise ValueError(f"No version matching {pattern!r} in {path}")
    start, end = match.span(1)
    path.write_text(content[:start] + new_version + content[end:], encoding="utf-8")
    return match.group(1)
