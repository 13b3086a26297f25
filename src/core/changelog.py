# src/core/changelog.py - v1
"""Keep-a-Changelog helpers: finalize the unreleased section, extract notes."""

from __future__ import annotations

import re
from datetime import date

UNRELEASED_ALIASES = ("unreleased", "next", "upcoming")

_HEADING_VERSION_RE = re.compile(r"\[?(\d+\.\d+\.\d+)\]?")


def _is_unreleased_heading(line: str) -> bool:
    if not line.startswith("## "):
        return False
    label = line[3:].strip().strip("[]").lower()
    return label in UNRELEASED_ALIASES


def has_version_section(content: str, version: str) -> bool:
    for line in content.splitlines():
        stripped = line.strip()
        if stripped.startswith("## "):
            match = _HEADING_VERSION_RE.search(stripped)
            if match and match.group(1) == version:
                return True
    return False


def unreleased_status(content: str) -> str:
    """Classify the unreleased section.

    Returns one of:
      - "missing": no unreleased heading at all;
      - "empty": heading present, no content below it;
      - "subsection_headers_only": only '### ' headings, no entries;
      - "has_entries": at least one entry line.
    """
    in_section = False
    found = False
    body: list[str] = []
    for line in content.splitlines():
        stripped = line.strip()
        if stripped.startswith("## "):
            if in_section:
                break
            if _is_unreleased_heading(stripped):
                in_section = found = True
            continue
        if in_section and stripped:
            body.append(stripped)

    if not found:
        return "missing"
    if not body:
        return "empty"
    if all(line.startswith("### ") for line in body):
        return "subsection_headers_only"
    return "has_entries"


def finalize(content: str, version: str, today: date | None = None) -> str | None:
    """Rename the unreleased heading to a dated version heading.

    Returns:
        The new content, or None when there is no unreleased section.
    """
    today = today or date.today()
    lines = content.splitlines(keepends=True)
    for idx, line in enumerate(lines):
        if _is_unreleased_heading(line.strip()):
            newline = "\n" if line.endswith("\n") else ""
            lines[idx] = f"## [{version}] - {today.isoformat()}{newline}"
            return "".join(lines)
    return None


def extract_latest_notes(content: str) -> str | None:
    """Body of the first versioned '## ' section, or None if empty."""
    in_section = False
    buffer: list[str] = []

    for line in content.splitlines():
        stripped = line.strip()
        if stripped.startswith("## "):
            if in_section:
                break
            if _HEADING_VERSION_RE.search(stripped):
                in_section = True
                continue
        if in_section:
            buffer.append(line)

    notes = "\n".join(buffer).strip()
    return notes or None
