"""CHANGELOG.md parsing.

Expected layout::

    ## 1.2.0
    ### de
    * Behebt einen Fehler beim Export.
    ### en
    * Fixes an export error.

    ## 1.1.0
    ...

Version headings may be bracketed or carry a date ("## [1.2.0] - 2024-05-01").
Text that appears under a version before any language heading belongs to
DEFAULT_LANGUAGE. Only two-letter codes (optionally with a region) are language
headings; other third-level headings such as "### Fix" are kept as text.
"""

from __future__ import annotations

import re
from collections.abc import Mapping

from psr.core.result import Err, Ok, Result
from psr.services.release.semver import versions_equal
from psr.services.release_errors import MissingChangelogForVersion

DEFAULT_LANGUAGE = "en"

_VERSION_HEADING_RE = re.compile(r"^##\s+\[?v?([0-9][^\]\s]*)\]?(?:\s.*)?$")
_LANGUAGE_HEADING_RE = re.compile(r"^###\s+([A-Za-z]{2})(?:[_-][A-Za-z]{2})?\s*$")

type Changelog = dict[str, dict[str, str]]


def parse_changelog(text: str) -> Changelog:
    """Split a changelog document into {version: {language: text}}."""
    sections: dict[str, dict[str, list[str]]] = {}
    version: str | None = None
    language = DEFAULT_LANGUAGE

    for line in text.splitlines():
        stripped = line.strip()
        if m := _VERSION_HEADING_RE.match(stripped):
            version = m.group(1)
            language = DEFAULT_LANGUAGE
            sections.setdefault(version, {})
            continue
        if stripped.startswith("# ") or stripped.startswith("## "):
            # Title or a non-version second-level heading ends the section.
            version = None
            continue
        if version is None:
            continue
        if m := _LANGUAGE_HEADING_RE.match(stripped):
            language = m.group(1).lower()
            sections[version].setdefault(language, [])
            continue
        sections[version].setdefault(language, []).append(line.rstrip())

    changelog: Changelog = {}
    for ver, languages in sections.items():
        texts = {lang: "\n".join(lines).strip() for lang, lines in languages.items()}
        changelog[ver] = {lang: body for lang, body in texts.items() if body}
    return changelog


def changelog_for_version(
    changelog: Mapping[str, Mapping[str, str]], version: str
) -> Result[dict[str, str], MissingChangelogForVersion]:
    """Language→text mapping for ``version``; versions match semantically."""
    for ver, languages in changelog.items():
        if versions_equal(ver, version):
            return Ok(dict(languages))
    return Err(MissingChangelogForVersion(version=version))
