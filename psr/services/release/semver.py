from __future__ import annotations

import re
from dataclasses import dataclass

# Loose form: optional "v", minor/patch optional, build metadata ignored.
_VERSION_RE = re.compile(
    r"^v?(0|[1-9]\d*)(?:\.(0|[1-9]\d*))?(?:\.(0|[1-9]\d*))?"
    r"(?:-([0-9A-Za-z-]+(?:\.[0-9A-Za-z-]+)*))?"
    r"(?:\+[0-9A-Za-z-]+(?:\.[0-9A-Za-z-]+)*)?$"
)


def _prerelease_key(ident: str) -> tuple[int, int, str]:
    # Numeric identifiers sort before alphanumeric ones.
    if ident.isdigit():
        return (0, int(ident), "")
    return (1, 0, ident)


@dataclass(frozen=True, slots=True)
class SemVer:
    major: int
    minor: int
    patch: int
    prerelease: tuple[str, ...] = ()

    def __str__(self) -> str:
        base = f"{self.major}.{self.minor}.{self.patch}"
        if self.prerelease:
            return f"{base}-{'.'.join(self.prerelease)}"
        return base

    def _key(self) -> tuple[int, int, int, int, tuple[tuple[int, int, str], ...]]:
        # A release sorts after all of its prereleases.
        has_release = 1 if not self.prerelease else 0
        pre = tuple(_prerelease_key(p) for p in self.prerelease)
        return (self.major, self.minor, self.patch, has_release, pre)

    def __lt__(self, other: SemVer) -> bool:
        return self._key() < other._key()

    def __le__(self, other: SemVer) -> bool:
        return self._key() <= other._key()

    def __gt__(self, other: SemVer) -> bool:
        return self._key() > other._key()

    def __ge__(self, other: SemVer) -> bool:
        return self._key() >= other._key()


def parse_version(text: str) -> SemVer | None:
    m = _VERSION_RE.match(text.strip())
    if m is None:
        return None
    prerelease = tuple(m.group(4).split(".")) if m.group(4) else ()
    return SemVer(
        major=int(m.group(1)),
        minor=int(m.group(2) or 0),
        patch=int(m.group(3) or 0),
        prerelease=prerelease,
    )


def versions_equal(a: str, b: str) -> bool:
    """Semantic equality: "1.0" == "1.0.0" == "v1.0.0+build.3"."""
    va = parse_version(a)
    vb = parse_version(b)
    if va is None or vb is None:
        return a.strip() == b.strip()
    return va == vb
