from __future__ import annotations

from collections.abc import Mapping
from dataclasses import dataclass, field
from types import MappingProxyType

from psr.services.release.semver import parse_version, versions_equal


@dataclass(frozen=True, slots=True)
class Compatibility:
    """Platform version range from plugin.json's "compatibility" block."""

    minimum_version: str | None = None
    maximum_version: str | None = None
    blacklist: tuple[str, ...] = ()

    def is_compatible(self, platform_version: str) -> bool:
        version = parse_version(platform_version)
        if version is None:
            return False

        if self.minimum_version is not None:
            minimum = parse_version(self.minimum_version)
            if minimum is not None and version < minimum:
                return False
        if self.maximum_version is not None:
            maximum = parse_version(self.maximum_version)
            if maximum is not None and version > maximum:
                return False
        return not any(versions_equal(platform_version, b) for b in self.blacklist)


def _empty_changelogs() -> Mapping[str, str]:
    return MappingProxyType({})


@dataclass(frozen=True, slots=True)
class PluginDescriptor:
    """The plugin being released, as read from its archive.

    ``changelogs`` maps a language code ("de", "en") to the changelog text of
    ``version`` only.
    """

    name: str
    version: str
    compatibility: Compatibility = field(default_factory=Compatibility)
    changelogs: Mapping[str, str] = field(default_factory=_empty_changelogs)
    label: Mapping[str, str] = field(default_factory=_empty_changelogs)

    def is_compatible(self, platform_version: str) -> bool:
        return self.compatibility.is_compatible(platform_version)

    def changelog_for(self, language: str) -> str | None:
        return self.changelogs.get(language.lower())
