"""Release flow: version conflicts, binary metadata, review and publication.

- semver: loose semantic version parsing and equality
- conflict: decide between a fresh upload and replacing an existing binary
- metadata: changelogs and compatibility for the binary being saved
- review: interpret the store's review outcome
- orchestrator: sequence the store calls for one release
- events: optional webhook notification after publication
"""

from __future__ import annotations
