"""Resolution of tracked keys to the filesystem tiers of the store.

A tracked key is a relative path such as `config.json` or `configs`. Each key
has three locations:

  - the *working* copy relative to the caller's current directory
  - the *local* mirror at the top of the store's base directory
  - the *remote* copy inside the clone of the remote repository

Absolute keys resolve to themselves in every tier.
"""

from dataclasses import dataclass
from enum import IntEnum
import logging
from pathlib import Path

from aiofiles.ospath import exists

__all__ = [
    "PathResolver",
    "SourceTier",
    "Source",
    "select_source",
]

_LOGGER = logging.getLogger(__name__)

EXAMPLE_SUFFIX = ".example"


class SourceTier(IntEnum):
    """Tier a key is materialized from, higher values take precedence."""

    EXAMPLE = 1
    LOCAL = 2
    REMOTE = 3


@dataclass(frozen=True)
class Source:
    """Location that is authoritative for a key."""

    tier: SourceTier
    path: Path


@dataclass(frozen=True)
class PathResolver:
    """Maps a key to its working, local mirror and remote clone paths."""

    base_dir: Path
    clone_dir: Path
    cwd: Path

    def working(self, key: str) -> Path:
        return self._resolve(self.cwd, key)

    def local(self, key: str) -> Path:
        return self._resolve(self.base_dir, key)

    def remote(self, key: str) -> Path:
        return self._resolve(self.clone_dir, key)

    def example(self, key: str) -> Path:
        """Return the bundled default shipped next to the working copy."""
        working = self.working(key)
        return working.with_name(working.name + EXAMPLE_SUFFIX)

    def candidates(self, key: str, prefer_local: bool = False) -> list[Source]:
        """Return every possible source for a key in precedence order.

        With `prefer_local` the local mirror is tried before the clone.
        """
        sources = [
            Source(SourceTier.REMOTE, self.remote(key)),
            Source(SourceTier.LOCAL, self.local(key)),
            Source(SourceTier.EXAMPLE, self.example(key)),
        ]
        ordered = sorted(sources, key=lambda source: source.tier, reverse=True)
        if prefer_local:
            ordered[0], ordered[1] = ordered[1], ordered[0]
        return ordered

    @staticmethod
    def _resolve(root: Path, key: str) -> Path:
        path = Path(key)
        if path.is_absolute():
            return path
        return root / path


async def select_source(
    resolver: PathResolver, key: str, remote_enabled: bool, prefer_local: bool = False
) -> Source | None:
    """Pick the tier a read of `key` should be served from.

    The remote clone wins when remote synchronization is enabled, then the
    local mirror, then a `<key>.example` default next to the working copy.
    `prefer_local` is used while the clone holds an unpushed snapshot that a
    pull could not reconcile, so the mirror is the newest copy.
    """
    for source in resolver.candidates(key, prefer_local):
        if source.tier == SourceTier.REMOTE and not remote_enabled:
            continue
        if await exists(source.path):
            _LOGGER.debug("Selected %s source for %s: %s", source.tier.name, key, source.path)
            return source
    return None
