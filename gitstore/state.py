"""Synchronization state of the store."""

from dataclasses import dataclass
from enum import StrEnum
from typing import Any

from mashumaro import DataClassDictMixin
from mashumaro.codecs.yaml import yaml_encode

__all__ = [
    "Mode",
    "StoreState",
]


class Mode(StrEnum):
    """How the store is currently persisting writes."""

    ACTIVE = "ACTIVE"
    """The last synchronization with the remote fully succeeded."""

    DEGRADED = "DEGRADED"
    """Writes succeed locally but the remote is currently failing."""

    LOCAL = "LOCAL"
    """Remote synchronization is disabled for this process."""


@dataclass
class StoreState(DataClassDictMixin):
    """Mode, pending flag and last error of a store."""

    mode: Mode = Mode.LOCAL
    pending: bool = False
    error: str | None = None
    branch: str = "main"

    @property
    def remote_enabled(self) -> bool:
        """Return True if remote tiers take part in reads and writes."""
        return self.mode != Mode.LOCAL

    def snapshot(self) -> dict[str, Any]:
        """Return a copy of the state as a plain dictionary."""
        return self.to_dict()

    def yaml(self) -> str:
        """Return a YAML string representation of the state."""
        return yaml_encode(self, StoreState)  # type: ignore[return-value]

    def __str__(self) -> str:
        if self.error:
            return f"{self.mode} (pending={self.pending}): {self.error}"
        return f"{self.mode} (pending={self.pending})"
