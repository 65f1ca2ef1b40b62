"""
Where a run writes to: a folder on a second store, or a local directory.

Exactly one destination is chosen per run and it never changes while the
run is in progress, hence the frozen dataclasses.
"""

from __future__ import annotations

from dataclasses import dataclass
from pathlib import Path
from typing import Union

from ..errors import ConfigurationError
from ..store import ContentStore


@dataclass(frozen=True)
class RemoteStore:
    """A folder in the mutable namespace of a target store."""

    store: ContentStore
    root: str

    def validate(self) -> None:
        """Reject roots that are not absolute namespace paths."""
        if not self.root.startswith("/"):
            raise ConfigurationError(
                f"DST_FOLDER must start with / but was: {self.root}"
            )

    def describe(self) -> str:
        return f"{self.store.name}:{self.root}"


@dataclass(frozen=True)
class LocalPath:
    """A pre-existing directory on the local filesystem."""

    root: Path

    def validate(self) -> None:
        """The mirror never creates its own root; it must already exist."""
        if not self.root.exists():
            raise ConfigurationError(f"Local destination does not exist: {self.root}")
        if not self.root.is_dir():
            raise ConfigurationError(f"Local destination is not a directory: {self.root}")

    def describe(self) -> str:
        return str(self.root)


Destination = Union[RemoteStore, LocalPath]
