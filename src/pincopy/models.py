"""
Pydantic models describing what a replication run sees and does.

Nothing here is persisted. Entries come from a live listing, plans and
reports live for one invocation and are discarded at exit.
"""

from __future__ import annotations

from enum import Enum
from typing import Any, Optional

from pydantic import BaseModel, Field, ValidationError

from .errors import TransportError

TYPE_CODE_FILE = 0
TYPE_CODE_DIRECTORY = 1


class EntryKind(str, Enum):
    """What a listed name points at."""

    FILE = "file"
    DIRECTORY = "directory"
    OTHER = "other"

    @classmethod
    def from_type_code(cls, code: int) -> "EntryKind":
        """Map the store's numeric entry type onto a kind."""
        if code == TYPE_CODE_FILE:
            return cls.FILE
        if code == TYPE_CODE_DIRECTORY:
            return cls.DIRECTORY
        return cls.OTHER

    @property
    def rank(self) -> int:
        return _KIND_RANK[self]


_KIND_RANK = {
    EntryKind.FILE: 0,
    EntryKind.DIRECTORY: 1,
    EntryKind.OTHER: 2,
}


class Entry(BaseModel):
    """One child of a listed folder."""

    name: str
    hash: str
    size: int = 0
    kind: EntryKind = EntryKind.FILE

    @property
    def sort_key(self) -> tuple[int, int]:
        """Files first (smallest first), then folders, then anything else.

        Folder sizes are reported as zero by the store and never compared.
        """
        size = self.size if self.kind == EntryKind.FILE else 0
        return (self.kind.rank, size)

    @classmethod
    def from_api(cls, raw: Any) -> "Entry":
        """Build an entry from a long-form listing record.

        Args:
            raw: Mapping with ``Name``, ``Hash``, ``Size`` and ``Type``.

        Returns:
            Entry: The normalized entry.

        Raises:
            TransportError: If the record is not a usable listing entry.
        """
        if not isinstance(raw, dict):
            raise TransportError(f"Malformed listing entry: {raw!r}")
        if not raw.get("Hash"):
            raise TransportError(
                f"Listing entry {raw.get('Name')!r} carries no hash; "
                "was the listing requested in long form?"
            )
        try:
            return cls(
                name=raw["Name"],
                hash=raw["Hash"],
                size=int(raw.get("Size") or 0),
                kind=EntryKind.from_type_code(int(raw.get("Type") or 0)),
            )
        except (KeyError, TypeError, ValueError, ValidationError) as exc:
            raise TransportError(f"Malformed listing entry {raw!r}: {exc}") from exc


class StatResult(BaseModel):
    """Status of a single path in the mutable namespace."""

    hash: str
    size: int = 0
    cumulative_size: int = 0
    kind: EntryKind = EntryKind.FILE

    @classmethod
    def from_api(cls, raw: Any) -> "StatResult":
        """Build from a ``files/stat`` response body.

        Raises:
            TransportError: If the body has no hash.
        """
        if not isinstance(raw, dict) or not raw.get("Hash"):
            raise TransportError(f"Malformed stat response: {raw!r}")
        kind = {
            "file": EntryKind.FILE,
            "directory": EntryKind.DIRECTORY,
        }.get(str(raw.get("Type", "")).lower(), EntryKind.OTHER)
        try:
            return cls(
                hash=raw["Hash"],
                size=int(raw.get("Size") or 0),
                cumulative_size=int(raw.get("CumulativeSize") or 0),
                kind=kind,
            )
        except (TypeError, ValueError, ValidationError) as exc:
            raise TransportError(f"Malformed stat response {raw!r}: {exc}") from exc


class PinStatus(str, Enum):
    """Whether the store protects a hash from garbage collection."""

    PINNED = "pinned"
    UNPINNED = "unpinned"


class UnpinnedRule(str, Enum):
    """What to do with source entries that are not pinned at the source."""

    BAN = "ban"
    COPY = "copy"
    IGNORE = "ignore"


class ConflictPolicy(str, Enum):
    """What to do when the target already holds different content."""

    WARN = "warn"
    FAIL = "fail"


class Conflict(BaseModel):
    """A target path whose existing hash differs from the source hash."""

    path: str
    existing_hash: str
    expected_hash: str


class ReplicationPlan(BaseModel):
    """Ordered, policy-filtered entries for one run."""

    source_path: str = "/"
    rule: UnpinnedRule = UnpinnedRule.BAN
    entries: list[Entry] = Field(default_factory=list)
    unpinned: list[Entry] = Field(default_factory=list)
    ignored: list[Entry] = Field(default_factory=list)

    def is_pinned(self, entry: Entry) -> bool:
        return all(e.name != entry.name for e in self.unpinned)


class ReplicationReport(BaseModel):
    """What a finished run did."""

    destination: str
    planned: int = 0
    copied: list[str] = Field(default_factory=list)
    unchanged: list[str] = Field(default_factory=list)
    skipped: list[str] = Field(default_factory=list)
    pinned: list[str] = Field(default_factory=list)
    conflicts: list[Conflict] = Field(default_factory=list)
    root_hash: Optional[str] = None
    files_written: int = 0
    bytes_written: int = 0
    directories_created: int = 0

    @property
    def ok(self) -> bool:
        """True when no destination entry was left with stale content."""
        return not self.conflicts
