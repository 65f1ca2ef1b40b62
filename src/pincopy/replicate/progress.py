"""
Progress events -- how replication components narrate what they do.

Components never print. They hand ProgressEvent models to whatever
ProgressReporter they were given; the CLI renders them on a rich console,
tests record them, and LoggingReporter turns them into log lines.
"""

from __future__ import annotations

import logging
from enum import Enum
from typing import Optional

from pydantic import BaseModel

from ..models import Entry, EntryKind

logger = logging.getLogger("pincopy.progress")

KB = 1024
MB = 1024 * 1024


class EventKind(str, Enum):
    """Kinds of progress events."""

    LISTED = "listed"
    LISTED_ENTRY = "listed_entry"
    INSPECTING = "inspecting"
    UNPINNED = "unpinned"
    POLICY = "policy"
    IGNORED = "ignored"
    ROOT_CREATED = "root_created"
    COPYING = "copying"
    PINNED = "pinned"
    UNCHANGED = "unchanged"
    COPIED = "copied"
    CONFLICT = "conflict"
    SKIPPED = "skipped"
    ROOT_PINNED = "root_pinned"
    DIRECTORY = "directory"
    FILE_STARTED = "file_started"
    BYTES = "bytes"
    FILE_DONE = "file_done"


class ProgressEvent(BaseModel):
    """One structured progress notification."""

    kind: EventKind
    message: str
    path: str = ""
    entry: Optional[Entry] = None
    hash: Optional[str] = None
    index: Optional[int] = None
    total: Optional[int] = None
    bytes: Optional[int] = None


class ProgressReporter:
    """Receives progress events. The base class discards them."""

    def emit(self, event: ProgressEvent) -> None:
        pass

    def report(self, kind: EventKind, message: str, **fields) -> None:
        """Build and emit an event in one call."""
        self.emit(ProgressEvent(kind=kind, message=message, **fields))


class LoggingReporter(ProgressReporter):
    """Writes every event message to the ``pincopy.progress`` logger."""

    def __init__(self, level: int = logging.INFO) -> None:
        self.level = level

    def emit(self, event: ProgressEvent) -> None:
        level = logging.WARNING if event.kind == EventKind.CONFLICT else self.level
        logger.log(level, "%s", event.message)


def format_size(num_bytes: int) -> str:
    """Render a byte count as whole kb below one MiB, whole mb above."""
    if num_bytes < MB:
        return f"{num_bytes // KB} kb"
    return f"{num_bytes // MB} mb"


def describe_entry(entry: Entry) -> str:
    """Short size label used when announcing a copy."""
    if entry.kind == EntryKind.FILE:
        return f"{entry.size // MB} mb"
    if entry.kind == EntryKind.DIRECTORY:
        return "folder"
    return "other"
