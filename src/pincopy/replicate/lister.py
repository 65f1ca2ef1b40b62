"""Listing and ordering of source folder entries."""

from __future__ import annotations

import logging
from typing import Iterable, Optional

from ..models import Entry
from ..store import ContentStore
from .progress import EventKind, ProgressReporter

logger = logging.getLogger("pincopy.replicate.lister")


def order_entries(entries: Iterable[Entry]) -> list[Entry]:
    """Sort entries into processing order.

    Files come first, smallest first, then folders, then anything else,
    so quick copies happen (and fail) before the expensive ones. The sort
    is stable, so equal keys keep the listing's name order.
    """
    return sorted(entries, key=lambda e: e.sort_key)


class EntryLister:
    """Lists the direct children of a source path.

    Args:
        store: Store to list from.
        reporter: Receives one event for the listing and one per entry.
    """

    def __init__(
        self,
        store: ContentStore,
        reporter: Optional[ProgressReporter] = None,
    ) -> None:
        self.store = store
        self.reporter = reporter or ProgressReporter()

    def list(self, path: str) -> list[Entry]:
        """Return the current children of *path*, unordered."""
        entries = self.store.list_entries(path)
        logger.debug("Listed %d entries under %s", len(entries), path)

        self.reporter.report(
            EventKind.LISTED,
            f"Found {len(entries)} files:",
            path=path,
            total=len(entries),
        )
        for entry in entries:
            self.reporter.report(
                EventKind.LISTED_ENTRY,
                f"  name: {entry.name}, size: {entry.size}, "
                f"type: {entry.kind.value}, hash: {entry.hash}",
                path=path,
                entry=entry,
            )
        return entries

    def list_ordered(self, path: str) -> list[Entry]:
        """List *path* and return its children in processing order."""
        return order_entries(self.list(path))
