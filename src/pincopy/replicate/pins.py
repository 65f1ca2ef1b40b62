"""Source-side pin inspection."""

from __future__ import annotations

import logging
from typing import Iterable, Optional

from ..models import Entry, PinStatus
from ..store import ContentStore
from .progress import EventKind, ProgressReporter

logger = logging.getLogger("pincopy.replicate.pins")


class PinInspector:
    """Finds source entries the source store no longer protects.

    A positive answer is quick. A negative one can take the store several
    seconds, so inspecting a long listing is not uniformly fast.

    Args:
        store: The source store.
        reporter: Receives an event per inspected and per unpinned entry.
    """

    def __init__(
        self,
        store: ContentStore,
        reporter: Optional[ProgressReporter] = None,
    ) -> None:
        self.store = store
        self.reporter = reporter or ProgressReporter()

    def is_protected(self, hash_: str) -> bool:
        """True when *hash_* is pinned on the source.

        Raises:
            TransportError: For any failure other than "not pinned".
        """
        return self.store.pin_status(hash_) == PinStatus.PINNED

    def find_unprotected(self, entries: Iterable[Entry]) -> list[Entry]:
        """Return the entries that are not pinned, in the given order."""
        unpinned = []
        for entry in entries:
            self.reporter.report(
                EventKind.INSPECTING,
                f"  ..inspecting {entry.name}",
                entry=entry,
                hash=entry.hash,
            )
            if not self.is_protected(entry.hash):
                logger.info("Source entry %s (%s) is not pinned", entry.name, entry.hash)
                self.reporter.report(
                    EventKind.UNPINNED,
                    "  ..not pinned.",
                    entry=entry,
                    hash=entry.hash,
                )
                unpinned.append(entry)
        return unpinned
