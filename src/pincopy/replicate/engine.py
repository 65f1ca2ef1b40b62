"""
Store-to-store replication.

Rebuilds the planned entries under a folder of the target store's mutable
namespace. Each entry is pinned on the target before it is linked into the
folder, so a failed link never leaves unprotected content behind. Linking
is skipped when the target path already holds the same hash, which is what
makes a repeated run cheap. Once every entry is in place, the folder's own
hash is pinned so the composed tree survives as a whole.
"""

from __future__ import annotations

import logging
from typing import Optional, Sequence

from ..errors import ConflictError, TransportError
from ..models import (
    Conflict,
    ConflictPolicy,
    Entry,
    EntryKind,
    ReplicationReport,
)
from ..store import join_path
from .destination import RemoteStore
from .progress import EventKind, ProgressReporter, describe_entry

logger = logging.getLogger("pincopy.replicate.engine")


class ReplicationEngine:
    """Copies entries into a target store folder and pins them.

    Args:
        destination: Target store and folder.
        reporter: Progress sink.
        conflict_policy: ``warn`` records a differing target entry and moves
            on; ``fail`` aborts the run on it.
    """

    def __init__(
        self,
        destination: RemoteStore,
        reporter: Optional[ProgressReporter] = None,
        conflict_policy: ConflictPolicy = ConflictPolicy.WARN,
    ) -> None:
        self.destination = destination
        self.target = destination.store
        self.root = destination.root
        self.reporter = reporter or ProgressReporter()
        self.conflict_policy = conflict_policy

    def replicate(self, entries: Sequence[Entry]) -> ReplicationReport:
        """Copy *entries*, in order, then pin the resulting folder.

        Stops at the first transport failure. Entries copied before it stay
        copied and pinned, so the next run resumes where this one stopped.

        Returns:
            ReplicationReport: What was copied, left alone or skipped.

        Raises:
            TransportError: On any store failure.
            ConflictError: On a differing target entry under ``fail``.
        """
        report = ReplicationReport(
            destination=self.destination.describe(),
            planned=len(entries),
        )

        self.reporter.report(
            EventKind.ROOT_CREATED,
            f"Creating target folder {self.root}",
            path=self.root,
        )
        self.target.make_directory(self.root, parents=True)

        total = len(entries)
        for index, entry in enumerate(entries, start=1):
            self.reporter.report(
                EventKind.COPYING,
                f"Copying {index} of {total} ({describe_entry(entry)})",
                entry=entry,
                index=index,
                total=total,
            )

            if entry.kind == EntryKind.OTHER:
                self.reporter.report(
                    EventKind.SKIPPED,
                    f"{entry.name} - not a file or folder, skipping",
                    entry=entry,
                )
                report.skipped.append(entry.name)
                continue

            self._pin(entry, report)
            self._copy_if_needed(entry, report)

        self._pin_root(report)
        return report

    def _pin(self, entry: Entry, report: ReplicationReport) -> None:
        self.reporter.report(
            EventKind.PINNED,
            f"{entry.name} - pinning from {entry.hash}",
            entry=entry,
            hash=entry.hash,
        )
        self.target.pin_add(entry.hash, recursive=True)
        report.pinned.append(entry.hash)
        self.reporter.report(
            EventKind.PINNED,
            f"{entry.name} - pinned",
            entry=entry,
            hash=entry.hash,
        )

    def _copy_if_needed(self, entry: Entry, report: ReplicationReport) -> None:
        target_path = join_path(self.root, entry.name)
        existing = self.target.stat(target_path)

        if existing is None:
            self.reporter.report(
                EventKind.COPIED,
                f"{target_path} - establishing pin in mfs",
                path=target_path,
                hash=entry.hash,
            )
            self.target.copy_by_hash(entry.hash, target_path)
            report.copied.append(entry.name)
            return

        if existing.hash == entry.hash:
            self.reporter.report(
                EventKind.UNCHANGED,
                f"{target_path} - already pinned with matching hash",
                path=target_path,
                hash=entry.hash,
            )
            report.unchanged.append(entry.name)
            return

        logger.warning(
            "%s holds %s but source has %s; leaving it untouched",
            target_path, existing.hash, entry.hash,
        )
        if self.conflict_policy == ConflictPolicy.FAIL:
            raise ConflictError(target_path, existing.hash, entry.hash)

        self.reporter.report(
            EventKind.CONFLICT,
            f"{target_path} - previous hash is {existing.hash}, "
            f"source is {entry.hash}; left untouched",
            path=target_path,
            hash=existing.hash,
        )
        report.conflicts.append(
            Conflict(
                path=target_path,
                existing_hash=existing.hash,
                expected_hash=entry.hash,
            )
        )

    def _pin_root(self, report: ReplicationReport) -> None:
        self.reporter.report(
            EventKind.ROOT_PINNED,
            f"{self.root} - getting hash",
            path=self.root,
        )
        stat = self.target.stat(self.root)
        if stat is None:
            raise TransportError(f"Target folder {self.root} vanished during the run")

        self.reporter.report(
            EventKind.ROOT_PINNED,
            f"{self.root} - hash is {stat.hash}",
            path=self.root,
            hash=stat.hash,
        )
        self.reporter.report(
            EventKind.ROOT_PINNED,
            f"{self.root} - pinning final version",
            path=self.root,
            hash=stat.hash,
        )
        self.target.pin_add(stat.hash, recursive=True)
        report.root_hash = stat.hash
        report.pinned.append(stat.hash)
