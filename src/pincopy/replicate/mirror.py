"""
Store-to-filesystem mirroring.

Walks a source folder depth first and recreates it under a local
directory: folders become directories, files are streamed down chunk by
chunk. Local files are always truncated and rewritten, there is no hash
check on this side. Nothing is pinned; a filesystem has no such notion.
"""

from __future__ import annotations

import logging
from pathlib import Path
from typing import Optional, Sequence

from ..errors import LocalWriteError, StreamError, TransportError
from ..models import Entry, EntryKind, ReplicationReport
from ..store import DEFAULT_CHUNK_SIZE, ContentStore, join_path
from .destination import LocalPath
from .lister import EntryLister
from .progress import EventKind, ProgressReporter, format_size

logger = logging.getLogger("pincopy.replicate.mirror")


class LocalMirror:
    """Mirrors source entries into a local directory tree.

    Args:
        source: The source store.
        destination: Existing local directory to write into.
        reporter: Progress sink.
        chunk_size: Read size for file streams.
    """

    def __init__(
        self,
        source: ContentStore,
        destination: LocalPath,
        reporter: Optional[ProgressReporter] = None,
        chunk_size: int = DEFAULT_CHUNK_SIZE,
    ) -> None:
        self.source = source
        self.destination = destination
        self.reporter = reporter or ProgressReporter()
        self.chunk_size = chunk_size
        self.lister = EntryLister(source, self.reporter)

    def mirror(self, entries: Sequence[Entry], source_path: str = "/") -> ReplicationReport:
        """Write *entries* (children of *source_path*) under the local root.

        Sub-folders are re-listed from the source as they are reached. The
        walk uses an explicit stack, so depth is not limited by recursion,
        and visits entries in the same order a recursive walk would.

        Raises:
            ConfigurationError: If the local root is missing or not a directory.
            TransportError: If listing a sub-folder fails.
            StreamError: If downloading a file fails part way.
            LocalWriteError: If a local directory cannot be created.
        """
        self.destination.validate()
        report = ReplicationReport(
            destination=self.destination.describe(),
            planned=len(entries),
        )

        stack: list[tuple[Entry, str, Path]] = []
        self._push(stack, entries, source_path, self.destination.root)

        while stack:
            entry, entry_source, entry_dest = stack.pop()

            if entry.kind == EntryKind.FILE:
                self._write_file(entry, entry_source, entry_dest, report)
            elif entry.kind == EntryKind.DIRECTORY:
                self.reporter.report(
                    EventKind.DIRECTORY,
                    f"{entry_source} - folder",
                    path=entry_source,
                    entry=entry,
                )
                try:
                    entry_dest.mkdir(parents=True, exist_ok=True)
                except OSError as exc:
                    logger.error("Creating %s failed: %s", entry_dest, exc)
                    raise LocalWriteError(str(entry_dest), str(exc)) from exc
                report.directories_created += 1
                children = self.lister.list_ordered(entry_source)
                self._push(stack, children, entry_source, entry_dest)
            else:
                self.reporter.report(
                    EventKind.SKIPPED,
                    f"{entry_source} - not a file or folder, skipping",
                    path=entry_source,
                    entry=entry,
                )
                report.skipped.append(entry_source)

        return report

    @staticmethod
    def _push(
        stack: list[tuple[Entry, str, Path]],
        entries: Sequence[Entry],
        source_parent: str,
        dest_parent: Path,
    ) -> None:
        # Reversed so the first entry is popped first.
        for entry in reversed(entries):
            stack.append(
                (entry, join_path(source_parent, entry.name), dest_parent / entry.name)
            )

    def _write_file(
        self,
        entry: Entry,
        source_path: str,
        dest_path: Path,
        report: ReplicationReport,
    ) -> None:
        self.reporter.report(
            EventKind.FILE_STARTED,
            f"{source_path} - downloading {format_size(entry.size)}",
            path=source_path,
            entry=entry,
        )

        written = 0
        last_label = None
        try:
            with open(dest_path, "wb") as fh:
                for chunk in self.source.read_stream(source_path, self.chunk_size):
                    fh.write(chunk)
                    written += len(chunk)
                    label = format_size(written)
                    if label != last_label:
                        last_label = label
                        self.reporter.report(
                            EventKind.BYTES,
                            f"{source_path} - {label}",
                            path=source_path,
                            bytes=written,
                        )
        except (TransportError, OSError) as exc:
            logger.error("Streaming %s to %s failed: %s", source_path, dest_path, exc)
            raise StreamError(source_path, written, str(exc)) from exc

        report.files_written += 1
        report.bytes_written += written
        report.copied.append(source_path)
        self.reporter.report(
            EventKind.FILE_DONE,
            f"{source_path} - done ({format_size(written)})",
            path=source_path,
            bytes=written,
        )
