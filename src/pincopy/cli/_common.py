"""Shared CLI plumbing: rich consoles, the console reporter, logging setup."""

from __future__ import annotations

import logging

from rich.console import Console
from rich.markup import escape
from rich.panel import Panel
from rich.table import Table

from ..models import EntryKind, ReplicationPlan, ReplicationReport
from ..replicate.progress import EventKind, ProgressEvent, ProgressReporter, format_size

console = Console(highlight=False)
err_console = Console(stderr=True, highlight=False)

# Events that open a new block of output get a blank line before them.
_SPACED = {EventKind.ROOT_CREATED, EventKind.COPYING, EventKind.ROOT_PINNED}

_STYLES = {
    EventKind.UNPINNED: "yellow",
    EventKind.IGNORED: "yellow",
    EventKind.CONFLICT: "bold yellow",
    EventKind.SKIPPED: "dim",
    EventKind.UNCHANGED: "dim",
    EventKind.COPIED: "green",
    EventKind.FILE_DONE: "green",
    EventKind.BYTES: "cyan",
}


class ConsoleReporter(ProgressReporter):
    """Prints progress events on the rich console."""

    def __init__(self, out: Console = console) -> None:
        self.out = out
        self._last_kind = None

    def emit(self, event: ProgressEvent) -> None:
        if event.kind in _SPACED and event.kind != self._last_kind:
            self.out.print()
        self._last_kind = event.kind

        message = escape(event.message)
        style = _STYLES.get(event.kind)
        if style:
            self.out.print(f"[{style}]{message}[/]")
        else:
            self.out.print(message)

        if event.kind == EventKind.COPYING:
            self.out.print()


def configure_logging(verbose: bool) -> None:
    """Route log records to stderr; DEBUG with --verbose, else WARNING."""
    logging.basicConfig(
        level=logging.DEBUG if verbose else logging.WARNING,
        format="%(asctime)s [%(levelname)s] %(name)s: %(message)s",
    )


def print_plan(plan: ReplicationPlan) -> None:
    """Render a plan as a table for --dry-run."""
    table = Table(title=f"Plan for {escape(plan.source_path)} (unpinned rule: {plan.rule.value})")
    table.add_column("#", justify="right")
    table.add_column("Name", style="cyan")
    table.add_column("Kind")
    table.add_column("Size", justify="right")
    table.add_column("Hash", style="dim")
    table.add_column("Pinned")

    for i, entry in enumerate(plan.entries, start=1):
        pinned = "[green]yes[/]" if plan.is_pinned(entry) else "[yellow]no[/]"
        size = format_size(entry.size) if entry.kind == EntryKind.FILE else "-"
        table.add_row(str(i), escape(entry.name), entry.kind.value, size, entry.hash, pinned)
    for entry in plan.ignored:
        table.add_row("-", escape(entry.name), entry.kind.value, "-", entry.hash, "[red]ignored[/]")

    console.print(table)


def print_report(report: ReplicationReport) -> None:
    """Summarize a finished run in a panel."""
    lines = [
        f"Destination: [cyan]{escape(report.destination)}[/]",
        f"Planned: {report.planned}",
        f"Copied: [green]{len(report.copied)}[/]",
        f"Unchanged: {len(report.unchanged)}",
        f"Skipped: {len(report.skipped)}",
    ]
    if report.root_hash:
        lines.append(f"Root hash: [bold]{report.root_hash}[/]")
    if report.files_written:
        lines.append(f"Downloaded: {report.files_written} file(s), {format_size(report.bytes_written)}")
    if report.conflicts:
        lines.append(f"Conflicts: [bold yellow]{len(report.conflicts)}[/]")
        for conflict in report.conflicts:
            lines.append(
                f"  [yellow]{escape(conflict.path)}[/] has {conflict.existing_hash}, "
                f"source {conflict.expected_hash}"
            )

    console.print(
        Panel(
            "\n".join(lines),
            title="Replication complete" if report.ok else "Replication complete with conflicts",
            border_style="green" if report.ok else "yellow",
        )
    )
