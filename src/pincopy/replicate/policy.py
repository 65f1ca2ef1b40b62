"""
What to do about source entries that are not pinned.

An unpinned entry may already have been garbage collected at the source,
in which case copying it fails or hangs indefinitely. The rule decides
whether that risk aborts the run, is skipped around, or is accepted.
"""

from __future__ import annotations

from typing import Optional, Sequence

from ..errors import PolicyViolation
from ..models import Entry, UnpinnedRule
from .progress import EventKind, ProgressReporter

BAN_MESSAGE = (
    "Either add --skip-unpinned or --copy-unpinned; however copying is "
    "likely to fail (hang indefinitely) due to source data having been "
    "garbage collected."
)


def apply_unpinned_rule(
    entries: Sequence[Entry],
    unpinned: Sequence[Entry],
    rule: UnpinnedRule,
    reporter: Optional[ProgressReporter] = None,
) -> tuple[list[Entry], list[Entry]]:
    """Filter an ordered entry list according to the unpinned rule.

    Args:
        entries: The full plan, already in processing order.
        unpinned: The subset found unpinned at the source.
        rule: The configured unpinned rule.
        reporter: Receives the policy decision and each ignored name.

    Returns:
        (kept, ignored): kept preserves the order of *entries*.

    Raises:
        PolicyViolation: If anything is unpinned and the rule is ``ban``.
    """
    reporter = reporter or ProgressReporter()

    if not unpinned:
        reporter.report(EventKind.POLICY, "No unpinned source entries.")
        return list(entries), []

    reporter.report(
        EventKind.POLICY,
        f"Found {len(unpinned)} unpinned source entries.",
        total=len(unpinned),
    )

    if rule == UnpinnedRule.BAN:
        raise PolicyViolation(BAN_MESSAGE)

    if rule == UnpinnedRule.COPY:
        reporter.report(EventKind.POLICY, "Will copy unpinned source entries.")
        return list(entries), []

    reporter.report(EventKind.POLICY, "Will ignore unpinned source entries:")
    unpinned_names = {e.name for e in unpinned}
    kept, ignored = [], []
    for entry in entries:
        if entry.name in unpinned_names:
            reporter.report(
                EventKind.IGNORED,
                f"  ..ignoring {entry.name}",
                entry=entry,
            )
            ignored.append(entry)
        else:
            kept.append(entry)
    return kept, ignored
