"""
Replication pipeline -- the single entry point for a run.

    list source -> order -> inspect pins -> apply unpinned rule
        -> ReplicationEngine  (RemoteStore destination)
        -> LocalMirror        (LocalPath destination)

Only the last stage depends on the destination.
"""

from __future__ import annotations

import logging
from typing import Optional

from ..models import ConflictPolicy, ReplicationPlan, ReplicationReport, UnpinnedRule
from ..store import ContentStore
from .destination import Destination, LocalPath, RemoteStore
from .engine import ReplicationEngine
from .lister import EntryLister
from .mirror import LocalMirror
from .pins import PinInspector
from .policy import apply_unpinned_rule
from .progress import ProgressReporter

logger = logging.getLogger("pincopy.replicate.pipeline")


class Replicator:
    """Plans and runs one replication.

    Args:
        source: Store to copy from. Never written to.
        destination: RemoteStore or LocalPath.
        rule: What to do about entries unpinned at the source.
        source_path: Folder of the source namespace to replicate.
        conflict_policy: How store-to-store runs treat differing targets.
        reporter: Progress sink shared by every stage.
    """

    def __init__(
        self,
        source: ContentStore,
        destination: Destination,
        rule: UnpinnedRule = UnpinnedRule.BAN,
        source_path: str = "/",
        conflict_policy: ConflictPolicy = ConflictPolicy.WARN,
        reporter: Optional[ProgressReporter] = None,
    ) -> None:
        self.source = source
        self.destination = destination
        self.rule = rule
        self.source_path = source_path
        self.conflict_policy = conflict_policy
        self.reporter = reporter or ProgressReporter()

    def build_plan(self) -> ReplicationPlan:
        """List, order and pin-check the source folder, then apply the rule.

        The destination is validated first, before any network call.

        Raises:
            ConfigurationError: Invalid destination.
            TransportError: Listing or pin inspection failed.
            PolicyViolation: Unpinned entries under the ``ban`` rule.
        """
        self.destination.validate()

        entries = EntryLister(self.source, self.reporter).list_ordered(self.source_path)
        unpinned = PinInspector(self.source, self.reporter).find_unprotected(entries)
        kept, ignored = apply_unpinned_rule(entries, unpinned, self.rule, self.reporter)

        logger.info(
            "Plan for %s: %d entries, %d unpinned, %d ignored",
            self.source_path, len(kept), len(unpinned), len(ignored),
        )
        return ReplicationPlan(
            source_path=self.source_path,
            rule=self.rule,
            entries=kept,
            unpinned=unpinned,
            ignored=ignored,
        )

    def execute(self, plan: ReplicationPlan) -> ReplicationReport:
        """Hand a plan to the strategy matching the destination."""
        if isinstance(self.destination, RemoteStore):
            engine = ReplicationEngine(
                self.destination, self.reporter, self.conflict_policy,
            )
            return engine.replicate(plan.entries)
        if isinstance(self.destination, LocalPath):
            mirror = LocalMirror(self.source, self.destination, self.reporter)
            return mirror.mirror(plan.entries, plan.source_path)
        raise TypeError(f"Unsupported destination: {self.destination!r}")

    def run(self) -> ReplicationReport:
        """Build the plan and execute it."""
        return self.execute(self.build_plan())


def run_replication(
    source: ContentStore,
    destination: Destination,
    rule: UnpinnedRule = UnpinnedRule.BAN,
    **kwargs,
) -> ReplicationReport:
    """Convenience wrapper around ``Replicator(...).run()``."""
    return Replicator(source, destination, rule, **kwargs).run()
