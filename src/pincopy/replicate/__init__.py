"""
Replication -- copy a pinned source folder to a store or a directory.

Build a Replicator with a source store and a destination, then run it.
Every stage reports through a ProgressReporter instead of printing.
"""

from .destination import Destination, LocalPath, RemoteStore
from .engine import ReplicationEngine
from .lister import EntryLister, order_entries
from .mirror import LocalMirror
from .pins import PinInspector
from .pipeline import Replicator, run_replication
from .policy import apply_unpinned_rule
from .progress import EventKind, LoggingReporter, ProgressEvent, ProgressReporter

__all__ = [
    "Destination",
    "EntryLister",
    "EventKind",
    "LocalMirror",
    "LocalPath",
    "LoggingReporter",
    "PinInspector",
    "ProgressEvent",
    "ProgressReporter",
    "RemoteStore",
    "ReplicationEngine",
    "Replicator",
    "apply_unpinned_rule",
    "order_entries",
    "run_replication",
]
