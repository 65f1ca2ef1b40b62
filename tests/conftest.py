"""Shared test fixtures for pincopy.

FakeStore is an in-memory ContentStore. Stores built from the same
``network`` dict can resolve each other's hashes, the way two nodes of
one content network can; dropping a hash from the network simulates
content that was garbage collected everywhere.
"""

from __future__ import annotations

import copy
import hashlib
from dataclasses import dataclass, field
from typing import Iterator, Optional, Union

import pytest

from pincopy.errors import StoreApiError, TransportError
from pincopy.models import Entry, EntryKind, PinStatus, StatResult
from pincopy.replicate.progress import ProgressEvent, ProgressReporter
from pincopy.store import ContentStore


def _digest(payload: bytes) -> str:
    return "Qm" + hashlib.sha256(payload).hexdigest()[:32]


@dataclass
class FakeFile:
    data: bytes
    kind: EntryKind = EntryKind.FILE

    @property
    def hash(self) -> str:
        return _digest(b"file:" + self.data)

    @property
    def size(self) -> int:
        return len(self.data)


@dataclass
class FakeOther:
    token: str = "symlink"
    kind: EntryKind = EntryKind.OTHER

    @property
    def hash(self) -> str:
        return _digest(b"other:" + self.token.encode())

    @property
    def size(self) -> int:
        return 0


@dataclass
class FakeDir:
    children: dict = field(default_factory=dict)
    kind: EntryKind = EntryKind.DIRECTORY

    @property
    def hash(self) -> str:
        parts = [f"{name}:{node.hash}" for name, node in sorted(self.children.items())]
        return _digest(("dir:" + ",".join(parts)).encode())

    @property
    def size(self) -> int:
        return 0


FakeNode = Union[FakeFile, FakeDir, FakeOther]


class FakeStore(ContentStore):
    """In-memory store with a mutable namespace and a pin set."""

    def __init__(self, name: str = "fake", network: Optional[dict] = None) -> None:
        self._name = name
        self.network = network if network is not None else {}
        self.root = FakeDir()
        self.pins: set[str] = set()
        self.calls: list[tuple] = []

    @property
    def name(self) -> str:
        return self._name

    # -- test helpers -------------------------------------------------------

    def put(self, path: str, node: FakeNode, pinned: bool = True) -> FakeNode:
        """Place *node* at *path*, creating parents, and publish it."""
        parent_path, _, name = path.rstrip("/").rpartition("/")
        parent = self._mkdirs(parent_path or "/")
        parent.children[name] = node
        self._publish(node)
        if pinned:
            self.pins.add(node.hash)
        return node

    def put_file(self, path: str, data: bytes, pinned: bool = True) -> FakeFile:
        return self.put(path, FakeFile(data), pinned)

    def put_dir(self, path: str, pinned: bool = True) -> FakeDir:
        return self.put(path, FakeDir(), pinned)

    def resolve(self, path: str) -> Optional[FakeNode]:
        node: FakeNode = self.root
        for part in [p for p in path.split("/") if p]:
            if not isinstance(node, FakeDir) or part not in node.children:
                return None
            node = node.children[part]
        return node

    def ops(self, name: str) -> list[tuple]:
        return [c for c in self.calls if c[0] == name]

    def _publish(self, node: FakeNode) -> None:
        self.network[node.hash] = node
        if isinstance(node, FakeDir):
            for child in node.children.values():
                self._publish(child)

    def _mkdirs(self, path: str) -> FakeDir:
        node = self.root
        for part in [p for p in path.split("/") if p]:
            node = node.children.setdefault(part, FakeDir())
            if not isinstance(node, FakeDir):
                raise StoreApiError(f"{path}: not a directory", command="files/mkdir")
        return node

    def _known(self, hash_: str) -> bool:
        if hash_ in self.network:
            return True

        def walk(node: FakeNode) -> bool:
            if node.hash == hash_:
                return True
            if isinstance(node, FakeDir):
                return any(walk(c) for c in node.children.values())
            return False

        return walk(self.root)

    # -- ContentStore -------------------------------------------------------

    def list_entries(self, path: str) -> list[Entry]:
        self.calls.append(("list_entries", path))
        node = self.resolve(path)
        if not isinstance(node, FakeDir):
            raise StoreApiError("file does not exist", command="files/ls")
        return [
            Entry(name=name, hash=child.hash, size=child.size, kind=child.kind)
            for name, child in sorted(node.children.items())
        ]

    def stat(self, path: str) -> Optional[StatResult]:
        self.calls.append(("stat", path))
        node = self.resolve(path)
        if node is None:
            return None
        return StatResult(hash=node.hash, size=node.size, kind=node.kind)

    def pin_status(self, hash_: str) -> PinStatus:
        self.calls.append(("pin_status", hash_))
        return PinStatus.PINNED if hash_ in self.pins else PinStatus.UNPINNED

    def pin_add(self, hash_: str, recursive: bool = True) -> None:
        self.calls.append(("pin_add", hash_))
        if not self._known(hash_):
            raise TransportError(f"pin/add {hash_}: content not found")
        self.pins.add(hash_)

    def copy_by_hash(self, hash_: str, dest_path: str) -> None:
        self.calls.append(("copy_by_hash", hash_, dest_path))
        node = self.network.get(hash_)
        if node is None:
            raise TransportError(f"files/cp /ipfs/{hash_}: content not found")
        parent_path, _, name = dest_path.rpartition("/")
        parent = self.resolve(parent_path or "/")
        if not isinstance(parent, FakeDir):
            raise StoreApiError("file does not exist", command="files/cp")
        if name in parent.children:
            raise StoreApiError("directory already has entry by that name", command="files/cp")
        parent.children[name] = copy.deepcopy(node)

    def make_directory(self, path: str, parents: bool = True) -> None:
        self.calls.append(("make_directory", path))
        self._mkdirs(path)

    def read_stream(self, path: str, chunk_size: int = 4) -> Iterator[bytes]:
        self.calls.append(("read_stream", path))
        node = self.resolve(path)
        if not isinstance(node, FakeFile):
            raise StoreApiError("file does not exist", command="files/read")
        for i in range(0, len(node.data), chunk_size):
            yield node.data[i:i + chunk_size]


class RecordingReporter(ProgressReporter):
    """Keeps every event for later assertions."""

    def __init__(self) -> None:
        self.events: list[ProgressEvent] = []

    def emit(self, event: ProgressEvent) -> None:
        self.events.append(event)

    def kinds(self) -> list:
        return [e.kind for e in self.events]

    def messages(self) -> list[str]:
        return [e.message for e in self.events]


@pytest.fixture
def network() -> dict:
    """Content shared by every fake store in a test."""
    return {}


@pytest.fixture
def source(network: dict) -> FakeStore:
    return FakeStore("source", network)


@pytest.fixture
def target(network: dict) -> FakeStore:
    return FakeStore("target", network)


@pytest.fixture
def reporter() -> RecordingReporter:
    return RecordingReporter()
