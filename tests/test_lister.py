"""Tests for entry listing and plan ordering."""

from __future__ import annotations

import pytest

from pincopy.errors import StoreApiError
from pincopy.models import Entry, EntryKind
from pincopy.replicate.lister import EntryLister, order_entries
from pincopy.replicate.progress import EventKind

from conftest import FakeDir, FakeFile, FakeOther


class TestOrderEntries:
    def test_files_by_size_then_folders_then_other(self):
        entries = [
            Entry(name="five", hash="Qm5", size=5, kind=EntryKind.FILE),
            Entry(name="folder", hash="QmF", size=0, kind=EntryKind.DIRECTORY),
            Entry(name="two", hash="Qm2", size=2, kind=EntryKind.FILE),
            Entry(name="link", hash="QmL", size=0, kind=EntryKind.OTHER),
        ]
        ordered = order_entries(entries)
        assert [e.name for e in ordered] == ["two", "five", "folder", "link"]

    def test_stable_for_equal_keys(self):
        entries = [
            Entry(name="b", hash="Qmb", size=1),
            Entry(name="a", hash="Qma", size=1),
        ]
        assert [e.name for e in order_entries(entries)] == ["b", "a"]

    def test_folder_size_does_not_reorder_folders(self):
        entries = [
            Entry(name="big", hash="Qm1", size=900, kind=EntryKind.DIRECTORY),
            Entry(name="small", hash="Qm2", size=1, kind=EntryKind.DIRECTORY),
        ]
        assert [e.name for e in order_entries(entries)] == ["big", "small"]

    def test_input_not_mutated(self):
        entries = [Entry(name="b", hash="Qb", size=2), Entry(name="a", hash="Qa", size=1)]
        order_entries(entries)
        assert [e.name for e in entries] == ["b", "a"]


class TestEntryLister:
    def test_list_reports_every_entry(self, source, reporter):
        source.put_file("/a.txt", b"0123456789")
        source.put("/sub", FakeDir({"b.txt": FakeFile(b"x" * 20)}))
        source.put("/link", FakeOther())

        entries = EntryLister(source, reporter).list("/")

        assert {e.name for e in entries} == {"a.txt", "sub", "link"}
        assert reporter.kinds()[0] == EventKind.LISTED
        assert reporter.messages()[0] == "Found 3 files:"
        assert reporter.kinds().count(EventKind.LISTED_ENTRY) == 3
        assert "name: a.txt, size: 10, type: file" in reporter.messages()[1]

    def test_list_ordered(self, source):
        source.put("/sub", FakeDir())
        source.put_file("/big", b"x" * 100)
        source.put_file("/small", b"x")

        names = [e.name for e in EntryLister(source).list_ordered("/")]
        assert names == ["small", "big", "sub"]

    def test_no_caching(self, source):
        lister = EntryLister(source)
        assert lister.list("/") == []
        source.put_file("/late.txt", b"late")
        assert [e.name for e in lister.list("/")] == ["late.txt"]

    def test_failure_propagates(self, source):
        with pytest.raises(StoreApiError):
            EntryLister(source).list("/missing")
