"""Tests for the unpinned-entry rule."""

from __future__ import annotations

import pytest

from pincopy.errors import PolicyViolation
from pincopy.models import Entry, UnpinnedRule
from pincopy.replicate.policy import BAN_MESSAGE, apply_unpinned_rule
from pincopy.replicate.progress import EventKind


@pytest.fixture
def entries() -> list[Entry]:
    return [
        Entry(name="a", hash="QmA", size=1),
        Entry(name="b", hash="QmB", size=2),
        Entry(name="c", hash="QmC", size=3),
    ]


class TestApplyUnpinnedRule:
    @pytest.mark.parametrize("rule", list(UnpinnedRule))
    def test_nothing_unpinned_passes_through(self, entries, rule, reporter):
        kept, ignored = apply_unpinned_rule(entries, [], rule, reporter)
        assert kept == entries
        assert ignored == []
        assert reporter.messages() == ["No unpinned source entries."]

    def test_ban_aborts(self, entries):
        with pytest.raises(PolicyViolation) as excinfo:
            apply_unpinned_rule(entries, [entries[1]], UnpinnedRule.BAN)
        assert str(excinfo.value) == BAN_MESSAGE
        assert "garbage collected" in BAN_MESSAGE

    def test_ignore_removes_preserving_order(self, entries, reporter):
        kept, ignored = apply_unpinned_rule(
            entries, [entries[0], entries[2]], UnpinnedRule.IGNORE, reporter,
        )
        assert [e.name for e in kept] == ["b"]
        assert [e.name for e in ignored] == ["a", "c"]
        assert "  ..ignoring a" in reporter.messages()
        assert reporter.kinds().count(EventKind.IGNORED) == 2

    def test_copy_keeps_everything(self, entries, reporter):
        kept, ignored = apply_unpinned_rule(entries, [entries[1]], UnpinnedRule.COPY, reporter)
        assert kept == entries
        assert ignored == []
        assert "Will copy unpinned source entries." in reporter.messages()

    def test_returns_new_list(self, entries):
        kept, _ = apply_unpinned_rule(entries, [], UnpinnedRule.BAN)
        assert kept is not entries
