"""
Tests for the snapshot history.
"""

import pytest

from point_mapper.core.points import (
    HistoryStack,
    PointStore,
    PrefixRegistry,
    SelectionModel,
)


@pytest.fixture
def parts():
    return PointStore(), SelectionModel(), PrefixRegistry(["LOC"])


def add(history, parts, raw_id):
    store, selection, prefixes = parts
    point = store.add_point("LOC", raw_id, 20, 20)
    selection.set([point])
    return history.snapshot(store, selection, prefixes, f"Add {raw_id}")


def ids(store):
    return [p.point_id for p in store.points]


class TestHistoryStack:
    """Test suite for HistoryStack."""

    def test_rejects_non_positive_size(self):
        with pytest.raises(ValueError):
            HistoryStack(0)

    def test_empty_history(self):
        history = HistoryStack()
        assert not history.can_undo
        assert not history.can_redo
        assert history.current is None
        assert history.undo() is None
        assert history.redo() is None

    def test_undo_redo(self, parts):
        store, selection, prefixes = parts
        history = HistoryStack()
        history.reset(store, selection, prefixes, "Load image")
        add(history, parts, "1")
        add(history, parts, "2")

        entry = history.undo()
        history.restore(entry, *parts)
        assert ids(store) == ["LOC-1"]
        assert history.undone_action() == "Add 2"

        entry = history.redo()
        history.restore(entry, *parts)
        assert ids(store) == ["LOC-1", "LOC-2"]
        assert not history.can_redo

    def test_entries_do_not_alias_live_points(self, parts):
        store, selection, prefixes = parts
        history = HistoryStack()
        add(history, parts, "1")
        store.points[0].x = 300
        assert history.current.points[0].x == 20

    def test_snapshot_after_undo_discards_redo_branch(self, parts):
        store, selection, prefixes = parts
        history = HistoryStack()
        history.reset(store, selection, prefixes, "Load image")
        add(history, parts, "1")
        add(history, parts, "2")
        history.restore(history.undo(), *parts)

        add(history, parts, "3")
        assert not history.can_redo
        assert [e.action for e in history.entries] == ["Load image", "Add 1", "Add 3"]

    def test_capacity_counts_undo_steps(self, parts):
        store, selection, prefixes = parts
        history = HistoryStack(max_size=2)
        history.reset(store, selection, prefixes, "Load image")
        add(history, parts, "A")
        add(history, parts, "B")
        add(history, parts, "C")

        history.restore(history.undo(), *parts)
        history.restore(history.undo(), *parts)
        assert ids(store) == ["LOC-A"]
        assert not history.can_undo
        assert history.index == 0

    def test_shrinking_max_size_trims_oldest(self, parts):
        store, selection, prefixes = parts
        history = HistoryStack()
        history.reset(store, selection, prefixes, "Load image")
        for raw_id in "ABCD":
            add(history, parts, raw_id)

        history.max_size = 1
        assert len(history) == 2
        assert [e.action for e in history.entries] == ["Add C", "Add D"]
        assert history.index == 1

    def test_restore_replaces_selection(self, parts):
        store, selection, prefixes = parts
        history = HistoryStack()
        first = add(history, parts, "1")
        add(history, parts, "2")
        history.restore(first, *parts)
        assert selection.keys == [store.points[0].key]

    def test_restore_replaces_prefixes(self, parts):
        store, selection, prefixes = parts
        history = HistoryStack()
        history.reset(store, selection, prefixes, "Load image")
        prefixes.add("PT")
        history.snapshot(store, selection, prefixes, "Remove LOC")
        history.restore(history.undo(), *parts)
        assert prefixes.list_sorted() == ["LOC"]

    def test_entry_to_dict(self, parts):
        history = HistoryStack()
        entry = add(history, parts, "1")
        data = entry.to_dict()
        assert data["points"] == [{"point_id": "LOC-1", "x": 20, "y": 20}]
        assert data["selected"] == ["LOC-1"]
        assert data["prefixes"] == ["LOC"]
        assert data["action"] == "Add 1"
