"""
Tests for PointMappingSession.

The session is exercised without any window: confirmations are mocks and
events are collected by mock listeners.
"""

from unittest.mock import Mock

import pytest

from point_mapper.core.errors import DuplicateIdError, ValidationError
from point_mapper.core.points import EventType, PointMappingSession


class TestLifecycle:
    """Test loading and closing."""

    def test_initialization(self, session):
        assert not session.is_loaded
        assert session.settings.click_tolerance == 15
        assert session.history.max_size == 50
        assert len(session.store) == 0

    def test_settings_are_merged_over_defaults(self):
        session = PointMappingSession({"historySize": 5, "bogus": 1})
        assert session.history.max_size == 5
        assert session.settings.point_size == 8
        assert "bogus" not in session.settings

    def test_load_image(self, session):
        listener = Mock()
        session.events.on(EventType.IMAGE_LOADED, listener)
        session.load_image((800, 600), (400, 300), image_path="a.png")

        assert session.is_loaded
        assert session.mapper.scale == (2.0, 2.0)
        assert len(session.history) == 1
        assert not session.history.can_undo
        listener.assert_called_once()

    def test_load_image_resets_points_keeps_prefixes(self, loc_session):
        loc_session.add_point("LOC", "1", 20, 20)
        loc_session.load_image((100, 100))
        assert len(loc_session.store) == 0
        assert loc_session.prefixes.list_sorted() == ["LOC", "PT"]
        assert loc_session.display_size == (100, 100)
        assert len(loc_session.history) == 1

    def test_invalid_size_rejected(self, session):
        with pytest.raises(ValidationError):
            session.load_image((0, 100))
        assert not session.is_loaded

    def test_add_point_requires_image(self, session):
        with pytest.raises(ValidationError):
            session.add_point("", "1", 10, 10)

    def test_close(self, loc_session):
        loc_session.add_point("LOC", "1", 20, 20)
        loc_session.close()
        assert not loc_session.is_loaded
        assert len(loc_session.store) == 0
        assert len(loc_session.history) == 0


class TestPrefixes:
    def test_add_prefix_normalizes(self, session):
        assert session.add_prefix(" loc ") == "LOC"

    def test_add_prefix_rejects_duplicate_and_invalid(self, session):
        session.add_prefix("LOC")
        with pytest.raises(ValidationError):
            session.add_prefix("loc")
        with pytest.raises(ValidationError):
            session.add_prefix("--")
        with pytest.raises(ValidationError):
            session.add_prefix("ABCDEFGHIJK")

    def test_remove_unused_prefix(self, loc_session, confirm):
        history_size = len(loc_session.history)
        assert loc_session.remove_prefix("PT")
        assert "PT" not in loc_session.prefixes
        assert len(loc_session.history) == history_size
        confirm.assert_not_called()

    def test_remove_unknown_prefix(self, loc_session):
        assert not loc_session.remove_prefix("NOPE")

    def test_remove_prefix_cascade_confirmed(self, loc_session, confirm):
        loc_session.add_point("LOC", "1", 20, 20)
        loc_session.add_point("LOC", "2", 40, 40)
        keep = loc_session.add_point("PT", "1", 60, 60)
        history_size = len(loc_session.history)

        assert loc_session.remove_prefix("LOC")
        confirm.assert_called_once()
        assert [p.point_id for p in loc_session.points] == ["PT-1"]
        assert loc_session.selected_points() == [keep]
        assert len(loc_session.history) == history_size + 1

    def test_remove_prefix_cascade_declined(self, loc_session, decline):
        loc_session.confirm = decline
        loc_session.add_point("LOC", "1", 20, 20)
        before = loc_session.state_dict()
        history_size = len(loc_session.history)

        assert not loc_session.remove_prefix("LOC")
        decline.assert_called_once()
        assert loc_session.state_dict() == before
        assert len(loc_session.history) == history_size

    def test_cascade_without_confirmation_when_disabled(self, loc_session, decline):
        loc_session.confirm = decline
        loc_session.apply_settings({"confirm_delete": False})
        loc_session.add_point("LOC", "1", 20, 20)
        assert loc_session.remove_prefix("LOC")
        decline.assert_not_called()
        assert len(loc_session.store) == 0

    def test_cascade_is_undoable(self, loc_session):
        loc_session.add_point("LOC", "1", 20, 20)
        before = loc_session.state_dict()
        loc_session.remove_prefix("LOC")
        loc_session.undo()
        assert loc_session.state_dict() == before

    def test_removing_filtered_prefix_resets_filter(self, loc_session):
        loc_session.set_filter("PT")
        loc_session.remove_prefix("PT")
        assert loc_session.selection.filter == "all"


class TestPoints:
    """Test point operations."""

    def test_add_point_selects_it(self, loc_session):
        point = loc_session.add_point("LOC", "1", 20, 20)
        assert point.point_id == "LOC-1"
        assert loc_session.selected_points() == [point]
        assert loc_session.history.current.action == "Add point LOC-1"

    def test_add_then_duplicate(self, loc_session):
        point = loc_session.add_point("LOC", "1", 100, 100)
        copy = loc_session.duplicate_point(point)
        assert copy.point_id == "LOC-2"
        assert (copy.x, copy.y) == (130, 130)
        assert loc_session.selected_points() == [copy]

    def test_unprefixed_suggestion(self, loaded_session):
        assert loaded_session.add_point("", "5", 20, 20).point_id == "5"
        assert loaded_session.suggest_id() == ("", "6")

    def test_suggestion_uses_default_prefix(self, loc_session):
        loc_session.add_point("LOC", "3", 20, 20)
        assert loc_session.suggest_id() == ("LOC", "4")
        assert loc_session.suggest_id("PT") == ("PT", "1")

    def test_suggestion_disabled(self, loc_session):
        loc_session.apply_settings({"auto_suggest_ids": False})
        assert loc_session.suggest_id() == ("LOC", "")

    def test_duplicate_id_leaves_state_unchanged(self, loc_session):
        loc_session.add_point("LOC", "1", 20, 20)
        history_size = len(loc_session.history)
        with pytest.raises(DuplicateIdError):
            loc_session.add_point("LOC", "1", 40, 40)
        assert len(loc_session.store) == 1
        assert len(loc_session.history) == history_size

    def test_unknown_prefix_rejected(self, loc_session):
        with pytest.raises(ValidationError):
            loc_session.add_point("XYZ", "1", 20, 20)
        assert len(loc_session.store) == 0

    def test_rename_point(self, loc_session):
        listener = Mock()
        loc_session.events.on(EventType.POINT_UPDATED, listener)
        point = loc_session.add_point("LOC", "1", 20, 20)
        loc_session.rename_point(point, "PT", "9")
        assert point.point_id == "PT-9"
        assert loc_session.history.current.action == "Edit point LOC-1 to PT-9"
        assert listener.call_args[0][0].data["old_id"] == "LOC-1"

    def test_rename_keeps_removed_namespace(self, loc_session):
        point = loc_session.add_point("LOC", "1", 20, 20)
        loc_session.prefixes.remove("LOC")
        loc_session.rename_point(point, "LOC", "2")
        assert point.point_id == "LOC-2"

    def test_delete_point(self, loc_session):
        point = loc_session.add_point("LOC", "1", 20, 20)
        assert loc_session.delete_point(point)
        assert len(loc_session.store) == 0
        assert len(loc_session.selection) == 0
        assert not loc_session.delete_point(point)

    def test_delete_selected(self, loc_session, confirm):
        loc_session.add_point("LOC", "1", 20, 20)
        loc_session.add_point("LOC", "2", 40, 40)
        loc_session.select_all()
        assert loc_session.delete_selected() == 2
        confirm.assert_called_once()
        assert len(loc_session.store) == 0

    def test_delete_selected_declined(self, loc_session, decline):
        loc_session.confirm = decline
        loc_session.add_point("LOC", "1", 20, 20)
        assert loc_session.delete_selected() == 0
        assert len(loc_session.store) == 1

    def test_delete_selected_without_selection(self, loc_session):
        loc_session.add_point("LOC", "1", 20, 20)
        loc_session.deselect_all()
        with pytest.raises(ValidationError):
            loc_session.delete_selected()

    def test_clear_all_resets_history(self, loc_session):
        loc_session.add_point("LOC", "1", 20, 20)
        loc_session.add_point("LOC", "2", 40, 40)
        assert loc_session.clear_all()
        assert len(loc_session.store) == 0
        assert len(loc_session.history) == 1
        assert not loc_session.history.can_undo

    def test_clear_all_without_points(self, loc_session):
        with pytest.raises(ValidationError):
            loc_session.clear_all()

    def test_move_selected_is_clamped(self, loc_session):
        point = loc_session.add_point("LOC", "1", 20, 20)
        assert loc_session.move_selected(-50, 500) == 1
        assert (point.x, point.y) == (15, 285)


class TestSelection:
    def test_toggle_and_select_all_respects_filter(self, loc_session):
        a = loc_session.add_point("LOC", "1", 20, 20)
        loc_session.add_point("PT", "1", 40, 40)
        loc_session.set_filter("LOC")
        loc_session.select_all()
        assert loc_session.selected_points() == [a]
        assert not loc_session.toggle_selected(a)

    def test_hit_test_uses_visible_points(self, loc_session):
        loc_session.add_point("LOC", "1", 20, 20)
        pt = loc_session.add_point("PT", "1", 25, 25)
        assert loc_session.hit_test(22, 22).point_id == "LOC-1"
        loc_session.set_filter("PT")
        assert loc_session.hit_test(22, 22) is pt
        assert loc_session.hit_test(200, 200) is None

    def test_select_range_from_last_selected(self, loc_session):
        loc_session.add_point("LOC", "1", 20, 20)
        loc_session.add_point("LOC", "2", 50, 50)
        loc_session.add_point("LOC", "3", 200, 200)
        loc_session.select_only(loc_session.store.find_by_id("LOC-1"))
        inside = loc_session.select_range(60, 60)
        assert [p.point_id for p in inside] == ["LOC-1", "LOC-2"]
        assert len(loc_session.selection) == 2

    def test_rectangle_selection_ignores_filter(self, loc_session):
        loc_session.add_point("LOC", "1", 50, 50)
        loc_session.add_point("PT", "1", 60, 60)
        loc_session.add_point("PT", "2", 200, 200)
        loc_session.set_filter("LOC")

        inside = loc_session.select_box((10, 10), (120, 120))
        assert [p.point_id for p in inside] == ["LOC-1", "PT-1"]

        loc_session.select_only(loc_session.store.find_by_id("LOC-1"))
        loc_session.select_range(210, 210)
        assert [p.point_id for p in loc_session.selected_points()] == [
            "LOC-1", "PT-1", "PT-2"
        ]

    def test_select_range_without_anchor(self, loc_session):
        loc_session.add_point("LOC", "1", 20, 20)
        loc_session.deselect_all()
        assert loc_session.select_range(60, 60) == []


class TestUndoRedo:
    """Test history integration."""

    def test_undo_restores_previous_state(self, loc_session):
        loc_session.add_point("LOC", "1", 20, 20)
        after_first = loc_session.state_dict()
        loc_session.add_point("LOC", "2", 40, 40)
        assert loc_session.undo() == "Add point LOC-2"
        assert loc_session.state_dict() == after_first

    def test_redo_after_undo_is_lossless(self, loc_session):
        loc_session.add_point("LOC", "1", 20, 20)
        point = loc_session.add_point("LOC", "2", 40, 40)
        loc_session.move_selected(10, 10)
        loc_session.commit("Move 1 point(s)")
        state = loc_session.state_dict()

        loc_session.undo()
        assert loc_session.redo() == "Move 1 point(s)"
        assert loc_session.state_dict() == state
        assert loc_session.store.find_by_id("LOC-2").key == point.key

    def test_mutation_after_undo_discards_redo(self, loc_session):
        loc_session.add_point("LOC", "1", 20, 20)
        loc_session.add_point("LOC", "2", 40, 40)
        loc_session.undo()
        loc_session.add_point("LOC", "3", 60, 60)
        assert not loc_session.history.can_redo
        assert loc_session.redo() is None

    def test_nothing_to_undo(self, loaded_session):
        assert loaded_session.undo() is None

    def test_history_capacity_example(self, loc_session):
        loc_session.apply_settings({"history_size": 2})
        loc_session.add_point("LOC", "1", 20, 20)
        after_a = loc_session.state_dict()
        loc_session.add_point("LOC", "2", 40, 40)
        loc_session.add_point("LOC", "3", 60, 60)
        loc_session.undo()
        loc_session.undo()
        assert loc_session.state_dict() == after_a
        assert loc_session.undo() is None

    def test_restored_keys_stay_unique(self, loc_session):
        loc_session.add_point("LOC", "1", 20, 20)
        second = loc_session.add_point("LOC", "2", 40, 40)
        loc_session.undo()
        third = loc_session.add_point("LOC", "3", 60, 60)
        assert third.key != second.key


class TestExport:
    def test_export_csv_example(self, loc_session):
        loc_session.apply_settings(
            {"include_point_type": True, "include_original_coords": False}
        )
        loc_session.add_point("LOC", "1", 10, 20)
        assert loc_session.export_csv() == "point_id,x,y,point_type\nLOC-1,10,20,LOC\n"

    def test_export_with_original_coords(self, loc_session):
        loc_session.add_point("LOC", "1", 10, 20)
        text = loc_session.export_csv()
        assert text.splitlines() == [
            "point_id,x,y,point_type,original_x,original_y",
            "LOC-1,10,20,LOC,20,40",
        ]

    def test_export_only_visible(self, loc_session):
        loc_session.add_point("LOC", "1", 10, 20)
        loc_session.add_point("PT", "1", 30, 40)
        loc_session.set_filter("PT")
        assert "LOC-1" not in loc_session.export_csv()

    def test_export_without_points(self, loc_session):
        with pytest.raises(ValidationError):
            loc_session.export_csv()

    def test_write_csv_to_directory(self, loc_session, tmp_path):
        loc_session.add_point("", "1", 10, 20)
        path = loc_session.write_csv(tmp_path)
        assert path.parent == tmp_path
        assert path.name.startswith("image_points_")
        assert path.read_text().splitlines()[1] == "1,10,20,POINT,20,40"

    def test_visualization_data(self, loc_session):
        point = loc_session.add_point("LOC", "1", 10, 20)
        data = loc_session.get_visualization_data()
        assert data["points"] == [point]
        assert data["selected"] == {point.key}
        assert data["can_undo"]
        assert data["num_points"] == 1
