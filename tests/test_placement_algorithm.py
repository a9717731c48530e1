"""Tests for the placement algorithm."""

import sys
import os
sys.path.insert(0, os.path.join(os.path.dirname(__file__), ".."))

import pytest

from models.seat_map import FurnitureItem, Layout, SeatPosition as P
from models.student import Student
from models.rule import Rule, RuleType
from models.placement import ConflictType, PlacementOptions
from models.errors import PlacementInputError
from engine.geometry import are_adjacent, is_connected_group
from engine.placement_algorithm import create_seat_map, run_placement
from engine.progress import ProgressChannel
from engine.explainer import explain_result

ROSTER = "roster-1"


def make_layout(rows=3, cols=3, seats=None, desk=None, door=None):
    if seats is None:
        seats = [f"{r}-{c}" for r in range(rows) for c in range(cols)]
    furniture = []
    if desk:
        furniture.append(FurnitureItem("desk", list(desk)))
    if door:
        furniture.append(FurnitureItem("door", [door]))
    return Layout(grid_rows=rows, grid_cols=cols, seats=seats, furniture=furniture)


def make_students(*names):
    return [Student(name, ROSTER, name.capitalize(), "Test") for name in names]


def make_rule(rule_id, priority, rule_type, student_ids, active=True):
    return Rule(
        id=rule_id, roster_id=ROSTER, priority=priority, type=RuleType(rule_type),
        student_ids=list(student_ids), is_active=active,
    )


def report_for(result, rule_id):
    return next(r for r in result.rule_satisfaction if r.rule_id == rule_id)


class TestSeatMapParsing:
    def test_layout_becomes_seat_map(self):
        layout = make_layout(2, 3, seats=["0-0", "1-2"], desk=[P(0, 1)], door=P(1, 0))
        seat_map = create_seat_map(layout)
        assert seat_map.all_seats() == [P(0, 0), P(1, 2)]
        assert seat_map.teacher_desk == (P(0, 1),)
        assert seat_map.door == P(1, 0)

    def test_first_desk_and_door_win(self):
        layout = make_layout(2, 2)
        layout.furniture = [
            FurnitureItem("door", [P(1, 1)]),
            FurnitureItem("desk", [P(0, 0)]),
            FurnitureItem("desk", [P(0, 1)]),
            FurnitureItem("door", [P(1, 0)]),
        ]
        seat_map = create_seat_map(layout)
        assert seat_map.teacher_desk == (P(0, 0),)
        assert seat_map.door == P(1, 1)

    @pytest.mark.parametrize("layout", [
        None,
        make_layout(0, 3, seats=["0-0"]),
        make_layout(2, 2, seats=[]),
        make_layout(2, 2, seats=["a-b"]),
        make_layout(2, 2, seats=["2-0"]),
        make_layout(2, 2, desk=[P(5, 5)]),
    ])
    def test_malformed_layout_raises(self, layout):
        with pytest.raises(PlacementInputError):
            create_seat_map(layout)

    def test_run_placement_raises_for_malformed_input(self):
        with pytest.raises(PlacementInputError):
            run_placement(make_students("a"), [], None)
        with pytest.raises(PlacementInputError):
            run_placement(make_students("a", "a"), [], make_layout())


class TestFallbackPass:
    def test_no_rules_fills_row_major_in_input_order(self):
        students = make_students("a", "b", "c", "d")
        result = run_placement(students, [], make_layout(2, 2))
        assert result.success
        assert result.placement_map == {"a": P(0, 0), "b": P(0, 1), "c": P(1, 0), "d": P(1, 1)}
        assert result.conflicts == ()
        assert result.execution_time >= 0

    def test_furniture_seats_are_not_used(self):
        students = make_students("a", "b", "c")
        result = run_placement(students, [], make_layout(2, 2, desk=[P(0, 0)]))
        assert P(0, 0) not in result.placement_map.values()
        assert result.success

    def test_too_many_students(self):
        students = make_students("a", "b", "c")
        result = run_placement(students, [], make_layout(1, 2))
        assert not result.success
        assert result.unplaced_students == ("c",)
        [conflict] = result.conflicts
        assert conflict.conflict_type is ConflictType.INSUFFICIENT_SEATS
        assert conflict.affected_students == ("c",)

    def test_partial_placement_still_reports_unseated(self):
        students = make_students("a", "b", "c")
        options = PlacementOptions(allow_partial_placement=True)
        result = run_placement(students, [], make_layout(1, 2), options)
        assert len(result.placements) == 2
        assert "Partial placement" in result.conflicts[0].description

    def test_deterministic(self):
        students = make_students("a", "b", "c", "d", "e")
        rules = [
            make_rule("r1", 1, "SEPARATE", ["a", "b", "c"]),
            make_rule("r2", 2, "TOGETHER", ["d", "e"]),
        ]
        first = run_placement(students, rules, make_layout(3, 3))
        second = run_placement(students, rules, make_layout(3, 3))
        assert first.placements == second.placements


class TestTogetherRules:
    def test_group_is_seated_side_by_side(self):
        students = make_students("a", "b", "c", "d")
        rules = [make_rule("r1", 1, "TOGETHER", ["b", "c", "d"])]
        result = run_placement(students, rules, make_layout(3, 3))
        seats = [result.placement_map[s] for s in ("b", "c", "d")]
        assert is_connected_group(seats)
        assert report_for(result, "r1").satisfied
        by_student = {p.student_id: p for p in result.placements}
        assert by_student["b"].applied_rule_ids == ("r1",)
        assert by_student["a"].applied_rule_ids == ()

    def test_insufficient_seats(self):
        students = make_students("a", "b", "c")
        rules = [make_rule("r1", 1, "TOGETHER", ["a", "b", "c"])]
        result = run_placement(students, rules, make_layout(1, 2))
        kinds = [c.conflict_type for c in result.conflicts]
        assert kinds[0] is ConflictType.INSUFFICIENT_SEATS
        assert result.conflicts[0].rule_ids == ("r1",)
        assert len(result.unplaced_students) == 1
        assert not report_for(result, "r1").satisfied

    def test_no_connected_block_is_impossible(self):
        students = make_students("a", "b")
        rules = [make_rule("r1", 1, "TOGETHER", ["a", "b"])]
        layout = make_layout(1, 5, seats=["0-0", "0-2", "0-4"])
        result = run_placement(students, rules, layout)
        assert [c.conflict_type for c in result.conflicts] == [ConflictType.IMPOSSIBLE]
        assert not result.success
        assert len(result.placements) == 2

    def test_diagonal_room_is_together_without_conflict(self):
        students = make_students("a", "b")
        rules = [make_rule("r1", 1, "TOGETHER", ["a", "b"])]
        layout = make_layout(2, 2, seats=["0-0", "1-1"])
        result = run_placement(students, rules, layout)
        assert report_for(result, "r1").satisfied
        assert result.conflicts == ()
        assert result.success

    def test_joins_members_seated_by_earlier_rule(self):
        students = make_students("a", "b", "c")
        rules = [
            make_rule("r1", 1, "BACK_ROW", ["a"]),
            make_rule("r2", 2, "TOGETHER", ["a", "b"]),
        ]
        result = run_placement(students, rules, make_layout(3, 3))
        assert result.placement_map["a"].row == 2
        assert are_adjacent(result.placement_map["a"], result.placement_map["b"])
        assert report_for(result, "r2").satisfied
        by_student = {p.student_id: p for p in result.placements}
        assert by_student["a"].applied_rule_ids == ("r1", "r2")


class TestSeparateRules:
    def test_members_are_not_adjacent(self):
        students = make_students("a", "b", "c", "d")
        rules = [make_rule("r1", 1, "SEPARATE", ["a", "b", "c"])]
        result = run_placement(students, rules, make_layout(2, 3))
        seats = [result.placement_map[s] for s in ("a", "b", "c")]
        assert not any(are_adjacent(x, y) for i, x in enumerate(seats) for y in seats[i + 1:])
        assert report_for(result, "r1").satisfied
        assert result.success

    def test_tiny_connected_grid_is_impossible(self):
        students = make_students("a", "b")
        rules = [make_rule("r1", 1, "SEPARATE", ["a", "b"])]
        result = run_placement(students, rules, make_layout(1, 2))
        assert [c.conflict_type for c in result.conflicts] == [ConflictType.IMPOSSIBLE]
        assert not result.success
        # Members still get seats through the fallback pass
        assert set(result.placement_map) == {"a", "b"}
        assert not report_for(result, "r1").satisfied

    def test_loses_to_higher_priority_together(self):
        students = make_students("a", "b", "c")
        rules = [
            make_rule("r2", 2, "SEPARATE", ["b", "c"]),
            make_rule("r1", 1, "TOGETHER", ["a", "b"]),
        ]
        result = run_placement(students, rules, make_layout(1, 3))
        [conflict] = result.conflicts
        assert conflict.conflict_type is ConflictType.COMPETING
        assert conflict.rule_ids == ("r2", "r1")
        assert conflict.affected_students == ("c",)
        assert result.success
        assert report_for(result, "r1").satisfied
        assert not report_for(result, "r2").satisfied

    def test_separate_members_keep_location_preferences(self):
        students = make_students("a", "b")
        rules = [
            make_rule("r1", 1, "SEPARATE", ["a", "b"]),
            make_rule("r2", 2, "FRONT_ROW", ["a", "b"]),
        ]
        result = run_placement(students, rules, make_layout(3, 3))
        assert result.placement_map["a"].row == 0
        assert result.placement_map["b"].row == 0
        assert report_for(result, "r2").satisfied


class TestLocationRules:
    def test_front_and_back_rows(self):
        students = make_students("a", "b", "c")
        rules = [
            make_rule("r1", 1, "BACK_ROW", ["a"]),
            make_rule("r2", 2, "FRONT_ROW", ["b"]),
        ]
        result = run_placement(students, rules, make_layout(3, 3))
        assert result.placement_map["a"] == P(2, 0)
        assert result.placement_map["b"] == P(0, 0)
        assert all(r.satisfied for r in result.rule_satisfaction)

    def test_near_teacher_and_door(self):
        students = make_students("a", "b")
        layout = make_layout(3, 4, seats=[f"{r}-{c}" for r in range(1, 3) for c in range(4)],
                             desk=[P(0, 0)], door=P(0, 3))
        rules = [
            make_rule("r1", 1, "NEAR_TEACHER", ["a"]),
            make_rule("r2", 2, "NEAR_DOOR", ["b"]),
        ]
        result = run_placement(students, rules, layout)
        assert result.placement_map["a"] == P(1, 0)
        assert result.placement_map["b"] == P(1, 3)

    def test_furniture_on_a_seat_blocks_it(self):
        students = make_students("a")
        layout = make_layout(2, 2, door=P(1, 1))
        result = run_placement(students, [make_rule("r1", 1, "NEAR_DOOR", ["a"])], layout)
        assert result.placement_map["a"] in (P(0, 1), P(1, 0))

    def test_rules_apply_in_priority_order(self):
        students = make_students("a", "b")
        rules = [
            make_rule("low", 5, "FRONT_ROW", ["a"]),
            make_rule("high", 1, "FRONT_ROW", ["b"]),
        ]
        result = run_placement(students, rules, make_layout(2, 1))
        assert result.placement_map["b"] == P(0, 0)
        assert result.placement_map["a"] == P(1, 0)
        assert [r.rule_id for r in result.rule_satisfaction] == ["high", "low"]


class TestReporting:
    def test_inactive_rules_are_reported_not_applied(self):
        students = make_students("a", "b")
        rules = [make_rule("r1", 1, "BACK_ROW", ["a"], active=False)]
        result = run_placement(students, rules, make_layout(2, 1))
        assert result.placement_map["a"] == P(0, 0)
        report = report_for(result, "r1")
        assert not report.satisfied
        assert "inactive" in report.reason

    def test_unknown_students_are_ignored(self):
        students = make_students("a")
        rules = [make_rule("r1", 1, "TOGETHER", ["a", "ghost"])]
        result = run_placement(students, rules, make_layout(2, 2))
        assert result.success
        assert set(result.placement_map) == {"a"}
        assert report_for(result, "r1").affected_students == ("a", "ghost")

    def test_every_rule_has_a_report(self):
        students = make_students("a", "b", "c")
        rules = [
            make_rule("r3", 3, "NEAR_DOOR", ["c"]),
            make_rule("r1", 1, "SEPARATE", ["a", "b"]),
            make_rule("r2", 2, "FRONT_ROW", ["a"], active=False),
        ]
        result = run_placement(students, rules, make_layout(3, 3))
        assert [(r.rule_id, r.priority) for r in result.rule_satisfaction] == [
            ("r1", 1), ("r2", 2), ("r3", 3),
        ]

    def test_explanation_mentions_counts(self):
        students = make_students("a", "b", "c")
        result = run_placement(students, [], make_layout(1, 2))
        steps = explain_result(result, {s.id: s for s in students})
        assert steps[0].startswith("Step 1 - Seating: 2 of 3")
        assert any("C Test" in step for step in steps)


class TestOptions:
    def test_rules_skipped_when_not_prioritized(self):
        students = make_students("a", "b")
        rules = [make_rule("r1", 1, "BACK_ROW", ["a"])]
        options = PlacementOptions(prioritize_rules=False)
        result = run_placement(students, rules, make_layout(2, 1), options)
        assert result.placement_map["a"] == P(0, 0)
        assert all(p.applied_rule_ids == () for p in result.placements)
        assert not report_for(result, "r1").satisfied

    def test_existing_placements_are_kept(self):
        students = make_students("a", "b")
        options = PlacementOptions(clear_existing=False)
        result = run_placement(
            students, [], make_layout(2, 2), options, existing_placements={"a": P(1, 1)},
        )
        assert result.placement_map == {"a": P(1, 1), "b": P(0, 0)}

    def test_existing_placements_dropped_when_clearing(self):
        students = make_students("a")
        result = run_placement(students, [], make_layout(2, 2), existing_placements={"a": P(1, 1)})
        assert result.placement_map == {"a": P(0, 0)}


class TestProgress:
    def test_events_before_rules_per_rule_and_per_student(self):
        events = []
        students = make_students("a", "b", "c")
        rules = [make_rule("r1", 1, "FRONT_ROW", ["a"]), make_rule("r2", 2, "BACK_ROW", ["b"])]
        run_placement(students, rules, make_layout(3, 3), progress=events.append)

        assert events[0].rules_processed == 0
        assert events[0].students_placed == 0
        assert events[0].total_rules == 2
        assert events[0].total_students == 3
        assert len(events) >= 1 + len(rules) + len(students)
        assert events[-1].students_placed == 3
        assert events[-1].rules_processed == 2
        assert any(e.current_rule and e.current_rule["id"] == "r1" for e in events)

    def test_closed_channel_does_not_change_result(self):
        students = make_students("a", "b")
        channel = ProgressChannel()
        channel.close()
        quiet = run_placement(students, [], make_layout(2, 2), progress=channel)
        loud = run_placement(students, [], make_layout(2, 2))
        assert quiet.placements == loud.placements
        assert channel.last is None


if __name__ == "__main__":
    pytest.main([__file__, "-v"])
