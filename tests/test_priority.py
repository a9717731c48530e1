"""Tests for priority helpers."""

import sys
import os
sys.path.insert(0, os.path.join(os.path.dirname(__file__), ".."))

from datetime import datetime

import pytest

from models.rule import Rule, RuleType, PriorityUpdate
from engine.priority import (
    calculate_priority_updates,
    format_priority_ordinal,
    get_next_priority,
    get_priority_level,
    move_rule,
    normalize_priorities,
    renumber,
    sort_by_priority,
    validate_consistency,
)


def make_rule(rule_id="r1", priority=1, rule_type=RuleType.FRONT_ROW, roster="roster-1"):
    return Rule(id=rule_id, roster_id=roster, priority=priority, type=rule_type, student_ids=["s1"])


def priorities(rules):
    return {r.id: r.priority for r in rules}


class TestSortAndValidate:
    def test_sort_is_ascending_and_stable(self):
        rules = [make_rule("c", 3), make_rule("a1", 1), make_rule("b", 2), make_rule("a2", 1)]
        ordered = sort_by_priority(rules)
        assert [r.id for r in ordered] == ["a1", "a2", "b", "c"]

    def test_valid_list(self):
        assert validate_consistency([make_rule("a", 1), make_rule("b", 2)]) == (True, [])

    def test_every_issue_is_listed(self):
        rules = [make_rule("a", 0), make_rule("b", 0), make_rule("c", 1.5)]
        valid, issues = validate_consistency(rules)
        assert not valid
        assert "Duplicate priority values found" in issues
        assert "Priority values must be positive integers" in issues
        assert "Priority values must be integers" in issues

    def test_normalize_always_yields_consistent_list(self):
        rules = [make_rule("a", 7), make_rule("b", 7), make_rule("c", 3)]
        normalized = normalize_priorities(rules)
        assert validate_consistency(normalized)[0]
        assert [r.priority for r in normalized] == [1, 2, 3]
        assert [r.id for r in normalized] == ["c", "a", "b"]
        assert normalize_priorities(normalized) == normalized
        assert rules[0].priority == 7  # inputs untouched


class TestPriorityUpdates:
    def test_sorted_contiguous_list_needs_no_updates(self):
        rules = [make_rule("a", 1), make_rule("b", 2), make_rule("c", 3)]
        assert calculate_priority_updates(rules, sort_by_priority(rules)) == []

    def test_only_changed_rules_are_reported(self):
        rules = [make_rule("a", 1), make_rule("b", 2), make_rule("c", 3)]
        reordered = [rules[1], rules[0], rules[2]]
        assert calculate_priority_updates(rules, reordered) == [
            PriorityUpdate("b", 2, 1),
            PriorityUpdate("a", 1, 2),
        ]

    def test_old_priority_comes_from_original_list(self):
        rules = [make_rule("a", 1), make_rule("b", 2)]
        renumbered = renumber([rules[1], rules[0]])
        assert calculate_priority_updates(rules, renumbered) == [
            PriorityUpdate("b", 2, 1),
            PriorityUpdate("a", 1, 2),
        ]

    def test_next_priority(self):
        assert get_next_priority([]) == 1
        assert get_next_priority([make_rule("a", 4), make_rule("b", 2)]) == 5


class TestMoveAndRenumber:
    def test_move_rule(self):
        rules = [make_rule("a", 1), make_rule("b", 2), make_rule("c", 3)]
        assert [r.id for r in move_rule(rules, 0, 2)] == ["b", "c", "a"]
        assert [r.id for r in move_rule(rules, 2, 0)] == ["c", "a", "b"]
        assert [r.id for r in rules] == ["a", "b", "c"]

    def test_move_rule_bounds(self):
        rules = [make_rule("a", 1), make_rule("b", 2)]
        with pytest.raises(IndexError, match="destination"):
            move_rule(rules, 0, 2)
        with pytest.raises(IndexError, match="source"):
            move_rule(rules, -1, 0)

    def test_renumber_stamps_updated_at(self):
        stamp = datetime(2024, 1, 1)
        out = renumber([make_rule("a", 5), make_rule("b", 9)], stamp=stamp)
        assert [r.priority for r in out] == [1, 2]
        assert all(r.updated_at == stamp for r in out)

    def test_round_trip_restores_priorities(self):
        original = [make_rule("a", 1), make_rule("b", 2), make_rule("c", 3), make_rule("d", 4)]
        there = renumber(move_rule(original, 1, 3))
        back = renumber(move_rule(there, 3, 1))
        assert priorities(back) == priorities(original)
        assert [r.id for r in back] == ["a", "b", "c", "d"]


class TestLabels:
    def test_priority_levels(self):
        assert get_priority_level(1, 5) == "Highest priority"
        assert get_priority_level(3, 5) == "High priority"
        assert get_priority_level(4, 5) == "Medium priority"
        assert get_priority_level(5, 5) == "Low priority"
        assert get_priority_level(10, 10) == "Lowest priority"
        assert get_priority_level(1, 0) == "Lowest priority"

    def test_ordinals(self):
        assert [format_priority_ordinal(n) for n in (1, 2, 3, 4, 11, 12, 13, 21, 22, 23, 101)] == [
            "1st", "2nd", "3rd", "4th", "11th", "12th", "13th", "21st", "22nd", "23rd", "101st",
        ]


if __name__ == "__main__":
    pytest.main([__file__, "-v"])
