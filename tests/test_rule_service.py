"""Tests for the rule service and its record store."""

import sys
import os
sys.path.insert(0, os.path.join(os.path.dirname(__file__), ".."))

import pytest

from models.rule import PriorityUpdate, Rule, RuleType
from models.student import Student
from models.errors import RuleNotFoundError, RuleValidationError
from data.rule_store import RuleStore
from services.rule_service import RuleService

ROSTER = "roster-1"


def make_service(records=None):
    return RuleService(RuleStore(records))


def make_draft(rule_type="FRONT_ROW", student_ids=("s1",), priority=1, **extra):
    return {"type": rule_type, "student_ids": list(student_ids), "priority": priority, **extra}


def messages(exc_info):
    return [e.message for e in exc_info.value.errors]


class TestValidation:
    def test_separate_needs_two_students(self):
        service = make_service()
        with pytest.raises(RuleValidationError) as exc_info:
            service.create_rule(ROSTER, make_draft("SEPARATE", ["s1"]))
        assert "Separate rules require at least 2 students" in messages(exc_info)
        assert exc_info.value.errors[0].field == "student_ids"
        assert service.get_rules_by_roster(ROSTER) == []

    def test_together_needs_two_students(self):
        result = make_service().validate(make_draft("TOGETHER", ["s1"], roster_id=ROSTER))
        assert not result.valid
        assert [e.message for e in result.errors] == ["Together rules require at least 2 students"]

    def test_all_failures_are_collected(self):
        result = make_service().validate({})
        fields = {e.field for e in result.errors}
        assert fields == {"roster_id", "type", "priority", "student_ids"}

    def test_priority_must_be_positive_integer(self):
        service = make_service()
        for bad in (0, -1, 1.5, True, "1"):
            result = service.validate(make_draft(priority=bad, roster_id=ROSTER))
            assert not result.valid, bad
            assert result.errors[0].field == "priority"

    def test_duplicate_ids_and_invalid_type(self):
        result = make_service().validate(make_draft("SIDEWAYS", ["s1", "s1"], roster_id=ROSTER))
        found = [e.message for e in result.errors]
        assert "Invalid rule type: SIDEWAYS" in found
        assert "Duplicate student IDs are not allowed" in found

    def test_location_rule_accepts_one_student(self):
        assert make_service().validate(make_draft("NEAR_DOOR", ["s1"], roster_id=ROSTER)).valid


class TestCrud:
    def test_create_returns_stored_rule(self):
        records = {}
        service = make_service(records)
        rule = service.create_rule(ROSTER, make_draft("SEPARATE", ["s1", "s2"]))
        assert isinstance(rule, Rule)
        assert rule.id in records
        assert rule.type is RuleType.SEPARATE
        assert rule.roster_id == ROSTER
        assert rule.is_active
        assert service.get_rule(rule.id) == rule

    def test_create_assigns_next_priority_when_missing(self):
        service = make_service()
        service.create_rule(ROSTER, make_draft(priority=1))
        rule = service.create_rule(ROSTER, {"type": "BACK_ROW", "student_ids": ["s2"]})
        assert rule.priority == 2
        assert service.get_max_priority(ROSTER) == 2

    def test_update_revalidates_merged_rule(self):
        service = make_service()
        rule = service.create_rule(ROSTER, make_draft("TOGETHER", ["s1", "s2"]))
        with pytest.raises(RuleValidationError):
            service.update_rule(rule.id, {"student_ids": ["s1"]})
        assert service.get_rule(rule.id).student_ids == ["s1", "s2"]

        updated = service.update_rule(rule.id, {"student_ids": ["s1", "s2", "s3"]})
        assert updated.student_ids == ["s1", "s2", "s3"]
        assert updated.updated_at >= rule.updated_at

    def test_unknown_rule(self):
        service = make_service()
        with pytest.raises(RuleNotFoundError):
            service.get_rule("missing")
        with pytest.raises(RuleNotFoundError):
            service.update_rule("missing", {"is_active": False})
        with pytest.raises(RuleNotFoundError):
            service.delete_rule("missing")

    def test_toggle_and_active_subsets(self):
        service = make_service()
        a = service.create_rule(ROSTER, make_draft(priority=1))
        b = service.create_rule(ROSTER, make_draft(priority=2))
        service.toggle_rule_active(a.id)
        assert [r.id for r in service.get_active_rules(ROSTER)] == [b.id]
        assert [r.id for r in service.get_inactive_rules(ROSTER)] == [a.id]

    def test_delete_does_not_renumber(self):
        service = make_service()
        rules = [service.create_rule(ROSTER, make_draft(priority=p)) for p in (1, 2, 3)]
        service.delete_rule(rules[0].id)
        assert [r.priority for r in service.get_rules_by_roster(ROSTER)] == [2, 3]

    def test_rules_are_scoped_to_roster(self):
        service = make_service()
        service.create_rule(ROSTER, make_draft())
        service.create_rule("other", make_draft())
        assert len(service.get_rules_by_roster(ROSTER)) == 1


class TestPriorities:
    def test_reorder_renumbers_whole_set(self):
        service = make_service()
        rules = [service.create_rule(ROSTER, make_draft(priority=p)) for p in (1, 2, 3)]
        service.reorder_rules(ROSTER, [rules[2], rules[0], rules[1]])
        stored = service.get_rules_by_roster(ROSTER)
        assert [r.id for r in stored] == [rules[2].id, rules[0].id, rules[1].id]
        assert [r.priority for r in stored] == [1, 2, 3]
        assert service.validate_priority_consistency(ROSTER)

    def test_reorder_rejects_other_roster(self):
        service = make_service()
        mine = service.create_rule(ROSTER, make_draft(priority=1))
        theirs = service.create_rule("other", make_draft(priority=1))
        with pytest.raises(RuleValidationError, match="1 rule") as exc_info:
            service.reorder_rules(ROSTER, [mine, theirs])
        assert exc_info.value.errors[0].field == "roster_id"
        assert service.get_rule(mine.id).priority == 1

    def test_consistency_reads_storage(self):
        records = {}
        service = make_service(records)
        a = service.create_rule(ROSTER, make_draft(priority=1))
        service.create_rule(ROSTER, make_draft(priority=2))
        records[a.id]["priority"] = 2
        assert not service.validate_priority_consistency(ROSTER)

    def test_update_rule_priorities(self):
        service = make_service()
        a = service.create_rule(ROSTER, make_draft(priority=1))
        b = service.create_rule(ROSTER, make_draft(priority=2))
        service.update_rule_priorities([PriorityUpdate(a.id, 1, 2), PriorityUpdate(b.id, 2, 1)])
        assert [r.id for r in service.get_rules_by_roster(ROSTER)] == [b.id, a.id]
        assert service.validate_priority_consistency(ROSTER)

    def test_rules_by_type(self):
        service = make_service()
        service.create_rule(ROSTER, make_draft("FRONT_ROW", ["s1"], 1))
        apart = service.create_rule(ROSTER, make_draft("SEPARATE", ["s1", "s2"], 2))
        assert service.get_rules_by_type(ROSTER, "separate") == [apart]


class TestFiltering:
    def setup_method(self):
        self.service = make_service()
        self.students = {
            "s1": Student("s1", ROSTER, "Ada", "Park"),
            "s2": Student("s2", ROSTER, "Ben", "Cole"),
        }
        self.front = self.service.create_rule(ROSTER, make_draft("FRONT_ROW", ["s1"], 1))
        self.apart = self.service.create_rule(ROSTER, make_draft("SEPARATE", ["s1", "s2"], 2))
        self.service.toggle_rule_active(self.front.id)

    def test_status_and_type(self):
        active = self.service.get_filtered_rules(ROSTER, status="active")
        assert [r.id for r in active] == [self.apart.id]
        by_type = self.service.get_filtered_rules(ROSTER, rule_type="FRONT_ROW")
        assert [r.id for r in by_type] == [self.front.id]

    def test_search_matches_student_names_and_rule_text(self):
        found = self.service.get_filtered_rules(ROSTER, search="ben", students_by_id=self.students)
        assert [r.id for r in found] == [self.apart.id]
        found = self.service.get_filtered_rules(ROSTER, search="front row")
        assert [r.id for r in found] == [self.front.id]

    def test_sort_order(self):
        ordered = self.service.get_filtered_rules(ROSTER, sort_order="desc")
        assert [r.priority for r in ordered] == [2, 1]
        by_student = self.service.get_filtered_rules(ROSTER, student_ids=["s2"])
        assert [r.id for r in by_student] == [self.apart.id]


if __name__ == "__main__":
    pytest.main([__file__, "-v"])
