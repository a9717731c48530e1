"""Validated rule CRUD and priority management on top of a RuleStore."""

import logging
from dataclasses import replace
from datetime import datetime
from typing import Dict, Iterable, List, Optional, Sequence

from models.rule import PriorityUpdate, Rule, RuleType
from models.student import Student
from models.errors import FieldError, RuleNotFoundError, RuleValidationError
from data.rule_store import RuleStore
from data.validator import RuleValidation, validate_rule_draft
from engine.priority import get_next_priority, sort_by_priority, validate_consistency
from config.defaults import RULE_SORT_FIELDS, DEFAULT_RULE_SORT

log = logging.getLogger(__name__)

RULE_FIELDS = ("roster_id", "priority", "type", "student_ids", "is_active")


class RuleService:
    def __init__(self, store: RuleStore):
        self.store = store

    # --- Validation ---

    def validate(self, draft: dict) -> RuleValidation:
        return validate_rule_draft(draft)

    def _require_valid(self, draft: dict):
        validation = self.validate(draft)
        if not validation.valid:
            raise RuleValidationError(validation.errors)

    # --- CRUD ---

    def create_rule(self, roster_id: str, draft: dict) -> Rule:
        """Validate, persist, and return the rule as re-read from the store."""
        merged = {"is_active": True, **draft, "roster_id": roster_id}
        if merged.get("priority") is None:
            merged["priority"] = get_next_priority(self.get_rules_by_roster(roster_id))
        self._require_valid(merged)

        now = datetime.now()
        record = {field: merged[field] for field in RULE_FIELDS}
        record["type"] = RuleType.parse(record["type"]).value
        record["student_ids"] = list(record["student_ids"])
        record.update(created_at=now, updated_at=now)

        rule_id = self.store.create(record)
        log.info("Created %s rule %s (priority %s)", record["type"], rule_id, record["priority"])
        return self.get_rule(rule_id)

    def get_rule(self, rule_id: str) -> Rule:
        record = self.store.get_by_id(rule_id)
        if record is None:
            raise RuleNotFoundError(rule_id)
        return Rule.from_record(record)

    def update_rule(self, rule_id: str, updates: dict) -> Rule:
        """Merge ``updates`` into the stored rule and re-validate before writing."""
        current = self.get_rule(rule_id).to_record()
        changes = {k: v for k, v in updates.items() if k in RULE_FIELDS}
        merged = {**current, **changes}
        self._require_valid(merged)

        if "type" in changes:
            changes["type"] = RuleType.parse(changes["type"]).value
        changes["updated_at"] = datetime.now()
        self.store.update(rule_id, changes)
        log.info("Updated rule %s: %s", rule_id, ", ".join(sorted(k for k in changes if k != "updated_at")))
        return self.get_rule(rule_id)

    def delete_rule(self, rule_id: str):
        """Remaining priorities are not renumbered."""
        self.store.delete(rule_id)
        log.info("Deleted rule %s", rule_id)

    def toggle_rule_active(self, rule_id: str) -> Rule:
        rule = self.get_rule(rule_id)
        return self.update_rule(rule_id, {"is_active": not rule.is_active})

    # --- Queries ---

    def get_rules_by_roster(self, roster_id: str) -> List[Rule]:
        return sort_by_priority(Rule.from_record(r) for r in self.store.list_by_roster(roster_id))

    def get_active_rules(self, roster_id: str) -> List[Rule]:
        return [r for r in self.get_rules_by_roster(roster_id) if r.is_active]

    def get_inactive_rules(self, roster_id: str) -> List[Rule]:
        return [r for r in self.get_rules_by_roster(roster_id) if not r.is_active]

    def get_rules_by_type(self, roster_id: str, rule_type) -> List[Rule]:
        kind = RuleType.parse(rule_type)
        return [r for r in self.get_rules_by_roster(roster_id) if r.type is kind]

    def get_max_priority(self, roster_id: str) -> int:
        rules = self.get_rules_by_roster(roster_id)
        return max((r.priority for r in rules), default=0)

    def search_rules(
        self,
        rules: Iterable[Rule],
        search: str,
        students_by_id: Optional[Dict[str, Student]] = None,
    ) -> List[Rule]:
        """Case-insensitive match on type name, description, or student names."""
        needle = (search or "").strip().lower()
        if not needle:
            return list(rules)
        students_by_id = students_by_id or {}
        matches = []
        for rule in rules:
            haystack = [rule.type.value, rule.type.display_name, rule.type.description]
            for sid in rule.student_ids:
                student = students_by_id.get(sid)
                if student:
                    haystack.append(student.full_name)
            if any(needle in text.lower() for text in haystack):
                matches.append(rule)
        return matches

    def get_filtered_rules(
        self,
        roster_id: str,
        status: str = "all",
        rule_type=None,
        search: str = "",
        students_by_id: Optional[Dict[str, Student]] = None,
        student_ids: Sequence[str] = (),
        sort_by: str = DEFAULT_RULE_SORT,
        sort_order: str = "asc",
    ) -> List[Rule]:
        rules = self.get_rules_by_roster(roster_id)

        if status == "active":
            rules = [r for r in rules if r.is_active]
        elif status == "inactive":
            rules = [r for r in rules if not r.is_active]

        if rule_type:
            kind = RuleType.parse(rule_type)
            rules = [r for r in rules if r.type is kind]

        if student_ids:
            wanted = set(student_ids)
            rules = [r for r in rules if wanted.intersection(r.student_ids)]

        rules = self.search_rules(rules, search, students_by_id)

        field = sort_by if sort_by in RULE_SORT_FIELDS else DEFAULT_RULE_SORT
        key = (lambda r: r.type.value) if field == "type" else (lambda r: getattr(r, field))
        return sorted(rules, key=key, reverse=(sort_order == "desc"))

    # --- Priorities ---

    def reorder_rules(self, roster_id: str, ordered_rules: Sequence[Rule]) -> List[Rule]:
        """Renumber to index+1 in the given order and persist all rules in one swap."""
        foreign = [r for r in ordered_rules if r.roster_id != roster_id]
        if foreign:
            raise RuleValidationError([FieldError(
                "roster_id", f"{len(foreign)} rule(s) do not belong to roster {roster_id}",
            )])

        now = datetime.now()
        renumbered = [replace(r, priority=i + 1, updated_at=now) for i, r in enumerate(ordered_rules)]
        self.store.bulk_reorder(
            roster_id,
            [{"id": r.id, "roster_id": roster_id, "priority": r.priority, "updated_at": now}
             for r in renumbered],
        )
        log.info("Reordered %d rules for roster %s", len(renumbered), roster_id)
        return renumbered

    def update_rule_priorities(self, updates: Sequence[PriorityUpdate]):
        for update in updates:
            self.store.update(update.rule_id, {
                "priority": update.new_priority,
                "updated_at": datetime.now(),
            })
        log.info("Applied %d priority updates", len(updates))

    def validate_priority_consistency(self, roster_id: str) -> bool:
        """Re-read from storage and check the priorities are unique positive integers."""
        valid, issues = validate_consistency(self.get_rules_by_roster(roster_id))
        if not valid:
            log.error("Priority consistency check failed for roster %s: %s", roster_id, "; ".join(issues))
        return valid
