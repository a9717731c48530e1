from dataclasses import dataclass, field
from datetime import datetime
from enum import Enum
from typing import List, Optional


class RuleType(str, Enum):
    """Placement rule kinds. Inherits from ``str`` so records store the plain name."""

    SEPARATE = "SEPARATE"
    TOGETHER = "TOGETHER"
    FRONT_ROW = "FRONT_ROW"
    BACK_ROW = "BACK_ROW"
    NEAR_TEACHER = "NEAR_TEACHER"
    NEAR_DOOR = "NEAR_DOOR"

    @property
    def display_name(self) -> str:
        return RULE_TYPE_INFO[self]["name"]

    @property
    def description(self) -> str:
        return RULE_TYPE_INFO[self]["description"]

    @property
    def min_students(self) -> int:
        return 2 if self in GROUP_RULE_TYPES else 1

    @classmethod
    def parse(cls, value) -> Optional["RuleType"]:
        """Return the matching member, or None for unknown values."""
        if isinstance(value, cls):
            return value
        try:
            return cls(str(value).strip().upper())
        except ValueError:
            return None


RULE_TYPE_INFO = {
    RuleType.SEPARATE: {
        "name": "Must Not Sit Together",
        "description": "Selected students should not be seated adjacent to each other",
    },
    RuleType.TOGETHER: {
        "name": "Must Sit Together",
        "description": "Selected students should be seated in adjacent seats",
    },
    RuleType.FRONT_ROW: {
        "name": "Front Row Preference",
        "description": "Selected students should be seated in the front rows",
    },
    RuleType.BACK_ROW: {
        "name": "Back Row Preference",
        "description": "Selected students should be seated in the back rows",
    },
    RuleType.NEAR_TEACHER: {
        "name": "Near Teacher",
        "description": "Selected students should be seated near the teacher desk",
    },
    RuleType.NEAR_DOOR: {
        "name": "Near Door",
        "description": "Selected students should be seated near the classroom door",
    },
}

GROUP_RULE_TYPES = frozenset({RuleType.SEPARATE, RuleType.TOGETHER})
LOCATION_RULE_TYPES = frozenset({
    RuleType.FRONT_ROW, RuleType.BACK_ROW, RuleType.NEAR_TEACHER, RuleType.NEAR_DOOR,
})


@dataclass
class Rule:
    id: str
    roster_id: str
    priority: int          # 1 = applied first
    type: RuleType
    student_ids: List[str] = field(default_factory=list)
    is_active: bool = True
    created_at: datetime = field(default_factory=datetime.now)
    updated_at: datetime = field(default_factory=datetime.now)

    def to_record(self) -> dict:
        return {
            "id": self.id,
            "roster_id": self.roster_id,
            "priority": self.priority,
            "type": self.type.value,
            "student_ids": list(self.student_ids),
            "is_active": self.is_active,
            "created_at": self.created_at,
            "updated_at": self.updated_at,
        }

    @classmethod
    def from_record(cls, record: dict) -> "Rule":
        return cls(
            id=record["id"],
            roster_id=record["roster_id"],
            priority=record["priority"],
            type=RuleType(record["type"]),
            student_ids=list(record.get("student_ids", [])),
            is_active=bool(record.get("is_active", True)),
            created_at=record.get("created_at") or datetime.now(),
            updated_at=record.get("updated_at") or datetime.now(),
        )


@dataclass(frozen=True)
class PriorityUpdate:
    rule_id: str
    old_priority: int
    new_priority: int
