from dataclasses import dataclass, field
from enum import Enum
from typing import Dict, List, Optional, Tuple

from config.defaults import (
    DEFAULT_CLEAR_EXISTING, DEFAULT_MAX_ATTEMPTS,
    DEFAULT_PRIORITIZE_RULES, DEFAULT_ALLOW_PARTIAL_PLACEMENT,
)
from models.errors import FieldError
from models.seat_map import FurnitureItem, SeatMap, SeatPosition


class ConflictType(str, Enum):
    IMPOSSIBLE = "IMPOSSIBLE"                  # No assignment can satisfy the rule
    COMPETING = "COMPETING"                    # Lost to a higher-priority rule
    INSUFFICIENT_SEATS = "INSUFFICIENT_SEATS"  # Not enough free seats


@dataclass(frozen=True)
class StudentPlacement:
    student_id: str
    seat_position: SeatPosition
    applied_rule_ids: Tuple[str, ...] = ()  # Rules that chose this seat


@dataclass(frozen=True)
class RuleConflict:
    rule_ids: Tuple[str, ...]
    conflict_type: ConflictType
    description: str
    affected_students: Tuple[str, ...] = ()


@dataclass(frozen=True)
class RuleSatisfactionReport:
    rule_id: str
    rule_type: str
    satisfied: bool
    priority: int
    affected_students: Tuple[str, ...] = ()
    reason: Optional[str] = None


@dataclass(frozen=True)
class PlacementResult:
    success: bool
    placements: Tuple[StudentPlacement, ...]
    rule_satisfaction: Tuple[RuleSatisfactionReport, ...]
    conflicts: Tuple[RuleConflict, ...]
    unplaced_students: Tuple[str, ...]
    execution_time: float  # Seconds

    @property
    def placement_map(self) -> Dict[str, SeatPosition]:
        return {p.student_id: p.seat_position for p in self.placements}

    @property
    def satisfied_count(self) -> int:
        return sum(1 for r in self.rule_satisfaction if r.satisfied)

    def conflicts_of_type(self, conflict_type: ConflictType) -> List[RuleConflict]:
        return [c for c in self.conflicts if c.conflict_type == conflict_type]


@dataclass
class PlacementOptions:
    clear_existing: bool = DEFAULT_CLEAR_EXISTING
    max_attempts: int = DEFAULT_MAX_ATTEMPTS
    prioritize_rules: bool = DEFAULT_PRIORITIZE_RULES
    allow_partial_placement: bool = DEFAULT_ALLOW_PARTIAL_PLACEMENT


@dataclass(frozen=True)
class PlacementProgress:
    current_step: str
    rules_processed: int
    total_rules: int
    students_placed: int
    total_students: int
    current_rule: Optional[dict] = None  # {"id", "type", "description"}

    @property
    def fraction_complete(self) -> float:
        total = self.total_rules + self.total_students
        if total == 0:
            return 1.0
        return min(1.0, (self.rules_processed + self.students_placed) / total)


@dataclass
class PlacementContext:
    """Mutable state owned by exactly one placement run."""
    seat_map: SeatMap
    available_seats: List[SeatPosition]
    occupied_seats: Dict[str, str] = field(default_factory=dict)  # seat key -> student id
    furniture: List[FurnitureItem] = field(default_factory=list)

    def is_available(self, position: SeatPosition) -> bool:
        return position.key not in self.occupied_seats and position in self._available_set

    def occupy(self, position: SeatPosition, student_id: str):
        self.occupied_seats[position.key] = student_id
        self.available_seats.remove(position)
        self._available_set.discard(position)

    def __post_init__(self):
        self._available_set = set(self.available_seats)


@dataclass
class PlacementValidation:
    valid: bool = True
    errors: List[FieldError] = field(default_factory=list)
    warnings: List[str] = field(default_factory=list)


@dataclass
class PlacementRecommendations:
    feasible: bool
    recommendations: List[str] = field(default_factory=list)
    potential_issues: List[str] = field(default_factory=list)
