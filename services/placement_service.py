"""Placement orchestration: input checks, advisory analysis, and a safe run boundary."""

import logging
import time
from typing import Callable, Dict, List, Optional, Sequence

from models.seat_map import Layout, SeatPosition
from models.student import Student
from models.rule import Rule, RuleType
from models.placement import (
    ConflictType, PlacementOptions, PlacementProgress, PlacementRecommendations,
    PlacementResult, PlacementValidation, RuleConflict,
)
from models.errors import FieldError, PlacementInputError
from engine.placement_algorithm import build_context, create_seat_map, run_placement
from engine.progress import ProgressChannel
from services.rule_service import RuleService

log = logging.getLogger(__name__)

# Description prefixes of failed results: a rejected concurrent call vs a run that crashed
SERVICE_BUSY_PREFIX = "Service busy"
SERVICE_ERROR_PREFIX = "Service error"


def failed_result(students: Sequence[Student], description: str, execution_time: float = 0.0) -> PlacementResult:
    """A result with no placements and a single IMPOSSIBLE conflict."""
    ids = tuple(s.id for s in students or ())
    return PlacementResult(
        success=False,
        placements=(),
        rule_satisfaction=(),
        conflicts=(RuleConflict(
            rule_ids=(),
            conflict_type=ConflictType.IMPOSSIBLE,
            description=description,
            affected_students=ids,
        ),),
        unplaced_students=ids,
        execution_time=execution_time,
    )


def is_busy_rejection(result: PlacementResult) -> bool:
    """True for the result returned when another placement was already running."""
    return (
        not result.success
        and len(result.conflicts) == 1
        and result.conflicts[0].description.startswith(SERVICE_BUSY_PREFIX)
    )


class PlacementService:
    """Runs at most one placement at a time."""

    def __init__(self, rule_service: RuleService, placement_config: Optional[dict] = None):
        self.rule_service = rule_service
        self.placement_config = placement_config
        self._channel: Optional[ProgressChannel] = None

    @property
    def is_running(self) -> bool:
        return self._channel is not None

    def validate_placement_inputs(
        self,
        roster_id: str,
        students: Sequence[Student],
        layout: Optional[Layout],
        options: Optional[PlacementOptions] = None,
    ) -> PlacementValidation:
        options = options or PlacementOptions()
        errors: List[FieldError] = []
        warnings: List[str] = []

        if not roster_id:
            errors.append(FieldError("roster_id", "Roster ID is required"))

        if not students:
            errors.append(FieldError("students", "No students provided for placement"))
        else:
            missing = sum(1 for s in students if not s.id)
            if missing:
                errors.append(FieldError("students", f"{missing} student(s) have no ID"))
            ids = [s.id for s in students if s.id]
            if len(ids) != len(set(ids)):
                errors.append(FieldError("students", "Student IDs must be unique"))

        if layout is None:
            errors.append(FieldError("layout", "Layout is required"))
        elif not layout.seats:
            errors.append(FieldError("layout.seats", "Layout has no seats defined"))
        else:
            try:
                usable = len(build_context(layout, create_seat_map(layout)).available_seats)
            except PlacementInputError as exc:
                errors.append(FieldError("layout", str(exc)))
            else:
                if students and len(students) > usable and not options.allow_partial_placement:
                    errors.append(FieldError(
                        "layout.seats",
                        f"Too many students ({len(students)}) for available seats ({usable})",
                    ))

        if roster_id:
            warnings.extend(self._rule_warnings(roster_id, students))

        return PlacementValidation(valid=not errors, errors=errors, warnings=warnings)

    def _rule_warnings(self, roster_id: str, students: Sequence[Student]) -> List[str]:
        warnings = []
        rules = self.rule_service.get_active_rules(roster_id)

        if not rules:
            warnings.append("No active rules found - placement will be random")

        if students:
            known = {s.id for s in students}
            outside = [r for r in rules if any(sid not in known for sid in r.student_ids)]
            if outside:
                warnings.append(f"{len(outside)} rule(s) reference students not in current roster")

        separate = [r for r in rules if r.type is RuleType.SEPARATE]
        together = [r for r in rules if r.type is RuleType.TOGETHER]
        if any(set(s.student_ids) & set(t.student_ids) for s in separate for t in together):
            warnings.append(
                "Conflicting rules found: some students have both SEPARATE and TOGETHER constraints"
            )
        return warnings

    def execute_auto_placement(
        self,
        roster_id: str,
        students: Sequence[Student],
        layout: Optional[Layout],
        options: Optional[PlacementOptions] = None,
        on_progress: Optional[Callable[[PlacementProgress], None]] = None,
        existing_placements: Optional[Dict[str, SeatPosition]] = None,
    ) -> PlacementResult:
        """Fetch active rules and run the algorithm. Never raises."""
        if self._channel is not None:
            log.warning("Placement for roster %s rejected: another run is active", roster_id)
            return failed_result(students, f"{SERVICE_BUSY_PREFIX}: a placement is already in progress")

        started = time.perf_counter()
        channel = ProgressChannel.wrap(on_progress)
        self._channel = channel
        try:
            rules: List[Rule] = self.rule_service.get_active_rules(roster_id)
            return run_placement(
                students, rules, layout,
                options=options,
                progress=channel,
                existing_placements=existing_placements,
                placement_config=self.placement_config,
            )
        except Exception as exc:
            log.exception("Placement failed for roster %s", roster_id)
            return failed_result(students, f"{SERVICE_ERROR_PREFIX}: {exc}", time.perf_counter() - started)
        finally:
            channel.close()
            self._channel = None

    def cancel_placement(self):
        """Stop progress notifications for the live run; the run itself completes."""
        if self._channel is not None:
            self._channel.close()
            self._channel = None

    def get_placement_recommendations(
        self,
        roster_id: str,
        students: Sequence[Student],
        layout: Optional[Layout],
        options: Optional[PlacementOptions] = None,
    ) -> PlacementRecommendations:
        """Advisory analysis of capacity, rule mix and furniture. Does not place anyone."""
        validation = self.validate_placement_inputs(roster_id, students, layout, options)
        if not validation.valid:
            return PlacementRecommendations(
                feasible=False,
                recommendations=["Fix validation errors before attempting placement"],
                potential_issues=[e.message for e in validation.errors],
            )

        recommendations: List[str] = []
        issues: List[str] = []
        rules = self.rule_service.get_active_rules(roster_id)
        seat_count = len(build_context(layout, create_seat_map(layout)).available_seats)
        student_count = len(students)

        if student_count == seat_count:
            recommendations.append("Perfect capacity match - all students can be seated")
        elif student_count < seat_count:
            recommendations.append(
                f"{seat_count - student_count} empty seat(s) will remain - good flexibility for rules"
            )
        else:
            issues.append(
                f"{student_count - seat_count} student(s) will be left without a seat"
            )

        if not rules:
            recommendations.append("Add placement rules to optimize seating arrangement")
            recommendations.append("Students will be placed randomly without rules")
        else:
            recommendations.append(f"{len(rules)} active rule(s) will guide placement")
            kinds = {r.type for r in rules}
            if RuleType.SEPARATE in kinds and RuleType.TOGETHER in kinds:
                issues.append("Mixed SEPARATE and TOGETHER rules may be difficult to satisfy")

            constrained = {sid for r in rules for sid in r.student_ids}
            free = sum(1 for s in students if s.id not in constrained)
            if free == 0:
                issues.append("All students have rule constraints - limited placement flexibility")
            else:
                recommendations.append(
                    f"{free} student(s) have no specific constraints - will fill remaining seats"
                )

        if layout.furniture_of_type("desk"):
            recommendations.append("Teacher desk detected - NEAR_TEACHER rules will be effective")
        elif any(r.type is RuleType.NEAR_TEACHER for r in rules):
            issues.append("No teacher desk in layout - NEAR_TEACHER rules will use the front row")
        if layout.furniture_of_type("door"):
            recommendations.append("Door detected - NEAR_DOOR rules will be effective")
        elif any(r.type is RuleType.NEAR_DOOR for r in rules):
            issues.append("No door in layout - NEAR_DOOR rules will use the edge seats")

        return PlacementRecommendations(
            feasible=True,
            recommendations=recommendations,
            potential_issues=validation.warnings + issues,
        )
