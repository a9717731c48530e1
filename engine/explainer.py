"""Generates human-readable text for rules, conflicts and placement results."""

from typing import Dict, List, Optional, Sequence

from models.rule import Rule
from models.student import Student
from models.placement import ConflictType, PlacementResult


def student_label(student_id: str, students_by_id: Optional[Dict[str, Student]] = None) -> str:
    student = (students_by_id or {}).get(student_id)
    return student.full_name if student else student_id


def student_list(student_ids: Sequence[str], students_by_id: Optional[Dict[str, Student]] = None) -> str:
    return ", ".join(student_label(sid, students_by_id) for sid in student_ids)


def describe_rule(rule: Rule, students_by_id: Optional[Dict[str, Student]] = None) -> str:
    """e.g. 'Must Not Sit Together: Ada Park, Ben Cole'."""
    return f"{rule.type.display_name}: {student_list(rule.student_ids, students_by_id)}"


def explain_insufficient_seats(rule: Rule, needed: int, available: int) -> str:
    return (
        f"{rule.type.display_name} (priority {rule.priority}) needs {needed} seat(s) "
        f"but only {available} remain"
    )


def explain_impossible(rule: Rule, detail: str) -> str:
    return f"{rule.type.display_name} (priority {rule.priority}) cannot be satisfied: {detail}"


def explain_competing(rule: Rule, blocking_rules: Sequence[Rule], detail: str) -> str:
    if blocking_rules:
        names = ", ".join(
            f"{r.type.display_name} (priority {r.priority})" for r in blocking_rules
        )
        return (
            f"{rule.type.display_name} (priority {rule.priority}) {detail}; "
            f"higher-priority placements kept: {names}"
        )
    return f"{rule.type.display_name} (priority {rule.priority}) {detail}"


def explain_unseated(student_ids: Sequence[str], students_by_id: Optional[Dict[str, Student]],
                     partial_allowed: bool) -> str:
    names = student_list(student_ids, students_by_id)
    if partial_allowed:
        return f"Partial placement: no seat left for {names}"
    return f"Too many students for the available seats: no seat left for {names}"


def explain_result(
    result: PlacementResult,
    students_by_id: Optional[Dict[str, Student]] = None,
) -> List[str]:
    """Produce a step-by-step summary of a placement run."""
    steps = []
    total = len(result.placements) + len(result.unplaced_students)

    steps.append(
        f"Step 1 - Seating: {len(result.placements)} of {total} students seated "
        f"in {result.execution_time:.2f}s"
    )

    steps.append(
        f"Step 2 - Rules: {result.satisfied_count} of {len(result.rule_satisfaction)} "
        f"rules satisfied"
    )

    for report in result.rule_satisfaction:
        if not report.satisfied:
            steps.append(
                f"  - Priority {report.priority} {report.rule_type}: {report.reason or 'not satisfied'}"
            )

    counts = {t: len(result.conflicts_of_type(t)) for t in ConflictType}
    steps.append(
        f"Step 3 - Conflicts: {counts[ConflictType.IMPOSSIBLE]} impossible, "
        f"{counts[ConflictType.COMPETING]} competing, "
        f"{counts[ConflictType.INSUFFICIENT_SEATS]} insufficient seats"
    )

    if result.unplaced_students:
        steps.append(
            f"Note: Unseated students => {student_list(result.unplaced_students, students_by_id)}"
        )

    steps.append(f"Result: {'success' if result.success else 'needs attention'}")
    return steps
