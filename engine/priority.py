"""Pure helpers over priority-ordered rule lists."""

from dataclasses import replace
from datetime import datetime
from numbers import Real
from typing import List, Optional, Sequence, Tuple

from models.rule import Rule, PriorityUpdate
from config.defaults import PRIORITY_LEVELS, LOWEST_PRIORITY_LEVEL


def _is_integral(value) -> bool:
    if isinstance(value, bool):
        return False
    if isinstance(value, int):
        return True
    return isinstance(value, float) and value.is_integer()


def sort_by_priority(rules: Sequence[Rule]) -> List[Rule]:
    """Ascending priority (1 first). Stable for equal priorities."""
    return sorted(rules, key=lambda r: r.priority)


def validate_consistency(rules: Sequence[Rule]) -> Tuple[bool, List[str]]:
    """Check uniqueness, positivity and integrality of priorities.

    Returns (is_valid, issues); every issue found is listed.
    """
    issues = []
    priorities = [r.priority for r in rules]

    if len(priorities) != len(set(priorities)):
        issues.append("Duplicate priority values found")

    if any(not isinstance(p, Real) or isinstance(p, bool) or p <= 0 for p in priorities):
        issues.append("Priority values must be positive integers")

    if any(not _is_integral(p) for p in priorities):
        issues.append("Priority values must be integers")

    return len(issues) == 0, issues


def calculate_priority_updates(
    original_rules: Sequence[Rule],
    reordered_rules: Sequence[Rule],
) -> List[PriorityUpdate]:
    """Priority changes implied by ``reordered_rules`` (position i -> priority i+1).

    Rules whose priority already matches their new position are omitted.
    ``original_rules`` supplies the old priority when the reordered copies
    were already renumbered.
    """
    old = {r.id: r.priority for r in original_rules}
    updates = []
    for index, rule in enumerate(reordered_rules):
        new_priority = index + 1
        old_priority = old.get(rule.id, rule.priority)
        if old_priority != new_priority:
            updates.append(PriorityUpdate(rule.id, old_priority, new_priority))
    return updates


def get_next_priority(existing_rules: Sequence[Rule]) -> int:
    if not existing_rules:
        return 1
    return max(r.priority for r in existing_rules) + 1


def normalize_priorities(rules: Sequence[Rule]) -> List[Rule]:
    """Sort, then renumber 1..N. Returns copies; inputs are untouched."""
    return [replace(rule, priority=i + 1) for i, rule in enumerate(sort_by_priority(rules))]


def move_rule(rules: Sequence[Rule], source_index: int, destination_index: int) -> List[Rule]:
    """Remove the rule at ``source_index`` and reinsert it at ``destination_index``."""
    if not 0 <= source_index < len(rules):
        raise IndexError(f"Invalid source index {source_index} for rule reordering")
    if not 0 <= destination_index < len(rules):
        raise IndexError(f"Invalid destination index {destination_index} for rule reordering")
    reordered = list(rules)
    moved = reordered.pop(source_index)
    reordered.insert(destination_index, moved)
    return reordered


def renumber(rules: Sequence[Rule], stamp: Optional[datetime] = None) -> List[Rule]:
    """Copies with contiguous priorities index+1, optionally stamping ``updated_at``."""
    if stamp is None:
        return [replace(rule, priority=i + 1) for i, rule in enumerate(rules)]
    return [replace(rule, priority=i + 1, updated_at=stamp) for i, rule in enumerate(rules)]


def get_priority_level(priority: int, total_rules: int) -> str:
    """Accessible label for a priority within a list of ``total_rules``."""
    if total_rules <= 0:
        return LOWEST_PRIORITY_LEVEL
    share = (total_rules - priority + 1) / total_rules
    for threshold, label in PRIORITY_LEVELS:
        if share >= threshold:
            return label
    return LOWEST_PRIORITY_LEVEL


def format_priority_ordinal(priority: int) -> str:
    if priority % 10 == 1 and priority % 100 != 11:
        return f"{priority}st"
    if priority % 10 == 2 and priority % 100 != 12:
        return f"{priority}nd"
    if priority % 10 == 3 and priority % 100 != 13:
        return f"{priority}rd"
    return f"{priority}th"
