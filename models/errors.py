"""Exception hierarchy for rule management, reordering and placement."""

from dataclasses import dataclass
from typing import List, Optional


@dataclass(frozen=True)
class FieldError:
    field: str
    message: str


class SeatingError(Exception):
    """Base class for every error raised by the seating planner."""


class RuleValidationError(SeatingError):
    def __init__(self, errors: List[FieldError]):
        self.errors = list(errors)
        super().__init__(
            "Rule validation failed: " + ", ".join(e.message for e in self.errors)
        )


class RuleNotFoundError(SeatingError):
    def __init__(self, rule_id: str):
        self.rule_id = rule_id
        super().__init__(f"Rule not found: {rule_id}")


class PlacementInputError(SeatingError, ValueError):
    """Malformed placement input (no layout, no seats, bad seat keys)."""


class PlacementInProgressError(SeatingError):
    pass


class ReorderError(SeatingError):
    """Base for every way a drag-to-reorder can fail."""


class InvalidReorderRequest(ReorderError):
    pass


class InconsistentPrioritiesError(ReorderError):
    """The rule list was already inconsistent before the reorder started."""

    def __init__(self, issues: List[str]):
        self.issues = list(issues)
        super().__init__(f"Priority validation failed: {', '.join(self.issues)}")


class RenumberingError(ReorderError):
    """The renumbered list failed validation."""

    def __init__(self, issues: List[str]):
        self.issues = list(issues)
        super().__init__(
            f"Priority validation failed after reordering: {', '.join(self.issues)}"
        )


class PersistenceError(ReorderError):
    def __init__(self, attempts: int, cause: Optional[BaseException] = None):
        self.attempts = attempts
        self.cause = cause
        super().__init__(f"Database update failed after {attempts} attempts: {cause}")


class ConsistencyError(ReorderError):
    """After a successful write, the re-read priorities are inconsistent or could not be read."""

    def __init__(self, roster_id: str, cause: Optional[BaseException] = None):
        self.roster_id = roster_id
        self.cause = cause
        detail = f": {cause}" if cause is not None else ""
        super().__init__(
            "Priority consistency validation failed after database update "
            f"(roster {roster_id}){detail}"
        )


class ReorderInProgressError(ReorderError):
    pass
