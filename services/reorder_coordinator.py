"""Drag-to-reorder protocol: validate, renumber, persist with retries, verify."""

import logging
import time
from dataclasses import dataclass, field
from datetime import datetime
from typing import Callable, List, Optional, Sequence

from models.rule import PriorityUpdate, Rule
from models.errors import (
    ConsistencyError, InconsistentPrioritiesError, InvalidReorderRequest,
    PersistenceError, RenumberingError, ReorderError, ReorderInProgressError,
    RuleNotFoundError, RuleValidationError,
)
from engine.priority import calculate_priority_updates, move_rule, renumber, validate_consistency
from services.rule_service import RuleService
from config.defaults import REORDER_MAX_ATTEMPTS, REORDER_RETRY_DELAY_SECONDS

log = logging.getLogger(__name__)


@dataclass(frozen=True)
class DragResult:
    source_index: int
    destination_index: Optional[int] = None


@dataclass
class ReorderOutcome:
    rules: List[Rule] = field(default_factory=list)
    updates: List[PriorityUpdate] = field(default_factory=list)
    error: Optional[ReorderError] = None

    @property
    def ok(self) -> bool:
        return self.error is None


class ReorderCoordinator:
    """One reorder in flight at a time; callers own any optimistic UI state."""

    def __init__(
        self,
        rule_service: RuleService,
        sleep: Callable[[float], None] = time.sleep,
        max_attempts: int = REORDER_MAX_ATTEMPTS,
        retry_delay: float = REORDER_RETRY_DELAY_SECONDS,
    ):
        self.rule_service = rule_service
        self.sleep = sleep
        self.max_attempts = max_attempts
        self.retry_delay = retry_delay
        self._busy = False

    @property
    def is_reordering(self) -> bool:
        return self._busy

    def attempt_reorder(
        self,
        drag: DragResult,
        rules: Sequence[Rule],
        roster_id: Optional[str],
    ) -> Optional[ReorderOutcome]:
        """Apply a drag gesture. Returns None for a no-op drop, else an outcome."""
        if drag.destination_index is None or drag.destination_index == drag.source_index:
            return None
        if self._busy:
            return ReorderOutcome(error=ReorderInProgressError("A reorder is already in progress"))

        self._busy = True
        try:
            applied, updates = self._reorder(drag, list(rules), roster_id)
            return ReorderOutcome(rules=applied, updates=updates)
        except ReorderError as exc:
            log.warning("Reorder failed for roster %s: %s", roster_id, exc)
            return ReorderOutcome(error=exc)
        finally:
            self._busy = False

    def _reorder(self, drag: DragResult, rules: List[Rule], roster_id: Optional[str]):
        if not rules:
            raise InvalidReorderRequest("No rules to reorder")
        if not roster_id or not isinstance(roster_id, str):
            raise InvalidReorderRequest("Invalid roster ID")
        foreign = [r for r in rules if r.roster_id != roster_id]
        if foreign:
            raise InvalidReorderRequest(f"{len(foreign)} rules do not belong to the current roster")

        valid, issues = validate_consistency(rules)
        if not valid:
            raise InconsistentPrioritiesError(issues)

        try:
            moved = move_rule(rules, drag.source_index, drag.destination_index)
        except IndexError as exc:
            raise InvalidReorderRequest(str(exc))
        reordered = renumber(moved, stamp=datetime.now())

        valid, issues = validate_consistency(reordered)
        if not valid:
            raise RenumberingError(issues)

        self._persist(roster_id, reordered)

        try:
            consistent = self.rule_service.validate_priority_consistency(roster_id)
        except Exception as exc:
            raise ConsistencyError(roster_id, cause=exc) from exc
        if not consistent:
            raise ConsistencyError(roster_id)

        updates = calculate_priority_updates(rules, reordered)
        log.info("Reordered rules for roster %s: %d priorities changed", roster_id, len(updates))
        return reordered, updates

    def _persist(self, roster_id: str, reordered: List[Rule]):
        last_error = None
        for attempt in range(1, self.max_attempts + 1):
            try:
                self.rule_service.reorder_rules(roster_id, reordered)
                return
            except (RuleValidationError, RuleNotFoundError) as exc:
                # Bad requests are not retried
                raise InvalidReorderRequest(str(exc)) from exc
            except Exception as exc:
                last_error = exc
                log.warning("Reorder write attempt %d/%d failed: %s", attempt, self.max_attempts, exc)
                if attempt < self.max_attempts:
                    self.sleep(self.retry_delay)
        raise PersistenceError(self.max_attempts, last_error)

