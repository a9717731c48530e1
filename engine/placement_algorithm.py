"""Priority-first greedy seat placement with conflict reporting."""

import logging
import time
from collections import deque
from typing import Dict, List, Optional, Sequence

from models.seat_map import Layout, SeatMap, SeatPosition, seat_grid
from models.student import Student
from models.rule import Rule, RuleType, LOCATION_RULE_TYPES
from models.placement import (
    ConflictType, PlacementContext, PlacementOptions, PlacementProgress,
    PlacementResult, RuleConflict, RuleSatisfactionReport, StudentPlacement,
)
from models.errors import PlacementInputError
from engine.geometry import (
    are_adjacent, calculate_distance, find_group_position, get_adjacent_seats,
    is_connected_group, largest_connected_block, score_all_seats,
)
from engine.optimizer import max_non_adjacent_count, select_non_adjacent_seats
from engine.priority import sort_by_priority
from engine.progress import ProgressChannel
from engine.explainer import (
    describe_rule, explain_competing, explain_impossible,
    explain_insufficient_seats, explain_unseated,
)
from config.defaults import (
    SCORE_NEUTRAL, LOCATION_SATISFACTION_THRESHOLD, SOLVER_TIME_LIMIT_SECONDS,
)

log = logging.getLogger(__name__)


def _position_in_grid(position: SeatPosition, layout: Layout, what: str) -> SeatPosition:
    if not isinstance(position, SeatPosition):
        raise PlacementInputError(f"{what} position {position!r} is not a seat position")
    if not position.in_bounds(layout.grid_rows, layout.grid_cols):
        raise PlacementInputError(
            f"{what} position {position.key} is outside the "
            f"{layout.grid_rows}x{layout.grid_cols} grid"
        )
    return position


def create_seat_map(layout: Optional[Layout]) -> SeatMap:
    """Parse a layout's ``"row-col"`` seat keys and furniture into a SeatMap.

    Raises PlacementInputError for a missing layout, a non-positive grid,
    zero seats, or any key/furniture position that cannot be placed on the grid.
    """
    if layout is None:
        raise PlacementInputError("A classroom layout is required")
    if layout.grid_rows <= 0 or layout.grid_cols <= 0:
        raise PlacementInputError(
            f"Layout grid must be at least 1x1, got {layout.grid_rows}x{layout.grid_cols}"
        )
    if not layout.seats:
        raise PlacementInputError("No seats available in layout")

    positions = []
    for key in layout.seats:
        try:
            position = SeatPosition.from_key(key)
        except ValueError:
            raise PlacementInputError(f"Invalid seat key '{key}'")
        positions.append(_position_in_grid(position, layout, "Seat"))

    teacher_desk: Sequence[SeatPosition] = ()
    door = None
    for item in layout.furniture:
        checked = [_position_in_grid(p, layout, item.type.capitalize()) for p in item.positions]
        # First occurrence wins
        if item.type == "desk" and not teacher_desk:
            teacher_desk = tuple(checked)
        elif item.type == "door" and door is None and checked:
            door = checked[0]

    return SeatMap(
        rows=layout.grid_rows,
        cols=layout.grid_cols,
        seats=seat_grid(layout.grid_rows, layout.grid_cols, positions),
        teacher_desk=teacher_desk,
        door=door,
    )


def build_context(layout: Layout, seat_map: SeatMap) -> PlacementContext:
    """Fresh run-private context; seats covered by furniture are unavailable."""
    covered = {p for item in layout.furniture for p in item.positions}
    available = [s for s in seat_map.all_seats() if s not in covered]
    return PlacementContext(
        seat_map=seat_map,
        available_seats=available,
        furniture=list(layout.furniture),
    )


class _PlacementRun:
    """State for a single call of ``run_placement``."""

    def __init__(self, students, rules, context, options, channel, cfg):
        self.students = students
        self.students_by_id = {s.id: s for s in students}
        self.context = context
        self.seat_map = context.seat_map
        self.options = options
        self.channel = channel
        self.threshold = cfg.get("satisfaction_threshold", LOCATION_SATISFACTION_THRESHOLD)
        self.time_limit = cfg.get("solver_time_limit", SOLVER_TIME_LIMIT_SECONDS)

        self.rules = sort_by_priority(rules)
        self.active_rules = [r for r in self.rules if r.is_active]
        self.rules_by_id = {r.id: r for r in self.rules}
        self.initial_seats = list(context.available_seats)

        self.placements: Dict[str, SeatPosition] = {}
        self.applied: Dict[str, List[str]] = {}
        self.placed_by: Dict[str, Optional[str]] = {}
        self.conflicts: List[RuleConflict] = []
        self.unplaced: List[str] = []
        self.rules_processed = 0
        self._score_tables: Dict[RuleType, Dict[SeatPosition, float]] = {}

    # ------------------------------------------------------------------
    # Bookkeeping
    # ------------------------------------------------------------------

    def publish(self, step: str, rule: Optional[Rule] = None):
        current = None
        if rule is not None:
            current = {
                "id": rule.id,
                "type": rule.type.value,
                "description": describe_rule(rule, self.students_by_id),
            }
        self.channel.publish(PlacementProgress(
            current_step=step,
            rules_processed=self.rules_processed,
            total_rules=len(self.active_rules),
            students_placed=len(self.placements),
            total_students=len(self.students),
            current_rule=current,
        ))

    def place(self, student_id: str, seat: SeatPosition, rule: Optional[Rule] = None):
        self.context.occupy(seat, student_id)
        self.placements[student_id] = seat
        self.applied.setdefault(student_id, [])
        if rule is not None:
            self.applied[student_id].append(rule.id)
        self.placed_by.setdefault(student_id, rule.id if rule else None)
        self.publish(f"Placed {self.students_by_id[student_id].full_name} at {seat.key}", rule)

    def credit(self, student_id: str, rule: Rule):
        """Record that an existing seat also serves ``rule``."""
        if rule.id not in self.applied.setdefault(student_id, []):
            self.applied[student_id].append(rule.id)

    def conflict(self, rules: Sequence[Rule], kind: ConflictType, description: str,
                 students: Sequence[str]):
        log.debug("%s conflict: %s", kind.value, description)
        self.conflicts.append(RuleConflict(
            rule_ids=tuple(r.id for r in rules),
            conflict_type=kind,
            description=description,
            affected_students=tuple(students),
        ))

    def members(self, rule: Rule) -> List[str]:
        """Rule student ids present in this run, de-duplicated, in rule order."""
        return [sid for sid in dict.fromkeys(rule.student_ids) if sid in self.students_by_id]

    def blocking_rules(self, rule: Rule, seats: Sequence[SeatPosition]) -> List[Rule]:
        """Higher-priority rules whose placements occupy any of ``seats``."""
        found = {}
        for seat in seats:
            occupant = self.context.occupied_seats.get(seat.key)
            rule_id = self.placed_by.get(occupant) if occupant else None
            if rule_id and rule_id != rule.id and rule_id in self.rules_by_id:
                found[rule_id] = self.rules_by_id[rule_id]
        return sort_by_priority(found.values())

    def score_table(self, rule_type: RuleType) -> Dict[SeatPosition, float]:
        if rule_type not in self._score_tables:
            self._score_tables[rule_type] = score_all_seats(rule_type, self.seat_map)
        return self._score_tables[rule_type]

    def preference_scores(self, student_id: str) -> Dict[SeatPosition, float]:
        """Mean of the student's active location-rule scores per seat; neutral without any."""
        tables = [
            self.score_table(r.type) for r in self.active_rules
            if r.type in LOCATION_RULE_TYPES and student_id in r.student_ids
        ]
        if not tables:
            return {s: SCORE_NEUTRAL for s in self.initial_seats}
        return {
            s: sum(t.get(s, 0) for t in tables) / len(tables)
            for s in self.initial_seats
        }

    # ------------------------------------------------------------------
    # Rule passes
    # ------------------------------------------------------------------

    def apply_rule(self, rule: Rule):
        if rule.type is RuleType.TOGETHER:
            self.apply_together(rule)
        elif rule.type is RuleType.SEPARATE:
            self.apply_separate(rule)
        elif rule.type in LOCATION_RULE_TYPES:
            self.apply_location(rule)
        else:
            raise AssertionError(f"Unhandled rule type: {rule.type}")

    def apply_together(self, rule: Rule):
        members = self.members(rule)
        seated = [m for m in members if m in self.placements]
        pending = [m for m in members if m not in self.placements]

        if seated and pending:
            self.extend_group(rule, seated, pending)
            return
        if not pending:
            for m in seated:
                self.credit(m, rule)
            seats = [self.placements[m] for m in seated]
            if len(seats) > 1 and not is_connected_group(seats, diagonal=True):
                self.conflict(
                    [rule] + self.blocking_rules(rule, seats), ConflictType.COMPETING,
                    explain_competing(rule, self.blocking_rules(rule, seats),
                                      "found its students already seated apart"),
                    seated,
                )
            return

        group = find_group_position(len(pending), self.context.available_seats, self.seat_map)
        if group is None:
            self.conflict(
                [rule], ConflictType.INSUFFICIENT_SEATS,
                explain_insufficient_seats(rule, len(pending), len(self.context.available_seats)),
                pending,
            )
            return

        # Diagonal contact counts as together
        if len(group) > 1 and not is_connected_group(group, diagonal=True):
            if largest_connected_block(self.initial_seats, diagonal=True) < len(group):
                self.conflict(
                    [rule], ConflictType.IMPOSSIBLE,
                    explain_impossible(
                        rule, f"the room has no block of {len(group)} connected seats"
                    ),
                    pending,
                )
            else:
                occupied = [s for s in self.initial_seats if not self.context.is_available(s)]
                blockers = self.blocking_rules(rule, occupied)
                self.conflict(
                    [rule] + blockers, ConflictType.COMPETING,
                    explain_competing(rule, blockers, "was seated close together but not side by side"),
                    pending,
                )

        for student_id, seat in zip(pending, group):
            self.place(student_id, seat, rule)

    def extend_group(self, rule: Rule, seated: List[str], pending: List[str]):
        """Seat ``pending`` as close as possible to members placed by earlier rules."""
        for m in seated:
            self.credit(m, rule)
        anchors = [self.placements[m] for m in seated]
        available = self.context.available_seats
        if len(available) < len(pending):
            self.conflict(
                [rule], ConflictType.INSUFFICIENT_SEATS,
                explain_insufficient_seats(rule, len(pending), len(available)),
                pending,
            )
            return

        chosen: List[SeatPosition] = []
        seen = set(anchors)
        frontier = deque(anchors)
        while frontier and len(chosen) < len(pending):
            current = frontier.popleft()
            for neighbour in get_adjacent_seats(current, self.seat_map):
                if neighbour in seen or not self.context.is_available(neighbour):
                    continue
                seen.add(neighbour)
                chosen.append(neighbour)
                frontier.append(neighbour)
                if len(chosen) == len(pending):
                    break

        if len(chosen) < len(pending):
            group = anchors + chosen
            rest = [s for s in available if s not in seen]
            rest.sort(key=lambda s: (min(calculate_distance(s, g) for g in group), s))
            chosen.extend(rest[:len(pending) - len(chosen)])

        for student_id, seat in zip(pending, chosen):
            self.place(student_id, seat, rule)

        final = [self.placements[m] for m in self.members(rule)]
        if not is_connected_group(final, diagonal=True):
            around = [
                n for a in anchors for n in get_adjacent_seats(a, self.seat_map)
                if not self.context.is_available(n)
            ]
            blockers = self.blocking_rules(rule, around)
            self.conflict(
                [rule] + blockers, ConflictType.COMPETING,
                explain_competing(rule, blockers, "could not seat everyone beside the group"),
                pending,
            )

    def apply_separate(self, rule: Rule):
        members = self.members(rule)
        seated = [m for m in members if m in self.placements]
        pending = [m for m in members if m not in self.placements]
        fixed = [self.placements[m] for m in seated]
        for m in seated:
            self.credit(m, rule)

        if any(are_adjacent(a, b) for i, a in enumerate(fixed) for b in fixed[i + 1:]):
            blockers = self.blocking_rules(rule, fixed)
            self.conflict(
                [rule] + blockers, ConflictType.COMPETING,
                explain_competing(rule, blockers, "found its students already seated side by side"),
                seated,
            )
        if not pending:
            return

        scores = {sid: self.preference_scores(sid) for sid in pending}
        chosen = self.greedy_separate(pending, fixed, scores)
        if chosen is None:
            chosen = self.solve_separate(pending, fixed, scores)

        if chosen is None:
            if max_non_adjacent_count(self.initial_seats, self.time_limit) < len(members):
                self.conflict(
                    [rule], ConflictType.IMPOSSIBLE,
                    explain_impossible(
                        rule, f"the room cannot hold {len(members)} mutually non-adjacent seats"
                    ),
                    pending,
                )
            else:
                occupied = [s for s in self.initial_seats if not self.context.is_available(s)]
                blockers = self.blocking_rules(rule, occupied)
                self.conflict(
                    [rule] + blockers, ConflictType.COMPETING,
                    explain_competing(rule, blockers, "has no non-adjacent seats left"),
                    pending,
                )
            return

        for student_id in pending:
            self.place(student_id, chosen[student_id], rule)

    def greedy_separate(self, pending, fixed, scores) -> Optional[Dict[str, SeatPosition]]:
        """Pick each student's best non-adjacent seat; retry with different first seats."""
        for attempt in range(max(1, self.options.max_attempts)):
            taken = list(fixed)
            chosen: Dict[str, SeatPosition] = {}
            for index, student_id in enumerate(pending):
                candidates = [
                    s for s in self.context.available_seats
                    if s not in taken and not any(are_adjacent(s, t) for t in taken)
                ]
                candidates.sort(key=lambda s: (-scores[student_id].get(s, SCORE_NEUTRAL), s))
                pick = attempt if index == 0 else 0
                if pick >= len(candidates):
                    break
                chosen[student_id] = candidates[pick]
                taken.append(candidates[pick])
            if len(chosen) == len(pending):
                return chosen
            log.debug("Separate greedy attempt %d seated %d/%d", attempt + 1, len(chosen), len(pending))
        return None

    def solve_separate(self, pending, fixed, scores) -> Optional[Dict[str, SeatPosition]]:
        """Exact non-adjacent selection, then assign each student their best chosen seat."""
        combined = {
            s: sum(scores[sid].get(s, SCORE_NEUTRAL) for sid in pending) / len(pending)
            for s in self.context.available_seats
        }
        seats = select_non_adjacent_seats(
            self.context.available_seats, len(pending), combined,
            blocked=fixed, time_limit=self.time_limit,
        )
        if seats is None:
            return None
        remaining = list(seats)
        chosen = {}
        for student_id in pending:
            best = min(remaining, key=lambda s: (-scores[student_id].get(s, SCORE_NEUTRAL), s))
            remaining.remove(best)
            chosen[student_id] = best
        return chosen

    def apply_location(self, rule: Rule):
        table = self.score_table(rule.type)
        lost: List[str] = []
        lost_to: List[SeatPosition] = []
        no_seat: List[str] = []

        for student_id in self.members(rule):
            if student_id in self.placements:
                self.credit(student_id, rule)
                if table.get(self.placements[student_id], 0) < self.threshold:
                    lost.append(student_id)
                continue

            if not self.context.available_seats:
                no_seat.append(student_id)
                continue

            best = min(self.context.available_seats, key=lambda s: (-table.get(s, 0), s))
            best_score = table.get(best, 0)
            if best_score < self.threshold:
                better = [
                    s for s in self.initial_seats
                    if table.get(s, 0) > best_score and not self.context.is_available(s)
                ]
                if self.blocking_rules(rule, better):
                    lost.append(student_id)
                    lost_to.extend(better)
            self.place(student_id, best, rule)

        if lost:
            seats = lost_to + [self.placements[m] for m in lost if m in self.placements]
            blockers = self.blocking_rules(rule, seats)
            self.conflict(
                [rule] + blockers, ConflictType.COMPETING,
                explain_competing(rule, blockers, "could not give every student a preferred seat"),
                lost,
            )
        if no_seat:
            self.conflict(
                [rule], ConflictType.INSUFFICIENT_SEATS,
                explain_insufficient_seats(rule, len(no_seat), 0),
                no_seat,
            )

    def fill_remaining(self):
        """Input order into row-major free seats."""
        for student in self.students:
            if student.id in self.placements:
                continue
            if not self.context.available_seats:
                self.unplaced.append(student.id)
                continue
            self.place(student.id, self.context.available_seats[0])

        if self.unplaced:
            self.conflict(
                [], ConflictType.INSUFFICIENT_SEATS,
                explain_unseated(
                    self.unplaced, self.students_by_id, self.options.allow_partial_placement
                ),
                self.unplaced,
            )

    # ------------------------------------------------------------------
    # Satisfaction
    # ------------------------------------------------------------------

    def evaluate(self, rule: Rule) -> RuleSatisfactionReport:
        satisfied, reason = self.check_rule(rule)
        return RuleSatisfactionReport(
            rule_id=rule.id,
            rule_type=rule.type.value,
            satisfied=satisfied,
            priority=rule.priority,
            affected_students=tuple(dict.fromkeys(rule.student_ids)),
            reason=None if satisfied else reason,
        )

    def check_rule(self, rule: Rule):
        if not rule.is_active:
            return False, "Rule is inactive and was not applied"

        members = self.members(rule)
        seats = [self.placements[m] for m in members if m in self.placements]
        if not seats:
            return False, "No students from this rule were placed"

        if rule.type is RuleType.SEPARATE:
            if len(seats) < len(members):
                return False, "Not every student in this rule was placed"
            if any(are_adjacent(a, b) for i, a in enumerate(seats) for b in seats[i + 1:]):
                return False, "Some students are seated next to each other"
            return True, None
        elif rule.type is RuleType.TOGETHER:
            if len(seats) < len(members):
                return False, "Not every student in this rule was placed"
            if not is_connected_group(seats, diagonal=True):
                return False, "Students are not seated together"
            return True, None
        elif rule.type in LOCATION_RULE_TYPES:
            table = self.score_table(rule.type)
            average = sum(table.get(s, 0) for s in seats) / len(seats)
            if average >= self.threshold:
                return True, None
            return False, (
                f"Average seat score {average:.0f} is below {self.threshold} "
                f"for {rule.type.display_name}"
            )
        raise AssertionError(f"Unhandled rule type: {rule.type}")

    def result(self, started: float) -> PlacementResult:
        placements = tuple(
            StudentPlacement(sid, seat, tuple(self.applied.get(sid, ())))
            for sid, seat in self.placements.items()
        )
        has_impossible = any(c.conflict_type is ConflictType.IMPOSSIBLE for c in self.conflicts)
        return PlacementResult(
            success=not self.unplaced and not has_impossible,
            placements=placements,
            rule_satisfaction=tuple(self.evaluate(r) for r in self.rules),
            conflicts=tuple(self.conflicts),
            unplaced_students=tuple(self.unplaced),
            execution_time=time.perf_counter() - started,
        )


def run_placement(
    students: Sequence[Student],
    rules: Sequence[Rule],
    layout: Optional[Layout],
    options: Optional[PlacementOptions] = None,
    progress=None,
    existing_placements: Optional[Dict[str, SeatPosition]] = None,
    placement_config: Optional[dict] = None,
) -> PlacementResult:
    """Seat ``students`` in ``layout`` honouring ``rules`` in ascending priority.

    ``progress`` may be a ProgressChannel, a plain callback, or None. Rule
    tension is reported as conflicts on the result; only malformed input
    raises (PlacementInputError).
    """
    started = time.perf_counter()
    options = options or PlacementOptions()
    cfg = placement_config or {}
    channel = ProgressChannel.wrap(progress)

    ids = [s.id for s in students]
    if len(ids) != len(set(ids)):
        raise PlacementInputError("Student ids must be unique within a placement run")

    seat_map = create_seat_map(layout)
    context = build_context(layout, seat_map)
    run = _PlacementRun(list(students), rules, context, options, channel, cfg)

    if not options.clear_existing and existing_placements:
        for student_id, seat in existing_placements.items():
            if student_id in run.students_by_id and context.is_available(seat):
                run.place(student_id, seat)
            else:
                log.warning("Ignoring existing placement of %s at %s", student_id, seat.key)

    if options.prioritize_rules:
        run.publish(f"Applying {len(run.active_rules)} rules")
        for rule in run.active_rules:
            run.publish(f"Applying {rule.type.display_name} (priority {rule.priority})", rule)
            run.apply_rule(rule)
            run.rules_processed += 1
            run.publish(f"Finished {rule.type.display_name} (priority {rule.priority})", rule)
    else:
        run.publish("Skipping rules; neutral placement")

    run.publish("Placing remaining students")
    run.fill_remaining()
    result = run.result(started)
    run.publish("Placement complete")

    log.info(
        "Placement finished: %d/%d seated, %d/%d rules satisfied, %d conflicts in %.3fs",
        len(result.placements), len(run.students), result.satisfied_count,
        len(result.rule_satisfaction), len(result.conflicts), result.execution_time,
    )
    return result
