"""PuLP integer programs for picking mutually non-adjacent seats."""

import logging
from typing import Dict, List, Optional, Sequence

import pulp

from models.seat_map import SeatPosition
from engine.geometry import are_adjacent
from config.defaults import SOLVER_TIME_LIMIT_SECONDS

log = logging.getLogger(__name__)


def _adjacent_pairs(seats: Sequence[SeatPosition]):
    seat_set = set(seats)
    for seat in seats:
        for other in (SeatPosition(seat.row + 1, seat.col), SeatPosition(seat.row, seat.col + 1)):
            if other in seat_set:
                yield seat, other


def _solve(prob: pulp.LpProblem, time_limit: float) -> str:
    prob.solve(pulp.PULP_CBC_CMD(msg=0, timeLimit=time_limit))
    return pulp.LpStatus[prob.status]


def select_non_adjacent_seats(
    candidates: Sequence[SeatPosition],
    count: int,
    scores: Optional[Dict[SeatPosition, float]] = None,
    blocked: Sequence[SeatPosition] = (),
    time_limit: float = SOLVER_TIME_LIMIT_SECONDS,
) -> Optional[List[SeatPosition]]:
    """Pick ``count`` candidate seats, no two edge-adjacent and none next to ``blocked``.

    Maximizes the summed score. Returns None when no such selection exists.
    """
    if count <= 0:
        return []

    blocked = set(blocked)
    usable = [
        s for s in candidates
        if s not in blocked and not any(are_adjacent(s, b) for b in blocked)
    ]
    if len(usable) < count:
        return None

    scores = scores or {}
    prob = pulp.LpProblem("NonAdjacentSeats", pulp.LpMaximize)
    x = {s: pulp.LpVariable(f"x_{s.row}_{s.col}", cat="Binary") for s in usable}

    # Objective: total seat desirability (+1 per seat keeps it non-empty; count is fixed)
    prob += pulp.lpSum((scores.get(s, 0) + 1) * x[s] for s in usable), "seat_score"

    # C1: exactly `count` seats
    prob += pulp.lpSum(x.values()) == count, "seat_count"

    # C2: never two neighbours
    for a, b in _adjacent_pairs(usable):
        prob += x[a] + x[b] <= 1, f"apart_{a.row}_{a.col}_{b.row}_{b.col}"

    status = _solve(prob, time_limit)
    if status != "Optimal":
        log.debug("Non-adjacent selection of %d from %d seats: %s", count, len(usable), status)
        return None

    chosen = [s for s in usable if (x[s].varValue or 0) > 0.5]
    chosen.sort(key=lambda s: (-scores.get(s, 0), s))
    return chosen


def max_non_adjacent_count(
    seats: Sequence[SeatPosition],
    time_limit: float = SOLVER_TIME_LIMIT_SECONDS,
) -> int:
    """Largest number of seats that can be chosen with no two edge-adjacent."""
    if not seats:
        return 0

    pairs = list(_adjacent_pairs(seats))
    if not pairs:
        return len(seats)

    prob = pulp.LpProblem("MaxNonAdjacentSeats", pulp.LpMaximize)
    x = {s: pulp.LpVariable(f"x_{s.row}_{s.col}", cat="Binary") for s in seats}
    prob += pulp.lpSum(x.values()), "seat_total"
    for a, b in pairs:
        prob += x[a] + x[b] <= 1, f"apart_{a.row}_{a.col}_{b.row}_{b.col}"

    status = _solve(prob, time_limit)
    if status != "Optimal":
        # Any colour class of the grid's checkerboard is a valid lower bound.
        even = sum(1 for s in seats if (s.row + s.col) % 2 == 0)
        return max(even, len(seats) - even)
    return int(round(pulp.value(prob.objective) or 0))
