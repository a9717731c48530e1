"""Seat-grid geometry: distances, adjacency, regions, and rule-type seat scoring."""

import math
from collections import deque
from typing import Dict, Iterable, List, Optional, Sequence, Union

from models.seat_map import SeatMap, SeatPosition
from models.rule import RuleType
from config.defaults import (
    SCORE_MAX, SCORE_NEUTRAL, SCORE_ROW_STEP, SCORE_RANK_STEP,
    DEFAULT_PROXIMITY_DISTANCE,
)

# up, down, left, right
_ORTHOGONAL_STEPS = ((-1, 0), (1, 0), (0, -1), (0, 1))
_DIAGONAL_STEPS = ((-1, -1), (-1, 1), (1, -1), (1, 1))


def calculate_distance(a: SeatPosition, b: SeatPosition) -> float:
    return math.hypot(a.row - b.row, a.col - b.col)


def calculate_manhattan_distance(a: SeatPosition, b: SeatPosition) -> int:
    return abs(a.row - b.row) + abs(a.col - b.col)


def are_adjacent(a: SeatPosition, b: SeatPosition) -> bool:
    """Edge-sharing neighbours only."""
    return calculate_manhattan_distance(a, b) == 1


def are_adjacent_including_diagonal(a: SeatPosition, b: SeatPosition) -> bool:
    row_diff = abs(a.row - b.row)
    col_diff = abs(a.col - b.col)
    return row_diff <= 1 and col_diff <= 1 and (row_diff + col_diff > 0)


def is_valid_seat(position: SeatPosition, seat_map: SeatMap) -> bool:
    return (
        0 <= position.row < seat_map.rows
        and 0 <= position.col < seat_map.cols
        and seat_map.seats[position.row][position.col]
    )


def get_adjacent_seats(position: SeatPosition, seat_map: SeatMap) -> List[SeatPosition]:
    neighbours = []
    for d_row, d_col in _ORTHOGONAL_STEPS:
        candidate = SeatPosition(position.row + d_row, position.col + d_col)
        if is_valid_seat(candidate, seat_map):
            neighbours.append(candidate)
    return neighbours


def get_seats_within_distance(
    center: SeatPosition,
    distance: float,
    seat_map: SeatMap,
) -> List[SeatPosition]:
    """All seats within Euclidean ``distance`` of ``center`` (centre included), row-major."""
    return [
        seat for seat in seat_map.all_seats()
        if calculate_distance(center, seat) <= distance
    ]


def _row_seats(seat_map: SeatMap, rows: Iterable[int]) -> List[SeatPosition]:
    for row in rows:
        seats = [SeatPosition(row, col) for col in range(seat_map.cols) if seat_map.seats[row][col]]
        if seats:
            return seats
    return []


def get_front_row_seats(seat_map: SeatMap) -> List[SeatPosition]:
    """Seats of the first row that has any."""
    return _row_seats(seat_map, range(seat_map.rows))


def get_back_row_seats(seat_map: SeatMap) -> List[SeatPosition]:
    """Seats of the last row that has any."""
    return _row_seats(seat_map, range(seat_map.rows - 1, -1, -1))


def get_edge_seats(seat_map: SeatMap) -> List[SeatPosition]:
    """Seats on the perimeter of the grid."""
    last_row, last_col = seat_map.rows - 1, seat_map.cols - 1
    return [
        seat for seat in seat_map.all_seats()
        if seat.row in (0, last_row) or seat.col in (0, last_col)
    ]


def get_seats_near_teacher(
    seat_map: SeatMap,
    max_distance: float = DEFAULT_PROXIMITY_DISTANCE,
) -> List[SeatPosition]:
    """Seats around any teacher-desk cell, nearest to the first desk cell first.

    Falls back to the front row when the room has no desk.
    """
    if not seat_map.teacher_desk:
        return get_front_row_seats(seat_map)

    nearby: List[SeatPosition] = []
    seen = set()
    for desk_pos in seat_map.teacher_desk:
        for seat in get_seats_within_distance(desk_pos, max_distance, seat_map):
            if seat not in seen:
                seen.add(seat)
                nearby.append(seat)

    anchor = seat_map.teacher_desk[0]
    nearby.sort(key=lambda s: calculate_distance(s, anchor))
    return nearby


def get_seats_near_door(
    seat_map: SeatMap,
    max_distance: float = DEFAULT_PROXIMITY_DISTANCE,
) -> List[SeatPosition]:
    """Seats around the door, nearest first. Falls back to edge seats without a door."""
    if seat_map.door is None:
        return get_edge_seats(seat_map)

    door = seat_map.door
    nearby = get_seats_within_distance(door, max_distance, seat_map)
    nearby.sort(key=lambda s: calculate_distance(s, door))
    return nearby


def _rank_score(position: SeatPosition, ranked: Sequence[SeatPosition]) -> float:
    try:
        index = ranked.index(position)
    except ValueError:
        return 0
    return max(0, SCORE_MAX - index * SCORE_RANK_STEP)


def calculate_seat_score(
    position: SeatPosition,
    rule_type: Union[RuleType, str],
    seat_map: SeatMap,
) -> float:
    """Desirability of ``position`` for a rule type, in [0, 100]."""
    kind = RuleType.parse(rule_type)

    if kind is RuleType.FRONT_ROW:
        if position in get_front_row_seats(seat_map):
            return SCORE_MAX
        return max(0, SCORE_MAX - position.row * SCORE_ROW_STEP)
    elif kind is RuleType.BACK_ROW:
        if position in get_back_row_seats(seat_map):
            return SCORE_MAX
        return max(0, position.row * SCORE_ROW_STEP)
    elif kind is RuleType.NEAR_TEACHER:
        return _rank_score(position, get_seats_near_teacher(seat_map))
    elif kind is RuleType.NEAR_DOOR:
        return _rank_score(position, get_seats_near_door(seat_map))
    elif kind is RuleType.SEPARATE or kind is RuleType.TOGETHER:
        return SCORE_NEUTRAL
    elif kind is None:
        return SCORE_NEUTRAL
    raise AssertionError(f"Unhandled rule type: {kind}")


def score_all_seats(rule_type: Union[RuleType, str], seat_map: SeatMap) -> Dict[SeatPosition, float]:
    """``calculate_seat_score`` for every seat, building each region list only once."""
    kind = RuleType.parse(rule_type)
    seats = seat_map.all_seats()

    if kind is RuleType.FRONT_ROW:
        front = set(get_front_row_seats(seat_map))
        return {
            s: SCORE_MAX if s in front else max(0, SCORE_MAX - s.row * SCORE_ROW_STEP)
            for s in seats
        }
    elif kind is RuleType.BACK_ROW:
        back = set(get_back_row_seats(seat_map))
        return {s: SCORE_MAX if s in back else max(0, s.row * SCORE_ROW_STEP) for s in seats}
    elif kind is RuleType.NEAR_TEACHER or kind is RuleType.NEAR_DOOR:
        ranked = (
            get_seats_near_teacher(seat_map) if kind is RuleType.NEAR_TEACHER
            else get_seats_near_door(seat_map)
        )
        ranks = {s: i for i, s in enumerate(ranked)}
        return {
            s: max(0, SCORE_MAX - ranks[s] * SCORE_RANK_STEP) if s in ranks else 0
            for s in seats
        }
    return {s: SCORE_NEUTRAL for s in seats}


def is_connected_group(positions: Sequence[SeatPosition], diagonal: bool = False) -> bool:
    """True when the positions form one connected cluster."""
    if not positions:
        return False
    touching = are_adjacent_including_diagonal if diagonal else are_adjacent
    remaining = list(positions[1:])
    stack = [positions[0]]
    while stack:
        current = stack.pop()
        linked = [p for p in remaining if touching(current, p)]
        for p in linked:
            remaining.remove(p)
            stack.append(p)
    return not remaining


def find_adjacent_group(
    start: SeatPosition,
    target_size: int,
    available_seats: Sequence[SeatPosition],
    seat_map: SeatMap,
) -> List[SeatPosition]:
    """Breadth-first expansion over available seats from ``start``, up to ``target_size`` seats."""
    available = set(available_seats)
    group = [start]
    used = {start}
    queue = deque([start])

    while queue and len(group) < target_size:
        current = queue.popleft()
        for neighbour in get_adjacent_seats(current, seat_map):
            if neighbour in used or neighbour not in available:
                continue
            used.add(neighbour)
            group.append(neighbour)
            queue.append(neighbour)
            if len(group) == target_size:
                break

    return group


def find_close_group(
    target_size: int,
    available_seats: Sequence[SeatPosition],
) -> Optional[List[SeatPosition]]:
    """Greedy: start at the first seat, keep adding the seat with the lowest mean distance."""
    if len(available_seats) < target_size:
        return None
    if target_size <= 0:
        return []

    group = [available_seats[0]]
    remaining = list(available_seats[1:])

    while len(group) < target_size and remaining:
        best_index = min(
            range(len(remaining)),
            key=lambda i: sum(calculate_distance(remaining[i], g) for g in group) / len(group),
        )
        group.append(remaining.pop(best_index))

    return group if len(group) == target_size else None


def find_group_position(
    group_size: int,
    available_seats: Sequence[SeatPosition],
    seat_map: SeatMap,
) -> Optional[List[SeatPosition]]:
    """Seats for a TOGETHER group: a connected block if one exists, else the closest cluster."""
    if len(available_seats) < group_size:
        return None
    if group_size <= 0:
        return []
    if group_size == 1:
        return [available_seats[0]]

    for seat in available_seats:
        group = find_adjacent_group(seat, group_size, available_seats, seat_map)
        if len(group) == group_size:
            return group

    return find_close_group(group_size, available_seats)


def largest_connected_block(seats: Sequence[SeatPosition], diagonal: bool = False) -> int:
    """Size of the largest connected set among ``seats`` (orthogonal steps, plus diagonal ones if asked)."""
    steps = _ORTHOGONAL_STEPS + _DIAGONAL_STEPS if diagonal else _ORTHOGONAL_STEPS
    pending = set(seats)
    best = 0
    while pending:
        start = pending.pop()
        size = 1
        queue = deque([start])
        while queue:
            current = queue.popleft()
            for d_row, d_col in steps:
                neighbour = SeatPosition(current.row + d_row, current.col + d_col)
                if neighbour in pending:
                    pending.remove(neighbour)
                    size += 1
                    queue.append(neighbour)
        best = max(best, size)
    return best
