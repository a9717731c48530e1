from dataclasses import dataclass, field
from typing import List, Optional, Sequence, Tuple


@dataclass(frozen=True, order=True)
class SeatPosition:
    """A grid cell, zero-based. Ordering is row-major."""
    row: int
    col: int

    @property
    def key(self) -> str:
        return f"{self.row}-{self.col}"

    @classmethod
    def from_key(cls, key: str) -> "SeatPosition":
        """Parse a ``"row-col"`` seat key."""
        row_str, sep, col_str = str(key).strip().partition("-")
        if not sep:
            raise ValueError(f"Seat key '{key}' is not of the form 'row-col'")
        return cls(int(row_str), int(col_str))

    def in_bounds(self, rows: int, cols: int) -> bool:
        return 0 <= self.row < rows and 0 <= self.col < cols


@dataclass(frozen=True)
class SeatMap:
    rows: int
    cols: int
    seats: Tuple[Tuple[bool, ...], ...]   # True where a seat exists
    teacher_desk: Tuple[SeatPosition, ...] = ()
    door: Optional[SeatPosition] = None

    def __post_init__(self):
        grid = tuple(tuple(bool(cell) for cell in row) for row in self.seats)
        if len(grid) != self.rows or any(len(row) != self.cols for row in grid):
            raise ValueError(
                f"Seat grid shape does not match {self.rows}x{self.cols}"
            )
        desk = tuple(self.teacher_desk or ())
        for pos in desk:
            if not pos.in_bounds(self.rows, self.cols):
                raise ValueError(f"Teacher desk position {pos.key} is outside the grid")
        if self.door is not None and not self.door.in_bounds(self.rows, self.cols):
            raise ValueError(f"Door position {self.door.key} is outside the grid")
        object.__setattr__(self, "seats", grid)
        object.__setattr__(self, "teacher_desk", desk)

    @property
    def seat_count(self) -> int:
        return sum(1 for row in self.seats for cell in row if cell)

    def all_seats(self) -> List[SeatPosition]:
        """Every seat in row-major order."""
        return [
            SeatPosition(r, c)
            for r in range(self.rows)
            for c in range(self.cols)
            if self.seats[r][c]
        ]


@dataclass
class FurnitureItem:
    type: str  # "desk" or "door"
    positions: List[SeatPosition] = field(default_factory=list)
    id: Optional[str] = None


@dataclass
class Layout:
    """A classroom layout as produced by the layout editor / importer."""
    grid_rows: int
    grid_cols: int
    seats: List[str] = field(default_factory=list)  # "row-col" keys
    furniture: List[FurnitureItem] = field(default_factory=list)
    id: Optional[str] = None
    name: str = ""

    @property
    def seat_count(self) -> int:
        return len(self.seats)

    def furniture_of_type(self, furniture_type: str) -> List[FurnitureItem]:
        return [f for f in self.furniture if f.type == furniture_type]


def seat_grid(rows: int, cols: int, positions: Sequence[SeatPosition]) -> List[List[bool]]:
    """Build a rows x cols boolean grid with True at the given positions."""
    grid = [[False] * cols for _ in range(rows)]
    for pos in positions:
        grid[pos.row][pos.col] = True
    return grid
