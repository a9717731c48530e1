"""File upload parsing: CSV/XLSX into students and classroom layouts."""

import uuid
import pandas as pd
from typing import List, Optional, Tuple

from models.seat_map import FurnitureItem, Layout, SeatPosition
from models.student import Student
from config.defaults import (
    ROSTER_NAME_COLUMNS, ROSTER_FULL_NAME_COLUMN, ROSTER_STUDENT_ID_COLUMN,
    LAYOUT_SEAT_CODE, LAYOUT_DESK_CODE, LAYOUT_DOOR_CODE,
)


def split_full_name(full_name: str) -> Tuple[str, str]:
    """'Last, First' or 'First Middle Last' -> (first, last)."""
    text = " ".join(str(full_name).split())
    if "," in text:
        last, _, first = text.partition(",")
        return first.strip(), last.strip()
    parts = text.split(" ")
    if len(parts) == 1:
        return parts[0], ""
    return " ".join(parts[:-1]), parts[-1]


def _cell(row, column: str) -> Optional[str]:
    value = row.get(column)
    if value is None or pd.isna(value):
        return None
    text = str(value).strip()
    # Numeric ids read by pandas come back as floats
    if text.endswith(".0") and text[:-2].isdigit():
        text = text[:-2]
    return text or None


def parse_students(df: pd.DataFrame, roster_id: str) -> List[Student]:
    """Convert a roster DataFrame into Student objects (rows without a name are skipped)."""
    has_split = all(col in df.columns for col in ROSTER_NAME_COLUMNS)
    students = []
    for _, row in df.iterrows():
        if has_split:
            first = _cell(row, ROSTER_NAME_COLUMNS[0]) or ""
            last = _cell(row, ROSTER_NAME_COLUMNS[1]) or ""
        else:
            first, last = split_full_name(_cell(row, ROSTER_FULL_NAME_COLUMN) or "")
        if not first and not last:
            continue
        students.append(Student(
            id=str(uuid.uuid4()),
            roster_id=roster_id,
            first_name=first,
            last_name=last,
            student_id=_cell(row, ROSTER_STUDENT_ID_COLUMN),
        ))
    return students


def parse_layout(df: pd.DataFrame, name: str = "") -> Layout:
    """Convert a grid of S/D/X cells (row 0 = front of the room) into a Layout."""
    codes = df.fillna("").astype(str).apply(lambda col: col.str.strip().str.upper())
    seats = []
    desk = []
    doors = []
    for r, row in enumerate(codes.itertuples(index=False)):
        for c, code in enumerate(row):
            if code == LAYOUT_SEAT_CODE:
                seats.append(SeatPosition(r, c).key)
            elif code == LAYOUT_DESK_CODE:
                desk.append(SeatPosition(r, c))
            elif code == LAYOUT_DOOR_CODE:
                doors.append(SeatPosition(r, c))

    furniture = []
    if desk:
        furniture.append(FurnitureItem(type="desk", positions=desk, id="desk-1"))
    for index, door in enumerate(doors, start=1):
        furniture.append(FurnitureItem(type="door", positions=[door], id=f"door-{index}"))

    return Layout(
        grid_rows=codes.shape[0],
        grid_cols=codes.shape[1],
        seats=seats,
        furniture=furniture,
        id=str(uuid.uuid4()),
        name=name,
    )


def layout_to_df(layout: Layout) -> pd.DataFrame:
    """Inverse of ``parse_layout``, for display and download."""
    grid = [[""] * layout.grid_cols for _ in range(layout.grid_rows)]
    for key in layout.seats:
        pos = SeatPosition.from_key(key)
        grid[pos.row][pos.col] = LAYOUT_SEAT_CODE
    for item in layout.furniture:
        code = LAYOUT_DESK_CODE if item.type == "desk" else LAYOUT_DOOR_CODE
        for pos in item.positions:
            grid[pos.row][pos.col] = code
    return pd.DataFrame(grid)


def load_file(uploaded_file, header: Optional[int] = 0) -> pd.DataFrame:
    """Load an uploaded file (CSV or XLSX) into a DataFrame.

    Layout grids have no header row; pass ``header=None`` for those.
    """
    name = uploaded_file.name.lower()
    if name.endswith(".csv"):
        return pd.read_csv(uploaded_file, header=header)
    elif name.endswith(".xlsx") or name.endswith(".xls"):
        return pd.read_excel(uploaded_file, engine="openpyxl", header=header)
    else:
        raise ValueError(f"Unsupported file format: {name}. Use CSV or XLSX.")
