"""Plotly chart builders for the Classroom Seating Planner."""

import plotly.express as px
import plotly.graph_objects as go
import pandas as pd
from typing import Dict, Optional

from models.seat_map import Layout, SeatMap, SeatPosition
from models.student import Student
from models.placement import ConflictType, PlacementResult

# Cell kinds for the seat grid
EMPTY, FREE_SEAT, TAKEN_SEAT, DESK, DOOR = range(5)

CELL_COLORS = [
    [0.0, "#F4F4F4"], [0.2, "#F4F4F4"],
    [0.2, "#BFD7EA"], [0.4, "#BFD7EA"],
    [0.4, "#4A90D9"], [0.6, "#4A90D9"],
    [0.6, "#8C6D46"], [0.8, "#8C6D46"],
    [0.8, "#E8734A"], [1.0, "#E8734A"],
]


def seat_grid_figure(
    layout: Layout,
    result: Optional[PlacementResult] = None,
    students_by_id: Optional[Dict[str, Student]] = None,
    title: str = "Classroom",
) -> go.Figure:
    """Grid of the room, front (row 0) at the top, with student names on taken seats."""
    students_by_id = students_by_id or {}
    z = [[EMPTY] * layout.grid_cols for _ in range(layout.grid_rows)]
    text = [[""] * layout.grid_cols for _ in range(layout.grid_rows)]

    for key in layout.seats:
        pos = SeatPosition.from_key(key)
        z[pos.row][pos.col] = FREE_SEAT
    for item in layout.furniture:
        for pos in item.positions:
            z[pos.row][pos.col] = DESK if item.type == "desk" else DOOR
            text[pos.row][pos.col] = "Desk" if item.type == "desk" else "Door"

    if result is not None:
        for placement in result.placements:
            pos = placement.seat_position
            student = students_by_id.get(placement.student_id)
            z[pos.row][pos.col] = TAKEN_SEAT
            text[pos.row][pos.col] = student.short_name if student else placement.student_id[:6]

    fig = go.Figure(data=go.Heatmap(
        z=z,
        text=text,
        texttemplate="%{text}",
        colorscale=CELL_COLORS,
        zmin=0,
        zmax=4,
        showscale=False,
        xgap=3,
        ygap=3,
        hovertemplate="Row %{y}, Col %{x}<br>%{text}<extra></extra>",
    ))
    fig.update_layout(
        title=title,
        height=max(300, layout.grid_rows * 70),
        yaxis=dict(autorange="reversed", dtick=1, title="Row (front = 0)"),
        xaxis=dict(dtick=1, title="Column"),
    )
    return fig


def seat_score_heatmap(scores: Dict[SeatPosition, float], seat_map: SeatMap, title: str) -> go.Figure:
    """Heatmap of one rule type's seat scores; non-seat cells are blank."""
    z = [[None] * seat_map.cols for _ in range(seat_map.rows)]
    for pos, score in scores.items():
        z[pos.row][pos.col] = score
    fig = go.Figure(data=go.Heatmap(
        z=z,
        colorscale=["#4A90D9", "#F5C542", "#E8734A"],
        zmin=0,
        zmax=100,
        xgap=2,
        ygap=2,
        colorbar=dict(title="Score"),
    ))
    fig.update_layout(
        title=title,
        height=max(300, seat_map.rows * 60),
        yaxis=dict(autorange="reversed", dtick=1),
        xaxis=dict(dtick=1),
    )
    return fig


def satisfaction_bar(result: PlacementResult, title: str = "Rule Satisfaction by Type") -> go.Figure:
    """Stacked bar of satisfied vs unsatisfied rules per rule type."""
    rows = [
        {"Rule Type": r.rule_type, "Status": "Satisfied" if r.satisfied else "Not satisfied"}
        for r in result.rule_satisfaction
    ]
    df = pd.DataFrame(rows, columns=["Rule Type", "Status"])
    counts = df.groupby(["Rule Type", "Status"]).size().reset_index(name="Rules")
    fig = px.bar(
        counts, x="Rule Type", y="Rules", color="Status",
        barmode="stack",
        title=title,
        color_discrete_map={"Satisfied": "#4A90D9", "Not satisfied": "#E8734A"},
    )
    fig.update_layout(legend_title_text="", height=350)
    return fig


def conflict_donut(result: PlacementResult, title: str = "Conflicts") -> go.Figure:
    labels = [t.value for t in ConflictType]
    values = [len(result.conflicts_of_type(t)) for t in ConflictType]
    fig = go.Figure(data=[go.Pie(
        labels=labels,
        values=values,
        hole=0.6,
        marker_colors=["#CC0000", "#F5C542", "#E8734A"],
        textinfo="value+label",
    )])
    fig.update_layout(
        title=title,
        height=350,
        annotations=[dict(text=str(sum(values)), x=0.5, y=0.5, font_size=16, showarrow=False)],
    )
    return fig
