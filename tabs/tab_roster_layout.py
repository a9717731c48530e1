"""Tab 1: Roster & Layout: upload or generate a roster and a classroom grid."""

import uuid
import streamlit as st
import pandas as pd

from data.loader import load_file, parse_students, parse_layout, layout_to_df
from data.validator import validate_students_df, validate_layout_df
from data.sample_data import generate_students_df, generate_layout_df
from data.session_store import (
    get_layout, get_roster_id, get_students, set_data_loaded, set_layout, set_roster,
)
from components.charts import seat_grid_figure
from components.tables import render_styled_table


def _show_messages(result) -> bool:
    for e in result.errors:
        st.error(e)
    for w in result.warnings:
        st.warning(w)
    return result.is_valid


def _load_roster(df: pd.DataFrame, name: str) -> bool:
    if not _show_messages(validate_students_df(df)):
        return False
    roster_id = get_roster_id() or str(uuid.uuid4())
    students = parse_students(df, roster_id)
    set_roster(roster_id, name, students)
    set_data_loaded(True)
    st.success(f"Roster loaded: {len(students)} students")
    return True


def _load_layout(df: pd.DataFrame, name: str) -> bool:
    if not _show_messages(validate_layout_df(df)):
        return False
    layout = parse_layout(df, name=name)
    set_layout(layout)
    st.success(f"Layout loaded: {layout.seat_count} seats on a {layout.grid_rows}x{layout.grid_cols} grid")
    return True


def render(sidebar_state):
    """Render the Roster & Layout tab."""
    st.header("Roster & Layout")

    col_roster, col_layout = st.columns(2)

    with col_roster:
        st.subheader("Roster")
        st.caption(
            "CSV or XLSX with **First Name** and **Last Name** columns, or a single "
            "**Full Name** column ('Last, First' or 'First Last'). **Student ID** is optional."
        )
        roster_name = st.text_input("Class name", value="Period 1", key="roster_name_input")
        roster_file = st.file_uploader("Roster file", type=["csv", "xlsx"], key="upload_roster")
        if st.button("Load roster", type="primary", key="btn_roster", disabled=roster_file is None):
            try:
                _load_roster(load_file(roster_file), roster_name)
            except ValueError as exc:
                st.error(str(exc))

    with col_layout:
        st.subheader("Classroom Layout")
        st.caption(
            "Grid without a header row: **S** = seat, **D** = teacher desk, **X** = door, "
            "blank = empty. Row 1 is the front of the room."
        )
        layout_name = st.text_input("Room name", value="Room 101", key="layout_name_input")
        layout_file = st.file_uploader("Layout file", type=["csv", "xlsx"], key="upload_layout")
        if st.button("Load layout", type="primary", key="btn_layout", disabled=layout_file is None):
            try:
                _load_layout(load_file(layout_file, header=None), layout_name)
            except ValueError as exc:
                st.error(str(exc))

    st.divider()
    if st.button("Use sample class and room", key="btn_sample"):
        if _load_roster(generate_students_df(), "Sample Class"):
            _load_layout(generate_layout_df(), "Sample Room")

    students = get_students()
    layout = get_layout()

    if students:
        render_styled_table(
            pd.DataFrame([
                {"Name": s.full_name, "Student ID": s.student_id or ""} for s in students
            ]),
            title=f"Students ({len(students)})",
            height=300,
        )

    if layout is not None:
        st.plotly_chart(seat_grid_figure(layout, title=layout.name or "Classroom"), use_container_width=True)
        with st.expander("Layout grid"):
            st.dataframe(layout_to_df(layout), use_container_width=True)
        if students and len(students) > layout.seat_count:
            st.warning(
                f"{len(students)} students but only {layout.seat_count} seats. "
                "Enable partial placement or add seats."
            )
