"""Styled dataframe display helpers."""

import streamlit as st
import pandas as pd
from typing import Dict, List, Optional

from models.rule import Rule
from models.student import Student
from models.placement import PlacementResult
from engine.explainer import student_list
from engine.priority import format_priority_ordinal, get_priority_level


def render_styled_table(
    df: pd.DataFrame,
    title: Optional[str] = None,
    height: Optional[int] = None,
    use_container_width: bool = True,
):
    """Render a styled, non-editable dataframe."""
    if title:
        st.subheader(title)
    st.dataframe(df, height=height, use_container_width=use_container_width)


def rules_df(rules: List[Rule], students_by_id: Dict[str, Student]) -> pd.DataFrame:
    total = len(rules)
    return pd.DataFrame([
        {
            "Priority": format_priority_ordinal(r.priority),
            "Level": get_priority_level(r.priority, total),
            "Rule": r.type.display_name,
            "Students": student_list(r.student_ids, students_by_id),
            "Active": "Yes" if r.is_active else "No",
        }
        for r in rules
    ])


def satisfaction_df(result: PlacementResult, students_by_id: Dict[str, Student]) -> pd.DataFrame:
    return pd.DataFrame([
        {
            "Priority": r.priority,
            "Rule Type": r.rule_type,
            "Status": "Satisfied" if r.satisfied else "Not satisfied",
            "Students": student_list(r.affected_students, students_by_id),
            "Reason": r.reason or "",
        }
        for r in result.rule_satisfaction
    ], columns=["Priority", "Rule Type", "Status", "Students", "Reason"])


def conflicts_df(result: PlacementResult, students_by_id: Dict[str, Student]) -> pd.DataFrame:
    return pd.DataFrame([
        {
            "Type": c.conflict_type.value,
            "Description": c.description,
            "Students": student_list(c.affected_students, students_by_id),
        }
        for c in result.conflicts
    ], columns=["Type", "Description", "Students"])


def render_status_table(df: pd.DataFrame, status_column: str = "Status"):
    """Render a table with satisfied/unsatisfied highlighting."""
    def color_status(val):
        if val == "Satisfied":
            return "background-color: #d4edda; color: #155724; font-weight: bold"
        elif val == "Not satisfied":
            return "background-color: #ffcccc; color: #cc0000; font-weight: bold"
        return ""

    if status_column in df.columns and not df.empty:
        styled = df.style.map(color_status, subset=[status_column])
        st.dataframe(styled, use_container_width=True, hide_index=True)
    else:
        st.dataframe(df, use_container_width=True, hide_index=True)


def render_conflict_table(df: pd.DataFrame, type_column: str = "Type"):
    """Render conflicts with IMPOSSIBLE rows highlighted."""
    def color_type(val):
        if val == "IMPOSSIBLE":
            return "background-color: #ffcccc; color: #cc0000; font-weight: bold"
        elif val == "COMPETING":
            return "background-color: #fff3cd; color: #856404; font-weight: bold"
        return ""

    if type_column in df.columns and not df.empty:
        styled = df.style.map(color_type, subset=[type_column])
        st.dataframe(styled, use_container_width=True, hide_index=True)
    else:
        st.dataframe(df, use_container_width=True, hide_index=True)
