"""Reusable KPI metric card widgets."""

import streamlit as st

from models.placement import ConflictType, PlacementResult


def render_metric_row(metrics: list[dict]):
    """Render a row of metric cards.

    Each metric dict should have: label, value, and optionally delta, delta_color.
    """
    cols = st.columns(len(metrics))
    for col, m in zip(cols, metrics):
        with col:
            delta = m.get("delta")
            delta_color = m.get("delta_color", "normal")
            st.metric(
                label=m["label"],
                value=m["value"],
                delta=delta,
                delta_color=delta_color,
            )


def render_result_metrics(result: PlacementResult):
    total = len(result.placements) + len(result.unplaced_students)
    unseated = len(result.unplaced_students)
    render_metric_row([
        {"label": "Seated", "value": f"{len(result.placements)}/{total}"},
        {
            "label": "Rules Satisfied",
            "value": f"{result.satisfied_count}/{len(result.rule_satisfaction)}",
        },
        {
            "label": "Conflicts",
            "value": len(result.conflicts),
            "delta": f"{len(result.conflicts_of_type(ConflictType.IMPOSSIBLE))} impossible",
            "delta_color": "inverse" if result.conflicts else "off",
        },
        {
            "label": "Unseated",
            "value": unseated,
            "delta_color": "inverse" if unseated else "off",
        },
        {"label": "Run Time", "value": f"{result.execution_time:.2f}s"},
    ])


def render_alert_card(message: str, level: str = "warning"):
    """Render an alert card with appropriate styling."""
    if level == "error":
        st.error(message, icon="🔴")
    elif level == "warning":
        st.warning(message, icon="🟡")
    else:
        st.info(message, icon="🔵")
