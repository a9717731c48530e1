"""Tab 3: Placement: validate inputs, run auto-placement, inspect the result."""

import streamlit as st

from models.rule import RuleType, LOCATION_RULE_TYPES
from data.session_store import (
    get_layout, get_placement_result, get_placement_service, get_roster_id,
    get_students, get_students_by_id, set_placement_result,
)
from engine.explainer import explain_result
from engine.geometry import score_all_seats
from engine.placement_algorithm import create_seat_map
from components.charts import conflict_donut, satisfaction_bar, seat_grid_figure, seat_score_heatmap
from components.metrics_cards import render_alert_card, render_result_metrics
from components.tables import conflicts_df, render_conflict_table, render_status_table, satisfaction_df
from services.placement_service import is_busy_rejection


def render(sidebar_state):
    """Render the Placement tab."""
    st.header("Auto Placement")

    roster_id = get_roster_id()
    students = get_students()
    layout = get_layout()
    if not roster_id or layout is None:
        st.info("Load a roster and a classroom layout first.")
        return

    service = get_placement_service()
    options = sidebar_state.options

    # --- Pre-flight ---
    validation = service.validate_placement_inputs(roster_id, students, layout, options)
    for error in validation.errors:
        render_alert_card(error.message, level="error")
    for warning in validation.warnings:
        render_alert_card(warning, level="warning")

    with st.expander("Recommendations"):
        advice = service.get_placement_recommendations(roster_id, students, layout, options)
        for line in advice.recommendations:
            st.markdown(f"- {line}")
        for line in advice.potential_issues:
            st.markdown(f"- :orange[{line}]")

    previous = get_placement_result()
    existing = previous.placement_map if previous and not options.clear_existing else None

    if st.button("Run placement", type="primary", disabled=not validation.valid, key="btn_place"):
        bar = st.progress(0.0, text="Starting")
        result = service.execute_auto_placement(
            roster_id, students, layout, options,
            on_progress=lambda p: bar.progress(p.fraction_complete, text=p.current_step),
            existing_placements=existing,
        )
        bar.empty()
        if is_busy_rejection(result):
            st.warning("Another placement is still running; try again in a moment.")
        else:
            set_placement_result(result)

    result = get_placement_result()
    students_by_id = get_students_by_id()

    if result is None:
        st.plotly_chart(seat_grid_figure(layout, title="Empty room"), use_container_width=True)
        return

    if result.success:
        st.success("Everyone is seated and no rule is impossible.")
    else:
        st.error("Placement needs attention: see conflicts below.")

    render_result_metrics(result)
    st.plotly_chart(seat_grid_figure(layout, result, students_by_id), use_container_width=True)

    col1, col2 = st.columns(2)
    with col1:
        if result.rule_satisfaction:
            st.plotly_chart(satisfaction_bar(result), use_container_width=True)
    with col2:
        if result.conflicts:
            st.plotly_chart(conflict_donut(result), use_container_width=True)

    st.subheader("Rule Satisfaction")
    render_status_table(satisfaction_df(result, students_by_id))

    if result.conflicts:
        st.subheader("Conflicts")
        render_conflict_table(conflicts_df(result, students_by_id))

    with st.expander("How this plan was built"):
        for step in explain_result(result, students_by_id):
            st.markdown(step)

    with st.expander("Seat scores by preference"):
        kind = st.selectbox(
            "Preference",
            [t for t in RuleType if t in LOCATION_RULE_TYPES],
            format_func=lambda t: t.display_name,
            key="score_kind",
        )
        seat_map = create_seat_map(layout)
        st.plotly_chart(
            seat_score_heatmap(score_all_seats(kind, seat_map), seat_map, kind.display_name),
            use_container_width=True,
        )
