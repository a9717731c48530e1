"""Tab 2: Rules: create, filter, toggle, delete and reorder placement rules."""

import streamlit as st

from models.rule import RuleType
from models.errors import RuleValidationError
from services.reorder_coordinator import DragResult
from data.session_store import (
    get_reorder_coordinator, get_roster_id, get_rule_service, get_students,
    get_students_by_id,
)
from engine.explainer import describe_rule
from engine.priority import format_priority_ordinal, get_priority_level
from components.tables import rules_df, render_styled_table
from config.defaults import RULE_STATUS_OPTIONS, RULE_SORT_FIELDS


def _render_create_form(roster_id: str):
    rule_service = get_rule_service()
    students = get_students()
    names = {s.id: s.full_name for s in students}

    with st.form("create_rule", clear_on_submit=True):
        rule_type = st.selectbox(
            "Rule type",
            options=list(RuleType),
            format_func=lambda t: t.display_name,
        )
        st.caption(rule_type.description)
        selected = st.multiselect(
            "Students",
            options=list(names),
            format_func=lambda sid: names.get(sid, sid),
        )
        submitted = st.form_submit_button("Add rule", type="primary")

    if submitted:
        try:
            rule = rule_service.create_rule(roster_id, {
                "type": rule_type.value,
                "student_ids": selected,
                "priority": rule_service.get_max_priority(roster_id) + 1,
            })
            st.success(f"Added {format_priority_ordinal(rule.priority)} rule: {rule.type.display_name}")
        except RuleValidationError as exc:
            for error in exc.errors:
                st.error(error.message)


def _move(index: int, destination: int, rules, roster_id: str):
    outcome = get_reorder_coordinator().attempt_reorder(
        DragResult(source_index=index, destination_index=destination), rules, roster_id,
    )
    if outcome is None:
        return
    if outcome.ok:
        st.toast(f"Updated {len(outcome.updates)} priorities")
        st.rerun()
    else:
        st.error(str(outcome.error))


def render(sidebar_state):
    """Render the Rules tab."""
    st.header("Placement Rules")

    roster_id = get_roster_id()
    if not roster_id:
        st.info("Load a roster first.")
        return

    rule_service = get_rule_service()
    students_by_id = get_students_by_id()

    with st.expander("New rule", expanded=False):
        _render_create_form(roster_id)

    # --- Filters ---
    col1, col2, col3, col4 = st.columns([1, 1, 2, 1])
    status = col1.selectbox("Status", RULE_STATUS_OPTIONS, key="rule_status")
    type_filter = col2.selectbox(
        "Type", [None] + list(RuleType),
        format_func=lambda t: "All types" if t is None else t.display_name,
        key="rule_type_filter",
    )
    search = col3.text_input("Search", key="rule_search", placeholder="Rule or student name")
    sort_by = col4.selectbox("Sort by", RULE_SORT_FIELDS, key="rule_sort")

    all_rules = rule_service.get_rules_by_roster(roster_id)
    filtered = rule_service.get_filtered_rules(
        roster_id, status=status, rule_type=type_filter, search=search,
        students_by_id=students_by_id, sort_by=sort_by,
    )

    if not all_rules:
        st.info("No rules yet. Students will be seated in roster order.")
        return

    is_full_list = len(filtered) == len(all_rules) and sort_by == "priority"
    if not is_full_list:
        st.caption("Reordering is available when the full list is shown in priority order.")

    st.caption(f"{len(filtered)} of {len(all_rules)} rules")
    for rule in filtered:
        index = next(i for i, r in enumerate(all_rules) if r.id == rule.id)
        cols = st.columns([1, 6, 1, 1, 1, 1])
        cols[0].markdown(f"**{format_priority_ordinal(rule.priority)}**")
        label = describe_rule(rule, students_by_id)
        cols[1].markdown(label if rule.is_active else f"~~{label}~~")
        cols[1].caption(get_priority_level(rule.priority, len(all_rules)))

        if cols[2].button("↑", key=f"up_{rule.id}", disabled=not is_full_list or index == 0):
            _move(index, index - 1, all_rules, roster_id)
        if cols[3].button("↓", key=f"down_{rule.id}",
                          disabled=not is_full_list or index == len(all_rules) - 1):
            _move(index, index + 1, all_rules, roster_id)
        if cols[4].button("Off" if rule.is_active else "On", key=f"toggle_{rule.id}"):
            rule_service.toggle_rule_active(rule.id)
            st.rerun()
        if cols[5].button("Delete", key=f"delete_{rule.id}"):
            rule_service.delete_rule(rule.id)
            st.rerun()

    with st.expander("Table view"):
        render_styled_table(rules_df(filtered, students_by_id))
