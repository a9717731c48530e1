"""Typed wrapper around st.session_state for application data."""

import streamlit as st
from typing import Dict, List, Optional

from models.seat_map import Layout
from models.student import Student
from models.placement import PlacementOptions, PlacementResult
from data.rule_store import RuleStore
from services.rule_service import RuleService
from services.placement_service import PlacementService
from services.reorder_coordinator import ReorderCoordinator


def initialize_session_state():
    """Initialize all session state keys with defaults."""
    defaults = {
        "roster_id": None,
        "roster_name": "",
        "students": [],
        "layout": None,
        "rule_records": {},
        "placement_result": None,
        "placement_options": PlacementOptions(),
        "data_loaded": False,
    }
    for key, default in defaults.items():
        if key not in st.session_state:
            st.session_state[key] = default

    # Services live for the session; the rule store writes straight into session state
    if "rule_service" not in st.session_state:
        rule_service = RuleService(RuleStore(st.session_state["rule_records"]))
        st.session_state["rule_service"] = rule_service
        st.session_state["placement_service"] = PlacementService(rule_service)
        st.session_state["reorder_coordinator"] = ReorderCoordinator(rule_service)


# --- Getters ---

def get_roster_id() -> Optional[str]:
    return st.session_state.get("roster_id")


def get_roster_name() -> str:
    return st.session_state.get("roster_name", "")


def get_students() -> List[Student]:
    return st.session_state.get("students", [])


def get_students_by_id() -> Dict[str, Student]:
    return {s.id: s for s in get_students()}


def get_layout() -> Optional[Layout]:
    return st.session_state.get("layout")


def get_placement_result() -> Optional[PlacementResult]:
    return st.session_state.get("placement_result")


def get_placement_options() -> PlacementOptions:
    return st.session_state.get("placement_options", PlacementOptions())


def get_rule_service() -> RuleService:
    return st.session_state["rule_service"]


def get_placement_service() -> PlacementService:
    return st.session_state["placement_service"]


def get_reorder_coordinator() -> ReorderCoordinator:
    return st.session_state["reorder_coordinator"]


def is_data_loaded() -> bool:
    return st.session_state.get("data_loaded", False)


# --- Setters ---

def set_roster(roster_id: str, name: str, students: List[Student]):
    """Switching rosters invalidates any previous placement."""
    st.session_state["roster_id"] = roster_id
    st.session_state["roster_name"] = name
    st.session_state["students"] = students
    st.session_state["placement_result"] = None


def set_layout(layout: Layout):
    st.session_state["layout"] = layout
    st.session_state["placement_result"] = None


def set_placement_result(result: Optional[PlacementResult]):
    st.session_state["placement_result"] = result


def set_placement_options(options: PlacementOptions):
    st.session_state["placement_options"] = options


def set_data_loaded(loaded: bool):
    st.session_state["data_loaded"] = loaded
