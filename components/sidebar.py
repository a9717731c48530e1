"""Global sidebar: roster summary and placement options."""

import streamlit as st
from dataclasses import dataclass

from models.placement import PlacementOptions
from data.session_store import (
    get_layout, get_placement_options, get_roster_name, get_students,
    is_data_loaded, set_placement_options,
)
from config.defaults import DEFAULT_MAX_ATTEMPTS


@dataclass
class SidebarState:
    options: PlacementOptions


def render_sidebar() -> SidebarState:
    """Render the global sidebar controls and return current state."""
    with st.sidebar:
        st.title("Seating Planner")
        st.divider()

        if is_data_loaded():
            st.success(f"Roster: {get_roster_name() or 'Unnamed'}")
            st.caption(f"Students: {len(get_students())}")
            layout = get_layout()
            if layout is not None:
                st.caption(f"Seats: {layout.seat_count} ({layout.grid_rows}x{layout.grid_cols})")
        else:
            st.warning("No roster loaded. Go to the Roster & Layout tab")

        st.divider()
        st.subheader("Placement Options")
        current = get_placement_options()
        options = PlacementOptions(
            clear_existing=st.checkbox(
                "Clear existing seats", value=current.clear_existing, key="opt_clear",
            ),
            prioritize_rules=st.checkbox(
                "Apply rules", value=current.prioritize_rules, key="opt_rules",
            ),
            allow_partial_placement=st.checkbox(
                "Allow partial placement", value=current.allow_partial_placement, key="opt_partial",
            ),
            max_attempts=st.number_input(
                "Separation attempts", min_value=1, max_value=10,
                value=current.max_attempts or DEFAULT_MAX_ATTEMPTS, key="opt_attempts",
            ),
        )
        if options != current:
            set_placement_options(options)

    return SidebarState(options=options)
