"""Classroom Seating Planner: Streamlit entry point."""

import streamlit as st
import sys
import os

# Add project root to path for imports
sys.path.insert(0, os.path.dirname(os.path.abspath(__file__)))

from config.logging_setup import setup_logging
from config.defaults import DEFAULT_ENVIRONMENT
from components.sidebar import render_sidebar
from data.session_store import initialize_session_state
from tabs import (
    tab_roster_layout,
    tab_rules,
    tab_placement,
)


def main():
    setup_logging(environment=os.environ.get("SEATING_ENV", DEFAULT_ENVIRONMENT))

    st.set_page_config(
        page_title="Classroom Seating Planner",
        page_icon="🪑",
        layout="wide",
        initial_sidebar_state="expanded",
    )

    initialize_session_state()
    sidebar_state = render_sidebar()

    tab1, tab2, tab3 = st.tabs([
        "👥 Roster & Layout",
        "📋 Rules",
        "🪑 Placement",
    ])

    with tab1:
        tab_roster_layout.render(sidebar_state)
    with tab2:
        tab_rules.render(sidebar_state)
    with tab3:
        tab_placement.render(sidebar_state)


if __name__ == "__main__":
    main()
