"""Main entry point for the Streamlit multi-page app.

Shows the signed-in user's events, upcoming first.  Pages in the pages/
directory appear in the sidebar automatically.
"""

from __future__ import annotations

import sys
from pathlib import Path

import streamlit as st

# Add project root to path for imports
project_root = Path(__file__).parent.parent.resolve()
if str(project_root) not in sys.path:
    sys.path.insert(0, str(project_root))

from event_planner.event_analytics import split_upcoming
from event_planner.pages.config import get_config_value
from event_planner.pages.lib.common.formatting import format_currency
from event_planner.pages.lib.events import render_event_card
from event_planner.shared_sidebar import render_shared_sidebar

DETAIL_PAGE = "pages/2_📋_Event_Details.py"
NEW_EVENT_PAGE = "pages/1_➕_New_Event.py"


def _open_event(event_id: str) -> None:
    st.session_state.selected_event_id = event_id
    st.switch_page(DETAIL_PAGE)


def main():
    st.set_page_config(page_title="Event Planner", page_icon="🎉", layout="wide")
    state = render_shared_sidebar()

    st.title(get_config_value('event_types', 'ui', 'app_title', default="Event Planner"))
    st.caption(get_config_value('event_types', 'ui', 'tagline', default=""))

    if state.user is None:
        st.info(get_config_value('event_types', 'ui', 'sign_in_prompt', default="Sign in to continue."))
        return

    state.events.fetch_events()
    if state.events.error:
        st.error(state.events.error)
        return

    events = state.events.events
    groups = split_upcoming(events)

    col1, col2, col3 = st.columns(3)
    col1.metric("Events", len(events))
    col2.metric("Upcoming", len(groups['upcoming']))
    col3.metric("Total Budget", format_currency(sum(e.budget for e in events)))

    if st.button("➕ Create Event", type="primary"):
        st.switch_page(NEW_EVENT_PAGE)

    if not events:
        st.info(get_config_value('event_types', 'ui', 'empty_events', default="No events yet."))
        return

    st.subheader("Upcoming Events")
    if not groups['upcoming']:
        st.caption("Nothing scheduled.")
    for event in groups['upcoming']:
        if render_event_card(event, key_prefix="upcoming"):
            _open_event(event.id)

    if groups['past']:
        with st.expander(f"Past Events ({len(groups['past'])})"):
            for event in groups['past']:
                if render_event_card(event, key_prefix="past"):
                    _open_event(event.id)


if __name__ == "__main__":
    main()
