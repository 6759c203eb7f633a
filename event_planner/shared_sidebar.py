"""Shared sidebar components for the multi-page event planner.

Every page calls :func:`render_shared_sidebar` first.  It makes sure the
database exists, wires up logging, and lets the visitor identify themselves
by email before any event data is shown.
"""

from __future__ import annotations

import streamlit as st

from . import config, db
from .pages.config import get_config_value
from .stores import AppState, get_app_state


def _bootstrap() -> None:
    if st.session_state.get('db_initialized'):
        return
    config.configure_logging()
    db.init_db()
    st.session_state.db_initialized = True


def render_shared_sidebar() -> AppState:
    """Render the sidebar and return this session's application state."""
    _bootstrap()
    state = get_app_state(st.session_state)

    st.sidebar.title(get_config_value('event_types', 'ui', 'app_title', default='Events'))

    if state.user is None:
        _render_sign_in(state)
    else:
        _render_profile(state)
        _render_database_management(state)

    return state


def _render_sign_in(state: AppState) -> None:
    st.sidebar.subheader("👤 Sign in")
    with st.sidebar.form("sign_in_form"):
        email = st.text_input("Email")
        full_name = st.text_input("Full name (optional)")
        submitted = st.form_submit_button("Continue")
    if submitted:
        try:
            state.sign_in(email, full_name or None)
        except ValueError as e:
            st.sidebar.error(str(e))
            return
        st.rerun()


def _render_profile(state: AppState) -> None:
    user = state.user
    st.sidebar.markdown(f"Signed in as **{user.display_name}**")
    st.sidebar.caption(user.email)

    with st.sidebar.expander("Edit profile"):
        with st.form("profile_form"):
            full_name = st.text_input("Full name", value=user.full_name or "")
            image_url = st.text_input("Profile image URL", value=user.profile_image_url or "")
            saved = st.form_submit_button("Save")
        if saved:
            try:
                state.update_profile(full_name, image_url or None)
                st.success("Profile updated")
            except (ValueError, LookupError, PermissionError) as e:
                st.error(str(e))

    if st.sidebar.button("Sign out"):
        state.sign_out()
        st.rerun()


def _render_database_management(state: AppState) -> None:
    st.sidebar.subheader("🗄️ Database Management")
    if st.sidebar.button("🗑️ Clear All Events", help="Delete every event, expense, invitation and reminder"):
        st.session_state.confirm_clear = True

    if st.session_state.get('confirm_clear', False):
        st.sidebar.warning("⚠️ This will delete ALL events!")
        col1, col2 = st.sidebar.columns(2)
        with col1:
            if st.button("✅ Confirm", key="confirm_clear_btn"):
                if db.clear_database():
                    st.session_state.confirm_clear = False
                    for store in state.stores:
                        store.items = []
                    state.events.current_event = None
                    st.sidebar.success("All events deleted")
                    st.rerun()
        with col2:
            if st.button("❌ Cancel", key="cancel_clear_btn"):
                st.session_state.confirm_clear = False
                st.rerun()
