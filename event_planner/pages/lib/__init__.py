"""Page library modules shared by the Streamlit pages.

Structure:
    - common/: formatting helpers used across all pages
    - events/: event-specific rendering helpers
"""

__all__ = ['common', 'events']
