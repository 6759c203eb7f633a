"""Event page rendering helpers."""

from .ui_components import (
    countdown_text,
    event_type_label,
    render_budget_breakdown,
    render_budget_metrics,
    render_event_card,
    render_expense_list,
    render_rsvp_summary,
)

__all__ = [
    'countdown_text',
    'event_type_label',
    'render_budget_breakdown',
    'render_budget_metrics',
    'render_event_card',
    'render_expense_list',
    'render_rsvp_summary',
]
