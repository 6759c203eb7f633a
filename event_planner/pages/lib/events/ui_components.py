"""UI components shared by the event pages.

Rendering only: every number shown here comes from
:mod:`event_planner.event_analytics`.
"""

from __future__ import annotations

from datetime import date
from typing import Optional, Sequence

import streamlit as st

from ....event_analytics import (
    BudgetSummary,
    RsvpSummary,
    category_name,
    category_spending,
    days_until,
    sort_expenses,
)
from ....models import BudgetCategory, Event, Expense
from .... import visualization as viz
from ...config import get_config_value
from ..common.formatting import escape_dollar_for_markdown, format_currency, format_event_date


def event_type_label(category: str, with_icon: bool = True) -> str:
    entry = get_config_value('event_types', 'event_types', category, default=None)
    if not entry:
        return category.title()
    return f"{entry['icon']} {entry['label']}" if with_icon else entry['label']


def countdown_text(event: Event, today: Optional[date] = None) -> str:
    days = days_until(event.date, today)
    if days == 0:
        return "Today"
    if days == 1:
        return "Tomorrow"
    if days > 0:
        return f"In {days} days"
    return f"{-days} days ago"


def render_event_card(event: Event, key_prefix: str = "event") -> bool:
    """Render one event in the dashboard list.  Returns True when opened."""
    with st.container(border=True):
        col1, col2 = st.columns([3, 1])
        with col1:
            st.markdown(f"**{event.title}**")
            st.caption(
                f"{event_type_label(event.category)} · {format_event_date(event.date)} · {event.location}"
            )
        with col2:
            st.markdown(escape_dollar_for_markdown(event.budget))
            st.caption(countdown_text(event))
        return st.button("Open", key=f"{key_prefix}_{event.id}")


def render_budget_metrics(summary: BudgetSummary) -> None:
    col1, col2, col3 = st.columns(3)
    col1.metric("Total Budget", format_currency(summary.total_budget))
    col2.metric("Spent", format_currency(summary.total_spent), f"{summary.spent_percentage}% used", delta_color="off")
    col3.metric("Remaining", format_currency(summary.display_remaining))
    if summary.over_budget:
        st.warning(f"Over budget by {escape_dollar_for_markdown(summary.over_budget_by)}")
    st.plotly_chart(viz.create_budget_progress_chart(summary), use_container_width=True)


def render_budget_breakdown(categories: Sequence[BudgetCategory], expenses: Sequence[Expense]) -> None:
    spending = category_spending(categories, expenses)
    if spending.empty:
        st.info("No budget categories yet.")
        return
    col1, col2 = st.columns(2)
    with col1:
        st.plotly_chart(viz.create_category_spending_chart(spending), use_container_width=True)
    with col2:
        st.plotly_chart(viz.create_category_share_chart(spending), use_container_width=True)
    display = spending.copy()
    for column in ('Allocated', 'Spent', 'Remaining'):
        display[column] = display[column].map(format_currency)
    display['Percent Used'] = display['Percent Used'].map(lambda p: f"{p:.0f}%")
    st.dataframe(display, use_container_width=True, hide_index=True)


def render_expense_list(expenses: Sequence[Expense], categories: Sequence[BudgetCategory]) -> Optional[str]:
    """List expenses newest first.  Returns the id of an expense to delete."""
    if not expenses:
        st.info("No expenses recorded yet.")
        return None
    to_delete = None
    for expense in sort_expenses(expenses):
        col1, col2, col3, col4 = st.columns([3, 2, 2, 1])
        col1.markdown(f"**{expense.description}**")
        col2.caption(category_name(expense.category_id, categories))
        col3.markdown(f"{escape_dollar_for_markdown(expense.amount)} · {format_event_date(expense.date, '%b %d')}")
        if col4.button("🗑️", key=f"delete_expense_{expense.id}"):
            to_delete = expense.id
    return to_delete


def render_rsvp_summary(summary: RsvpSummary, confirmed_guests: int) -> None:
    cols = st.columns(5)
    for col, (status, count) in zip(cols, summary.as_dict().items()):
        label = get_config_value('event_types', 'rsvp_statuses', status, 'label', default=status.title())
        col.metric(label, count)
    cols[4].metric("Confirmed Guests", confirmed_guests)
    if summary.total:
        st.plotly_chart(viz.create_rsvp_chart(summary), use_container_width=True)
