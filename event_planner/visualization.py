"""Plotly visualisation helpers for the event pages.

Each function accepts one of the summaries produced by
:mod:`event_analytics` and returns a `plotly.graph_objects.Figure` that the
pages render with ``st.plotly_chart``.
"""

from __future__ import annotations

import numpy as np
import pandas as pd
import plotly.express as px
import plotly.graph_objects as go

from .event_analytics import BudgetSummary, RsvpSummary

SPENT_COLOR = "#6366f1"
REMAINING_COLOR = "#e5e7eb"
OVER_BUDGET_COLOR = "#ef4444"
RSVP_COLORS = {
    "accepted": "#22c55e",
    "maybe": "#eab308",
    "declined": "#ef4444",
    "pending": "#9ca3af",
}


def _empty_figure(title: str = "No data to display") -> go.Figure:
    fig = go.Figure()
    fig.update_layout(title=title)
    return fig


def create_budget_progress_chart(summary: BudgetSummary) -> go.Figure:
    """Doughnut of spent versus remaining budget.

    Parameters
    ----------
    summary : BudgetSummary
        Output of :func:`event_analytics.budget_summary`.

    Returns
    -------
    plotly.graph_objects.Figure
        Doughnut chart with the spent percentage in the centre.  When the
        event is over budget the whole ring is drawn in the warning colour.
    """
    if summary.total_budget <= 0 and summary.total_spent <= 0:
        return _empty_figure("No budget set")
    if summary.over_budget:
        values = [summary.total_spent, 0.0]
        colors = [OVER_BUDGET_COLOR, REMAINING_COLOR]
    else:
        values = [summary.total_spent, summary.display_remaining]
        colors = [SPENT_COLOR, REMAINING_COLOR]
    fig = go.Figure(
        go.Pie(
            labels=["Spent", "Remaining"],
            values=values,
            hole=0.65,
            marker=dict(colors=colors),
            sort=False,
            textinfo="none",
        )
    )
    fig.update_layout(
        showlegend=True,
        annotations=[dict(text=f"{summary.spent_percentage}%", x=0.5, y=0.5, showarrow=False, font_size=22)],
        margin=dict(t=30, b=10, l=10, r=10),
    )
    return fig


def create_category_spending_chart(spending: pd.DataFrame) -> go.Figure:
    """Grouped bar chart of allocated against spent per category.

    Parameters
    ----------
    spending : pandas.DataFrame
        Output of :func:`event_analytics.category_spending`.

    Returns
    -------
    plotly.graph_objects.Figure
        Grouped bars; categories over their allocation are outlined in red.
    """
    if spending.empty:
        return _empty_figure()
    long_df = spending.melt(
        id_vars="Category",
        value_vars=["Allocated", "Spent"],
        var_name="Type",
        value_name="Amount",
    )
    fig = px.bar(
        long_df,
        x="Category",
        y="Amount",
        color="Type",
        barmode="group",
        color_discrete_map={"Allocated": REMAINING_COLOR, "Spent": SPENT_COLOR},
    )
    over = spending["Over Budget"].to_numpy(dtype=bool)
    if over.any():
        widths = np.where(over, 2, 0)
        fig.update_traces(
            selector=dict(name="Spent"),
            marker_line_color=OVER_BUDGET_COLOR,
            marker_line_width=widths,
        )
    fig.update_layout(xaxis_title="", yaxis_title="Amount ($)", legend_title="")
    return fig


def create_category_share_chart(spending: pd.DataFrame) -> go.Figure:
    """Pie chart of how the budget is split across categories."""
    if spending.empty or spending["Allocated"].sum() <= 0:
        return _empty_figure()
    fig = px.pie(spending, names="Category", values="Allocated", hole=0.3)
    fig.update_traces(textposition="inside", textinfo="percent+label")
    return fig


def create_rsvp_chart(summary: RsvpSummary) -> go.Figure:
    """Horizontal stacked bar of RSVP statuses."""
    counts = summary.as_dict()
    if summary.total == 0:
        return _empty_figure("No invitations yet")
    fig = go.Figure()
    for status, count in counts.items():
        fig.add_trace(
            go.Bar(
                y=["Guests"],
                x=[count],
                name=status.title(),
                orientation="h",
                marker_color=RSVP_COLORS[status],
            )
        )
    fig.update_layout(barmode="stack", height=180, margin=dict(t=20, b=20, l=10, r=10))
    return fig
