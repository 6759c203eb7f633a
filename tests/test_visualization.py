import types

from event_planner import visualization as viz
from event_planner.event_analytics import budget_summary, category_spending, rsvp_summary
from event_planner.models import BudgetCategory, Expense, Invitation


def _categories():
    return [
        BudgetCategory(name='Venue', percentage=50, amount=500.0, event_id='e1', id='c1'),
        BudgetCategory(name='Food', percentage=50, amount=500.0, event_id='e1', id='c2'),
    ]


def _expenses(amount):
    return [Expense(description='x', amount=amount, date='2025-01-01', category_id='c1', event_id='e1')]


def test_budget_progress_chart_shows_percentage():
    fig = viz.create_budget_progress_chart(budget_summary(_categories(), _expenses(250)))
    assert list(fig.data[0].values) == [250.0, 750.0]
    assert fig.layout.annotations[0].text == '25%'


def test_budget_progress_chart_over_budget():
    fig = viz.create_budget_progress_chart(budget_summary(_categories(), _expenses(1500)))
    assert fig.data[0].marker.colors[0] == viz.OVER_BUDGET_COLOR


def test_budget_progress_chart_without_budget():
    fig = viz.create_budget_progress_chart(budget_summary([], []))
    assert len(fig.data) == 0
    assert fig.layout.title.text == 'No budget set'


def test_category_spending_chart_has_allocated_and_spent_traces():
    fig = viz.create_category_spending_chart(category_spending(_categories(), _expenses(600)))
    assert {trace.name for trace in fig.data} == {'Allocated', 'Spent'}


def test_category_charts_handle_empty_frames():
    empty = category_spending([], [])
    assert len(viz.create_category_spending_chart(empty).data) == 0
    assert len(viz.create_category_share_chart(empty).data) == 0


def test_rsvp_chart_one_trace_per_status():
    invitations = [
        Invitation(event_id='e1', invitee_email='a@x.com', invited_by='u', invited_at='t', created_at='t',
                   status=status)
        for status in ['accepted', 'declined']
    ]
    fig = viz.create_rsvp_chart(rsvp_summary(invitations))
    assert [trace.name for trace in fig.data] == ['Pending', 'Accepted', 'Declined', 'Maybe']
    assert len(viz.create_rsvp_chart(rsvp_summary([])).data) == 0


def test_budget_metrics_render_progress_chart(monkeypatch):
    from event_planner.pages.lib.events import ui_components

    charts = []
    column = types.SimpleNamespace(metric=lambda *args, **kwargs: None)
    monkeypatch.setattr(ui_components, 'st', types.SimpleNamespace(
        columns=lambda n: [column] * n,
        warning=lambda message: None,
        plotly_chart=lambda fig, **kwargs: charts.append(fig),
    ))

    ui_components.render_budget_metrics(budget_summary(_categories(), _expenses(250.0), budget=1000.0))

    assert len(charts) == 1
    assert list(charts[0].data[0].labels) == ['Spent', 'Remaining']
    assert list(charts[0].data[0].values) == [250.0, 750.0]
