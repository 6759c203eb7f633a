import itertools
import types
from datetime import datetime, timezone

import pytest

from event_planner import db, stores
from event_planner.stores import (
    AppState,
    BudgetCategoryStore,
    EventStore,
    InvitationStore,
    add_to_calendar,
    get_app_state,
    plan_event,
)
from event_planner.reminders import due_reminders


def _event_data(**overrides):
    data = {
        'title': 'Summer Wedding',
        'category': 'wedding',
        'date': '2025-06-14',
        'location': 'Lakeside Hall',
        'budget': 5000,
        'guest_count': 80,
    }
    data.update(overrides)
    return data


@pytest.fixture
def clock(monkeypatch):
    """Strictly increasing created_at stamps."""
    ticks = itertools.count(1)
    monkeypatch.setattr(stores, 'utc_now_iso', lambda: f"2025-01-01T00:00:{next(ticks):02d}+00:00")


@pytest.fixture
def state(temp_db, clock):
    app = AppState()
    app.sign_in('host@example.com', 'Pat Host')
    return app


def test_plan_event_creates_event_and_template_categories(state):
    event = plan_event(state, _event_data())

    assert state.events.current_event == event
    assert state.events.events[0].id == event.id
    stored = {c.name: c.amount for c in state.budget_categories.categories}
    assert stored['Venue'] == pytest.approx(1500.0)
    assert stored['Catering'] == pytest.approx(1250.0)
    assert stored['Miscellaneous'] == pytest.approx(200.0)

    state.budget_categories.fetch(event.id)
    assert sum(c.percentage for c in state.budget_categories.categories) == pytest.approx(100)
    assert {c.event_id for c in state.budget_categories.categories} == {event.id}


def test_create_event_requires_signed_in_user(temp_db):
    store = EventStore()
    with pytest.raises(PermissionError):
        store.create_event(_event_data())
    assert store.error == 'User not authenticated'
    assert store.is_loading is False


def test_create_event_validation_error_is_recorded_and_raised(state):
    with pytest.raises(ValueError):
        state.events.create_event(_event_data(budget=-1))
    assert 'negative' in state.events.error
    assert db.fetch_rows('events') == []


def test_fetch_events_newest_first(state):
    for title in ['one', 'two', 'three']:
        state.events.create_event(_event_data(title=title))
    state.events.items = []
    state.events.fetch_events()
    assert [e.title for e in state.events.events] == ['three', 'two', 'one']


def test_fetch_events_only_returns_own_events(state):
    state.events.create_event(_event_data(title='mine'))
    other = AppState()
    other.sign_in('guest@example.com')
    other.events.fetch_events()
    assert other.events.events == []


def test_fetch_unknown_event_sets_error(state):
    state.events.fetch_event('missing')
    assert state.events.error == 'Event not found'
    assert state.events.current_event is None


def test_update_event_refreshes_current_event(state):
    event = state.events.create_event(_event_data())
    state.events.update_event(event.id, {'title': 'Winter Wedding', 'is_public': True})
    assert state.events.error is None
    assert state.events.current_event.title == 'Winter Wedding'
    assert db.fetch_by_id('events', event.id)['is_public'] == 1


def test_invalid_update_leaves_row_untouched(state):
    event = state.events.create_event(_event_data())
    state.events.update_event(event.id, {'category': 'rave'})
    assert 'event category' in state.events.error
    assert db.fetch_by_id('events', event.id)['category'] == 'wedding'


def test_delete_event_cascades(state):
    event = plan_event(state, _event_data())
    state.expenses.create({'event_id': event.id, 'description': 'Deposit', 'amount': 500, 'date': '2025-03-01'})

    state.events.delete_event(event.id)

    assert state.events.error is None
    assert state.events.current_event is None
    assert db.fetch_rows('budget_categories', {'event_id': event.id}) == []
    assert db.fetch_rows('expenses', {'event_id': event.id}) == []


def test_category_update_recomputes_amount(state):
    event = plan_event(state, _event_data())
    venue = state.budget_categories.categories[0]
    state.budget_categories.update(venue.id, {'percentage': 40}, event_budget=event.budget)
    updated = state.budget_categories.categories[0]
    assert updated.amount == pytest.approx(2000.0)
    assert db.fetch_by_id('budget_categories', venue.id)['amount'] == pytest.approx(2000.0)


def test_expenses_fetched_newest_first_and_overspend_allowed(state):
    event = state.events.create_event(_event_data(budget=100))
    for day, amount in [('2025-03-01', 80), ('2025-04-01', 90)]:
        state.expenses.create({'event_id': event.id, 'description': 'Item', 'amount': amount, 'date': day})
    state.expenses.fetch(event.id)
    assert [e.date for e in state.expenses.expenses] == ['2025-04-01', '2025-03-01']
    assert sum(e.amount for e in state.expenses.expenses) > event.budget


def test_delete_unknown_expense_sets_error(state):
    state.expenses.delete('missing')
    assert state.expenses.error == 'No expenses row with id missing'


def test_invitation_flow(state):
    event = state.events.create_event(_event_data())
    invitation = state.invitations.send_invitation({'event_id': event.id, 'invitee_email': 'guest@example.com'})
    assert invitation.status == 'pending'
    assert invitation.guest_count == 1
    assert invitation.invited_by == state.user.id

    state.invitations.update_status(invitation.id, 'accepted', guest_count=2, dietary_restrictions='vegan')
    state.invitations.fetch(event.id)
    stored = state.invitations.invitations[0]
    assert stored.status == 'accepted'
    assert stored.guest_count == 2
    assert stored.dietary_restrictions == 'vegan'
    assert stored.responded_at is not None


def test_invalid_rsvp_status_is_rejected(state):
    event = state.events.create_event(_event_data())
    invitation = state.invitations.send_invitation({'event_id': event.id, 'invitee_email': 'guest@example.com'})
    state.invitations.update_status(invitation.id, 'ghosted')
    assert 'invitation status' in state.invitations.error
    assert state.invitations.invitations[0].status == 'pending'


def test_reminder_is_scheduled_from_event_date(state):
    event = state.events.create_event(_event_data())
    reminder = state.reminders.create(
        {'event_id': event.id, 'reminder_type': 'email', 'reminder_time': '1 day'},
        event_date=event.date,
    )
    assert reminder.is_sent is False
    assert reminder.scheduled_for == '2025-06-13T00:00:00+00:00'

    state.reminders.mark_sent(reminder.id)
    stored = db.fetch_by_id('event_reminders', reminder.id)
    assert stored['is_sent'] == 1
    assert stored['sent_at'] is not None


def test_reminder_with_bad_offset_is_not_saved(state):
    event = state.events.create_event(_event_data())
    with pytest.raises(ValueError):
        state.reminders.create(
            {'event_id': event.id, 'reminder_type': 'sms', 'reminder_time': 'soonish'},
            event_date=event.date,
        )
    assert db.fetch_rows('event_reminders') == []


def test_calendar_integration_lifecycle(state):
    event = state.events.create_event(_event_data())
    integration = state.calendar_integrations.create({'event_id': event.id, 'calendar_provider': 'google'})
    assert integration.sync_status == 'pending'

    state.calendar_integrations.mark_synced(integration.id, 'ext-123')
    stored = db.fetch_by_id('event_calendar_integrations', integration.id)
    assert stored['sync_status'] == 'synced'
    assert stored['external_event_id'] == 'ext-123'

    state.calendar_integrations.mark_failed(integration.id, 'token expired')
    assert state.calendar_integrations.integrations[0].sync_error == 'token expired'


def test_generate_calendar_url_raises_and_records_error(state):
    with pytest.raises(ValueError, match='Event not found'):
        state.calendar_integrations.generate_calendar_url('missing', 'google')
    assert state.calendar_integrations.error == 'Event not found'


def test_add_to_calendar_records_integration(state):
    event = state.events.create_event(_event_data())
    result = add_to_calendar(state, event, 'google')
    assert result['url'].startswith('https://calendar.google.com/')

    ics = add_to_calendar(state, event, 'apple')
    assert ics['filename'] == 'summer_wedding.ics'
    assert 'BEGIN:VCALENDAR' in ics['content']

    providers = {i.calendar_provider for i in state.calendar_integrations.integrations}
    assert providers == {'google', 'apple'}


def test_backend_failure_is_kept_on_the_store():
    class BrokenBackend:
        def fetch_rows(self, *args, **kwargs):
            raise RuntimeError('connection refused')

    store = BudgetCategoryStore(backend=BrokenBackend())
    store.items = ['cached']
    store.fetch('evt-1')
    assert store.error == 'connection refused'
    assert store.is_loading is False
    assert store.items == ['cached']


def test_sign_out_clears_state(state):
    plan_event(state, _event_data())
    state.sign_out()
    assert state.user is None
    assert state.events.events == []
    assert state.budget_categories.user_id is None


def test_get_app_state_reuses_session_entry(temp_db):
    session = {}
    first = get_app_state(session)
    assert get_app_state(session) is first
    assert session['app_state'] is first


def test_update_profile_updates_user(state):
    state.update_profile('Pat Q. Host')
    assert state.user.full_name == 'Pat Q. Host'
    assert db.fetch_by_id('users', state.user.id)['full_name'] == 'Pat Q. Host'


def test_update_profile_requires_user():
    with pytest.raises(PermissionError):
        AppState(backend=types.SimpleNamespace()).update_profile('Nobody')


def test_update_of_unloaded_record_is_validated(state):
    event = state.events.create_event(_event_data())
    invitation = state.invitations.send_invitation({'event_id': event.id, 'invitee_email': 'guest@example.com'})

    fresh = InvitationStore(user_id=state.user.id)
    fresh.update_status(invitation.id, 'bogus')

    assert 'invitation status' in fresh.error
    assert db.fetch_by_id('event_invitations', invitation.id)['status'] == 'pending'
    fresh.fetch(event.id)
    assert [i.status for i in fresh.invitations] == ['pending']


def test_update_of_unknown_record_on_fresh_store(temp_db):
    fresh = InvitationStore()
    fresh.update('missing', {'status': 'accepted'})
    assert fresh.error == 'No event_invitations row with id missing'


def test_event_date_change_reschedules_unsent_reminders(state):
    event = state.events.create_event(_event_data(date='2030-01-10'))
    pending = state.reminders.create(
        {'event_id': event.id, 'reminder_type': 'email', 'reminder_time': '1 day'},
        event_date=event.date,
    )
    sent = state.reminders.create(
        {'event_id': event.id, 'reminder_type': 'sms', 'reminder_time': '1 week'},
        event_date=event.date,
    )
    state.reminders.mark_sent(sent.id)

    state.update_event(event.id, {'date': '2020-01-10'})

    assert state.errors() == []
    state.reminders.fetch(event.id)
    by_id = {r.id: r for r in state.reminders.reminders}
    assert by_id[pending.id].scheduled_for == '2020-01-09T00:00:00+00:00'
    assert by_id[sent.id].scheduled_for == '2030-01-03T00:00:00+00:00'
    due = due_reminders(state.reminders.reminders, now=datetime(2025, 1, 1, tzinfo=timezone.utc))
    assert [r.id for r in due] == [pending.id]


def test_event_update_without_date_leaves_reminders(state, monkeypatch):
    event = state.events.create_event(_event_data())
    calls = []
    monkeypatch.setattr(state.reminders, 'reschedule', lambda *args: calls.append(args))
    state.update_event(event.id, {'title': 'Renamed'})
    state.update_event(event.id, {'date': event.date})
    assert calls == []


def test_failed_fetch_clears_previous_current_event(state):
    event = state.events.create_event(_event_data())
    state.events.fetch_event(event.id)
    assert state.events.current_event.id == event.id

    bad_row = {**event.to_row(), 'category': 'rave'}
    state.events.backend = types.SimpleNamespace(fetch_by_id=lambda table, record_id: bad_row)
    state.events.fetch_event(event.id)

    assert state.events.current_event is None
    assert 'event category' in state.events.error
