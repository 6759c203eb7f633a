import pytest

from event_planner.models import (
    BudgetCategory,
    CalendarIntegration,
    Event,
    Invitation,
    Reminder,
    UserProfile,
    parse_date,
    to_iso_date,
)


def _event_row(**overrides):
    row = {
        'id': 'evt-1',
        'title': '  Team Offsite ',
        'category': 'Corporate',
        'date': '2025-09-03',
        'location': 'Cabin',
        'budget': '2500',
        'guest_count': 12.0,
        'user_id': 'u1',
        'created_at': '2025-01-01T00:00:00+00:00',
    }
    row.update(overrides)
    return row


def test_event_from_row_coerces_values():
    event = Event.from_row(_event_row(is_public=1, max_guests=None, rsvp_deadline=''))
    assert event.title == 'Team Offsite'
    assert event.category == 'corporate'
    assert event.budget == 2500.0
    assert event.guest_count == 12
    assert event.is_public is True
    assert event.max_guests is None
    assert event.rsvp_deadline is None


def test_event_to_row_stores_flag_as_int():
    row = Event.from_row(_event_row(is_public=True)).to_row()
    assert row['is_public'] == 1
    assert row['date'] == '2025-09-03'


@pytest.mark.parametrize('field', ['title', 'location', 'date', 'user_id'])
def test_event_requires_fields(field):
    with pytest.raises(ValueError, match=field):
        Event.from_row(_event_row(**{field: ''}))


def test_event_rejects_unknown_category():
    with pytest.raises(ValueError, match='event category'):
        Event.from_row(_event_row(category='rave'))


def test_event_rejects_negative_budget():
    with pytest.raises(ValueError, match='negative'):
        Event.from_row(_event_row(budget=-5))


def test_event_rejects_fractional_guest_count():
    with pytest.raises(ValueError, match='whole number'):
        Event.from_row(_event_row(guest_count=2.5))


def test_to_iso_date_accepts_timestamps_and_rejects_garbage():
    assert to_iso_date('2025-06-14T18:30:00') == '2025-06-14'
    assert parse_date('2025-06-14').day == 14
    with pytest.raises(ValueError):
        to_iso_date('not a date')


def test_budget_category_percentage_bounds():
    row = {'id': 'c1', 'name': 'Venue', 'percentage': 101, 'amount': 10, 'event_id': 'e1'}
    with pytest.raises(ValueError, match='between 0 and 100'):
        BudgetCategory.from_row(row)
    row['percentage'] = 100
    assert BudgetCategory.from_row(row).percentage == 100.0


def test_invitation_defaults_and_status_validation():
    row = {
        'id': 'i1',
        'event_id': 'e1',
        'invitee_email': 'guest@example.com',
        'invited_at': '2025-01-01',
        'created_at': '2025-01-01',
        'guest_count': None,
        'status': None,
    }
    invitation = Invitation.from_row(row)
    assert invitation.status == 'pending'
    assert invitation.guest_count == 1
    with pytest.raises(ValueError, match='invitation status'):
        Invitation.from_row({**row, 'status': 'ghosted'})


def test_reminder_flag_round_trip_through_int():
    row = {
        'id': 'r1',
        'event_id': 'e1',
        'user_id': 'u1',
        'reminder_type': 'email',
        'reminder_time': '1 day',
        'is_sent': 0,
        'created_at': '2025-01-01',
    }
    reminder = Reminder.from_row(row)
    assert reminder.is_sent is False
    assert Reminder.from_row({**row, 'is_sent': 1}).to_row()['is_sent'] == 1
    with pytest.raises(ValueError, match='reminder type'):
        Reminder.from_row({**row, 'reminder_type': 'pigeon'})


def test_calendar_integration_validates_provider():
    row = {'id': 'x', 'event_id': 'e1', 'user_id': 'u1', 'calendar_provider': 'google', 'created_at': 'now'}
    assert CalendarIntegration.from_row(row).sync_status == 'pending'
    with pytest.raises(ValueError, match='calendar provider'):
        CalendarIntegration.from_row({**row, 'calendar_provider': 'yahoo'})


def test_user_display_name_falls_back_to_email():
    assert UserProfile(id='u', email='sam@example.com').display_name == 'sam'
    assert UserProfile(id='u', email='sam@example.com', full_name='Sam Lee').display_name == 'Sam Lee'
