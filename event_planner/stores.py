"""In-memory state containers for the event pages.

Each store holds the records fetched for the current screen and proxies
create/update/delete straight to the database.  Every operation flips
``is_loading``, makes one backend call and then either updates ``items`` or
keeps the failure message in ``error`` for the page to show next to the form.
There is no retry and no rollback: the last write wins.

Fetch, update and delete failures are recorded and swallowed.  Create
failures are recorded and re-raised so the submitting form knows to stay open.
"""

from __future__ import annotations

import dataclasses
import logging
from contextlib import contextmanager
from dataclasses import dataclass, field
from typing import Any, Dict, Iterator, List, Mapping, Optional, Sequence, Union

from . import calendar_links, db
from .budget_allocation import suggest_budget_categories
from .models import (
    BudgetCategory,
    CalendarIntegration,
    Event,
    Expense,
    Invitation,
    Reminder,
    UserProfile,
    new_id,
    utc_now_iso,
)
from .reminders import scheduled_for

logger = logging.getLogger(__name__)


class RecordStore:
    """CRUD proxy for one table, keyed by a parent id."""

    table = ''
    record_type: Any = None
    parent_key = 'event_id'
    order_by: Optional[str] = None
    descending = True

    def __init__(self, backend: Any = db, user_id: Optional[str] = None) -> None:
        self.backend = backend
        self.user_id = user_id
        self.items: List[Any] = []
        self.is_loading = False
        self.error: Optional[str] = None

    # Plumbing ----------------------------------------------------------------

    @contextmanager
    def _request(self, action: str, reraise: bool = False) -> Iterator[None]:
        self.is_loading = True
        self.error = None
        try:
            yield
        except Exception as e:
            self.error = str(e)
            logger.error("%s on %s failed: %s", action, self.table, e)
            if reraise:
                raise
        finally:
            self.is_loading = False

    def _require_user(self) -> str:
        if not self.user_id:
            raise PermissionError('User not authenticated')
        return self.user_id

    def _find(self, record_id: str) -> Optional[Any]:
        for item in self.items:
            if item.id == record_id:
                return item
        return None

    def _validated(self, data: Mapping[str, Any]) -> Any:
        return self.record_type.from_row(data)

    def _insert(self, records: Sequence[Any]) -> None:
        self.backend.insert_rows(self.table, [record.to_row() for record in records])
        self.items = list(records) + self.items

    # Public API --------------------------------------------------------------

    def fetch(self, parent_id: str) -> None:
        with self._request('fetch'):
            rows = self.backend.fetch_rows(
                self.table, {self.parent_key: parent_id}, self.order_by, self.descending
            )
            self.items = [self.record_type.from_row(row) for row in rows]

    def update(self, record_id: str, updates: Mapping[str, Any]) -> None:
        with self._request('update'):
            self._apply_update(record_id, dict(updates))

    def delete(self, record_id: str) -> None:
        with self._request('delete'):
            self.backend.delete_row(self.table, record_id)
            self.items = [item for item in self.items if item.id != record_id]

    def _apply_update(self, record_id: str, updates: Dict[str, Any]) -> Any:
        updates.pop('id', None)
        current = self._find(record_id)
        if current is None:
            row = self.backend.fetch_by_id(self.table, record_id)
            if row is None:
                raise LookupError(f"No {self.table} row with id {record_id}")
            current = self.record_type.from_row(row)
        merged = self._validated({**current.to_row(), **updates})
        merged_row = merged.to_row()
        self.backend.update_row(self.table, record_id, {key: merged_row[key] for key in updates})
        self.items = [merged if item.id == record_id else item for item in self.items]
        return merged


class EventStore(RecordStore):
    table = 'events'
    record_type = Event
    parent_key = 'user_id'
    order_by = 'created_at'

    def __init__(self, backend: Any = db, user_id: Optional[str] = None) -> None:
        super().__init__(backend, user_id)
        self.current_event: Optional[Event] = None

    @property
    def events(self) -> List[Event]:
        return self.items

    def fetch_events(self) -> None:
        with self._request('fetch'):
            rows = self.backend.fetch_rows(
                self.table, {'user_id': self._require_user()}, self.order_by, self.descending
            )
            self.items = [Event.from_row(row) for row in rows]

    def fetch_event(self, event_id: str) -> None:
        self.current_event = None
        with self._request('fetch'):
            row = self.backend.fetch_by_id(self.table, event_id)
            if row is None:
                raise LookupError('Event not found')
            self.current_event = Event.from_row(row)

    def create_event(self, data: Mapping[str, Any]) -> Event:
        with self._request('create', reraise=True):
            event = Event.from_row({
                **data,
                'id': new_id(),
                'user_id': self._require_user(),
                'created_at': utc_now_iso(),
            })
            self._insert([event])
            self.current_event = event
        return event

    def update_event(self, event_id: str, updates: Mapping[str, Any]) -> Optional[Event]:
        merged = None
        with self._request('update'):
            merged = self._apply_update(event_id, dict(updates))
            if self.current_event and self.current_event.id == event_id:
                self.current_event = merged
        return merged

    def delete_event(self, event_id: str) -> None:
        self.delete(event_id)
        if self.error is None and self.current_event and self.current_event.id == event_id:
            self.current_event = None


class BudgetCategoryStore(RecordStore):
    table = 'budget_categories'
    record_type = BudgetCategory

    @property
    def categories(self) -> List[BudgetCategory]:
        return self.items

    def create_many(self, categories: Sequence[Union[BudgetCategory, Mapping[str, Any]]]) -> List[BudgetCategory]:
        with self._request('create', reraise=True):
            records = []
            for category in categories:
                row = category.to_row() if isinstance(category, BudgetCategory) else dict(category)
                records.append(BudgetCategory.from_row({**row, 'id': new_id()}))
            self._insert(records)
        return records

    def update(self, record_id: str, updates: Mapping[str, Any], event_budget: Optional[float] = None) -> None:
        updates = dict(updates)
        if event_budget is not None and 'percentage' in updates:
            updates['amount'] = float(event_budget) * float(updates['percentage']) / 100
        super().update(record_id, updates)


class ExpenseStore(RecordStore):
    table = 'expenses'
    record_type = Expense
    order_by = 'date'

    @property
    def expenses(self) -> List[Expense]:
        return self.items

    def create(self, data: Mapping[str, Any]) -> Expense:
        with self._request('create', reraise=True):
            expense = Expense.from_row({**data, 'id': new_id()})
            self._insert([expense])
        return expense


class InvitationStore(RecordStore):
    table = 'event_invitations'
    record_type = Invitation
    order_by = 'invited_at'

    @property
    def invitations(self) -> List[Invitation]:
        return self.items

    def send_invitation(self, data: Mapping[str, Any]) -> Invitation:
        with self._request('create', reraise=True):
            now = utc_now_iso()
            invitation = Invitation.from_row({
                'status': 'pending',
                'guest_count': 1,
                **data,
                'id': new_id(),
                'invited_by': self._require_user(),
                'invited_at': now,
                'created_at': now,
            })
            self._insert([invitation])
        return invitation

    def update_status(
        self,
        invitation_id: str,
        status: str,
        guest_count: Optional[int] = None,
        dietary_restrictions: Optional[str] = None,
        special_requests: Optional[str] = None,
    ) -> None:
        updates: Dict[str, Any] = {'status': status, 'responded_at': utc_now_iso()}
        if guest_count is not None:
            updates['guest_count'] = guest_count
        if dietary_restrictions is not None:
            updates['dietary_restrictions'] = dietary_restrictions
        if special_requests is not None:
            updates['special_requests'] = special_requests
        self.update(invitation_id, updates)


class ReminderStore(RecordStore):
    table = 'event_reminders'
    record_type = Reminder
    order_by = 'created_at'

    @property
    def reminders(self) -> List[Reminder]:
        return self.items

    def create(self, data: Mapping[str, Any], event_date: Optional[str] = None) -> Reminder:
        with self._request('create', reraise=True):
            row = {
                **data,
                'id': new_id(),
                'user_id': data.get('user_id') or self._require_user(),
                'is_sent': False,
                'created_at': utc_now_iso(),
            }
            if event_date:
                row['scheduled_for'] = scheduled_for(event_date, str(data.get('reminder_time', ''))).isoformat()
            reminder = Reminder.from_row(row)
            self._insert([reminder])
        return reminder

    def mark_sent(self, reminder_id: str) -> None:
        self.update(reminder_id, {'is_sent': True, 'sent_at': utc_now_iso()})

    def reschedule(self, event_id: str, event_date: str) -> None:
        """Move every unsent reminder of an event to match a new event date."""
        self.fetch(event_id)
        if self.error:
            return
        with self._request('update'):
            for reminder in list(self.items):
                if reminder.is_sent:
                    continue
                when = scheduled_for(event_date, reminder.reminder_time).isoformat()
                self._apply_update(reminder.id, {'scheduled_for': when})


class CalendarIntegrationStore(RecordStore):
    table = 'event_calendar_integrations'
    record_type = CalendarIntegration
    order_by = 'created_at'

    @property
    def integrations(self) -> List[CalendarIntegration]:
        return self.items

    def create(self, data: Mapping[str, Any]) -> CalendarIntegration:
        with self._request('create', reraise=True):
            integration = CalendarIntegration.from_row({
                **data,
                'id': new_id(),
                'user_id': data.get('user_id') or self._require_user(),
                'sync_status': 'pending',
                'created_at': utc_now_iso(),
            })
            self._insert([integration])
        return integration

    def mark_synced(self, integration_id: str, external_event_id: Optional[str] = None) -> None:
        updates: Dict[str, Any] = {'sync_status': 'synced', 'last_synced_at': utc_now_iso(), 'sync_error': None}
        if external_event_id:
            updates['external_event_id'] = external_event_id
        self.update(integration_id, updates)

    def mark_failed(self, integration_id: str, message: str) -> None:
        self.update(integration_id, {'sync_status': 'failed', 'sync_error': message})

    def generate_calendar_url(self, event_id: str, fmt: str) -> str:
        result = calendar_links.generate_calendar_url(event_id, fmt)
        if 'error' in result:
            self.error = result['error']
            raise ValueError(result['error'])
        return result['url']


# ---------------------------------------------------------------------------
# Application state
# ---------------------------------------------------------------------------


@dataclass
class AppState:
    """Everything one browser session holds in memory."""

    backend: Any = db
    user: Optional[UserProfile] = None
    events: EventStore = field(default=None)
    budget_categories: BudgetCategoryStore = field(default=None)
    expenses: ExpenseStore = field(default=None)
    invitations: InvitationStore = field(default=None)
    reminders: ReminderStore = field(default=None)
    calendar_integrations: CalendarIntegrationStore = field(default=None)

    def __post_init__(self) -> None:
        self.events = self.events or EventStore(self.backend)
        self.budget_categories = self.budget_categories or BudgetCategoryStore(self.backend)
        self.expenses = self.expenses or ExpenseStore(self.backend)
        self.invitations = self.invitations or InvitationStore(self.backend)
        self.reminders = self.reminders or ReminderStore(self.backend)
        self.calendar_integrations = self.calendar_integrations or CalendarIntegrationStore(self.backend)
        if self.user:
            self._propagate_user()

    @property
    def stores(self) -> List[RecordStore]:
        return [
            self.events,
            self.budget_categories,
            self.expenses,
            self.invitations,
            self.reminders,
            self.calendar_integrations,
        ]

    @property
    def is_authenticated(self) -> bool:
        return self.user is not None

    @property
    def is_loading(self) -> bool:
        return any(store.is_loading for store in self.stores)

    def _propagate_user(self) -> None:
        user_id = self.user.id if self.user else None
        for store in self.stores:
            store.user_id = user_id

    def sign_in(self, email: str, full_name: Optional[str] = None) -> UserProfile:
        self.user = UserProfile.from_row(self.backend.ensure_user(email, full_name))
        self._propagate_user()
        return self.user

    def sign_out(self) -> None:
        self.user = None
        for store in self.stores:
            store.items = []
            store.error = None
        self.events.current_event = None
        self._propagate_user()

    def update_profile(self, full_name: str, profile_image_url: Optional[str] = None) -> None:
        if self.user is None:
            raise PermissionError('No user logged in')
        self.backend.update_profile(self.user.id, full_name, profile_image_url)
        changes: Dict[str, Any] = {'full_name': full_name}
        if profile_image_url:
            changes['profile_image_url'] = profile_image_url
        self.user = dataclasses.replace(self.user, **changes)

    def update_event(self, event_id: str, updates: Mapping[str, Any]) -> Optional[Event]:
        """Update an event; a date change reschedules its unsent reminders."""
        before = self.events.current_event
        old_date = before.date if before and before.id == event_id else None
        event = self.events.update_event(event_id, updates)
        if event is not None and 'date' in updates and event.date != old_date:
            self.reminders.reschedule(event_id, event.date)
        return event

    def errors(self) -> List[str]:
        return [store.error for store in self.stores if store.error]

    def load_event(self, event_id: str) -> Optional[Event]:
        """Fetch one event and all of its children, one call after another."""
        self.events.fetch_event(event_id)
        event = self.events.current_event
        if event is None:
            return None
        self.budget_categories.fetch(event_id)
        self.expenses.fetch(event_id)
        self.invitations.fetch(event_id)
        self.reminders.fetch(event_id)
        self.calendar_integrations.fetch(event_id)
        return event


def get_app_state(session_state: Optional[Any] = None, backend: Any = db) -> AppState:
    """Return the AppState for this session, creating it on first access."""
    if session_state is None:
        import streamlit as st
        session_state = st.session_state
    state = session_state.get('app_state')
    if not isinstance(state, AppState):
        state = AppState(backend=backend)
        session_state['app_state'] = state
    return state


def plan_event(state: AppState, data: Mapping[str, Any]) -> Event:
    """Create an event and seed its budget categories from the template."""
    event = state.events.create_event(data)
    suggestions = suggest_budget_categories(event)
    state.budget_categories.items = []
    state.budget_categories.create_many(suggestions)
    return event


def add_to_calendar(state: AppState, event: Event, provider: str) -> Dict[str, str]:
    """Build the calendar link or file for ``provider`` and record the integration.

    Returns ``{'url': ...}`` for Google and Outlook and
    ``{'filename': ..., 'content': ...}`` for Apple Calendar and iCal.
    """
    if provider == 'google':
        result = {'url': calendar_links.google_calendar_url(event)}
    elif provider == 'outlook':
        result = {'url': calendar_links.outlook_calendar_url(event)}
    elif provider in ('apple', 'ical'):
        result = {'filename': calendar_links.ics_filename(event), 'content': calendar_links.ical_content(event)}
    else:
        raise ValueError('Unsupported calendar format')
    state.calendar_integrations.create({'event_id': event.id, 'calendar_provider': provider})
    return result
