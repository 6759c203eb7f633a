"""Record types for events and everything hanging off them.

Rows coming back from the database are untyped dictionaries.  Each record
type exposes ``from_row`` which validates and coerces such a dictionary, so
surprising nulls or bad enum values fail at the storage boundary instead of
deep inside display code.  ``to_row`` is the inverse used for inserts.
"""

from __future__ import annotations

import uuid
from dataclasses import asdict, dataclass, field
from datetime import date, datetime, timezone
from typing import Any, Dict, Mapping, Optional

import pandas as pd

EVENT_CATEGORIES = ('wedding', 'party', 'trip', 'conference', 'birthday', 'corporate', 'other')
INVITATION_STATUSES = ('pending', 'accepted', 'declined', 'maybe')
REMINDER_TYPES = ('email', 'sms', 'push')
CALENDAR_PROVIDERS = ('google', 'outlook', 'apple', 'ical')
SYNC_STATUSES = ('pending', 'synced', 'failed', 'removed')


# ---------------------------------------------------------------------------
# Helpers
# ---------------------------------------------------------------------------


def new_id() -> str:
    return str(uuid.uuid4())


def utc_now_iso() -> str:
    return datetime.now(timezone.utc).isoformat()


def _is_blank(value: Any) -> bool:
    if value is None:
        return True
    if isinstance(value, str):
        return not value.strip()
    try:
        return bool(pd.isna(value))
    except (TypeError, ValueError):
        return False


def _required(row: Mapping[str, Any], key: str) -> Any:
    value = row.get(key)
    if _is_blank(value):
        raise ValueError(f"Missing required field '{key}'")
    return value


def _optional_str(value: Any) -> Optional[str]:
    if _is_blank(value):
        return None
    return str(value).strip()


def _to_float(value: Any, name: str) -> float:
    try:
        number = float(value)
    except (TypeError, ValueError):
        raise ValueError(f"Field '{name}' must be a number, got {value!r}") from None
    if pd.isna(number):
        raise ValueError(f"Field '{name}' must be a number, got {value!r}")
    return number


def _to_int(value: Any, name: str) -> int:
    number = _to_float(value, name)
    if not number.is_integer():
        raise ValueError(f"Field '{name}' must be a whole number, got {value!r}")
    return int(number)


def _optional_int(value: Any, name: str) -> Optional[int]:
    if _is_blank(value):
        return None
    return _to_int(value, name)


def _to_bool(value: Any) -> bool:
    if isinstance(value, str):
        return value.strip().lower() in {'1', 'true', 'yes', 'y', 't'}
    if _is_blank(value):
        return False
    return bool(value)


def _choice(value: Any, choices: tuple, name: str) -> str:
    text = str(value).strip().lower() if not _is_blank(value) else ''
    if text not in choices:
        raise ValueError(f"Invalid {name} {value!r}; expected one of {', '.join(choices)}")
    return text


def to_iso_date(value: Any, name: str = 'date') -> str:
    """Coerce a date-like value into ``YYYY-MM-DD``."""
    if isinstance(value, datetime):
        return value.date().isoformat()
    if isinstance(value, date):
        return value.isoformat()
    if hasattr(value, 'to_pydatetime'):
        return value.to_pydatetime().date().isoformat()
    ts = pd.to_datetime(value, errors='coerce')
    if _is_blank(value) or pd.isna(ts):
        raise ValueError(f"Field '{name}' must be a date, got {value!r}")
    return ts.date().isoformat()


def _optional_iso_date(value: Any, name: str) -> Optional[str]:
    if _is_blank(value):
        return None
    return to_iso_date(value, name)


def parse_date(value: str) -> date:
    return date.fromisoformat(to_iso_date(value))


# ---------------------------------------------------------------------------
# Records
# ---------------------------------------------------------------------------


@dataclass
class UserProfile:
    id: str
    email: str
    full_name: Optional[str] = None
    profile_image_url: Optional[str] = None

    @classmethod
    def from_row(cls, row: Mapping[str, Any]) -> 'UserProfile':
        return cls(
            id=str(_required(row, 'id')),
            email=str(_required(row, 'email')).strip(),
            full_name=_optional_str(row.get('full_name')),
            profile_image_url=_optional_str(row.get('profile_image_url')),
        )

    @property
    def display_name(self) -> str:
        return self.full_name or self.email.split('@')[0]

    def to_row(self) -> Dict[str, Any]:
        return asdict(self)


@dataclass
class Event:
    id: str
    title: str
    category: str
    date: str
    location: str
    budget: float
    guest_count: int
    user_id: str
    created_at: str
    description: Optional[str] = None
    is_public: bool = False
    max_guests: Optional[int] = None
    rsvp_deadline: Optional[str] = None

    @classmethod
    def from_row(cls, row: Mapping[str, Any]) -> 'Event':
        budget = _to_float(_required(row, 'budget'), 'budget')
        if budget < 0:
            raise ValueError("Event budget cannot be negative")
        return cls(
            id=str(_required(row, 'id')),
            title=str(_required(row, 'title')).strip(),
            category=_choice(row.get('category'), EVENT_CATEGORIES, 'event category'),
            date=to_iso_date(_required(row, 'date'), 'date'),
            location=str(_required(row, 'location')).strip(),
            budget=budget,
            guest_count=_to_int(row.get('guest_count', 0) or 0, 'guest_count'),
            user_id=str(_required(row, 'user_id')),
            created_at=str(_required(row, 'created_at')),
            description=_optional_str(row.get('description')),
            is_public=_to_bool(row.get('is_public')),
            max_guests=_optional_int(row.get('max_guests'), 'max_guests'),
            rsvp_deadline=_optional_iso_date(row.get('rsvp_deadline'), 'rsvp_deadline'),
        )

    def to_row(self) -> Dict[str, Any]:
        row = asdict(self)
        row['is_public'] = int(self.is_public)
        return row


@dataclass
class BudgetCategory:
    name: str
    percentage: float
    amount: float
    event_id: str = ''
    id: str = field(default_factory=new_id)

    @classmethod
    def from_row(cls, row: Mapping[str, Any]) -> 'BudgetCategory':
        percentage = _to_float(_required(row, 'percentage'), 'percentage')
        if not 0 <= percentage <= 100:
            raise ValueError(f"Budget percentage must be between 0 and 100, got {percentage}")
        return cls(
            id=str(_required(row, 'id')),
            name=str(_required(row, 'name')).strip(),
            percentage=percentage,
            amount=_to_float(row.get('amount', 0) or 0, 'amount'),
            event_id=str(_required(row, 'event_id')),
        )

    def to_row(self) -> Dict[str, Any]:
        return asdict(self)


@dataclass
class Expense:
    description: str
    amount: float
    date: str
    category_id: Optional[str]
    event_id: str
    id: str = field(default_factory=new_id)
    receipt_url: Optional[str] = None

    @classmethod
    def from_row(cls, row: Mapping[str, Any]) -> 'Expense':
        return cls(
            id=str(_required(row, 'id')),
            description=str(_required(row, 'description')).strip(),
            amount=_to_float(_required(row, 'amount'), 'amount'),
            date=to_iso_date(_required(row, 'date'), 'date'),
            category_id=_optional_str(row.get('category_id')),
            event_id=str(_required(row, 'event_id')),
            receipt_url=_optional_str(row.get('receipt_url')),
        )

    def to_row(self) -> Dict[str, Any]:
        return asdict(self)


@dataclass
class Invitation:
    event_id: str
    invitee_email: str
    invited_by: str
    invited_at: str
    created_at: str
    status: str = 'pending'
    guest_count: int = 1
    invitee_name: Optional[str] = None
    dietary_restrictions: Optional[str] = None
    special_requests: Optional[str] = None
    responded_at: Optional[str] = None
    id: str = field(default_factory=new_id)

    @classmethod
    def from_row(cls, row: Mapping[str, Any]) -> 'Invitation':
        guest_count = row.get('guest_count')
        return cls(
            id=str(_required(row, 'id')),
            event_id=str(_required(row, 'event_id')),
            invitee_email=str(_required(row, 'invitee_email')).strip(),
            invitee_name=_optional_str(row.get('invitee_name')),
            invited_by=str(row.get('invited_by') or ''),
            status=_choice(row.get('status') or 'pending', INVITATION_STATUSES, 'invitation status'),
            guest_count=1 if _is_blank(guest_count) else _to_int(guest_count, 'guest_count'),
            dietary_restrictions=_optional_str(row.get('dietary_restrictions')),
            special_requests=_optional_str(row.get('special_requests')),
            invited_at=str(_required(row, 'invited_at')),
            responded_at=_optional_str(row.get('responded_at')),
            created_at=str(_required(row, 'created_at')),
        )

    def to_row(self) -> Dict[str, Any]:
        return asdict(self)


@dataclass
class Reminder:
    event_id: str
    user_id: str
    reminder_type: str
    reminder_time: str
    created_at: str
    message: Optional[str] = None
    is_sent: bool = False
    scheduled_for: Optional[str] = None
    sent_at: Optional[str] = None
    id: str = field(default_factory=new_id)

    @classmethod
    def from_row(cls, row: Mapping[str, Any]) -> 'Reminder':
        return cls(
            id=str(_required(row, 'id')),
            event_id=str(_required(row, 'event_id')),
            user_id=str(_required(row, 'user_id')),
            reminder_type=_choice(row.get('reminder_type'), REMINDER_TYPES, 'reminder type'),
            reminder_time=str(_required(row, 'reminder_time')).strip(),
            message=_optional_str(row.get('message')),
            is_sent=_to_bool(row.get('is_sent')),
            scheduled_for=_optional_str(row.get('scheduled_for')),
            sent_at=_optional_str(row.get('sent_at')),
            created_at=str(_required(row, 'created_at')),
        )

    def to_row(self) -> Dict[str, Any]:
        row = asdict(self)
        row['is_sent'] = int(self.is_sent)
        return row


@dataclass
class CalendarIntegration:
    event_id: str
    user_id: str
    calendar_provider: str
    created_at: str
    sync_status: str = 'pending'
    external_event_id: Optional[str] = None
    last_synced_at: Optional[str] = None
    sync_error: Optional[str] = None
    id: str = field(default_factory=new_id)

    @classmethod
    def from_row(cls, row: Mapping[str, Any]) -> 'CalendarIntegration':
        return cls(
            id=str(_required(row, 'id')),
            event_id=str(_required(row, 'event_id')),
            user_id=str(_required(row, 'user_id')),
            calendar_provider=_choice(row.get('calendar_provider'), CALENDAR_PROVIDERS, 'calendar provider'),
            external_event_id=_optional_str(row.get('external_event_id')),
            sync_status=_choice(row.get('sync_status') or 'pending', SYNC_STATUSES, 'sync status'),
            last_synced_at=_optional_str(row.get('last_synced_at')),
            sync_error=_optional_str(row.get('sync_error')),
            created_at=str(_required(row, 'created_at')),
        )

    def to_row(self) -> Dict[str, Any]:
        return asdict(self)
