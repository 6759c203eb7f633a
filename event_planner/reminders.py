"""Reminder lead-time helpers."""

from __future__ import annotations

import re
from datetime import date, datetime, time, timedelta, timezone
from typing import Iterable, List, Optional, Union

from .models import Reminder, parse_date

REMINDER_PRESETS = [
    ('1 week', '1 Week Before'),
    ('3 days', '3 Days Before'),
    ('1 day', '1 Day Before'),
    ('6 hours', '6 Hours Before'),
    ('2 hours', '2 Hours Before'),
    ('30 minutes', '30 Minutes Before'),
]
CUSTOM_UNITS = ('minutes', 'hours', 'days', 'weeks')

_OFFSET_PATTERN = re.compile(r'^\s*(\d+)\s*([a-zA-Z]+)\s*$')


def _unit(text: str) -> str:
    unit = text.lower()
    if not unit.endswith('s'):
        unit += 's'
    if unit not in CUSTOM_UNITS:
        raise ValueError(f"Unsupported reminder unit: {text!r}")
    return unit


def parse_offset(text: str) -> timedelta:
    """Parse a lead time such as ``'2 hours'`` or ``'1 week'``."""
    match = _OFFSET_PATTERN.match(text or '')
    if not match:
        raise ValueError(f"Invalid reminder time: {text!r}")
    amount = int(match.group(1))
    if amount < 1:
        raise ValueError("Reminder time must be at least 1")
    return timedelta(**{_unit(match.group(2)): amount})


def build_offset(amount: Union[int, str], unit: str) -> str:
    """Format the custom reminder option, validating it on the way."""
    text = f"{int(amount)} {_unit(unit)}"
    parse_offset(text)
    return text


def event_start(event_date: Union[str, date, datetime]) -> datetime:
    """Events are dated without a time; treat them as starting at midnight UTC."""
    if isinstance(event_date, datetime):
        return event_date if event_date.tzinfo else event_date.replace(tzinfo=timezone.utc)
    day = event_date if isinstance(event_date, date) else parse_date(event_date)
    return datetime.combine(day, time.min, tzinfo=timezone.utc)


def scheduled_for(event_date: Union[str, date, datetime], offset: str) -> datetime:
    return event_start(event_date) - parse_offset(offset)


def due_reminders(reminders: Iterable[Reminder], now: Optional[datetime] = None) -> List[Reminder]:
    """Unsent reminders whose scheduled time has passed."""
    now = now or datetime.now(timezone.utc)
    due = []
    for reminder in reminders:
        if reminder.is_sent or not reminder.scheduled_for:
            continue
        when = datetime.fromisoformat(reminder.scheduled_for)
        if when.tzinfo is None:
            when = when.replace(tzinfo=timezone.utc)
        if when <= now:
            due.append(reminder)
    return due
