"""Calendar links and iCalendar export for events.

Google and Outlook get a pre-filled "add event" URL; Apple Calendar and
generic iCal clients get an ``.ics`` file.  Events carry a date only, so
they start at midnight UTC and last ``DEFAULT_EVENT_DURATION``.
"""

from __future__ import annotations

import logging
import re
import sqlite3
from datetime import datetime, timedelta, timezone
from typing import Dict, Optional
from urllib.parse import quote

from . import config, db
from .models import Event
from .reminders import event_start

logger = logging.getLogger(__name__)

DEFAULT_EVENT_DURATION = timedelta(hours=2)
URL_FORMATS = ('google', 'outlook', 'ical')
PRODID = '-//Eventra//Event Calendar//EN'


def _compact(moment: datetime) -> str:
    return moment.astimezone(timezone.utc).strftime('%Y%m%dT%H%M%SZ')


def _iso(moment: datetime) -> str:
    return moment.astimezone(timezone.utc).strftime('%Y-%m-%dT%H:%M:%S.000Z')


def event_window(event: Event) -> tuple:
    start = event_start(event.date)
    return start, start + DEFAULT_EVENT_DURATION


def google_calendar_url(event: Event) -> str:
    start, end = event_window(event)
    return (
        "https://calendar.google.com/calendar/render?action=TEMPLATE"
        f"&text={quote(event.title, safe='')}"
        f"&dates={_compact(start)}/{_compact(end)}"
        f"&details={quote(event.description or '', safe='')}"
        f"&location={quote(event.location, safe='')}"
    )


def outlook_calendar_url(event: Event) -> str:
    start, end = event_window(event)
    return (
        "https://outlook.live.com/calendar/0/deeplink/compose"
        f"?subject={quote(event.title, safe='')}"
        f"&startdt={_iso(start)}"
        f"&enddt={_iso(end)}"
        f"&body={quote(event.description or '', safe='')}"
        f"&location={quote(event.location, safe='')}"
    )


def _escape_text(value: str) -> str:
    # RFC 5545 TEXT escaping
    return (
        value.replace('\\', '\\\\')
        .replace(';', '\\;')
        .replace(',', '\\,')
        .replace('\r\n', '\\n')
        .replace('\n', '\\n')
    )


def ical_content(event: Event, now: Optional[datetime] = None) -> str:
    start, end = event_window(event)
    stamp = now or datetime.now(timezone.utc)
    lines = [
        'BEGIN:VCALENDAR',
        'VERSION:2.0',
        f'PRODID:{PRODID}',
        'BEGIN:VEVENT',
        f'UID:{event.id}@{config.CALENDAR_DOMAIN}',
        f'DTSTAMP:{_compact(stamp)}',
        f'DTSTART:{_compact(start)}',
        f'DTEND:{_compact(end)}',
        f'SUMMARY:{_escape_text(event.title)}',
        f'DESCRIPTION:{_escape_text(event.description or "")}',
        f'LOCATION:{_escape_text(event.location)}',
        'STATUS:CONFIRMED',
        'END:VEVENT',
        'END:VCALENDAR',
    ]
    return '\r\n'.join(lines) + '\r\n'


def ical_data_url(event: Event, now: Optional[datetime] = None) -> str:
    return f"data:text/calendar;charset=utf8,{quote(ical_content(event, now), safe='')}"


def ics_filename(event: Event) -> str:
    return re.sub(r'[^a-z0-9]', '_', event.title, flags=re.IGNORECASE).lower() + '.ics'


def calendar_url(event: Event, fmt: str) -> str:
    if fmt == 'google':
        return google_calendar_url(event)
    if fmt == 'outlook':
        return outlook_calendar_url(event)
    if fmt == 'ical':
        return ical_data_url(event)
    raise ValueError('Unsupported calendar format')


def generate_calendar_url(event_id: Optional[str], fmt: Optional[str]) -> Dict[str, str]:
    """Look up an event and build its calendar link.

    Returns ``{'url': ...}`` on success and ``{'error': message}`` otherwise.
    """
    try:
        if not event_id or not fmt:
            raise ValueError('Event ID and format are required')
        row = db.fetch_by_id('events', event_id)
        if row is None:
            raise LookupError('Event not found')
        return {'url': calendar_url(Event.from_row(row), fmt)}
    except (ValueError, LookupError, sqlite3.Error) as e:
        logger.warning("Calendar link for %s (%s) failed: %s", event_id, fmt, e)
        return {'error': str(e)}
