from __future__ import annotations

import logging
import sqlite3
from contextlib import contextmanager
from typing import Any, Dict, Iterable, Iterator, List, Mapping, Optional

import pandas as pd

from . import config
from .models import new_id, utc_now_iso

logger = logging.getLogger(__name__)

SCHEMA_SQL = """
PRAGMA journal_mode=WAL;
PRAGMA synchronous=NORMAL;

CREATE TABLE IF NOT EXISTS users (
    id TEXT PRIMARY KEY,
    email TEXT NOT NULL UNIQUE,
    full_name TEXT,
    profile_image_url TEXT,
    created_at TEXT
);

CREATE TABLE IF NOT EXISTS events (
    id TEXT PRIMARY KEY,
    title TEXT NOT NULL,
    category TEXT NOT NULL,
    date TEXT NOT NULL,
    location TEXT NOT NULL,
    budget REAL NOT NULL DEFAULT 0,
    guest_count INTEGER NOT NULL DEFAULT 0,
    user_id TEXT NOT NULL REFERENCES users(id) ON DELETE CASCADE,
    created_at TEXT NOT NULL
);

CREATE TABLE IF NOT EXISTS budget_categories (
    id TEXT PRIMARY KEY,
    name TEXT NOT NULL,
    percentage REAL NOT NULL,
    amount REAL NOT NULL,
    event_id TEXT NOT NULL REFERENCES events(id) ON DELETE CASCADE
);

CREATE TABLE IF NOT EXISTS expenses (
    id TEXT PRIMARY KEY,
    description TEXT NOT NULL,
    amount REAL NOT NULL,
    date TEXT NOT NULL,
    category_id TEXT,
    event_id TEXT NOT NULL REFERENCES events(id) ON DELETE CASCADE,
    receipt_url TEXT
);

CREATE TABLE IF NOT EXISTS event_invitations (
    id TEXT PRIMARY KEY,
    event_id TEXT NOT NULL REFERENCES events(id) ON DELETE CASCADE,
    invitee_email TEXT NOT NULL,
    invitee_name TEXT,
    invited_by TEXT,
    status TEXT NOT NULL DEFAULT 'pending',
    guest_count INTEGER NOT NULL DEFAULT 1,
    dietary_restrictions TEXT,
    special_requests TEXT,
    invited_at TEXT NOT NULL,
    responded_at TEXT,
    created_at TEXT NOT NULL
);

CREATE TABLE IF NOT EXISTS event_reminders (
    id TEXT PRIMARY KEY,
    event_id TEXT NOT NULL REFERENCES events(id) ON DELETE CASCADE,
    user_id TEXT NOT NULL,
    reminder_type TEXT NOT NULL,
    reminder_time TEXT NOT NULL,
    message TEXT,
    is_sent INTEGER NOT NULL DEFAULT 0,
    scheduled_for TEXT,
    sent_at TEXT,
    created_at TEXT NOT NULL
);

CREATE TABLE IF NOT EXISTS event_calendar_integrations (
    id TEXT PRIMARY KEY,
    event_id TEXT NOT NULL REFERENCES events(id) ON DELETE CASCADE,
    user_id TEXT NOT NULL,
    calendar_provider TEXT NOT NULL,
    external_event_id TEXT,
    sync_status TEXT NOT NULL DEFAULT 'pending',
    last_synced_at TEXT,
    sync_error TEXT,
    created_at TEXT NOT NULL
);

CREATE INDEX IF NOT EXISTS ix_events_user ON events (user_id);
CREATE INDEX IF NOT EXISTS ix_budget_categories_event ON budget_categories (event_id);
CREATE INDEX IF NOT EXISTS ix_expenses_event ON expenses (event_id);
CREATE INDEX IF NOT EXISTS ix_invitations_event ON event_invitations (event_id);
CREATE INDEX IF NOT EXISTS ix_reminders_event ON event_reminders (event_id);
CREATE INDEX IF NOT EXISTS ix_calendar_event ON event_calendar_integrations (event_id);
"""

# Columns added to ``events`` after the first release.  Older databases are
# upgraded in place by ``_migrate_database``.
EVENT_EXTRA_COLUMNS = [
    ('description', 'TEXT'),
    ('is_public', 'INTEGER NOT NULL DEFAULT 0'),
    ('max_guests', 'INTEGER'),
    ('rsvp_deadline', 'TEXT'),
]

TABLE_COLUMNS: Dict[str, set] = {
    'users': {'id', 'email', 'full_name', 'profile_image_url', 'created_at'},
    'events': {
        'id', 'title', 'category', 'date', 'location', 'budget', 'guest_count', 'user_id',
        'created_at', 'description', 'is_public', 'max_guests', 'rsvp_deadline',
    },
    'budget_categories': {'id', 'name', 'percentage', 'amount', 'event_id'},
    'expenses': {'id', 'description', 'amount', 'date', 'category_id', 'event_id', 'receipt_url'},
    'event_invitations': {
        'id', 'event_id', 'invitee_email', 'invitee_name', 'invited_by', 'status', 'guest_count',
        'dietary_restrictions', 'special_requests', 'invited_at', 'responded_at', 'created_at',
    },
    'event_reminders': {
        'id', 'event_id', 'user_id', 'reminder_type', 'reminder_time', 'message', 'is_sent',
        'scheduled_for', 'sent_at', 'created_at',
    },
    'event_calendar_integrations': {
        'id', 'event_id', 'user_id', 'calendar_provider', 'external_event_id', 'sync_status',
        'last_synced_at', 'sync_error', 'created_at',
    },
}


def _ensure_dirs() -> None:
    config.ensure_data_directories()
    config.DB_PATH.parent.mkdir(parents=True, exist_ok=True)


@contextmanager
def connect() -> Iterator[sqlite3.Connection]:
    _ensure_dirs()
    conn = sqlite3.connect(str(config.DB_PATH))
    conn.execute("PRAGMA foreign_keys=ON")
    try:
        yield conn
    finally:
        conn.close()


def init_db() -> None:
    with connect() as conn:
        conn.executescript(SCHEMA_SQL)
        conn.commit()
        _migrate_database(conn)


def _migrate_database(conn: sqlite3.Connection) -> None:
    """Add event columns to an existing database if they don't exist."""
    cursor = conn.cursor()
    cursor.execute("PRAGMA table_info(events)")
    existing_columns = [row[1] for row in cursor.fetchall()]

    for column_name, column_type in EVENT_EXTRA_COLUMNS:
        if column_name in existing_columns:
            continue
        try:
            cursor.execute(f"ALTER TABLE events ADD COLUMN {column_name} {column_type}")
            logger.info("Added column %s to events table", column_name)
        except sqlite3.OperationalError as e:
            if "duplicate column name" not in str(e):
                raise
    conn.commit()


def _check_table(table: str) -> set:
    try:
        return TABLE_COLUMNS[table]
    except KeyError:
        raise ValueError(f"Unknown table: {table}") from None


def _check_columns(table: str, columns: Iterable[str]) -> List[str]:
    allowed = _check_table(table)
    columns = list(columns)
    unknown = [c for c in columns if c not in allowed]
    if unknown:
        raise ValueError(f"Unknown column(s) for {table}: {', '.join(sorted(unknown))}")
    return columns


def _sanitize_db_value(value: Any) -> Any:
    """Convert pandas NA and empty strings to SQLite-friendly values."""
    if value is None:
        return None
    if isinstance(value, bool):
        return int(value)
    if isinstance(value, str):
        stripped = value.strip()
        return stripped if stripped else None
    try:
        if pd.isna(value):
            return None
    except (TypeError, ValueError):
        pass
    return value


def _records(df: pd.DataFrame) -> List[Dict[str, Any]]:
    if df.empty:
        return []
    df = df.astype(object).where(pd.notna(df), None)
    return df.to_dict('records')


# ---------------------------------------------------------------------------
# Generic table gateway
# ---------------------------------------------------------------------------


def insert_rows(table: str, rows: List[Mapping[str, Any]]) -> int:
    """Insert whole records.  All rows are written in one transaction.

    Returns the number of inserted rows.
    """
    if not rows:
        return 0
    with connect() as conn:
        cur = conn.cursor()
        for row in rows:
            columns = _check_columns(table, row.keys())
            placeholders = ", ".join("?" for _ in columns)
            sql = f"INSERT INTO {table} ({', '.join(columns)}) VALUES ({placeholders})"
            cur.execute(sql, [_sanitize_db_value(row[c]) for c in columns])
        conn.commit()
    return len(rows)


def update_row(table: str, row_id: str, updates: Mapping[str, Any]) -> None:
    """Overwrite the given fields of one row.

    Raises LookupError when no row has ``row_id``.
    """
    columns = [c for c in _check_columns(table, updates.keys()) if c != 'id']
    if not columns:
        raise ValueError("No fields to update")
    assignments = ", ".join(f"{c} = ?" for c in columns)
    params = [_sanitize_db_value(updates[c]) for c in columns]
    params.append(row_id)
    with connect() as conn:
        cursor = conn.cursor()
        cursor.execute(f"UPDATE {table} SET {assignments} WHERE id = ?", params)
        conn.commit()
        if cursor.rowcount == 0:
            raise LookupError(f"No {table} row with id {row_id}")


def delete_row(table: str, row_id: str) -> None:
    _check_table(table)
    with connect() as conn:
        cursor = conn.cursor()
        cursor.execute(f"DELETE FROM {table} WHERE id = ?", (row_id,))
        conn.commit()
        if cursor.rowcount == 0:
            raise LookupError(f"No {table} row with id {row_id}")


def fetch_frame(
    table: str,
    filters: Optional[Mapping[str, Any]] = None,
    order_by: Optional[str] = None,
    descending: bool = False,
) -> pd.DataFrame:
    """Select rows matching all equality ``filters`` as a DataFrame."""
    _check_table(table)
    where: List[str] = []
    params: List[Any] = []
    for column in _check_columns(table, (filters or {}).keys()):
        where.append(f"{column} = ?")
        params.append(filters[column])

    sql = f"SELECT * FROM {table}"
    if where:
        sql += " WHERE " + " AND ".join(where)
    if order_by:
        _check_columns(table, [order_by])
        sql += f" ORDER BY {order_by} {'DESC' if descending else 'ASC'}, rowid ASC"

    with connect() as conn:
        return pd.read_sql_query(sql, conn, params=params)


def fetch_rows(
    table: str,
    filters: Optional[Mapping[str, Any]] = None,
    order_by: Optional[str] = None,
    descending: bool = False,
) -> List[Dict[str, Any]]:
    return _records(fetch_frame(table, filters, order_by, descending))


def fetch_by_id(table: str, row_id: str) -> Optional[Dict[str, Any]]:
    rows = fetch_rows(table, {'id': row_id})
    return rows[0] if rows else None


# ---------------------------------------------------------------------------
# User profiles
# ---------------------------------------------------------------------------


def ensure_user(email: str, full_name: Optional[str] = None) -> Dict[str, Any]:
    """Return the profile row for ``email``, creating it on first use."""
    email = (email or '').strip().lower()
    if not email or '@' not in email:
        raise ValueError("A valid email address is required")
    rows = fetch_rows('users', {'email': email})
    if rows:
        return rows[0]
    row = {
        'id': new_id(),
        'email': email,
        'full_name': full_name,
        'created_at': utc_now_iso(),
    }
    insert_rows('users', [row])
    logger.info("Created profile for %s", email)
    return fetch_by_id('users', row['id'])


def update_profile(user_id: str, full_name: str, profile_image_url: Optional[str] = None) -> None:
    updates: Dict[str, Any] = {'full_name': full_name}
    if profile_image_url:
        updates['profile_image_url'] = profile_image_url
    update_row('users', user_id, updates)


def clear_database() -> bool:
    """Delete every event and its children.  Profiles are kept."""
    with connect() as conn:
        conn.execute("DELETE FROM events")
        conn.commit()
        return True
