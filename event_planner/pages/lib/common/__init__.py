"""Common utilities shared across all page files."""

from .formatting import (
    escape_dollar_for_markdown,
    format_currency,
    format_event_date,
    format_lead_time,
)

__all__ = [
    'escape_dollar_for_markdown',
    'format_currency',
    'format_event_date',
    'format_lead_time',
]
