"""Formatting utilities for currency, dates and text display."""

from __future__ import annotations

from datetime import date
from typing import Optional, Union

import pandas as pd


def escape_dollar_for_markdown(amount: float) -> str:
    """Format a dollar amount and escape the dollar sign for markdown rendering.

    Streamlit markdown treats ``$`` as a LaTeX delimiter, so a bare amount
    would turn the rest of the line into math.

    Example:
        >>> escape_dollar_for_markdown(1234.56)
        '\\$1,234.56'
    """
    return f"${amount:,.2f}".replace("$", "\\$")


def format_currency(amount: Union[float, int], include_sign: bool = True) -> str:
    """Format a currency amount.

    Example:
        >>> format_currency(1234.56)
        '$1,234.56'
        >>> format_currency(1234.56, include_sign=False)
        '1,234.56'
    """
    formatted = f"{amount:,.2f}"
    return f"${formatted}" if include_sign else formatted


def format_event_date(value: Optional[Union[str, date]], fmt: str = "%B %d, %Y") -> str:
    """Render an ISO date for display; blank or unparseable values give ``''``.

    Example:
        >>> format_event_date('2025-06-14')
        'June 14, 2025'
    """
    if value is None or value == '':
        return ''
    ts = pd.to_datetime(value, errors='coerce')
    if pd.isna(ts):
        return ''
    return ts.strftime(fmt)


def format_lead_time(offset: str) -> str:
    """``'2 hours'`` -> ``'2 hours before'``."""
    return f"{offset} before" if offset else ''
