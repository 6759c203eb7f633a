"""Configuration management for the event planner.

This module centralizes all configuration values including paths,
defaults, and environment variable overrides.
"""

from __future__ import annotations

import logging
import os
from pathlib import Path

# Base project root - assumes this file is in event_planner/
_PROJECT_ROOT = Path(__file__).parent.parent.resolve()

# Data directories
DATA_DIR = Path(os.getenv("EVENT_PLANNER_DATA_DIR", _PROJECT_ROOT / "data"))

# Database
DB_PATH = Path(
    os.getenv("EVENT_PLANNER_DB_PATH", DATA_DIR / "events.db")
).resolve()

# Artificial latency of the budget suggestion placeholder, in seconds
SUGGESTION_DELAY_SECONDS = float(os.getenv("EVENT_PLANNER_SUGGESTION_DELAY", "0"))

LOG_LEVEL = os.getenv("EVENT_PLANNER_LOG_LEVEL", "INFO").upper()
LOG_FORMAT = "%(asctime)s %(levelname)s %(name)s: %(message)s"

# Payments
STRIPE_API_KEY = os.getenv("STRIPE_API_KEY", "")
STRIPE_CURRENCY = os.getenv("STRIPE_CURRENCY", "usd")

# Calendar export
CALENDAR_DOMAIN = os.getenv("CALENDAR_DOMAIN", "eventra.com")

_LOGGING_CONFIGURED = False


def ensure_data_directories() -> None:
    """Create all required data directories if they don't exist."""
    for directory in [DATA_DIR, DB_PATH.parent]:
        directory.mkdir(parents=True, exist_ok=True)


def get_db_path() -> str:
    """Get the database path as a string."""
    return str(DB_PATH)


def configure_logging(level: str | None = None) -> None:
    """Install the root logging handler once per process."""
    global _LOGGING_CONFIGURED
    if _LOGGING_CONFIGURED:
        return
    logging.basicConfig(level=level or LOG_LEVEL, format=LOG_FORMAT)
    _LOGGING_CONFIGURED = True
