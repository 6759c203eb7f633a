"""Budget allocation templates.

A new event's total budget is split into named categories using a fixed
percentage template per event type.  Event types without a dedicated
template fall back to a generic three bucket split.

Example:
    >>> [(c.name, c.amount) for c in allocate_budget('wedding', 5000)][:2]
    [('Venue', 1500.0), ('Catering', 1250.0)]
"""

from __future__ import annotations

import logging
import math
import time
from typing import Any, Dict, List, Mapping, Optional, Tuple, Union

from . import config
from .models import BudgetCategory, Event

logger = logging.getLogger(__name__)

Template = Tuple[Tuple[str, float], ...]

BUDGET_TEMPLATES: Dict[str, Template] = {
    'wedding': (
        ('Venue', 30),
        ('Catering', 25),
        ('Photography', 12),
        ('Attire', 10),
        ('Decoration', 8),
        ('Entertainment', 8),
        ('Transportation', 3),
        ('Miscellaneous', 4),
    ),
    'party': (
        ('Venue', 25),
        ('Food & Drinks', 35),
        ('Entertainment', 15),
        ('Decoration', 10),
        ('Invitations', 5),
        ('Miscellaneous', 10),
    ),
    'trip': (
        ('Accommodation', 35),
        ('Transportation', 25),
        ('Food', 20),
        ('Activities', 15),
        ('Miscellaneous', 5),
    ),
}

DEFAULT_TEMPLATE: Template = (
    ('Main Expenses', 70),
    ('Secondary Expenses', 20),
    ('Miscellaneous', 10),
)


def template_for(category: Optional[str]) -> Template:
    """Return the percentage template for an event category.

    Unknown or missing categories get ``DEFAULT_TEMPLATE``; this never raises.
    """
    key = str(category).strip().lower() if category is not None else ''
    return BUDGET_TEMPLATES.get(key, DEFAULT_TEMPLATE)


def _validate_budget(budget: Any) -> float:
    try:
        value = float(budget)
    except (TypeError, ValueError):
        raise ValueError(f"Budget must be a number, got {budget!r}") from None
    if math.isnan(value) or math.isinf(value):
        raise ValueError(f"Budget must be a finite number, got {budget!r}")
    if value < 0:
        raise ValueError("Budget cannot be negative")
    return value


def allocate_budget(
    category: Optional[str],
    budget: Union[int, float],
    event_id: str = '',
) -> List[BudgetCategory]:
    """Split ``budget`` according to the template for ``category``.

    Args:
        category: Event category, e.g. ``'wedding'``
        budget: Total event budget, must be non-negative
        event_id: Owning event, stamped on every returned category

    Returns:
        Budget categories in template order; amount is percentage / 100 x budget
    """
    total = _validate_budget(budget)
    return [
        BudgetCategory(
            name=name,
            percentage=float(percentage),
            amount=total * percentage / 100,
            event_id=event_id,
        )
        for name, percentage in template_for(category)
    ]


def suggest_budget_categories(
    event: Union[Event, Mapping[str, Any]],
    delay: Optional[float] = None,
) -> List[BudgetCategory]:
    """Budget suggestion for an event about to be created.

    Stands in for a future recommendation service: waits for the configured
    delay and returns the template allocation.
    """
    if isinstance(event, Event):
        category, budget, event_id = event.category, event.budget, event.id
    else:
        category, budget, event_id = event.get('category'), event.get('budget', 0), event.get('id', '')

    wait = config.SUGGESTION_DELAY_SECONDS if delay is None else delay
    if wait > 0:
        time.sleep(wait)

    suggestions = allocate_budget(category, budget, event_id or '')
    logger.debug("Suggested %d budget categories for %s", len(suggestions), category)
    return suggestions
