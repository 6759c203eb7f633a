"""Derived statistics shown on the event pages.

Everything here is a pure function of records already held in memory:
budget totals and progress, per-category spending, RSVP counts and a few
date comparisons.  Nothing is written back; an expense total above the
budget is only reported, never prevented.
"""

from __future__ import annotations

from dataclasses import dataclass
from datetime import date
from typing import Dict, Iterable, List, Optional, Sequence

import pandas as pd

from .models import INVITATION_STATUSES, BudgetCategory, Event, Expense, Invitation, parse_date

UNCATEGORIZED = 'Uncategorized'
SPENDING_COLUMNS = ['Category', 'Allocated', 'Spent', 'Remaining', 'Percent Used', 'Over Budget']


@dataclass
class BudgetSummary:
    total_budget: float
    total_spent: float
    remaining: float
    display_remaining: float
    spent_percentage: int
    over_budget: bool
    over_budget_by: float


@dataclass
class RsvpSummary:
    accepted: int = 0
    declined: int = 0
    maybe: int = 0
    pending: int = 0

    @property
    def total(self) -> int:
        return self.accepted + self.declined + self.maybe + self.pending

    def as_dict(self) -> Dict[str, int]:
        return {status: getattr(self, status) for status in INVITATION_STATUSES}


def total_spent(expenses: Iterable[Expense]) -> float:
    return float(sum(expense.amount for expense in expenses))


def total_budget(categories: Iterable[BudgetCategory]) -> float:
    return float(sum(category.amount for category in categories))


def budget_summary(
    categories: Sequence[BudgetCategory],
    expenses: Sequence[Expense],
    budget: Optional[float] = None,
) -> BudgetSummary:
    """Budget progress for one event.

    ``budget`` defaults to the sum of the category amounts, which equals the
    event budget for categories generated from a template.
    """
    allocated = total_budget(categories) if budget is None else float(budget)
    spent = total_spent(expenses)
    remaining = allocated - spent
    percentage = int(round(spent / allocated * 100)) if allocated > 0 else 0
    return BudgetSummary(
        total_budget=allocated,
        total_spent=spent,
        remaining=remaining,
        display_remaining=max(0.0, remaining),
        spent_percentage=percentage,
        over_budget=spent > allocated,
        over_budget_by=max(0.0, -remaining),
    )


def category_spending(
    categories: Sequence[BudgetCategory],
    expenses: Sequence[Expense],
) -> pd.DataFrame:
    """Allocated versus spent per budget category.

    Expenses pointing at an unknown category are grouped under
    ``Uncategorized`` with no allocation.
    """
    if not categories and not expenses:
        return pd.DataFrame(columns=SPENDING_COLUMNS)

    names = {category.id: category.name for category in categories}
    allocated = pd.DataFrame(
        [{'Category': c.name, 'Allocated': c.amount} for c in categories],
        columns=['Category', 'Allocated'],
    ).groupby('Category', sort=False)['Allocated'].sum()
    spent = pd.DataFrame(
        [{'Category': names.get(e.category_id or '', UNCATEGORIZED), 'Spent': e.amount} for e in expenses],
        columns=['Category', 'Spent'],
    ).groupby('Category', sort=False)['Spent'].sum()

    # Template order first, then any category that only has spending
    order = list(dict.fromkeys(list(allocated.index) + list(spent.index)))
    result = pd.DataFrame({
        'Category': order,
        'Allocated': allocated.reindex(order, fill_value=0.0).astype(float).values,
        'Spent': spent.reindex(order, fill_value=0.0).astype(float).values,
    })
    result['Remaining'] = result['Allocated'] - result['Spent']
    result['Percent Used'] = [
        (s / a * 100) if a > 0 else 0.0 for s, a in zip(result['Spent'], result['Allocated'])
    ]
    result['Over Budget'] = result['Spent'] > result['Allocated']
    return result[SPENDING_COLUMNS]


def category_name(category_id: Optional[str], categories: Sequence[BudgetCategory]) -> str:
    for category in categories:
        if category.id == category_id:
            return category.name
    return UNCATEGORIZED


def rsvp_summary(invitations: Iterable[Invitation]) -> RsvpSummary:
    summary = RsvpSummary()
    for invitation in invitations:
        # Statuses are validated in Invitation.from_row
        setattr(summary, invitation.status, getattr(summary, invitation.status) + 1)
    return summary


def confirmed_guest_count(invitations: Iterable[Invitation]) -> int:
    return sum(inv.guest_count for inv in invitations if inv.status == 'accepted')


def sort_expenses(expenses: Iterable[Expense]) -> List[Expense]:
    """Newest first."""
    return sorted(expenses, key=lambda e: e.date, reverse=True)


def days_until(event_date: str, today: Optional[date] = None) -> int:
    today = today or date.today()
    return (parse_date(event_date) - today).days


def is_past_event(event: Event, today: Optional[date] = None) -> bool:
    return days_until(event.date, today) < 0


def rsvp_deadline_passed(event: Event, today: Optional[date] = None) -> bool:
    if not event.rsvp_deadline:
        return False
    return days_until(event.rsvp_deadline, today) < 0


def split_upcoming(events: Sequence[Event], today: Optional[date] = None) -> Dict[str, List[Event]]:
    """Upcoming events soonest first, past events most recent first."""
    today = today or date.today()
    upcoming = [e for e in events if not is_past_event(e, today)]
    past = [e for e in events if is_past_event(e, today)]
    return {
        'upcoming': sorted(upcoming, key=lambda e: e.date),
        'past': sorted(past, key=lambda e: e.date, reverse=True),
    }
