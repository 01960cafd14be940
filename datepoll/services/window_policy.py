from __future__ import annotations

import calendar as _calendar
from dataclasses import dataclass, field
from datetime import date
from typing import List, Optional


@dataclass(frozen=True)
class Window:
    """
    Inclusive [start, end] range of days. A window with start > end is
    degenerate: it spans nothing.
    """
    start: date
    end: date

    @property
    def is_empty(self) -> bool:
        return self.start > self.end


@dataclass(frozen=True)
class MonthView:
    """
    One calendar month of the voting form.

    days: every day of the month
    selectable: the subset a voter may pick as of today
    """
    month: date
    days: List[date] = field(default_factory=list)
    selectable: List[date] = field(default_factory=list)


def _first_of_month(d: date) -> date:
    return d.replace(day=1)


def _add_month(month: date) -> date:
    if month.month == 12:
        return date(month.year + 1, 1, 1)
    return date(month.year, month.month + 1, 1)


def days_in_month(month: date) -> List[date]:
    _, n = _calendar.monthrange(month.year, month.month)
    return [date(month.year, month.month, i) for i in range(1, n + 1)]


def months_in_window(window: Optional[Window]) -> List[date]:
    """
    Ordered first-of-month dates covering the window inclusive.
    Unset or degenerate windows have no months.
    """
    if window is None or window.is_empty:
        return []

    months: List[date] = []
    current = _first_of_month(window.start)
    last = _first_of_month(window.end)
    while current <= last:
        months.append(current)
        current = _add_month(current)
    return months


def is_selectable(day: date, window: Optional[Window], today: date) -> bool:
    """
    A day can be voted on when it is inside the window and not before today.
    Today itself is selectable.
    """
    if window is None or window.is_empty:
        return False
    return window.start <= day <= window.end and day >= today


def selectable_dates(window: Optional[Window], month: date, today: date) -> List[date]:
    """
    Every selectable day of one month (the "select whole month" action).
    """
    return [d for d in days_in_month(month) if is_selectable(d, window, today)]


def calendar(window: Optional[Window], today: date) -> List[MonthView]:
    """
    Months to render for the voting form. A window entirely in the past
    still yields its months, each with nothing selectable.
    """
    return [
        MonthView(
            month=m,
            days=days_in_month(m),
            selectable=selectable_dates(window, m, today),
        )
        for m in months_in_window(window)
    ]
