"""Warranty calculations for RMA tickets."""

from __future__ import annotations

from dataclasses import dataclass
from datetime import date

from dateutil.relativedelta import relativedelta

from servicedesk.services.date_math import DateLike, as_date, days_between


@dataclass(frozen=True)
class Warranty:
    end_date: date
    is_under_warranty: bool
    days_remaining: int


def warranty_end_date(purchase_date: DateLike, warranty_years: int) -> date:
    """Same month and day ``warranty_years`` later; 29 Feb falls back to 28 Feb."""
    return as_date(purchase_date) + relativedelta(years=int(warranty_years))


def compute_warranty(
    purchase_date: DateLike, warranty_years: int, today: DateLike
) -> Warranty:
    end_date = warranty_end_date(purchase_date, warranty_years)
    today = as_date(today)
    return Warranty(
        end_date=end_date,
        is_under_warranty=end_date >= today,
        days_remaining=max(0, days_between(today, end_date)),
    )
