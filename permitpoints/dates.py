from __future__ import annotations

import calendar
from dataclasses import dataclass
from datetime import date, datetime, timedelta
from typing import Dict, Optional, Union

DATE_FORMAT = "%Y/%m/%d"  # yyyy/MM/dd

START_OFFSET_MONTHS = 1
START_OFFSET_DAYS = 7
CONTRACT_YEARS = 3


@dataclass(frozen=True)
class EmploymentRange:
    start: str
    end: str

    def to_dict(self) -> Dict[str, str]:
        return {"start": self.start, "end": self.end}


def add_months(d: date, months: int) -> date:
    """Calendar month arithmetic; the day is clamped to the target month's length (Jan 31 + 1 -> Feb 28/29)."""
    month_index = d.month - 1 + months
    year = d.year + month_index // 12
    month = month_index % 12 + 1
    day = min(d.day, calendar.monthrange(year, month)[1])
    return d.replace(year=year, month=month, day=day)


def add_years(d: date, years: int) -> date:
    return add_months(d, years * 12)


def default_employment_range(now: Optional[Union[date, datetime]] = None) -> EmploymentRange:
    """
    Default contract period proposed for a new application:
      start = now + 1 month + 7 days
      end   = start + 3 years - 1 day
    """
    if now is None:
        now = date.today()
    if isinstance(now, datetime):
        now = now.date()

    start = add_months(now, START_OFFSET_MONTHS) + timedelta(days=START_OFFSET_DAYS)
    end = add_years(start, CONTRACT_YEARS) - timedelta(days=1)
    return EmploymentRange(start=start.strftime(DATE_FORMAT), end=end.strftime(DATE_FORMAT))
