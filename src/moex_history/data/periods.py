"""Split a year range into the query windows used for one instrument."""
from __future__ import annotations

from dataclasses import dataclass
from datetime import date, timedelta
from typing import List, Sequence

from moex_history.utils import first_of_month, last_of_month, third_friday

QUARTER_CODES: Sequence[tuple[str, int]] = (("H", 3), ("M", 6), ("U", 9), ("Z", 12))


@dataclass(frozen=True)
class Period:
    """One fetch unit: the ticker to query and the inclusive date window."""

    ticker: str
    start: date
    end: date


def contract_ticker(root: str, code: str, year: int) -> str:
    """Build a futures contract code such as ``SiH4`` from its root, expiry code and year."""

    return f"{root}{code}{year % 10}"


def equity_periods(symbol: str, year_start: int, year_end: int, *, today: date | None = None) -> List[Period]:
    """One calendar month per period for ``year_start..year_end`` inclusive, skipping future months."""

    today = today or date.today()
    periods: List[Period] = []
    for year in range(year_start, year_end + 1):
        for month in range(1, 13):
            start = first_of_month(year, month)
            if start > today:
                continue
            periods.append(Period(symbol, start, last_of_month(year, month)))
    return periods


def derivative_periods(root: str, year_start: int, year_end: int, *, today: date | None = None) -> List[Period]:
    """Quarterly roll windows for ``year_start..year_end`` (end exclusive).

    A contract is queried from the day before the previous contract's expiry
    up to two days before its own expiry; expiries fall on the third Friday
    of March, June, September and December.
    """

    today = today or date.today()
    periods: List[Period] = []
    for year in range(year_start, year_end):
        for code, month in QUARTER_CODES:
            prev_year, prev_month = (year - 1, 12) if month == 3 else (year, month - 3)
            start = third_friday(prev_year, prev_month) - timedelta(days=1)
            if start > today:
                continue
            end = third_friday(year, month) - timedelta(days=2)
            periods.append(Period(contract_ticker(root, code, year), start, end))
    return periods
