"""Utility helpers."""

from moex_history.utils.datetime import first_of_month, last_of_month, parse_iso_date, third_friday

__all__ = ["first_of_month", "last_of_month", "parse_iso_date", "third_friday"]
