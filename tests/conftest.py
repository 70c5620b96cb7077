"""Shared fakes for the ISS transport and CSV payloads."""
from __future__ import annotations

import threading
from datetime import date, datetime, timedelta
from typing import Callable, Dict, List, Sequence

import pytest

CANONICAL_COLUMNS = ("open", "close", "high", "low", "value", "volume", "begin", "end")


def build_page(rows: Sequence[Dict[str, object]], columns: Sequence[str] = CANONICAL_COLUMNS) -> str:
    """Render rows the way ISS does: banner, blank line, header, data."""

    lines = ["candles", "", ";".join(columns)]
    for row in rows:
        lines.append(";".join(str(row.get(column, "")) for column in columns))
    return "\n".join(lines) + "\n"


def candle_rows(count: int, *, first: datetime = datetime(2024, 1, 3, 10, 0), price: float = 100.0) -> List[Dict[str, object]]:
    rows = []
    for index in range(count):
        begin = first + timedelta(minutes=index)
        rows.append(
            {
                "open": price,
                "close": price + 0.5,
                "high": price + 1,
                "low": price - 1,
                "value": 1000.0,
                "volume": 10 + index,
                "begin": begin.strftime("%Y-%m-%d %H:%M:%S"),
                "end": (begin + timedelta(seconds=59)).strftime("%Y-%m-%d %H:%M:%S"),
            }
        )
    return rows


class FakeSource:
    """In-memory stand-in for ``IssRESTClient`` driven by a handler function."""

    def __init__(self, handler: Callable[..., str], tracker: "ConcurrencyTracker | None" = None) -> None:
        self._handler = handler
        self._tracker = tracker
        self.calls: List[Dict[str, object]] = []

    def __enter__(self) -> "FakeSource":
        if self._tracker is not None:
            self._tracker.enter()
        return self

    def __exit__(self, *_) -> None:
        if self._tracker is not None:
            self._tracker.exit()

    def get_candles_csv(
        self,
        *,
        engine: str,
        market: str,
        board: str,
        security: str,
        start: date,
        end: date,
        interval: int,
        offset: int,
    ) -> str:
        call = {
            "engine": engine,
            "market": market,
            "board": board,
            "security": security,
            "start": start,
            "end": end,
            "interval": interval,
            "offset": offset,
        }
        self.calls.append(call)
        return self._handler(**call)


class ConcurrencyTracker:
    def __init__(self) -> None:
        self._lock = threading.Lock()
        self.active = 0
        self.peak = 0

    def enter(self) -> None:
        with self._lock:
            self.active += 1
            self.peak = max(self.peak, self.active)

    def exit(self) -> None:
        with self._lock:
            self.active -= 1


@pytest.fixture
def page() -> Callable[..., str]:
    return build_page


@pytest.fixture
def rows() -> Callable[..., List[Dict[str, object]]]:
    return candle_rows


@pytest.fixture
def fake_source() -> Callable[..., FakeSource]:
    return FakeSource


@pytest.fixture
def tracker() -> ConcurrencyTracker:
    return ConcurrencyTracker()
