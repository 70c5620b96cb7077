"""Candle record and the transport protocol the history fetcher depends on."""
from __future__ import annotations

from dataclasses import dataclass
from datetime import date, datetime
from typing import Protocol


@dataclass(frozen=True, slots=True)
class Candle:
    """Single OHLCV candle as returned by ISS (timestamps are exchange-local, naive)."""

    begin: datetime
    open: float
    high: float
    low: float
    close: float
    volume: int


class CandleSource(Protocol):
    """Abstract transport returning one raw CSV page of candles."""

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
        """Return the response body for one page starting at row ``offset``."""
        raise NotImplementedError
