"""Instrument model and the per-class strategy table."""
from __future__ import annotations

from dataclasses import dataclass
from datetime import date
from enum import Enum
from typing import Callable, Dict, List

from moex_history.data.periods import Period, derivative_periods, equity_periods
from moex_history.data.storage import ResetPolicy


class InstrumentClass(str, Enum):
    EQUITY = "equity"
    DERIVATIVE = "derivative"


@dataclass(frozen=True)
class Instrument:
    """A tradable symbol and the ISS venue triple it is listed on."""

    symbol: str
    engine: str
    market: str
    board: str
    kind: InstrumentClass


@dataclass(frozen=True)
class InstrumentStrategy:
    """How periods are derived and how the output file is prepared for one class."""

    partition: Callable[..., List[Period]]
    reset_policy: ResetPolicy


STRATEGIES: Dict[InstrumentClass, InstrumentStrategy] = {
    InstrumentClass.EQUITY: InstrumentStrategy(equity_periods, ResetPolicy.APPEND),
    InstrumentClass.DERIVATIVE: InstrumentStrategy(derivative_periods, ResetPolicy.REPLACE),
}


def partition(
    kind: InstrumentClass,
    symbol: str,
    year_start: int,
    year_end: int,
    *,
    today: date | None = None,
) -> List[Period]:
    """Return the ordered query periods for ``symbol`` under its class strategy."""

    return STRATEGIES[kind].partition(symbol, year_start, year_end, today=today)
