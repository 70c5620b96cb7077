"""Exception hierarchy shared by the fetch, parse and persistence layers."""
from __future__ import annotations

from typing import TYPE_CHECKING

if TYPE_CHECKING:  # pragma: no cover
    from moex_history.data.periods import Period


class HistoryError(Exception):
    """Base class for every error raised while downloading history."""


class NetworkError(HistoryError):
    """Transport failure or a non-success HTTP status from ISS."""


class ParseError(HistoryError):
    """Unexpected CSV structure or a cell that cannot be decoded."""


class FilesystemError(HistoryError):
    """Output file could not be created, opened or appended to."""


class InstrumentDownloadError(HistoryError):
    """Terminal failure of one instrument worker.

    The underlying :class:`HistoryError` is available as ``__cause__``.
    """

    def __init__(self, symbol: str, operation: str, period: "Period | None" = None) -> None:
        self.symbol = symbol
        self.operation = operation
        self.period = period
        where = f" {period.ticker} {period.start.isoformat()}..{period.end.isoformat()}" if period else ""
        super().__init__(f"{operation} failed for {symbol}{where}")

    def __str__(self) -> str:
        message = super().__str__()
        if self.__cause__ is not None:
            return f"{message}: {self.__cause__}"
        return message
