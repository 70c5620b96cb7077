"""Bounded-concurrency download of many instruments into per-instrument files."""
from __future__ import annotations

import threading
import time
from concurrent.futures import Future, ThreadPoolExecutor, as_completed
from dataclasses import dataclass
from datetime import date
from pathlib import Path
from typing import Callable, ContextManager, Dict, List, Sequence

from loguru import logger

from moex_history.data.client import CandleSource
from moex_history.data.history import PAGE_SIZE, fetch_candles
from moex_history.data.instruments import STRATEGIES, Instrument, partition
from moex_history.data.periods import Period
from moex_history.data.storage import CandleFileWriter
from moex_history.errors import HistoryError, InstrumentDownloadError


ClientFactory = Callable[[], ContextManager[CandleSource]]


@dataclass
class InstrumentOutcome:
    """Terminal state of one instrument worker."""

    instrument: Instrument
    periods: int = 0
    periods_written: int = 0
    periods_empty: int = 0
    records_written: int = 0
    error: InstrumentDownloadError | None = None
    cancelled: bool = False

    @property
    def ok(self) -> bool:
        return self.error is None and not self.cancelled


@dataclass
class RunReport:
    """Outcomes in instrument order plus the first failure in completion order."""

    outcomes: List[InstrumentOutcome]
    first_failure: InstrumentDownloadError | None = None

    @property
    def ok(self) -> bool:
        return self.first_failure is None

    @property
    def records_written(self) -> int:
        return sum(outcome.records_written for outcome in self.outcomes)

    def raise_for_failure(self) -> None:
        if self.first_failure is not None:
            raise self.first_failure


class HistoryDownloader:
    """Run one worker per instrument, at most ``max_workers`` at a time.

    Periods of one instrument are fetched strictly in order and appended to
    its file as each period completes. A failing worker does not stop its
    siblings unless ``cancel_on_failure`` is set, in which case the others
    finish their current period and stop.
    """

    def __init__(
        self,
        client_factory: ClientFactory,
        *,
        output_dir: Path,
        interval: int = 1,
        page_size: int = PAGE_SIZE,
        request_delay: float = 0.1,
        max_workers: int = 4,
        cancel_on_failure: bool = False,
        today: date | None = None,
        sleep: Callable[[float], None] = time.sleep,
    ) -> None:
        self._client_factory = client_factory
        self._output_dir = Path(output_dir)
        self._interval = interval
        self._page_size = page_size
        self._request_delay = request_delay
        self._max_workers = max(1, int(max_workers))
        self._cancel_on_failure = cancel_on_failure
        self._today = today
        self._sleep = sleep
        self._cancelled = threading.Event()

    def run(self, instruments: Sequence[Instrument], *, year_start: int, year_end: int) -> RunReport:
        """Download every instrument and block until all workers have finished."""

        self._cancelled.clear()
        outcomes: Dict[int, InstrumentOutcome] = {}
        first_failure: InstrumentDownloadError | None = None

        with ThreadPoolExecutor(max_workers=self._max_workers, thread_name_prefix="moex") as executor:
            futures: Dict[Future[InstrumentOutcome], int] = {
                executor.submit(self._run_instrument, instrument, year_start, year_end): index
                for index, instrument in enumerate(instruments)
            }
            for future in as_completed(futures):
                outcome = future.result()
                outcomes[futures[future]] = outcome
                if outcome.error is not None and first_failure is None:
                    first_failure = outcome.error

        ordered = [outcomes[index] for index in range(len(instruments))]
        report = RunReport(ordered, first_failure)
        logger.info(
            "Finished {count} instruments: {records} records written, {failed} failed",
            count=len(ordered),
            records=report.records_written,
            failed=sum(1 for outcome in ordered if outcome.error is not None),
        )
        return report

    def _run_instrument(self, instrument: Instrument, year_start: int, year_end: int) -> InstrumentOutcome:
        outcome = InstrumentOutcome(instrument)
        try:
            self._download(instrument, year_start, year_end, outcome)
        except InstrumentDownloadError as error:
            self._record_failure(outcome, error)
        except Exception as exc:
            error = InstrumentDownloadError(instrument.symbol, "download")
            error.__cause__ = exc
            self._record_failure(outcome, error)
        return outcome

    def _record_failure(self, outcome: InstrumentOutcome, error: InstrumentDownloadError) -> None:
        outcome.error = error
        logger.error("{symbol}: {error}", symbol=outcome.instrument.symbol, error=error)
        if self._cancel_on_failure:
            self._cancelled.set()

    def _download(self, instrument: Instrument, year_start: int, year_end: int, outcome: InstrumentOutcome) -> None:
        strategy = STRATEGIES[instrument.kind]
        periods = partition(instrument.kind, instrument.symbol, year_start, year_end, today=self._today)
        outcome.periods = len(periods)

        writer = CandleFileWriter(self._output_dir, name=instrument.symbol, policy=strategy.reset_policy)
        with writer, self._client_factory() as client:
            try:
                writer.ensure_ready()
            except HistoryError as exc:
                raise InstrumentDownloadError(instrument.symbol, "prepare output") from exc

            for period in periods:
                if self._cancelled.is_set():
                    outcome.cancelled = True
                    logger.warning(
                        "{symbol}: cancelled before {ticker} after a failure elsewhere",
                        symbol=instrument.symbol,
                        ticker=period.ticker,
                    )
                    return

                self._process_period(client, writer, instrument, period, outcome)
                self._sleep(self._request_delay)

    def _process_period(
        self,
        client: CandleSource,
        writer: CandleFileWriter,
        instrument: Instrument,
        period: Period,
        outcome: InstrumentOutcome,
    ) -> None:
        try:
            candles = fetch_candles(
                client,
                engine=instrument.engine,
                market=instrument.market,
                board=instrument.board,
                ticker=period.ticker,
                start=period.start,
                end=period.end,
                interval=self._interval,
                page_size=self._page_size,
            )
        except Exception as exc:
            raise InstrumentDownloadError(instrument.symbol, "fetch", period) from exc

        if not candles:
            outcome.periods_empty += 1
            logger.info("No data for {ticker} {start}..{end}", ticker=period.ticker, start=period.start, end=period.end)
            return

        try:
            written = writer.append(candles)
        except Exception as exc:
            raise InstrumentDownloadError(instrument.symbol, "write", period) from exc

        outcome.periods_written += 1
        outcome.records_written += written
        logger.info(
            "Wrote {count} records for {ticker} {start}..{end} to {path}",
            count=written,
            path=writer.path,
            ticker=period.ticker,
            start=period.start,
            end=period.end,
        )
