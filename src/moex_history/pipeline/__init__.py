"""Download orchestration."""

from moex_history.pipeline.runner import HistoryDownloader, InstrumentOutcome, RunReport

__all__ = ["HistoryDownloader", "InstrumentOutcome", "RunReport"]
