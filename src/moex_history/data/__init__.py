"""Data access layer."""

from moex_history.data.client import Candle, CandleSource
from moex_history.data.history import CandleBatch, fetch_candles, iter_candle_pages, parse_candles_page
from moex_history.data.instruments import STRATEGIES, Instrument, InstrumentClass, InstrumentStrategy, partition
from moex_history.data.iss_client import IssRESTClient
from moex_history.data.periods import Period, contract_ticker, derivative_periods, equity_periods
from moex_history.data.storage import HEADER, CandleFileWriter, ResetPolicy, format_candle

__all__ = [
	"Candle",
	"CandleSource",
	"CandleBatch",
	"fetch_candles",
	"iter_candle_pages",
	"parse_candles_page",
	"Instrument",
	"InstrumentClass",
	"InstrumentStrategy",
	"STRATEGIES",
	"partition",
	"IssRESTClient",
	"Period",
	"contract_ticker",
	"derivative_periods",
	"equity_periods",
	"HEADER",
	"CandleFileWriter",
	"ResetPolicy",
	"format_candle",
]
