"""Paginated candle retrieval from the ISS CSV endpoint."""
from __future__ import annotations

import csv
import io
from dataclasses import dataclass
from datetime import date, datetime
from typing import Dict, Iterable, List, Mapping, Sequence

from loguru import logger

from moex_history.data.client import Candle, CandleSource
from moex_history.errors import ParseError

PAGE_SIZE = 500
TIMESTAMP_FORMAT = "%Y-%m-%d %H:%M:%S"
REQUIRED_COLUMNS = ("begin", "open", "high", "low", "close", "volume")


@dataclass(frozen=True)
class CandleBatch:
	"""Candles from a single page together with the cursor that produced them."""

	ticker: str
	offset: int
	candles: Sequence[Candle]


def parse_candles_page(payload: str) -> List[Candle]:
	"""Decode one CSV page into candles.

	The first row is a block banner and is skipped; the second row names the
	columns. Columns are looked up by name because ISS does not guarantee
	their order.
	"""

	try:
		rows = [row for row in csv.reader(io.StringIO(payload), delimiter=";") if row]
	except csv.Error as exc:
		raise ParseError(f"malformed CSV: {exc}") from exc
	if len(rows) < 2:
		raise ParseError("response has no column header row")

	header = rows[1]
	columns = {name.strip(): index for index, name in enumerate(header)}
	missing = [name for name in REQUIRED_COLUMNS if name not in columns]
	if missing:
		raise ParseError(f"response is missing columns: {', '.join(missing)}")

	candles: List[Candle] = []
	for line, row in enumerate(rows[2:], start=3):
		if len(row) != len(header):
			raise ParseError(f"row {line}: expected {len(header)} fields, got {len(row)}")
		candles.append(_transform(row, columns, line))
	return candles


def _transform(row: Sequence[str], columns: Mapping[str, int], line: int) -> Candle:
	"""Normalize a raw CSV row into a candle."""

	def cell(name: str) -> str:
		return row[columns[name]]

	try:
		begin = datetime.strptime(cell("begin"), TIMESTAMP_FORMAT)
	except ValueError as exc:
		raise ParseError(f"row {line}: bad begin {cell('begin')!r}") from exc

	prices: Dict[str, float] = {}
	for name in ("open", "high", "low", "close"):
		try:
			prices[name] = float(cell(name))
		except ValueError as exc:
			raise ParseError(f"row {line}: bad {name} {cell(name)!r}") from exc

	try:
		volume = int(cell("volume"))
	except ValueError as exc:
		raise ParseError(f"row {line}: bad volume {cell('volume')!r}") from exc

	return Candle(begin=begin, volume=volume, **prices)


def iter_candle_pages(
	client: CandleSource,
	*,
	engine: str,
	market: str,
	board: str,
	ticker: str,
	start: date,
	end: date,
	interval: int = 1,
	page_size: int = PAGE_SIZE,
) -> Iterable[CandleBatch]:
	"""Yield pages until ISS returns fewer than ``page_size`` rows."""

	offset = 0
	while True:
		logger.debug(
			"Requesting {ticker} candles {start}..{end} (interval={interval}, start={offset})",
			ticker=ticker,
			start=start,
			end=end,
			interval=interval,
			offset=offset,
		)
		payload = client.get_candles_csv(
			engine=engine,
			market=market,
			board=board,
			security=ticker,
			start=start,
			end=end,
			interval=interval,
			offset=offset,
		)
		candles = parse_candles_page(payload)
		yield CandleBatch(ticker, offset, candles)

		if len(candles) < page_size:
			return
		offset += len(candles)


def fetch_candles(
	client: CandleSource,
	*,
	engine: str,
	market: str,
	board: str,
	ticker: str,
	start: date,
	end: date,
	interval: int = 1,
	page_size: int = PAGE_SIZE,
) -> List[Candle]:
	"""Retrieve every candle of one period in memory, in request order."""

	collected: List[Candle] = []
	for batch in iter_candle_pages(
		client,
		engine=engine,
		market=market,
		board=board,
		ticker=ticker,
		start=start,
		end=end,
		interval=interval,
		page_size=page_size,
	):
		collected.extend(batch.candles)
	return collected


__all__: Sequence[str] = ("CandleBatch", "fetch_candles", "iter_candle_pages", "parse_candles_page")
