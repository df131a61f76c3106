from __future__ import annotations

import logging
from datetime import date

from moex_data import batch, chart
from moex_data.classifier import canonicalize, is_eligible
from moex_data.errors import InsufficientDataError, NotEligibleError
from moex_data.models import ChartSeries, Quote
from moex_data.providers.interface import TableSource
from moex_data.resolvers import PRIMARY_BOARD, resolve_candles, resolve_quote
from moex_data.utils.parsers import decode_table


class QuoteService:
  """
  The entry point callers use for quotes and charts. It delegates raw table
  retrieval to an injected TableSource and owns decoding, resolution and batch
  aggregation.
  """

  _source: TableSource

  def __init__(self, source: TableSource, primary_board: str = PRIMARY_BOARD):
    self._source = source
    self._primary_board = primary_board

  @staticmethod
  def is_eligible(symbol: str) -> bool:
    return is_eligible(symbol)

  def fetch_quote(self, symbol: str) -> Quote:
    """Fetches and resolves a single quote, raising on any failure."""
    if not is_eligible(symbol):
      raise NotEligibleError(f"Not a MOEX ticker: {symbol}")

    clean = canonicalize(symbol)
    logging.debug(f"Fetching quote for {symbol} as {clean}")
    document = self._source.get_raw_table(clean)
    securities = decode_table(document, "securities")
    marketdata = decode_table(document, "marketdata")
    return resolve_quote(
      symbol, securities, marketdata, primary_board=self._primary_board
    )

  def fetch_many(self, symbols: list[str]) -> list[Quote]:
    """Fetches a batch of quotes in input order, dropping failed symbols.

    Non-MOEX symbols fail inside their own task with NotEligibleError and are
    dropped like any other item-local failure.
    """
    return batch.fetch_many(list(symbols), self.fetch_quote)

  def fetch_candles(
    self,
    symbol: str,
    chart_range: chart.ChartRange | str,
    *,
    till: str | None = None,
    today: date | None = None,
  ) -> ChartSeries:
    """Fetches candles for a chart range and builds the chart series.

    Raises:
      NotEligibleError: If the symbol is not a MOEX ticker.
      InsufficientDataError: If ISS returns no usable candles.
    """
    if not is_eligible(symbol):
      raise NotEligibleError(f"Not a MOEX ticker: {symbol}")

    clean = canonicalize(symbol)
    window = chart.map_range(chart_range)
    start = chart.from_date(chart_range, today)
    logging.info(
      f"Fetching {clean} candles from {start} at interval {window.interval.name}"
    )

    document = self._source.get_raw_candle_table(clean, start, int(window.interval), till)
    candles = resolve_candles(decode_table(document, "candles", allow_empty=True))
    if not candles:
      raise InsufficientDataError(f"No candle data from MOEX for {symbol}")

    logging.info(f"Parsed {len(candles)} candles for {clean}")
    return chart.build_chart_series(candles)
