from __future__ import annotations

import logging

from moex_data.classifier import canonicalize
from moex_data.errors import NoPriceAvailableError
from moex_data.models import Candle, Quote
from moex_data.utils.parsers import ColumnTable, Row, as_float, as_int, as_str

# --- Module-level Constants ---
PRIMARY_BOARD = "TQBR"
_BOARD_COLUMN = "BOARDID"


def _select_board_row(table: ColumnTable, board: str, label: str, symbol: str) -> Row:
  row = table.find_row_where(_BOARD_COLUMN, board)
  if row is None:
    logging.warning(
      f"No {board} row in {label} for {symbol}; falling back to the first row."
    )
    row = table.row(0)
  return row


def _first_nonzero(*values: float | None) -> float | None:
  for value in values:
    if value is not None and value != 0:
      return value
  return None


def _non_blank(value: str | None) -> str | None:
  if value is None or not value.strip() or value == "null":
    return None
  return value


def resolve_quote(
  symbol: str,
  securities: ColumnTable,
  marketdata: ColumnTable,
  *,
  primary_board: str = PRIMARY_BOARD,
) -> Quote:
  """Reconciles the securities and marketdata tables into a single Quote.

  The last price falls back from the live LAST field to LCLOSEPRICE (the
  previous session close, used before trading opens) and then to the
  reference PREVPRICE. Open, high and low degrade to the last price so a
  quote without intraday data is flat rather than empty.

  Args:
    symbol: The caller's symbol, returned unchanged on the quote.
    securities: Decoded reference table (one row per board).
    marketdata: Decoded live market table (one row per board).
    primary_board: Board whose rows are preferred.

  Raises:
    NoPriceAvailableError: If no price source yields a non-zero value.
  """
  clean = canonicalize(symbol)
  sec_row = _select_board_row(securities, primary_board, "securities", clean)
  md_row = _select_board_row(marketdata, primary_board, "marketdata", clean)

  def sec(column: str) -> float | None:
    return as_float(sec_row, securities.column_index(column))

  def md(column: str) -> float | None:
    return as_float(md_row, marketdata.column_index(column))

  previous_close = sec("PREVPRICE") or 0.0
  last = _first_nonzero(md("LAST"), md("LCLOSEPRICE"), previous_close)
  if last is None:
    raise NoPriceAvailableError(f"No price available for {clean}")

  change = last - previous_close if previous_close != 0 else 0.0

  change_percent = md("LASTTOPREVPRICE")
  if change_percent is None:
    change_percent = change / previous_close * 100 if previous_close != 0 else 0.0

  volume = as_int(md_row, marketdata.column_index("VOLTODAY")) or 0

  name = (
    _non_blank(as_str(sec_row, securities.column_index("SECNAME")))
    or _non_blank(as_str(sec_row, securities.column_index("SHORTNAME")))
    or symbol
  )

  logging.debug(
    f"{clean}: last={last} prev={previous_close} change={change} ({change_percent}%) vol={volume}"
  )

  return Quote(
    symbol=symbol,
    name=name,
    last_trade_price=last,
    change=change,
    change_percent=change_percent,
    open=_first_nonzero(md("OPEN"), last),
    day_high=_first_nonzero(md("HIGH"), last),
    day_low=_first_nonzero(md("LOW"), last),
    previous_close=previous_close,
    volume=volume,
  )


def resolve_candles(table: ColumnTable) -> list[Candle]:
  """Turns a decoded candles table into Candles ordered by begin time.

  Rows missing any of open/high/low/close are dropped; partial candles are
  never produced. An empty list is a valid "no data" outcome.
  """
  oi = table.column_index("open")
  hi = table.column_index("high")
  li = table.column_index("low")
  ci = table.column_index("close")
  vi = table.column_index("volume")
  bi = table.column_index("begin")
  ei = table.column_index("end")

  candles = []
  for row in table.rows:
    prices = (as_float(row, oi), as_float(row, hi), as_float(row, li), as_float(row, ci))
    if any(price is None for price in prices):
      continue
    open_, high, low, close = prices
    candles.append(
      Candle(
        open=open_,
        high=high,
        low=low,
        close=close,
        volume=as_int(row, vi) or 0,
        begin=as_str(row, bi) or "",
        end=as_str(row, ei) or "",
      )
    )

  dropped = len(table) - len(candles)
  if dropped:
    logging.warning(f"Dropped {dropped} candle rows with missing prices.")

  # yyyy-MM-dd HH:mm:ss sorts correctly as a string; sorted() is stable.
  return sorted(candles, key=lambda c: c.begin)
