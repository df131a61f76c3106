from __future__ import annotations

import pytest

SECURITIES_COLUMNS = ["SECID", "BOARDID", "SHORTNAME", "PREVPRICE", "SECNAME"]
MARKETDATA_COLUMNS = [
  "SECID",
  "BOARDID",
  "LAST",
  "LCLOSEPRICE",
  "OPEN",
  "HIGH",
  "LOW",
  "LASTTOPREVPRICE",
  "VOLTODAY",
]
CANDLE_COLUMNS = ["open", "close", "high", "low", "value", "volume", "begin", "end"]


def _quote_document(
  secid: str = "SBER",
  *,
  last: float | None = 306.0,
  lclose: float | None = None,
  prev: float | None = 300.0,
  open_: float | None = 301.0,
  high: float | None = 307.5,
  low: float | None = 299.5,
  pct: float | None = 2.0,
  volume: int | None = 1234567,
  shortname: str | None = "Sberbank",
  secname: str | None = "Sberbank Rossii PAO ao",
  board: str = "TQBR",
) -> dict:
  """An ISS securities+marketdata document with a decoy SMAL board row first."""
  return {
    "securities": {
      "columns": SECURITIES_COLUMNS,
      "data": [
        [secid, "SMAL", "decoy", 1.0, "Decoy board"],
        [secid, board, shortname, prev, secname],
      ],
    },
    "marketdata": {
      "columns": MARKETDATA_COLUMNS,
      "data": [
        [secid, "SMAL", 1.0, 1.0, 1.0, 1.0, 1.0, 0.0, 1],
        [secid, board, last, lclose, open_, high, low, pct, volume],
      ],
    },
  }


def _candles_document(*rows: list) -> dict:
  return {"candles": {"columns": CANDLE_COLUMNS, "data": [list(r) for r in rows]}}


class FakeSource:
  """A TableSource serving canned documents (or raising canned errors) per symbol."""

  def __init__(self, tables: dict | None = None, candles: dict | None = None):
    self.tables = tables or {}
    self.candles = candles or {}
    self.table_calls: list[str] = []
    self.candle_calls: list[tuple] = []
    self.closed = False

  def get_raw_table(self, symbol: str) -> dict:
    self.table_calls.append(symbol)
    value = self.tables[symbol]
    if isinstance(value, Exception):
      raise value
    return value

  def get_raw_candle_table(self, symbol, from_date, interval, till_date=None) -> dict:
    self.candle_calls.append((symbol, from_date, interval, till_date))
    value = self.candles[symbol]
    if isinstance(value, Exception):
      raise value
    return value

  def close(self) -> None:
    self.closed = True


@pytest.fixture
def quote_document():
  return _quote_document


@pytest.fixture
def candles_document():
  return _candles_document


@pytest.fixture
def fake_source_cls():
  return FakeSource
