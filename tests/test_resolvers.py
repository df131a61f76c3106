import logging

import pytest

from moex_data.errors import NoPriceAvailableError
from moex_data.resolvers import resolve_candles, resolve_quote
from moex_data.utils.parsers import decode_table


def _resolve(document, symbol="SBER", **kwargs):
  return resolve_quote(
    symbol,
    decode_table(document, "securities"),
    decode_table(document, "marketdata"),
    **kwargs,
  )


# --- Quote Resolution ---


def test_resolves_primary_board_row(quote_document):
  quote = _resolve(quote_document())

  assert quote.symbol == "SBER"
  assert quote.name == "Sberbank Rossii PAO ao"
  assert quote.last_trade_price == 306.0
  assert quote.previous_close == 300.0
  assert quote.change == 6.0
  assert quote.change_percent == 2.0
  assert quote.open == 301.0
  assert quote.day_high == 307.5
  assert quote.day_low == 299.5
  assert quote.volume == 1234567
  assert quote.currency_code == "RUB"
  assert quote.exchange == "MOEX"
  assert quote.market_state == "REGULAR"
  assert quote.tradeable


def test_falls_back_to_first_row_without_primary_board(quote_document, caplog):
  document = quote_document(board="EQOB")

  with caplog.at_level(logging.WARNING):
    quote = _resolve(document)

  # The decoy SMAL row comes first in both tables.
  assert quote.last_trade_price == 1.0
  assert quote.name == "Decoy board"
  assert "falling back to the first row" in caplog.text


def test_custom_primary_board(quote_document):
  quote = _resolve(quote_document(), primary_board="SMAL")
  assert quote.last_trade_price == 1.0


def test_symbol_is_the_callers_input(quote_document):
  assert _resolve(quote_document(), symbol="sber.me").symbol == "sber.me"


@pytest.mark.parametrize(
  "last, lclose, prev, expected",
  [
    (306.0, 305.0, 300.0, 306.0),
    (None, 305.0, 300.0, 305.0),
    (0.0, 305.0, 300.0, 305.0),
    (None, None, 300.0, 300.0),
    (0.0, 0.0, 300.0, 300.0),
  ],
)
def test_last_price_fallback_chain(quote_document, last, lclose, prev, expected):
  quote = _resolve(quote_document(last=last, lclose=lclose, prev=prev))
  assert quote.last_trade_price == expected


@pytest.mark.parametrize("prev", [None, 0.0])
def test_no_price_available(quote_document, prev):
  with pytest.raises(NoPriceAvailableError):
    _resolve(quote_document(last=None, lclose=0.0, prev=prev))


def test_missing_intraday_range_is_flat_at_last_price(quote_document):
  quote = _resolve(quote_document(open_=None, high=0.0, low=None))
  assert quote.open == quote.day_high == quote.day_low == 306.0


@pytest.mark.parametrize(
  "last, prev",
  [(306.0, 300.0), (0.1, 0.3), (99.99, 100.01), (1e6 + 0.5, 1e6 - 0.25)],
)
def test_change_is_last_minus_previous_close(quote_document, last, prev):
  quote = _resolve(quote_document(last=last, prev=prev))
  assert quote.change == quote.last_trade_price - quote.previous_close


def test_zero_previous_close_means_no_change(quote_document):
  quote = _resolve(quote_document(prev=0.0, pct=None))
  assert quote.change == 0.0
  assert quote.change_percent == 0.0


def test_change_percent_computed_when_source_omits_it(quote_document):
  quote = _resolve(quote_document(last=306.0, prev=300.0, pct=None))
  assert quote.change_percent == pytest.approx(2.0)


def test_change_percent_prefers_source_value(quote_document):
  quote = _resolve(quote_document(pct=1.97))
  assert quote.change_percent == 1.97


@pytest.mark.parametrize(
  "secname, shortname, expected",
  [
    ("Long Name", "Short", "Long Name"),
    (None, "Short", "Short"),
    ("", "Short", "Short"),
    ("null", "Short", "Short"),
    (None, None, "SBER.ME"),
  ],
)
def test_name_fallbacks(quote_document, secname, shortname, expected):
  document = quote_document(secname=secname, shortname=shortname)
  assert _resolve(document, symbol="SBER.ME").name == expected


def test_missing_volume_defaults_to_zero(quote_document):
  assert _resolve(quote_document(volume=None)).volume == 0


# --- Candle Resolution ---


def test_rows_missing_ohlc_are_dropped(candles_document):
  document = candles_document(
    [1, 1.5, 2, 0.5, 100.0, 10, "2024-01-10 10:00:00", "2024-01-10 10:09:59"],
    [None, 2, 2, 1, 100.0, 10, "2024-01-10 10:10:00", "2024-01-10 10:19:59"],
  )
  candles = resolve_candles(decode_table(document, "candles"))

  assert len(candles) == 1
  candle = candles[0]
  assert (candle.open, candle.high, candle.low, candle.close) == (1.0, 2.0, 0.5, 1.5)
  assert candle.volume == 10
  assert candle.begin == "2024-01-10 10:00:00"
  assert candle.end == "2024-01-10 10:09:59"


def test_non_numeric_prices_are_dropped(candles_document):
  document = candles_document(
    ["x", 1, 1, 1, 0, 0, "2024-01-10 10:00:00", "2024-01-10 10:09:59"],
    [1, 1, 1, "bad", 0, 0, "2024-01-10 10:10:00", "2024-01-10 10:19:59"],
  )
  assert resolve_candles(decode_table(document, "candles")) == []


def test_candles_sorted_by_begin_and_stable(candles_document):
  document = candles_document(
    [3, 3, 3, 3, 0, 1, "2024-01-12 00:00:00", ""],
    [1, 1, 1, 1, 0, 1, "2024-01-10 00:00:00", ""],
    [2, 2, 2, 2, 0, 1, "2024-01-11 00:00:00", ""],
    [4, 4, 4, 4, 0, 1, "2024-01-10 00:00:00", ""],
  )
  candles = resolve_candles(decode_table(document, "candles"))
  assert [c.open for c in candles] == [1.0, 4.0, 2.0, 3.0]


def test_missing_volume_defaults_to_zero_for_candles(candles_document):
  document = candles_document([1, 1, 1, 1, 0, None, "2024-01-10 00:00:00", ""])
  assert resolve_candles(decode_table(document, "candles"))[0].volume == 0


def test_empty_candle_table_is_no_data(candles_document):
  table = decode_table(candles_document(), "candles", allow_empty=True)
  assert resolve_candles(table) == []
