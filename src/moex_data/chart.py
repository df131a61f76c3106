from __future__ import annotations

import logging
from dataclasses import dataclass
from datetime import date, timedelta
from enum import Enum, IntEnum

import pandas as pd

from moex_data.errors import InsufficientDataError
from moex_data.models import Candle, ChartPoint, ChartSeries, ChartStats

# --- Module-level Constants ---
_WIRE_FORMAT = "%Y-%m-%d %H:%M:%S"
_EXCHANGE_TZ = "Europe/Moscow"


class ChartRange(str, Enum):
  ONE_DAY = "1d"
  TWO_WEEKS = "2w"
  ONE_MONTH = "1m"
  THREE_MONTHS = "3m"
  ONE_YEAR = "1y"
  FIVE_YEARS = "5y"
  MAX = "max"


class CandleInterval(IntEnum):
  """Candle sizes as encoded by the ISS ``interval`` query parameter."""

  MINUTE = 1
  TEN_MINUTES = 10
  HOUR = 60
  DAY = 24
  WEEK = 7
  MONTH = 31


@dataclass(frozen=True)
class RangeWindow:
  lookback: timedelta
  interval: CandleInterval


# Finer candles for short ranges, coarser for long ones, to bound response size.
_RANGE_WINDOWS: dict[ChartRange, RangeWindow] = {
  ChartRange.ONE_DAY: RangeWindow(timedelta(days=1), CandleInterval.TEN_MINUTES),
  ChartRange.TWO_WEEKS: RangeWindow(timedelta(days=14), CandleInterval.HOUR),
  ChartRange.ONE_MONTH: RangeWindow(timedelta(days=30), CandleInterval.DAY),
  ChartRange.THREE_MONTHS: RangeWindow(timedelta(days=90), CandleInterval.DAY),
  ChartRange.ONE_YEAR: RangeWindow(timedelta(days=365), CandleInterval.WEEK),
  ChartRange.FIVE_YEARS: RangeWindow(timedelta(days=5 * 365), CandleInterval.MONTH),
  ChartRange.MAX: RangeWindow(timedelta(days=20 * 365), CandleInterval.MONTH),
}


def map_range(chart_range: ChartRange | str) -> RangeWindow:
  """Maps a chart range (or its string value, e.g. "1m") to a RangeWindow."""
  return _RANGE_WINDOWS[ChartRange(chart_range)]


def from_date(chart_range: ChartRange | str, today: date | None = None) -> str:
  """Returns the ISO start date of the lookback window ending at ``today``."""
  today = today or date.today()
  return (today - map_range(chart_range).lookback).isoformat()


def build_chart_series(candles: list[Candle]) -> ChartSeries:
  """Converts candles into chart points keyed by exchange-local begin time.

  Candles whose begin time cannot be parsed are skipped.

  Raises:
    InsufficientDataError: If no candle yields a point.
  """
  if not candles:
    raise InsufficientDataError("No candles to build a chart from")

  df = pd.DataFrame([c.model_dump() for c in candles])
  begins = pd.to_datetime(df["begin"], format=_WIRE_FORMAT, errors="coerce")
  # Repeated autumn hours resolve to the earlier (summer) offset and skipped
  # spring hours move forward to the first valid instant.
  df["timestamp"] = begins.dt.tz_localize(
    _EXCHANGE_TZ, ambiguous=[True] * len(begins), nonexistent="shift_forward"
  )

  unparsed = int(df["timestamp"].isna().sum())
  if unparsed:
    logging.warning(f"Skipping {unparsed} candles with unparseable begin times.")
  df = df.dropna(subset=["timestamp"])
  if df.empty:
    raise InsufficientDataError("Failed to parse any candle begin time")

  df = df.assign(timestamp=df["timestamp"].map(lambda ts: int(ts.timestamp())))
  df = df.sort_values("timestamp", kind="stable")

  points = [
    ChartPoint(
      timestamp=int(row.timestamp),
      open=float(row.open),
      high=float(row.high),
      low=float(row.low),
      close=float(row.close),
    )
    for row in df.itertuples(index=False)
  ]
  return ChartSeries(
    points=points,
    previous_close=points[0].open,
    market_price=points[-1].close,
  )


def derive_chart_stats(series: ChartSeries) -> ChartStats:
  """Change over the series: last close against first open."""
  if not series.points:
    raise InsufficientDataError("Cannot derive chart stats from an empty series")

  first_open = series.points[0].open
  change = series.points[-1].close - first_open
  change_percent = change / first_open * 100 if first_open != 0 else 0.0
  return ChartStats(
    change=change,
    change_percent=change_percent,
    is_up=change > 0,
    is_down=change < 0,
  )
