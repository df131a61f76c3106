from __future__ import annotations

from pydantic import BaseModel, ConfigDict, Field


class Quote(BaseModel):
  """A normalized real-time quote for a single instrument."""

  model_config = ConfigDict(frozen=True)

  symbol: str
  name: str
  last_trade_price: float
  change: float = 0.0
  change_percent: float = 0.0
  open: float
  day_high: float
  day_low: float
  previous_close: float = 0.0
  volume: int = 0
  currency_code: str = "RUB"
  exchange: str = "MOEX"
  market_state: str = "REGULAR"
  tradeable: bool = True


class Candle(BaseModel):
  """Represents a single OHLCV candle as returned by the candles endpoint."""

  model_config = ConfigDict(frozen=True)

  open: float
  high: float
  low: float
  close: float
  volume: int = 0
  begin: str = ""  # wire format, yyyy-MM-dd HH:mm:ss
  end: str = ""


class ChartPoint(BaseModel):
  model_config = ConfigDict(frozen=True)

  timestamp: int  # epoch seconds
  open: float
  high: float
  low: float
  close: float


class ChartSeries(BaseModel):
  """Time-ordered chart points plus the two scalars change is derived from."""

  model_config = ConfigDict(frozen=True)

  points: list[ChartPoint] = Field(default_factory=list)
  previous_close: float
  market_price: float

  @property
  def change(self) -> float:
    return self.market_price - self.previous_close

  @property
  def change_percent(self) -> float:
    if self.previous_close == 0:
      return 0.0
    return self.change / self.previous_close * 100

  @property
  def is_up(self) -> bool:
    return self.change > 0

  @property
  def is_down(self) -> bool:
    return self.change < 0


class ChartStats(BaseModel):
  model_config = ConfigDict(frozen=True)

  change: float
  change_percent: float
  is_up: bool
  is_down: bool
