from __future__ import annotations

import functools
import logging
import sys
from contextlib import contextmanager

import click
from dotenv import load_dotenv

from moex_data.chart import ChartRange, derive_chart_stats
from moex_data.classifier import canonicalize
from moex_data.errors import MarketDataError
from moex_data.factory import SourceFactory
from moex_data.provider import QuoteService
from moex_data.utils.savers import save_to_csv

# --- Setup ---
logging.basicConfig(
  level=logging.INFO,
  format="%(asctime)s - %(levelname)s - %(message)s",
  stream=sys.stdout,
)

# --- Error Handling Decorator ---


def cli_error_handler(func):
  """Decorator to handle common CLI errors, log them, and exit."""

  @functools.wraps(func)
  def wrapper(*args, **kwargs):
    try:
      return func(*args, **kwargs)
    except (MarketDataError, ValueError, TypeError) as e:
      logging.error(f"Error: {e}")
      sys.exit(1)
    except Exception as e:
      logging.error(f"An unexpected error occurred: {e}", exc_info=True)
      sys.exit(1)

  return wrapper


# --- Private Helpers ---


@contextmanager
def _quote_service(source_name: str):
  """Creates the source once for the command and closes it afterwards."""
  source = SourceFactory().create(source_name)
  try:
    yield QuoteService(source, primary_board=getattr(source, "board", "TQBR"))
  finally:
    close = getattr(source, "close", None)
    if close:
      close()


def _split_tickers(values: tuple[str, ...]) -> list[str]:
  symbols: list[str] = []
  for value in values:
    symbols.extend(segment.strip() for segment in value.split(",") if segment.strip())
  return symbols


# --- CLI Commands ---

_source_option = click.option(
  "--source", default="iss", show_default=True, help="The table source to use."
)


@click.group()
def cli():
  """A CLI for fetching MOEX quotes and candles."""
  load_dotenv()


@cli.command()
@_source_option
@click.option("--ticker", required=True, help="The ticker symbol (e.g., SBER or SBER.ME).")
@cli_error_handler
def fetch_quote(source, ticker):
  """Fetch a single real-time quote and print it as JSON."""
  logging.info(f"Executing 'fetch-quote' for {ticker}")

  with _quote_service(source) as service:
    quote = service.fetch_quote(ticker)

  click.echo(quote.model_dump_json(indent=2))


@cli.command()
@_source_option
@click.option(
  "--ticker",
  "tickers",
  multiple=True,
  required=True,
  help="Ticker symbol(s). Repeat the option or pass a comma-separated list.",
)
@cli_error_handler
def fetch_quotes(source, tickers):
  """Fetch quotes for several tickers and save them to CSV."""
  symbols = _split_tickers(tickers)
  if not symbols:
    logging.warning("No valid ticker symbols were provided.")
    return

  logging.info(f"Executing 'fetch-quotes' for {len(symbols)} tickers")
  with _quote_service(source) as service:
    quotes = service.fetch_many(symbols)

  suffix = canonicalize(symbols[0]).lower() if len(symbols) == 1 else f"{len(symbols)}"
  filename = f"moex_quotes_{suffix}.csv"
  logging.info(f"Saving {len(quotes)} quotes to {filename}...")
  save_to_csv([q.model_dump() for q in quotes], filename)


@cli.command()
@_source_option
@click.option("--ticker", required=True, help="The ticker symbol (e.g., SBER).")
@click.option(
  "--range",
  "chart_range",
  type=click.Choice([r.value for r in ChartRange]),
  default=ChartRange.ONE_MONTH.value,
  show_default=True,
  help="How far back the chart goes.",
)
@click.option("--till", default=None, help="Optional end date (YYYY-MM-DD).")
@cli_error_handler
def fetch_candles(source, ticker, chart_range, till):
  """Fetch candle data for a chart range and save the chart points to CSV."""
  logging.info(f"Executing 'fetch-candles' for {ticker} over {chart_range}")

  with _quote_service(source) as service:
    series = service.fetch_candles(ticker, chart_range, till=till)

  stats = derive_chart_stats(series)
  sign = "+" if stats.change >= 0 else ""
  logging.info(
    f"{ticker} {chart_range}: {sign}{stats.change:.2f} ({sign}{stats.change_percent:.2f}%)"
  )

  filename = f"moex_{canonicalize(ticker).lower()}_candles_{chart_range}.csv"
  logging.info(f"Saving {len(series.points)} chart points to {filename}...")
  save_to_csv([p.model_dump() for p in series.points], filename)


@cli.command()
@click.option("--ticker", required=True, help="The ticker symbol to check.")
def check_ticker(ticker):
  """Report whether a ticker is served by MOEX and its canonical form."""
  eligible = QuoteService.is_eligible(ticker)
  click.echo(f"{ticker}: {'eligible' if eligible else 'not eligible'} ({canonicalize(ticker)})")


if __name__ == "__main__":
  cli()
