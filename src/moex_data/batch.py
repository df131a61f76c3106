from __future__ import annotations

import logging
from collections.abc import Callable
from concurrent.futures import ThreadPoolExecutor, wait

from pydantic import ValidationError

from moex_data.classifier import canonicalize
from moex_data.errors import (
  AllFetchesFailedError,
  MarketDataError,
  SystemicFetchError,
)
from moex_data.models import Quote


def _fetch_item(fetch_one: Callable[[str], Quote], symbol: str) -> Quote | None:
  """Runs one symbol's fetch, turning item-local failures into None."""
  try:
    return fetch_one(symbol)
  except SystemicFetchError:
    raise
  except (MarketDataError, ValidationError) as e:
    logging.warning(f"Dropping {symbol} from batch: {e}")
  except Exception as e:
    logging.error(f"Unexpected error fetching {symbol}: {e}", exc_info=True)
  return None


def fetch_many(symbols: list[str], fetch_one: Callable[[str], Quote]) -> list[Quote]:
  """Fetches quotes for all symbols concurrently, returned in input order.

  Every input symbol (duplicates included) gets its own task. A symbol that
  fails on its own is logged and omitted from the result, so the output may
  be shorter than the input. A systemic failure in any task fails the whole
  batch once all tasks have finished.

  Args:
    symbols: Symbols in the order the caller wants them back.
    fetch_one: Single-symbol retrieval, e.g. QuoteService.fetch_quote.

  Returns:
    Resolved quotes in the caller's order, unresolved symbols omitted.

  Raises:
    SystemicFetchError: If any task hit a source-level outage.
    AllFetchesFailedError: If the input was non-empty and nothing resolved.
  """
  if not symbols:
    return []

  logging.info(f"Fetching {len(symbols)} quotes concurrently")
  with ThreadPoolExecutor(max_workers=len(symbols)) as pool:
    futures = [pool.submit(_fetch_item, fetch_one, symbol) for symbol in symbols]
    wait(futures)

  # Joined: everything below runs on the calling thread only.
  resolved: dict[str, Quote] = {}
  for symbol, future in zip(symbols, futures):
    error = future.exception()
    if isinstance(error, SystemicFetchError):
      logging.error(f"Batch aborted, data source is down: {error}")
      raise error
    quote = future.result()
    if quote is not None:
      resolved.setdefault(canonicalize(symbol), quote)

  if not resolved:
    raise AllFetchesFailedError(f"All {len(symbols)} fetches failed")

  ordered = [
    resolved[canonicalize(symbol)] for symbol in symbols if canonicalize(symbol) in resolved
  ]
  missing = len(symbols) - len(ordered)
  if missing:
    logging.warning(f"{missing} of {len(symbols)} symbols could not be resolved")
  return ordered
