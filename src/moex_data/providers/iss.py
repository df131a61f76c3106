from __future__ import annotations

import logging
from typing import Any
from urllib.parse import quote

import requests
from requests.adapters import HTTPAdapter

from moex_data.errors import DecodeError, FetchError, SystemicFetchError

# --- Module Constants ---
_ISS_BASE_URL = "https://iss.moex.com/iss"
_PRIMARY_BOARD = "TQBR"
_CONNECT_TIMEOUT = 8.0
_READ_TIMEOUT = 10.0
_POOL_SIZE = 10

_HEADERS = {
  "Accept": "application/json",
  "User-Agent": "moex-data/0.1 (+https://iss.moex.com)",
}


class IssClient:
  """HTTP transport for the Moscow Exchange ISS API.

  One instance holds a single pooled requests.Session and is meant to be
  shared by every fetch for the lifetime of the process, including the
  concurrent tasks of a batch fetch. Call close() (or use it as a context
  manager) to release the pooled connections.

  Transport failures are classified here:
    - connection-level errors (DNS, refused, connect timeout) mean ISS itself
      is down and raise SystemicFetchError;
    - read timeouts and HTTP error statuses raise FetchError;
    - a body that is not JSON raises DecodeError.
  """

  def __init__(
    self,
    base_url: str = _ISS_BASE_URL,
    *,
    board: str = _PRIMARY_BOARD,
    connect_timeout: float = _CONNECT_TIMEOUT,
    read_timeout: float = _READ_TIMEOUT,
    pool_size: int = _POOL_SIZE,
    session: requests.Session | None = None,
  ):
    self._base_url = base_url.rstrip("/")
    self._board = board
    self._timeout = (connect_timeout, read_timeout)

    if session is None:
      session = requests.Session()
      adapter = HTTPAdapter(pool_connections=pool_size, pool_maxsize=pool_size)
      session.mount("https://", adapter)
      session.mount("http://", adapter)
      session.headers.update(_HEADERS)
    self._session = session

  @property
  def board(self) -> str:
    return self._board

  def __enter__(self) -> IssClient:
    return self

  def __exit__(self, *exc_info: Any) -> None:
    self.close()

  def close(self) -> None:
    self._session.close()

  def get_raw_table(self, symbol: str) -> dict[str, Any]:
    """Fetches the securities and marketdata blocks for one security."""
    url = f"{self._base_url}/engines/stock/markets/shares/securities/{quote(symbol, safe='')}.json"
    params = {"iss.meta": "off", "iss.only": "securities,marketdata"}
    return self._get_json(url, params)

  def get_raw_candle_table(
    self,
    symbol: str,
    from_date: str,
    interval: int,
    till_date: str | None = None,
  ) -> dict[str, Any]:
    """Fetches the candles block for one security on the primary board."""
    url = (
      f"{self._base_url}/engines/stock/markets/shares/boards/{self._board}"
      f"/securities/{quote(symbol, safe='')}/candles.json"
    )
    params: dict[str, Any] = {"from": from_date, "interval": int(interval), "iss.meta": "off"}
    if till_date:
      params["till"] = till_date
    return self._get_json(url, params)

  def _get_json(self, url: str, params: dict[str, Any]) -> dict[str, Any]:
    logging.debug(f"ISS GET {url} params={params}")
    try:
      response = self._session.get(url, params=params, timeout=self._timeout)
      response.raise_for_status()
    except requests.exceptions.ConnectionError as e:
      logging.error(f"ISS is unreachable: {e}")
      raise SystemicFetchError(f"ISS is unreachable: {e}", cause=e) from e
    except requests.exceptions.RequestException as e:
      logging.error(f"ISS request failed for {url}: {e}")
      raise FetchError(f"ISS request failed for {url}: {e}") from e

    try:
      return response.json()
    except ValueError as e:
      raise DecodeError(f"ISS returned a non-JSON body for {url}") from e
