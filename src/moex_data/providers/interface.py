from typing import Any, Protocol


class TableSource(Protocol):
  """
  A protocol for transports that return raw column-table JSON documents.

  Implementations own connection handling. They raise SystemicFetchError when
  the source as a whole is unreachable and FetchError or DecodeError for
  failures that only concern the one request.
  """

  def get_raw_table(self, symbol: str) -> dict[str, Any]: ...

  def get_raw_candle_table(
    self,
    symbol: str,
    from_date: str,
    interval: int,
    till_date: str | None = None,
  ) -> dict[str, Any]: ...
