from __future__ import annotations


class MarketDataError(Exception):
  """Base class for every failure raised while fetching or resolving ISS data."""


class DecodeError(MarketDataError):
  """The payload does not have the expected column table shape."""


class EmptyTableError(DecodeError):
  """A required table decoded fine but holds no rows."""


class RowOutOfRangeError(DecodeError, IndexError):
  pass


class NoPriceAvailableError(MarketDataError):
  """Every price field in the fallback chain was absent or zero."""


class InsufficientDataError(MarketDataError):
  """Structurally valid data with nothing to derive a result from."""


class NotEligibleError(MarketDataError):
  """The symbol is not traded on this data source."""


class FetchError(MarketDataError):
  """A transport failure that only concerns a single request."""


class SystemicFetchError(MarketDataError):
  """The data source as a whole is unreachable.

  The original transport exception is kept on ``cause`` (and chained as
  ``__cause__`` when raised with ``from``).
  """

  def __init__(self, message: str, cause: BaseException | None = None):
    super().__init__(message)
    self.cause = cause


class AllFetchesFailedError(MarketDataError):
  """Every symbol of a non-empty batch failed item-locally."""
