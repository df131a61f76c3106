from __future__ import annotations

import logging
import math
from typing import Any, Union

from pydantic import (
  BaseModel,
  ConfigDict,
  Field,
  StrictBool,
  StrictFloat,
  StrictInt,
  StrictStr,
  ValidationError,
  model_validator,
)

from moex_data.errors import DecodeError, EmptyTableError, RowOutOfRangeError

# Strict members keep JSON booleans as bools instead of coercing them to 0/1.
Scalar = Union[StrictBool, StrictStr, StrictInt, StrictFloat, None]
Row = tuple[Scalar, ...]


class ColumnTable(BaseModel):
  """A decoded ISS block: column names given once, values as positional rows.

  ISS answers every request with one or more blocks shaped like::

    {"columns": ["SECID", "BOARDID", "LAST"], "data": [["SBER", "TQBR", 301.5]]}

  Column lookups are linear scans; the tables are small enough that building
  an index per table would not pay off.
  """

  model_config = ConfigDict(frozen=True, populate_by_name=True)

  columns: tuple[str, ...]
  rows: tuple[Row, ...] = Field(alias="data")

  @model_validator(mode="after")
  def _check_row_widths(self) -> ColumnTable:
    width = len(self.columns)
    for i, row in enumerate(self.rows):
      if len(row) != width:
        raise ValueError(f"row {i} has {len(row)} cells, expected {width}")
    return self

  def __len__(self) -> int:
    return len(self.rows)

  def column_index(self, name: str) -> int:
    """Returns the position of ``name`` in the column list, or -1."""
    for i, column in enumerate(self.columns):
      if column == name:
        return i
    return -1

  def row(self, i: int) -> Row:
    if i < 0 or i >= len(self.rows):
      raise RowOutOfRangeError(
        f"Row {i} is out of range for a table with {len(self.rows)} rows"
      )
    return self.rows[i]

  def find_row_where(self, column: str, value: Scalar) -> Row | None:
    """Returns the first row whose ``column`` cell equals ``value``.

    Used to pick the primary board's row when ISS multiplexes several boards
    for the same security.
    """
    index = self.column_index(column)
    if index < 0:
      return None
    for row in self.rows:
      if row[index] is not None and row[index] == value:
        return row
    return None


def decode_table(document: Any, block: str, *, allow_empty: bool = False) -> ColumnTable:
  """Decodes one named block of an ISS JSON document.

  Args:
    document: The parsed JSON document.
    block: Name of the block, e.g. "securities", "marketdata" or "candles".
    allow_empty: If False, a block without rows raises EmptyTableError.

  Returns:
    The decoded, immutable ColumnTable.

  Raises:
    DecodeError: If the block is missing or malformed.
    EmptyTableError: If the block has no rows and allow_empty is False.
  """
  if not isinstance(document, dict):
    raise DecodeError(f"Expected a JSON object, got {type(document).__name__}")

  raw = document.get(block)
  if raw is None:
    raise DecodeError(f"Response has no '{block}' table")

  try:
    table = ColumnTable.model_validate(raw)
  except ValidationError as e:
    raise DecodeError(f"Malformed '{block}' table: {e}") from e

  if not table.rows and not allow_empty:
    raise EmptyTableError(f"Table '{block}' has no rows")

  logging.debug(f"Decoded '{block}': {len(table.columns)} columns, {len(table)} rows")
  return table


# --- Cell Accessors ---
# All accessors return None for null cells, negative or out-of-range indexes,
# and values that cannot be coerced, so callers can chain fallbacks.


def cell(row: Row, index: int) -> Scalar:
  if index < 0 or index >= len(row):
    return None
  return row[index]


def as_float(row: Row, index: int) -> float | None:
  value = cell(row, index)
  if value is None or isinstance(value, bool):
    return None
  try:
    number = float(value)
  except (TypeError, ValueError):
    return None
  if math.isnan(number) or math.isinf(number):
    return None
  return number


def as_int(row: Row, index: int) -> int | None:
  value = cell(row, index)
  if isinstance(value, int) and not isinstance(value, bool):
    return value
  number = as_float(row, index)
  return int(number) if number is not None else None


def as_str(row: Row, index: int) -> str | None:
  value = cell(row, index)
  if value is None:
    return None
  return value if isinstance(value, str) else str(value)
