from __future__ import annotations

# --- Module-level Constants ---
SUFFIXES = (".ME", ".MOEX")

# Liquid MOEX shares accepted without an explicit suffix.
MOEX_TICKERS = frozenset(
  {
    "OZON", "SBER", "GAZP", "LKOH", "YNDX", "ROSN",
    "NVTK", "GMKN", "TATN", "MGNT", "AFLT", "MTSS",
    "VKCO", "POLY", "SNGS", "PLZL", "FEES", "ALRS",
    "MOEX", "RUAL", "CHMF", "NLMK", "PHOR", "PIKK",
    "VTBR", "IRAO", "SBERP", "TRNFP", "HYDR", "RTKM",
    "CBOM", "TCSG", "SMLT", "SGZH", "BELU", "FIXP",
    "OKEY", "FIVE", "GLTR", "BSPB", "DSKY", "LSRG",
    "MVID", "UPRO", "FLOT", "KMAZ", "SOFL", "ASTR",
    "MDMG", "HHRU", "WUSH", "POSI", "MSNG", "AQUA",
  }
)  # fmt: skip


def canonicalize(symbol: str) -> str:
  """Strips recognized source suffixes and upper-cases the symbol.

  The result is the key used to match fetched rows and batch results back to
  the caller's request. It is never shown to the caller.
  """
  clean = symbol.strip()
  upper = clean.upper()
  for suffix in SUFFIXES:
    if upper.endswith(suffix):
      clean = clean[: -len(suffix)]
      break
  return clean.upper()


def is_eligible(symbol: str) -> bool:
  """True for allow-listed tickers and for any symbol carrying a MOEX suffix."""
  return canonicalize(symbol) in MOEX_TICKERS or symbol.endswith(SUFFIXES)
