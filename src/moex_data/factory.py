from __future__ import annotations

import importlib
import os
from dataclasses import dataclass, field


@dataclass
class SourceMetadata:
  class_path: str
  base_url_env_var: str
  # constructor keyword -> (env var, default, type)
  settings: dict[str, tuple[str, str, type]] = field(default_factory=dict)


_SOURCES = {
  "iss": SourceMetadata(
    class_path="moex_data.providers.iss.IssClient",
    base_url_env_var="MOEX_ISS_BASE_URL",
    settings={
      "board": ("MOEX_ISS_BOARD", "TQBR", str),
      "connect_timeout": ("MOEX_ISS_CONNECT_TIMEOUT", "8", float),
      "read_timeout": ("MOEX_ISS_READ_TIMEOUT", "10", float),
      "pool_size": ("MOEX_ISS_POOL_SIZE", "10", int),
    },
  ),
}


class SourceFactory:
  @staticmethod
  def _import_from_string(path: str) -> type:
    """Helper to dynamically import a class from a string path."""
    module_name, class_name = path.rsplit(".", 1)
    module = importlib.import_module(module_name)
    return getattr(module, class_name)

  @staticmethod
  def _read_setting(env_var: str, default: str, cast: type):
    raw = os.getenv(env_var, default)
    try:
      return cast(raw)
    except ValueError as e:
      raise ValueError(f"Invalid value for env var '{env_var}': {raw!r}") from e

  def create(self, source_name: str = "iss"):
    """Creates a table source based on its registered name.

    Settings are read from the environment; unset variables use defaults.
    """
    metadata = _SOURCES.get(source_name)
    if not metadata:
      raise ValueError(f"Source '{source_name}' not found.")

    source_class = self._import_from_string(metadata.class_path)

    constructor_kwargs = {
      name: self._read_setting(env_var, default, cast)
      for name, (env_var, default, cast) in metadata.settings.items()
    }
    base_url = os.getenv(metadata.base_url_env_var)
    if base_url:
      constructor_kwargs["base_url"] = base_url

    return source_class(**constructor_kwargs)
