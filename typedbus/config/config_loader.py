"""
Purpose:
    - Loads a TOML config file
    - Builds a BusConfig from its [bus] table, raising on unknown keys
"""

import tomllib
from dataclasses import fields
from pathlib import Path
from typing import Any

from typedbus.config.configs import BusConfig
from typedbus.errors.errors import ConfigurationError

BUS_CONFIG_KEYS: set[str] = {f.name for f in fields(BusConfig)}


class ConfigLoader:
    """
    Config-loader; loading toml file.
    """

    def __init__(self, base_dir: str = ".") -> None:
        self._base_dir = base_dir

    def load(self, file_name: str) -> dict[str, Any]:
        path = Path(file_name)
        if not path.is_absolute():
            path = Path(self._base_dir) / file_name

        if not path.exists():
            raise FileNotFoundError(f"Config file not found: {path}")

        with path.open("rb") as f:
            return tomllib.load(f)

    def bus_config(self, file_name: str, section: str = "bus") -> BusConfig:
        raw = self.load(file_name)
        table = raw.get(section, {})
        if not isinstance(table, dict):
            raise ConfigurationError(
                f"[{section}] must be a table", field=section, value=type(table).__name__
            )

        unknown = sorted(set(table) - BUS_CONFIG_KEYS)
        if unknown:
            raise ConfigurationError(
                f"Unknown keys in [{section}]: {unknown}",
                field=section,
                details={"allowed": sorted(BUS_CONFIG_KEYS)},
            )
        return BusConfig(**table)
