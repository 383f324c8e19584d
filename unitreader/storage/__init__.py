"""Persistence gateways for folders, units and vocabulary."""
from pathlib import Path

from .base import Gateway, FOLDERS, UNITS, VOCABULARY
from .database import Database
from .rest import RestGateway


def open_gateway(config: dict) -> Gateway:
    """Build the gateway selected by the ``storage`` config section."""
    storage_config = config.get("storage", {})
    backend = storage_config.get("backend", "sqlite")

    if backend == "rest":
        rest_config = storage_config.get("rest", {})
        return RestGateway(
            url=rest_config.get("url"),
            api_key=rest_config.get("api_key"),
            timeout=rest_config.get("timeout", 10),
        )

    base_path = Path(storage_config.get("base_path", "data"))
    return Database(base_path / storage_config.get("database", "units.db"))


__all__ = [
    "Gateway",
    "Database",
    "RestGateway",
    "open_gateway",
    "FOLDERS",
    "UNITS",
    "VOCABULARY",
]
