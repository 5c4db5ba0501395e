"""Pluggable storage for selector memory — selected by UIH_MEMORY_BACKEND: json|sqlite."""
from pathlib import Path

from ... import config
from .base import MappingStorage


def create_storage(backend: str = None, path: Path | str = None) -> MappingStorage:
    name = (backend or config.MEMORY_BACKEND).lower()
    if name == "json":
        from .json_file import JsonFileStorage
        return JsonFileStorage(path or config.UI_MAP_PATH)
    if name == "sqlite":
        from .sqlite import SqliteStorage
        return SqliteStorage(path or config.UI_MAP_DB_PATH)
    raise ValueError(f"Unknown memory backend: {name}. Use json|sqlite")


__all__ = ["MappingStorage", "create_storage"]
