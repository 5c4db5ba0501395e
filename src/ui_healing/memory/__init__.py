"""Selector memory and its storage backends."""
from .storage import MappingStorage, create_storage
from .store import SelectorMemory

__all__ = ["MappingStorage", "SelectorMemory", "create_storage"]
