"""Adaptive UI element resolution: selector memory, vision locator, tiered finder."""
from .finder import AdaptiveFinder, StandardFinder
from .memory import SelectorMemory, create_storage
from .types import ElementMapping, FindResult, Point, Selector, VisionResult
from .vision import VisionLocator, create_backend, create_locator

__all__ = [
    "AdaptiveFinder",
    "ElementMapping",
    "FindResult",
    "Point",
    "Selector",
    "SelectorMemory",
    "StandardFinder",
    "VisionLocator",
    "VisionResult",
    "create_backend",
    "create_locator",
    "create_storage",
]
