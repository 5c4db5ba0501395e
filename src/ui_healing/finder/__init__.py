"""Element resolution: the standard-finder port and the adaptive finder."""
from .adaptive import AdaptiveFinder
from .base import StandardFinder

__all__ = ["AdaptiveFinder", "StandardFinder"]
