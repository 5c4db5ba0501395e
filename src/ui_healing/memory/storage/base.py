"""Abstract base class for selector memory storage."""
from abc import ABC, abstractmethod


class MappingStorage(ABC):
    """Interface for durable mapping storage (json document, sqlite)."""

    @abstractmethod
    async def load(self) -> list[dict]:
        """Return every persisted mapping record. Missing storage → []."""
        ...

    @abstractmethod
    async def save(self, records: list[dict]) -> None:
        """Replace the persisted set with `records`."""
        ...

    @abstractmethod
    def describe(self) -> str:
        """Human-readable location, for logs."""
        ...
