"""Abstract base class for the device-side standard finder."""
from abc import ABC, abstractmethod

from ..types import Point


class StandardFinder(ABC):
    """Structural element lookup + screen capture on the target device.

    Implemented outside this package (ADB/uiautomator, Appium, XCUITest...).
    Lookups return the element's tap point, or None when nothing matches.
    """

    @abstractmethod
    async def find_by_resource_id(self, resource_id: str) -> Point | None:
        ...

    @abstractmethod
    async def find_by_text(self, text: str) -> Point | None:
        ...

    @abstractmethod
    async def find_by_content_desc(self, desc: str) -> Point | None:
        ...

    @abstractmethod
    async def get_screenshot(self) -> bytes | str | None:
        """Current screen as image bytes or base64, or None if unavailable."""
        ...

    @abstractmethod
    def get_screen_size(self) -> tuple[int, int] | None:
        """(width, height) in pixels, or None if unknown."""
        ...
