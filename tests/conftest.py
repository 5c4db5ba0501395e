"""Shared fakes for the device-side finder and the vision backend."""
import io

import pytest
from PIL import Image

from ui_healing.finder.base import StandardFinder
from ui_healing.memory.storage.json_file import JsonFileStorage
from ui_healing.types import Point
from ui_healing.vision.base import VisionBackend


def broken_png(width: int = 64, height: int = 64) -> bytes:
    """A PNG Pillow identifies from its header but chokes on while decoding."""
    buf = io.BytesIO()
    Image.new("RGBA", (width, height), (200, 30, 30, 255)).save(buf, format="PNG")
    data = bytearray(buf.getvalue())
    # Chunk type that is not a valid tag: Pillow raises SyntaxError("broken PNG file")
    data[data.rindex(b"IEND") + 2] = 0x1D
    return bytes(data)


class FakeStandardFinder(StandardFinder):
    """Scripted device: lookups hit only for the (type, value) pairs given."""

    def __init__(self, hits: dict = None, screenshot=None, screen_size=(1080, 2400), raises: Exception = None):
        self.hits = hits or {}
        self.screenshot = screenshot
        self.screen_size = screen_size
        self.raises = raises
        self.calls: list[tuple[str, str]] = []

    async def _lookup(self, selector_type: str, value: str) -> Point | None:
        self.calls.append((selector_type, value))
        if self.raises:
            raise self.raises
        return self.hits.get((selector_type, value))

    async def find_by_resource_id(self, resource_id: str) -> Point | None:
        return await self._lookup("resource_id", resource_id)

    async def find_by_text(self, text: str) -> Point | None:
        return await self._lookup("text", text)

    async def find_by_content_desc(self, desc: str) -> Point | None:
        return await self._lookup("content_desc", desc)

    async def get_screenshot(self):
        return self.screenshot

    def get_screen_size(self):
        return self.screen_size


class FakeVisionBackend(VisionBackend):
    """Returns canned replies in order; an Exception entry is raised instead."""

    name = "fake"

    def __init__(self, *replies):
        super().__init__()
        self.replies = list(replies)
        self.calls: list[dict] = []

    @property
    def model(self) -> str:
        return "fake-vlm"

    async def chat(self, system: str, prompt: str, image: bytes) -> str:
        self.calls.append({"system": system, "prompt": prompt, "image": image})
        reply = self.replies.pop(0) if self.replies else ""
        if isinstance(reply, Exception):
            raise reply
        return reply

    async def check_health(self) -> dict:
        return {"ok": True, "backend": self.name, "model": self.model}


@pytest.fixture
def isolated_data(monkeypatch, tmp_path):
    """Point every config path at a per-test directory."""
    from ui_healing import config

    monkeypatch.setattr(config, "DATA_DIR", tmp_path)
    monkeypatch.setattr(config, "UI_MAP_PATH", tmp_path / "ui-maps.json")
    monkeypatch.setattr(config, "UI_MAP_DB_PATH", tmp_path / "ui-maps.db")
    monkeypatch.setattr(config, "LOG_DIR", tmp_path / "logs")
    return tmp_path


@pytest.fixture
def map_path(isolated_data):
    return isolated_data / "ui-maps.json"


@pytest.fixture
def storage(map_path):
    return JsonFileStorage(map_path)
