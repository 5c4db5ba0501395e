"""Vision locator — last-resort element finding via a vision-language model.

Takes a screenshot, asks the model "where is the Settings button?" and
turns its percentage answer into absolute pixel coordinates. Every
failure mode (transport, auth, malformed reply) becomes a negative
result; nothing here raises to the caller.
"""
import base64
import io
import json
import logging
import math

from PIL import Image

from .. import config, debug
from ..types import Point, VisionResult, clamp_confidence
from .base import VisionBackend

log = logging.getLogger(__name__)

_decoder = json.JSONDecoder()


def decode_screenshot(screenshot: bytes | str) -> bytes:
    """Accept raw image bytes, a base64 string, or a data: URL."""
    if isinstance(screenshot, (bytes, bytearray)):
        return bytes(screenshot)
    text = screenshot.strip()
    if text.startswith("data:") and "," in text:
        text = text.split(",", 1)[1]
    return base64.b64decode(text, validate=False)


def prepare_image(image: bytes, max_dim: int = None, quality: int = None) -> bytes:
    """Resize and JPEG-compress a screenshot for model input.

    Undecodable input is passed through untouched; the backend decides
    what to do with it.
    """
    max_dim = max_dim or config.IMAGE_MAX_DIM
    quality = quality or config.IMAGE_JPEG_QUALITY
    try:
        img = Image.open(io.BytesIO(image))
        img.load()
    except Exception as e:
        log.debug(f"Screenshot not decodable by Pillow, sending as-is: {e}")
        return image
    if img.mode != "RGB":
        img = img.convert("RGB")
    ratio = max_dim / max(img.size)
    if ratio < 1:
        img = img.resize((int(img.width * ratio), int(img.height * ratio)), Image.BILINEAR)
    buf = io.BytesIO()
    img.save(buf, format="JPEG", quality=quality)
    return buf.getvalue()


def extract_json_object(text: str) -> dict | None:
    """First well-formed {...} object in free text (prose and code fences tolerated)."""
    start = text.find("{")
    while start != -1:
        try:
            obj, _ = _decoder.raw_decode(text, start)
        except ValueError:
            obj = None
        if isinstance(obj, dict):
            return obj
        start = text.find("{", start + 1)
    return None


def percent_to_pixels(percent: float, size: int) -> int:
    """Round half up, so 50% of 1081 is 541."""
    percent = max(0.0, min(100.0, percent))
    return int(math.floor(percent / 100 * size + 0.5))


def _as_number(value) -> float | None:
    if isinstance(value, bool):
        return None
    try:
        number = float(value)
    except (TypeError, ValueError):
        return None
    return number if math.isfinite(number) else None


class VisionLocator:
    """Semantic element finder over any VisionBackend."""

    def __init__(self, backend: VisionBackend):
        self.backend = backend

    async def find_element(
        self,
        screenshot: bytes | str,
        description: str,
        screen_width: int = None,
        screen_height: int = None,
        hint: str = None,
    ) -> VisionResult:
        """Locate `description` in the screenshot.

        Args:
            screenshot: Image bytes or base64 of the current screen
            description: What to find (e.g., "Post button")
            screen_width: Device width in pixels; coordinates are scaled to it
            screen_height: Device height in pixels
            hint: Previously learned visual description, if any

        Returns:
            VisionResult; found=False with confidence 0 on any failure.
        """
        screen_width = screen_width or config.DEFAULT_SCREEN_WIDTH
        screen_height = screen_height or config.DEFAULT_SCREEN_HEIGHT

        prompt = f'Find this UI element in the screenshot: "{description}"'
        if hint:
            prompt += f"\nLast time it looked like: {hint}"

        try:
            image = prepare_image(decode_screenshot(screenshot))
        except Exception as e:
            log.warning(f"Vision locator: unusable screenshot: {e}")
            return VisionResult(found=False, description=f"Invalid screenshot: {e}")

        try:
            log.debug(f"Vision locator: looking for {description!r}")
            text = await self.backend.chat(config.LOCATOR_SYSTEM_INSTRUCTIONS, prompt, image)
        except Exception as e:
            log.warning(f"Vision locator failed ({self.backend.name}): {e}")
            debug.log("ERROR", f"Vision locator failed: {e}")
            return VisionResult(found=False, description=f"VLM error: {e}")

        return self._parse_reply(text or "", description, screen_width, screen_height)

    def _parse_reply(self, text: str, description: str, screen_width: int, screen_height: int) -> VisionResult:
        data = extract_json_object(text)
        if data is None:
            log.debug(f"Vision locator: no JSON in reply: {text[:200]!r}")
            return VisionResult(found=False, description="Failed to parse VLM response")

        said = str(data.get("description") or "")
        x = _as_number(data.get("x"))
        y = _as_number(data.get("y"))
        found = data.get("found")
        if isinstance(found, str):
            found = found.strip().lower() == "true"
        if not found or x is None or y is None:
            return VisionResult(found=False, description=said or "Element not found")

        raw_confidence = data.get("confidence")
        confidence = (
            config.DEFAULT_VISION_CONFIDENCE if _as_number(raw_confidence) is None else clamp_confidence(raw_confidence)
        )
        point = Point(percent_to_pixels(x, screen_width), percent_to_pixels(y, screen_height))
        log.info(f"Vision locator: found {description!r} at ({point.x}, {point.y}) confidence={confidence:.2f}")
        return VisionResult(found=True, coordinates=point, confidence=confidence, description=said)

    async def describe_screen(self, screenshot: bytes | str) -> str:
        """Free-text summary of the current screen; errors come back as text."""
        try:
            image = prepare_image(decode_screenshot(screenshot))
            text = await self.backend.chat(config.DESCRIBE_SYSTEM_INSTRUCTIONS, "Describe this phone screen:", image)
        except Exception as e:
            log.warning(f"Describe screen failed ({self.backend.name}): {e}")
            return f"(VLM error: {e})"
        return text or "(no description)"

    async def check_health(self) -> dict:
        return await self.backend.check_health()
