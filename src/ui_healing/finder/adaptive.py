"""Adaptive finder — three-tier fallback chain for locating UI elements.

Tiers, cheapest and most certain first:
  1. exact   — the caller's primary selector via the standard finder
  2. memory  — learned alternative selectors, highest confidence first
  3. vision  — screenshot → vision model, percentage → pixel coordinates

Tiers run strictly in order; a tier only runs when the previous one
missed. Every outcome is written back into selector memory, so repeated
runs against a stable app shift hits toward the cheap tiers.
"""
import logging

from .. import config, debug
from ..memory.store import SelectorMemory
from ..types import (
    CONTENT_DESC,
    RESOURCE_ID,
    STRUCTURAL_TYPES,
    TEXT,
    VISION_ONLY_TYPES,
    VISUAL,
    FindResult,
    Point,
    Selector,
)
from ..vision.locator import VisionLocator
from .base import StandardFinder

log = logging.getLogger(__name__)


class AdaptiveFinder:
    """Resolves a named element to tap coordinates, learning as it goes."""

    def __init__(
        self,
        memory: SelectorMemory,
        standard_finder: StandardFinder | None = None,
        vision: VisionLocator | None = None,
    ):
        self.memory = memory
        self.standard_finder = standard_finder
        self.vision = vision

    async def find_element(
        self,
        app_package: str,
        element_key: str,
        primary_selector: Selector,
        app_version: str | None = None,
    ) -> FindResult:
        """Find a UI element using the three-tier fallback chain.

        Args:
            app_package: Application identifier (e.g., "com.instagram.android")
            element_key: Human-readable element name (e.g., "Post button")
            primary_selector: resource_id, text or content_desc selector to try first
            app_version: Recorded on the mapping when a tier succeeds
        """
        # ── Tier 1: exact ────────────────────────────────────────────
        debug.log_tier("exact", element_key, f'{primary_selector.type}="{primary_selector.value}"')
        coords = await self._try_standard(primary_selector)
        if coords is not None:
            await self.memory.record_success(
                app_package, element_key,
                Selector(primary_selector.type, primary_selector.value, config.NATIVE_SELECTOR_CONFIDENCE),
                coords, app_version=app_version,
            )
            return FindResult(
                found=True,
                method="exact",
                coordinates=coords,
                confidence=config.NATIVE_SELECTOR_CONFIDENCE,
                description=f"Found via {primary_selector.type}",
            )

        await self.memory.record_failure(app_package, element_key, primary_selector.type, primary_selector.value)
        log.debug(f"Tier 1 missed for {element_key!r}")

        # ── Tier 2: memory ───────────────────────────────────────────
        for alt in self.memory.get_selectors(app_package, element_key):
            if alt.type in VISION_ONLY_TYPES:
                continue
            if alt.matches(primary_selector.type, primary_selector.value):
                continue

            debug.log_tier("memory", element_key, f'{alt.type}="{alt.value}" (confidence={alt.confidence:.2f})')
            coords = await self._try_standard(alt)
            if coords is not None:
                await self.memory.record_success(app_package, element_key, alt, coords, app_version=app_version)
                return FindResult(
                    found=True,
                    method="memory",
                    coordinates=coords,
                    selector=alt,
                    confidence=alt.confidence,
                    description=f"Found via UI map ({alt.type})",
                )

        log.debug(f"Tier 2 missed for {element_key!r}")

        # ── Tier 3: vision ───────────────────────────────────────────
        result = await self._try_vision(app_package, element_key, app_version)
        if result:
            return result

        log.warning(f"All tiers failed to find {element_key!r} in {app_package}")
        return FindResult(
            found=False,
            method="none",
            confidence=0.0,
            description=f'Element "{element_key}" not found by any method',
        )

    async def _try_vision(self, app_package: str, element_key: str, app_version: str | None) -> FindResult | None:
        if self.vision is None or self.standard_finder is None:
            return None

        try:
            screenshot = await self.standard_finder.get_screenshot()
        except Exception as e:
            log.warning(f"Screenshot capture failed: {e}")
            return None
        if not screenshot:
            log.debug("No screenshot available, skipping vision tier")
            return None

        width, height = self._screen_size()
        mapping = self.memory.find_element(app_package, element_key)
        hint = mapping.visual_description if mapping else None

        log.info(f"Tier 3: using vision to locate {element_key!r}")
        debug.log_tier("vision", element_key, f"{width}x{height}")
        found = await self.vision.find_element(screenshot, element_key, width, height, hint=hint)
        if not found.found or found.coordinates is None:
            return None

        selector = Selector(VISUAL, element_key, found.confidence)
        await self.memory.record_success(
            app_package, element_key, selector, found.coordinates, app_version=app_version,
        )
        if found.description:
            await self.memory.set_visual_description(app_package, element_key, found.description)

        return FindResult(
            found=True,
            method="vision",
            coordinates=found.coordinates,
            selector=selector,
            confidence=found.confidence,
            description=f"Found via VLM: {found.description}",
        )

    def _screen_size(self) -> tuple[int, int]:
        try:
            size = self.standard_finder.get_screen_size()
        except Exception as e:
            log.warning(f"Screen size unavailable: {e}")
            size = None
        if not size:
            return config.DEFAULT_SCREEN_WIDTH, config.DEFAULT_SCREEN_HEIGHT
        return size

    async def _try_standard(self, selector: Selector) -> Point | None:
        """Dispatch a structural selector; raising lookups count as misses."""
        if self.standard_finder is None or selector.type not in STRUCTURAL_TYPES:
            return None

        try:
            if selector.type == RESOURCE_ID:
                return await self.standard_finder.find_by_resource_id(selector.value)
            elif selector.type == TEXT:
                return await self.standard_finder.find_by_text(selector.value)
            elif selector.type == CONTENT_DESC:
                return await self.standard_finder.find_by_content_desc(selector.value)
        except Exception as e:
            log.warning(f"Standard lookup {selector.type}={selector.value!r} failed: {e}")
            debug.log("ERROR", f"Standard lookup failed: {e}")
        return None
