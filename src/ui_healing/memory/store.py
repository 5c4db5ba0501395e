"""Selector memory — learned, confidence-ranked selectors per app element.

When the finder learns how to reach a button/field in an app, it stores:
  - app package (+ version when known)
  - element key (normalized, so "Post Button" and "post   button" collide)
  - every selector that has worked, with a confidence score
  - a visual description for the vision fallback
  - last known coordinates

Confidence moves in fixed steps: +0.1 on success (cap 1.0), -0.3 on
failure (floor 0). The full store is rewritten through the storage port
after every mutation.
"""
import logging
from dataclasses import replace

from .. import config, debug
from ..types import ElementMapping, Point, Selector, make_id, now_ms
from .storage.base import MappingStorage

log = logging.getLogger(__name__)


class SelectorMemory:
    """In-memory map of ElementMapping keyed by "<app>:<normalized key>"."""

    def __init__(self, storage: MappingStorage | None = None):
        self.storage = storage
        self._mappings: dict[str, ElementMapping] = {}

    @classmethod
    async def open(cls, storage: MappingStorage | None = None) -> "SelectorMemory":
        memory = cls(storage)
        await memory.load()
        return memory

    async def load(self):
        """Replace the in-memory map with the persisted one. Never raises."""
        self._mappings = {}
        if self.storage is None:
            return
        try:
            records = await self.storage.load()
        except Exception as e:
            log.warning(f"Selector memory unreadable ({self.storage.describe()}), starting empty: {e}")
            return

        skipped = 0
        for record in records:
            try:
                mapping = ElementMapping.from_dict(record)
            except (KeyError, TypeError, ValueError, AttributeError) as e:
                skipped += 1
                log.debug(f"Skipping malformed mapping record: {e}")
                continue
            self._mappings[mapping.id] = mapping

        if skipped:
            log.warning(f"Skipped {skipped} malformed mapping record(s) in {self.storage.describe()}")
        if self._mappings:
            log.info(f"Loaded {len(self._mappings)} UI mappings from {self.storage.describe()}")
        debug.log("STORE", f"Loaded {len(self._mappings)} mappings ({skipped} skipped)")

    # ── Queries ──────────────────────────────────────────────────────

    def find_element(self, app_package: str, element_key: str) -> ElementMapping | None:
        return self._mappings.get(make_id(app_package, element_key))

    def get_selectors(self, app_package: str, element_key: str) -> list[Selector]:
        """Copies of the element's selectors, highest confidence first."""
        mapping = self.find_element(app_package, element_key)
        if mapping is None:
            return []
        return sorted((replace(s) for s in mapping.selectors), key=lambda s: s.confidence, reverse=True)

    def get_app_mappings(self, app_package: str) -> list[ElementMapping]:
        return [m for m in self._mappings.values() if m.app_package == app_package]

    def get_stats(self) -> dict:
        apps = set()
        total_confidence = 0.0
        selector_count = 0
        for m in self._mappings.values():
            apps.add(m.app_package)
            for s in m.selectors:
                total_confidence += s.confidence
                selector_count += 1
        return {
            "totalMappings": len(self._mappings),
            "totalApps": len(apps),
            "avgConfidence": total_confidence / selector_count if selector_count else 0.0,
        }

    # ── Mutations ────────────────────────────────────────────────────

    async def record_success(
        self,
        app_package: str,
        element_key: str,
        selector: Selector,
        coordinates: Point | None = None,
        app_version: str | None = None,
    ):
        """Reinforce a known selector or learn a new one."""
        mapping = self._get_or_create(app_package, element_key)
        ts = now_ms()

        existing = mapping.find_selector(selector.type, selector.value)
        if existing:
            before = existing.confidence
            existing.confidence = min(1.0, existing.confidence + config.SUCCESS_BOOST)
            existing.last_used = ts
            detail = f"{existing.type}={existing.value!r} {before:.2f} → {existing.confidence:.2f}"
        else:
            mapping.selectors.append(replace(selector, last_used=ts))
            detail = f"new {selector.type}={selector.value!r} @ {selector.confidence:.2f}"

        mapping.success_count += 1
        mapping.last_updated = ts
        if coordinates is not None:
            mapping.last_coordinates = coordinates
        if app_version:
            mapping.app_version = app_version

        await self._save()
        log.debug(f"UI map: recorded success for {element_key!r} in {app_package}")
        debug.log_store(mapping.id, "SUCCESS", detail)

    async def record_failure(self, app_package: str, element_key: str, selector_type: str, selector_value: str):
        """Demote a selector that did not resolve. Unknown elements are ignored."""
        mapping = self.find_element(app_package, element_key)
        if mapping is None:
            return

        selector = mapping.find_selector(selector_type, selector_value)
        if selector:
            selector.confidence = max(0.0, selector.confidence - config.FAILURE_PENALTY)

        mapping.fail_count += 1
        mapping.last_updated = now_ms()

        await self._save()
        log.debug(f"UI map: recorded failure for {element_key!r} in {app_package}")
        debug.log_store(
            mapping.id, "FAILURE",
            f"{selector_type}={selector_value!r} → {selector.confidence:.2f}" if selector else f"{selector_type} not stored",
        )

    async def set_visual_description(self, app_package: str, element_key: str, description: str):
        mapping = self._get_or_create(app_package, element_key)
        mapping.visual_description = description
        mapping.last_updated = now_ms()
        await self._save()
        debug.log_store(mapping.id, "DESCRIBED", description[:120])

    # ── Private ──────────────────────────────────────────────────────

    def _get_or_create(self, app_package: str, element_key: str) -> ElementMapping:
        mapping_id = make_id(app_package, element_key)
        mapping = self._mappings.get(mapping_id)
        if mapping is None:
            mapping = ElementMapping(app_package=app_package, element_key=element_key)
            self._mappings[mapping_id] = mapping
        return mapping

    async def _save(self):
        if self.storage is None:
            return
        records = [m.to_dict() for m in self._mappings.values()]
        try:
            await self.storage.save(records)
        except Exception as e:
            # Write failures never reach the caller
            log.error(f"Failed to persist selector memory to {self.storage.describe()}: {e}")
            debug.log("ERROR", f"Persist failed: {e}")
