"""Data types for selector memory and element resolution."""
import re
import time
from dataclasses import dataclass, field

# Selector variants: plain tags, dispatched by the finder
RESOURCE_ID = "resource_id"
TEXT = "text"
CONTENT_DESC = "content_desc"
XPATH = "xpath"
COORDINATES = "coordinates"
VISUAL = "visual"

SELECTOR_TYPES = {RESOURCE_ID, TEXT, CONTENT_DESC, XPATH, COORDINATES, VISUAL}
STRUCTURAL_TYPES = {RESOURCE_ID, TEXT, CONTENT_DESC}  # resolvable by the standard finder
VISION_ONLY_TYPES = {VISUAL, COORDINATES}

FIND_METHODS = {"exact", "memory", "vision", "none"}

_WHITESPACE = re.compile(r"\s+")


def now_ms() -> int:
    return int(time.time() * 1000)


def clamp_confidence(value) -> float:
    try:
        value = float(value)
    except (TypeError, ValueError):
        return 0.0
    if value != value:  # NaN
        return 0.0
    return max(0.0, min(1.0, value))


def normalize_key(element_key: str) -> str:
    """'Settings   Button' → 'settings_button' so aliases share one mapping."""
    return _WHITESPACE.sub("_", element_key.lower())


def make_id(app_package: str, element_key: str) -> str:
    return f"{app_package}:{normalize_key(element_key)}"


@dataclass(frozen=True)
class Point:
    x: int
    y: int

    def to_dict(self) -> dict:
        return {"x": self.x, "y": self.y}

    @classmethod
    def from_dict(cls, data) -> "Point | None":
        if not isinstance(data, dict) or "x" not in data or "y" not in data:
            return None
        return cls(int(round(float(data["x"]))), int(round(float(data["y"]))))


@dataclass
class Selector:
    """One candidate way of locating an element, with its learned reliability."""
    type: str
    value: str
    confidence: float = 1.0
    last_used: int = field(default_factory=now_ms)

    def __post_init__(self):
        if self.type not in SELECTOR_TYPES:
            raise ValueError(f"Invalid selector type: {self.type}. Expected one of {sorted(SELECTOR_TYPES)}")
        self.value = str(self.value)
        self.confidence = clamp_confidence(self.confidence)

    def matches(self, selector_type: str, value: str) -> bool:
        return self.type == selector_type and self.value == value

    def to_dict(self) -> dict:
        return {
            "type": self.type,
            "value": self.value,
            "confidence": self.confidence,
            "lastUsed": self.last_used,
        }

    @classmethod
    def from_dict(cls, data: dict) -> "Selector":
        return cls(
            type=data["type"],
            value=data["value"],
            confidence=data.get("confidence", 0.0),
            last_used=int(data.get("lastUsed") or 0),
        )


@dataclass
class ElementMapping:
    """Everything learned about one element of one app."""
    app_package: str
    element_key: str
    selectors: list[Selector] = field(default_factory=list)
    app_version: str | None = None
    visual_description: str | None = None
    last_coordinates: Point | None = None
    success_count: int = 0
    fail_count: int = 0
    last_updated: int = field(default_factory=now_ms)

    @property
    def id(self) -> str:
        return make_id(self.app_package, self.element_key)

    def find_selector(self, selector_type: str, value: str) -> Selector | None:
        for s in self.selectors:
            if s.matches(selector_type, value):
                return s
        return None

    def to_dict(self) -> dict:
        record = {
            "id": self.id,
            "appPackage": self.app_package,
            "elementKey": self.element_key,
            "selectors": [s.to_dict() for s in self.selectors],
            "successCount": self.success_count,
            "failCount": self.fail_count,
            "lastUpdated": self.last_updated,
        }
        if self.app_version is not None:
            record["appVersion"] = self.app_version
        if self.visual_description is not None:
            record["visualDescription"] = self.visual_description
        if self.last_coordinates is not None:
            record["lastCoordinates"] = self.last_coordinates.to_dict()
        return record

    @classmethod
    def from_dict(cls, data: dict) -> "ElementMapping":
        mapping = cls(
            app_package=str(data["appPackage"]),
            element_key=str(data["elementKey"]),
            app_version=data.get("appVersion"),
            visual_description=data.get("visualDescription"),
            last_coordinates=Point.from_dict(data.get("lastCoordinates")),
            success_count=int(data.get("successCount", 0)),
            fail_count=int(data.get("failCount", 0)),
            last_updated=int(data.get("lastUpdated") or 0),
        )
        # Drop duplicate (type, value) pairs a hand-edited document might carry
        for raw in data.get("selectors", []):
            sel = Selector.from_dict(raw)
            if mapping.find_selector(sel.type, sel.value) is None:
                mapping.selectors.append(sel)
        return mapping


@dataclass
class VisionResult:
    """Result of asking the vision model where an element is."""
    found: bool
    coordinates: Point | None = None
    confidence: float = 0.0
    description: str = ""


@dataclass
class FindResult:
    """Outcome of one adaptive resolution call."""
    found: bool
    method: str  # exact | memory | vision | none
    confidence: float = 0.0
    description: str = ""
    coordinates: Point | None = None
    selector: Selector | None = None

    def to_dict(self) -> dict:
        return {
            "found": self.found,
            "method": self.method,
            "confidence": self.confidence,
            "description": self.description,
            "coordinates": self.coordinates.to_dict() if self.coordinates else None,
            "selector": self.selector.to_dict() if self.selector else None,
        }
