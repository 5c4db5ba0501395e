"""Selector memory: confidence rules, key normalization, persistence."""
import json

import pytest

from ui_healing.memory import SelectorMemory, create_storage
from ui_healing.memory.storage.base import MappingStorage
from ui_healing.memory.storage.json_file import JsonFileStorage
from ui_healing.memory.storage.sqlite import SqliteStorage
from ui_healing.types import Point, Selector


@pytest.mark.asyncio
async def test_record_success_creates_mapping(storage):
    memory = await SelectorMemory.open(storage)
    await memory.record_success(
        "com.instagram.android", "Post button",
        Selector("resource_id", "com.instagram.android:id/creation_tab", 1.0),
        Point(540, 2200),
    )

    mapping = memory.find_element("com.instagram.android", "Post button")
    assert mapping is not None
    assert mapping.app_package == "com.instagram.android"
    assert len(mapping.selectors) == 1
    assert mapping.success_count == 1
    assert mapping.last_coordinates == Point(540, 2200)
    assert mapping.id == "com.instagram.android:post_button"


@pytest.mark.asyncio
async def test_repeated_success_raises_confidence_up_to_one(storage):
    memory = await SelectorMemory.open(storage)
    selector = Selector("text", "OK", 0.9)

    await memory.record_success("com.app", "OK button", selector)
    await memory.record_success("com.app", "OK button", selector)
    assert memory.get_selectors("com.app", "OK button")[0].confidence == pytest.approx(1.0)

    for _ in range(20):
        await memory.record_success("com.app", "OK button", selector)
    mapping = memory.find_element("com.app", "OK button")
    assert len(mapping.selectors) == 1
    assert mapping.selectors[0].confidence == 1.0
    assert mapping.success_count == 22


@pytest.mark.asyncio
async def test_success_boost_is_point_one(storage):
    memory = await SelectorMemory.open(storage)
    selector = Selector("text", "Settings", 0.5)
    for _ in range(3):
        await memory.record_success("com.app", "Settings", selector)

    assert memory.get_selectors("com.app", "Settings")[0].confidence == pytest.approx(0.7)


@pytest.mark.asyncio
async def test_failures_decay_confidence_to_zero_floor(storage):
    memory = await SelectorMemory.open(storage)
    await memory.record_success("com.app", "Btn", Selector("resource_id", "btn1", 1.0))

    await memory.record_failure("com.app", "Btn", "resource_id", "btn1")
    assert memory.get_selectors("com.app", "Btn")[0].confidence == pytest.approx(0.7)

    for _ in range(10):
        await memory.record_failure("com.app", "Btn", "resource_id", "btn1")
    mapping = memory.find_element("com.app", "Btn")
    assert mapping.selectors[0].confidence == 0.0
    assert mapping.fail_count == 11


@pytest.mark.asyncio
async def test_failure_on_unknown_element_is_a_noop(storage, map_path):
    memory = await SelectorMemory.open(storage)
    await memory.record_failure("com.nonexistent", "Ghost", "resource_id", "ghost_id")

    assert memory.find_element("com.nonexistent", "Ghost") is None
    assert memory.get_stats()["totalMappings"] == 0
    assert not map_path.exists()


@pytest.mark.asyncio
async def test_failure_on_unknown_selector_leaves_others_alone(storage):
    memory = await SelectorMemory.open(storage)
    await memory.record_success("com.app", "Btn", Selector("resource_id", "real", 1.0))
    await memory.record_failure("com.app", "Btn", "text", "nonexistent")

    mapping = memory.find_element("com.app", "Btn")
    assert mapping.selectors[0].confidence == 1.0
    assert mapping.fail_count == 1


@pytest.mark.asyncio
async def test_selectors_sorted_by_confidence_and_copied(storage):
    memory = await SelectorMemory.open(storage)
    await memory.record_success("com.app", "Button", Selector("resource_id", "btn1", 0.5))
    await memory.record_success("com.app", "Button", Selector("text", "Click me", 0.9))
    await memory.record_success("com.app", "Button", Selector("content_desc", "action", 0.3))

    selectors = memory.get_selectors("com.app", "Button")
    assert [s.value for s in selectors] == ["Click me", "btn1", "action"]

    selectors[0].confidence = 0.0
    assert memory.get_selectors("com.app", "Button")[0].confidence == pytest.approx(0.9)


@pytest.mark.asyncio
async def test_key_normalization_collapses_case_and_whitespace(storage):
    memory = await SelectorMemory.open(storage)
    await memory.record_success("com.app", "Settings Button", Selector("text", "Settings", 0.8))

    assert memory.find_element("com.app", "settings   button") is memory.find_element("com.app", "Settings Button")
    await memory.record_success("com.app", "SETTINGS\tbutton", Selector("text", "Settings", 0.8))
    assert memory.get_stats()["totalMappings"] == 1
    assert memory.find_element("com.app", "settings button").success_count == 2


@pytest.mark.asyncio
async def test_unusual_keys_and_packages(storage):
    memory = await SelectorMemory.open(storage)
    await memory.record_success("com.app", "🔴 Red Button (new version)", Selector("text", "🔴", 0.9))
    await memory.record_success("com.很好.应用", "按钮", Selector("text", "确定", 0.8))

    reloaded = await SelectorMemory.open(storage)
    assert reloaded.find_element("com.app", "🔴 Red Button (new version)") is not None
    assert reloaded.find_element("com.很好.应用", "按钮").selectors[0].value == "确定"


@pytest.mark.asyncio
async def test_visual_description_creates_mapping(storage):
    memory = await SelectorMemory.open(storage)
    await memory.set_visual_description("com.app", "Login", "Blue button with white text 'Log In' at bottom of screen")

    mapping = memory.find_element("com.app", "Login")
    assert mapping.visual_description == "Blue button with white text 'Log In' at bottom of screen"
    assert mapping.selectors == []
    assert mapping.success_count == 0


@pytest.mark.asyncio
async def test_stats_and_app_mappings(storage):
    memory = await SelectorMemory.open(storage)
    assert memory.get_stats() == {"totalMappings": 0, "totalApps": 0, "avgConfidence": 0.0}

    await memory.record_success("com.app1", "Btn", Selector("text", "A", 0.8))
    await memory.record_success("com.app1", "Other", Selector("text", "C", 0.4))
    await memory.record_success("com.app2", "Btn", Selector("text", "B", 0.6))

    stats = memory.get_stats()
    assert stats["totalMappings"] == 3
    assert stats["totalApps"] == 2
    assert stats["avgConfidence"] == pytest.approx(0.6)
    assert {m.element_key for m in memory.get_app_mappings("com.app1")} == {"Btn", "Other"}
    assert memory.get_app_mappings("com.nonexistent") == []


@pytest.mark.asyncio
async def test_persist_and_reload(storage, map_path):
    memory = await SelectorMemory.open(storage)
    await memory.record_success(
        "com.app", "Element", Selector("resource_id", "el1", 1.0), Point(10, 20), app_version="3.2.1",
    )
    await memory.record_failure("com.app", "Element", "resource_id", "el1")

    records = json.loads(map_path.read_text(encoding="utf-8"))
    assert records[0]["id"] == "com.app:element"
    assert records[0]["appVersion"] == "3.2.1"
    assert records[0]["selectors"][0]["type"] == "resource_id"

    reloaded = await SelectorMemory.open(JsonFileStorage(map_path))
    mapping = reloaded.find_element("com.app", "Element")
    assert len(mapping.selectors) == 1
    assert mapping.selectors[0].confidence == pytest.approx(0.7)
    assert mapping.last_coordinates == Point(10, 20)
    assert (mapping.success_count, mapping.fail_count) == (1, 1)


@pytest.mark.asyncio
@pytest.mark.parametrize("content", ["{not json at all", '{"id": "an object, not an array"}', "", "\x00\x01garbage"])
async def test_corrupt_document_yields_empty_store(map_path, content):
    map_path.write_text(content, encoding="utf-8")

    memory = await SelectorMemory.open(JsonFileStorage(map_path))
    assert memory.get_stats()["totalMappings"] == 0

    # Still usable: the next mutation rewrites the document
    await memory.record_success("com.app", "Btn", Selector("text", "Go", 0.5))
    assert json.loads(map_path.read_text(encoding="utf-8"))[0]["elementKey"] == "Btn"


@pytest.mark.asyncio
async def test_malformed_records_are_skipped(map_path):
    good = {
        "id": "com.app:ok", "appPackage": "com.app", "elementKey": "OK",
        "selectors": [
            {"type": "text", "value": "OK", "confidence": 0.4, "lastUsed": 1},
            {"type": "text", "value": "OK", "confidence": 0.9, "lastUsed": 2},
        ],
        "successCount": 1, "failCount": 0, "lastUpdated": 1,
    }
    bad_type = {"appPackage": "com.app", "elementKey": "Bad", "selectors": [{"type": "laser", "value": "x"}]}
    missing_key = {"appPackage": "com.app"}
    map_path.write_text(json.dumps([good, bad_type, missing_key, "not a record"]), encoding="utf-8")

    memory = await SelectorMemory.open(JsonFileStorage(map_path))
    assert memory.get_stats()["totalMappings"] == 1
    # duplicate (type, value) pairs collapse to the first
    assert [s.confidence for s in memory.get_selectors("com.app", "OK")] == [0.4]


@pytest.mark.asyncio
async def test_missing_document_is_empty_store(map_path):
    memory = await SelectorMemory.open(JsonFileStorage(map_path))
    assert memory.get_stats()["totalMappings"] == 0


class BrokenStorage(MappingStorage):
    def __init__(self):
        self.attempts = 0

    async def load(self) -> list[dict]:
        raise OSError("permission denied")

    async def save(self, records: list[dict]) -> None:
        self.attempts += 1
        raise OSError("disk full")

    def describe(self) -> str:
        return "broken"


@pytest.mark.asyncio
async def test_storage_failures_are_swallowed():
    storage = BrokenStorage()
    memory = await SelectorMemory.open(storage)
    assert memory.get_stats()["totalMappings"] == 0

    await memory.record_success("com.app", "Btn", Selector("text", "Go", 0.5))
    await memory.set_visual_description("com.app", "Btn", "green pill")
    assert storage.attempts == 2
    assert memory.find_element("com.app", "Btn").visual_description == "green pill"


@pytest.mark.asyncio
@pytest.mark.parametrize("make_storage, name", [(JsonFileStorage, "ui-maps.json"), (SqliteStorage, "ui-maps.db")])
async def test_storage_creates_missing_data_dir(isolated_data, make_storage, name):
    path = isolated_data / "fresh" / "nested" / name
    memory = await SelectorMemory.open(make_storage(path))

    await memory.record_success("com.app", "Go", Selector("text", "Go", 1.0))

    assert path.exists()
    assert (await SelectorMemory.open(make_storage(path))).find_element("com.app", "go") is not None


@pytest.mark.asyncio
async def test_sqlite_storage_round_trip(isolated_data):
    storage = create_storage("sqlite")
    assert isinstance(storage, SqliteStorage)

    memory = await SelectorMemory.open(storage)
    await memory.record_success("com.app", "Share", Selector("text", "Share", 0.6), Point(1, 2))
    await memory.record_success("com.app", "Share", Selector("content_desc", "Share post", 0.4))
    await memory.record_success("com.other", "Back", Selector("resource_id", "back", 1.0))

    reloaded = await SelectorMemory.open(create_storage("sqlite"))
    assert reloaded.get_stats()["totalMappings"] == 2
    assert [s.value for s in reloaded.get_selectors("com.app", "share")] == ["Share", "Share post"]


@pytest.mark.asyncio
async def test_corrupt_sqlite_file_yields_empty_store(isolated_data):
    db_path = isolated_data / "ui-maps.db"
    db_path.write_bytes(b"this is not a sqlite database" * 64)

    memory = await SelectorMemory.open(SqliteStorage(db_path))
    assert memory.get_stats()["totalMappings"] == 0


def test_create_storage_defaults_and_rejects_unknown(isolated_data):
    storage = create_storage()
    assert isinstance(storage, JsonFileStorage)
    assert storage.path == isolated_data / "ui-maps.json"

    with pytest.raises(ValueError):
        create_storage("redis")


def test_selector_rejects_unknown_type_and_clamps():
    with pytest.raises(ValueError):
        Selector("laser", "x")
    assert Selector("text", "a", 1.7).confidence == 1.0
    assert Selector("text", "a", -2).confidence == 0.0
