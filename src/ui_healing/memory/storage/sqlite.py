"""SQLite storage for selector memory — one row per element mapping."""
import json
import logging
from pathlib import Path

import aiosqlite

from .base import MappingStorage

log = logging.getLogger(__name__)

SCHEMA = """
CREATE TABLE IF NOT EXISTS ui_mappings (
    id TEXT PRIMARY KEY,
    app_package TEXT NOT NULL,
    element_key TEXT NOT NULL,
    payload TEXT NOT NULL,
    last_updated INTEGER NOT NULL DEFAULT 0
);

CREATE INDEX IF NOT EXISTS idx_ui_mappings_app ON ui_mappings(app_package);
"""


class SqliteStorage(MappingStorage):
    def __init__(self, path: Path | str):
        self.path = Path(path)

    def describe(self) -> str:
        return f"sqlite:{self.path}"

    async def _connect(self) -> aiosqlite.Connection:
        self.path.parent.mkdir(parents=True, exist_ok=True)
        conn = await aiosqlite.connect(str(self.path))
        conn.row_factory = aiosqlite.Row
        try:
            await conn.executescript(SCHEMA)
        except aiosqlite.Error:
            await conn.close()
            raise
        return conn

    async def load(self) -> list[dict]:
        if not self.path.exists():
            return []
        try:
            conn = await self._connect()
        except aiosqlite.Error as e:
            log.warning(f"Ignoring unreadable UI map database {self.path}: {e}")
            return []
        records = []
        try:
            async with conn.execute("SELECT id, payload FROM ui_mappings ORDER BY id") as cursor:
                async for row in cursor:
                    try:
                        record = json.loads(row["payload"])
                    except ValueError:
                        log.warning(f"Skipping corrupt mapping row {row['id']}")
                        continue
                    if isinstance(record, dict):
                        records.append(record)
        except aiosqlite.Error as e:
            log.warning(f"Ignoring unreadable UI map database {self.path}: {e}")
            return []
        finally:
            await conn.close()
        return records

    async def save(self, records: list[dict]) -> None:
        conn = await self._connect()
        try:
            await conn.execute("DELETE FROM ui_mappings")
            await conn.executemany(
                "INSERT INTO ui_mappings (id, app_package, element_key, payload, last_updated) VALUES (?,?,?,?,?)",
                [
                    (r["id"], r["appPackage"], r["elementKey"], json.dumps(r, ensure_ascii=False), r.get("lastUpdated", 0))
                    for r in records
                ],
            )
            await conn.commit()
        finally:
            await conn.close()
