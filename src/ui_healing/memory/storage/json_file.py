"""Single JSON document storage — the whole map rewritten on every save."""
import json
import logging
import os
import tempfile
from pathlib import Path

from .base import MappingStorage

log = logging.getLogger(__name__)


class JsonFileStorage(MappingStorage):
    def __init__(self, path: Path | str):
        self.path = Path(path)

    def describe(self) -> str:
        return str(self.path)

    async def load(self) -> list[dict]:
        if not self.path.exists():
            return []
        try:
            data = json.loads(self.path.read_text(encoding="utf-8"))
        except (OSError, ValueError) as e:
            log.warning(f"Ignoring unreadable UI map {self.path}: {e}")
            return []
        if not isinstance(data, list):
            log.warning(f"Ignoring UI map {self.path}: expected a JSON array, got {type(data).__name__}")
            return []
        return [r for r in data if isinstance(r, dict)]

    async def save(self, records: list[dict]) -> None:
        self.path.parent.mkdir(parents=True, exist_ok=True)
        payload = json.dumps(records, indent=2, ensure_ascii=False)
        # Atomic replace: readers never see a partial document
        fd, tmp = tempfile.mkstemp(prefix=".ui-maps.", suffix=".tmp", dir=self.path.parent)
        try:
            with os.fdopen(fd, "w", encoding="utf-8") as f:
                f.write(payload)
            os.replace(tmp, self.path)
        except BaseException:
            try:
                os.unlink(tmp)
            except OSError:
                pass
            raise
