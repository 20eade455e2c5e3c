"""Key-value blob persistence for search history and saved searches."""

import asyncio
import json
import os
import tempfile
from abc import ABC, abstractmethod
from collections.abc import Iterable
from pathlib import Path
from typing import Any, TypeVar

import aiofiles
import structlog
from pydantic import BaseModel, TypeAdapter

logger = structlog.get_logger(__name__)

HISTORY_KEY = "nimbus_search_history"
SAVED_SEARCHES_KEY = "nimbus_saved_searches"

JSON = Any
ModelT = TypeVar("ModelT", bound=BaseModel)


class KeyValueStore(ABC):
    """Load, save, and remove whole JSON documents by key."""

    @abstractmethod
    async def load(self, key: str) -> JSON | None:
        """Return the stored document, or None when the key is absent."""

    @abstractmethod
    async def save(self, key: str, value: JSON) -> None:
        """Replace the document stored under ``key``."""

    @abstractmethod
    async def remove(self, key: str) -> None:
        """Delete ``key``; absent keys are ignored."""


class MemoryStore(KeyValueStore):
    """Process-local store that keeps serialized JSON text."""

    def __init__(self) -> None:
        self._blobs: dict[str, str] = {}

    def __contains__(self, key: object) -> bool:
        return key in self._blobs

    def raw(self, key: str) -> str | None:
        """Serialized text stored under ``key``."""
        return self._blobs.get(key)

    def put_raw(self, key: str, text: str) -> None:
        self._blobs[key] = text

    async def load(self, key: str) -> JSON | None:
        text = self._blobs.get(key)
        if text is None:
            return None
        return json.loads(text)

    async def save(self, key: str, value: JSON) -> None:
        self._blobs[key] = json.dumps(value, ensure_ascii=False)

    async def remove(self, key: str) -> None:
        self._blobs.pop(key, None)


class JsonFileStore(KeyValueStore):
    """One ``<key>.json`` file per key inside ``directory``."""

    def __init__(self, directory: Path):
        self.directory = directory

    def path_for(self, key: str) -> Path:
        return self.directory / f"{key}.json"

    async def load(self, key: str) -> JSON | None:
        path = self.path_for(key)
        if not path.exists():
            return None

        async with aiofiles.open(path, encoding="utf-8") as f:
            content = await f.read()
        return json.loads(content)

    async def save(self, key: str, value: JSON) -> None:
        """Write the document using an atomic file replace."""
        serialized = json.dumps(value, indent=2, ensure_ascii=False)
        target = self.path_for(key)

        def _write() -> None:
            target.parent.mkdir(parents=True, exist_ok=True)
            fd, temp_path = tempfile.mkstemp(
                dir=target.parent, prefix=f"{key}_", suffix=".tmp"
            )
            try:
                with os.fdopen(fd, "w", encoding="utf-8") as tmp_file:
                    tmp_file.write(serialized)
                    tmp_file.flush()
                    os.fsync(tmp_file.fileno())
                os.replace(temp_path, target)
            finally:
                if os.path.exists(temp_path):
                    try:
                        os.remove(temp_path)
                    except FileNotFoundError:
                        pass

        await asyncio.to_thread(_write)

    async def remove(self, key: str) -> None:
        await asyncio.to_thread(self.path_for(key).unlink, missing_ok=True)


def encode_collection(models: Iterable[BaseModel]) -> list[dict[str, Any]]:
    """Dump models to JSON-safe dicts; datetimes become ISO-8601 strings."""
    return [model.model_dump(mode="json") for model in models]


def decode_collection(model: type[ModelT], raw: JSON | None) -> list[ModelT]:
    """Revive a stored collection, degrading to an empty list when it is unusable."""
    if raw is None:
        return []
    try:
        return TypeAdapter(list[model]).validate_python(raw)
    except Exception as e:
        logger.warning(
            "Discarding unreadable collection",
            model=model.__name__,
            error=str(e),
        )
        return []
