"""Registry of user-named, reusable search queries."""

import asyncio
from collections.abc import Callable
from datetime import datetime

from nimbus_search.search.exceptions import NotFound, ValidationError
from nimbus_search.search.models import SavedSearch, SearchLauncher
from nimbus_search.storage.persistence import (
    JSON,
    SAVED_SEARCHES_KEY,
    KeyValueStore,
    decode_collection,
    encode_collection,
)
from nimbus_search.utils.error_handler import safe_operation, safe_with_default
from nimbus_search.utils.mixins import LoggerMixin


class SavedSearchRegistry(LoggerMixin):
    """CRUD store for saved searches with usage statistics.

    Entries keep insertion order. The full registry is persisted after every
    mutation; registries are expected to hold tens of entries.
    """

    log_context = {"store_key": SAVED_SEARCHES_KEY}

    def __init__(
        self,
        store: KeyValueStore,
        clock: Callable[[], datetime] = datetime.now,
    ):
        self.store = store
        self._clock = clock
        self._lock = asyncio.Lock()

    async def list_searches(self) -> list[SavedSearch]:
        return await self._load()

    async def get(self, saved_id: str) -> SavedSearch:
        for saved in await self._load():
            if saved.id == saved_id:
                return saved
        raise NotFound("saved search", saved_id)

    async def find(self, text: str) -> list[SavedSearch]:
        """Saved searches whose name, description, or tags contain ``text``."""
        needle = text.strip().casefold()
        searches = await self._load()
        if not needle:
            return searches

        def hit(saved: SavedSearch) -> bool:
            haystack = [saved.name, saved.description or "", *saved.tags]
            return any(needle in field.casefold() for field in haystack)

        return [s for s in searches if hit(s)]

    async def save(self, entry: SavedSearch) -> SavedSearch:
        """Insert ``entry``, or replace the entry with the same ID."""
        self._validate(entry)

        async with self._lock:
            searches = await self._load()
            for index, existing in enumerate(searches):
                if existing.id == entry.id:
                    searches[index] = entry
                    break
            else:
                searches.append(entry)
            await self._save(searches)

        self.logger.info("Saved search stored", saved_id=entry.id, name=entry.name)
        return entry

    async def update(self, entry: SavedSearch) -> SavedSearch:
        """Replace an existing entry wholesale."""
        self._validate(entry)

        async with self._lock:
            searches = await self._load()
            index = self._index_of(searches, entry.id)
            searches[index] = entry
            await self._save(searches)

        self.logger.info("Saved search updated", saved_id=entry.id)
        return entry

    async def remove(self, saved_id: str) -> None:
        async with self._lock:
            searches = await self._load()
            index = self._index_of(searches, saved_id)
            del searches[index]
            await self._save(searches)

        self.logger.info("Saved search removed", saved_id=saved_id)

    async def use(self, saved_id: str, launch: SearchLauncher) -> str:
        """Bump usage statistics, then start a search with the stored query."""
        async with self._lock:
            searches = await self._load()
            index = self._index_of(searches, saved_id)
            saved = searches[index]
            saved = saved.model_copy(
                update={"use_count": saved.use_count + 1, "last_used": self._clock()}
            )
            searches[index] = saved
            await self._save(searches)

        self.logger.info(
            "Saved search used", saved_id=saved_id, use_count=saved.use_count
        )
        return await launch(saved.query)

    async def clear_all(self) -> None:
        async with self._lock:
            await self._remove_document()
        self.logger.info("Saved searches cleared")

    @staticmethod
    def _validate(entry: SavedSearch) -> None:
        if not entry.name or not entry.name.strip():
            raise ValidationError("saved search name must not be empty")

    @staticmethod
    def _index_of(searches: list[SavedSearch], saved_id: str) -> int:
        for index, saved in enumerate(searches):
            if saved.id == saved_id:
                return index
        raise NotFound("saved search", saved_id)

    async def _load(self) -> list[SavedSearch]:
        return decode_collection(SavedSearch, await self._read_document())

    async def _save(self, searches: list[SavedSearch]) -> None:
        await self._write_document(encode_collection(searches))

    @safe_with_default("load saved searches", default_value=None)
    async def _read_document(self) -> JSON | None:
        return await self.store.load(SAVED_SEARCHES_KEY)

    @safe_operation("save saved searches")
    async def _write_document(self, document: JSON) -> None:
        await self.store.save(SAVED_SEARCHES_KEY, document)

    @safe_operation("clear saved searches")
    async def _remove_document(self) -> None:
        await self.store.remove(SAVED_SEARCHES_KEY)
