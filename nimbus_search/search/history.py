"""Bounded, most-recent-first log of executed search queries."""

import asyncio
import uuid
from collections.abc import Callable
from datetime import datetime

from nimbus_search.search.exceptions import NotFound
from nimbus_search.search.models import SearchHistoryEntry, SearchLauncher, SearchQuery
from nimbus_search.storage.persistence import (
    HISTORY_KEY,
    JSON,
    KeyValueStore,
    decode_collection,
    encode_collection,
)
from nimbus_search.utils.error_handler import safe_operation, safe_with_default
from nimbus_search.utils.mixins import LoggerMixin

HISTORY_LIMIT = 50


class HistoryManager(LoggerMixin):
    """Search history backed by a key-value store.

    The history records intent: an entry is written as soon as a search
    starts, not when it finishes. Every mutation rewrites the whole document.
    """

    log_context = {"store_key": HISTORY_KEY}

    def __init__(
        self,
        store: KeyValueStore,
        limit: int = HISTORY_LIMIT,
        clock: Callable[[], datetime] = datetime.now,
    ):
        if limit <= 0:
            raise ValueError("limit must be positive")
        self.store = store
        self.limit = limit
        self._clock = clock
        self._lock = asyncio.Lock()

    async def list_entries(self) -> list[SearchHistoryEntry]:
        """All entries, most recent first."""
        return await self._load()

    async def get(self, entry_id: str) -> SearchHistoryEntry:
        for entry in await self._load():
            if entry.id == entry_id:
                return entry
        raise NotFound("history entry", entry_id)

    async def record(
        self,
        query: SearchQuery,
        result_count: int = 0,
        entry_id: str | None = None,
    ) -> SearchHistoryEntry:
        """Prepend an entry, evicting the oldest ones beyond the limit."""
        entry = SearchHistoryEntry(
            id=entry_id or f"history_{uuid.uuid4().hex[:12]}",
            query=query,
            timestamp=self._clock(),
            result_count=result_count,
        )

        async with self._lock:
            entries = await self._load()
            entries.insert(0, entry)
            evicted = len(entries) - self.limit
            del entries[self.limit :]
            await self._save(entries)

        self.logger.info(
            "Search recorded in history",
            entry_id=entry.id,
            evicted=max(0, evicted),
        )
        return entry

    async def remove(self, entry_id: str) -> None:
        async with self._lock:
            entries = await self._load()
            remaining = [e for e in entries if e.id != entry_id]
            if len(remaining) == len(entries):
                raise NotFound("history entry", entry_id)
            await self._save(remaining)

        self.logger.info("History entry removed", entry_id=entry_id)

    async def clear(self) -> None:
        async with self._lock:
            await self._remove_document()
        self.logger.info("Search history cleared")

    async def rerun(self, entry_id: str, launch: SearchLauncher) -> str:
        """Start a new search with the stored query.

        The stored entry is left untouched; the launcher normally records a
        fresh entry of its own.
        """
        entry = await self.get(entry_id)
        self.logger.info("Rerunning search from history", entry_id=entry_id)
        return await launch(entry.query)

    async def _load(self) -> list[SearchHistoryEntry]:
        raw = await self._read_document()
        entries = decode_collection(SearchHistoryEntry, raw)
        return entries[: self.limit]

    async def _save(self, entries: list[SearchHistoryEntry]) -> None:
        await self._write_document(encode_collection(entries[: self.limit]))

    @safe_with_default("load search history", default_value=None)
    async def _read_document(self) -> JSON | None:
        return await self.store.load(HISTORY_KEY)

    @safe_operation("save search history")
    async def _write_document(self, document: JSON) -> None:
        await self.store.save(HISTORY_KEY, document)

    @safe_operation("clear search history")
    async def _remove_document(self) -> None:
        await self.store.remove(HISTORY_KEY)
