"""
Shared test fixtures.

- Test environment variables are set for every test (autouse)
- The project root is added to `sys.path` so `import nimbus_search` resolves
"""

from __future__ import annotations

import sys
from collections.abc import Callable, Iterator
from pathlib import Path
from typing import Any

import pytest

_PROJECT_ROOT = Path(__file__).resolve().parents[1]
if str(_PROJECT_ROOT) not in sys.path:
    sys.path.insert(0, str(_PROJECT_ROOT))

from nimbus_search.config import Settings, clear_settings_cache  # noqa: E402
from nimbus_search.search import (  # noqa: E402
    BackendUnavailable,
    EventChannel,
    HistoryManager,
    MatchType,
    SavedSearchRegistry,
    SearchFacade,
    SearchGateway,
    SearchQuery,
    SearchResult,
)
from nimbus_search.search.gateway import SearchEventHandlers, Subscription  # noqa: E402
from nimbus_search.storage import MemoryStore  # noqa: E402


@pytest.fixture(autouse=True)
def _test_env(monkeypatch: pytest.MonkeyPatch, tmp_path: Path) -> Iterator[None]:
    """Set the test environment and drop any cached settings.

    `monkeypatch` restores the variables when each test ends.
    """

    env: dict[str, str] = {
        "NIMBUS_SEARCH_ENVIRONMENT": "testing",
        "NIMBUS_SEARCH_STORAGE_DIR": str(tmp_path / "storage"),
        "NIMBUS_SEARCH_LOG_LEVEL": "DEBUG",
    }
    for k, v in env.items():
        monkeypatch.setenv(k, v)

    clear_settings_cache()
    yield
    clear_settings_cache()


class FakeGateway(SearchGateway):
    """Scriptable backend: tests push events through ``channel``."""

    def __init__(self) -> None:
        self.channel = EventChannel()
        self.started: list[SearchQuery] = []
        self.cancelled: list[str] = []
        self.fail_start = False
        self.fail_cancel = False
        self._counter = 0

    async def start(self, query: SearchQuery) -> str:
        if self.fail_start:
            raise BackendUnavailable("backend offline")
        self._counter += 1
        self.started.append(query)
        return f"search-{self._counter}"

    async def cancel(self, search_id: str) -> None:
        self.cancelled.append(search_id)
        if self.fail_cancel:
            raise BackendUnavailable("cancel failed")

    def subscribe(self, search_id: str, handlers: SearchEventHandlers) -> Subscription:
        return self.channel.subscribe(search_id, handlers)


@pytest.fixture
def make_result() -> Callable[..., SearchResult]:
    """Factory for search results with sensible defaults."""

    counter = iter(range(1_000_000))

    def _make(name: str | None = None, score: float = 50, **overrides: Any) -> SearchResult:
        name = name or f"file_{next(counter)}.txt"
        fields: dict[str, Any] = {
            "path": f"/a/{name}",
            "name": name,
            "size": 100,
            "match_type": MatchType.FUZZY_NAME,
            "relevance_score": score,
        }
        fields.update(overrides)
        return SearchResult(**fields)

    return _make


@pytest.fixture
def query() -> SearchQuery:
    return SearchQuery(root_path="/a", name_pattern="*.ts")


@pytest.fixture
def gateway() -> FakeGateway:
    return FakeGateway()


@pytest.fixture
def kv_store() -> MemoryStore:
    return MemoryStore()


@pytest.fixture
def settings(tmp_path: Path) -> Settings:
    return Settings(storage_dir=tmp_path / "storage")


@pytest.fixture
def history(kv_store: MemoryStore) -> HistoryManager:
    return HistoryManager(kv_store)


@pytest.fixture
def saved_registry(kv_store: MemoryStore) -> SavedSearchRegistry:
    return SavedSearchRegistry(kv_store)


@pytest.fixture
def facade(
    gateway: FakeGateway,
    history: HistoryManager,
    saved_registry: SavedSearchRegistry,
    settings: Settings,
) -> SearchFacade:
    return SearchFacade(gateway, history, saved_registry, settings=settings)
