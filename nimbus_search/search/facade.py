"""Single entry point for starting, shaping, and recalling searches."""

from dataclasses import dataclass, field, replace
from typing import Any

from nimbus_search.config import Settings, get_settings
from nimbus_search.search.exceptions import BackendUnavailable, ValidationError
from nimbus_search.search.gateway import SearchGateway
from nimbus_search.search.history import HistoryManager
from nimbus_search.search.models import (
    SearchOptions,
    SearchQuery,
    SearchResult,
    create_default_options,
    create_quick_search_options,
)
from nimbus_search.search.ordering import ResultFilter, SortKey, SortOrder, SortSpec
from nimbus_search.search.pagination import PaginationState, paginate
from nimbus_search.search.render_mode import RenderMode, select_mode
from nimbus_search.search.saved import SavedSearchRegistry
from nimbus_search.search.session_store import SearchState, SessionStore
from nimbus_search.search.stream import EventStreamAdapter
from nimbus_search.storage.persistence import JsonFileStore, KeyValueStore
from nimbus_search.utils.mixins import LoggerMixin


@dataclass
class ActiveResults:
    """Display-ready snapshot of the active search."""

    search_id: str | None = None
    query: SearchQuery | None = None
    results: list[SearchResult] = field(default_factory=list)
    page_results: list[SearchResult] = field(default_factory=list)
    is_searching: bool = False
    total_results: int = 0
    error: str | None = None
    pagination: PaginationState | None = None


class SearchFacade(LoggerMixin):
    """Composes the gateway, session store, stream adapter, and persistence.

    ``active_search_id`` points at the foreground search. It is a lookup
    into the session store, not ownership; several searches may run at once.
    """

    def __init__(
        self,
        gateway: SearchGateway,
        history: HistoryManager,
        saved_searches: SavedSearchRegistry,
        store: SessionStore | None = None,
        settings: Settings | None = None,
    ):
        self.gateway = gateway
        self.history = history
        self.saved_searches = saved_searches
        self.store = store or SessionStore()
        self.settings = settings or get_settings()
        self.adapter = EventStreamAdapter(gateway, self.store)
        self.active_search_id: str | None = None

    # Lifecycle

    async def start(self, query: SearchQuery) -> str:
        """Start a search and make it the active one.

        Raises:
            ValidationError: the query has no root path.
            BackendUnavailable: the backend did not accept the query.
        """
        if not query.root_path or not query.root_path.strip():
            raise ValidationError("search query requires a root path")

        try:
            search_id = await self.gateway.start(query)
        except BackendUnavailable:
            self.logger.error("Backend rejected search", **query.summary())
            raise
        except Exception as e:
            self.logger.error("Failed to start search", error=str(e), **query.summary())
            raise BackendUnavailable(f"Search failed: {e}") from e

        try:
            self.store.create(
                search_id, query, page_size=self.settings.default_page_size
            )
        except ValidationError:
            self.logger.error("Backend returned a known search ID", search_id=search_id)
            try:
                await self.gateway.cancel(search_id)
            except Exception as e:
                self.logger.warning(
                    "Backend cancel failed", search_id=search_id, error=str(e)
                )
            raise

        self.adapter.attach(search_id)
        self.active_search_id = search_id

        self.logger.info("Search started", search_id=search_id, **query.summary())

        await self.history.record(query, result_count=0, entry_id=search_id)
        return search_id

    async def cancel(self, search_id: str) -> None:
        """Stop a running search; unknown or finished searches are ignored.

        Results received so far stay available.
        """
        state = self.store.get(search_id)
        if state is None or not state.is_running:
            return

        try:
            await self.gateway.cancel(search_id)
        except Exception as e:
            self.logger.warning(
                "Backend cancel failed", search_id=search_id, error=str(e)
            )

        self.adapter.detach(search_id)
        self.store.cancel(search_id)
        self.logger.info("Search cancelled", search_id=search_id)

    async def clear(self, search_id: str) -> None:
        """Forget a search, cancelling it first if it is still running."""
        self.store.require(search_id)
        await self.cancel(search_id)
        self.adapter.detach(search_id)
        self.store.remove(search_id)
        if self.active_search_id == search_id:
            self.active_search_id = None

    async def clear_all(self) -> None:
        for search_id in self.store.running_ids():
            await self.cancel(search_id)
        self.adapter.detach_all()
        self.store.clear()
        self.active_search_id = None

    async def dispose(self) -> None:
        """Cancel every running search and release all subscriptions."""
        running = self.store.running_ids()
        for search_id in running:
            await self.cancel(search_id)
        self.adapter.detach_all()
        self.logger.info("Search facade disposed", cancelled=len(running))

    # Lookup

    def get_search(self, search_id: str) -> SearchState:
        return self.store.require(search_id)

    def set_active_search(self, search_id: str | None) -> None:
        if search_id is not None:
            self.store.require(search_id)
        self.active_search_id = search_id

    @property
    def active_search(self) -> SearchState | None:
        if self.active_search_id is None:
            return None
        return self.store.get(self.active_search_id)

    @property
    def is_searching(self) -> bool:
        """True while any search is running."""
        return bool(self.store.running_ids())

    # Presentation

    def sort(
        self,
        search_id: str,
        key: SortKey | str = SortKey.RELEVANCE,
        order: SortOrder | str = SortOrder.DESC,
    ) -> None:
        self.store.sort(search_id, SortSpec(SortKey(key), SortOrder(order)))

    def filter(self, search_id: str, result_filter: ResultFilter) -> int:
        """Show only matching results; returns how many remain visible."""
        return self.store.apply_filter(search_id, result_filter)

    def clear_filter(self, search_id: str) -> None:
        self.store.clear_filter(search_id)

    def set_page(self, search_id: str, page: int) -> int:
        """Go to ``page``, clamped into the valid range."""
        return self.store.set_page(search_id, page)

    def set_page_size(self, search_id: str, page_size: int) -> None:
        self.store.set_page_size(search_id, page_size)

    def get_page(self, search_id: str) -> list[SearchResult]:
        return self.store.page(search_id)

    def get_active_results(self) -> ActiveResults:
        state = self.active_search
        if state is None:
            return ActiveResults()

        results = state.view()
        pagination = state.pagination
        return ActiveResults(
            search_id=state.id,
            query=state.query,
            results=results,
            page_results=paginate(results, pagination.page, pagination.page_size),
            is_searching=state.is_running,
            total_results=state.total_results,
            error=state.error,
            pagination=replace(pagination),
        )

    def render_mode(
        self,
        search_id: str | None = None,
        override: RenderMode = RenderMode.AUTO,
    ) -> RenderMode:
        """Presentation mode for a search (the active one by default)."""
        if search_id is not None:
            state: SearchState | None = self.store.require(search_id)
        else:
            state = self.active_search
        count = state.visible_count if state else 0
        return select_mode(count, self.settings.virtualization_threshold, override)

    # Convenience

    async def quick_file_search(
        self, path: str, pattern: str, **overrides: Any
    ) -> str:
        query = SearchQuery(
            root_path=path,
            name_pattern=pattern,
            options=create_quick_search_options(**overrides),
        )
        return await self.start(query)

    async def quick_content_search(
        self, path: str, content: str, **overrides: Any
    ) -> str:
        query = SearchQuery(
            root_path=path,
            content_pattern=content,
            options=create_quick_search_options(**overrides),
        )
        return await self.start(query)

    async def rerun_from_history(self, entry_id: str) -> str:
        return await self.history.rerun(entry_id, self.start)

    async def use_saved_search(self, saved_id: str) -> str:
        return await self.saved_searches.use(saved_id, self.start)

    @staticmethod
    def create_default_options() -> SearchOptions:
        return create_default_options()

    @staticmethod
    def create_quick_search_options(**overrides: Any) -> SearchOptions:
        return create_quick_search_options(**overrides)


def create_search_facade(
    gateway: SearchGateway,
    settings: Settings | None = None,
    kv_store: KeyValueStore | None = None,
) -> SearchFacade:
    """Wire a facade with file-backed history and saved searches."""
    settings = settings or get_settings()
    kv_store = kv_store or JsonFileStore(settings.storage_dir)
    return SearchFacade(
        gateway,
        history=HistoryManager(kv_store, limit=settings.history_limit),
        saved_searches=SavedSearchRegistry(kv_store),
        settings=settings,
    )
