"""In-memory table of search sessions and their state machines."""

from collections.abc import Iterable
from dataclasses import dataclass, field
from datetime import datetime

from nimbus_search.search.exceptions import NotFound, ValidationError
from nimbus_search.search.models import SearchQuery, SearchResult, SearchStatus
from nimbus_search.search.ordering import (
    ResultFilter,
    SortSpec,
    filter_results,
    sort_results,
)
from nimbus_search.search.pagination import (
    DEFAULT_PAGE_SIZE,
    PaginationState,
    paginate,
)
from nimbus_search.utils.mixins import LoggerMixin


@dataclass
class SearchState:
    """State of one search session.

    ``results`` is the append-only buffer in arrival order. ``sort`` and
    ``filter`` only describe how the buffer is presented.
    """

    id: str
    query: SearchQuery
    status: SearchStatus = SearchStatus.RUNNING
    results: list[SearchResult] = field(default_factory=list)
    total_results: int = 0
    start_time: datetime = field(default_factory=datetime.now)
    end_time: datetime | None = None
    error: str | None = None
    pagination: PaginationState = field(default_factory=PaginationState)
    sort: SortSpec | None = None
    filter: ResultFilter | None = None
    visible_count: int = 0  # results accepted by ``filter``

    @property
    def is_running(self) -> bool:
        return self.status is SearchStatus.RUNNING

    @property
    def duration(self) -> float | None:
        """Elapsed seconds, once the session has finished."""
        if self.end_time is None:
            return None
        return (self.end_time - self.start_time).total_seconds()

    def view(self) -> list[SearchResult]:
        """Filtered and sorted presentation of the buffer."""
        return sort_results(filter_results(self.results, self.filter), self.sort)

    def page_slice(self) -> list[SearchResult]:
        return paginate(self.view(), self.pagination.page, self.pagination.page_size)


class SessionStore(LoggerMixin):
    """Owns every known search session, keyed by search ID.

    Sessions move ``running -> completed | error | cancelled`` and never leave
    a terminal state. Results arriving for a session that is no longer
    running are dropped.
    """

    def __init__(self) -> None:
        self._sessions: dict[str, SearchState] = {}

    def __contains__(self, search_id: object) -> bool:
        return search_id in self._sessions

    def __len__(self) -> int:
        return len(self._sessions)

    def create(
        self,
        search_id: str,
        query: SearchQuery,
        page_size: int = DEFAULT_PAGE_SIZE,
    ) -> SearchState:
        if search_id in self._sessions:
            raise ValidationError(f"search {search_id!r} already exists")
        if page_size <= 0:
            raise ValidationError("page_size must be positive")

        state = SearchState(
            id=search_id,
            query=query,
            pagination=PaginationState(page_size=page_size),
        )
        self._sessions[search_id] = state
        self.logger.info("Search session created", search_id=search_id)
        return state

    def get(self, search_id: str) -> SearchState | None:
        return self._sessions.get(search_id)

    def require(self, search_id: str) -> SearchState:
        state = self._sessions.get(search_id)
        if state is None:
            raise NotFound("search", search_id)
        return state

    def sessions(self) -> list[SearchState]:
        return list(self._sessions.values())

    def running_ids(self) -> list[str]:
        return [s.id for s in self._sessions.values() if s.is_running]

    def add_results(self, search_id: str, results: Iterable[SearchResult]) -> int:
        """Append results in the given order. Returns how many were appended."""
        state = self._sessions.get(search_id)
        if state is None or not state.is_running:
            self.logger.debug(
                "Dropping late results",
                search_id=search_id,
                status=state.status.value if state else None,
            )
            return 0

        batch = list(results)
        state.results.extend(batch)
        state.total_results = len(state.results)
        if state.filter is None:
            state.visible_count = state.total_results
        else:
            state.visible_count += sum(1 for r in batch if state.filter.matches(r))
        state.pagination.recompute(state.visible_count)
        return len(batch)

    def finalize(
        self,
        search_id: str,
        status: SearchStatus = SearchStatus.COMPLETED,
        error: str | None = None,
    ) -> bool:
        """Move a running session into a terminal state.

        An ``error`` message always produces ``SearchStatus.ERROR``. Returns
        False when the session is unknown or already finished.
        """
        if error is not None:
            status = SearchStatus.ERROR
        if not status.is_terminal:
            raise ValueError("finalize requires a terminal status")

        state = self._sessions.get(search_id)
        if state is None or not state.is_running:
            self.logger.debug("Ignoring repeated finalize", search_id=search_id)
            return False

        state.status = status
        state.end_time = datetime.now()
        if status is SearchStatus.ERROR:
            state.error = error or "Search failed"

        self.logger.info(
            "Search finalized",
            search_id=search_id,
            status=status.value,
            total_results=state.total_results,
            error=state.error,
        )
        return True

    def cancel(self, search_id: str) -> bool:
        """Mark a running session cancelled, keeping its partial results."""
        return self.finalize(search_id, SearchStatus.CANCELLED)

    def remove(self, search_id: str) -> SearchState:
        state = self._sessions.pop(search_id, None)
        if state is None:
            raise NotFound("search", search_id)
        return state

    def clear(self) -> None:
        self._sessions.clear()

    def sort(self, search_id: str, spec: SortSpec) -> None:
        self.require(search_id).sort = spec

    def apply_filter(self, search_id: str, result_filter: ResultFilter) -> int:
        """Install a filter and return the number of visible results."""
        state = self.require(search_id)
        state.filter = result_filter
        state.visible_count = len(filter_results(state.results, result_filter))
        state.pagination.resize(state.pagination.page_size, state.visible_count)
        return state.visible_count

    def clear_filter(self, search_id: str) -> None:
        state = self.require(search_id)
        state.filter = None
        state.visible_count = state.total_results
        state.pagination.resize(state.pagination.page_size, state.visible_count)

    def set_page(self, search_id: str, page: int) -> int:
        return self.require(search_id).pagination.go_to(page)

    def set_page_size(self, search_id: str, page_size: int) -> None:
        if page_size <= 0:
            raise ValidationError("page_size must be positive")
        state = self.require(search_id)
        state.pagination.resize(page_size, state.visible_count)

    def view(self, search_id: str) -> list[SearchResult]:
        return self.require(search_id).view()

    def page(self, search_id: str) -> list[SearchResult]:
        return self.require(search_id).page_slice()
