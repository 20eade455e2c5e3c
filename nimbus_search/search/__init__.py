"""Search orchestration: sessions, streaming, presentation, and recall."""

from nimbus_search.search.exceptions import (
    BackendUnavailable,
    NotFound,
    SearchError,
    ValidationError,
)
from nimbus_search.search.facade import ActiveResults, SearchFacade, create_search_facade
from nimbus_search.search.gateway import (
    EventChannel,
    LocalSearchGateway,
    SearchEventHandlers,
    SearchGateway,
    Subscription,
)
from nimbus_search.search.history import HistoryManager
from nimbus_search.search.models import (
    ContentMatch,
    DateFilter,
    DateType,
    FileCategory,
    FileTypeFilter,
    MatchType,
    SavedSearch,
    SearchHistoryEntry,
    SearchOptions,
    SearchQuery,
    SearchResult,
    SearchStatus,
    SizeFilter,
    SizeUnit,
    create_default_options,
    create_quick_search_options,
)
from nimbus_search.search.ordering import ResultFilter, SortKey, SortOrder, SortSpec
from nimbus_search.search.render_mode import RenderMode, select_mode
from nimbus_search.search.saved import SavedSearchRegistry
from nimbus_search.search.session_store import SearchState, SessionStore
from nimbus_search.search.stream import EventStreamAdapter

__all__ = [
    "ActiveResults",
    "BackendUnavailable",
    "ContentMatch",
    "DateFilter",
    "DateType",
    "EventChannel",
    "EventStreamAdapter",
    "FileCategory",
    "FileTypeFilter",
    "HistoryManager",
    "LocalSearchGateway",
    "MatchType",
    "NotFound",
    "RenderMode",
    "ResultFilter",
    "SavedSearch",
    "SavedSearchRegistry",
    "SearchError",
    "SearchEventHandlers",
    "SearchFacade",
    "SearchGateway",
    "SearchHistoryEntry",
    "SearchOptions",
    "SearchQuery",
    "SearchResult",
    "SearchState",
    "SearchStatus",
    "SessionStore",
    "SizeFilter",
    "SizeUnit",
    "SortKey",
    "SortOrder",
    "SortSpec",
    "Subscription",
    "ValidationError",
    "create_default_options",
    "create_quick_search_options",
    "create_search_facade",
    "select_mode",
]
