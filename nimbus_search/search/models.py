"""Search data models."""

import re
import uuid
from collections.abc import Awaitable, Callable
from datetime import UTC, datetime
from enum import Enum
from typing import Any

from pydantic import BaseModel, ConfigDict, Field, field_validator

_EPOCH_MILLIS = re.compile(r"^(\d+)ms$")


class SizeUnit(str, Enum):
    """Unit for size filter bounds."""

    BYTES = "bytes"
    KB = "kb"
    MB = "mb"
    GB = "gb"


class DateType(str, Enum):
    """Which file timestamp a date filter applies to."""

    MODIFIED = "modified"
    CREATED = "created"
    ACCESSED = "accessed"


class FileCategory(str, Enum):
    """Broad file categories understood by the backend."""

    DOCUMENTS = "documents"
    IMAGES = "images"
    AUDIO = "audio"
    VIDEO = "video"
    ARCHIVES = "archives"
    CODE = "code"


class MatchType(str, Enum):
    """How a result matched the query."""

    EXACT_NAME = "exact_name"
    FUZZY_NAME = "fuzzy_name"
    CONTENT = "content"
    EXTENSION = "extension"
    DIRECTORY = "directory"


class SearchStatus(str, Enum):
    """Lifecycle status of a search session."""

    RUNNING = "running"
    COMPLETED = "completed"
    ERROR = "error"
    CANCELLED = "cancelled"

    @property
    def is_terminal(self) -> bool:
        return self is not SearchStatus.RUNNING


class SizeFilter(BaseModel):
    """Size bounds, expressed in ``unit``."""

    model_config = ConfigDict(frozen=True)

    min_size: int | None = Field(None, ge=0)
    max_size: int | None = Field(None, ge=0)
    unit: SizeUnit = SizeUnit.BYTES


class DateFilter(BaseModel):
    """Date window on one of the file timestamps."""

    model_config = ConfigDict(frozen=True)

    date_type: DateType = DateType.MODIFIED
    start_date: datetime | None = None
    end_date: datetime | None = None


class FileTypeFilter(BaseModel):
    """Restrict results to extensions and/or categories."""

    model_config = ConfigDict(frozen=True)

    extensions: tuple[str, ...] = ()
    categories: tuple[FileCategory, ...] = ()


class SearchOptions(BaseModel):
    """Matcher options.

    The field defaults are the documented default: fuzzy matching on with a
    threshold of 60, relevance sorting on, hidden files skipped and symlinks
    not followed.
    """

    model_config = ConfigDict(frozen=True)

    case_sensitive: bool = False
    use_regex: bool = False
    use_fuzzy: bool = True
    fuzzy_threshold: int = Field(default=60, ge=0, le=100)
    include_hidden: bool = False
    follow_symlinks: bool = False
    max_results: int | None = Field(None, ge=1)
    max_depth: int | None = Field(None, ge=0)
    sort_by_relevance: bool = True


def create_default_options() -> SearchOptions:
    """Documented default search options."""
    return SearchOptions()


def create_quick_search_options(**overrides: Any) -> SearchOptions:
    """Conservative options used by the quick search helpers."""
    options = SearchOptions(use_fuzzy=False, fuzzy_threshold=80, max_results=1000)
    if overrides:
        options = SearchOptions.model_validate(options.model_dump() | overrides)
    return options


class SearchQuery(BaseModel):
    """A complete search request. Immutable once a search is started."""

    model_config = ConfigDict(frozen=True)

    root_path: str
    name_pattern: str | None = None
    content_pattern: str | None = None
    size_filter: SizeFilter | None = None
    date_filter: DateFilter | None = None
    file_type_filter: FileTypeFilter | None = None
    options: SearchOptions = Field(default_factory=SearchOptions)

    def to_backend(self) -> dict[str, Any]:
        """Request payload in the backend's wire format."""
        options = self.options
        return {
            "root_path": self.root_path,
            "name_pattern": self.name_pattern or None,
            "content_pattern": self.content_pattern or None,
            "size_filter": (
                {
                    "min_size": self.size_filter.min_size or None,
                    "max_size": self.size_filter.max_size or None,
                    "unit": self.size_filter.unit.value,
                }
                if self.size_filter
                else None
            ),
            "date_filter": (
                {
                    "date_type": self.date_filter.date_type.value,
                    "start_date": _isoformat(self.date_filter.start_date),
                    "end_date": _isoformat(self.date_filter.end_date),
                }
                if self.date_filter
                else None
            ),
            "file_type_filter": (
                {
                    "extensions": list(self.file_type_filter.extensions),
                    "categories": [c.value for c in self.file_type_filter.categories],
                }
                if self.file_type_filter
                else None
            ),
            "options": {
                "case_sensitive": options.case_sensitive,
                "use_regex": options.use_regex,
                "use_fuzzy": options.use_fuzzy,
                "fuzzy_threshold": options.fuzzy_threshold,
                "include_hidden": options.include_hidden,
                "follow_symlinks": options.follow_symlinks,
                "max_results": options.max_results or None,
                "max_depth": options.max_depth or None,
                "sort_by_relevance": options.sort_by_relevance,
            },
        }

    def summary(self) -> dict[str, Any]:
        """Short description used in log entries."""
        return {
            "root_path": self.root_path,
            "name_pattern": self.name_pattern,
            "has_content_pattern": bool(self.content_pattern),
        }


class ContentMatch(BaseModel):
    """One matching line inside a file."""

    model_config = ConfigDict(frozen=True)

    line_number: int = Field(..., ge=0)
    line_content: str
    match_start: int = Field(..., ge=0)
    match_end: int = Field(..., ge=0)


class SearchResult(BaseModel):
    """A single match emitted by the backend."""

    model_config = ConfigDict(frozen=True, extra="ignore")

    path: str
    name: str
    size: int = Field(default=0, ge=0, description="Size in bytes")
    modified: datetime | None = None
    created: datetime | None = None
    is_directory: bool = False
    match_type: MatchType
    relevance_score: float = Field(default=0.0, description="0-100")
    snippet: str | None = None
    matches: tuple[ContentMatch, ...] = ()

    @field_validator("relevance_score", mode="before")
    @classmethod
    def clamp_relevance(cls, v: Any) -> float:
        """Keep scores inside 0-100."""
        try:
            score = float(v)
        except (TypeError, ValueError) as e:
            raise ValueError(f"relevance_score must be a number, got {v!r}") from e
        return max(0.0, min(100.0, score))

    @field_validator("modified", "created", mode="before")
    @classmethod
    def parse_epoch_millis(cls, v: Any) -> Any:
        """Accept the backend's ``"<millis>ms"`` timestamps as well as ISO-8601."""
        if isinstance(v, str):
            match = _EPOCH_MILLIS.match(v.strip())
            if match:
                return datetime.fromtimestamp(int(match.group(1)) / 1000, tz=UTC)
        return v

    @property
    def extension(self) -> str | None:
        """Lower-cased extension without the dot, if any."""
        if "." not in self.name.lstrip("."):
            return None
        return self.name.rsplit(".", 1)[-1].lower()


class SearchHistoryEntry(BaseModel):
    """A query that was executed, most recent first in the history."""

    id: str
    query: SearchQuery
    timestamp: datetime = Field(default_factory=datetime.now)
    result_count: int = Field(default=0, ge=0)


class SavedSearch(BaseModel):
    """A user-named, reusable query."""

    id: str = Field(..., description="Unique saved search ID")
    name: str = Field(..., description="Display name")
    description: str | None = None
    query: SearchQuery
    tags: list[str] = Field(default_factory=list)
    created_at: datetime = Field(default_factory=datetime.now)
    use_count: int = Field(default=0, ge=0)
    last_used: datetime | None = None

    @field_validator("tags")
    @classmethod
    def normalize_tags(cls, v: list[str]) -> list[str]:
        """Strip whitespace and drop empty tags."""
        return [tag.strip() for tag in v if tag and tag.strip()]

    @classmethod
    def create(
        cls,
        name: str,
        query: SearchQuery,
        description: str | None = None,
        tags: list[str] | None = None,
    ) -> "SavedSearch":
        """Build a new, never-used saved search with a fresh ID."""
        return cls(
            id=f"saved_{uuid.uuid4().hex[:12]}",
            name=name,
            description=description,
            query=query,
            tags=tags or [],
            created_at=datetime.now(),
        )


# Starts a search for a query and returns its search ID
SearchLauncher = Callable[[SearchQuery], Awaitable[str]]


def _isoformat(value: datetime | None) -> str | None:
    return value.isoformat() if value else None
