"""Sorting and filtering derivations over a result buffer."""

from collections.abc import Callable, Iterable
from dataclasses import dataclass
from datetime import UTC, datetime
from enum import Enum
from typing import Any

from pydantic import BaseModel, ConfigDict, Field, field_validator

from nimbus_search.search.models import MatchType, SearchResult

_EARLIEST = datetime.min.replace(tzinfo=UTC)


class SortKey(str, Enum):
    """Result attribute used for ordering."""

    RELEVANCE = "relevance"
    NAME = "name"
    PATH = "path"
    SIZE = "size"
    MODIFIED = "modified"
    MATCH_TYPE = "match_type"


class SortOrder(str, Enum):
    ASC = "asc"
    DESC = "desc"


@dataclass(frozen=True, slots=True)
class SortSpec:
    """A requested ordering."""

    key: SortKey = SortKey.RELEVANCE
    order: SortOrder = SortOrder.DESC


def _as_comparable(value: datetime | None) -> datetime:
    # Naive timestamps are treated as UTC so mixed sources still compare
    if value is None:
        return _EARLIEST
    if value.tzinfo is None:
        return value.replace(tzinfo=UTC)
    return value


_SORT_KEYS: dict[SortKey, Callable[[SearchResult], Any]] = {
    SortKey.RELEVANCE: lambda r: r.relevance_score,
    SortKey.NAME: lambda r: r.name.casefold(),
    SortKey.PATH: lambda r: r.path.casefold(),
    SortKey.SIZE: lambda r: r.size,
    SortKey.MODIFIED: lambda r: _as_comparable(r.modified),
    SortKey.MATCH_TYPE: lambda r: r.match_type.value,
}


def sort_results(
    results: Iterable[SearchResult], spec: SortSpec | None = None
) -> list[SearchResult]:
    """Order results, falling back to relevance descending.

    Relevance descending is both the default presentation and the tie-break
    for every other key. Both sorts are stable, so equal results keep their
    arrival order.
    """
    ordered = sorted(results, key=_SORT_KEYS[SortKey.RELEVANCE], reverse=True)
    if spec is None or spec == SortSpec():
        return ordered
    return sorted(
        ordered, key=_SORT_KEYS[spec.key], reverse=spec.order is SortOrder.DESC
    )


class DateRange(BaseModel):
    """Inclusive modification-time window."""

    model_config = ConfigDict(frozen=True)

    start: datetime
    end: datetime


class ResultFilter(BaseModel):
    """Client-side predicate applied to the buffered results.

    An empty filter accepts everything.
    """

    model_config = ConfigDict(frozen=True)

    match_types: tuple[MatchType, ...] = ()
    min_relevance: float | None = Field(None, ge=0, le=100)
    extensions: tuple[str, ...] = ()
    date_range: DateRange | None = None

    @field_validator("extensions")
    @classmethod
    def normalize_extensions(cls, v: tuple[str, ...]) -> tuple[str, ...]:
        return tuple(ext.lower().lstrip(".") for ext in v if ext)

    def matches(self, result: SearchResult) -> bool:
        if self.match_types and result.match_type not in self.match_types:
            return False

        if (
            self.min_relevance is not None
            and result.relevance_score < self.min_relevance
        ):
            return False

        if self.extensions and result.extension not in self.extensions:
            return False

        if self.date_range is not None:
            if result.modified is None:
                return False
            modified = _as_comparable(result.modified)
            start = _as_comparable(self.date_range.start)
            end = _as_comparable(self.date_range.end)
            if not start <= modified <= end:
                return False

        return True


def filter_results(
    results: Iterable[SearchResult], result_filter: ResultFilter | None = None
) -> list[SearchResult]:
    """Keep the results accepted by ``result_filter``."""
    if result_filter is None:
        return list(results)
    return [r for r in results if result_filter.matches(r)]
