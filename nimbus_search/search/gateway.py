"""Backend search gateway: start/cancel requests and per-search event routing."""

from __future__ import annotations

import asyncio
import contextlib
import uuid
from abc import ABC, abstractmethod
from collections.abc import AsyncIterator, Callable
from dataclasses import dataclass
from typing import Any

import pydantic
import structlog

from nimbus_search.search.exceptions import BackendUnavailable, NotFound
from nimbus_search.search.models import SearchQuery, SearchResult

logger = structlog.get_logger(__name__)

ResultPayload = SearchResult | dict[str, Any]
Matcher = Callable[[SearchQuery], AsyncIterator[ResultPayload]]


@dataclass(frozen=True, slots=True)
class SearchEventHandlers:
    """Callbacks for the three event kinds of one search."""

    on_result: Callable[[SearchResult], None]
    on_complete: Callable[[], None]
    on_error: Callable[[str], None]


class Subscription:
    """Handle for one subscription; ``unsubscribe`` is safe to call repeatedly."""

    def __init__(self, search_id: str, release: Callable[[], None]):
        self.search_id = search_id
        self._release: Callable[[], None] | None = release

    @property
    def active(self) -> bool:
        return self._release is not None

    def unsubscribe(self) -> bool:
        """Release the subscription. Returns False if it was already released."""
        release, self._release = self._release, None
        if release is None:
            return False
        release()
        return True


class EventChannel:
    """Routes result/complete/error events to the handlers of a search ID.

    Handlers run synchronously in subscription order. Exceptions raised by a
    handler are logged and never reach the emitter. Events for a search with
    no subscribers are dropped.
    """

    def __init__(self) -> None:
        self._handlers: dict[str, list[SearchEventHandlers]] = {}

    def subscribe(self, search_id: str, handlers: SearchEventHandlers) -> Subscription:
        self._handlers.setdefault(search_id, []).append(handlers)

        def release() -> None:
            registered = self._handlers.get(search_id, [])
            with contextlib.suppress(ValueError):
                registered.remove(handlers)
            if not registered:
                self._handlers.pop(search_id, None)

        return Subscription(search_id, release)

    def subscriber_count(self, search_id: str | None = None) -> int:
        if search_id is not None:
            return len(self._handlers.get(search_id, []))
        return sum(len(h) for h in self._handlers.values())

    def emit_result(self, search_id: str, payload: ResultPayload) -> None:
        if isinstance(payload, SearchResult):
            result = payload
        else:
            try:
                result = SearchResult.model_validate(payload)
            except pydantic.ValidationError as e:
                logger.warning(
                    "Dropping malformed search result",
                    search_id=search_id,
                    error=str(e),
                )
                return
        self._dispatch(search_id, "result", lambda h: h.on_result(result))

    def emit_complete(self, search_id: str) -> None:
        self._dispatch(search_id, "complete", lambda h: h.on_complete())

    def emit_error(self, search_id: str, message: str) -> None:
        self._dispatch(search_id, "error", lambda h: h.on_error(message))

    def _dispatch(
        self,
        search_id: str,
        kind: str,
        call: Callable[[SearchEventHandlers], None],
    ) -> None:
        handlers = list(self._handlers.get(search_id, []))
        if not handlers:
            logger.debug("No subscriber for event", search_id=search_id, kind=kind)
            return
        for handler in handlers:
            try:
                call(handler)
            except Exception:
                logger.warning(
                    "Search event handler failed",
                    search_id=search_id,
                    kind=kind,
                    exc_info=True,
                )


class SearchGateway(ABC):
    """Contract of the external matching backend."""

    @abstractmethod
    async def start(self, query: SearchQuery) -> str:
        """Submit ``query`` and return the backend's search ID.

        Raises:
            BackendUnavailable: the backend could not accept the request.
        """

    @abstractmethod
    async def cancel(self, search_id: str) -> None:
        """Ask the backend to stop a search. Best effort."""

    @abstractmethod
    def subscribe(self, search_id: str, handlers: SearchEventHandlers) -> Subscription:
        """Receive the events of ``search_id`` until unsubscribed."""


class LocalSearchGateway(SearchGateway):
    """Runs an async matcher in-process, one task per search.

    The matcher yields results for a query; each yielded item becomes a
    result event, exhaustion becomes a completion event and an exception
    becomes an error event.
    """

    def __init__(
        self,
        matcher: Matcher,
        channel: EventChannel | None = None,
        id_factory: Callable[[], str] | None = None,
    ):
        self.matcher = matcher
        self.channel = channel or EventChannel()
        self._id_factory = id_factory or (lambda: str(uuid.uuid4()))
        self._tasks: dict[str, asyncio.Task[None]] = {}

    async def start(self, query: SearchQuery) -> str:
        search_id = self._id_factory()
        try:
            stream = self.matcher(query)
            task = asyncio.create_task(
                self._pump(search_id, stream), name=f"search-{search_id}"
            )
        except Exception as e:
            raise BackendUnavailable(f"Search failed: {e}") from e

        self._tasks[search_id] = task
        task.add_done_callback(lambda _: self._tasks.pop(search_id, None))
        logger.debug("Local search started", search_id=search_id)
        return search_id

    async def cancel(self, search_id: str) -> None:
        task = self._tasks.pop(search_id, None)
        if task is None:
            raise NotFound("search", search_id)
        task.cancel()
        with contextlib.suppress(asyncio.CancelledError):
            await task

    def subscribe(self, search_id: str, handlers: SearchEventHandlers) -> Subscription:
        return self.channel.subscribe(search_id, handlers)

    @property
    def running(self) -> list[str]:
        return list(self._tasks)

    async def join(self, search_id: str) -> None:
        """Wait for a search task to finish, if it is still running."""
        task = self._tasks.get(search_id)
        if task is not None:
            with contextlib.suppress(asyncio.CancelledError):
                await task

    async def aclose(self) -> None:
        """Cancel every running search task."""
        for search_id in list(self._tasks):
            await self.cancel(search_id)

    async def _pump(self, search_id: str, stream: AsyncIterator[ResultPayload]) -> None:
        try:
            async for item in stream:
                self.channel.emit_result(search_id, item)
        except asyncio.CancelledError:
            raise
        except Exception as e:
            logger.warning("Local search failed", search_id=search_id, error=str(e))
            self.channel.emit_error(search_id, f"Search failed: {e}")
            return
        self.channel.emit_complete(search_id)
