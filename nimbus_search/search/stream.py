"""Binds backend search events to session store mutations."""

from functools import partial

from nimbus_search.search.gateway import SearchEventHandlers, SearchGateway, Subscription
from nimbus_search.search.models import SearchResult, SearchStatus
from nimbus_search.search.session_store import SessionStore
from nimbus_search.utils.mixins import LoggerMixin


class EventStreamAdapter(LoggerMixin):
    """Keeps exactly one gateway subscription per running search.

    Results are applied in the order the gateway delivers them. A completion
    or error event finalizes the session and releases the subscription, and
    so does an explicit ``detach`` (used on cancel), whichever comes first.
    """

    def __init__(self, gateway: SearchGateway, store: SessionStore):
        self.gateway = gateway
        self.store = store
        self._subscriptions: dict[str, Subscription] = {}

    @property
    def attached(self) -> list[str]:
        return list(self._subscriptions)

    def is_attached(self, search_id: str) -> bool:
        return search_id in self._subscriptions

    def attach(self, search_id: str) -> Subscription:
        if search_id in self._subscriptions:
            raise ValueError(f"search {search_id!r} is already attached")

        handlers = SearchEventHandlers(
            on_result=partial(self._on_result, search_id),
            on_complete=partial(self._on_complete, search_id),
            on_error=partial(self._on_error, search_id),
        )
        subscription = self.gateway.subscribe(search_id, handlers)
        self._subscriptions[search_id] = subscription
        return subscription

    def detach(self, search_id: str) -> bool:
        """Release the subscription of ``search_id``; False if there was none."""
        subscription = self._subscriptions.pop(search_id, None)
        if subscription is None:
            return False
        subscription.unsubscribe()
        self.logger.debug("Search stream detached", search_id=search_id)
        return True

    def detach_all(self) -> None:
        for search_id in list(self._subscriptions):
            self.detach(search_id)

    def _on_result(self, search_id: str, result: SearchResult) -> None:
        self.store.add_results(search_id, [result])

    def _on_complete(self, search_id: str) -> None:
        self.store.finalize(search_id, SearchStatus.COMPLETED)
        self.detach(search_id)

    def _on_error(self, search_id: str, message: str) -> None:
        self.store.finalize(search_id, SearchStatus.ERROR, error=message)
        self.detach(search_id)
