"""Error taxonomy for the search engine."""


class SearchError(Exception):
    """Base class for search engine errors."""


class BackendUnavailable(SearchError):
    """The matching backend rejected or failed a start/cancel request."""


class ValidationError(SearchError):
    """Input was rejected before any backend call was made."""


class NotFound(SearchError):
    """An unknown search, history entry, or saved search was referenced."""

    def __init__(self, kind: str, identifier: str):
        self.kind = kind
        self.identifier = identifier
        super().__init__(f"{kind} {identifier!r} not found")
