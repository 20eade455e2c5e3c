"""Persistence backends for nimbus-search"""

from nimbus_search.storage.persistence import (
    HISTORY_KEY,
    SAVED_SEARCHES_KEY,
    JsonFileStore,
    KeyValueStore,
    MemoryStore,
    decode_collection,
    encode_collection,
)

__all__ = [
    "HISTORY_KEY",
    "SAVED_SEARCHES_KEY",
    "JsonFileStore",
    "KeyValueStore",
    "MemoryStore",
    "decode_collection",
    "encode_collection",
]
