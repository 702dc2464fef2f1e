"""Durable storage for the conversation history.

Responsibilities:
    - Whole-value key-value store with a byte quota
    - JSON serialization of the conversation collection
    - Size-reduction policy when the quota is exceeded
"""

from sanctuary.storage.gateway import STORAGE_KEY, PersistenceGateway, SaveReport
from sanctuary.storage.kv_store import FileKeyValueStore, KeyValueStore, QuotaExceeded

__all__ = [
    "STORAGE_KEY",
    "FileKeyValueStore",
    "KeyValueStore",
    "PersistenceGateway",
    "QuotaExceeded",
    "SaveReport",
]
