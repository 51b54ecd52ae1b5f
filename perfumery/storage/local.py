"""
Local storage implementations for development and tests.

In-memory only; nothing survives a restart.
"""

from __future__ import annotations

import copy
import logging
from datetime import datetime, timezone
from typing import Any

from perfumery.storage.base import (
    CacheStorage,
    DocumentExistsError,
    MetadataStorage,
    StorageProvider,
    UniqueConstraintError,
    declare_indexes,
)

logger = logging.getLogger(__name__)


# =============================================================================
# In-Memory Metadata Storage
# =============================================================================


class InMemoryMetadataStorage(MetadataStorage):
    """In-memory document storage with unique index enforcement."""

    def __init__(self):
        self._data: dict[str, dict[str, dict[str, Any]]] = {}
        # collection -> [(fields, sparse)]
        self._indexes: dict[str, list[tuple[tuple[str, ...], bool]]] = {}

    def create_unique_index(
        self,
        collection: str,
        fields: tuple[str, ...],
        sparse: bool = False,
    ) -> None:
        indexes = self._indexes.setdefault(collection, [])
        if (fields, sparse) not in indexes:
            indexes.append((fields, sparse))

    def _check_unique(self, collection: str, id: str, doc: dict[str, Any]) -> None:
        """Raise if ``doc`` (stored under ``id``) collides with another document."""
        for fields, sparse in self._indexes.get(collection, []):
            key = tuple(doc.get(f) for f in fields)
            if sparse and any(v is None for v in key):
                continue
            for other_id, other in self._data.get(collection, {}).items():
                if other_id == id:
                    continue
                if tuple(other.get(f) for f in fields) == key:
                    logger.warning(f"Unique index violation on {collection}{fields}")
                    raise UniqueConstraintError(collection, fields)

    def _store(self, collection: str, id: str, data: dict[str, Any]) -> None:
        self._data.setdefault(collection, {})[id] = {
            **copy.deepcopy(data),
            "_id": id,
            "_updated_at": datetime.now(timezone.utc).isoformat(),
        }

    async def insert(self, collection: str, id: str, data: dict[str, Any]) -> None:
        if id in self._data.get(collection, {}):
            raise DocumentExistsError(f"{collection}/{id} already exists")
        self._check_unique(collection, id, data)
        self._store(collection, id, data)

    async def get(self, collection: str, id: str) -> dict[str, Any] | None:
        doc = self._data.get(collection, {}).get(id)
        return copy.deepcopy(doc) if doc is not None else None

    async def delete(self, collection: str, id: str) -> bool:
        if collection in self._data and id in self._data[collection]:
            del self._data[collection][id]
            return True
        return False

    async def query(
        self,
        collection: str,
        filters: dict[str, Any] | None = None,
        limit: int = 100,
        offset: int = 0,
    ) -> list[dict[str, Any]]:
        if collection not in self._data:
            return []

        results = list(self._data[collection].values())

        # Apply filters
        if filters:
            results = [
                doc for doc in results
                if all(doc.get(key) == value for key, value in filters.items())
            ]

        # Apply pagination
        return [copy.deepcopy(doc) for doc in results[offset:offset + limit]]

    async def update(self, collection: str, id: str, updates: dict[str, Any]) -> bool:
        current = self._data.get(collection, {}).get(id)
        if current is None:
            return False
        merged = {**current, **updates}
        self._check_unique(collection, id, merged)
        current.update(copy.deepcopy(updates))
        current["_updated_at"] = datetime.now(timezone.utc).isoformat()
        return True


# =============================================================================
# In-Memory Cache Storage
# =============================================================================


class InMemoryCacheStorage(CacheStorage):
    """In-memory cache for development."""

    def __init__(self):
        self._cache: dict[str, tuple[Any, float | None]] = {}

    async def set(self, key: str, value: Any, ttl: int | None = None) -> None:
        expires_at = None
        if ttl:
            expires_at = datetime.now(timezone.utc).timestamp() + ttl
        self._cache[key] = (value, expires_at)

    async def get(self, key: str) -> Any | None:
        if key not in self._cache:
            return None

        value, expires_at = self._cache[key]
        if expires_at and datetime.now(timezone.utc).timestamp() > expires_at:
            del self._cache[key]
            return None

        return value

    async def pop(self, key: str) -> Any | None:
        value = await self.get(key)
        self._cache.pop(key, None)
        return value

    async def exists(self, key: str) -> bool:
        return await self.get(key) is not None


# =============================================================================
# Factory
# =============================================================================


def create_local_storage() -> StorageProvider:
    """Create a StorageProvider with in-memory implementations and indexes."""
    metadata = InMemoryMetadataStorage()
    declare_indexes(metadata)
    return StorageProvider(
        metadata=metadata,
        cache=InMemoryCacheStorage(),
    )
