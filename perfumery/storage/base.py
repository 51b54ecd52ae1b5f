"""
Storage abstraction layer.

All persistence goes through these interfaces so the backing store can be
swapped (in-memory for development and tests, a database in production)
without touching the identity or review services.

Uniqueness is the store's job: implementations must enforce the unique
indexes declared on them and raise UniqueConstraintError on violation.
The service layer turns that into the matching domain error.
"""

from __future__ import annotations

from abc import ABC, abstractmethod
from typing import Any

from pydantic import BaseModel


class StorageError(Exception):
    """Base exception for storage failures."""


class UniqueConstraintError(StorageError):
    """A write would violate a unique index."""

    def __init__(self, collection: str, fields: tuple[str, ...]):
        self.collection = collection
        self.fields = fields
        super().__init__(f"Duplicate key on {collection}({', '.join(fields)})")


class DocumentExistsError(StorageError):
    """Insert of an id that is already present."""


# =============================================================================
# Storage Interfaces
# =============================================================================


class MetadataStorage(ABC):
    """
    Storage for structured documents (members, reviews, perfumes).

    Documents are plain dicts keyed by id within a named collection.
    """

    @abstractmethod
    def create_unique_index(
        self,
        collection: str,
        fields: tuple[str, ...],
        sparse: bool = False,
    ) -> None:
        """
        Declare a unique index.

        A sparse index ignores documents where any indexed field is None.
        """

    @abstractmethod
    async def insert(self, collection: str, id: str, data: dict[str, Any]) -> None:
        """Insert a new document; fails if the id or a unique key exists."""

    @abstractmethod
    async def get(self, collection: str, id: str) -> dict[str, Any] | None:
        """Get a document by ID."""

    @abstractmethod
    async def delete(self, collection: str, id: str) -> bool:
        """Delete a document."""

    @abstractmethod
    async def query(
        self,
        collection: str,
        filters: dict[str, Any] | None = None,
        limit: int = 100,
        offset: int = 0,
    ) -> list[dict[str, Any]]:
        """Query documents with optional equality filters."""

    @abstractmethod
    async def update(self, collection: str, id: str, updates: dict[str, Any]) -> bool:
        """Partial update of a document."""


class CacheStorage(ABC):
    """
    Fast key-value cache for short-lived values (OAuth state tokens).
    """

    @abstractmethod
    async def set(self, key: str, value: Any, ttl: int | None = None) -> None:
        """Set a value with optional TTL in seconds."""

    @abstractmethod
    async def get(self, key: str) -> Any | None:
        """Get a value."""

    @abstractmethod
    async def pop(self, key: str) -> Any | None:
        """Get and remove a value in one step."""

    @abstractmethod
    async def exists(self, key: str) -> bool:
        """Check if key exists."""


# =============================================================================
# Storage Provider (dependency injection container)
# =============================================================================


class StorageProvider(BaseModel):
    """
    Container for all storage backends.

    Built once per application (or per test) and handed to create_app.
    """

    model_config = {"arbitrary_types_allowed": True}

    metadata: MetadataStorage
    cache: CacheStorage


# =============================================================================
# Collection Names (for MetadataStorage)
# =============================================================================


class Collections:
    """Standard collection/table names."""

    MEMBERS = "members"
    REVIEWS = "reviews"
    PERFUMES = "perfumes"


def declare_indexes(metadata: MetadataStorage) -> None:
    """Declare the unique indexes the identity and review services rely on."""
    metadata.create_unique_index(Collections.MEMBERS, ("email",))
    metadata.create_unique_index(Collections.MEMBERS, ("google_id",), sparse=True)
    metadata.create_unique_index(Collections.REVIEWS, ("perfume_id", "author_id"))
