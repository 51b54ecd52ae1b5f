"""
Storage abstractions.

- MetadataStorage → members, reviews, perfumes (unique indexes enforced here)
- CacheStorage → short-lived OAuth state tokens
"""

from perfumery.storage.base import (
    CacheStorage,
    Collections,
    DocumentExistsError,
    MetadataStorage,
    StorageError,
    StorageProvider,
    UniqueConstraintError,
    declare_indexes,
)
from perfumery.storage.local import (
    InMemoryCacheStorage,
    InMemoryMetadataStorage,
    create_local_storage,
)

__all__ = [
    "CacheStorage",
    "Collections",
    "DocumentExistsError",
    "MetadataStorage",
    "StorageError",
    "StorageProvider",
    "UniqueConstraintError",
    "declare_indexes",
    "InMemoryCacheStorage",
    "InMemoryMetadataStorage",
    "create_local_storage",
]
