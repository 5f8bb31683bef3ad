"""
Storage package for repository search synchronization.

Transactional storage interfaces and the in-memory reference storage.
"""

from .base import StorageFacet, StorageTx
from .memory import InMemoryStorage, InMemoryStorageTx
from .manifest import load_manifest, populate_storage, ManifestError

__all__ = [
    "StorageFacet",
    "StorageTx",
    "InMemoryStorage",
    "InMemoryStorageTx",
    "load_manifest",
    "populate_storage",
    "ManifestError",
]
