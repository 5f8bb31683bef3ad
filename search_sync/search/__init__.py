"""
Search package for repository search synchronization.

Search service interface, the Qdrant backend and the in-memory backend.
"""

from .service import SearchService, DocumentIdFunction, DocumentFunction
from .qdrant import QdrantSearchService
from .memory import InMemorySearchService
from .schemas import CollectionConfig, IndexConfig, RepositoryIndexSchema
from .utils import document_id_to_point_id

__all__ = [
    "SearchService",
    "DocumentIdFunction",
    "DocumentFunction",
    "QdrantSearchService",
    "InMemorySearchService",
    "CollectionConfig",
    "IndexConfig",
    "RepositoryIndexSchema",
    "document_id_to_point_id",
]
