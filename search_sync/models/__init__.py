"""
Core data models for repository search synchronization

Pydantic models for storage entities, index results and configuration.
"""

from .entities import EntityId, Repository, Bucket, Component, Asset, require_entity_id
from .storage import BulkPutResult, FailedDocument
from .config import QdrantConfig, RepositoryConfiguration, SearchSyncConfig, GlobalSettings

__all__ = [
    # Entities
    "EntityId",
    "Repository",
    "Bucket",
    "Component",
    "Asset",
    "require_entity_id",

    # Index results
    "BulkPutResult",
    "FailedDocument",

    # Configuration
    "QdrantConfig",
    "RepositoryConfiguration",
    "SearchSyncConfig",
    "GlobalSettings",
]
