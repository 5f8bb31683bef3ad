"""
repository-search-sync core package

Keeps repository search indexes consistent with transactional component storage.
"""

__version__ = "1.0.0"

from .errors import (
    SearchSyncError,
    ConfigurationError,
    IllegalStateError,
    StorageTransactionError,
    SearchServiceError,
    DocumentBuildError,
)
from .models import EntityId, Repository, Component, Asset, RepositoryConfiguration
from .facet import FacetState, SearchFacet
from .metadata import MetadataProducerRegistry, ComponentMetadataProducer

__all__ = [
    "SearchSyncError",
    "ConfigurationError",
    "IllegalStateError",
    "StorageTransactionError",
    "SearchServiceError",
    "DocumentBuildError",
    "EntityId",
    "Repository",
    "Component",
    "Asset",
    "RepositoryConfiguration",
    "FacetState",
    "SearchFacet",
    "MetadataProducerRegistry",
    "ComponentMetadataProducer",
]
