"""
Qdrant collection schema for repository indexes.

Each repository index is a payload-only collection: documents are stored
as payload and filtered through keyword indexes, no vectors are involved.
"""

from dataclasses import dataclass, field
from typing import List


@dataclass
class IndexConfig:
    """Configuration for payload field indexing"""
    field_name: str
    field_type: str  # keyword, integer, bool, text


@dataclass
class CollectionConfig:
    """Complete collection configuration"""
    name: str

    # Performance settings
    replication_factor: int = 1
    write_consistency_factor: int = 1
    on_disk_payload: bool = True

    payload_indexes: List[IndexConfig] = field(default_factory=list)


class RepositoryIndexSchema:
    """Schema definitions for repository index collections"""

    # Payload keys written for every document
    DOCUMENT_ID = "document_id"
    REPOSITORY = "repository"
    DOCUMENT = "document"

    @staticmethod
    def get_collection_config(collection_name: str) -> CollectionConfig:
        """
        Get configuration for a repository index collection.

        Args:
            collection_name: Name of the collection

        Returns:
            Complete collection configuration
        """
        payload_indexes = [
            # Identification
            IndexConfig(RepositoryIndexSchema.DOCUMENT_ID, "keyword"),
            IndexConfig(RepositoryIndexSchema.REPOSITORY, "keyword"),

            # Component coordinates lifted from the document
            IndexConfig("format", "keyword"),
            IndexConfig("group", "keyword"),
            IndexConfig("name", "keyword"),
            IndexConfig("version", "keyword"),
        ]

        return CollectionConfig(
            name=collection_name,
            payload_indexes=payload_indexes,
        )
