"""
Metadata extraction for search index documents.

Format-specific producers, the registry resolving them by format, and the
mapper turning components into index documents.
"""

from .producers import (
    ComponentMetadataProducer,
    DefaultComponentMetadataProducer,
    Maven2ComponentMetadataProducer,
    REPOSITORY_NAME,
)
from .registry import MetadataProducerRegistry, DEFAULT_FORMAT
from .mapper import DocumentMapper

__all__ = [
    "ComponentMetadataProducer",
    "DefaultComponentMetadataProducer",
    "Maven2ComponentMetadataProducer",
    "REPOSITORY_NAME",
    "MetadataProducerRegistry",
    "DEFAULT_FORMAT",
    "DocumentMapper",
]
