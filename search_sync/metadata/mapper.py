"""
Mapping of components to search index documents.
"""

import logging
from typing import Any, Iterable, Mapping

from ..errors import DocumentBuildError
from ..models.entities import Asset, Component, require_entity_id
from .registry import MetadataProducerRegistry

logger = logging.getLogger(__name__)


class DocumentMapper:
    """
    Derives the index document id and body of a component.

    The document id is the component's entity id, so the same component
    always maps to the same document and re-indexing overwrites in place.
    """

    def __init__(self, registry: MetadataProducerRegistry):
        if registry is None:
            raise ValueError("registry cannot be None")
        self.registry = registry

    def document_id(self, component: Component) -> str:
        """
        Get the id of the document representing a component.

        Raises:
            ValueError: if the component has not been persisted
        """
        return require_entity_id(component).value

    def document(
        self,
        component: Component,
        assets: Iterable[Asset],
        repository_metadata: Mapping[str, Any]
    ) -> str:
        """
        Build the document representing a component and its assets.

        The producer is chosen by component format; its output is returned
        as-is.

        Raises:
            DocumentBuildError: if the producer fails
        """
        if component is None:
            raise ValueError("component cannot be None")

        producer = self.registry.resolve(component.format)
        logger.debug(
            f"Producing document for {component.name} ({component.format}) "
            f"with {type(producer).__name__}"
        )
        try:
            return producer.get_metadata(component, assets, repository_metadata)
        except Exception as e:
            document_id = component.entity_id.value if component.entity_id else None
            raise DocumentBuildError(document_id, component.format, e) from e
