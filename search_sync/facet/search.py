"""
Search facet.

Keeps a repository's search index consistent with the components held in
its storage bucket. Storage is the source of truth; the index is a derived
projection that can always be repaired with rebuild_index().
"""

import logging
from types import MappingProxyType
from typing import Any, Iterable, List, Mapping, Optional

from ..metadata.mapper import DocumentMapper
from ..metadata.producers import REPOSITORY_NAME
from ..metadata.registry import MetadataProducerRegistry
from ..models.config import RepositoryConfiguration
from ..models.entities import Component, EntityId
from ..models.storage import BulkPutResult
from ..search.service import SearchService
from ..storage.base import StorageFacet, StorageTx
from .support import FacetState, FacetSupport

logger = logging.getLogger(__name__)


class SearchFacet(FacetSupport):
    """
    Synchronizes a repository's components into its search index.

    Lifecycle:
    - init captures the repository metadata merged into every document
    - start creates the repository index (idempotent)
    - delete removes the repository index

    Operations (only while started):
    - put / bulk_put read components in one storage transaction and push
      their documents; ids no longer in storage are skipped
    - delete_component removes a document without touching storage
    - rebuild_index resets the index and re-indexes every stored component

    Storage and search-service errors propagate unchanged; nothing is
    retried or compensated here.
    """

    def __init__(
        self,
        search_service: SearchService,
        storage: StorageFacet,
        producers: MetadataProducerRegistry
    ):
        """
        Initialize the search facet.

        Args:
            search_service: Index backend receiving documents
            storage: Transactional storage the components are read from
            producers: Registry resolving metadata producers by format
        """
        super().__init__()
        if search_service is None:
            raise ValueError("search_service cannot be None")
        if storage is None:
            raise ValueError("storage cannot be None")
        if producers is None:
            raise ValueError("producers cannot be None")

        self.search_service = search_service
        self.storage = storage
        self.mapper = DocumentMapper(producers)
        self._repository_metadata: Optional[Mapping[str, Any]] = None

    @property
    def repository_metadata(self) -> Mapping[str, Any]:
        """Read-only repository metadata captured at init"""
        if self._repository_metadata is None:
            raise RuntimeError("Repository metadata is not available before init")
        return self._repository_metadata

    async def _do_init(self, configuration: RepositoryConfiguration) -> None:
        self._repository_metadata = MappingProxyType({REPOSITORY_NAME: self.repository.name})

    async def _do_start(self) -> None:
        await self.search_service.create_index(self.repository)

    async def _do_delete(self) -> None:
        await self.search_service.delete_index(self.repository)

    async def rebuild_index(self) -> BulkPutResult:
        """
        Rebuild the repository index from storage.

        Resets the index, then re-indexes every component currently in the
        repository bucket inside a single transaction. Documents of
        components no longer in storage are gone afterwards.
        """
        self.ensure_state(FacetState.STARTED, operation="rebuild index")

        logger.info(f"Rebuilding index of repository {self.repository.name}")
        await self.search_service.rebuild_index(self.repository)

        async with self.storage.transaction() as tx:
            bucket = await tx.find_bucket(self.repository)
            components = await tx.browse_components(bucket)
            result = await self._bulk_put(tx, components)

        logger.info(
            f"Rebuilt index of repository {self.repository.name}: "
            f"{result.indexed}/{result.requested} components indexed"
        )
        return result

    async def put(self, component_id: EntityId) -> None:
        """
        Index a single component.

        A component that is no longer in storage is skipped silently.
        """
        self.ensure_state(FacetState.STARTED, operation="put")
        if component_id is None:
            raise ValueError("component_id cannot be None")

        async with self.storage.transaction() as tx:
            bucket = await tx.find_bucket(self.repository)
            component = await tx.find_component_in_bucket(component_id, bucket)
            if component is None:
                logger.debug(f"Component {component_id.value} not found in {self.repository.name}, skipping")
                return
            await self._put(tx, component)

    async def bulk_put(self, component_ids: Iterable[EntityId]) -> BulkPutResult:
        """
        Index many components in one search-service call.

        Ids that no longer resolve to a stored component are skipped.
        """
        self.ensure_state(FacetState.STARTED, operation="bulk put")
        if component_ids is None:
            raise ValueError("component_ids cannot be None")

        async with self.storage.transaction() as tx:
            bucket = await tx.find_bucket(self.repository)

            components: List[Component] = []
            skipped = 0
            for component_id in component_ids:
                component = await tx.find_component_in_bucket(component_id, bucket)
                if component is None:
                    skipped += 1
                else:
                    components.append(component)

            if skipped:
                logger.debug(f"Skipped {skipped} components no longer in {self.repository.name}")

            return await self._bulk_put(tx, components)

    async def delete_component(self, component_id: EntityId) -> None:
        """
        Remove a component's document from the index.

        Storage is not consulted: the component is usually gone already.
        """
        self.ensure_state(FacetState.STARTED, operation="delete")
        if component_id is None:
            raise ValueError("component_id cannot be None")

        await self.search_service.delete(self.repository, component_id.value)

    async def _put(self, tx: StorageTx, component: Component) -> None:
        """Extracts metadata from a component and its assets and puts it into the index"""
        await self.search_service.put(
            self.repository,
            self.mapper.document_id(component),
            await self._document(tx, component)
        )

    async def _bulk_put(self, tx: StorageTx, components: Iterable[Component]) -> BulkPutResult:
        """Extracts metadata from components and their assets and bulk-puts it into the index"""

        async def document(component: Component) -> str:
            return await self._document(tx, component)

        return await self.search_service.bulk_put(
            self.repository,
            components,
            self.mapper.document_id,
            document
        )

    async def _document(self, tx: StorageTx, component: Component) -> str:
        assets = await tx.browse_assets(component)
        return self.mapper.document(component, assets, self.repository_metadata)
