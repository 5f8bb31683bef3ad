"""
Qdrant search service for repository indexes.

Stores each repository's documents in its own payload-only Qdrant
collection. The Qdrant client is synchronous; every call runs through
asyncio.to_thread so the facet's event loop is never blocked.
"""

import asyncio
import json
import logging
import time
from typing import Any, Callable, Dict, Iterable, List, Optional, Tuple

from qdrant_client import QdrantClient
from qdrant_client.models import PayloadSchemaType, PointStruct
from qdrant_client.http.models.models import PointIdsList
from tqdm import tqdm

from ..errors import SearchServiceError
from ..models.config import QdrantConfig
from ..models.entities import Component, Repository
from ..models.storage import BulkPutResult
from .schemas import CollectionConfig, RepositoryIndexSchema
from .service import DocumentFunction, DocumentIdFunction, SearchService
from .utils import document_id_to_point_id

logger = logging.getLogger(__name__)


class QdrantSearchService(SearchService):
    """
    Search service backed by a Qdrant server.

    Features:
    - One collection per repository, named from the configured prefix
    - Idempotent collection creation with keyword payload indexes
    - Batched upserts with optional progress reporting
    - Backend failures surfaced as SearchServiceError
    """

    def __init__(self, config: Optional[QdrantConfig] = None):
        """
        Initialize Qdrant search service.

        Args:
            config: Qdrant connection and batching settings
        """
        self.config = config or QdrantConfig()

        self._client: Optional[QdrantClient] = None
        self._connection_lock = asyncio.Lock()

        logger.info(f"Initialized QdrantSearchService: {self.config.url}")

    @property
    def client(self) -> QdrantClient:
        """Get Qdrant client instance"""
        if self._client is None:
            self._client = QdrantClient(
                url=self.config.url,
                api_key=self.config.api_key,
                timeout=self.config.timeout
            )
        return self._client

    def index_name(self, repository: Repository) -> str:
        return self.config.get_collection_name(repository.name)

    async def close(self) -> None:
        """Close the Qdrant client"""
        async with self._connection_lock:
            if self._client:
                self._client.close()
                self._client = None

            logger.info("Disconnected from Qdrant")

    async def _call(self, operation: str, collection_name: str, func: Callable, /, *args, **kwargs) -> Any:
        """Run a blocking client call in a worker thread, converting failures to SearchServiceError"""
        try:
            return await asyncio.to_thread(func, *args, **kwargs)
        except Exception as e:
            logger.error(f"Qdrant {operation} failed for {collection_name}: {e}")
            raise SearchServiceError(operation, collection_name, str(e)) from e

    async def _collection_exists(self, collection_name: str) -> bool:
        collections = await self._call("list_collections", collection_name, self.client.get_collections)
        return collection_name in [c.name for c in collections.collections]

    async def _create_collection(self, config: CollectionConfig, recreate: bool = False) -> bool:
        """
        Create collection with schema.

        Args:
            config: Collection configuration
            recreate: Whether to drop and recreate an existing collection

        Returns:
            True if a collection was created, False if it already existed
        """
        start_time = time.time()

        if await self._collection_exists(config.name):
            if not recreate:
                logger.debug(f"Collection {config.name} already exists")
                return False

            await self._call("delete_collection", config.name, self.client.delete_collection, config.name)
            logger.info(f"Deleted existing collection: {config.name}")

        # Payload-only collection: no vectors configured
        await self._call(
            "create_collection",
            config.name,
            self.client.create_collection,
            collection_name=config.name,
            vectors_config={},
            replication_factor=config.replication_factor,
            write_consistency_factor=config.write_consistency_factor,
            on_disk_payload=config.on_disk_payload
        )

        await self._create_payload_indexes(config)

        processing_time = (time.time() - start_time) * 1000
        logger.info(f"Created collection '{config.name}' in {processing_time:.2f}ms")
        return True

    async def _create_payload_indexes(self, config: CollectionConfig) -> None:
        """Create payload indexes for a collection"""
        schema_type_map = {
            'keyword': PayloadSchemaType.KEYWORD,
            'integer': PayloadSchemaType.INTEGER,
            'bool': PayloadSchemaType.BOOL,
            'text': PayloadSchemaType.TEXT
        }

        for index_config in config.payload_indexes:
            await self._call(
                "create_payload_index",
                config.name,
                self.client.create_payload_index,
                collection_name=config.name,
                field_name=index_config.field_name,
                field_schema=schema_type_map.get(index_config.field_type, PayloadSchemaType.KEYWORD)
            )
            logger.debug(f"Created {index_config.field_type} index on {config.name}.{index_config.field_name}")

    async def create_index(self, repository: Repository) -> None:
        config = RepositoryIndexSchema.get_collection_config(self.index_name(repository))
        await self._create_collection(config, recreate=False)

    async def delete_index(self, repository: Repository) -> None:
        collection_name = self.index_name(repository)
        if not await self._collection_exists(collection_name):
            logger.debug(f"Collection {collection_name} does not exist, nothing to delete")
            return

        await self._call("delete_collection", collection_name, self.client.delete_collection, collection_name)
        logger.info(f"Deleted collection {collection_name} of repository {repository.name}")

    async def rebuild_index(self, repository: Repository) -> None:
        config = RepositoryIndexSchema.get_collection_config(self.index_name(repository))
        await self._create_collection(config, recreate=True)

    def _to_point(self, repository: Repository, document_id: str, document: str) -> PointStruct:
        """Convert a document into a Qdrant point"""
        payload: Dict[str, Any] = {}

        # Lift top-level fields so they can be filtered on
        try:
            parsed = json.loads(document)
        except (TypeError, ValueError):
            parsed = None
        if isinstance(parsed, dict):
            payload.update(parsed)

        payload[RepositoryIndexSchema.DOCUMENT_ID] = document_id
        payload[RepositoryIndexSchema.REPOSITORY] = repository.name
        payload[RepositoryIndexSchema.DOCUMENT] = document

        return PointStruct(
            id=document_id_to_point_id(document_id),
            vector={},
            payload=payload
        )

    async def _upsert(self, collection_name: str, points: List[PointStruct]) -> None:
        """Upsert points with batching"""
        batch_size = self.config.batch_size
        batch_starts = range(0, len(points), batch_size)

        for i in tqdm(batch_starts, desc=f"Indexing {collection_name}", unit="batch",
                      disable=not self.config.show_progress):
            batch = points[i:i + batch_size]
            await self._call(
                "upsert",
                collection_name,
                self.client.upsert,
                collection_name=collection_name,
                points=batch
            )
            logger.debug(f"Upserted batch {i // batch_size + 1}: {len(batch)} points to {collection_name}")

    async def put(self, repository: Repository, document_id: str, document: str) -> None:
        collection_name = self.index_name(repository)
        await self._upsert(collection_name, [self._to_point(repository, document_id, document)])
        logger.debug(f"Indexed document {document_id} into {collection_name}")

    async def bulk_put(
        self,
        repository: Repository,
        components: Iterable[Component],
        id_function: DocumentIdFunction,
        document_function: DocumentFunction
    ) -> BulkPutResult:
        start_time = time.time()
        collection_name = self.index_name(repository)
        result = BulkPutResult(index_name=collection_name)

        documents: List[Tuple[str, str]] = await self._build_documents(
            repository, components, id_function, document_function, result
        )
        points = [self._to_point(repository, document_id, document) for document_id, document in documents]

        await self._upsert(collection_name, points)
        result.indexed = len(points)
        result.mark_completed(self._elapsed_ms(start_time))

        logger.info(
            f"Bulk indexed {result.indexed}/{result.requested} documents "
            f"into {collection_name} in {result.processing_time_ms:.2f}ms"
        )
        return result

    async def delete(self, repository: Repository, document_id: str) -> None:
        collection_name = self.index_name(repository)
        await self._call(
            "delete",
            collection_name,
            self.client.delete,
            collection_name=collection_name,
            points_selector=PointIdsList(points=[document_id_to_point_id(document_id)])
        )
        logger.debug(f"Deleted document {document_id} from {collection_name}")

    async def count(self, repository: Repository) -> int:
        collection_name = self.index_name(repository)
        count_result = await self._call(
            "count",
            collection_name,
            self.client.count,
            collection_name=collection_name,
            exact=True
        )
        return count_result.count if count_result else 0

    async def get(self, repository: Repository, document_id: str) -> Optional[str]:
        collection_name = self.index_name(repository)
        points = await self._call(
            "retrieve",
            collection_name,
            self.client.retrieve,
            collection_name=collection_name,
            ids=[document_id_to_point_id(document_id)],
            with_payload=True,
            with_vectors=False
        )
        if not points:
            return None
        return (points[0].payload or {}).get(RepositoryIndexSchema.DOCUMENT)
