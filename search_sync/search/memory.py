"""
In-memory search service for development and tests.
"""

import asyncio
import logging
import time
from typing import Dict, Iterable, Optional

from ..models.config import sanitize_index_name
from ..models.entities import Component, Repository
from ..models.storage import BulkPutResult
from .service import DocumentFunction, DocumentIdFunction, SearchService

logger = logging.getLogger(__name__)


class InMemorySearchService(SearchService):
    """Keeps each repository index as a dictionary of document id to document"""

    def __init__(self):
        self.indexes: Dict[str, Dict[str, str]] = {}
        self._lock = asyncio.Lock()

    def index_name(self, repository: Repository) -> str:
        return sanitize_index_name(repository.name)

    def documents(self, repository: Repository) -> Dict[str, str]:
        """Copy of a repository's documents; empty if the index does not exist"""
        return dict(self.indexes.get(self.index_name(repository), {}))

    def has_index(self, repository: Repository) -> bool:
        return self.index_name(repository) in self.indexes

    async def create_index(self, repository: Repository) -> None:
        async with self._lock:
            name = self.index_name(repository)
            if name not in self.indexes:
                self.indexes[name] = {}
                logger.info(f"Created index {name}")

    async def delete_index(self, repository: Repository) -> None:
        async with self._lock:
            if self.indexes.pop(self.index_name(repository), None) is not None:
                logger.info(f"Deleted index {self.index_name(repository)}")

    async def rebuild_index(self, repository: Repository) -> None:
        async with self._lock:
            self.indexes[self.index_name(repository)] = {}
            logger.info(f"Reset index {self.index_name(repository)}")

    async def put(self, repository: Repository, document_id: str, document: str) -> None:
        async with self._lock:
            self.indexes.setdefault(self.index_name(repository), {})[document_id] = document

    async def bulk_put(
        self,
        repository: Repository,
        components: Iterable[Component],
        id_function: DocumentIdFunction,
        document_function: DocumentFunction
    ) -> BulkPutResult:
        start_time = time.time()
        result = BulkPutResult(index_name=self.index_name(repository))

        documents = await self._build_documents(
            repository, components, id_function, document_function, result
        )
        async with self._lock:
            index = self.indexes.setdefault(result.index_name, {})
            for document_id, document in documents:
                index[document_id] = document
        result.indexed = len(documents)

        result.mark_completed(self._elapsed_ms(start_time))
        logger.debug(f"Bulk indexed {result.indexed}/{result.requested} documents into {result.index_name}")
        return result

    async def delete(self, repository: Repository, document_id: str) -> None:
        async with self._lock:
            self.indexes.get(self.index_name(repository), {}).pop(document_id, None)

    async def count(self, repository: Repository) -> int:
        return len(self.indexes.get(self.index_name(repository), {}))

    async def get(self, repository: Repository, document_id: str) -> Optional[str]:
        return self.indexes.get(self.index_name(repository), {}).get(document_id)
