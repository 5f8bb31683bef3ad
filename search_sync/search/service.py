"""
Search service interface.

The search service owns the external, non-transactional index of each
repository. The facet pushes documents to it; it never reads storage.
"""

import logging
import time
from abc import ABC, abstractmethod
from typing import Awaitable, Callable, Iterable, List, Optional, Tuple

from ..errors import DocumentBuildError
from ..models.entities import Component, Repository
from ..models.storage import BulkPutResult

logger = logging.getLogger(__name__)

DocumentIdFunction = Callable[[Component], str]
DocumentFunction = Callable[[Component], Awaitable[str]]


class SearchService(ABC):
    """Index backend holding one index per repository"""

    @abstractmethod
    def index_name(self, repository: Repository) -> str:
        """Name of the index backing a repository"""
        pass

    @abstractmethod
    async def create_index(self, repository: Repository) -> None:
        """Create the repository's index if it does not exist yet"""
        pass

    @abstractmethod
    async def delete_index(self, repository: Repository) -> None:
        """Remove the repository's index and every document in it"""
        pass

    @abstractmethod
    async def rebuild_index(self, repository: Repository) -> None:
        """Reset the repository's index to an empty one"""
        pass

    @abstractmethod
    async def put(self, repository: Repository, document_id: str, document: str) -> None:
        """Index a single document, replacing any document with the same id"""
        pass

    @abstractmethod
    async def bulk_put(
        self,
        repository: Repository,
        components: Iterable[Component],
        id_function: DocumentIdFunction,
        document_function: DocumentFunction
    ) -> BulkPutResult:
        """
        Index the documents of many components in one step.

        Args:
            repository: Repository whose index receives the documents
            components: Components to index
            id_function: Maps a component to its document id
            document_function: Builds a component's document

        Returns:
            Bulk result with the documents that could not be built
        """
        pass

    @abstractmethod
    async def delete(self, repository: Repository, document_id: str) -> None:
        """Remove a document; removing an absent document is not an error"""
        pass

    @abstractmethod
    async def count(self, repository: Repository) -> int:
        """Number of documents in the repository's index"""
        pass

    @abstractmethod
    async def get(self, repository: Repository, document_id: str) -> Optional[str]:
        """Get a document by id, or None if it is not indexed"""
        pass

    async def close(self) -> None:
        """Release backend resources"""
        pass

    async def _build_documents(
        self,
        repository: Repository,
        components: Iterable[Component],
        id_function: DocumentIdFunction,
        document_function: DocumentFunction,
        result: BulkPutResult
    ) -> List[Tuple[str, str]]:
        """
        Build (document id, document) pairs in component order.

        A component whose document cannot be built is recorded as failed in
        the result and skipped; any other error propagates.
        """
        documents = []
        for component in components:
            document_id = id_function(component)
            result.requested += 1
            try:
                documents.append((document_id, await document_function(component)))
            except DocumentBuildError as e:
                logger.error(f"Skipping document {document_id} of {repository.name}: {e}")
                result.record_failure(document_id, e)
        return documents

    @staticmethod
    def _elapsed_ms(start_time: float) -> float:
        return (time.time() - start_time) * 1000
