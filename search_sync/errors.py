"""
Exception hierarchy for repository search synchronization.

Configuration and state errors are raised by the facet layer itself.
Storage and search-service errors are raised by the collaborator
implementations and pass through the facet unchanged.
"""

from typing import Iterable, Optional


class SearchSyncError(Exception):
    """Base class for all search synchronization errors"""
    pass


class ConfigurationError(SearchSyncError):
    """Deployment misconfiguration, e.g. no default metadata producer"""
    pass


class IllegalStateError(SearchSyncError):
    """Operation invoked while the facet is in a state that does not allow it"""

    def __init__(self, current, allowed: Iterable, operation: str):
        self.current = current
        self.allowed = tuple(allowed)
        self.operation = operation
        allowed_names = ", ".join(state.value for state in self.allowed)
        super().__init__(
            f"Cannot {operation}: facet is {current.value}, expected one of: {allowed_names}"
        )


class StorageTransactionError(SearchSyncError):
    """Failure while reading from the transactional storage"""
    pass


class SearchServiceError(SearchSyncError):
    """Failure while writing to the external search index"""

    def __init__(self, operation: str, index_name: str, message: Optional[str] = None):
        self.operation = operation
        self.index_name = index_name
        detail = f": {message}" if message else ""
        super().__init__(f"Search index {operation} failed for {index_name}{detail}")


class DocumentBuildError(SearchSyncError):
    """A metadata producer failed to build the document of one component"""

    def __init__(self, document_id: Optional[str], format_id: str, cause: Exception):
        self.document_id = document_id
        self.format_id = format_id
        self.cause = cause
        super().__init__(
            f"Failed to build {format_id} document for component {document_id}: {cause}"
        )
