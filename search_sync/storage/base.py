"""
Transactional storage interfaces consumed by the search facet.

The storage is the source of truth for buckets, components and assets.
Reads happen inside an explicit transaction object obtained from
StorageFacet.transaction(); the transaction is released when the
`async with` block exits, whatever the exit path.
"""

from abc import ABC, abstractmethod
from typing import AsyncContextManager, List, Optional

from ..models.entities import Asset, Bucket, Component, EntityId, Repository


class StorageTx(ABC):
    """A unit of work against the storage"""

    @property
    @abstractmethod
    def is_open(self) -> bool:
        pass

    @abstractmethod
    async def find_bucket(self, repository: Repository) -> Bucket:
        """Get the bucket holding a repository's components"""
        pass

    @abstractmethod
    async def find_component_in_bucket(
        self,
        component_id: EntityId,
        bucket: Bucket
    ) -> Optional[Component]:
        """Look up a component by id, or None if it is not in the bucket"""
        pass

    @abstractmethod
    async def browse_components(self, bucket: Bucket) -> List[Component]:
        """Enumerate every component in a bucket"""
        pass

    @abstractmethod
    async def browse_assets(self, component: Component) -> List[Asset]:
        """Enumerate the assets of a component"""
        pass


class StorageFacet(ABC):
    """Supplier of storage transactions"""

    @abstractmethod
    def transaction(self) -> AsyncContextManager[StorageTx]:
        """
        Open a transaction.

        Usage:
            async with storage.transaction() as tx:
                bucket = await tx.find_bucket(repository)
        """
        pass
