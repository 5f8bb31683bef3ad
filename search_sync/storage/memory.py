"""
In-memory transactional storage.

Reference implementation of the storage interfaces. Each transaction reads
from a snapshot of the committed state taken when it begins, so concurrent
writes never change what an open transaction sees.
"""

import asyncio
import logging
import threading
import uuid
from collections import OrderedDict
from contextlib import asynccontextmanager
from dataclasses import dataclass, field
from typing import AsyncIterator, Dict, List, Optional

from ..errors import StorageTransactionError
from ..models.entities import Asset, Bucket, Component, EntityId, Repository, require_entity_id
from .base import StorageFacet, StorageTx

logger = logging.getLogger(__name__)


def new_entity_id() -> EntityId:
    return EntityId(value=uuid.uuid4().hex)


@dataclass
class StorageSnapshot:
    """Immutable view of the committed state at one point in time"""
    buckets: Dict[str, Bucket] = field(default_factory=dict)  # repository name -> bucket
    components: Dict[str, Component] = field(default_factory=OrderedDict)  # entity id -> component
    assets: Dict[str, List[Asset]] = field(default_factory=dict)  # component id -> assets


class InMemoryStorageTx(StorageTx):
    """Read transaction over a storage snapshot"""

    def __init__(self, snapshot: StorageSnapshot, name: str):
        self._snapshot = snapshot
        self.name = name
        self._open = True

    @property
    def is_open(self) -> bool:
        return self._open

    def close(self) -> None:
        if not self._open:
            raise StorageTransactionError(f"Transaction {self.name} already closed")
        self._open = False

    def _ensure_open(self) -> None:
        if not self._open:
            raise StorageTransactionError(f"Transaction {self.name} is closed")

    async def find_bucket(self, repository: Repository) -> Bucket:
        self._ensure_open()
        bucket = self._snapshot.buckets.get(repository.name)
        if bucket is None:
            raise StorageTransactionError(f"No bucket for repository {repository.name}")
        return bucket

    async def find_component_in_bucket(
        self,
        component_id: EntityId,
        bucket: Bucket
    ) -> Optional[Component]:
        self._ensure_open()
        component = self._snapshot.components.get(component_id.value)
        if component is None or component.bucket_id != bucket.entity_id:
            return None
        return component

    async def browse_components(self, bucket: Bucket) -> List[Component]:
        self._ensure_open()
        return [
            component for component in self._snapshot.components.values()
            if component.bucket_id == bucket.entity_id
        ]

    async def browse_assets(self, component: Component) -> List[Asset]:
        self._ensure_open()
        return list(self._snapshot.assets.get(require_entity_id(component).value, []))


class InMemoryStorage(StorageFacet):
    """
    Thread-safe in-memory storage of buckets, components and assets.

    Writes are committed immediately; reads go through transactions.
    """

    def __init__(self):
        self._state = StorageSnapshot()
        self._lock = threading.Lock()

        # Transaction tracking
        self.transactions_opened = 0
        self.transactions_closed = 0

    @property
    def open_transactions(self) -> int:
        return self.transactions_opened - self.transactions_closed

    def _snapshot(self) -> StorageSnapshot:
        with self._lock:
            return StorageSnapshot(
                buckets=dict(self._state.buckets),
                components=OrderedDict(self._state.components),
                assets={key: list(value) for key, value in self._state.assets.items()}
            )

    @asynccontextmanager
    async def transaction(self) -> AsyncIterator[InMemoryStorageTx]:
        # Let pending writes from other tasks land before taking the snapshot
        await asyncio.sleep(0)

        self.transactions_opened += 1
        tx = InMemoryStorageTx(self._snapshot(), name=f"tx-{self.transactions_opened}")
        logger.debug(f"Began transaction {tx.name}")
        try:
            yield tx
        finally:
            tx.close()
            self.transactions_closed += 1
            logger.debug(f"Ended transaction {tx.name}")

    def add_repository(self, repository: Repository) -> Bucket:
        """Create the bucket of a repository, returning the existing one if present"""
        with self._lock:
            bucket = self._state.buckets.get(repository.name)
            if bucket is None:
                bucket = Bucket(entity_id=new_entity_id(), repository_name=repository.name)
                self._state.buckets[repository.name] = bucket
                logger.info(f"Created bucket for repository {repository.name}")
            return bucket

    def add_component(self, repository_name: str, component: Component) -> Component:
        """
        Store a component in a repository's bucket.

        A component without an entity id is assigned a new one. Storing a
        component with an existing id replaces it and drops its assets.
        """
        with self._lock:
            bucket = self._state.buckets.get(repository_name)
            if bucket is None:
                raise StorageTransactionError(f"No bucket for repository {repository_name}")

            stored = component.model_copy(update={
                'entity_id': component.entity_id or new_entity_id(),
                'bucket_id': bucket.entity_id,
            })
            self._state.components[stored.entity_id.value] = stored
            self._state.assets[stored.entity_id.value] = []
            return stored

    def add_asset(self, component_id: EntityId, asset: Asset) -> Asset:
        """Attach an asset to a stored component"""
        with self._lock:
            component = self._state.components.get(component_id.value)
            if component is None:
                raise StorageTransactionError(f"No component {component_id.value}")

            stored = asset.model_copy(update={
                'entity_id': asset.entity_id or new_entity_id(),
                'bucket_id': component.bucket_id,
                'component_id': component.entity_id,
            })
            self._state.assets[component_id.value] = self._state.assets.get(component_id.value, []) + [stored]
            return stored

    def remove_component(self, component_id: EntityId) -> bool:
        """Delete a component together with its assets"""
        with self._lock:
            removed = self._state.components.pop(component_id.value, None)
            self._state.assets.pop(component_id.value, None)
            return removed is not None
