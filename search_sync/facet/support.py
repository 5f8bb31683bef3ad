"""
Facet lifecycle support.

A facet is a behavioural unit attached to a repository. Its lifecycle is
driven by the repository's lifecycle manager through init, start, stop,
delete and destroy, and every transition is checked against an explicit
state table.
"""

import asyncio
import logging
from enum import Enum
from typing import Optional

from ..errors import ConfigurationError, IllegalStateError
from ..models.config import RepositoryConfiguration
from ..models.entities import Repository

logger = logging.getLogger(__name__)


class FacetState(Enum):
    """Lifecycle states of a facet"""
    NEW = "new"
    INITIALIZED = "initialized"
    STARTED = "started"
    STOPPED = "stopped"
    DELETED = "deleted"
    DESTROYED = "destroyed"


class FacetSupport:
    """
    Base class for repository facets.

    Subclasses override the _do_* hooks; the public transition methods
    check the current state, run the hook and only move to the next state
    when the hook succeeds. A failing hook leaves the state untouched and
    its exception propagates.

    Transitions:
        init     NEW -> INITIALIZED
        update   INITIALIZED | STOPPED (state unchanged)
        start    INITIALIZED | STOPPED -> STARTED (no-op when already STARTED)
        stop     STARTED -> STOPPED
        delete   INITIALIZED | STOPPED -> DELETED
        destroy  any but DESTROYED -> DESTROYED (stops a started facet first)
    """

    def __init__(self):
        self._state = FacetState.NEW
        self._repository: Optional[Repository] = None
        self._transition_lock = asyncio.Lock()

    @property
    def state(self) -> FacetState:
        return self._state

    @property
    def repository(self) -> Repository:
        """The repository this facet is attached to"""
        if self._repository is None:
            raise ConfigurationError(f"{type(self).__name__} is not attached to a repository")
        return self._repository

    def attach(self, repository: Repository) -> None:
        """Bind the facet to its owning repository"""
        if repository is None:
            raise ValueError("repository cannot be None")
        self.ensure_state(FacetState.NEW, operation="attach")
        self._repository = repository

    def ensure_state(self, *allowed: FacetState, operation: str) -> None:
        """
        Check the facet is in one of the allowed states.

        Raises:
            IllegalStateError: if the current state is not allowed
        """
        if self._state not in allowed:
            raise IllegalStateError(self._state, allowed, operation)

    def _transition(self, target: FacetState) -> None:
        logger.info(f"{type(self).__name__}[{self.repository.name}]: {self._state.value} -> {target.value}")
        self._state = target

    async def init(self, configuration: RepositoryConfiguration) -> None:
        if configuration is None:
            raise ValueError("configuration cannot be None")

        async with self._transition_lock:
            self.ensure_state(FacetState.NEW, operation="init")
            if configuration.repository_name != self.repository.name:
                raise ConfigurationError(
                    f"Configuration for {configuration.repository_name} cannot initialize "
                    f"a facet of repository {self.repository.name}"
                )
            await self._do_init(configuration)
            self._transition(FacetState.INITIALIZED)

    async def update(self, configuration: RepositoryConfiguration) -> None:
        if configuration is None:
            raise ValueError("configuration cannot be None")

        async with self._transition_lock:
            self.ensure_state(FacetState.INITIALIZED, FacetState.STOPPED, operation="update")
            await self._do_update(configuration)

    async def start(self) -> None:
        async with self._transition_lock:
            if self._state == FacetState.STARTED:
                logger.debug(f"{type(self).__name__}[{self.repository.name}] already started")
                return
            self.ensure_state(FacetState.INITIALIZED, FacetState.STOPPED, operation="start")
            await self._do_start()
            self._transition(FacetState.STARTED)

    async def stop(self) -> None:
        async with self._transition_lock:
            self.ensure_state(FacetState.STARTED, operation="stop")
            await self._do_stop()
            self._transition(FacetState.STOPPED)

    async def delete(self) -> None:
        async with self._transition_lock:
            self.ensure_state(FacetState.INITIALIZED, FacetState.STOPPED, operation="delete")
            await self._do_delete()
            self._transition(FacetState.DELETED)

    async def destroy(self) -> None:
        if self._state == FacetState.STARTED:
            await self.stop()

        async with self._transition_lock:
            self.ensure_state(
                FacetState.NEW, FacetState.INITIALIZED, FacetState.STOPPED, FacetState.DELETED,
                operation="destroy"
            )
            await self._do_destroy()
            self._state = FacetState.DESTROYED

    # Lifecycle hooks

    async def _do_init(self, configuration: RepositoryConfiguration) -> None:
        pass

    async def _do_update(self, configuration: RepositoryConfiguration) -> None:
        await self._do_init(configuration)

    async def _do_start(self) -> None:
        pass

    async def _do_stop(self) -> None:
        pass

    async def _do_delete(self) -> None:
        pass

    async def _do_destroy(self) -> None:
        pass
