"""
Metadata producer registry.

Maps component format identifiers to metadata producers, with a mandatory
producer registered under the "default" key for every other format.
"""

import logging
import threading
from typing import Dict, List, Mapping, Optional

from ..errors import ConfigurationError
from .producers import ComponentMetadataProducer, DefaultComponentMetadataProducer, Maven2ComponentMetadataProducer

logger = logging.getLogger(__name__)

DEFAULT_FORMAT = "default"


class MetadataProducerRegistry:
    """
    Registry resolving a component format to its metadata producer.

    The "default" producer is a construction-time invariant: a registry
    without one cannot be built, and the default cannot be unregistered,
    so resolve() always has a producer to hand out.
    """

    def __init__(self, producers: Mapping[str, ComponentMetadataProducer]):
        if producers is None:
            raise ValueError("producers cannot be None")
        if producers.get(DEFAULT_FORMAT) is None:
            raise ConfigurationError(
                f"No '{DEFAULT_FORMAT}' component metadata producer registered "
                f"(registered formats: {sorted(producers)})"
            )

        self._producers: Dict[str, ComponentMetadataProducer] = dict(producers)
        self._lock = threading.RLock()

        logger.debug(f"Initialized metadata producer registry with formats: {sorted(self._producers)}")

    @classmethod
    def with_defaults(cls) -> 'MetadataProducerRegistry':
        """Registry holding the default producer and the built-in format producers"""
        return cls({
            DEFAULT_FORMAT: DefaultComponentMetadataProducer(),
            "maven2": Maven2ComponentMetadataProducer(),
        })

    def resolve(self, format_id: Optional[str]) -> ComponentMetadataProducer:
        """
        Get the producer for a format, falling back to the default producer.

        Args:
            format_id: Component format identifier

        Returns:
            The format's producer, or the default producer if none is registered
        """
        with self._lock:
            producer = self._producers.get(format_id) if format_id is not None else None
            if producer is None:
                producer = self._producers[DEFAULT_FORMAT]
            return producer

    def register(
        self,
        format_id: str,
        producer: ComponentMetadataProducer,
        override: bool = False
    ) -> None:
        """
        Register a producer for a format.

        Args:
            format_id: Component format identifier
            producer: Producer for components of that format
            override: Whether to replace an existing registration
        """
        if producer is None:
            raise ValueError("producer cannot be None")

        with self._lock:
            if format_id in self._producers and not override:
                raise ValueError(
                    f"Producer for {format_id} already registered. Use override=True to replace."
                )
            self._producers[format_id] = producer

        logger.info(f"Registered {type(producer).__name__} for format: {format_id}")

    def unregister(self, format_id: str) -> bool:
        """
        Unregister a format producer.

        Returns:
            True if a producer was removed, False if none was registered
        """
        if format_id == DEFAULT_FORMAT:
            raise ConfigurationError(f"The '{DEFAULT_FORMAT}' metadata producer cannot be unregistered")

        with self._lock:
            if format_id not in self._producers:
                return False
            del self._producers[format_id]

        logger.info(f"Unregistered producer for format: {format_id}")
        return True

    def formats(self) -> List[str]:
        """Get the registered format identifiers"""
        with self._lock:
            return list(self._producers.keys())

    def __contains__(self, format_id: str) -> bool:
        with self._lock:
            return format_id in self._producers
