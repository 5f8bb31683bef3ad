"""
Component metadata producers.

A producer turns a component, its assets and the repository metadata into
the serialized JSON document stored in the search index. Producers are
selected by component format through the MetadataProducerRegistry.
"""

import json
import logging
from abc import ABC, abstractmethod
from typing import Any, Dict, Iterable, List, Mapping

from ..models.entities import Asset, Component

logger = logging.getLogger(__name__)

# Repository metadata keys
REPOSITORY_NAME = "repository_name"


class ComponentMetadataProducer(ABC):
    """Format-specific strategy producing a component's index document"""

    @abstractmethod
    def get_metadata(
        self,
        component: Component,
        assets: Iterable[Asset],
        repository_metadata: Mapping[str, Any]
    ) -> str:
        """
        Produce the index document of a component.

        Args:
            component: Component being indexed
            assets: Assets belonging to the component
            repository_metadata: Repository-level entries merged into the document

        Returns:
            Serialized document
        """
        pass


class DefaultComponentMetadataProducer(ComponentMetadataProducer):
    """
    Format-agnostic producer used when no format-specific one is registered.

    Emits component coordinates, attributes, a list of asset summaries and
    every repository metadata entry as a JSON object with sorted keys, so
    identical input always yields an identical document.
    """

    def get_metadata(
        self,
        component: Component,
        assets: Iterable[Asset],
        repository_metadata: Mapping[str, Any]
    ) -> str:
        document = self.build_document(component, list(assets), repository_metadata)
        return json.dumps(document, sort_keys=True, default=str)

    def build_document(
        self,
        component: Component,
        assets: List[Asset],
        repository_metadata: Mapping[str, Any]
    ) -> Dict[str, Any]:
        """Build the document as a dictionary; subclasses extend it"""
        document: Dict[str, Any] = {
            "format": component.format,
            "group": component.group,
            "name": component.name,
            "version": component.version,
            "attributes": dict(component.attributes),
            "last_updated": component.last_updated.isoformat() if component.last_updated else None,
            "assets": [self.asset_document(asset) for asset in assets],
        }
        document.update(repository_metadata)
        return document

    def asset_document(self, asset: Asset) -> Dict[str, Any]:
        return {
            "name": asset.name,
            "content_type": asset.content_type,
            "size": asset.size,
            "checksums": dict(asset.checksums),
            "attributes": dict(asset.attributes),
        }


class Maven2ComponentMetadataProducer(DefaultComponentMetadataProducer):
    """Adds Maven coordinates (groupId, artifactId, baseVersion) to the default document"""

    SNAPSHOT_SUFFIX = "-SNAPSHOT"

    def build_document(
        self,
        component: Component,
        assets: List[Asset],
        repository_metadata: Mapping[str, Any]
    ) -> Dict[str, Any]:
        document = super().build_document(component, assets, repository_metadata)

        maven_attributes = component.attributes.get("maven2", {})
        base_version = maven_attributes.get("baseVersion") or self._base_version(component.version)

        document["maven2"] = {
            "groupId": component.group,
            "artifactId": component.name,
            "baseVersion": base_version,
            "isSnapshot": bool(base_version and base_version.endswith(self.SNAPSHOT_SUFFIX)),
            "extensions": sorted({self._extension(asset.name) for asset in assets} - {""}),
        }
        return document

    def _base_version(self, version):
        """Collapse a timestamped snapshot version (1.0-20240101.120000-1) to 1.0-SNAPSHOT"""
        if not version:
            return version
        parts = version.rsplit("-", 2)
        if len(parts) == 3 and parts[2].isdigit() and "." in parts[1]:
            stamp_date, _, stamp_time = parts[1].partition(".")
            if stamp_date.isdigit() and stamp_time.isdigit():
                return f"{parts[0]}{self.SNAPSHOT_SUFFIX}"
        return version

    def _extension(self, asset_name: str) -> str:
        filename = asset_name.rsplit("/", 1)[-1]
        if "." not in filename:
            return ""
        return filename.rsplit(".", 1)[-1]
