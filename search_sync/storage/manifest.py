"""
Repository manifest loading.

A manifest is a JSON description of repositories with their components and
assets, used to seed an InMemoryStorage:

    {
      "repositories": [
        {
          "name": "libs-release",
          "format": "maven2",
          "components": [
            {
              "id": "c1", "group": "org.example", "name": "app", "version": "1.0",
              "assets": [{"name": "org/example/app/1.0/app-1.0.jar", "content_type": "application/java-archive"}]
            }
          ]
        }
      ]
    }

A component without a "format" inherits its repository's format.
"""

import json
import logging
from pathlib import Path
from typing import Any, Dict, List, Tuple, Union

import aiofiles

from ..models.entities import Asset, Component, EntityId, Repository
from .memory import InMemoryStorage

logger = logging.getLogger(__name__)


class ManifestError(ValueError):
    """Malformed repository manifest"""
    pass


async def load_manifest(
    manifest_path: Union[str, Path],
    storage: InMemoryStorage = None
) -> Tuple[InMemoryStorage, List[Repository]]:
    """
    Load a manifest file into a storage.

    Args:
        manifest_path: Path of the JSON manifest
        storage: Storage to populate; a new one is created if None

    Returns:
        The populated storage and the repositories it now holds
    """
    manifest_path = Path(manifest_path)
    try:
        async with aiofiles.open(manifest_path, 'r', encoding='utf-8') as f:
            data = json.loads(await f.read())
    except json.JSONDecodeError as e:
        raise ManifestError(f"Invalid JSON in manifest {manifest_path}: {e}") from e

    storage, repositories = populate_storage(data, storage)
    logger.info(f"Loaded {len(repositories)} repositories from {manifest_path}")
    return storage, repositories


def populate_storage(
    data: Dict[str, Any],
    storage: InMemoryStorage = None
) -> Tuple[InMemoryStorage, List[Repository]]:
    """Populate a storage from an already parsed manifest"""
    if storage is None:
        storage = InMemoryStorage()

    if not isinstance(data, dict) or not isinstance(data.get("repositories"), list):
        raise ManifestError("Manifest must be an object with a 'repositories' list")

    repositories = []
    for repo_data in data["repositories"]:
        try:
            repository = Repository(name=repo_data["name"], format=repo_data["format"])
        except KeyError as e:
            raise ManifestError(f"Repository entry missing field: {e}") from e

        storage.add_repository(repository)
        component_count = 0

        for component_data in repo_data.get("components", []):
            component = _parse_component(component_data, repository)
            stored = storage.add_component(repository.name, component)
            for asset_data in component_data.get("assets", []):
                storage.add_asset(stored.entity_id, _parse_asset(asset_data, component))
            component_count += 1

        logger.debug(f"Repository {repository.name}: {component_count} components")
        repositories.append(repository)

    return storage, repositories


def _parse_component(data: Dict[str, Any], repository: Repository) -> Component:
    if "name" not in data:
        raise ManifestError(f"Component entry in {repository.name} missing 'name'")

    component_id = data.get("id")
    return Component(
        entity_id=EntityId(value=str(component_id)) if component_id else None,
        format=data.get("format", repository.format),
        group=data.get("group"),
        name=data["name"],
        version=data.get("version"),
        attributes=data.get("attributes", {}),
        last_updated=data.get("last_updated"),
    )


def _parse_asset(data: Dict[str, Any], component: Component) -> Asset:
    if "name" not in data:
        raise ManifestError(f"Asset entry of component {component.name} missing 'name'")

    return Asset(
        name=data["name"],
        format=data.get("format", component.format),
        content_type=data.get("content_type"),
        size=data.get("size"),
        checksums=data.get("checksums", {}),
        attributes=data.get("attributes", {}),
    )
