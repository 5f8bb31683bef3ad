"""
Storage entity models for repository search synchronization.

Defines repositories, buckets, components and assets as read from the
transactional storage. All entities are frozen: the search facet reads
them and never mutates them.
"""

from datetime import datetime
from typing import Any, Dict, Optional
from pydantic import BaseModel, Field, ConfigDict, field_validator


class EntityId(BaseModel):
    """Opaque, globally unique identifier of a stored entity"""
    model_config = ConfigDict(frozen=True)

    value: str

    @field_validator('value')
    @classmethod
    def validate_value(cls, v: str) -> str:
        """Validate entity id is not blank"""
        if not v or not v.strip():
            raise ValueError('Entity id cannot be empty')
        return v

    def __str__(self) -> str:
        return self.value


class Repository(BaseModel):
    """Repository identity: a name and the format it hosts"""
    model_config = ConfigDict(frozen=True, str_strip_whitespace=True)

    name: str
    format: str

    @field_validator('name')
    @classmethod
    def validate_name(cls, v: str) -> str:
        if not v:
            raise ValueError('Repository name cannot be empty')
        return v


class Bucket(BaseModel):
    """Storage partition holding every component of one repository"""
    model_config = ConfigDict(frozen=True)

    entity_id: EntityId
    repository_name: str


class Component(BaseModel):
    """A versioned unit of content stored in a repository bucket"""
    model_config = ConfigDict(frozen=True, str_strip_whitespace=True)

    # Identification; None until the component has been persisted
    entity_id: Optional[EntityId] = None
    bucket_id: Optional[EntityId] = None
    format: str

    # Coordinates
    group: Optional[str] = None
    name: str
    version: Optional[str] = None

    attributes: Dict[str, Any] = Field(default_factory=dict)
    last_updated: Optional[datetime] = None


class Asset(BaseModel):
    """A stored file belonging to a component"""
    model_config = ConfigDict(frozen=True, str_strip_whitespace=True)

    entity_id: Optional[EntityId] = None
    bucket_id: Optional[EntityId] = None
    component_id: Optional[EntityId] = None

    name: str
    format: str
    content_type: Optional[str] = None
    size: Optional[int] = Field(default=None, ge=0)
    checksums: Dict[str, str] = Field(default_factory=dict)
    attributes: Dict[str, Any] = Field(default_factory=dict)


def require_entity_id(entity: BaseModel) -> EntityId:
    """
    Return the entity id of a persisted entity.

    Raises:
        ValueError: if the entity has not been persisted yet
    """
    value = getattr(entity, 'entity_id', None)
    if value is None:
        raise ValueError(f"Missing entity id: {type(entity).__name__} has not been persisted")
    return value
