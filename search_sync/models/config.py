"""
Configuration models for repository search synchronization.

Handles Qdrant connection settings, per-repository facet configuration and
global settings read from the environment.
"""

from pathlib import Path
from typing import Any, Dict, List, Optional
from pydantic import BaseModel, Field, ConfigDict, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict


def sanitize_index_name(name: str) -> str:
    """Lowercase a name and replace spaces, underscores and dots with dashes"""
    return name.strip().lower().replace(' ', '-').replace('_', '-').replace('.', '-')


class QdrantConfig(BaseModel):
    """Qdrant search backend configuration"""
    model_config = ConfigDict(
        str_strip_whitespace=True,
        validate_assignment=True
    )

    # Connection settings
    url: str = "http://localhost:6333"
    api_key: Optional[str] = None
    timeout: float = Field(default=60.0, gt=0.0, le=600.0)

    # Collection naming
    collection_prefix: str = "reposearch"

    # Performance settings
    batch_size: int = Field(default=100, ge=1, le=1000)
    show_progress: bool = False

    @field_validator('url')
    @classmethod
    def validate_url(cls, v: str) -> str:
        """Validate Qdrant URL format"""
        if not v.startswith(('http://', 'https://')):
            raise ValueError('Qdrant URL must start with http:// or https://')
        return v.rstrip('/')

    @field_validator('collection_prefix')
    @classmethod
    def validate_collection_prefix(cls, v: str) -> str:
        """Validate collection prefix"""
        if not v or not v.replace('-', '').replace('_', '').isalnum():
            raise ValueError('Collection prefix must be alphanumeric with dashes/underscores')
        return v.lower()

    def get_collection_name(self, repository_name: str) -> str:
        """Generate the collection name holding a repository's index"""
        return f"{self.collection_prefix}-{sanitize_index_name(repository_name)}"


class RepositoryConfiguration(BaseModel):
    """Configuration handed to a facet when its repository is initialized"""
    model_config = ConfigDict(
        frozen=True,
        str_strip_whitespace=True
    )

    repository_name: str
    recipe_name: Optional[str] = None
    online: bool = True
    attributes: Dict[str, Any] = Field(default_factory=dict)

    @field_validator('repository_name')
    @classmethod
    def validate_repository_name(cls, v: str) -> str:
        if not v:
            raise ValueError('Repository name cannot be empty')
        return v


class SearchSyncConfig(BaseModel):
    """Top-level configuration for the reposearch tooling"""
    model_config = ConfigDict(
        str_strip_whitespace=True,
        validate_assignment=True
    )

    qdrant: QdrantConfig = Field(default_factory=QdrantConfig)

    # Repositories reported on by `reposearch status`
    repositories: List[str] = Field(default_factory=list)

    log_level: str = Field(default="INFO", pattern="^(DEBUG|INFO|WARNING|ERROR|CRITICAL)$")

    @field_validator('log_level', mode='before')
    @classmethod
    def normalize_log_level(cls, v: Any) -> Any:
        if isinstance(v, str):
            return v.strip().upper()
        return v

    def to_dict(self) -> Dict[str, Any]:
        """Convert to dictionary for JSON serialization"""
        return self.model_dump()

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> 'SearchSyncConfig':
        return cls(**data)


class GlobalSettings(BaseSettings):
    """Global application settings with environment variable support"""
    model_config = SettingsConfigDict(
        env_prefix="REPOSEARCH_",
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore"
    )

    qdrant_url: str = "http://localhost:6333"
    collection_prefix: str = "reposearch"
    default_timeout: float = Field(default=60.0, ge=1.0, le=300.0)

    # Logging
    log_level: str = Field(default="INFO", pattern="^(DEBUG|INFO|WARNING|ERROR|CRITICAL)$")

    config_dir: Path = Field(default_factory=lambda: Path.home() / ".reposearch")

    @property
    def config_file(self) -> Path:
        """Default configuration file location"""
        return self.config_dir / "config.json"
