"""
Tests for component metadata producers and the document mapper.
"""

import json
import pytest
from datetime import datetime
from types import MappingProxyType
from unittest.mock import Mock

from search_sync.errors import DocumentBuildError
from search_sync.metadata import (
    ComponentMetadataProducer,
    DefaultComponentMetadataProducer,
    DocumentMapper,
    Maven2ComponentMetadataProducer,
    MetadataProducerRegistry,
)
from search_sync.models import Asset, Component, EntityId


REPOSITORY_METADATA = MappingProxyType({"repository_name": "libs-release"})


@pytest.fixture
def component():
    return Component(
        entity_id=EntityId(value="c-42"),
        bucket_id=EntityId(value="b-1"),
        format="maven2",
        group="org.example",
        name="app",
        version="1.2.0",
        attributes={"maven2": {"packaging": "jar"}},
        last_updated=datetime(2024, 1, 1, 12, 0, 0)
    )


@pytest.fixture
def assets():
    return [
        Asset(
            name="org/example/app/1.2.0/app-1.2.0.jar",
            format="maven2",
            content_type="application/java-archive",
            size=2048,
            checksums={"sha1": "abc123"}
        ),
        Asset(
            name="org/example/app/1.2.0/app-1.2.0.pom",
            format="maven2",
            content_type="application/xml",
            size=512
        ),
    ]


class TestDefaultProducer:
    """Test the format-agnostic producer"""

    def test_document_content(self, component, assets):
        document = json.loads(
            DefaultComponentMetadataProducer().get_metadata(component, assets, REPOSITORY_METADATA)
        )

        assert document["format"] == "maven2"
        assert document["group"] == "org.example"
        assert document["name"] == "app"
        assert document["version"] == "1.2.0"
        assert document["attributes"] == {"maven2": {"packaging": "jar"}}
        assert document["last_updated"] == "2024-01-01T12:00:00"
        assert document["repository_name"] == "libs-release"
        assert "maven2" not in document

    def test_asset_summaries(self, component, assets):
        document = json.loads(
            DefaultComponentMetadataProducer().get_metadata(component, assets, REPOSITORY_METADATA)
        )

        assert document["assets"] == [
            {
                "name": "org/example/app/1.2.0/app-1.2.0.jar",
                "content_type": "application/java-archive",
                "size": 2048,
                "checksums": {"sha1": "abc123"},
                "attributes": {},
            },
            {
                "name": "org/example/app/1.2.0/app-1.2.0.pom",
                "content_type": "application/xml",
                "size": 512,
                "checksums": {},
                "attributes": {},
            },
        ]

    def test_deterministic_output(self, component, assets):
        producer = DefaultComponentMetadataProducer()

        first = producer.get_metadata(component, assets, REPOSITORY_METADATA)
        second = producer.get_metadata(component, list(assets), dict(REPOSITORY_METADATA))

        assert first == second

    def test_component_without_assets(self, component):
        document = json.loads(
            DefaultComponentMetadataProducer().get_metadata(component, [], REPOSITORY_METADATA)
        )

        assert document["assets"] == []
        assert document["last_updated"] == "2024-01-01T12:00:00"

    def test_accepts_asset_generator(self, component, assets):
        document = json.loads(
            DefaultComponentMetadataProducer().get_metadata(component, iter(assets), REPOSITORY_METADATA)
        )

        assert len(document["assets"]) == 2


class TestMaven2Producer:
    """Test Maven coordinate extraction"""

    def test_maven_section(self, component, assets):
        document = json.loads(
            Maven2ComponentMetadataProducer().get_metadata(component, assets, REPOSITORY_METADATA)
        )

        assert document["maven2"] == {
            "groupId": "org.example",
            "artifactId": "app",
            "baseVersion": "1.2.0",
            "isSnapshot": False,
            "extensions": ["jar", "pom"],
        }
        assert document["repository_name"] == "libs-release"

    def test_timestamped_snapshot(self, component):
        snapshot = component.model_copy(update={"version": "1.2.0-20240101.120000-3"})

        document = json.loads(
            Maven2ComponentMetadataProducer().get_metadata(snapshot, [], REPOSITORY_METADATA)
        )

        assert document["version"] == "1.2.0-20240101.120000-3"
        assert document["maven2"]["baseVersion"] == "1.2.0-SNAPSHOT"
        assert document["maven2"]["isSnapshot"] is True

    def test_base_version_attribute_wins(self, component):
        attributed = component.model_copy(update={
            "version": "2.0-20240101.120000-1",
            "attributes": {"maven2": {"baseVersion": "2.0-SNAPSHOT"}},
        })

        document = json.loads(
            Maven2ComponentMetadataProducer().get_metadata(attributed, [], REPOSITORY_METADATA)
        )

        assert document["maven2"]["baseVersion"] == "2.0-SNAPSHOT"
        assert document["maven2"]["isSnapshot"] is True

    def test_release_with_dashes(self, component):
        release = component.model_copy(update={"version": "1.0-beta-2"})

        document = json.loads(
            Maven2ComponentMetadataProducer().get_metadata(release, [], REPOSITORY_METADATA)
        )

        assert document["maven2"]["baseVersion"] == "1.0-beta-2"
        assert document["maven2"]["isSnapshot"] is False

    def test_missing_version(self, component):
        unversioned = component.model_copy(update={"version": None})

        document = json.loads(
            Maven2ComponentMetadataProducer().get_metadata(unversioned, [], REPOSITORY_METADATA)
        )

        assert document["maven2"]["baseVersion"] is None
        assert document["maven2"]["isSnapshot"] is False

    def test_assets_without_extension(self, component):
        assets = [Asset(name="org/example/app/maven-metadata", format="maven2")]

        document = json.loads(
            Maven2ComponentMetadataProducer().get_metadata(component, assets, REPOSITORY_METADATA)
        )

        assert document["maven2"]["extensions"] == []


class TestDocumentMapper:
    """Test document id derivation and producer dispatch"""

    def test_document_id_is_entity_id(self, component):
        mapper = DocumentMapper(MetadataProducerRegistry.with_defaults())

        assert mapper.document_id(component) == "c-42"
        assert mapper.document_id(component) == mapper.document_id(component)

    def test_document_id_requires_entity_id(self):
        mapper = DocumentMapper(MetadataProducerRegistry.with_defaults())
        unsaved = Component(format="raw", name="file.txt")

        with pytest.raises(ValueError, match="Missing entity id"):
            mapper.document_id(unsaved)

    def test_registry_required(self):
        with pytest.raises(ValueError):
            DocumentMapper(None)

    def test_dispatch_by_format(self, component, assets):
        default_producer = Mock(spec=ComponentMetadataProducer)
        maven_producer = Mock(spec=ComponentMetadataProducer)
        maven_producer.get_metadata.return_value = "maven-document"
        mapper = DocumentMapper(MetadataProducerRegistry({
            "default": default_producer,
            "maven2": maven_producer,
        }))

        document = mapper.document(component, assets, REPOSITORY_METADATA)

        assert document == "maven-document"
        maven_producer.get_metadata.assert_called_once_with(component, assets, REPOSITORY_METADATA)
        default_producer.get_metadata.assert_not_called()

    def test_unregistered_format_uses_default(self, component):
        default_producer = Mock(spec=ComponentMetadataProducer)
        default_producer.get_metadata.return_value = "default-document"
        mapper = DocumentMapper(MetadataProducerRegistry({"default": default_producer}))
        npm_component = component.model_copy(update={"format": "npm"})

        assert mapper.document(npm_component, [], REPOSITORY_METADATA) == "default-document"
        default_producer.get_metadata.assert_called_once_with(npm_component, [], REPOSITORY_METADATA)

    def test_producer_output_returned_unmodified(self, component):
        default_producer = Mock(spec=ComponentMetadataProducer)
        default_producer.get_metadata.return_value = "  not json at all  "
        mapper = DocumentMapper(MetadataProducerRegistry({"default": default_producer}))

        assert mapper.document(component, [], REPOSITORY_METADATA) == "  not json at all  "

    def test_producer_failure_wrapped(self, component):
        default_producer = Mock(spec=ComponentMetadataProducer)
        default_producer.get_metadata.side_effect = KeyError("groupId")
        mapper = DocumentMapper(MetadataProducerRegistry({"default": default_producer}))

        with pytest.raises(DocumentBuildError) as exc_info:
            mapper.document(component, [], REPOSITORY_METADATA)

        assert exc_info.value.document_id == "c-42"
        assert exc_info.value.format_id == "maven2"
        assert isinstance(exc_info.value.cause, KeyError)
        assert isinstance(exc_info.value.__cause__, KeyError)
