"""
Unit tests for QdrantSearchService.

Tests collection management, point conversion, batching and error wrapping
against a mocked Qdrant client.
"""

import json
import pytest
from unittest.mock import Mock

from qdrant_client.http.models.models import PointIdsList

from search_sync.errors import DocumentBuildError, SearchServiceError
from search_sync.models import Component, EntityId, QdrantConfig, Repository
from search_sync.search import QdrantSearchService, RepositoryIndexSchema, document_id_to_point_id


@pytest.fixture
def repository():
    return Repository(name="libs_release", format="maven2")


@pytest.fixture
def mock_client():
    client = Mock()
    client.get_collections.return_value = Mock(collections=[])
    return client


@pytest.fixture
def service(mock_client):
    service = QdrantSearchService(QdrantConfig(url="http://qdrant:6333", batch_size=2))
    service._client = mock_client
    return service


def existing_collection(name):
    collection = Mock()
    collection.name = name
    return Mock(collections=[collection])


def components(*ids):
    return [
        Component(entity_id=EntityId(value=i), format="maven2", group="org.example", name=f"lib-{i}")
        for i in ids
    ]


def document_id(component):
    return component.entity_id.value


async def document(component):
    return json.dumps({"name": component.name, "group": component.group})


class TestQdrantCollections:
    """Test index lifecycle against Qdrant collections"""

    def test_index_name(self, service, repository):
        assert service.index_name(repository) == "reposearch-libs-release"
        assert service.index_name(Repository(name="My Repo.v2", format="raw")) == "reposearch-my-repo-v2"

    @pytest.mark.asyncio
    async def test_create_index_when_absent(self, service, mock_client, repository):
        await service.create_index(repository)

        mock_client.create_collection.assert_called_once()
        kwargs = mock_client.create_collection.call_args.kwargs
        assert kwargs["collection_name"] == "reposearch-libs-release"
        assert kwargs["vectors_config"] == {}

        indexed_fields = [
            call.kwargs["field_name"] for call in mock_client.create_payload_index.call_args_list
        ]
        assert indexed_fields == ["document_id", "repository", "format", "group", "name", "version"]

    @pytest.mark.asyncio
    async def test_create_index_when_present(self, service, mock_client, repository):
        mock_client.get_collections.return_value = existing_collection("reposearch-libs-release")

        await service.create_index(repository)

        mock_client.create_collection.assert_not_called()
        mock_client.delete_collection.assert_not_called()

    @pytest.mark.asyncio
    async def test_rebuild_index_recreates(self, service, mock_client, repository):
        mock_client.get_collections.return_value = existing_collection("reposearch-libs-release")

        await service.rebuild_index(repository)

        mock_client.delete_collection.assert_called_once_with("reposearch-libs-release")
        mock_client.create_collection.assert_called_once()

    @pytest.mark.asyncio
    async def test_rebuild_index_when_absent(self, service, mock_client, repository):
        await service.rebuild_index(repository)

        mock_client.delete_collection.assert_not_called()
        mock_client.create_collection.assert_called_once()

    @pytest.mark.asyncio
    async def test_delete_index(self, service, mock_client, repository):
        mock_client.get_collections.return_value = existing_collection("reposearch-libs-release")

        await service.delete_index(repository)

        mock_client.delete_collection.assert_called_once_with("reposearch-libs-release")

    @pytest.mark.asyncio
    async def test_delete_absent_index(self, service, mock_client, repository):
        await service.delete_index(repository)

        mock_client.delete_collection.assert_not_called()


class TestQdrantDocuments:
    """Test document writes, reads and deletes"""

    @pytest.mark.asyncio
    async def test_put_converts_document(self, service, mock_client, repository):
        await service.put(repository, "c1", '{"name": "app", "version": "1.0"}')

        mock_client.upsert.assert_called_once()
        kwargs = mock_client.upsert.call_args.kwargs
        assert kwargs["collection_name"] == "reposearch-libs-release"

        point = kwargs["points"][0]
        assert point.id == document_id_to_point_id("c1")
        assert point.payload[RepositoryIndexSchema.DOCUMENT_ID] == "c1"
        assert point.payload[RepositoryIndexSchema.REPOSITORY] == "libs_release"
        assert point.payload[RepositoryIndexSchema.DOCUMENT] == '{"name": "app", "version": "1.0"}'
        assert point.payload["name"] == "app"
        assert point.payload["version"] == "1.0"

    @pytest.mark.asyncio
    async def test_put_non_json_document(self, service, mock_client, repository):
        await service.put(repository, "c1", "plain text")

        point = mock_client.upsert.call_args.kwargs["points"][0]
        assert set(point.payload) == {"document_id", "repository", "document"}

    @pytest.mark.asyncio
    async def test_bulk_put_batches(self, service, mock_client, repository):
        result = await service.bulk_put(repository, components("a", "b", "c", "d", "e"), document_id, document)

        # batch_size=2
        assert mock_client.upsert.call_count == 3
        batch_sizes = [len(call.kwargs["points"]) for call in mock_client.upsert.call_args_list]
        assert batch_sizes == [2, 2, 1]

        assert result.index_name == "reposearch-libs-release"
        assert result.requested == 5
        assert result.indexed == 5
        assert result.success is True

    @pytest.mark.asyncio
    async def test_bulk_put_empty(self, service, mock_client, repository):
        result = await service.bulk_put(repository, [], document_id, document)

        mock_client.upsert.assert_not_called()
        assert result.requested == 0
        assert result.indexed == 0

    @pytest.mark.asyncio
    async def test_bulk_put_records_build_failures(self, service, mock_client, repository):
        async def failing_document(component):
            if component.entity_id.value == "b":
                raise DocumentBuildError("b", "maven2", KeyError("groupId"))
            return await document(component)

        result = await service.bulk_put(repository, components("a", "b", "c"), document_id, failing_document)

        assert result.indexed == 2
        assert [failure.document_id for failure in result.failed] == ["b"]
        point_ids = [
            point.id
            for call in mock_client.upsert.call_args_list
            for point in call.kwargs["points"]
        ]
        assert point_ids == [document_id_to_point_id("a"), document_id_to_point_id("c")]

    @pytest.mark.asyncio
    async def test_delete(self, service, mock_client, repository):
        await service.delete(repository, "c1")

        kwargs = mock_client.delete.call_args.kwargs
        assert kwargs["collection_name"] == "reposearch-libs-release"
        assert kwargs["points_selector"] == PointIdsList(points=[document_id_to_point_id("c1")])

    @pytest.mark.asyncio
    async def test_count(self, service, mock_client, repository):
        mock_client.count.return_value = Mock(count=7)

        assert await service.count(repository) == 7
        assert mock_client.count.call_args.kwargs["exact"] is True

    @pytest.mark.asyncio
    async def test_get(self, service, mock_client, repository):
        mock_client.retrieve.return_value = [Mock(payload={"document": '{"name": "app"}'})]
        assert await service.get(repository, "c1") == '{"name": "app"}'

        mock_client.retrieve.return_value = []
        assert await service.get(repository, "missing") is None


class TestQdrantErrors:
    """Test failure wrapping"""

    @pytest.mark.asyncio
    async def test_upsert_failure_wrapped(self, service, mock_client, repository):
        mock_client.upsert.side_effect = Exception("connection reset")

        with pytest.raises(SearchServiceError) as exc_info:
            await service.put(repository, "c1", "{}")

        assert exc_info.value.operation == "upsert"
        assert exc_info.value.index_name == "reposearch-libs-release"
        assert "connection reset" in str(exc_info.value)

    @pytest.mark.asyncio
    async def test_bulk_put_failure_wrapped(self, service, mock_client, repository):
        mock_client.upsert.side_effect = Exception("disk full")

        with pytest.raises(SearchServiceError):
            await service.bulk_put(repository, components("a"), document_id, document)

    @pytest.mark.asyncio
    async def test_create_failure_wrapped(self, service, mock_client, repository):
        mock_client.create_collection.side_effect = Exception("forbidden")

        with pytest.raises(SearchServiceError) as exc_info:
            await service.create_index(repository)

        assert exc_info.value.operation == "create_collection"

    @pytest.mark.asyncio
    async def test_count_missing_collection(self, service, mock_client, repository):
        mock_client.count.side_effect = Exception("Not found: Collection doesn't exist")

        with pytest.raises(SearchServiceError):
            await service.count(repository)


class TestQdrantConnection:
    """Test connection management"""

    @pytest.mark.asyncio
    async def test_close_releases_client(self, service, mock_client):
        await service.close()

        mock_client.close.assert_called_once()
        assert service._client is None

    @pytest.mark.asyncio
    async def test_close_twice(self, service, mock_client):
        await service.close()
        await service.close()

        mock_client.close.assert_called_once()


class TestPointIds:
    """Test document id to point id conversion"""

    def test_deterministic(self):
        assert document_id_to_point_id("c1") == document_id_to_point_id("c1")

    def test_distinct(self):
        assert document_id_to_point_id("c1") != document_id_to_point_id("c2")

    def test_unsigned_64_bit(self):
        for document_id in ("a", "b7e5c0d2f1", "org.example:app:1.0"):
            point_id = document_id_to_point_id(document_id)
            assert 0 <= point_id < 2 ** 64
