"""Unit tests for the read tools against a mocked Motor collection."""

import datetime

import pytest
from bson import ObjectId
from pymongo.errors import ExecutionTimeout, OperationFailure

from src.mongodb_mcp.exceptions import (
    DatabaseConnectionError,
    DatabaseTimeoutError,
    InvalidQueryError,
    QueryExecutionError,
    ReadOnlyViolationError,
)
from src.mongodb_mcp.tools import QueryTools
from src.mongodb_mcp.tools.models import (
    AggregateRequest,
    CountRequest,
    DistinctRequest,
    FindOneRequest,
    FindRequest,
)

HEX = "65f0c0ffee0000000000cafe"


@pytest.fixture
def query_tools() -> QueryTools:
    return QueryTools()


@pytest.mark.unit
class TestFind:
    """Test find cursor construction and result conversion."""

    async def test_defaults(self, mock_database, mock_collection, query_tools, cursor_factory):
        """Test the default limit of 10 and skip of 0 are applied."""
        cursor = cursor_factory([{"_id": 1, "name": "Ada"}])
        mock_collection.find.return_value = cursor

        result = await query_tools.find(FindRequest(collection="users"))

        assert result == [{"_id": 1, "name": "Ada"}]
        mock_database.__getitem__.assert_called_with("users")
        mock_collection.find.assert_called_once_with({}, None)
        cursor.sort.assert_not_called()
        cursor.skip.assert_called_once_with(0)
        cursor.limit.assert_called_once_with(10)

    async def test_filter_projection_sort_skip_limit(
        self, mock_database, mock_collection, query_tools, cursor_factory
    ):
        cursor = cursor_factory()
        mock_collection.find.return_value = cursor

        await query_tools.find(
            FindRequest(
                collection="users",
                filter={"_id": HEX},
                projection={"name": 1},
                sort={"age": -1, "name": 1},
                skip=5,
                limit=20,
            )
        )

        mock_collection.find.assert_called_once_with({"_id": ObjectId(HEX)}, {"name": 1})
        cursor.sort.assert_called_once_with([("age", -1), ("name", 1)])
        cursor.skip.assert_called_once_with(5)
        cursor.limit.assert_called_once_with(20)

    async def test_bson_results_become_extended_json(
        self, mock_database, mock_collection, query_tools, cursor_factory
    ):
        mock_collection.find.return_value = cursor_factory(
            [{"_id": ObjectId(HEX), "createdAt": datetime.datetime(2024, 1, 15, 9, 30)}]
        )

        result = await query_tools.find(FindRequest(collection="users"))

        assert result[0]["_id"] == {"$oid": HEX}
        assert result[0]["createdAt"] == {"$date": "2024-01-15T09:30:00Z"}

    async def test_driver_error_is_converted(
        self, mock_database, mock_collection, query_tools, cursor_factory
    ):
        cursor = cursor_factory()
        cursor.to_list.side_effect = OperationFailure("unknown operator: $bogus")
        mock_collection.find.return_value = cursor

        with pytest.raises(QueryExecutionError) as exc_info:
            await query_tools.find(FindRequest(collection="users", filter={"a": {"$bogus": 1}}))

        assert exc_info.value.details["operation"] == "find"
        assert exc_info.value.details["collection"] == "users"
        assert isinstance(exc_info.value.__cause__, OperationFailure)

    async def test_not_initialized(self, query_tools):
        with pytest.raises(DatabaseConnectionError):
            await query_tools.find(FindRequest(collection="users"))


@pytest.mark.unit
class TestFindOne:
    async def test_match(self, mock_database, mock_collection, query_tools):
        mock_collection.find_one.return_value = {"_id": ObjectId(HEX), "name": "Ada"}

        result = await query_tools.find_one(
            FindOneRequest(collection="users", filter={"_id": HEX}, projection={"name": 1})
        )

        assert result == {"_id": {"$oid": HEX}, "name": "Ada"}
        mock_collection.find_one.assert_awaited_once_with({"_id": ObjectId(HEX)}, {"name": 1})

    async def test_no_match_returns_none(self, mock_database, mock_collection, query_tools):
        result = await query_tools.find_one(FindOneRequest(collection="users"))

        assert result is None


@pytest.mark.unit
class TestAggregate:
    async def test_pipeline_passed_through(
        self, mock_database, mock_collection, query_tools, cursor_factory
    ):
        mock_collection.aggregate.return_value = cursor_factory([{"_id": "open", "n": 3}])
        pipeline = [{"$match": {"customerId": HEX}}, {"$group": {"_id": "$status", "n": {"$sum": 1}}}]

        result = await query_tools.aggregate(AggregateRequest(collection="orders", pipeline=pipeline))

        assert result == [{"_id": "open", "n": 3}]
        mock_collection.aggregate.assert_called_once_with(
            [
                {"$match": {"customerId": ObjectId(HEX)}},
                {"$group": {"_id": "$status", "n": {"$sum": 1}}},
            ]
        )

    async def test_limit_appended_as_stage(self, mock_database, mock_collection, query_tools):
        pipeline = [{"$match": {}}]

        await query_tools.aggregate(AggregateRequest(collection="orders", pipeline=pipeline, limit=5))

        mock_collection.aggregate.assert_called_once_with([{"$match": {}}, {"$limit": 5}])
        assert pipeline == [{"$match": {}}]

    @pytest.mark.parametrize(
        "stage", [{}, {"$match": {}, "$limit": 1}, {"match": {"a": 1}}]
    )
    async def test_malformed_stage_rejected(self, mock_database, mock_collection, query_tools, stage):
        with pytest.raises(InvalidQueryError) as exc_info:
            await query_tools.aggregate(
                AggregateRequest(collection="orders", pipeline=[{"$match": {}}, stage])
            )

        assert exc_info.value.details["stage_index"] == 1
        mock_collection.aggregate.assert_not_called()

    async def test_write_stage_refused_in_read_only_mode(
        self, mock_database, mock_collection, query_tools, read_only
    ):
        with pytest.raises(ReadOnlyViolationError):
            await query_tools.aggregate(
                AggregateRequest(collection="orders", pipeline=[{"$merge": {"into": "copy"}}])
            )

        mock_collection.aggregate.assert_not_called()

    async def test_read_pipeline_allowed_in_read_only_mode(
        self, mock_database, mock_collection, query_tools, read_only
    ):
        await query_tools.aggregate(AggregateRequest(collection="orders", pipeline=[{"$match": {}}]))

        mock_collection.aggregate.assert_called_once()

    async def test_timeout_is_converted(
        self, mock_database, mock_collection, query_tools, cursor_factory
    ):
        cursor = cursor_factory()
        cursor.to_list.side_effect = ExecutionTimeout("operation exceeded time limit")
        mock_collection.aggregate.return_value = cursor

        with pytest.raises(DatabaseTimeoutError):
            await query_tools.aggregate(AggregateRequest(collection="orders", pipeline=[]))


@pytest.mark.unit
class TestCountAndDistinct:
    async def test_count(self, mock_database, mock_collection, query_tools):
        mock_collection.count_documents.return_value = 42

        result = await query_tools.count(CountRequest(collection="users", filter={"teamId": HEX}))

        assert result.count == 42
        assert result.model_dump() == {"count": 42}
        mock_collection.count_documents.assert_awaited_once_with({"teamId": ObjectId(HEX)})

    async def test_count_empty_filter(self, mock_database, mock_collection, query_tools):
        await query_tools.count(CountRequest(collection="users"))

        mock_collection.count_documents.assert_awaited_once_with({})

    async def test_distinct(self, mock_database, mock_collection, query_tools):
        mock_collection.distinct.return_value = ["London", "Paris"]

        result = await query_tools.distinct(
            DistinctRequest(collection="users", field="address.city", filter={"active": True})
        )

        assert result == ["London", "Paris"]
        mock_collection.distinct.assert_awaited_once_with("address.city", {"active": True})

    async def test_distinct_object_ids(self, mock_database, mock_collection, query_tools):
        mock_collection.distinct.return_value = [ObjectId(HEX)]

        result = await query_tools.distinct(DistinctRequest(collection="users", field="teamId"))

        assert result == [{"$oid": HEX}]
