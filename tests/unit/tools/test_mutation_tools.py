"""Unit tests for the write tools and the read-only guard."""

import pytest
from bson import ObjectId
from pymongo.errors import DuplicateKeyError
from pymongo.results import DeleteResult, InsertOneResult, UpdateResult

from src.mongodb_mcp.exceptions import QueryExecutionError, ReadOnlyViolationError
from src.mongodb_mcp.tools import MutationTools
from src.mongodb_mcp.tools.models import DeleteOneRequest, InsertOneRequest, UpdateOneRequest

HEX = "65f0c0ffee0000000000cafe"
TEAM_HEX = "65f0c0ffee0000000000beef"


@pytest.fixture
def mutation_tools() -> MutationTools:
    return MutationTools()


@pytest.mark.unit
class TestInsertOne:
    async def test_inserted_id_returned(self, mock_database, mock_collection, mutation_tools):
        """Test the generated ObjectId comes back in extended JSON form."""
        mock_collection.insert_one.return_value = InsertOneResult(ObjectId(HEX), True)

        result = await mutation_tools.insert_one(
            InsertOneRequest(collection="users", document={"name": "Ada", "teamId": TEAM_HEX})
        )

        assert result.model_dump() == {"acknowledged": True, "insertedId": {"$oid": HEX}}
        mock_collection.insert_one.assert_awaited_once_with(
            {"name": "Ada", "teamId": ObjectId(TEAM_HEX)}
        )

    async def test_client_supplied_id(self, mock_database, mock_collection, mutation_tools):
        mock_collection.insert_one.return_value = InsertOneResult("user-1", True)

        result = await mutation_tools.insert_one(
            InsertOneRequest(collection="users", document={"_id": "user-1"})
        )

        assert result.insertedId == "user-1"

    async def test_duplicate_key(self, mock_database, mock_collection, mutation_tools):
        mock_collection.insert_one.side_effect = DuplicateKeyError("E11000 duplicate key")

        with pytest.raises(QueryExecutionError) as exc_info:
            await mutation_tools.insert_one(
                InsertOneRequest(collection="users", document={"_id": 1})
            )

        assert exc_info.value.details["operation"] == "insertOne"
        assert "E11000" in exc_info.value.details["error"]


@pytest.mark.unit
class TestUpdateOne:
    async def test_counts_returned(self, mock_database, mock_collection, mutation_tools):
        mock_collection.update_one.return_value = UpdateResult({"n": 1, "nModified": 1}, True)

        result = await mutation_tools.update_one(
            UpdateOneRequest(collection="users", filter={"_id": HEX}, update={"$set": {"age": 37}})
        )

        assert result.model_dump() == {
            "acknowledged": True,
            "matchedCount": 1,
            "modifiedCount": 1,
            "upsertedId": None,
        }
        mock_collection.update_one.assert_awaited_once_with(
            {"_id": ObjectId(HEX)}, {"$set": {"age": 37}}, upsert=False
        )

    async def test_upsert(self, mock_database, mock_collection, mutation_tools):
        mock_collection.update_one.return_value = UpdateResult(
            {"n": 1, "nModified": 0, "upserted": ObjectId(HEX)}, True
        )

        result = await mutation_tools.update_one(
            UpdateOneRequest(
                collection="users", filter={"email": "a@b.c"}, update={"$set": {"n": 1}}, upsert=True
            )
        )

        assert result.matchedCount == 0
        assert result.upsertedId == {"$oid": HEX}
        assert mock_collection.update_one.await_args.kwargs["upsert"] is True

    async def test_update_values_are_coerced(self, mock_database, mock_collection, mutation_tools):
        mock_collection.update_one.return_value = UpdateResult({"n": 1, "nModified": 1}, True)

        await mutation_tools.update_one(
            UpdateOneRequest(
                collection="users", filter={"name": "Ada"}, update={"$set": {"teamId": TEAM_HEX}}
            )
        )

        update = mock_collection.update_one.await_args.args[1]
        assert update == {"$set": {"teamId": ObjectId(TEAM_HEX)}}

    async def test_unacknowledged(self, mock_database, mock_collection, mutation_tools):
        mock_collection.update_one.return_value = UpdateResult({}, False)

        result = await mutation_tools.update_one(
            UpdateOneRequest(collection="users", filter={}, update={"$inc": {"n": 1}})
        )

        assert result.model_dump() == {
            "acknowledged": False,
            "matchedCount": None,
            "modifiedCount": None,
            "upsertedId": None,
        }


@pytest.mark.unit
class TestDeleteOne:
    async def test_deleted_count(self, mock_database, mock_collection, mutation_tools):
        mock_collection.delete_one.return_value = DeleteResult({"n": 1}, True)

        result = await mutation_tools.delete_one(
            DeleteOneRequest(collection="users", filter={"_id": HEX})
        )

        assert result.model_dump() == {"acknowledged": True, "deletedCount": 1}
        mock_collection.delete_one.assert_awaited_once_with({"_id": ObjectId(HEX)})

    async def test_nothing_matched(self, mock_database, mock_collection, mutation_tools):
        mock_collection.delete_one.return_value = DeleteResult({"n": 0}, True)

        result = await mutation_tools.delete_one(
            DeleteOneRequest(collection="users", filter={"name": "nobody"})
        )

        assert result.deletedCount == 0


@pytest.mark.unit
class TestReadOnlyMode:
    """Every write tool is refused before reaching the driver."""

    async def test_insert_refused(self, mock_database, mock_collection, mutation_tools, read_only):
        with pytest.raises(ReadOnlyViolationError) as exc_info:
            await mutation_tools.insert_one(InsertOneRequest(collection="users", document={"a": 1}))

        assert exc_info.value.details == {"operation": "insertOne", "collection": "users"}
        mock_collection.insert_one.assert_not_awaited()

    async def test_update_refused(self, mock_database, mock_collection, mutation_tools, read_only):
        with pytest.raises(ReadOnlyViolationError):
            await mutation_tools.update_one(
                UpdateOneRequest(collection="users", filter={}, update={"$set": {"a": 1}})
            )

        mock_collection.update_one.assert_not_awaited()

    async def test_delete_refused(self, mock_database, mock_collection, mutation_tools, read_only):
        with pytest.raises(ReadOnlyViolationError):
            await mutation_tools.delete_one(DeleteOneRequest(collection="users", filter={}))

        mock_collection.delete_one.assert_not_awaited()
