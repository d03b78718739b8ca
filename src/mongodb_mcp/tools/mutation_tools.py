"""Write tools: insertOne, updateOne and deleteOne.

All three are refused when the server runs with read_only_mode enabled.
"""

import logging

from pymongo.errors import PyMongoError

from .base_tool import BaseTool
from .models import (
    DeleteOneRequest,
    DeleteOneResponse,
    InsertOneRequest,
    InsertOneResponse,
    UpdateOneRequest,
    UpdateOneResponse,
)

logger = logging.getLogger(__name__)


class MutationTools(BaseTool):
    """Single-document writes."""

    async def insert_one(self, request: InsertOneRequest) -> InsertOneResponse:
        """Insert one document and report the generated or supplied _id."""
        self.ensure_writable("insertOne", request.collection)
        collection = self.get_collection(request.collection)
        document = self.coerce_identifiers(request.document)

        try:
            result = await collection.insert_one(document)
        except PyMongoError as e:
            self.raise_database_error(e, "insertOne", request.collection)

        logger.info(f"insertOne into '{request.collection}': {result.inserted_id}")
        return InsertOneResponse(
            acknowledged=result.acknowledged,
            insertedId=self.to_json(result.inserted_id),
        )

    async def update_one(self, request: UpdateOneRequest) -> UpdateOneResponse:
        """Apply update operators to the first matching document."""
        self.ensure_writable("updateOne", request.collection)
        collection = self.get_collection(request.collection)
        query_filter = self.coerce_identifiers(request.filter)
        update = self.coerce_identifiers(request.update)

        try:
            result = await collection.update_one(query_filter, update, upsert=request.upsert)
        except PyMongoError as e:
            self.raise_database_error(e, "updateOne", request.collection)

        # counts are only available on acknowledged writes
        if not result.acknowledged:
            return UpdateOneResponse(acknowledged=False)

        logger.info(
            f"updateOne on '{request.collection}': matched {result.matched_count}, "
            f"modified {result.modified_count}"
        )
        return UpdateOneResponse(
            acknowledged=True,
            matchedCount=result.matched_count,
            modifiedCount=result.modified_count,
            upsertedId=self.to_json(result.upserted_id),
        )

    async def delete_one(self, request: DeleteOneRequest) -> DeleteOneResponse:
        """Delete the first document matching the filter."""
        self.ensure_writable("deleteOne", request.collection)
        collection = self.get_collection(request.collection)
        query_filter = self.coerce_identifiers(request.filter)

        try:
            result = await collection.delete_one(query_filter)
        except PyMongoError as e:
            self.raise_database_error(e, "deleteOne", request.collection)

        if not result.acknowledged:
            return DeleteOneResponse(acknowledged=False)

        logger.info(f"deleteOne on '{request.collection}': deleted {result.deleted_count}")
        return DeleteOneResponse(acknowledged=True, deletedCount=result.deleted_count)
