"""Introspection tools: listCollections and getSchema.

getSchema is the one tool with real logic: it samples the collection through
the database gateway and hands the documents to the SchemaInferrer. The
sample is taken as stored, without ObjectId coercion or any other rewrite.
"""

import logging
from typing import Any

from pymongo.errors import PyMongoError

from ..database import database
from ..schema import InferenceReport, SchemaInferrer
from .base_tool import BaseTool
from .models import GetSchemaRequest, ListCollectionsRequest

logger = logging.getLogger(__name__)


class IntrospectionTools(BaseTool):
    """Database and collection structure discovery."""

    def __init__(self, inferrer: SchemaInferrer | None = None) -> None:
        super().__init__()
        self.inferrer = inferrer or SchemaInferrer()

    async def list_collections(self, request: ListCollectionsRequest) -> list[dict[str, Any]]:
        """List collection info documents (name, type, options, info, idIndex)."""
        db = self.get_database()
        query_filter = self.coerce_identifiers(request.filter)

        try:
            cursor = await db.list_collections(filter=query_filter)
            collections = await cursor.to_list(length=None)
        except PyMongoError as e:
            self.raise_database_error(e, "listCollections", None)

        logger.info(f"Retrieved {len(collections)} collections from database")
        return self.to_json(collections)

    async def get_schema(self, request: GetSchemaRequest) -> dict[str, Any]:
        """Infer the structure of a collection from a bounded sample.

        Returns:
            InferenceReport dump with camelCase keys; for an empty or missing
            collection the report carries a "No documents found" message and
            an empty field mapping
        """
        try:
            samples = await database.fetch_sample(request.collection, request.sample_size)
        except PyMongoError as e:
            self.raise_database_error(e, "getSchema", request.collection)

        report: InferenceReport = self.inferrer.infer(
            samples, request.collection, request.sample_size
        )
        if report.is_empty:
            logger.info(f"getSchema on '{request.collection}': collection is empty or missing")
        return self.to_json(report.to_response())
