"""Read tools: find, findOne, aggregate, count and distinct.

Each method is a thin delegation to the matching Motor call. Filters and
pipelines go through ObjectId coercion first, results come back as plain
JSON. Driver failures surface as MCPServerError subclasses.
"""

import logging
import time
from typing import Any

from pymongo.errors import PyMongoError

from src.config.settings import settings

from ..exceptions import InvalidQueryError
from .base_tool import BaseTool
from .models import (
    AggregateRequest,
    CountRequest,
    CountResponse,
    DistinctRequest,
    FindOneRequest,
    FindRequest,
)

logger = logging.getLogger(__name__)

WRITE_STAGES = ("$out", "$merge")


class QueryTools(BaseTool):
    """Read-only collection queries."""

    async def find(self, request: FindRequest) -> list[Any]:
        """Find documents matching a filter.

        Args:
            request: Validated find request (filter, projection, sort, skip, limit)

        Returns:
            List of documents as JSON-compatible dicts
        """
        collection = self.get_collection(request.collection)
        query_filter = self.coerce_identifiers(request.filter)

        start_time = time.time()
        try:
            cursor = collection.find(query_filter, request.projection)
            if request.sort:
                cursor = cursor.sort(list(request.sort.items()))
            cursor = cursor.skip(request.skip).limit(request.limit)
            results = await cursor.to_list(length=None)
        except PyMongoError as e:
            self.raise_database_error(e, "find", request.collection)

        execution_time = (time.time() - start_time) * 1000
        logger.info(
            f"find on '{request.collection}' returned {len(results)} documents "
            f"in {execution_time:.2f}ms"
        )
        return self.to_json(results)

    async def find_one(self, request: FindOneRequest) -> dict[str, Any] | None:
        """Find a single document; returns None when nothing matches."""
        collection = self.get_collection(request.collection)
        query_filter = self.coerce_identifiers(request.filter)

        try:
            result = await collection.find_one(query_filter, request.projection)
        except PyMongoError as e:
            self.raise_database_error(e, "findOne", request.collection)

        logger.info(f"findOne on '{request.collection}' {'matched' if result else 'found nothing'}")
        return self.to_json(result)

    async def aggregate(self, request: AggregateRequest) -> list[Any]:
        """Run an aggregation pipeline.

        ``limit`` is appended as a final ``$limit`` stage so the server stops
        producing documents early. Pipelines that write ($out, $merge) are
        refused in read-only mode.

        Raises:
            InvalidQueryError: If a stage is not a single-operator document
            ReadOnlyViolationError: If a write stage is used in read-only mode
        """
        for index, stage in enumerate(request.pipeline):
            if len(stage) != 1 or not next(iter(stage)).startswith("$"):
                raise InvalidQueryError(
                    message="Each pipeline stage must be a document with exactly one $-operator",
                    details={"collection": request.collection, "stage_index": index},
                )

        if any(stage in WRITE_STAGES for stage in request.stage_operators()):
            self.ensure_writable("aggregate", request.collection)

        collection = self.get_collection(request.collection)
        pipeline = self.coerce_identifiers(request.pipeline)
        if request.limit:
            pipeline = [*pipeline, {"$limit": request.limit}]

        logger.debug(f"aggregate on '{request.collection}' with {len(pipeline)} stages")

        start_time = time.time()
        try:
            results = await collection.aggregate(pipeline).to_list(length=None)
        except PyMongoError as e:
            self.raise_database_error(e, "aggregate", request.collection)

        execution_time = (time.time() - start_time) * 1000
        logger.info(
            f"aggregate on '{request.collection}' returned {len(results)} documents "
            f"in {execution_time:.2f}ms"
        )
        return self.to_json(results)

    async def count(self, request: CountRequest) -> CountResponse:
        """Count documents matching a filter."""
        collection = self.get_collection(request.collection)
        query_filter = self.coerce_identifiers(request.filter)

        try:
            count = await collection.count_documents(query_filter)
        except PyMongoError as e:
            self.raise_database_error(e, "count", request.collection)

        logger.info(f"count on '{request.collection}': {count}")
        return CountResponse(count=count)

    async def distinct(self, request: DistinctRequest) -> list[Any]:
        """Distinct values of one field among documents matching a filter."""
        collection = self.get_collection(request.collection)
        query_filter = self.coerce_identifiers(request.filter)

        try:
            values = await collection.distinct(request.field, query_filter)
        except PyMongoError as e:
            self.raise_database_error(e, "distinct", request.collection)

        if len(values) > settings.max_result_limit:
            logger.warning(
                f"distinct on '{request.collection}.{request.field}' returned {len(values)} "
                f"values (more than max_result_limit {settings.max_result_limit})"
            )
        logger.info(f"distinct on '{request.collection}.{request.field}': {len(values)} values")
        return self.to_json(values)
