"""MongoDB MCP Server using FastMCP.

This module implements a Model Context Protocol (MCP) server that exposes one
MongoDB database to tool-calling clients over stdio.

Key Features:
    - FastMCP-based server implementation
    - Ten tools covering query, aggregate, mutate and introspect
    - Sampled schema inference (getSchema) so clients can write correct queries
    - Pydantic-based request validation with structured error payloads
    - Explicit connection lifecycle: opened at startup, closed on exit/SIGTERM

Architecture:
    - Query Tools: find, findOne, aggregate, count, distinct
    - Mutation Tools: insertOne, updateOne, deleteOne
    - Introspection Tools: listCollections, getSchema

Usage:
    MONGODB_URI=mongodb://localhost:27017 MONGODB_DATABASE=shop mongodb-mcp
"""

import logging
import signal
import sys
from collections.abc import AsyncIterator, Awaitable, Callable
from contextlib import asynccontextmanager
from typing import Any

from fastmcp import FastMCP
from pydantic import BaseModel

from src.config.settings import settings

from .database import database
from .exceptions import ConfigurationError, ValidationError, convert_to_mcp_exception
from .tool_prompts import get_system_instructions, get_tool_prompt
from .tools import IntrospectionTools, MutationTools, QueryTools
from .tools.models import (
    AggregateRequest,
    CountRequest,
    DeleteOneRequest,
    DistinctRequest,
    ErrorResponse,
    FindOneRequest,
    FindRequest,
    GetSchemaRequest,
    InsertOneRequest,
    ListCollectionsRequest,
    UpdateOneRequest,
)
from .tools.result_serialization import to_json_compatible

SERVER_NAME = "mongodb-mcp"
TOOL_NAMES = (
    "find",
    "findOne",
    "aggregate",
    "count",
    "distinct",
    "listCollections",
    "insertOne",
    "updateOne",
    "deleteOne",
    "getSchema",
)

logger = logging.getLogger(__name__)


def configure_logging() -> None:
    """Send logs to stderr; stdout carries the JSON-RPC stream."""
    logging.basicConfig(
        level=getattr(logging, settings.log_level.upper()),
        format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
        stream=sys.stderr,
    )


def with_centralized_prompt(tool_name: str):
    """Decorator to set function docstring from centralized prompts."""

    def decorator(func):
        prompt = get_tool_prompt(tool_name)
        if prompt:
            func.__doc__ = prompt
        return func

    return decorator


def _provided(**kwargs: Any) -> dict[str, Any]:
    """Drop unset arguments so request models apply their own defaults."""
    return {key: value for key, value in kwargs.items() if value is not None}


async def execute_tool(operation: str, call: Callable[[], Awaitable[Any]]) -> Any:
    """Run one tool call and turn any failure into an ErrorResponse payload.

    Args:
        operation: Tool name reported back to the client
        call: Zero-argument coroutine factory that validates and executes

    Returns:
        The tool result (models are dumped to dicts) or ErrorResponse dict
    """
    try:
        result = await call()
    except Exception as e:
        mcp_error = convert_to_mcp_exception(
            e, default_message=f"Failed to run {operation}", context={"operation": operation}
        )
        if isinstance(mcp_error, ValidationError):
            logger.warning(f"Rejected {operation}: {mcp_error}")
        else:
            logger.error(f"Error in {operation}: {mcp_error}")
        return ErrorResponse(
            error=mcp_error.message,
            error_code=mcp_error.error_code,
            details=to_json_compatible(mcp_error.details),
            operation=operation,
        ).model_dump()

    if isinstance(result, BaseModel):
        return result.model_dump()
    return result


@asynccontextmanager
async def lifespan(server: FastMCP) -> AsyncIterator[None]:
    """Verify the database on startup and release the pool on exit."""
    await database.verify_connection()
    try:
        yield
    finally:
        database.shutdown()


def create_server() -> FastMCP:
    """Create and configure the FastMCP server with all MongoDB tools.

    Returns:
        Configured FastMCP server instance

    Raises:
        ConfigurationError: If MONGODB_URI is missing or settings are invalid
    """
    try:
        settings.validate_configuration()
    except ValueError as e:
        raise ConfigurationError(message=str(e), original_exception=e) from e

    system_instructions = get_system_instructions()
    if not system_instructions:
        logger.warning("System instructions not found, using default instructions")
        system_instructions = (
            "Use listCollections and getSchema to learn the data before querying it "
            "with find, aggregate, count or distinct."
        )

    logger.info(f"Initializing database connection to {settings.masked_mongodb_uri}...")
    database.initialize(
        settings.mongodb_uri,
        settings.mongodb_database,
        min_pool_size=settings.mongodb_min_pool_size,
        max_pool_size=settings.mongodb_max_pool_size,
        timeout_seconds=settings.mongodb_timeout,
    )

    if settings.read_only_mode:
        logger.info("Read-only mode enabled: write tools will be rejected")

    server = FastMCP(name=SERVER_NAME, instructions=system_instructions, lifespan=lifespan)

    query_tools = QueryTools()
    mutation_tools = MutationTools()
    introspection_tools = IntrospectionTools()

    # =============================================================================
    # QUERY TOOLS REGISTRATION
    # =============================================================================

    @server.tool(name="find")
    @with_centralized_prompt("find")
    async def find(
        collection: str,
        filter: dict[str, Any] | None = None,
        projection: dict[str, Any] | None = None,
        sort: dict[str, Any] | None = None,
        limit: int | None = None,
        skip: int | None = None,
    ) -> Any:
        return await execute_tool(
            "find",
            lambda: query_tools.find(
                FindRequest(
                    **_provided(
                        collection=collection,
                        filter=filter,
                        projection=projection,
                        sort=sort,
                        limit=limit,
                        skip=skip,
                    )
                )
            ),
        )

    @server.tool(name="findOne")
    @with_centralized_prompt("findOne")
    async def find_one(
        collection: str,
        filter: dict[str, Any] | None = None,
        projection: dict[str, Any] | None = None,
    ) -> Any:
        return await execute_tool(
            "findOne",
            lambda: query_tools.find_one(
                FindOneRequest(
                    **_provided(collection=collection, filter=filter, projection=projection)
                )
            ),
        )

    @server.tool(name="aggregate")
    @with_centralized_prompt("aggregate")
    async def aggregate(
        collection: str,
        pipeline: list[dict[str, Any]],
        limit: int | None = None,
    ) -> Any:
        return await execute_tool(
            "aggregate",
            lambda: query_tools.aggregate(
                AggregateRequest(**_provided(collection=collection, pipeline=pipeline, limit=limit))
            ),
        )

    @server.tool(name="count")
    @with_centralized_prompt("count")
    async def count(collection: str, filter: dict[str, Any] | None = None) -> Any:
        return await execute_tool(
            "count",
            lambda: query_tools.count(CountRequest(**_provided(collection=collection, filter=filter))),
        )

    @server.tool(name="distinct")
    @with_centralized_prompt("distinct")
    async def distinct(
        collection: str,
        field: str,
        filter: dict[str, Any] | None = None,
    ) -> Any:
        return await execute_tool(
            "distinct",
            lambda: query_tools.distinct(
                DistinctRequest(**_provided(collection=collection, field=field, filter=filter))
            ),
        )

    # =============================================================================
    # INTROSPECTION TOOLS REGISTRATION
    # =============================================================================

    @server.tool(name="listCollections")
    @with_centralized_prompt("listCollections")
    async def list_collections(filter: dict[str, Any] | None = None) -> Any:
        return await execute_tool(
            "listCollections",
            lambda: introspection_tools.list_collections(
                ListCollectionsRequest(**_provided(filter=filter))
            ),
        )

    @server.tool(name="getSchema")
    @with_centralized_prompt("getSchema")
    async def get_schema(collection: str, sampleSize: int | None = None) -> Any:  # noqa: N803
        return await execute_tool(
            "getSchema",
            lambda: introspection_tools.get_schema(
                GetSchemaRequest(**_provided(collection=collection, sample_size=sampleSize))
            ),
        )

    # =============================================================================
    # MUTATION TOOLS REGISTRATION
    # =============================================================================

    @server.tool(name="insertOne")
    @with_centralized_prompt("insertOne")
    async def insert_one(collection: str, document: dict[str, Any]) -> Any:
        return await execute_tool(
            "insertOne",
            lambda: mutation_tools.insert_one(
                InsertOneRequest(collection=collection, document=document)
            ),
        )

    @server.tool(name="updateOne")
    @with_centralized_prompt("updateOne")
    async def update_one(
        collection: str,
        filter: dict[str, Any],
        update: dict[str, Any],
        upsert: bool = False,
    ) -> Any:
        return await execute_tool(
            "updateOne",
            lambda: mutation_tools.update_one(
                UpdateOneRequest(collection=collection, filter=filter, update=update, upsert=upsert)
            ),
        )

    @server.tool(name="deleteOne")
    @with_centralized_prompt("deleteOne")
    async def delete_one(collection: str, filter: dict[str, Any]) -> Any:
        return await execute_tool(
            "deleteOne",
            lambda: mutation_tools.delete_one(DeleteOneRequest(collection=collection, filter=filter)),
        )

    return server


def _handle_sigterm(signum: int, frame: Any) -> None:
    logger.info("Received SIGTERM, cleaning up...")
    database.shutdown()
    sys.exit(0)


def main() -> None:
    """Main entry point for the MCP server."""
    configure_logging()
    signal.signal(signal.SIGTERM, _handle_sigterm)

    try:
        logger.info("Starting MongoDB MCP Server...")
        server = create_server()
        logger.info(f"Available tools: {', '.join(TOOL_NAMES)}")
        server.run()

    except KeyboardInterrupt:
        logger.info("Received SIGINT, cleaning up...")
    except Exception as e:
        logger.error(f"Server error: {e}")
        raise
    finally:
        database.shutdown()


if __name__ == "__main__":
    main()
