"""Base tool class for async database access.

This module provides a minimal base class for all MCP tools with direct
access to the Motor database and the shared pieces every tool needs:
identifier coercion, BSON-to-JSON conversion, the read-only guard and
translation of driver errors into the server's exception hierarchy.

Example:
    >>> from src.mongodb_mcp.tools.base_tool import BaseTool
    >>> class MyTool(BaseTool):
    ...     async def my_operation(self, name):
    ...         collection = self.get_collection(name)
    ...         return await collection.count_documents({})
"""

import logging
from typing import Any, NoReturn

from motor.motor_asyncio import AsyncIOMotorCollection, AsyncIOMotorDatabase

from src.config.settings import settings

from ..database import database
from ..exceptions import ReadOnlyViolationError, convert_to_mcp_exception
from .identifier_coercion import convert_to_object_ids
from .result_serialization import to_json_compatible

logger = logging.getLogger(__name__)


class BaseTool:
    """Base class for all MCP tool groups.

    Tools never open connections themselves; the database is initialized once
    at server startup and shared through the database module.
    """

    def __init__(self) -> None:
        logger.debug(f"Initialized {self.__class__.__name__}")

    def get_database(self) -> AsyncIOMotorDatabase:
        """Get the Motor database instance.

        Raises:
            DatabaseConnectionError: If database not initialized at startup
        """
        return database.get_database()

    def get_collection(self, collection_name: str) -> AsyncIOMotorCollection:
        return self.get_database()[collection_name]

    @staticmethod
    def coerce_identifiers(value: Any) -> Any:
        """Apply the ObjectId coercion rule to a filter, pipeline or document."""
        return convert_to_object_ids(value)

    @staticmethod
    def to_json(value: Any) -> Any:
        """Convert BSON results to plain JSON types for the client."""
        return to_json_compatible(value)

    @staticmethod
    def ensure_writable(operation: str, collection_name: str) -> None:
        """Raise when writes are disabled by read_only_mode.

        Raises:
            ReadOnlyViolationError: If settings.read_only_mode is enabled
        """
        if settings.read_only_mode:
            logger.warning(f"Rejected {operation} on '{collection_name}': read-only mode")
            raise ReadOnlyViolationError(
                message="Operation not allowed in read-only mode",
                details={"operation": operation, "collection": collection_name},
            )

    @staticmethod
    def raise_database_error(error: Exception, operation: str, collection_name: str | None) -> NoReturn:
        """Log a driver error and re-raise it as an MCPServerError."""
        context = {"operation": operation}
        if collection_name:
            context["collection"] = collection_name
        mcp_error = convert_to_mcp_exception(
            error, default_message=f"{operation} failed", context=context
        )
        logger.error(f"{operation} failed: {mcp_error}")
        raise mcp_error from error

    def __repr__(self) -> str:
        return f"{self.__class__.__name__}()"
