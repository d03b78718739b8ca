"""Process-wide MongoDB access for all tools.

One Motor client per process, opened explicitly at startup and closed on
shutdown. Motor owns pooling, reconnection and thread safety; this module
only tracks the lifecycle and hands out the database object.
"""

import logging
from typing import Any

from motor.motor_asyncio import AsyncIOMotorClient, AsyncIOMotorDatabase
from pymongo.errors import ConfigurationError as PyMongoConfigurationError
from pymongo.errors import PyMongoError

from ..exceptions import ConfigurationError, DatabaseConnectionError

logger = logging.getLogger(__name__)


# ============================================================================
# MODULE STATE
# ============================================================================

_client: AsyncIOMotorClient | None = None
_database: AsyncIOMotorDatabase | None = None
_database_name: str | None = None


# ============================================================================
# INITIALIZATION (Call Once at Startup)
# ============================================================================


def initialize(
    connection_uri: str | None,
    database_name: str | None = None,
    min_pool_size: int = 0,
    max_pool_size: int = 50,
    timeout_seconds: int = 30,
) -> AsyncIOMotorDatabase:
    """Open the connection pool and select the working database.

    Calling it again while initialized is a no-op and returns the existing
    database.

    Args:
        connection_uri: MongoDB connection string (MONGODB_URI)
        database_name: Database to use; None selects the URI's default database
        min_pool_size: Minimum connections in pool
        max_pool_size: Maximum connections in pool
        timeout_seconds: Server selection and connect timeout

    Raises:
        ConfigurationError: If no URI is given, or the URI names no database
            and database_name is unset
    """
    global _client, _database, _database_name

    if is_initialized():
        logger.debug("Database already initialized")
        return _database

    if not connection_uri:
        raise ConfigurationError(
            message="MONGODB_URI environment variable is required",
            details={"env_var": "MONGODB_URI"},
        )

    client = AsyncIOMotorClient(
        connection_uri,
        minPoolSize=min_pool_size,
        maxPoolSize=max_pool_size,
        serverSelectionTimeoutMS=timeout_seconds * 1000,
        connectTimeoutMS=timeout_seconds * 1000,
        retryWrites=True,
        retryReads=True,
    )

    try:
        database = client[database_name] if database_name else client.get_default_database()
    except PyMongoConfigurationError as e:
        client.close()
        raise ConfigurationError(
            message="No database selected: set MONGODB_DATABASE or name one in MONGODB_URI",
            details={"env_var": "MONGODB_DATABASE"},
            original_exception=e,
        ) from e

    _client = client
    _database = database
    _database_name = database.name

    logger.info(
        f"Database connection pool ready for '{_database_name}' "
        f"(pool: {min_pool_size}-{max_pool_size})"
    )
    return database


async def verify_connection() -> None:
    """Ping the server once so startup fails fast on a bad URI.

    Raises:
        DatabaseConnectionError: If the server does not answer
    """
    client = get_client()
    try:
        await client.admin.command("ping")
    except PyMongoError as e:
        logger.error(f"Failed to connect to MongoDB: {e}")
        raise DatabaseConnectionError(
            message=f"Failed to connect to MongoDB: {e}",
            details={"database": _database_name},
            original_exception=e,
        ) from e
    logger.info(f"Connected to MongoDB: {_database_name}")


# ============================================================================
# ACCESS
# ============================================================================


def get_database() -> AsyncIOMotorDatabase:
    """Get the database instance.

    Raises:
        DatabaseConnectionError: If database not initialized
    """
    if _database is None:
        raise DatabaseConnectionError(
            message="Database not initialized. Call database.initialize() at startup.",
            details={"operation": "get_database"},
        )
    return _database


def get_client() -> AsyncIOMotorClient:
    """Get the Motor client instance.

    Raises:
        DatabaseConnectionError: If client not initialized
    """
    if _client is None:
        raise DatabaseConnectionError(
            message="Database client not initialized. Call database.initialize() at startup.",
            details={"operation": "get_client"},
        )
    return _client


def get_database_name() -> str:
    """Get the current database name."""
    if _database_name is None:
        raise DatabaseConnectionError(
            message="Database not initialized.",
            details={"operation": "get_database_name"},
        )
    return _database_name


def is_initialized() -> bool:
    return _database is not None


# ============================================================================
# SAMPLING
# ============================================================================


async def fetch_sample(collection_name: str, limit: int) -> list[dict[str, Any]]:
    """Fetch up to ``limit`` documents with no filter, sort or projection.

    Returns fewer documents for small collections and an empty list when the
    collection is empty or does not exist.
    """
    collection = get_database()[collection_name]
    cursor = collection.find({}).limit(limit)
    documents = await cursor.to_list(length=limit)
    logger.debug(f"Sampled {len(documents)} documents from '{collection_name}' (limit {limit})")
    return documents


# ============================================================================
# HEALTH CHECK
# ============================================================================


async def health_check() -> bool:
    """Check if database is reachable.

    Returns:
        True if database responds to ping, False otherwise
    """
    if _client is None:
        return False

    try:
        await _client.admin.command("ping")
        return True
    except PyMongoError as error:
        logger.warning(f"Database health check failed: {error}")
        return False


# ============================================================================
# SHUTDOWN (Call on Application Exit)
# ============================================================================


def shutdown() -> None:
    """Close database connections gracefully.

    Safe to call more than once; the signal handlers and normal exit may both
    reach it.
    """
    global _client, _database, _database_name

    if _client is not None:
        logger.info("Closing database connections...")
        _client.close()
        _client = None
        _database = None
        _database_name = None
        logger.info("Disconnected from MongoDB")
