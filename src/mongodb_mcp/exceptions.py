"""Exception hierarchy for the MongoDB MCP server.

Design Overview:
================

All server errors inherit from MCPServerError so a tool wrapper can catch
them with one except clause and turn them into a structured error payload
for the client. Categories follow the failure domain:

- DatabaseError: connection, query and timeout failures reported by the driver
- ValidationError: malformed tool arguments and rejected operations
- ConfigurationError: startup problems (missing MONGODB_URI, bad pool sizes)

Each exception carries:
- error_code: machine-readable identifier (e.g., "DB_CONNECTION_FAILED")
- message: human-readable description
- details: extra context (collection, operation, offending stage, ...)
- timestamp / request_id: for correlating logs with client reports

Schema inference never raises for irregular documents; bad records are
skipped inside the inferrer and do not appear in this hierarchy.

Usage Example:
--------------
```python
try:
    count = await db[collection].count_documents(query)
except pymongo.errors.OperationFailure as e:
    raise QueryExecutionError(
        message="Count failed",
        details={"collection": collection},
        original_exception=e,
    )
```
"""

import traceback
from dataclasses import dataclass, field
from datetime import datetime, timezone
from typing import Any
from uuid import uuid4

# =============================================================================
# BASE EXCEPTION CLASS
# =============================================================================


@dataclass(frozen=True)
class MCPServerError(Exception):
    """Base exception for all MCP server errors.

    Attributes:
    -----------
    message : str
        Human-readable error description for developers and logs
    error_code : str
        Machine-readable error identifier (e.g., "VALIDATION_ERROR")
    details : dict
        Additional context about the error (collection, operation, ...)
    timestamp : str
        ISO 8601 timestamp when error occurred
    request_id : str
        Unique identifier for this request/operation
    http_status_code : int
        Status code equivalent, kept for clients that map errors to HTTP
    original_exception : Optional[Exception]
        The underlying exception that caused this error

    Example:
    --------
    >>> raise MCPServerError(
    ...     message="Request validation failed",
    ...     error_code="VALIDATION_ERROR",
    ...     details={"field": "sampleSize", "value": 0},
    ... )
    """

    message: str
    error_code: str
    details: dict[str, Any] = field(default_factory=dict)
    timestamp: str = field(default_factory=lambda: datetime.now(timezone.utc).isoformat())
    request_id: str = field(default_factory=lambda: str(uuid4()))
    http_status_code: int = 500
    original_exception: Exception | None = None

    def __str__(self) -> str:
        """Human-readable error representation for logs."""
        error_msg = f"[{self.error_code}] {self.message}"
        if self.details:
            error_msg += f" | Details: {self.details}"
        if self.original_exception:
            error_msg += (
                f" | Caused by: {type(self.original_exception).__name__}: {self.original_exception}"
            )
        return error_msg

    def __repr__(self) -> str:
        """Developer-friendly representation for debugging."""
        return (
            f"{self.__class__.__name__}("
            f"error_code='{self.error_code}', "
            f"message='{self.message}', "
            f"request_id='{self.request_id}', "
            f"timestamp='{self.timestamp}'"
            f")"
        )

    def to_dict(self) -> dict[str, Any]:
        """Convert exception to dictionary for JSON serialization.

        Returns:
        --------
        dict with keys: error, error_code, details, timestamp, request_id,
        http_status_code and, when chained, original_error
        """
        error_dict = {
            "error": self.message,
            "error_code": self.error_code,
            "details": self.details,
            "timestamp": self.timestamp,
            "request_id": self.request_id,
            "http_status_code": self.http_status_code,
        }

        if self.original_exception:
            error_dict["original_error"] = {
                "type": type(self.original_exception).__name__,
                "message": str(self.original_exception),
                "traceback": traceback.format_exception(
                    type(self.original_exception),
                    self.original_exception,
                    self.original_exception.__traceback__,
                ),
            }

        return error_dict


# =============================================================================
# DATABASE EXCEPTIONS
# =============================================================================


@dataclass(frozen=True)
class DatabaseError(MCPServerError):
    """Base class for all database-related errors."""

    error_code: str = "DATABASE_ERROR"
    http_status_code: int = 503


@dataclass(frozen=True)
class DatabaseConnectionError(DatabaseError):
    """Database connection failures.

    Use Case:
    ---------
    - MongoDB server unreachable at startup
    - Authentication failure
    - Gateway used before initialize() or after shutdown()

    Example:
    --------
    >>> raise DatabaseConnectionError(
    ...     message="Failed to connect to MongoDB",
    ...     details={"uri": "mongodb://***:***@db:27017", "timeout_s": 30},
    ... )
    """

    error_code: str = "DB_CONNECTION_FAILED"
    http_status_code: int = 503


@dataclass(frozen=True)
class QueryExecutionError(DatabaseError):
    """Query execution failures reported by the server.

    Use Case:
    ---------
    - Unknown query or update operator
    - Invalid aggregation stage
    - Duplicate key on insert
    """

    error_code: str = "QUERY_EXECUTION_FAILED"
    http_status_code: int = 500


@dataclass(frozen=True)
class DatabaseTimeoutError(DatabaseError):
    """Database operation exceeded its time limit."""

    error_code: str = "DB_TIMEOUT"
    http_status_code: int = 504


# =============================================================================
# VALIDATION EXCEPTIONS
# =============================================================================


@dataclass(frozen=True)
class ValidationError(MCPServerError):
    """Tool argument validation failures.

    These are caller errors: the request never reaches the database.

    Example:
    --------
    >>> raise ValidationError(
    ...     message="Invalid parameters",
    ...     details={"errors": ["limit: Input should be greater than or equal to 0"]},
    ... )
    """

    error_code: str = "VALIDATION_ERROR"
    http_status_code: int = 400


@dataclass(frozen=True)
class InvalidQueryError(ValidationError):
    """Structurally invalid filter, pipeline or update document."""

    error_code: str = "INVALID_QUERY"
    http_status_code: int = 400


@dataclass(frozen=True)
class ReadOnlyViolationError(ValidationError):
    """Write attempted while the server runs in read-only mode.

    Example:
    --------
    >>> raise ReadOnlyViolationError(
    ...     message="Operation not allowed in read-only mode",
    ...     details={"operation": "insertOne", "collection": "users"},
    ... )
    """

    error_code: str = "READ_ONLY_VIOLATION"
    http_status_code: int = 403


# =============================================================================
# CONFIGURATION EXCEPTIONS
# =============================================================================


@dataclass(frozen=True)
class ConfigurationError(MCPServerError):
    """Configuration or initialization errors.

    These should crash the server at startup rather than being caught and
    handled per request.

    Example:
    --------
    >>> raise ConfigurationError(
    ...     message="MONGODB_URI environment variable is required",
    ...     details={"env_var": "MONGODB_URI"},
    ... )
    """

    error_code: str = "CONFIGURATION_ERROR"
    http_status_code: int = 500


# =============================================================================
# UTILITY FUNCTIONS
# =============================================================================


def convert_to_mcp_exception(
    exception: Exception,
    default_message: str = "An unexpected error occurred",
    context: dict[str, Any] | None = None,
) -> MCPServerError:
    """Convert any exception to an appropriate MCP exception.

    Used at the tool boundary so that every failure reaches the client as a
    structured error with a stable error_code.

    Args:
    -----
    exception : Exception
        The original exception to convert
    default_message : str
        Fallback message if exception type is unknown
    context : dict, optional
        Additional context to include in error details

    Returns:
    --------
    MCPServerError or subclass
        Appropriate MCP exception for the given error

    Example:
    --------
    >>> try:
    ...     await db["users"].find(query).to_list(length=None)
    ... except Exception as e:
    ...     raise convert_to_mcp_exception(e, context={"collection": "users"})
    """
    import pydantic
    import pymongo.errors

    context = context or {}

    if isinstance(exception, MCPServerError):
        return exception

    if isinstance(
        exception, (pymongo.errors.ConnectionFailure, pymongo.errors.ServerSelectionTimeoutError)
    ):
        return DatabaseConnectionError(
            message="Failed to connect to database",
            details={**context, "error": str(exception)},
            original_exception=exception,
        )

    # ExecutionTimeout subclasses OperationFailure, so it must be checked first
    if isinstance(exception, pymongo.errors.ExecutionTimeout):
        return DatabaseTimeoutError(
            message="Database operation timed out",
            details={**context, "error": str(exception)},
            original_exception=exception,
        )

    if isinstance(exception, pymongo.errors.PyMongoError):
        return QueryExecutionError(
            message="Database query failed",
            details={**context, "error": str(exception)},
            original_exception=exception,
        )

    if isinstance(exception, pydantic.ValidationError):
        return ValidationError(
            message="Invalid parameters",
            details={**context, "errors": format_validation_errors(exception)},
            original_exception=exception,
        )

    return MCPServerError(
        message=default_message,
        error_code="INTERNAL_ERROR",
        details={**context, "error_type": type(exception).__name__, "error": str(exception)},
        original_exception=exception,
    )


def format_validation_errors(exception: Any) -> list[str]:
    """Flatten a pydantic ValidationError into "path: message" strings."""
    return [
        f"{'.'.join(str(part) for part in error['loc'])}: {error['msg']}"
        for error in exception.errors()
    ]
