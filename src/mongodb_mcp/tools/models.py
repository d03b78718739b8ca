"""Pydantic models for MCP tool requests and responses.

Every tool builds its request model first, so argument shape errors are
caught before any database call and reported as a VALIDATION_ERROR.

Key Components:
    - Request models for each of the ten tools
    - Write acknowledgement models (insert/update/delete)
    - ErrorResponse, the uniform failure payload

Design Principles:
    - Field descriptions double as tool documentation
    - Defaults mirror the documented tool defaults (limit 10, sampleSize 100)
    - Upper bounds come from settings.max_result_limit at validation time
"""

from typing import Any

from pydantic import BaseModel, Field, field_validator

from src.config.settings import settings

# =============================================================================
# SHARED VALIDATION
# =============================================================================


def _validate_collection_name(value: str) -> str:
    """Reject names MongoDB would refuse anyway, with a clearer message."""
    if not value or not value.strip():
        raise ValueError("Collection name must not be empty")
    if "$" in value or "\x00" in value:
        raise ValueError("Collection name must not contain '$' or null characters")
    return value


def _validate_result_limit(value: int | None) -> int | None:
    if value is not None and value > settings.max_result_limit:
        raise ValueError(f"Must not exceed max_result_limit ({settings.max_result_limit})")
    return value


class CollectionRequest(BaseModel):
    """Base for requests that target a single collection."""

    collection: str = Field(..., description="Collection name")

    @field_validator("collection")
    @classmethod
    def validate_collection(cls, value: str) -> str:
        return _validate_collection_name(value)


# =============================================================================
# QUERY MODELS
# =============================================================================


class FindRequest(CollectionRequest):
    """Request model for find."""

    filter: dict[str, Any] = Field(default_factory=dict, description="MongoDB filter query")
    projection: dict[str, Any] | None = Field(None, description="Fields to include/exclude")
    sort: dict[str, Any] | None = Field(None, description="Sort specification")
    limit: int = Field(
        default_factory=lambda: settings.default_find_limit,
        ge=1,
        validate_default=True,
        description="Maximum documents to return",
    )
    skip: int = Field(0, ge=0, description="Number of documents to skip")

    @field_validator("limit")
    @classmethod
    def validate_limit(cls, value: int) -> int:
        return _validate_result_limit(value)

    @field_validator("sort")
    @classmethod
    def validate_sort(cls, value: dict[str, Any] | None) -> dict[str, Any] | None:
        """Sort directions must be 1/-1 or an index/meta specification."""
        if value is None:
            return value
        for key, direction in value.items():
            if isinstance(direction, bool) or not isinstance(direction, (int, str, dict)):
                raise ValueError(f"Invalid sort direction for '{key}': {direction!r}")
        return value


class FindOneRequest(CollectionRequest):
    """Request model for findOne."""

    filter: dict[str, Any] = Field(default_factory=dict, description="MongoDB filter query")
    projection: dict[str, Any] | None = Field(None, description="Fields to include/exclude")


class AggregateRequest(CollectionRequest):
    """Request model for aggregate."""

    pipeline: list[dict[str, Any]] = Field(..., description="MongoDB aggregation pipeline")
    limit: int | None = Field(None, ge=1, description="Maximum documents to return")

    @field_validator("limit")
    @classmethod
    def validate_limit(cls, value: int | None) -> int | None:
        return _validate_result_limit(value)

    def stage_operators(self) -> list[str]:
        """Top-level operator of every stage, e.g. ['$match', '$group']."""
        return [key for stage in self.pipeline for key in stage]


class CountRequest(CollectionRequest):
    """Request model for count."""

    filter: dict[str, Any] = Field(default_factory=dict, description="MongoDB filter query")


class DistinctRequest(CollectionRequest):
    """Request model for distinct."""

    field: str = Field(..., min_length=1, description="Field to get distinct values for")
    filter: dict[str, Any] = Field(default_factory=dict, description="MongoDB filter query")


class ListCollectionsRequest(BaseModel):
    """Request model for listCollections."""

    filter: dict[str, Any] = Field(
        default_factory=dict, description="Optional filter for collections"
    )


class GetSchemaRequest(CollectionRequest):
    """Request model for getSchema."""

    sample_size: int = Field(
        default_factory=lambda: settings.default_sample_size,
        ge=1,
        validate_default=True,
        description="Number of documents to sample for schema analysis",
    )

    @field_validator("sample_size")
    @classmethod
    def validate_sample_size(cls, value: int) -> int:
        return _validate_result_limit(value)


# =============================================================================
# MUTATION MODELS
# =============================================================================


class InsertOneRequest(CollectionRequest):
    """Request model for insertOne."""

    document: dict[str, Any] = Field(..., description="Document to insert")


class UpdateOneRequest(CollectionRequest):
    """Request model for updateOne."""

    filter: dict[str, Any] = Field(..., description="Filter to find document")
    update: dict[str, Any] = Field(..., description="Update operations")
    upsert: bool = Field(False, description="Create if not exists")

    @field_validator("update")
    @classmethod
    def validate_update_operators(cls, value: dict[str, Any]) -> dict[str, Any]:
        """updateOne takes operator documents only; replacements go elsewhere."""
        if not value:
            raise ValueError("Update document must not be empty")
        plain_keys = [key for key in value if not key.startswith("$")]
        if plain_keys:
            raise ValueError(
                f"Update document must only contain update operators, got: {', '.join(plain_keys)}"
            )
        return value


class DeleteOneRequest(CollectionRequest):
    """Request model for deleteOne."""

    filter: dict[str, Any] = Field(..., description="Filter to find document")


# =============================================================================
# RESPONSE MODELS
# =============================================================================


class CountResponse(BaseModel):
    count: int


class InsertOneResponse(BaseModel):
    acknowledged: bool
    insertedId: Any = None


class UpdateOneResponse(BaseModel):
    acknowledged: bool
    matchedCount: int | None = None
    modifiedCount: int | None = None
    upsertedId: Any = None


class DeleteOneResponse(BaseModel):
    acknowledged: bool
    deletedCount: int | None = None


class ErrorResponse(BaseModel):
    """Standard error response format."""

    error: str = Field(..., description="Error message")
    error_code: str = Field("INTERNAL_ERROR", description="Machine-readable error identifier")
    details: dict[str, Any] | None = Field(None, description="Additional error details")
    operation: str | None = Field(None, description="Operation that failed")
