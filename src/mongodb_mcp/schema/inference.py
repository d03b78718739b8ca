"""Sampled schema inference for schemaless MongoDB collections.

Given a bounded sample of documents, this module produces a field-level
structural summary: every dotted field path observed, the coarse types seen
at that path, up to three example values and how often the path occurs.
The report lets an MCP client write correct queries without guessing field
names or types.

The inferrer is a pure function of its input. It performs no I/O, keeps no
state between calls and never mutates the documents it reads; fetching the
sample is the caller's job (see ``database.fetch_sample``).

Algorithm:
    For each document, walk its keys depth-first. Every key produces a field
    path (``prefix.key``) whose record is created on first sight. A path is
    counted at most once per document, its value is classified into a
    ``TypeTag`` and, while fewer than three non-null examples are held, the
    value is kept as an example. Only ``object`` values are descended into;
    arrays are opaque leaves even when they contain documents.

Example:
    >>> report = infer_schema(
    ...     [{"_id": "1", "name": "Al", "tags": ["x"]}, {"_id": "2", "name": 42}],
    ...     collection="people",
    ... )
    >>> report.fields["name"].types
    ['string', 'number']
    >>> report.fields["tags"].frequency, report.fields["tags"].percentage
    ('1/2', 50)
"""

import datetime
import logging
import math
from collections.abc import Iterator, Mapping, Sequence
from dataclasses import dataclass, field
from decimal import Decimal
from enum import Enum
from typing import Any

from bson import ObjectId
from bson.datetime_ms import DatetimeMS
from bson.decimal128 import Decimal128
from bson.timestamp import Timestamp
from pydantic import BaseModel, ConfigDict, Field

logger = logging.getLogger(__name__)

MAX_EXAMPLES = 3
DEFAULT_SAMPLE_SIZE = 100
EMPTY_SAMPLE_MESSAGE = "No documents found in collection"


class TypeTag(str, Enum):
    """Closed set of coarse type tags reported for a field path."""

    ARRAY = "array"
    NULL = "null"
    DATE = "date"
    OBJECT_ID = "ObjectId"
    STRING = "string"
    NUMBER = "number"
    BOOLEAN = "boolean"
    OBJECT = "object"
    UNKNOWN = "unknown"


_DATE_TYPES = (datetime.date, DatetimeMS, Timestamp)
_NUMBER_TYPES = (int, float, Decimal, Decimal128)


def classify_value(value: Any) -> TypeTag:
    """Map a document value to its type tag.

    Precedence is fixed and the first match wins: array, null, date,
    ObjectId, then the primitive kind. ``bool`` is tested before numbers
    because it subclasses ``int``. Only ``list`` and ``tuple`` count as
    arrays, so text and binary values never do.
    """
    if isinstance(value, (list, tuple)):
        return TypeTag.ARRAY
    if value is None:
        return TypeTag.NULL
    if isinstance(value, _DATE_TYPES):
        return TypeTag.DATE
    if isinstance(value, ObjectId):
        return TypeTag.OBJECT_ID
    if isinstance(value, bool):
        return TypeTag.BOOLEAN
    if isinstance(value, _NUMBER_TYPES):
        return TypeTag.NUMBER
    if isinstance(value, str):
        return TypeTag.STRING
    if isinstance(value, Mapping):
        return TypeTag.OBJECT
    return TypeTag.UNKNOWN


# =============================================================================
# ACCUMULATOR
# =============================================================================


@dataclass
class FieldRecord:
    """Per-path accumulator owned by a single inference run.

    ``types`` is a dict used as an insertion-ordered set so the public view
    lists tags in first-seen order.
    """

    types: dict[TypeTag, None] = field(default_factory=dict)
    examples: list[Any] = field(default_factory=list)
    presence_count: int = 0

    def observe(self, tag: TypeTag, value: Any) -> None:
        self.types.setdefault(tag, None)
        if value is not None and len(self.examples) < MAX_EXAMPLES:
            self.examples.append(value)


# =============================================================================
# PUBLIC REPORT MODELS
# =============================================================================


class FieldSummary(BaseModel):
    """Public view of one field path."""

    types: list[str] = Field(..., description="Observed type tags in first-seen order")
    examples: list[Any] = Field(
        default_factory=list, description="Up to three non-null example values"
    )
    frequency: str = Field(..., description="'<presence>/<sampleSize>'")
    percentage: int = Field(..., ge=0, le=100, description="Rounded presence percentage")


class InferenceSummary(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    total_fields: int = Field(..., alias="totalFields")
    total_documents: int = Field(..., alias="totalDocuments")


class InferenceReport(BaseModel):
    """Structural summary of a sampled collection.

    ``message`` is only set for an empty sample, in which case ``fields`` is
    empty and no frequencies were computed.
    """

    model_config = ConfigDict(populate_by_name=True)

    collection: str
    sample_size: int = Field(..., alias="sampleSize", ge=0)
    fields: dict[str, FieldSummary] = Field(default_factory=dict)
    summary: InferenceSummary
    message: str | None = None

    @property
    def is_empty(self) -> bool:
        return self.sample_size == 0

    def to_response(self) -> dict[str, Any]:
        """Dump with the camelCase keys clients expect, omitting unset message."""
        return self.model_dump(by_alias=True, exclude_none=True)


# =============================================================================
# INFERRER
# =============================================================================


def round_half_up(value: float) -> int:
    """Round .5 away from zero for positive values (Python's round() is banker's)."""
    return int(math.floor(value + 0.5))


def _walk(document: Mapping, prefix: str = "") -> Iterator[tuple[str, TypeTag, Any]]:
    """Yield (path, tag, value) for every key reachable without entering arrays."""
    for key, value in document.items():
        path = f"{prefix}.{key}" if prefix else str(key)
        tag = classify_value(value)
        yield path, tag, value
        if tag is TypeTag.OBJECT:
            yield from _walk(value, path)


class SchemaInferrer:
    """Folds sampled documents into an ``InferenceReport``.

    An instance holds no per-run state; every call to ``infer`` builds its own
    accumulator, so one inferrer can serve concurrent tool calls.
    """

    def infer(
        self,
        samples: Sequence[Any],
        collection: str,
        requested_sample_size: int | None = DEFAULT_SAMPLE_SIZE,
    ) -> InferenceReport:
        """Build the structural report for ``samples``.

        Args:
            samples: Documents already fetched and capped by the caller
            collection: Collection name echoed in the report
            requested_sample_size: Size the caller asked for; only used for
                logging since frequencies use the actual sample length

        Returns:
            InferenceReport with one FieldSummary per observed path
        """
        requested = requested_sample_size or DEFAULT_SAMPLE_SIZE
        sample_size = len(samples)

        if sample_size == 0:
            logger.info(f"No documents sampled from '{collection}'")
            return InferenceReport(
                collection=collection,
                sample_size=0,
                fields={},
                summary=InferenceSummary(total_fields=0, total_documents=0),
                message=EMPTY_SAMPLE_MESSAGE,
            )

        records: dict[str, FieldRecord] = {}
        skipped = 0
        for index, document in enumerate(samples):
            if not self._fold_document(records, document, index, collection):
                skipped += 1

        fields = {
            path: FieldSummary(
                types=[tag.value for tag in record.types],
                examples=list(record.examples),
                frequency=f"{record.presence_count}/{sample_size}",
                percentage=round_half_up(record.presence_count / sample_size * 100),
            )
            for path, record in records.items()
        }

        logger.info(
            f"Inferred {len(fields)} fields for '{collection}' from {sample_size} "
            f"documents (requested {requested}, skipped {skipped})"
        )

        return InferenceReport(
            collection=collection,
            sample_size=sample_size,
            fields=fields,
            summary=InferenceSummary(total_fields=len(fields), total_documents=sample_size),
        )

    def _fold_document(
        self,
        records: dict[str, FieldRecord],
        document: Any,
        index: int,
        collection: str,
    ) -> bool:
        """Merge one document into ``records``; return False if it was skipped.

        Observations are collected before any record is touched, so a document
        that fails half-way contributes nothing.
        """
        if not isinstance(document, Mapping):
            logger.warning(
                f"Skipping non-document sample #{index} in '{collection}': "
                f"{type(document).__name__}"
            )
            return False

        try:
            observations = list(_walk(document))
        except Exception as e:
            logger.warning(
                f"Skipping unreadable sample #{index} in '{collection}': {e}",
                exc_info=True,
            )
            return False

        seen: set[str] = set()
        for path, tag, value in observations:
            record = records.get(path)
            if record is None:
                record = records[path] = FieldRecord()
            if path not in seen:
                seen.add(path)
                record.presence_count += 1
            record.observe(tag, value)
        return True


def infer_schema(
    samples: Sequence[Any],
    collection: str,
    requested_sample_size: int | None = DEFAULT_SAMPLE_SIZE,
) -> InferenceReport:
    """Convenience wrapper around ``SchemaInferrer().infer``."""
    return SchemaInferrer().infer(samples, collection, requested_sample_size)
