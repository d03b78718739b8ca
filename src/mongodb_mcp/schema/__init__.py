"""Schema inference over sampled documents."""

from .inference import (
    EMPTY_SAMPLE_MESSAGE,
    FieldRecord,
    FieldSummary,
    InferenceReport,
    InferenceSummary,
    SchemaInferrer,
    TypeTag,
    classify_value,
    infer_schema,
)

__all__ = [
    "EMPTY_SAMPLE_MESSAGE",
    "FieldRecord",
    "FieldSummary",
    "InferenceReport",
    "InferenceSummary",
    "SchemaInferrer",
    "TypeTag",
    "classify_value",
    "infer_schema",
]
