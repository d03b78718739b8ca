"""Rewrite string identifiers into ObjectIds before queries reach the driver.

MCP clients send JSON, which has no ObjectId type, so ``{"_id": "65f0..."}``
would never match a stored ObjectId. This module applies a name-based rule:

- any string that is a 24-character hex ObjectId becomes an ObjectId;
- under keys named ``_id`` or ending in ``_id``, ``Id``, ``_ids`` or ``Ids``,
  ObjectId-shaped strings are converted directly, inside lists and inside an
  ``$in`` operator list as well.

The rule is applied to filters, pipelines, inserted documents and updates.
It is never applied to schema inference input, which must describe data as
stored.
"""

from collections.abc import Mapping
from typing import Any

from bson import ObjectId

ID_KEY_SUFFIXES = ("_id", "Id", "_ids", "Ids")


def is_identifier_key(key: str) -> bool:
    """True for ``_id`` and keys ending in an identifier suffix."""
    return key == "_id" or key.endswith(ID_KEY_SUFFIXES)


def _coerce_scalar(value: Any) -> Any:
    if isinstance(value, str) and ObjectId.is_valid(value):
        return ObjectId(value)
    return value


def _coerce_identifier_value(value: Any) -> Any:
    if isinstance(value, str):
        return _coerce_scalar(value)
    if isinstance(value, list):
        return [_coerce_scalar(item) for item in value]
    if isinstance(value, Mapping) and "$in" in value:
        in_values = value["$in"]
        return {
            "$in": [_coerce_scalar(item) for item in in_values]
            if isinstance(in_values, list)
            else in_values
        }
    return convert_to_object_ids(value)


def convert_to_object_ids(obj: Any) -> Any:
    """Return a copy of ``obj`` with identifier strings converted to ObjectIds.

    Falsy values and non-container scalars other than ObjectId-shaped strings
    are returned unchanged. The input is never modified.

    Example:
        >>> convert_to_object_ids({"userId": "65f0c0ffee0000000000cafe", "n": 1})
        {'userId': ObjectId('65f0c0ffee0000000000cafe'), 'n': 1}
    """
    if not obj:
        return obj

    if isinstance(obj, str):
        return _coerce_scalar(obj)

    if isinstance(obj, list):
        return [convert_to_object_ids(item) for item in obj]

    if isinstance(obj, Mapping):
        converted: dict[str, Any] = {}
        for key, value in obj.items():
            if is_identifier_key(key):
                converted[key] = _coerce_identifier_value(value)
            else:
                converted[key] = convert_to_object_ids(value)
        return converted

    return obj
