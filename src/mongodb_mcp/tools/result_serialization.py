"""Result serialization for converting MongoDB results to JSON.

Tool results travel to the client as JSON, so BSON types (ObjectId, datetime,
Decimal128, Binary, ...) are converted to Relaxed Extended JSON with
``bson.json_util``. Relaxed mode keeps plain numbers as numbers and renders
ObjectIds as ``{"$oid": "..."}`` so the client can send them back verbatim.
"""

import json
import logging
from typing import Any

from bson import json_util
from bson.json_util import RELAXED_JSON_OPTIONS

logger = logging.getLogger(__name__)


def serialize_mongodb_result(data: Any, indent: int | None = 2) -> str:
    """Serialize MongoDB query results to a JSON string with BSON type support.

    Args:
        data: MongoDB result data (dict, list, or BSON types)
        indent: Indentation passed to the JSON encoder

    Returns:
        JSON formatted string representation of the data

    Raises:
        TypeError: If data contains non-serializable types

    Example:
        >>> from bson import ObjectId
        >>> serialize_mongodb_result({"_id": ObjectId("65f0c0ffee0000000000cafe")}, indent=None)
        '{"_id": {"$oid": "65f0c0ffee0000000000cafe"}}'
    """
    try:
        return json_util.dumps(data, json_options=RELAXED_JSON_OPTIONS, indent=indent)

    except TypeError as e:
        logger.error(f"Failed to serialize MongoDB result: {e}")
        raise


def to_json_compatible(data: Any) -> Any:
    """Convert a result into plain JSON types (dict/list/str/number/bool/None).

    FastMCP serializes tool return values itself, so tools hand it structures
    that contain no BSON objects.
    """
    return json.loads(serialize_mongodb_result(data, indent=None))
