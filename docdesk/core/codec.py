"""
Value codec for schema-less document fields.

This module classifies dynamic field values into a closed set of type tags
and converts them to and from the text a user edits in a cell:

    - Null:      None
    - Undefined: field absent from the document (the MISSING sentinel)
    - Boolean:   True / False
    - Number:    int or float (never bool)
    - String:    str
    - Array:     list
    - Map:       dict that is neither a Timestamp nor a GeoPoint
    - Timestamp: dict whose keys are exactly _seconds and _nanoseconds (numbers)
    - GeoPoint:  dict whose keys are exactly _latitude and _longitude (numbers)

Timestamp and GeoPoint are recognized by shape only. A hand-written map that
happens to have exactly those keys is classified the same way.
"""

from __future__ import annotations

import json
import math
import re
from datetime import datetime, timezone
from enum import Enum
from typing import Any

from docdesk.core.errors import EditValidationError


class _Missing:
    """Sentinel type for a field that is not present in a document."""

    def __repr__(self) -> str:
        return "MISSING"

    def __bool__(self) -> bool:
        return False


MISSING: Any = _Missing()

TIMESTAMP_KEYS = frozenset({"_seconds", "_nanoseconds"})
GEOPOINT_KEYS = frozenset({"_latitude", "_longitude"})

# Integer literal, optionally signed
_INT_PATTERN = re.compile(r"^[+-]?\d+$")
# Decimal or exponent literal ("1.5", ".5", "1e3", "-2.5E-3")
_FLOAT_PATTERN = re.compile(r"^[+-]?(\d+\.?\d*|\.\d+)([eE][+-]?\d+)?$")
_GEOPOINT_PATTERN = re.compile(r"^\(\s*([^,\s]+)\s*,\s*([^,\s)]+)\s*\)$")
# ISO-8601 time of day with up to nanosecond fractional digits
_ISO_FRACTION_PATTERN = re.compile(r"^(.+[T ]\d{2}:\d{2}:\d{2})[.,](\d{1,9})(.*)$")


class TypeTag(Enum):
    """Type classification of a field value."""

    NULL = "null"
    UNDEFINED = "undefined"
    BOOLEAN = "boolean"
    NUMBER = "number"
    STRING = "string"
    ARRAY = "array"
    MAP = "map"
    TIMESTAMP = "timestamp"
    GEOPOINT = "geopoint"

    @property
    def is_container(self) -> bool:
        """Whether values of this type have children (arrays and maps)."""
        return self in (TypeTag.ARRAY, TypeTag.MAP)


class ParsePolicy(Enum):
    """What to do when array/map edit text is not valid JSON.

    STRICT rejects the edit. LENIENT keeps the raw text as a string value,
    widening the field's type.
    """

    STRICT = "strict"
    LENIENT = "lenient"


def _is_number(value: Any) -> bool:
    return isinstance(value, (int, float)) and not isinstance(value, bool)


def classify(value: Any) -> TypeTag:
    """Classify a value into its type tag.

    Args:
        value: Any field value, or MISSING for an absent field.

    Returns:
        The TypeTag for the value. Unknown Python types classify as STRING
        since they are displayed through str().

    Examples:
        >>> classify({"_seconds": 0, "_nanoseconds": 0})
        <TypeTag.TIMESTAMP: 'timestamp'>
        >>> classify({"_seconds": 0})
        <TypeTag.MAP: 'map'>
    """
    if value is MISSING:
        return TypeTag.UNDEFINED
    if value is None:
        return TypeTag.NULL
    if isinstance(value, bool):
        return TypeTag.BOOLEAN
    if _is_number(value):
        return TypeTag.NUMBER
    if isinstance(value, str):
        return TypeTag.STRING
    if isinstance(value, (list, tuple)):
        return TypeTag.ARRAY
    if isinstance(value, dict):
        keys = frozenset(value.keys())
        if keys == TIMESTAMP_KEYS and all(_is_number(v) for v in value.values()):
            return TypeTag.TIMESTAMP
        if keys == GEOPOINT_KEYS and all(_is_number(v) for v in value.values()):
            return TypeTag.GEOPOINT
        return TypeTag.MAP
    return TypeTag.STRING


def _format_number(value: int | float) -> str:
    # repr keeps the float marker so "3.0" parses back to a float
    return repr(value) if isinstance(value, float) else str(value)


def format_timestamp(value: dict[str, Any], precise: bool = False) -> str:
    """Render a Timestamp as ISO-8601 UTC.

    Args:
        value: A Timestamp map.
        precise: Write all nine fractional digits instead of milliseconds,
            so the text parses back to the same value.
    """
    moment = datetime.fromtimestamp(value["_seconds"], tz=timezone.utc)
    nanos = int(value["_nanoseconds"])
    fraction = f"{nanos:09d}" if precise else f"{nanos // 1_000_000:03d}"
    return moment.strftime("%Y-%m-%dT%H:%M:%S") + f".{fraction}Z"


def format_value(value: Any, tag: TypeTag | None = None) -> str:
    """Format a value as single-line display text.

    Args:
        value: The value to format.
        tag: Its type tag. Computed with classify() when omitted.

    Returns:
        Display text: "null"/"undefined" for the empty types, the string
        itself for strings, compact JSON for arrays and maps, an ISO-8601
        string for timestamps and "(lat, lon)" for geopoints.
    """
    if tag is None:
        tag = classify(value)

    if tag in (TypeTag.NULL, TypeTag.UNDEFINED):
        return tag.value
    if tag == TypeTag.STRING:
        return value if isinstance(value, str) else str(value)
    if tag == TypeTag.BOOLEAN:
        return "true" if value else "false"
    if tag == TypeTag.NUMBER:
        return _format_number(value)
    if tag == TypeTag.TIMESTAMP:
        return format_timestamp(value)
    if tag == TypeTag.GEOPOINT:
        return f"({value['_latitude']}, {value['_longitude']})"
    return json.dumps(value, separators=(",", ":"), ensure_ascii=False)


def serialize_for_edit(value: Any) -> str:
    """Return the text an editor starts with when a cell edit begins.

    Arrays and maps are pretty-printed so nested values are readable in a
    multi-line editor; timestamps keep nanosecond precision; an absent
    field starts with an empty editor.
    """
    tag = classify(value)
    if tag == TypeTag.UNDEFINED:
        return ""
    if tag.is_container:
        return json.dumps(value, indent=2, ensure_ascii=False)
    if tag == TypeTag.TIMESTAMP:
        return format_timestamp(value, precise=True)
    return format_value(value, tag)


def parse_number(text: str) -> int | float | None:
    """Parse numeric text, returning None when it is not a finite number."""
    stripped = text.strip()
    if _INT_PATTERN.match(stripped):
        return int(stripped)
    if _FLOAT_PATTERN.match(stripped):
        number = float(stripped)
        if math.isfinite(number):
            return number
    return None


def parse_timestamp(text: str) -> dict[str, int] | None:
    """Parse ISO-8601 text into a Timestamp value, or None if it does not parse."""
    stripped = text.strip()
    if stripped.endswith(("Z", "z")):
        stripped = stripped[:-1] + "+00:00"
    # datetime keeps microseconds only, so the fraction is read separately
    nanos = 0
    match = _ISO_FRACTION_PATTERN.match(stripped)
    if match:
        stripped = match.group(1) + match.group(3)
        nanos = int(match.group(2).ljust(9, "0"))
    try:
        moment = datetime.fromisoformat(stripped)
    except ValueError:
        return None
    if moment.tzinfo is None:
        moment = moment.replace(tzinfo=timezone.utc)
    seconds = math.floor(moment.timestamp())
    return {"_seconds": seconds, "_nanoseconds": nanos}


def parse_geopoint(text: str) -> dict[str, float] | None:
    """Parse "(lat, lon)" text into a GeoPoint value, or None if invalid."""
    match = _GEOPOINT_PATTERN.match(text.strip())
    if not match:
        return None
    lat = parse_number(match.group(1))
    lon = parse_number(match.group(2))
    if lat is None or lon is None:
        return None
    if not (-90 <= lat <= 90 and -180 <= lon <= 180):
        return None
    return {"_latitude": lat, "_longitude": lon}


def _parse_json_container(text: str) -> Any:
    """Parse text as a JSON array or object; raise ValueError otherwise."""
    parsed = json.loads(text)
    if not isinstance(parsed, (dict, list)):
        raise ValueError("not a JSON object or array")
    return parsed


def auto_detect(raw_text: str) -> Any:
    """Infer a value from text with no type to preserve.

    "null" becomes None, "true"/"false" booleans, numeric text a number,
    JSON object/array text the parsed structure, and anything else stays a
    string.
    """
    if raw_text == "null":
        return None
    if raw_text == "true":
        return True
    if raw_text == "false":
        return False
    number = parse_number(raw_text)
    if number is not None:
        return number
    stripped = raw_text.strip()
    if stripped.startswith(("{", "[")):
        try:
            return _parse_json_container(stripped)
        except ValueError:
            pass
    return raw_text


def parse_edit(
    raw_text: str,
    original: Any = MISSING,
    policy: ParsePolicy = ParsePolicy.STRICT,
) -> Any:
    """Convert edited text back into a value, preserving the original type.

    Args:
        raw_text: The text typed by the user.
        original: The value being replaced, or MISSING for a new field.
        policy: Handling of invalid JSON for array/map fields.

    Returns:
        The parsed value.

    Raises:
        EditValidationError: If the text cannot represent the original type
            (numbers, timestamps, geopoints, and arrays/maps under STRICT).
    """
    tag = classify(original)

    if tag == TypeTag.NUMBER:
        number = parse_number(raw_text)
        if number is None:
            raise EditValidationError(f"Not a number: {raw_text!r}", raw_text)
        return number

    if tag == TypeTag.STRING:
        return raw_text

    if tag == TypeTag.BOOLEAN:
        if raw_text in ("true", "false"):
            return raw_text == "true"
        return auto_detect(raw_text)

    if tag == TypeTag.NULL:
        if raw_text == "null":
            return None
        return auto_detect(raw_text)

    if tag.is_container:
        try:
            return json.loads(raw_text)
        except ValueError as e:
            if policy == ParsePolicy.LENIENT:
                return raw_text
            raise EditValidationError(f"Invalid JSON: {e}", raw_text) from e

    if tag == TypeTag.TIMESTAMP:
        if raw_text == "null":
            return None
        timestamp = parse_timestamp(raw_text)
        if timestamp is None:
            raise EditValidationError(f"Not an ISO-8601 timestamp: {raw_text!r}", raw_text)
        return timestamp

    if tag == TypeTag.GEOPOINT:
        if raw_text == "null":
            return None
        geopoint = parse_geopoint(raw_text)
        if geopoint is None:
            raise EditValidationError(f"Not a (lat, lon) pair: {raw_text!r}", raw_text)
        return geopoint

    return auto_detect(raw_text)


def values_equal(left: Any, right: Any) -> bool:
    """Structural equality that does not conflate booleans with numbers."""
    if isinstance(left, bool) or isinstance(right, bool):
        return type(left) is type(right) and left == right
    if isinstance(left, dict) and isinstance(right, dict):
        if left.keys() != right.keys():
            return False
        return all(values_equal(left[k], right[k]) for k in left)
    if isinstance(left, (list, tuple)) and isinstance(right, (list, tuple)):
        if len(left) != len(right):
            return False
        return all(values_equal(a, b) for a, b in zip(left, right))
    if left is MISSING or right is MISSING:
        return left is right
    if _is_number(left) and _is_number(right):
        return left == right
    return type(left) is type(right) and left == right
