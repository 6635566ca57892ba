"""
Severity-aware tolerant decoding of shared-stream JSON payloads.

The shared-streams API is loosely typed: the same logical field can arrive
as a JSON number in one response and as a digit string in the next, and
display fields are sometimes missing altogether. Instead of writing
per-field fallbacks, each response type declares a table of FieldSpec
entries and one generic routine, decode(), applies it.

Severities:
    REQUIRED  missing/null or wrong shape raises SchemaViolationError
    OPTIONAL  missing/null gives the default silently;
              wrong shape gives the default and records a warning
    LENIENT   missing/null or wrong shape gives the default and records
              a warning

Warnings are appended to an explicit DecodeEvents collector passed by the
caller; decode() keeps no module or thread state.

Example:
    events = DecodeEvents()
    record = decode(
        {"fileSize": "42"},
        (FieldSpec("fileSize", "file_size", Severity.OPTIONAL, Shape.INTEGER),),
        events,
    )
    record["file_size"]  # 42
"""

import copy
import re
from dataclasses import dataclass
from enum import Enum
from typing import Any, Iterator

from icloud_album.core.exceptions import SchemaViolationError


_DIGITS = re.compile(r"[0-9]+")


class Severity(Enum):
    """Decode strictness for one field."""
    REQUIRED = "required"
    OPTIONAL = "optional"
    LENIENT = "lenient"


class Shape(Enum):
    """Expected JSON shape of a field."""
    STRING = "string"
    INTEGER = "integer"
    LIST = "list"
    MAPPING = "mapping"
    ANY = "any"


@dataclass(frozen=True)
class FieldSpec:
    """
    Declarative decode rule for one JSON field.

    Attributes:
        key: Field name in the JSON object (e.g. "photoGuid").
        attr: Key used in the decoded dict (e.g. "guid").
        severity: How strictly to treat a missing or malformed value.
        shape: Expected JSON shape.
        default: Value used when the field is missing or malformed.
                 None means the shape's empty value ([] for LIST,
                 {} for MAPPING, None otherwise).
        fields: For LIST, the spec of each element; for MAPPING, the spec
                of each value. None keeps elements as raw JSON.
    """
    key: str
    attr: str
    severity: Severity
    shape: Shape
    default: Any = None
    fields: tuple["FieldSpec", ...] | None = None

    def make_default(self) -> Any:
        """Return a fresh copy of the default value."""
        if self.default is not None:
            return copy.deepcopy(self.default)
        if self.shape is Shape.LIST:
            return []
        if self.shape is Shape.MAPPING:
            return {}
        return None


@dataclass(frozen=True)
class LenientCoercionWarning:
    """
    Non-fatal decode event.

    Attributes:
        field: Dotted path of the field, e.g. "photos[0].caption".
        reason: What was wrong ("missing", "expected an integer, got 'abc'").
    """
    field: str
    reason: str

    def __str__(self) -> str:
        return f"{self.field}: {self.reason}"


class DecodeEvents:
    """
    Collector for LenientCoercionWarning events.

    One collector is created per album resolution and passed explicitly
    to every decode() call made on its behalf.
    """

    def __init__(self) -> None:
        self.warnings: list[LenientCoercionWarning] = []

    def warn(self, field: str, reason: str) -> None:
        """Record a warning for a field."""
        self.warnings.append(LenientCoercionWarning(field=field, reason=reason))

    def __iter__(self) -> Iterator[LenientCoercionWarning]:
        return iter(self.warnings)

    def __len__(self) -> int:
        return len(self.warnings)


class _ShapeMismatch(Exception):
    """A value did not match its FieldSpec shape."""


def decode(
    raw: Any,
    fields: tuple[FieldSpec, ...],
    events: DecodeEvents,
    path: str = ""
) -> dict[str, Any]:
    """
    Decode a JSON object according to a FieldSpec table.

    Args:
        raw: Parsed JSON value; must be an object.
        fields: Field table describing the object.
        events: Collector receiving non-fatal warnings.
        path: Dotted path of raw inside the whole payload, used in
              warnings and errors. Empty for the root object.

    Returns:
        Dict keyed by FieldSpec.attr for every declared field. Keys not
        declared in the table are ignored.

    Raises:
        SchemaViolationError: If raw is not an object, or a REQUIRED field
                              (here or in a nested record) is missing or
                              malformed.
    """
    if not isinstance(raw, dict):
        raise SchemaViolationError(path or "<root>", f"expected an object, got {_describe(raw)}")

    result: dict[str, Any] = {}
    for spec in fields:
        field_path = f"{path}.{spec.key}" if path else spec.key
        value = raw.get(spec.key)

        if value is None:
            if spec.severity is Severity.REQUIRED:
                raise SchemaViolationError(field_path, "missing")
            if spec.severity is Severity.LENIENT:
                events.warn(field_path, "missing")
            result[spec.attr] = spec.make_default()
            continue

        try:
            result[spec.attr] = _coerce(value, spec, events, field_path)
        except _ShapeMismatch as e:
            if spec.severity is Severity.REQUIRED:
                raise SchemaViolationError(field_path, str(e)) from None
            events.warn(field_path, str(e))
            result[spec.attr] = spec.make_default()

    return result


def coerce_integer(value: Any) -> int | None:
    """
    Read a non-negative integer that may be serialized as a string.

    Args:
        value: A JSON value.

    Returns:
        The integer, or None when value is neither a non-negative JSON
        number with no fractional part nor a string of ASCII digits.
    """
    if isinstance(value, bool):
        return None
    if isinstance(value, int):
        return value if value >= 0 else None
    if isinstance(value, float):
        return int(value) if value.is_integer() and value >= 0 else None
    if isinstance(value, str) and _DIGITS.fullmatch(value):
        return int(value)
    return None


def _coerce(value: Any, spec: FieldSpec, events: DecodeEvents, path: str) -> Any:
    """Check and convert one present, non-null value."""
    shape = spec.shape

    if shape is Shape.ANY:
        return value

    if shape is Shape.STRING:
        if not isinstance(value, str):
            raise _ShapeMismatch(f"expected a string, got {_describe(value)}")
        return value

    if shape is Shape.INTEGER:
        number = coerce_integer(value)
        if number is None:
            raise _ShapeMismatch(f"expected an integer, got {_describe(value)}")
        return number

    if shape is Shape.LIST:
        if not isinstance(value, list):
            raise _ShapeMismatch(f"expected a list, got {_describe(value)}")
        if spec.fields is None:
            return list(value)
        return [
            decode(item, spec.fields, events, f"{path}[{index}]")
            for index, item in enumerate(value)
        ]

    # Shape.MAPPING
    if not isinstance(value, dict):
        raise _ShapeMismatch(f"expected an object, got {_describe(value)}")
    if spec.fields is None:
        return dict(value)
    return {
        key: decode(item, spec.fields, events, f"{path}.{key}")
        for key, item in value.items()
    }


def _describe(value: Any) -> str:
    """Short description of a JSON value for messages."""
    if isinstance(value, str):
        shown = value if len(value) <= 40 else value[:37] + "..."
        return repr(shown)
    if isinstance(value, bool):
        return "a boolean"
    if isinstance(value, (int, float)):
        return f"number {value}"
    if isinstance(value, list):
        return "a list"
    if isinstance(value, dict):
        return "an object"
    return type(value).__name__
