"""Validation of decoded JSON values against tagged schemas.

Validation is fail-fast: the first violated constraint anywhere in the value
stops the walk and is reported as a single :class:`ValidationError` whose
``path`` locates the offending field from the root (``""``), using ``.key``
for object properties and ``[i]`` for array items.

Successful validation returns a normalized copy of the input: undeclared
object properties are dropped, declared defaults are injected, and whole
floats accepted by an integer schema become ``int``. Validating a normalized
value again yields an equal value.
"""

from __future__ import annotations

import copy
import math
import re
from dataclasses import dataclass
from datetime import datetime
from typing import Any, Callable, Mapping
from urllib.parse import urlsplit

from .schema import (
    ArraySchema,
    BooleanSchema,
    IntegerSchema,
    NullSchema,
    NumberSchema,
    ObjectSchema,
    Schema,
    SchemaType,
    StringFormat,
    StringSchema,
)

__all__ = [
    "SchemaValidator",
    "ValidationError",
    "ValidationResult",
    "validate",
    "safe_validate",
    "is_valid_email",
    "is_valid_uri",
    "is_valid_date_time",
]


class ValidationError(ValueError):
    """A value does not satisfy its schema.

    Attributes:
        path: Field locator from the schema root (``""`` for the root itself).
        message: Human-readable description of the violated constraint.
        value: The offending raw value.
    """

    def __init__(self, message: str, path: str, value: Any) -> None:
        super().__init__(message)
        self.message = message
        self.path = path
        self.value = value

    def __str__(self) -> str:
        return f"{self.path or '<root>'}: {self.message}"

    def to_dict(self) -> dict[str, Any]:
        return {"path": self.path, "message": self.message, "value": self.value}


@dataclass(slots=True, frozen=True)
class ValidationResult:
    """Outcome of :func:`safe_validate`."""

    ok: bool
    value: Any = None
    error: ValidationError | None = None


# -----------------------------------------------------------------------------
# Format predicates
# -----------------------------------------------------------------------------

_EMAIL_PATTERN = re.compile(r"^[^\s@]+@[^\s@]+\.[^\s@]+$")
_URI_SCHEME_PATTERN = re.compile(r"^[A-Za-z][A-Za-z0-9+.\-]*$")
_DATE_TIME_PATTERN = re.compile(
    r"^(\d{4}-\d{2}-\d{2})"
    r"(?:[Tt ](\d{2}:\d{2}:\d{2})(?:\.(\d+))?([Zz]|[+-]\d{2}:?\d{2})?)?$"
)


def is_valid_email(value: str) -> bool:
    return bool(_EMAIL_PATTERN.match(value))


def is_valid_uri(value: str) -> bool:
    """Absolute URI check: a scheme plus a non-empty remainder, no whitespace."""

    if not value or any(ch.isspace() for ch in value):
        return False
    try:
        parts = urlsplit(value)
    except ValueError:
        return False
    if not parts.scheme or not _URI_SCHEME_PATTERN.match(parts.scheme):
        return False
    return bool(parts.netloc or parts.path)


def is_valid_date_time(value: str) -> bool:
    """RFC 3339 date-time, or a bare ISO 8601 date.

    Fractions and offsets are rewritten into the one form every supported
    ``datetime.fromisoformat`` accepts before the calendar check.
    """

    match = _DATE_TIME_PATTERN.match(value.strip())
    if match is None:
        return False
    day, clock, fraction, offset = match.groups()
    text = day
    if clock is not None:
        text += f"T{clock}"
        if fraction:
            text += "." + fraction[:6].ljust(6, "0")
        if offset:
            text += _normalize_offset(offset)
    try:
        datetime.fromisoformat(text)
    except ValueError:
        return False
    return True


def _normalize_offset(offset: str) -> str:
    if offset in ("Z", "z"):
        return "+00:00"
    sign, digits = offset[0], offset[1:].replace(":", "")
    return f"{sign}{digits[:2]}:{digits[2:]}"


_FORMAT_PREDICATES: Mapping[StringFormat, Callable[[str], bool]] = {
    StringFormat.EMAIL: is_valid_email,
    StringFormat.URI: is_valid_uri,
    StringFormat.DATE_TIME: is_valid_date_time,
}


# -----------------------------------------------------------------------------
# Validator
# -----------------------------------------------------------------------------


def _is_number(value: Any) -> bool:
    return isinstance(value, (int, float)) and not isinstance(value, bool)


class SchemaValidator:
    """Recursive validator dispatching on :class:`SchemaType`."""

    def __init__(self) -> None:
        self._handlers: dict[SchemaType, Callable[[Any, str, Any], Any]] = {
            SchemaType.STRING: self.validate_string,
            SchemaType.NUMBER: self.validate_number,
            SchemaType.INTEGER: self.validate_integer,
            SchemaType.BOOLEAN: self.validate_boolean,
            SchemaType.NULL: self.validate_null,
            SchemaType.ARRAY: self.validate_array,
            SchemaType.OBJECT: self.validate_object,
        }

    def validate(self, schema: Schema, value: Any, path: str = "") -> Any:
        handler = self._handlers.get(getattr(schema, "type", None))  # type: ignore[arg-type]
        if handler is None:
            raise ValidationError(f"invalid schema {schema!r}", path, value)
        return handler(schema, path, value)

    def validate_string(self, schema: StringSchema, path: str, value: Any) -> str:
        if not isinstance(value, str):
            raise ValidationError(f"input is not a string: {value!r}", path, value)
        length = len(value)
        if schema.max_length is not None and length > schema.max_length:
            raise ValidationError(f"string is too long: {length} > {schema.max_length}", path, value)
        if schema.min_length is not None and length < schema.min_length:
            raise ValidationError(f"string is too short: {length} < {schema.min_length}", path, value)
        if schema.enum is not None and value not in schema.enum:
            raise ValidationError(f"string is not in enum {list(schema.enum)!r}: {value!r}", path, value)
        if schema.format is not None and not _FORMAT_PREDICATES[schema.format](value):
            raise ValidationError(f"string is not a valid {schema.format.value}: {value!r}", path, value)
        return value

    def validate_number(self, schema: NumberSchema, path: str, value: Any) -> float | int:
        self._check_number(path, value)
        self._check_numeric_constraints(schema, path, value)
        return value

    def validate_integer(self, schema: IntegerSchema, path: str, value: Any) -> int:
        self._check_number(path, value)
        if isinstance(value, float):
            if not value.is_integer():
                raise ValidationError(f"number is not an integer: {value!r}", path, value)
            value = int(value)
        self._check_numeric_constraints(schema, path, value)
        return value

    def validate_boolean(self, schema: BooleanSchema, path: str, value: Any) -> bool:
        if not isinstance(value, bool):
            raise ValidationError(f"input is not a boolean: {value!r}", path, value)
        return value

    def validate_null(self, schema: NullSchema, path: str, value: Any) -> None:
        if value is not None:
            raise ValidationError(f"input is not null: {value!r}", path, value)
        return None

    def validate_array(self, schema: ArraySchema, path: str, value: Any) -> list[Any]:
        if not isinstance(value, (list, tuple)):
            raise ValidationError(f"input is not an array: {value!r}", path, value)
        count = len(value)
        if schema.min_items is not None and count < schema.min_items:
            raise ValidationError(f"array is too short: {count} < {schema.min_items}", path, value)
        if schema.max_items is not None and count > schema.max_items:
            raise ValidationError(f"array is too long: {count} > {schema.max_items}", path, value)
        return [self.validate(schema.items, item, f"{path}[{index}]") for index, item in enumerate(value)]

    def validate_object(self, schema: ObjectSchema, path: str, value: Any) -> dict[str, Any]:
        if not isinstance(value, Mapping):
            raise ValidationError(f"input is not an object: {value!r}", path, value)
        parsed: dict[str, Any] = {}
        for key, declared in schema.properties.items():
            if key not in value:
                if schema.is_required(key) and not declared.has_default:
                    raise ValidationError(f'required property "{key}" is missing', path, value)
                if declared.has_default:
                    parsed[key] = copy.deepcopy(declared.default)
                continue
            parsed[key] = self.validate(declared.schema, value[key], f"{path}.{key}")
        return parsed

    @staticmethod
    def _check_number(path: str, value: Any) -> None:
        if not _is_number(value):
            raise ValidationError(f"input is not a number: {value!r}", path, value)
        if isinstance(value, float) and not math.isfinite(value):
            raise ValidationError(f"number is not finite: {value!r}", path, value)

    @staticmethod
    def _check_numeric_constraints(
        schema: NumberSchema | IntegerSchema, path: str, value: float | int
    ) -> None:
        if schema.enum is not None and value not in schema.enum:
            raise ValidationError(f"number is not in enum {list(schema.enum)!r}: {value!r}", path, value)
        if schema.minimum is not None and value < schema.minimum:
            raise ValidationError(f"number is too small: {value} < {schema.minimum}", path, value)
        if schema.maximum is not None and value > schema.maximum:
            raise ValidationError(f"number is too large: {value} > {schema.maximum}", path, value)


_DEFAULT_VALIDATOR = SchemaValidator()


def validate(schema: Schema, value: Any) -> Any:
    """Validate ``value`` against ``schema`` and return the normalized value.

    Raises:
        ValidationError: On the first violated constraint.
    """

    return _DEFAULT_VALIDATOR.validate(schema, value)


def safe_validate(schema: Schema, value: Any) -> ValidationResult:
    """Like :func:`validate`, but report failure as a result value."""

    try:
        return ValidationResult(ok=True, value=validate(schema, value))
    except ValidationError as exc:
        return ValidationResult(ok=False, error=exc)
