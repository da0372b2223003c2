"""Tagged schema variants describing tool parameters.

A :data:`Schema` is one of seven frozen dataclasses, each carrying a
:class:`SchemaType` tag in its ``type`` class attribute. Validation
(:mod:`toolstream.ai.tools.validation`) dispatches on that tag.

Schemas render to JSON Schema for tool declarations and can be built from a
JSON Schema mapping restricted to the supported keywords::

    params = ObjectSchema(
        properties={
            "query": StringSchema(min_length=1),
            "limit": Property(IntegerSchema(minimum=1, maximum=50), default=10),
        },
        required=("query",),
    )
    params.to_json_schema()["required"]  # ["query"]
"""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
from typing import Any, ClassVar, Mapping, Sequence

from jsonschema import Draft7Validator
from jsonschema.exceptions import SchemaError

__all__ = [
    "Schema",
    "SchemaType",
    "StringFormat",
    "StringSchema",
    "NumberSchema",
    "IntegerSchema",
    "BooleanSchema",
    "NullSchema",
    "ArraySchema",
    "ObjectSchema",
    "Property",
    "NO_DEFAULT",
    "SchemaDefinitionError",
    "schema_from_json",
]


class SchemaType(str, Enum):
    STRING = "string"
    NUMBER = "number"
    INTEGER = "integer"
    BOOLEAN = "boolean"
    NULL = "null"
    ARRAY = "array"
    OBJECT = "object"


class StringFormat(str, Enum):
    EMAIL = "email"
    URI = "uri"
    DATE_TIME = "date-time"


class SchemaDefinitionError(ValueError):
    """Raised when a schema definition is malformed or uses unsupported keywords."""


class _NoDefault:
    __slots__ = ()

    def __repr__(self) -> str:
        return "NO_DEFAULT"


# ``None`` is a legitimate default for nullable properties.
NO_DEFAULT: Any = _NoDefault()


def _as_tuple(values: Sequence[Any] | None, *, label: str) -> tuple[Any, ...] | None:
    if values is None:
        return None
    if isinstance(values, (str, bytes)):
        raise SchemaDefinitionError(f"{label} must be a sequence, not a string")
    return tuple(values)


def _check_bounds(low: float | None, high: float | None, *, label: str) -> None:
    if low is not None and high is not None and low > high:
        raise SchemaDefinitionError(f"{label} lower bound {low} exceeds upper bound {high}")


@dataclass(slots=True, frozen=True)
class StringSchema:
    min_length: int | None = None
    max_length: int | None = None
    format: StringFormat | None = None
    enum: tuple[str, ...] | None = None
    description: str | None = None

    type: ClassVar[SchemaType] = SchemaType.STRING

    def __post_init__(self) -> None:
        _check_bounds(self.min_length, self.max_length, label="string length")
        if self.format is not None and not isinstance(self.format, StringFormat):
            try:
                object.__setattr__(self, "format", StringFormat(self.format))
            except ValueError as exc:
                raise SchemaDefinitionError(f"Unsupported string format: {self.format!r}") from exc
        object.__setattr__(self, "enum", _as_tuple(self.enum, label="enum"))

    def to_json_schema(self) -> dict[str, Any]:
        payload: dict[str, Any] = {"type": self.type.value}
        if self.min_length is not None:
            payload["minLength"] = self.min_length
        if self.max_length is not None:
            payload["maxLength"] = self.max_length
        if self.format is not None:
            payload["format"] = self.format.value
        if self.enum is not None:
            payload["enum"] = list(self.enum)
        return _with_description(payload, self.description)


@dataclass(slots=True, frozen=True)
class NumberSchema:
    minimum: float | None = None
    maximum: float | None = None
    enum: tuple[float, ...] | None = None
    description: str | None = None

    type: ClassVar[SchemaType] = SchemaType.NUMBER

    def __post_init__(self) -> None:
        _check_bounds(self.minimum, self.maximum, label=self.type.value)
        object.__setattr__(self, "enum", _as_tuple(self.enum, label="enum"))

    def to_json_schema(self) -> dict[str, Any]:
        return _numeric_json_schema(self)


@dataclass(slots=True, frozen=True)
class IntegerSchema:
    minimum: int | None = None
    maximum: int | None = None
    enum: tuple[int, ...] | None = None
    description: str | None = None

    type: ClassVar[SchemaType] = SchemaType.INTEGER

    def __post_init__(self) -> None:
        _check_bounds(self.minimum, self.maximum, label=self.type.value)
        object.__setattr__(self, "enum", _as_tuple(self.enum, label="enum"))

    def to_json_schema(self) -> dict[str, Any]:
        return _numeric_json_schema(self)


@dataclass(slots=True, frozen=True)
class BooleanSchema:
    description: str | None = None

    type: ClassVar[SchemaType] = SchemaType.BOOLEAN

    def to_json_schema(self) -> dict[str, Any]:
        return _with_description({"type": self.type.value}, self.description)


@dataclass(slots=True, frozen=True)
class NullSchema:
    description: str | None = None

    type: ClassVar[SchemaType] = SchemaType.NULL

    def to_json_schema(self) -> dict[str, Any]:
        return _with_description({"type": self.type.value}, self.description)


@dataclass(slots=True, frozen=True)
class ArraySchema:
    items: "Schema"
    min_items: int | None = None
    max_items: int | None = None
    description: str | None = None

    type: ClassVar[SchemaType] = SchemaType.ARRAY

    def __post_init__(self) -> None:
        if not _is_schema(self.items):
            raise SchemaDefinitionError(f"Array items must be a schema, got {type(self.items).__name__}")
        _check_bounds(self.min_items, self.max_items, label="array length")

    def to_json_schema(self) -> dict[str, Any]:
        payload: dict[str, Any] = {"type": self.type.value, "items": self.items.to_json_schema()}
        if self.min_items is not None:
            payload["minItems"] = self.min_items
        if self.max_items is not None:
            payload["maxItems"] = self.max_items
        return _with_description(payload, self.description)


@dataclass(slots=True, frozen=True)
class Property:
    """A declared object property: its schema plus an optional description and default."""

    schema: "Schema"
    description: str | None = None
    default: Any = NO_DEFAULT

    def __post_init__(self) -> None:
        if not _is_schema(self.schema):
            raise SchemaDefinitionError(f"Property schema must be a schema, got {type(self.schema).__name__}")
        if not self.has_default:
            return
        # Stored normalized so injecting it keeps validation idempotent.
        from .validation import SchemaValidator, ValidationError

        try:
            normalized = SchemaValidator().validate(self.schema, self.default)
        except ValidationError as exc:
            raise SchemaDefinitionError(f"Default {self.default!r} does not match its schema: {exc}") from exc
        object.__setattr__(self, "default", normalized)

    @property
    def has_default(self) -> bool:
        return self.default is not NO_DEFAULT

    def to_json_schema(self) -> dict[str, Any]:
        payload = self.schema.to_json_schema()
        if self.description is not None:
            payload["description"] = self.description
        if self.has_default:
            payload["default"] = self.default
        return payload


@dataclass(slots=True, frozen=True)
class ObjectSchema:
    """Object with declared properties.

    ``properties`` values may be bare schemas; they are wrapped in
    :class:`Property`. Declaration order is preserved and is the order in
    which properties are validated.
    """

    properties: Mapping[str, Property] = field(default_factory=dict)
    required: tuple[str, ...] = ()
    description: str | None = None

    type: ClassVar[SchemaType] = SchemaType.OBJECT

    def __post_init__(self) -> None:
        normalized: dict[str, Property] = {}
        for name, declared in dict(self.properties).items():
            if isinstance(declared, Property):
                normalized[name] = declared
            elif _is_schema(declared):
                normalized[name] = Property(declared)
            else:
                raise SchemaDefinitionError(
                    f"Property {name!r} must be a schema or Property, got {type(declared).__name__}"
                )
        object.__setattr__(self, "properties", normalized)
        required = _as_tuple(self.required, label="required") or ()
        object.__setattr__(self, "required", tuple(dict.fromkeys(required)))

    def is_required(self, name: str) -> bool:
        return name in self.required

    def to_json_schema(self) -> dict[str, Any]:
        payload: dict[str, Any] = {
            "type": self.type.value,
            "properties": {name: prop.to_json_schema() for name, prop in self.properties.items()},
        }
        if self.required:
            payload["required"] = list(self.required)
        return _with_description(payload, self.description)


Schema = (
    StringSchema
    | NumberSchema
    | IntegerSchema
    | BooleanSchema
    | NullSchema
    | ArraySchema
    | ObjectSchema
)

_SCHEMA_CLASSES: tuple[type, ...] = (
    StringSchema,
    NumberSchema,
    IntegerSchema,
    BooleanSchema,
    NullSchema,
    ArraySchema,
    ObjectSchema,
)


def _is_schema(candidate: Any) -> bool:
    return isinstance(candidate, _SCHEMA_CLASSES)


def _with_description(payload: dict[str, Any], description: str | None) -> dict[str, Any]:
    if description is not None:
        payload["description"] = description
    return payload


def _numeric_json_schema(schema: NumberSchema | IntegerSchema) -> dict[str, Any]:
    payload: dict[str, Any] = {"type": schema.type.value}
    if schema.minimum is not None:
        payload["minimum"] = schema.minimum
    if schema.maximum is not None:
        payload["maximum"] = schema.maximum
    if schema.enum is not None:
        payload["enum"] = list(schema.enum)
    return _with_description(payload, schema.description)


# -----------------------------------------------------------------------------
# JSON Schema -> Schema
# -----------------------------------------------------------------------------


def schema_from_json(definition: Mapping[str, Any]) -> Schema:
    """Build a :data:`Schema` from a JSON Schema mapping.

    The mapping is first checked against the Draft 7 meta-schema. Only the
    keywords rendered by ``to_json_schema`` are understood; ``type`` must be a
    single supported type name.

    Raises:
        SchemaDefinitionError: If the mapping is not a valid schema or uses an
            unsupported construct.
    """

    if not isinstance(definition, Mapping):
        raise SchemaDefinitionError(f"Schema definition must be a mapping, got {type(definition).__name__}")
    try:
        Draft7Validator.check_schema(dict(definition))
    except SchemaError as exc:
        raise SchemaDefinitionError(f"Invalid JSON schema: {exc.message}") from exc
    return _convert(definition, path="")


def _convert(definition: Mapping[str, Any], *, path: str) -> Schema:
    raw_type = definition.get("type")
    if not isinstance(raw_type, str):
        raise SchemaDefinitionError(f"{path or '<root>'}: 'type' must be a single type name, got {raw_type!r}")
    try:
        tag = SchemaType(raw_type)
    except ValueError as exc:
        raise SchemaDefinitionError(f"{path or '<root>'}: unsupported type {raw_type!r}") from exc

    description = definition.get("description")
    if tag is SchemaType.STRING:
        return StringSchema(
            min_length=definition.get("minLength"),
            max_length=definition.get("maxLength"),
            format=definition.get("format"),
            enum=definition.get("enum"),
            description=description,
        )
    if tag is SchemaType.NUMBER:
        return NumberSchema(
            minimum=definition.get("minimum"),
            maximum=definition.get("maximum"),
            enum=definition.get("enum"),
            description=description,
        )
    if tag is SchemaType.INTEGER:
        return IntegerSchema(
            minimum=definition.get("minimum"),
            maximum=definition.get("maximum"),
            enum=definition.get("enum"),
            description=description,
        )
    if tag is SchemaType.BOOLEAN:
        return BooleanSchema(description=description)
    if tag is SchemaType.NULL:
        return NullSchema(description=description)
    if tag is SchemaType.ARRAY:
        items = definition.get("items")
        if not isinstance(items, Mapping):
            raise SchemaDefinitionError(f"{path or '<root>'}: array schema requires a single 'items' schema")
        return ArraySchema(
            items=_convert(items, path=f"{path}[]"),
            min_items=definition.get("minItems"),
            max_items=definition.get("maxItems"),
            description=description,
        )

    properties: dict[str, Property] = {}
    for name, raw_property in (definition.get("properties") or {}).items():
        properties[name] = Property(
            schema=_convert(raw_property, path=f"{path}.{name}"),
            description=raw_property.get("description"),
            default=raw_property.get("default", NO_DEFAULT),
        )
    return ObjectSchema(
        properties=properties,
        required=tuple(definition.get("required") or ()),
        description=description,
    )
