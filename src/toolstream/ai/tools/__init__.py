"""Tool contracts, parameter schemas, validation, and the tool registry.

Example:
    from toolstream.ai.tools import ObjectSchema, StringSchema, ToolRegistry, make_tool

    lookup = make_tool(
        name="lookup",
        description="Look up a term",
        schema=ObjectSchema(properties={"q": StringSchema()}, required=("q",)),
        call=lambda args: f"definition of {args['q']}",
    )
    registry = ToolRegistry([lookup])
"""

from .schema import (
    NO_DEFAULT,
    ArraySchema,
    BooleanSchema,
    IntegerSchema,
    NullSchema,
    NumberSchema,
    ObjectSchema,
    Property,
    Schema,
    SchemaDefinitionError,
    SchemaType,
    StringFormat,
    StringSchema,
    schema_from_json,
)

from .validation import (
    SchemaValidator,
    ValidationError,
    ValidationResult,
    is_valid_date_time,
    is_valid_email,
    is_valid_uri,
    safe_validate,
    validate,
)

from .errors import (
    ArgumentValidationError,
    ErrorCode,
    InvalidArgumentsJSONError,
    ToolError,
    ToolInvocationError,
    UnserializableResultError,
)

from .contract import ToolContract, ToolHandler, make_tool

from .registry import DuplicateToolError, ToolNotFoundError, ToolRegistry

__all__ = [
    # schema.py
    "NO_DEFAULT",
    "ArraySchema",
    "BooleanSchema",
    "IntegerSchema",
    "NullSchema",
    "NumberSchema",
    "ObjectSchema",
    "Property",
    "Schema",
    "SchemaDefinitionError",
    "SchemaType",
    "StringFormat",
    "StringSchema",
    "schema_from_json",
    # validation.py
    "SchemaValidator",
    "ValidationError",
    "ValidationResult",
    "is_valid_date_time",
    "is_valid_email",
    "is_valid_uri",
    "safe_validate",
    "validate",
    # errors.py
    "ArgumentValidationError",
    "ErrorCode",
    "InvalidArgumentsJSONError",
    "ToolError",
    "ToolInvocationError",
    "UnserializableResultError",
    # contract.py
    "ToolContract",
    "ToolHandler",
    "make_tool",
    # registry.py
    "DuplicateToolError",
    "ToolNotFoundError",
    "ToolRegistry",
]
