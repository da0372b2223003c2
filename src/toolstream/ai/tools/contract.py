"""Tool contracts: a named capability with a declared schema and a handler.

:meth:`ToolContract.call` is the text-in/text-out boundary used by the
iteration engine. It decodes the raw argument text, validates it, invokes the
handler with the validated value, and JSON-encodes the result. Any failure
along the way becomes a JSON error payload instead of an exception, so one
broken tool call cannot abort the conversation loop.
"""

from __future__ import annotations

import inspect
import json
import logging
import time
from typing import Any, Awaitable, Callable

from .errors import (
    ArgumentValidationError,
    InvalidArgumentsJSONError,
    ToolError,
    ToolInvocationError,
    UnserializableResultError,
)
from .schema import Schema
from .validation import SchemaValidator, ValidationError

__all__ = [
    "ToolContract",
    "ToolHandler",
    "make_tool",
]

LOGGER = logging.getLogger(__name__)

# Receives the validated arguments; may be sync or async.
ToolHandler = Callable[[Any], "Any | Awaitable[Any]"]


class ToolContract:
    """Binds a name, description and parameter schema to a handler.

    Example:
        lookup = ToolContract(
            name="lookup",
            description="Look up a term",
            schema=ObjectSchema(properties={"q": StringSchema()}, required=("q",)),
            handler=lambda args: f"definition of {args['q']}",
        )
        await lookup.call('{"q": "x"}')  # '"definition of x"'
    """

    def __init__(
        self,
        name: str,
        description: str,
        schema: Schema,
        handler: ToolHandler,
        *,
        validator: SchemaValidator | None = None,
    ) -> None:
        if not name:
            raise ValueError("Tool name must be a non-empty string")
        if not callable(handler):
            raise TypeError("Tool handler must be callable")
        self._name = name
        self._description = description
        self._schema = schema
        self._handler = handler
        self._validator = validator or SchemaValidator()

    @property
    def name(self) -> str:
        return self._name

    @property
    def description(self) -> str:
        return self._description

    @property
    def schema(self) -> Schema:
        return self._schema

    @property
    def definition(self) -> dict[str, Any]:
        """Tool declaration in the OpenAI ``tools`` format."""
        return {
            "type": "function",
            "function": {
                "name": self._name,
                "description": self._description,
                "parameters": self._schema.to_json_schema(),
            },
        }

    def to_openai_tool(self) -> dict[str, Any]:
        return self.definition

    def parse_arguments(self, raw_arguments: str) -> Any:
        """Decode and validate raw argument text.

        Raises:
            InvalidArgumentsJSONError: If the text is not valid JSON.
            ArgumentValidationError: If the decoded value violates the schema.
        """
        try:
            decoded = json.loads(raw_arguments)
        except json.JSONDecodeError as exc:
            raise InvalidArgumentsJSONError(
                message=f"Invalid JSON: {exc.msg}",
                line=exc.lineno,
                column=exc.colno,
            ) from exc
        except TypeError as exc:
            raise InvalidArgumentsJSONError(message=f"Invalid JSON: {exc}") from exc
        try:
            return self._validator.validate(self._schema, decoded)
        except ValidationError as exc:
            raise ArgumentValidationError(
                message=f"Schema validation error: {exc}",
                path=exc.path,
                value=exc.value,
            ) from exc

    async def call(self, raw_arguments: str) -> str:
        """Run the tool on raw argument text and return JSON text. Never raises."""
        start_time = time.perf_counter()
        try:
            arguments = self.parse_arguments(raw_arguments)
            result = self._handler(arguments)
            if inspect.isawaitable(result):
                result = await result
        except ToolError as exc:
            LOGGER.warning("Tool %s rejected call: %s", self._name, exc)
            return self._encode_error(exc)
        except Exception as exc:
            LOGGER.exception("Tool %s failed unexpectedly", self._name)
            return self._encode_error(
                ToolInvocationError(
                    message=f"Tool '{self._name}' failed: {exc}",
                    exception_type=type(exc).__name__,
                )
            )

        duration_ms = (time.perf_counter() - start_time) * 1000.0
        try:
            encoded = json.dumps(result, ensure_ascii=False)
        except (TypeError, ValueError) as exc:
            LOGGER.warning("Tool %s returned an unserializable result: %s", self._name, exc)
            return self._encode_error(UnserializableResultError(message=f"Tool result could not be serialized: {exc}"))
        LOGGER.debug("Tool %s completed in %.1fms", self._name, duration_ms)
        return encoded

    @staticmethod
    def _encode_error(error: ToolError) -> str:
        try:
            return json.dumps(error.to_dict(), ensure_ascii=False)
        except (TypeError, ValueError):
            payload = error.to_dict()
            payload.pop("value", None)
            payload.pop("details", None)
            return json.dumps(payload, ensure_ascii=False, default=str)

    def __repr__(self) -> str:
        return f"ToolContract(name={self._name!r})"


def make_tool(
    *,
    name: str,
    description: str,
    schema: Schema,
    call: ToolHandler,
) -> ToolContract:
    """Keyword-only factory for :class:`ToolContract`."""

    return ToolContract(name=name, description=description, schema=schema, handler=call)
