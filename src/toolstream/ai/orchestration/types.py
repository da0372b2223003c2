"""Core type definitions for the iteration loop.

Protocol deltas and tool-call records are immutable. :class:`Message` is
mutable only so the engine can attach tool-call references to the assistant
message of the turn it is dispatching.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
from typing import Any, ClassVar, Literal, Union

from openai.types.chat import ChatCompletionMessageParam

__all__ = [
    # Protocol input
    "ToolCallDelta",
    "StreamDelta",
    # Aggregated output
    "ToolCallRecord",
    # Conversation
    "Message",
    "MessageRole",
    # Engine
    "EngineState",
    "EventType",
    "TurnStarted",
    "TextChunk",
    "ToolCallRequest",
    "ToolCallResponse",
    "EngineEvent",
]


# -----------------------------------------------------------------------------
# Protocol Deltas
# -----------------------------------------------------------------------------


@dataclass(slots=True, frozen=True)
class ToolCallDelta:
    """One fragment of a streamed tool call.

    Attributes:
        index: Slot of the tool call within the turn.
        id: Correlation id; present only on the fragment that opens a call.
        name: Fragment of the function name.
        arguments: Fragment of the JSON argument text.
    """

    index: int
    id: str | None = None
    name: str | None = None
    arguments: str | None = None


@dataclass(slots=True, frozen=True)
class StreamDelta:
    """One streamed chunk of a model response."""

    content: str | None = None
    tool_calls: tuple[ToolCallDelta, ...] = ()

    def __post_init__(self) -> None:
        if not isinstance(self.tool_calls, tuple):
            object.__setattr__(self, "tool_calls", tuple(self.tool_calls))


# -----------------------------------------------------------------------------
# Tool Call Records
# -----------------------------------------------------------------------------


@dataclass(slots=True, frozen=True)
class ToolCallRecord:
    """A completed tool call reassembled from one turn's deltas."""

    index: int
    id: str
    name: str
    arguments: str

    def to_reference(self) -> dict[str, Any]:
        """Tool-call reference attached to the assistant message."""
        return {
            "id": self.id,
            "type": "function",
            "function": {"name": self.name, "arguments": self.arguments},
        }


# -----------------------------------------------------------------------------
# Messages
# -----------------------------------------------------------------------------

MessageRole = Literal["system", "user", "assistant", "tool"]


@dataclass(slots=True)
class Message:
    """Chat message in the conversation owned by the engine.

    Attributes:
        role: The role of the message sender.
        content: The text content of the message.
        tool_calls: Tool-call references (assistant messages only).
        tool_call_id: ID linking a tool result to its call (tool messages only).
    """

    role: MessageRole
    content: str
    tool_calls: list[dict[str, Any]] = field(default_factory=list)
    tool_call_id: str | None = None

    def to_chat_param(self) -> ChatCompletionMessageParam:
        """Convert to OpenAI's ChatCompletionMessageParam format."""
        payload: dict[str, Any] = {"role": self.role, "content": self.content}
        if self.tool_call_id is not None:
            payload["tool_call_id"] = self.tool_call_id
        if self.tool_calls:
            payload["tool_calls"] = [dict(call) for call in self.tool_calls]
        return payload  # type: ignore[return-value]

    @classmethod
    def system(cls, content: str) -> Message:
        return cls(role="system", content=content)

    @classmethod
    def user(cls, content: str) -> Message:
        return cls(role="user", content=content)

    @classmethod
    def assistant(cls, content: str = "") -> Message:
        return cls(role="assistant", content=content)

    @classmethod
    def tool(cls, content: str, tool_call_id: str) -> Message:
        return cls(role="tool", content=content, tool_call_id=tool_call_id)


# -----------------------------------------------------------------------------
# Engine State and Events
# -----------------------------------------------------------------------------


class EngineState(str, Enum):
    IDLE = "idle"
    AWAITING_RESPONSE = "awaiting_response"
    STREAMING = "streaming"
    DISPATCHING = "dispatching"
    DONE = "done"


class EventType(str, Enum):
    TURN_STARTED = "turn_started"
    TEXT = "text"
    TOOL_CALL_REQUEST = "tool_call_request"
    TOOL_CALL_RESPONSE = "tool_call_response"


@dataclass(slots=True, frozen=True)
class TurnStarted:
    """Marks the start of a request/response cycle with the backend."""

    iteration: int

    type: ClassVar[EventType] = EventType.TURN_STARTED


@dataclass(slots=True, frozen=True)
class TextChunk:
    content: str

    type: ClassVar[EventType] = EventType.TEXT


@dataclass(slots=True, frozen=True)
class ToolCallRequest:
    id: str
    name: str
    arguments: str

    type: ClassVar[EventType] = EventType.TOOL_CALL_REQUEST


@dataclass(slots=True, frozen=True)
class ToolCallResponse:
    id: str
    result: str

    type: ClassVar[EventType] = EventType.TOOL_CALL_RESPONSE


EngineEvent = Union[TurnStarted, TextChunk, ToolCallRequest, ToolCallResponse]
