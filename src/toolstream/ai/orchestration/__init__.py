"""Streaming aggregation and the tool-calling iteration loop.

Example:
    from toolstream.ai.orchestration import IterationEngine, TextChunk

    engine = IterationEngine(client, registry)
    async for event in engine.run("hello"):
        ...
"""

from .types import (
    EngineEvent,
    EngineState,
    EventType,
    Message,
    MessageRole,
    StreamDelta,
    TextChunk,
    ToolCallDelta,
    ToolCallRecord,
    ToolCallRequest,
    ToolCallResponse,
    TurnStarted,
)

from .aggregator import StreamAggregator

from .engine import (
    DEFAULT_SYSTEM_PROMPT,
    EngineConfig,
    IterationEngine,
    ModelBackend,
)

__all__ = [
    # types.py
    "EngineEvent",
    "EngineState",
    "EventType",
    "Message",
    "MessageRole",
    "StreamDelta",
    "TextChunk",
    "ToolCallDelta",
    "ToolCallRecord",
    "ToolCallRequest",
    "ToolCallResponse",
    "TurnStarted",
    # aggregator.py
    "StreamAggregator",
    # engine.py
    "DEFAULT_SYSTEM_PROMPT",
    "EngineConfig",
    "IterationEngine",
    "ModelBackend",
]
