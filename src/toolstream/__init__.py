"""Streaming tool-call orchestration for OpenAI-compatible chat backends."""

from .ai.client import AIClient, ClientSettings
from .ai.orchestration import EngineConfig, IterationEngine, StreamAggregator
from .ai.tools import SchemaValidator, ToolContract, ToolRegistry, make_tool

__version__ = "0.1.0"

__all__ = [
    "AIClient",
    "ClientSettings",
    "EngineConfig",
    "IterationEngine",
    "SchemaValidator",
    "StreamAggregator",
    "ToolContract",
    "ToolRegistry",
    "make_tool",
    "__version__",
]
