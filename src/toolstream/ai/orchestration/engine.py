"""Iteration engine: the turn-taking loop between the model and its tools.

Each iteration streams one model response, forwards its text, then dispatches
the tool calls it requested, strictly in index order. The loop repeats while
turns keep producing dispatched tool calls::

    AWAITING_RESPONSE -> STREAMING -> DISPATCHING -> AWAITING_RESPONSE ...
                                                  -> DONE

:meth:`IterationEngine.run` is an async generator: nothing happens until the
caller pulls the next event, and closing the generator early releases the
in-flight backend stream without dispatching further tools.
"""

from __future__ import annotations

import inspect
import logging
from collections.abc import AsyncIterator, Iterable
from dataclasses import dataclass, field
from typing import TYPE_CHECKING, Any, Mapping, Protocol, Sequence, runtime_checkable

from ..tools.contract import ToolContract
from ..tools.registry import ToolRegistry
from .aggregator import StreamAggregator
from .types import (
    EngineEvent,
    EngineState,
    Message,
    StreamDelta,
    TextChunk,
    ToolCallRecord,
    ToolCallRequest,
    ToolCallResponse,
    TurnStarted,
)

if TYPE_CHECKING:
    from ...services.settings import Settings

__all__ = [
    "DEFAULT_SYSTEM_PROMPT",
    "EngineConfig",
    "IterationEngine",
    "ModelBackend",
]

LOGGER = logging.getLogger(__name__)

DEFAULT_SYSTEM_PROMPT = (
    "Please answer the following user question based on the user's language. "
    "You can make tool calls to get information. Please also tell what you want to do "
    "when you are making a tool call. If a tool call fails, you can try another way, "
    "don't give up too soon."
)


# -----------------------------------------------------------------------------
# Protocols
# -----------------------------------------------------------------------------


@runtime_checkable
class ModelBackend(Protocol):
    """Protocol for backends that stream chat completions as deltas.

    :class:`toolstream.ai.client.AIClient` conforms to this protocol.
    """

    def stream_chat(
        self,
        messages: Sequence[Mapping[str, Any]],
        *,
        tools: Sequence[Mapping[str, Any]] | None = None,
        tool_choice: str | Mapping[str, Any] | None = None,
        **kwargs: Any,
    ) -> AsyncIterator[StreamDelta]:
        ...


# -----------------------------------------------------------------------------
# Configuration
# -----------------------------------------------------------------------------


@dataclass(slots=True, frozen=True)
class EngineConfig:
    """Configuration for the iteration engine.

    Attributes:
        system_prompt: System directive seeding the conversation.
        max_iterations: Stop after this many turns; None means no cap.
        tool_choice: Tool-selection policy sent with tool declarations.
        continue_on_unknown_tool: Count requests for unknown tools towards
            continuing the loop. By default only dispatched calls do.
        temperature: Sampling temperature forwarded to the backend.
        extra_params: Additional keyword arguments for ``stream_chat``.
    """

    system_prompt: str = DEFAULT_SYSTEM_PROMPT
    max_iterations: int | None = None
    tool_choice: str = "auto"
    continue_on_unknown_tool: bool = False
    temperature: float | None = None
    extra_params: Mapping[str, Any] = field(default_factory=dict)

    def __post_init__(self) -> None:
        if self.max_iterations is not None and self.max_iterations < 1:
            raise ValueError("max_iterations must be at least 1 when set")

    @classmethod
    def from_settings(cls, settings: "Settings") -> EngineConfig:
        max_iterations = settings.max_tool_iterations
        if max_iterations is not None and max_iterations < 1:
            LOGGER.warning("Ignoring max_tool_iterations=%s; the loop will be unbounded", max_iterations)
            max_iterations = None
        return cls(
            system_prompt=settings.system_prompt or DEFAULT_SYSTEM_PROMPT,
            max_iterations=max_iterations,
            temperature=settings.temperature,
        )


# -----------------------------------------------------------------------------
# Iteration Engine
# -----------------------------------------------------------------------------


class IterationEngine:
    """Drives a conversation until the model stops requesting tools.

    Example:
        engine = IterationEngine(client, [lookup_tool])
        async for event in engine.run("What does x mean?"):
            if isinstance(event, TextChunk):
                print(event.content, end="")
    """

    def __init__(
        self,
        backend: ModelBackend,
        tools: ToolRegistry | Iterable[ToolContract] | None = None,
        *,
        system_prompt: str | None = None,
        config: EngineConfig | None = None,
        logger: logging.Logger | None = None,
    ) -> None:
        self._backend = backend
        self._registry = ToolRegistry.coerce(tools)
        self._config = config or EngineConfig()
        self._system_prompt = system_prompt or self._config.system_prompt
        self._logger = logger or LOGGER
        self._conversation: list[Message] = []
        self._state = EngineState.IDLE
        self._iteration = 0
        self._running = False

    @property
    def state(self) -> EngineState:
        return self._state

    @property
    def iteration(self) -> int:
        """Number of turns started in the current (or last) run."""
        return self._iteration

    @property
    def conversation(self) -> tuple[Message, ...]:
        """Snapshot of the conversation so far."""
        return tuple(self._conversation)

    @property
    def registry(self) -> ToolRegistry:
        return self._registry

    @property
    def config(self) -> EngineConfig:
        return self._config

    async def run(self, message: str) -> AsyncIterator[EngineEvent]:
        """Run the conversation for one user message, yielding events.

        Backend failures propagate to the caller and end the sequence. Tool
        failures never do; they reach the model as tool results.

        Raises:
            RuntimeError: If this engine is already running.
        """
        if self._running:
            raise RuntimeError("IterationEngine.run is already in progress")
        self._running = True
        self._conversation = [Message.system(self._system_prompt), Message.user(message)]
        self._iteration = 0
        try:
            while True:
                self._iteration += 1
                self._state = EngineState.AWAITING_RESPONSE
                self._logger.debug("Starting iteration %d", self._iteration)
                yield TurnStarted(iteration=self._iteration)

                assistant = Message.assistant()
                aggregator = StreamAggregator(logger=self._logger)
                stream = self._request_stream()
                fragments = aggregator.run(stream)
                try:
                    self._state = EngineState.STREAMING
                    async for fragment in fragments:
                        assistant.content += fragment
                        yield TextChunk(content=fragment)
                finally:
                    await fragments.aclose()
                    await _release_stream(stream)
                self._conversation.append(assistant)

                self._state = EngineState.DISPATCHING
                records = aggregator.records
                dispatched = 0
                for record in records:
                    yield ToolCallRequest(id=record.id, name=record.name, arguments=record.arguments)
                    response = await self._dispatch(assistant, record)
                    if response is None:
                        continue
                    dispatched += 1
                    yield response

                if not self._should_continue(requested=len(records), dispatched=dispatched):
                    break
                if self._config.max_iterations is not None and self._iteration >= self._config.max_iterations:
                    self._logger.warning(
                        "Stopping after reaching max iterations (%d) with tool results pending",
                        self._config.max_iterations,
                    )
                    break
        finally:
            self._state = EngineState.DONE
            self._running = False
            self._logger.debug("Conversation finished after %d iteration(s)", self._iteration)

    def _request_stream(self) -> AsyncIterator[StreamDelta]:
        kwargs: dict[str, Any] = dict(self._config.extra_params)
        if self._config.temperature is not None:
            kwargs["temperature"] = self._config.temperature
        messages = [item.to_chat_param() for item in self._conversation]
        if len(self._registry):
            kwargs["tools"] = self._registry.declarations()
            kwargs["tool_choice"] = self._config.tool_choice
        return self._backend.stream_chat(messages, **kwargs)

    async def _dispatch(self, assistant: Message, record: ToolCallRecord) -> ToolCallResponse | None:
        tool = self._registry.get(record.name)
        if tool is None:
            self._logger.warning(
                "Model requested unknown tool %r (call_id=%s); skipping dispatch",
                record.name,
                record.id,
            )
            return None
        assistant.tool_calls.append(record.to_reference())
        self._logger.debug("Dispatching tool %s (call_id=%s)", record.name, record.id)
        result = await tool.call(record.arguments)
        self._conversation.append(Message.tool(result, record.id))
        return ToolCallResponse(id=record.id, result=result)

    def _should_continue(self, *, requested: int, dispatched: int) -> bool:
        if self._config.continue_on_unknown_tool:
            return requested > 0
        if requested and not dispatched:
            self._logger.info("Ending loop: none of the %d requested tool call(s) could be dispatched", requested)
        return dispatched > 0


async def _release_stream(stream: Any) -> None:
    close = getattr(stream, "aclose", None)
    if close is None:
        return
    result = close()
    if inspect.isawaitable(result):
        await result
