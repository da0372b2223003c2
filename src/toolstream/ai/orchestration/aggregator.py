"""Reassembly of streamed tool calls for a single model turn.

Backends stream tool calls as fragments keyed by a slot ``index``. The first
fragment for a slot carries the call id; later fragments for the same slot
carry only more name/argument text, which is concatenated in arrival order.
Argument text is not parsed here; it is only guaranteed to be the full text
the model sent once the turn's stream ends.
"""

from __future__ import annotations

import logging
from collections.abc import AsyncIterable, AsyncIterator
from dataclasses import dataclass, field

from .types import StreamDelta, ToolCallDelta, ToolCallRecord

__all__ = ["StreamAggregator"]

LOGGER = logging.getLogger(__name__)


@dataclass(slots=True)
class _PendingCall:
    id: str
    name_parts: list[str] = field(default_factory=list)
    argument_parts: list[str] = field(default_factory=list)


class StreamAggregator:
    """Splits one turn's deltas into text fragments and completed tool calls.

    Use :meth:`run` to consume an async delta stream lazily, or :meth:`feed`
    and :meth:`finish` to drive it by hand. ``records`` is available once the
    stream is exhausted (or :meth:`finish` was called), in ascending index
    order.
    """

    def __init__(self, *, logger: logging.Logger | None = None) -> None:
        self._logger = logger or LOGGER
        self._pending: dict[int, _PendingCall] = {}
        self._records: tuple[ToolCallRecord, ...] | None = None
        self._violations = 0

    @property
    def finished(self) -> bool:
        return self._records is not None

    @property
    def records(self) -> tuple[ToolCallRecord, ...]:
        if self._records is None:
            raise RuntimeError("Tool call records are only available after the stream ends")
        return self._records

    @property
    def violation_count(self) -> int:
        """Number of discarded continuation fragments for unknown slots."""
        return self._violations

    async def run(self, deltas: AsyncIterable[StreamDelta]) -> AsyncIterator[str]:
        """Yield text fragments as they arrive; finalize records when ``deltas`` ends."""
        async for delta in deltas:
            text = self.feed(delta)
            if text:
                yield text
        self.finish()

    def feed(self, delta: StreamDelta) -> str | None:
        """Merge one delta and return its text fragment, if any."""
        if self._records is not None:
            raise RuntimeError("Cannot feed deltas after the stream has finished")
        for call_delta in delta.tool_calls:
            self._merge(call_delta)
        return delta.content or None

    def finish(self) -> tuple[ToolCallRecord, ...]:
        """Freeze pending calls into records. Idempotent."""
        if self._records is None:
            self._records = tuple(
                ToolCallRecord(
                    index=index,
                    id=pending.id,
                    name="".join(pending.name_parts),
                    arguments="".join(pending.argument_parts),
                )
                for index, pending in sorted(self._pending.items())
            )
            self._pending.clear()
        return self._records

    def _merge(self, call_delta: ToolCallDelta) -> None:
        index = call_delta.index
        if call_delta.id:
            self._pending[index] = _PendingCall(
                id=call_delta.id,
                name_parts=[call_delta.name or ""],
                argument_parts=[call_delta.arguments or ""],
            )
            return

        pending = self._pending.get(index)
        if pending is None:
            self._violations += 1
            self._logger.warning(
                "Discarding tool call fragment for unknown index %s (name=%r, arguments=%r)",
                index,
                call_delta.name,
                call_delta.arguments,
            )
            return
        if call_delta.name:
            pending.name_parts.append(call_delta.name)
        if call_delta.arguments:
            pending.argument_parts.append(call_delta.arguments)
