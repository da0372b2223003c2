"""Shared test helpers and stub classes.

Import from here instead of duplicating these stubs in individual test files::

    from tests.helpers import ScriptedBackend, call_args, call_start, text
"""

from __future__ import annotations

from typing import Any, AsyncIterator, Iterable, Mapping, Sequence

from toolstream.ai.orchestration import StreamDelta, ToolCallDelta


class ScriptedBackend:
    """Model backend that replays one scripted list of deltas per turn.

    Records the messages and keyword arguments of every ``stream_chat`` call
    and whether each stream was closed. Turns past the end of the script
    produce an empty stream.
    """

    def __init__(self, turns: Iterable[Sequence[StreamDelta]]) -> None:
        self._turns = [list(turn) for turn in turns]
        self.calls: list[dict[str, Any]] = []
        self.closed: list[bool] = []
        self.failure: BaseException | None = None

    async def stream_chat(
        self,
        messages: Sequence[Mapping[str, Any]],
        **kwargs: Any,
    ) -> AsyncIterator[StreamDelta]:
        turn = len(self.calls)
        self.calls.append({"messages": [dict(message) for message in messages], **kwargs})
        self.closed.append(False)
        deltas = self._turns[turn] if turn < len(self._turns) else []
        try:
            for delta in deltas:
                yield delta
            if self.failure is not None:
                raise self.failure
        finally:
            self.closed[turn] = True


def text(content: str) -> StreamDelta:
    return StreamDelta(content=content)


def call_start(index: int, call_id: str, name: str, arguments: str = "") -> StreamDelta:
    return StreamDelta(tool_calls=(ToolCallDelta(index=index, id=call_id, name=name, arguments=arguments),))


def call_args(index: int, arguments: str) -> StreamDelta:
    return StreamDelta(tool_calls=(ToolCallDelta(index=index, arguments=arguments),))
