"""
Streaming protocol decoder.

Reduces the provider's Messages streaming events to three internal
events: text fragments, fully assembled tool invocations, and one
terminal usage summary.

Sandi Metz Principles:
- Single Responsibility: Event translation only, no network or cost logic
- Small methods: One handler per provider event type
"""

import json
from dataclasses import dataclass
from typing import Any, AsyncIterator, Callable, Dict, List

from completion_core.models.llm import DoneEvent, TextEvent, ToolUseEvent, UsageStats
from completion_core.utils.logger import get_logger

logger = get_logger(__name__)

# Lifecycle events and SDK convenience events that repeat raw deltas.
IGNORED_EVENT_TYPES = frozenset(
    {
        "message_start",
        "message_delta",
        "message_stop",
        "ping",
        "text",
        "input_json",
        "thinking",
        "signature",
        "citation",
    }
)

IGNORED_DELTA_TYPES = frozenset({"thinking_delta", "signature_delta", "citations_delta"})


@dataclass
class _OpenTool:
    """Tool invocation whose input JSON is still arriving."""

    id: str
    name: str
    raw_input: str = ""


class StreamDecoder:
    """
    State machine over provider stream events.

    Open tool invocations are tracked per content-block index, so
    interleaved tool blocks assemble independently.
    """

    def __init__(self) -> None:
        self._open_tools: Dict[int, _OpenTool] = {}
        self._transcript: List[str] = []
        self._finished = False
        self._handlers: Dict[str, Callable[[Any], List[Any]]] = {
            "content_block_start": self._on_block_start,
            "content_block_delta": self._on_block_delta,
            "content_block_stop": self._on_block_stop,
        }

    @property
    def transcript(self) -> str:
        """Plain-text record of the output, for audit logging."""
        return "".join(self._transcript)

    @property
    def open_tool_count(self) -> int:
        """Number of tool blocks awaiting their stop event."""
        return len(self._open_tools)

    def feed(self, event: Any) -> List[Any]:
        """
        Consume one provider event.

        Args:
            event: Provider stream event

        Returns:
            Internal events produced by it (possibly none)
        """
        event_type = getattr(event, "type", None)
        handler = self._handlers.get(event_type)
        if handler is not None:
            return handler(event)

        if event_type not in IGNORED_EVENT_TYPES:
            logger.warning("Unknown stream event type", event_type=event_type)
        return []

    def finish(self, usage: UsageStats | None = None) -> DoneEvent:
        """
        Close the stream and produce the terminal event.

        Args:
            usage: Final usage (zero if unavailable)

        Returns:
            The single Done event
        """
        if self._finished:
            raise RuntimeError("Stream decoder already finished")
        self._finished = True

        if self._open_tools:
            logger.warning(
                "Discarding unfinished tool blocks",
                tools=[tool.name for tool in self._open_tools.values()],
            )
            self._open_tools.clear()

        return DoneEvent(usage=usage or UsageStats.zero())

    def _on_block_start(self, event: Any) -> List[Any]:
        block = getattr(event, "content_block", None)
        if getattr(block, "type", None) != "tool_use":
            return []

        index = getattr(event, "index", 0)
        self._open_tools[index] = _OpenTool(id=block.id, name=block.name)
        return []

    def _on_block_delta(self, event: Any) -> List[Any]:
        delta = getattr(event, "delta", None)
        delta_type = getattr(delta, "type", None)

        if delta_type == "text_delta":
            self._transcript.append(delta.text)
            return [TextEvent(text=delta.text)]

        if delta_type == "input_json_delta":
            tool = self._open_tools.get(getattr(event, "index", 0))
            if tool is None:
                logger.warning("Input delta without open tool block")
            else:
                tool.raw_input += delta.partial_json
            return []

        if delta_type not in IGNORED_DELTA_TYPES:
            logger.warning("Unknown stream delta type", delta_type=delta_type)
        return []

    def _on_block_stop(self, event: Any) -> List[Any]:
        tool = self._open_tools.pop(getattr(event, "index", 0), None)
        if tool is None:
            return []

        tool_input = self._parse_tool_input(tool)
        self._transcript.append(
            f"\n[Tool call: {tool.name}] {json.dumps(tool_input)}\n"
        )
        return [ToolUseEvent(id=tool.id, name=tool.name, input=tool_input)]

    @staticmethod
    def _parse_tool_input(tool: _OpenTool) -> Dict[str, Any]:
        if not tool.raw_input.strip():
            return {}

        try:
            parsed = json.loads(tool.raw_input)
        except json.JSONDecodeError as e:
            logger.warning(
                "Failed to parse tool input",
                tool=tool.name,
                error=str(e),
                raw=tool.raw_input[:200],
            )
            return {}

        if not isinstance(parsed, dict):
            logger.warning("Tool input is not an object", tool=tool.name)
            return {}
        return parsed


async def fetch_final_usage(stream: Any) -> UsageStats:
    """
    Fetch the usage summary after the stream is exhausted.

    Args:
        stream: Provider message stream

    Returns:
        Normalized usage (zero if the fetch fails)
    """
    try:
        message = await stream.get_final_message()
    except Exception as e:
        logger.warning("Failed to fetch final usage", error=str(e))
        return UsageStats.zero()

    return UsageStats.from_provider(getattr(message, "usage", None))


async def decode_stream(
    stream: Any, decoder: StreamDecoder | None = None
) -> AsyncIterator[Any]:
    """
    Decode a live provider stream.

    Args:
        stream: Async iterable of provider events with get_final_message()
        decoder: Decoder to use (pass one in to read its transcript later)

    Yields:
        Text and ToolUse events in arrival order, then exactly one Done
    """
    decoder = decoder or StreamDecoder()

    async for event in stream:
        for decoded in decoder.feed(event):
            yield decoded

    yield decoder.finish(await fetch_final_usage(stream))
