"""
Streaming decoders for provider response bodies.

WHAT: Incremental decoders for newline-delimited JSON and server-sent events
WHY: Network reads split serialized fragments at arbitrary byte boundaries
HOW: Buffer partial lines, re-attempt invalid fragments on the next read,
     silently drop whatever never becomes valid by end-of-stream
"""

import json
from dataclasses import dataclass
from typing import Any

from ..utils.logger import get_logger

logger = get_logger(__name__)

DONE_SENTINEL = "[DONE]"

_INVALID = object()
_SKIP = object()


def _parse_json_object(text: str) -> Any:
    """Parse one JSON object, tolerating JSON-array framing around it."""
    stripped = text.strip().lstrip("[,").rstrip(",]").strip()
    if not stripped:
        return _SKIP
    try:
        value = json.loads(stripped)
    except json.JSONDecodeError:
        return _INVALID
    if not isinstance(value, dict):
        return _SKIP
    return value


class JsonLinesDecoder:
    """
    Incremental decoder for newline-delimited JSON bodies.

    Also accepts a single JSON document (pretty-printed or not) and a JSON
    array of objects, since complete lines that do not parse are carried
    over and joined with the following lines.
    """

    def __init__(self):
        self._partial = ""
        self._carry = ""
        self.dropped = 0

    def feed(self, text: str) -> list[dict]:
        self._partial += text
        *lines, self._partial = self._partial.split("\n")
        values = []
        for line in lines:
            values.extend(self._accept(line))
        return values

    def close(self) -> list[dict]:
        values = []
        if self._partial:
            values.extend(self._accept(self._partial))
            self._partial = ""
        if self._carry.strip():
            self.dropped += 1
            logger.debug(f"Dropped unparseable stream fragment: {self._carry[:100]!r}")
        self._carry = ""
        return values

    def _accept(self, line: str) -> list[dict]:
        if not line.strip() and not self._carry:
            return []

        candidate = f"{self._carry}\n{line}" if self._carry else line
        value = _parse_json_object(candidate)
        if value is not _INVALID:
            self._carry = ""
            return [] if value is _SKIP else [value]

        # An unindented line that parses on its own starts a new record;
        # whatever was carried before it never became valid.
        if self._carry and line[:1] in ("{", "["):
            value = _parse_json_object(line)
            if isinstance(value, dict):
                self.dropped += 1
                logger.debug(f"Dropped unparseable stream fragment: {self._carry[:100]!r}")
                self._carry = ""
                return [value]

        self._carry = candidate
        return []


@dataclass
class SseEvent:
    """One dispatched server-sent event with its decoded JSON payload."""
    event: str
    data: str
    payload: dict | None = None

    @property
    def is_done(self) -> bool:
        return self.data == DONE_SENTINEL


class SseDecoder:
    """
    Incremental decoder for text/event-stream bodies.

    Events are dispatched on a blank line, or when a new data line arrives
    while the pending data is already complete (servers that omit the blank
    separator). Data that is not valid JSON stays pending and is re-attempted
    together with the next data line.
    """

    def __init__(self):
        self._partial = ""
        self._event = ""
        self._data: list[str] = []
        self.dropped = 0

    def feed(self, text: str) -> list[SseEvent]:
        self._partial += text
        *lines, self._partial = self._partial.split("\n")
        events = []
        for line in lines:
            events.extend(self._accept(line.rstrip("\r")))
        return events

    def close(self) -> list[SseEvent]:
        events = []
        if self._partial:
            events.extend(self._accept(self._partial.rstrip("\r")))
            self._partial = ""
        events.extend(self._dispatch())
        if self._data:
            self.dropped += 1
            logger.debug(f"Dropped unparseable event data: {''.join(self._data)[:100]!r}")
        self._data = []
        self._event = ""
        return events

    def _accept(self, line: str) -> list[SseEvent]:
        if not line:
            return self._dispatch()
        if line.startswith(":"):
            return []

        name, _, value = line.partition(":")
        if value.startswith(" "):
            value = value[1:]

        if name == "event":
            events = []
            if self._data and self._decode(self._data) is not None:
                events.extend(self._dispatch())
            self._event = value
            return events
        if name != "data":
            return []

        events = []
        if self._data and self._decode(self._data) is not None:
            events.extend(self._dispatch())
        elif self._data and self._decode([value]) is not None:
            self.dropped += 1
            logger.debug(f"Dropped unparseable event data: {''.join(self._data)[:100]!r}")
            self._data = []
        self._data.append(value)
        return events

    def _decode(self, data: list[str]) -> SseEvent | None:
        raw = "\n".join(data)
        if raw.strip() == DONE_SENTINEL:
            return SseEvent(event=self._event, data=DONE_SENTINEL)
        value = _parse_json_object(raw)
        if isinstance(value, dict):
            return SseEvent(event=self._event, data=raw, payload=value)
        return None

    def _dispatch(self) -> list[SseEvent]:
        if not self._data:
            self._event = ""
            return []
        event = self._decode(self._data)
        if event is None:
            # Keep the fragment; the next data line may complete it
            return []
        self._data = []
        self._event = ""
        return [event]
