"""
Location: python/thred_sdk/stream.py

Summary:
    Splitter for the Thred answer stream. The stream body is plain answer
    text, followed by a blank line, followed by one JSON metadata object.
    StreamSplitter turns raw byte chunks into an ordered sequence of
    TextEvent (full accumulated text so far) ending in at most one
    MetadataEvent.

Usage:
    Used by client.py to back all three streaming delivery shapes
    (callback, async generator and buffered). The splitter itself does
    no I/O and can be fed bytes directly.

Example:
    from thred_sdk.stream import StreamSplitter, split_stream

    splitter = StreamSplitter()
    events = splitter.feed(b'Hello world\\n\\n{"brandUsed": null}')
    # [TextEvent(text='Hello world'), MetadataEvent(metadata={'brandUsed': None})]

    async for event in split_stream(response.aiter_bytes()):
        print(event)
"""

import codecs
import json
import logging
from dataclasses import dataclass
from typing import AsyncIterable, AsyncIterator, Optional, Union


logger = logging.getLogger(__name__)

# Blank line followed by the opening brace of the metadata object
DELIMITER = "\n\n{"
SEPARATOR = "\n\n"


@dataclass(frozen=True)
class TextEvent:
    """All answer text received so far (not just the latest delta)."""
    text: str


@dataclass(frozen=True)
class MetadataEvent:
    """Terminal event carrying the parsed metadata object."""
    metadata: dict


StreamEvent = Union[TextEvent, MetadataEvent]


class StreamSplitter:
    """
    Incremental text/metadata splitter for one answer stream.

    The first occurrence of DELIMITER always marks the boundary; there is
    no escaping, so answer text containing a blank line followed by "{"
    is cut there.

    Attributes:
        text: Accumulated answer text emitted so far
        metadata: Parsed metadata object once seen, else None
        closed: True once metadata was parsed or finish() was called
    """

    def __init__(self, encoding: str = "utf-8"):
        self._decoder = codecs.getincrementaldecoder(encoding)(errors="replace")
        self._pending = ""
        # Metadata candidate including its leading blank line
        self._candidate: Optional[str] = None
        self.text = ""
        self.metadata: Optional[dict] = None
        self.closed = False

    def feed(self, data: bytes) -> list[StreamEvent]:
        """
        Consume one chunk of raw bytes.

        Args:
            data: Next chunk from the transport (may be empty)

        Returns:
            Events produced by this chunk, in order
        """
        if self.closed:
            return []
        return self._consume(self._decoder.decode(data))

    def finish(self) -> list[StreamEvent]:
        """
        Signal end of the underlying stream and flush what is left.

        Leftover text is split on the first blank line: the head is answer
        text and the rest is tried as metadata. If it is not a JSON object
        it is delivered as answer text with the blank line restored.

        Returns:
            Final events, in order
        """
        if self.closed:
            return []
        events = self._consume(self._decoder.decode(b"", final=True))
        if self.closed:
            return events
        self.closed = True

        leftover = self._candidate if self._candidate is not None else self._pending
        self._candidate = None
        self._pending = ""
        if not leftover:
            return events

        parts = leftover.split(SEPARATOR)
        if len(parts) == 1:
            self._append_text(leftover, events)
            return events

        head, rest = parts[0], SEPARATOR.join(parts[1:])
        self._append_text(head, events)
        metadata = _parse_object(rest)
        if metadata is None:
            logger.debug("Trailing segment is not JSON, delivering as text")
            self._append_text(SEPARATOR + rest, events)
        else:
            self._set_metadata(metadata, events)
        return events

    def _consume(self, decoded: str) -> list[StreamEvent]:
        events: list[StreamEvent] = []
        if self._candidate is not None:
            self._candidate += decoded
            self._try_metadata(events)
            return events

        self._pending += decoded
        index = self._pending.find(DELIMITER)
        if index != -1:
            self._append_text(self._pending[:index], events)
            self._candidate = self._pending[index:]
            self._pending = ""
            self._try_metadata(events)
            return events

        # Hold back a tail that may be the start of a delimiter split across reads
        if self._pending.endswith(SEPARATOR):
            held = 2
        elif self._pending.endswith("\n"):
            held = 1
        else:
            held = 0
        cut = len(self._pending) - held
        released, self._pending = self._pending[:cut], self._pending[cut:]
        self._append_text(released, events)
        return events

    def _try_metadata(self, events: list[StreamEvent]) -> None:
        metadata = _parse_object(self._candidate[len(SEPARATOR):])
        if metadata is None:
            logger.debug("Metadata incomplete (%d chars), waiting for more", len(self._candidate))
            return
        self._candidate = None
        self._set_metadata(metadata, events)

    def _set_metadata(self, metadata: dict, events: list[StreamEvent]) -> None:
        self.metadata = metadata
        self.closed = True
        events.append(MetadataEvent(metadata))

    def _append_text(self, text: str, events: list[StreamEvent]) -> None:
        if text:
            self.text += text
            events.append(TextEvent(self.text))


def _parse_object(raw: str) -> Optional[dict]:
    """Parse raw as a JSON object, returning None if it is not one."""
    try:
        value = json.loads(raw)
    except ValueError:
        return None
    return value if isinstance(value, dict) else None


async def split_stream(chunks: AsyncIterable[bytes]) -> AsyncIterator[StreamEvent]:
    """
    Run a StreamSplitter over an async byte stream.

    Stops pulling chunks as soon as the metadata event is produced; the
    caller owns the underlying response and must release it.

    Args:
        chunks: Async iterable of raw byte chunks, e.g. response.aiter_bytes()

    Yields:
        TextEvent and, at most once and last, MetadataEvent
    """
    splitter = StreamSplitter()
    async for chunk in chunks:
        for event in splitter.feed(chunk):
            yield event
        if splitter.closed:
            logger.debug("Metadata received, stopping stream")
            return
    for event in splitter.finish():
        yield event
