"""
Location: python/thred_sdk/targets.py

Summary:
    Output targets for answers. A TargetSink is anything that can show an
    answer's text and brand link (a widget, a template slot, a terminal
    pane). Targets name where an answer goes, either by sink handle or by
    an identifier that the client resolves through a target resolver.

Usage:
    Passed to ThredClient.answer / answer_stream / answer_stream_buffered
    so the final text and link are written out and an impression is
    registered. MemorySink and MemoryTargetRegistry cover non-UI use and
    tests.

Example:
    from thred_sdk import ThredClient, Targets, MemorySink, MemoryTargetRegistry

    registry = MemoryTargetRegistry()
    answer_box = registry.register("answer", MemorySink())

    client = ThredClient(api_key="...", target_resolver=registry)
    await client.answer({"message": "Hi"}, targets=Targets(text="answer"))
    print(answer_box.text)
"""

from dataclasses import dataclass
from typing import Callable, Optional, Protocol, Union, runtime_checkable


@runtime_checkable
class TargetSink(Protocol):
    """Protocol for a place that displays an answer."""

    def set_text(self, text: str) -> None:
        """Replace the displayed answer text."""
        ...

    def set_link(self, link: str) -> None:
        """Replace the displayed brand link."""
        ...


TargetRef = Union[str, TargetSink]
TargetResolver = Callable[[str], Optional[TargetSink]]


@dataclass
class Targets:
    """
    Where to write an answer.

    Attributes:
        text: Sink (or sink identifier) receiving the answer text
        link: Sink (or sink identifier) receiving the brand link
    """
    text: Optional[TargetRef] = None
    link: Optional[TargetRef] = None


def resolve_target(
    ref: Optional[TargetRef],
    resolver: Optional[TargetResolver],
) -> Optional[TargetSink]:
    """
    Resolve a target reference to a sink.

    Args:
        ref: Sink handle, identifier string, or None
        resolver: Callable mapping identifiers to sinks

    Returns:
        The sink, or None if ref is empty or the identifier is unknown
    """
    if ref is None:
        return None
    if isinstance(ref, str):
        return resolver(ref) if ref and resolver else None
    return ref


class MemorySink:
    """
    In-memory sink that records what was written to it.

    Attributes:
        text: Last answer text written, or None
        link: Last link written, or None
    """

    def __init__(self):
        self.text: Optional[str] = None
        self.link: Optional[str] = None

    def set_text(self, text: str) -> None:
        self.text = text

    def set_link(self, link: str) -> None:
        self.link = link


class MemoryTargetRegistry:
    """
    Identifier-to-sink lookup usable as a ThredClient target_resolver.
    """

    def __init__(self):
        self._sinks: dict[str, TargetSink] = {}

    def register(self, target_id: str, sink: TargetSink) -> TargetSink:
        """Register a sink under an identifier and return it."""
        self._sinks[target_id] = sink
        return sink

    def __call__(self, target_id: str) -> Optional[TargetSink]:
        return self._sinks.get(target_id)
