"""
Synchronous event bus for committed vault events.

Events reach sinks in commit order. The orchestrator publishes each call's
events as one batch once the call has committed, so a rolled-back call
never reaches a sink.
"""
from __future__ import annotations

from typing import TYPE_CHECKING, Iterable, Sequence

from vault_engine.core.events.event_sink import EventSink

if TYPE_CHECKING:
    from vault_engine.core.events.events import VaultEvent


class EventBus:
    """Fans committed events out to a fixed set of sinks."""

    def __init__(self, sinks: Iterable[EventSink] | None = None) -> None:
        self._sinks: list[EventSink] = list(sinks) if sinks is not None else []
        self._closed = False

    def publish(self, events: Sequence[VaultEvent]) -> None:
        """Deliver a committed batch; every sink sees it in order."""
        if self._closed:
            raise RuntimeError("event bus is closed")
        for event in events:
            for sink in self._sinks:
                sink.on_event(event)

    def close(self) -> None:
        """
        Close every sink that exposes close(). Closing twice is a no-op.
        """
        if self._closed:
            return

        for sink in self._sinks:
            close_fn = getattr(sink, "close", None)
            if callable(close_fn):
                close_fn()

        self._closed = True
