"""Sink port for committed vault events.

A sink sees each committed call's events in sequence order and never sees
events of a rolled-back call. ``close`` is optional; the bus calls it when
present.
"""
from __future__ import annotations

from typing import TYPE_CHECKING, Protocol

if TYPE_CHECKING:
    from vault_engine.core.events.events import VaultEvent


class EventSink(Protocol):
    def on_event(self, event: VaultEvent) -> None:
        """Record one committed vault event."""
