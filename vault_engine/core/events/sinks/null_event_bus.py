from __future__ import annotations

from vault_engine.core.events.event_bus import EventBus


class NullEventBus(EventBus):
    """EventBus without sinks, for vaults whose events nobody consumes."""

    def __init__(self) -> None:
        super().__init__(sinks=())
