"""
Semantic test: Committed calls reach every sink in sequence order; failed calls emit nothing.

Invariant:
Events are buffered for the duration of a call and dispatched only on
commit. The JSONL recorder writes one object per event with its type name,
and sequence numbers never decrease along the stream.
"""

from __future__ import annotations

import json
import logging
from pathlib import Path

import pytest

from vault_engine.core.config.vault_config import VaultConfig
from vault_engine.core.domain.errors import DuplicateRequestError
from vault_engine.core.events.sinks.file_recorder import FileRecorderSink
from vault_engine.core.events.sinks.sink_logging import LoggingEventSink
from vault_engine.sim.builder import build_simulated_vault


def test_jsonl_recorder_captures_committed_events(tmp_path: Path) -> None:
    out = tmp_path / "events" / "vault.jsonl"
    cfg = VaultConfig(vault_address="vault", asset_symbol="USDC", fee_collector="fees", fee_rate_bps=1_000)
    sim = build_simulated_vault(cfg, async_redeem=True, sinks=[FileRecorderSink(out)])

    sim.deposit("alice", 1000)
    sim.pool.accrue_yield(100)
    sim.vault.redeem("alice", "alice", 500)

    with pytest.raises(DuplicateRequestError):
        sim.vault.withdraw("alice", "alice", 1)

    sim.pool.process_redemptions()
    sim.vault.redeem("alice", "alice", 500)
    sim.event_bus.close()

    lines = [json.loads(line) for line in out.read_text(encoding="utf-8").splitlines()]
    types = [line["event_type"] for line in lines]

    assert types == [
        "DepositEvent",
        "RedemptionRequestedEvent",
        "FeeCollectedEvent",
        "RedemptionCompletedEvent",
    ]
    seqs = [line["seq"] for line in lines]
    assert seqs == sorted(seqs)
    assert lines[-1]["path"] == "finalize"
    assert lines[-1]["gross_assets"] == lines[-1]["fee"] + lines[-1]["net_assets"]
    assert len(sim.recorder.events) == len(lines)


def test_logging_sink_tags_event_type(caplog: pytest.LogCaptureFixture) -> None:
    cfg = VaultConfig(vault_address="vault", asset_symbol="USDC", fee_collector="fees", fee_rate_bps=100)
    logger = logging.getLogger("vault_engine.test_events")
    sim = build_simulated_vault(cfg, sinks=[LoggingEventSink(logger)])

    with caplog.at_level(logging.INFO, logger="vault_engine.test_events"):
        sim.deposit("alice", 100)

    records = [r for r in caplog.records if r.name == "vault_engine.test_events"]
    assert len(records) == 1
    assert records[0].getMessage() == "domain_event"
    assert records[0].event_type == "DepositEvent"
