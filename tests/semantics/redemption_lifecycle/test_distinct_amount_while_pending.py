"""
Semantic test: A different amount while a redemption is pending is a duplicate request.

Invariant:
At most one pending record exists per (owner, receiver). A call with a new
amount for an occupied key raises DuplicateRequestError and leaves every
piece of state unchanged.
"""

from __future__ import annotations

import pytest

from vault_engine.core.config.vault_config import VaultConfig
from vault_engine.core.domain.errors import DuplicateRequestError
from vault_engine.core.domain.reject_reasons import RejectReason
from vault_engine.sim.builder import build_simulated_vault


def test_second_distinct_withdraw_for_same_pair_rejected() -> None:
    cfg = VaultConfig(vault_address="vault", asset_symbol="USDC", fee_collector="fees", fee_rate_bps=100)
    sim = build_simulated_vault(cfg, async_redeem=True)

    sim.deposit("alice", 1000)
    sim.vault.withdraw("alice", "alice", 500)
    record = sim.vault.get_pending_redemption("alice", "alice")
    events_before = len(sim.recorder.events)
    principal_before = sim.vault.total_principal()
    seq_before = sim.vault.ledger.sequence

    with pytest.raises(DuplicateRequestError) as excinfo:
        sim.vault.withdraw("alice", "alice", 300)

    assert excinfo.value.reason == RejectReason.DUPLICATE_REQUEST
    assert sim.vault.get_pending_redemption("alice", "alice") == record
    assert sim.vault.registry.live_count() == 1
    assert sim.vault.total_principal() == principal_before
    assert sim.vault.ledger.sequence == seq_before
    assert sim.claim.available_balance_of("alice") == 500
    assert sim.pool.queue_length() == 1
    assert len(sim.recorder.events) == events_before


def test_other_receiver_gets_its_own_record() -> None:
    cfg = VaultConfig(vault_address="vault", asset_symbol="USDC", fee_collector="fees", fee_rate_bps=100)
    sim = build_simulated_vault(cfg, async_redeem=True)

    sim.deposit("alice", 1000)
    sim.vault.withdraw("alice", "alice", 500)
    other = sim.vault.withdraw("alice", "bob", 300)

    assert other.is_requested()
    assert sim.vault.registry.live_count() == 2
    assert sim.claim.available_balance_of("alice") == 200
