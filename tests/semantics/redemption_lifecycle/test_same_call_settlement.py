"""
Semantic test: A pool that pays synchronously settles in the requesting call.

Invariant:
When the redemption request already delivers the funds, the withdrawal
completes immediately with the fee computed on the pre-request NAV, and no
Requested record is ever persisted.
"""

from __future__ import annotations

from vault_engine.core.config.vault_config import VaultConfig
from vault_engine.core.events.events import (
    FeeCollectedEvent,
    RedemptionCompletedEvent,
    RedemptionRequestedEvent,
)
from vault_engine.sim.builder import build_simulated_vault


def test_full_exit_with_yield_charges_one_percent_of_yield() -> None:
    cfg = VaultConfig(vault_address="vault", asset_symbol="USDC", fee_collector="fees", fee_rate_bps=100)
    sim = build_simulated_vault(cfg, async_redeem=False)

    shares = sim.deposit("alice", 1000)
    assert shares == 1000

    # Pool yield: NAV 1100 against 1000 shares.
    sim.pool.accrue_yield(100)
    assert sim.vault.total_assets() == 1100
    assert sim.vault.preview_redeem(1000) == 1100

    outcome = sim.vault.redeem("alice", "alice", 1000)

    assert outcome.is_completed()
    assert outcome.gross_assets == 1100
    assert outcome.fee == 1
    assert outcome.net_assets == 1099

    assert sim.asset.balance_of("alice") == 1099
    assert sim.asset.balance_of("fees") == 1
    assert sim.vault.total_principal() == 0
    assert sim.claim.total_supply() == 0
    assert len(sim.vault.registry) == 0

    requested = sim.recorder.of_type(RedemptionRequestedEvent)
    completed = sim.recorder.of_type(RedemptionCompletedEvent)
    fees = sim.recorder.of_type(FeeCollectedEvent)
    assert len(requested) == 1 and len(completed) == 1 and len(fees) == 1
    assert completed[0].path == "same_call"
    # One call, one sequence number.
    assert requested[0].seq == completed[0].seq == fees[0].seq


def test_pool_loss_charges_no_fee() -> None:
    cfg = VaultConfig(vault_address="vault", asset_symbol="USDC", fee_collector="fees", fee_rate_bps=1_000)
    sim = build_simulated_vault(cfg, async_redeem=False)

    sim.deposit("alice", 1000)
    sim.pool.realize_loss(100)
    assert sim.vault.total_assets() == 900

    outcome = sim.vault.redeem("alice", "alice", 1000)

    assert outcome.is_completed()
    assert outcome.gross_assets == 900
    assert outcome.fee == 0
    assert sim.asset.balance_of("alice") == 900
    assert sim.asset.balance_of("fees") == 0
    assert sim.vault.total_principal() == 100
