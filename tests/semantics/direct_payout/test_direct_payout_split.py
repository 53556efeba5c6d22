"""
Semantic test: Direct payout splits pool shares between receiver and fee collector.

Invariant:
Under the direct-payout strategy claim tokens are burned when the redemption
is requested, no pending record is stored, and the pool shares for the gross
amount are split pro rata with the rounding remainder assigned to the fee
collector's portion, never to the receiver's.
"""

from __future__ import annotations

from vault_engine.core.config.vault_config import VaultConfig
from vault_engine.core.events.events import RedemptionRequestedEvent
from vault_engine.sim.builder import build_simulated_vault


def _direct_cfg(fee_rate_bps: int = 100) -> VaultConfig:
    return VaultConfig(
        vault_address="vault",
        asset_symbol="USDC",
        fee_collector="fees",
        fee_rate_bps=fee_rate_bps,
        redemption_strategy="direct_payout",
    )


def test_split_assigns_remainder_to_fee_portion() -> None:
    sim = build_simulated_vault(_direct_cfg(), async_redeem=True)

    sim.deposit("alice", 1000)
    sim.pool.accrue_yield(100)

    outcome = sim.vault.redeem("alice", "bob", 1000)

    assert outcome.is_requested()
    assert outcome.gross_assets == 1100
    assert outcome.fee == 1

    # Burned up front; nothing kept in the registry.
    assert sim.claim.total_supply() == 0
    assert len(sim.vault.registry) == 0
    assert sim.vault.total_principal() == 0

    calls = [(c.receiver, c.shares) for c in sim.pool.request_calls]
    assert calls == [("bob", 999), ("fees", 1)]
    assert all(c.owner == "vault" for c in sim.pool.request_calls)

    sim.pool.process_redemptions()
    assert sim.asset.balance_of("bob") + sim.asset.balance_of("fees") == 1100
    assert sim.asset.balance_of("fees") >= outcome.fee
    assert sim.asset.balance_of("vault") == 0

    requested = sim.recorder.of_type(RedemptionRequestedEvent)
    assert len(requested) == 1
    assert requested[0].strategy == "direct_payout"
    assert requested[0].pool_shares == 1000


def test_zero_fee_sends_everything_to_receiver() -> None:
    sim = build_simulated_vault(_direct_cfg(fee_rate_bps=0), async_redeem=True)

    sim.deposit("alice", 1000)
    outcome = sim.vault.withdraw("alice", "alice", 400)

    assert outcome.is_requested()
    assert outcome.fee == 0
    assert [(c.receiver, c.shares) for c in sim.pool.request_calls] == [("alice", 400)]
    assert sim.claim.balance_of("alice") == 600


def test_direct_payout_never_stores_pending_records() -> None:
    sim = build_simulated_vault(_direct_cfg(), async_redeem=True)

    sim.deposit("alice", 1000)
    first = sim.vault.withdraw("alice", "alice", 300)
    second = sim.vault.withdraw("alice", "alice", 300)

    assert first.is_requested() and second.is_requested()
    assert sim.vault.get_pending_redemption("alice", "alice") is None
    assert sim.claim.balance_of("alice") == 400
