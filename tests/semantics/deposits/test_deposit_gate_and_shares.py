"""
Semantic test: Deposits pass the configured gate and mint at the vault rate.

Invariant:
The first deposit mints 1:1; later deposits mint assets * supply // NAV.
Disabled deposits, deposits over the TVL cap and deposits minting zero
claim tokens are rejected without moving any asset.
"""

from __future__ import annotations

import pytest

from vault_engine.core.config.vault_config import VaultConfig
from vault_engine.core.domain.errors import DepositRejectedError
from vault_engine.core.domain.reject_reasons import RejectReason
from vault_engine.core.events.events import DepositEvent
from vault_engine.sim.builder import build_simulated_vault


def test_share_math_after_yield() -> None:
    cfg = VaultConfig(vault_address="vault", asset_symbol="USDC", fee_collector="fees", fee_rate_bps=100)
    sim = build_simulated_vault(cfg)

    assert sim.deposit("alice", 1000) == 1000
    sim.pool.accrue_yield(250)

    # 500 * 1000 // 1250
    assert sim.vault.preview_deposit(500) == 400
    assert sim.deposit("bob", 500) == 400

    assert sim.vault.total_principal() == 1500
    assert sim.vault.total_assets() == 1750
    assert sim.claim.total_supply() == 1400
    assert sim.asset.balance_of("vault") == 0

    deposits = sim.recorder.of_type(DepositEvent)
    assert [(e.seq, e.receiver, e.assets, e.shares) for e in deposits] == [
        (1, "alice", 1000, 1000),
        (2, "bob", 500, 400),
    ]


def test_deposits_disabled() -> None:
    cfg = VaultConfig(
        vault_address="vault",
        asset_symbol="USDC",
        fee_collector="fees",
        fee_rate_bps=100,
        deposits_enabled=False,
    )
    sim = build_simulated_vault(cfg)
    sim.fund("alice", 100)

    assert sim.vault.max_deposit("alice") == 0
    with pytest.raises(DepositRejectedError) as excinfo:
        sim.vault.deposit("alice", "alice", 100)

    assert excinfo.value.reason == RejectReason.DEPOSITS_DISABLED
    assert sim.asset.balance_of("alice") == 100
    assert sim.vault.ledger.sequence == 0


def test_tvl_cap() -> None:
    cfg = VaultConfig(
        vault_address="vault",
        asset_symbol="USDC",
        fee_collector="fees",
        fee_rate_bps=100,
        tvl_cap=1000,
    )
    sim = build_simulated_vault(cfg)

    sim.deposit("alice", 800)
    assert sim.vault.max_deposit("bob") == 200

    sim.fund("bob", 300)
    with pytest.raises(DepositRejectedError) as excinfo:
        sim.vault.deposit("bob", "bob", 300)

    assert excinfo.value.reason == RejectReason.TVL_CAP_EXCEEDED
    assert sim.asset.balance_of("bob") == 300
    assert sim.vault.total_principal() == 800

    assert sim.vault.deposit("bob", "bob", 200) == 200


def test_uncapped_vault_reports_unlimited_max_deposit() -> None:
    cfg = VaultConfig(vault_address="vault", asset_symbol="USDC", fee_collector="fees", fee_rate_bps=100)
    sim = build_simulated_vault(cfg)

    assert sim.vault.max_deposit("alice") is None


def test_dust_deposit_minting_nothing_rejected() -> None:
    cfg = VaultConfig(vault_address="vault", asset_symbol="USDC", fee_collector="fees", fee_rate_bps=100)
    sim = build_simulated_vault(cfg)

    sim.deposit("alice", 10)
    sim.pool.accrue_yield(990)

    sim.fund("bob", 50)
    with pytest.raises(DepositRejectedError) as excinfo:
        sim.vault.deposit("bob", "bob", 50)

    assert excinfo.value.reason == RejectReason.ZERO_SHARES
    assert sim.asset.balance_of("bob") == 50


def test_non_positive_deposit_rejected() -> None:
    cfg = VaultConfig(vault_address="vault", asset_symbol="USDC", fee_collector="fees", fee_rate_bps=100)
    sim = build_simulated_vault(cfg)

    with pytest.raises(ValueError):
        sim.vault.deposit("alice", "alice", 0)
