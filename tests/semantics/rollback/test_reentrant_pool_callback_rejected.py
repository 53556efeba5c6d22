"""
Semantic test: Reentrant calls from a pool callback are rejected.

Invariant:
A vault call made while another vault call is running on the same thread
raises ReentrantCallError immediately, and the outer call is rolled back
as a whole. Concurrent callers on other threads are serialized instead.
"""

from __future__ import annotations

import threading

import pytest

from vault_engine.core.config.vault_config import VaultConfig
from vault_engine.core.domain.errors import ReentrantCallError
from vault_engine.core.redemption.guard import ReentrancyGuard
from vault_engine.sim.builder import build_simulated_vault


def test_pool_callback_into_vault_is_rejected_and_rolled_back() -> None:
    cfg = VaultConfig(vault_address="vault", asset_symbol="USDC", fee_collector="fees", fee_rate_bps=100)
    sim = build_simulated_vault(cfg, async_redeem=True)
    sim.deposit("alice", 1000)

    def reenter(shares: int, receiver: str, owner: str) -> None:
        sim.vault.withdraw("alice", "alice", 100)

    sim.pool.on_request = reenter

    with pytest.raises(ReentrantCallError):
        sim.vault.withdraw("alice", "alice", 500)

    assert sim.vault.total_principal() == 1000
    assert sim.vault.ledger.sequence == 1
    assert len(sim.vault.registry) == 0
    assert sim.claim.reserved_of("alice") == 0
    assert sim.pool.request_calls == []

    # Guard released after the failure.
    sim.pool.on_request = None
    assert sim.vault.withdraw("alice", "alice", 500).is_requested()


def test_deposit_from_pool_callback_is_rejected() -> None:
    cfg = VaultConfig(vault_address="vault", asset_symbol="USDC", fee_collector="fees", fee_rate_bps=100)
    sim = build_simulated_vault(cfg, async_redeem=True)
    sim.deposit("alice", 1000)
    sim.fund("mallory", 50)

    def reenter(shares: int, receiver: str, owner: str) -> None:
        sim.vault.deposit("mallory", "mallory", 50)

    sim.pool.on_request = reenter

    with pytest.raises(ReentrantCallError):
        sim.vault.withdraw("alice", "alice", 500)

    assert sim.asset.balance_of("mallory") == 50
    assert sim.claim.balance_of("mallory") == 0


def test_other_threads_wait_for_the_running_call() -> None:
    guard = ReentrancyGuard()
    inside = threading.Event()
    release = threading.Event()
    order: list[str] = []

    def first() -> None:
        with guard.enter("first"):
            order.append("first:enter")
            inside.set()
            release.wait(timeout=5)
            order.append("first:exit")

    def second() -> None:
        inside.wait(timeout=5)
        with guard.enter("second"):
            order.append("second:enter")

    t1 = threading.Thread(target=first)
    t2 = threading.Thread(target=second)
    t1.start()
    t2.start()

    inside.wait(timeout=5)
    assert guard.entered
    release.set()
    t1.join(timeout=5)
    t2.join(timeout=5)

    assert order == ["first:enter", "first:exit", "second:enter"]
    assert not guard.entered


def test_same_thread_reentry_raises() -> None:
    guard = ReentrancyGuard()

    with guard.enter("outer"):
        with pytest.raises(ReentrantCallError):
            with guard.enter("inner"):
                pass

    assert not guard.entered
