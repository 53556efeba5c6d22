"""
Semantic test: The deposit route is negotiated once from pool capabilities.

Invariant:
authorize-and-deposit is preferred over referral deposit, which is preferred
over a plain deposit. The route is fixed at construction and every deposit
uses it.
"""

from __future__ import annotations

import pytest
from pydantic import ValidationError

from vault_engine.core.config.vault_config import VaultConfig
from vault_engine.core.domain.types import PoolCapabilities
from vault_engine.core.redemption.strategies import DepositRoute, resolve_deposit_route
from vault_engine.sim.builder import build_simulated_vault


@pytest.mark.parametrize(
    ("capabilities", "expected"),
    [
        (PoolCapabilities(), DepositRoute.DIRECT),
        (
            PoolCapabilities(supports_referral_deposit=True, deposit_referral="ref-1"),
            DepositRoute.DEPOSIT_WITH_REFERRAL,
        ),
        (PoolCapabilities(supports_authorized_deposit=True), DepositRoute.AUTHORIZE_AND_DEPOSIT),
        (
            PoolCapabilities(
                supports_authorized_deposit=True,
                supports_referral_deposit=True,
                deposit_referral="ref-1",
            ),
            DepositRoute.AUTHORIZE_AND_DEPOSIT,
        ),
    ],
)
def test_route_preference(capabilities: PoolCapabilities, expected: DepositRoute) -> None:
    assert resolve_deposit_route(capabilities) is expected


def test_referral_route_forwards_referral_on_every_deposit() -> None:
    cfg = VaultConfig(vault_address="vault", asset_symbol="USDC", fee_collector="fees", fee_rate_bps=100)
    capabilities = PoolCapabilities(supports_referral_deposit=True, deposit_referral="ref-7")
    sim = build_simulated_vault(cfg, capabilities=capabilities)

    assert sim.vault.deposit_route is DepositRoute.DEPOSIT_WITH_REFERRAL

    sim.deposit("alice", 100)
    sim.deposit("bob", 200)

    assert [(c.route, c.assets, c.receiver, c.referral) for c in sim.pool.deposit_calls] == [
        ("deposit_with_referral", 100, "vault", "ref-7"),
        ("deposit_with_referral", 200, "vault", "ref-7"),
    ]


def test_referral_support_requires_referral_code() -> None:
    with pytest.raises(ValidationError):
        PoolCapabilities(supports_referral_deposit=True)
