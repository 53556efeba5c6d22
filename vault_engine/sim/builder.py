"""Wiring helper for fully simulated vaults."""

from __future__ import annotations

from dataclasses import dataclass
from typing import TYPE_CHECKING

from vault_engine.core.events.event_bus import EventBus
from vault_engine.core.events.sinks.memory_recorder import MemoryRecorderSink
from vault_engine.sim.adapters.pool import SimulatedAsyncPool
from vault_engine.sim.adapters.tokens import InMemoryAssetToken, InMemoryClaimToken
from vault_engine.vault import YieldVault

if TYPE_CHECKING:
    from vault_engine.core.config.vault_config import VaultConfig
    from vault_engine.core.domain.types import PoolCapabilities
    from vault_engine.core.events.event_sink import EventSink


@dataclass(slots=True)
class SimulatedVault:
    """A vault together with the in-memory collaborators it runs against."""

    cfg: VaultConfig
    asset: InMemoryAssetToken
    claim: InMemoryClaimToken
    pool: SimulatedAsyncPool
    vault: YieldVault
    event_bus: EventBus
    recorder: MemoryRecorderSink

    def fund(self, holder: str, assets: int) -> None:
        """Mint deposit assets to ``holder``."""
        self.asset.mint(holder, assets)

    def deposit(self, holder: str, assets: int) -> int:
        """Fund ``holder`` and deposit the same amount on its own behalf."""
        self.fund(holder, assets)
        return self.vault.deposit(holder, holder, assets)


def build_simulated_vault(
    cfg: VaultConfig,
    *,
    async_redeem: bool = True,
    capabilities: PoolCapabilities | None = None,
    sinks: list[EventSink] | None = None,
) -> SimulatedVault:
    """Build a vault over an in-memory asset, claim token and pool.

    Every emitted event is also kept by a MemoryRecorderSink.
    """
    recorder = MemoryRecorderSink()
    event_bus = EventBus(sinks=[recorder, *(sinks or [])])

    asset = InMemoryAssetToken(cfg.asset_symbol)
    claim = InMemoryClaimToken(cfg.claim_name, cfg.claim_symbol)
    pool = SimulatedAsyncPool(asset, async_redeem=async_redeem, capabilities=capabilities)
    vault = YieldVault(
        cfg=cfg,
        asset=asset,
        claim_token=claim,
        pool=pool,
        event_bus=event_bus,
    )
    return SimulatedVault(
        cfg=cfg,
        asset=asset,
        claim=claim,
        pool=pool,
        vault=vault,
        event_bus=event_bus,
        recorder=recorder,
    )
