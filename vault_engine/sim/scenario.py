"""Scenario models and runner for simulated vaults.

A scenario is a vault configuration, a pool setup and an ordered list of
steps. Steps form a discriminated union on ``action`` so a JSON scenario
file validates into typed steps in one pass.
"""

# pylint: disable=line-too-long,missing-class-docstring
from __future__ import annotations

import logging
from dataclasses import dataclass, field
from typing import TYPE_CHECKING, Annotated, Any, Literal

from pydantic import BaseModel, ConfigDict, Field

from vault_engine.core.config.vault_config import VaultConfig
from vault_engine.core.domain.errors import VaultError
from vault_engine.core.domain.types import PoolCapabilities
from vault_engine.sim.builder import build_simulated_vault

if TYPE_CHECKING:
    from vault_engine.core.events.event_sink import EventSink
    from vault_engine.sim.builder import SimulatedVault

LOGGER = logging.getLogger(__name__)

# ---------------------------------------------------------------------------
# Step models (discriminated union)
# ---------------------------------------------------------------------------


class _StepBase(BaseModel):
    model_config = ConfigDict(extra="forbid")


class FundStep(_StepBase):
    action: Literal["fund"] = "fund"
    holder: str = Field(..., min_length=1)
    assets: int = Field(..., gt=0)


class DepositStep(_StepBase):
    action: Literal["deposit"] = "deposit"
    sender: str = Field(..., min_length=1)
    receiver: str | None = Field(default=None, min_length=1)
    assets: int = Field(..., gt=0)


class WithdrawStep(_StepBase):
    action: Literal["withdraw"] = "withdraw"
    owner: str = Field(..., min_length=1)
    receiver: str | None = Field(default=None, min_length=1)
    assets: int = Field(..., ge=0)


class RedeemStep(_StepBase):
    action: Literal["redeem"] = "redeem"
    owner: str = Field(..., min_length=1)
    receiver: str | None = Field(default=None, min_length=1)
    shares: int = Field(..., ge=0)


class AccrueYieldStep(_StepBase):
    action: Literal["accrue_yield"] = "accrue_yield"
    assets: int = Field(..., gt=0)


class ProcessRedemptionsStep(_StepBase):
    action: Literal["process_redemptions"] = "process_redemptions"
    receiver: str | None = Field(default=None, min_length=1)
    limit: int | None = Field(default=None, gt=0)


ScenarioStep = Annotated[
    FundStep | DepositStep | WithdrawStep | RedeemStep | AccrueYieldStep | ProcessRedemptionsStep,
    Field(discriminator="action"),
]


class PoolSetup(BaseModel):
    async_redeem: bool = True
    capabilities: PoolCapabilities = Field(default_factory=PoolCapabilities)

    model_config = ConfigDict(extra="forbid")


class Scenario(BaseModel):
    id: str = Field(..., min_length=1)
    vault: VaultConfig
    pool: PoolSetup = Field(default_factory=PoolSetup)
    steps: list[ScenarioStep] = Field(default_factory=list)

    model_config = ConfigDict(extra="forbid")

    @classmethod
    def from_json_obj(cls, obj: dict[str, Any]) -> Scenario:
        return cls.model_validate(obj)


# ---------------------------------------------------------------------------
# Runner
# ---------------------------------------------------------------------------


@dataclass(slots=True)
class StepResult:
    index: int
    action: str
    result: dict[str, Any] | None = None
    error: str | None = None


@dataclass(slots=True)
class ScenarioResult:
    scenario_id: str
    steps: list[StepResult] = field(default_factory=list)
    final_state: dict[str, Any] = field(default_factory=dict)

    @property
    def failed_steps(self) -> list[StepResult]:
        return [s for s in self.steps if s.error is not None]


def vault_state(sim: SimulatedVault) -> dict[str, Any]:
    """Summarize vault-level balances."""
    vault = sim.vault
    return {
        "nav": vault.total_assets(),
        "total_principal": vault.total_principal(),
        "total_supply": vault.total_supply(),
        "idle": vault.idle_balance(),
        "pending_redemptions": vault.registry.live_count(),
        "earmarked_assets": vault.registry.earmarked_assets(),
        "fee_collector_balance": sim.asset.balance_of(sim.cfg.fee_collector),
        "seq": vault.ledger.sequence,
    }


def run_scenario(scenario: Scenario, *, sinks: list[EventSink] | None = None) -> tuple[SimulatedVault, ScenarioResult]:
    """Execute every step in order against a fresh simulated vault.

    Engine errors are recorded on the failing step and the run continues
    with the next step; the failed step has left no state behind.
    """
    sim = build_simulated_vault(
        scenario.vault,
        async_redeem=scenario.pool.async_redeem,
        capabilities=scenario.pool.capabilities,
        sinks=sinks,
    )
    result = ScenarioResult(scenario_id=scenario.id)

    for index, step in enumerate(scenario.steps):
        step_result = StepResult(index=index, action=step.action)
        try:
            step_result.result = _apply_step(sim, step)
        except VaultError as exc:
            step_result.error = exc.reason
            LOGGER.info(
                "scenario_step_rejected",
                extra={"scenario": scenario.id, "index": index, "action": step.action, "reason": exc.reason},
            )
        result.steps.append(step_result)

    result.final_state = vault_state(sim)
    return sim, result


def _apply_step(sim: SimulatedVault, step: Any) -> dict[str, Any]:
    vault = sim.vault

    if step.action == "fund":
        sim.fund(step.holder, step.assets)
        return {"balance": sim.asset.balance_of(step.holder)}

    if step.action == "deposit":
        shares = vault.deposit(step.sender, step.receiver or step.sender, step.assets)
        return {"shares": shares}

    if step.action == "withdraw":
        outcome = vault.withdraw(step.owner, step.receiver or step.owner, step.assets)
        return outcome.model_dump(mode="json", exclude_none=True)

    if step.action == "redeem":
        outcome = vault.redeem(step.owner, step.receiver or step.owner, step.shares)
        return outcome.model_dump(mode="json", exclude_none=True)

    if step.action == "accrue_yield":
        sim.pool.accrue_yield(step.assets)
        return {"nav": vault.total_assets()}

    # process_redemptions
    paid = sim.pool.process_redemptions(receiver=step.receiver, limit=step.limit)
    return {"paid": paid}
