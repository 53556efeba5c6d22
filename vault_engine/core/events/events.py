"""
Domain event models.

These events represent immutable facts committed by the vault. Every event
carries the ledger sequence number of the call that produced it, so a
recorded stream replays in commit order. They are consumed by loggers,
recorders, and monitoring pipelines.
"""
from __future__ import annotations

from dataclasses import dataclass


@dataclass(slots=True)
class DepositEvent:
    seq: int
    sender: str
    receiver: str

    assets: int
    shares: int

    total_principal: int


@dataclass(slots=True)
class RedemptionRequestedEvent:
    seq: int
    key: str
    owner: str
    receiver: str

    gross_assets: int
    shares: int
    fee: int

    # Pool share units handed to the pool's redemption queue.
    pool_shares: int
    strategy: str


@dataclass(slots=True)
class RedemptionCompletedEvent:
    seq: int
    key: str
    owner: str
    receiver: str

    gross_assets: int
    net_assets: int
    fee: int
    shares: int

    # "instant", "same_call" or "finalize"
    path: str


@dataclass(slots=True)
class FeeCollectedEvent:
    seq: int
    key: str
    fee_collector: str

    gross_assets: int
    fee: int


@dataclass(slots=True)
class WithdrawRejectedEvent:
    seq: int
    key: str
    owner: str
    receiver: str

    gross_assets: int
    reason: str


VaultEvent = (
    DepositEvent
    | RedemptionRequestedEvent
    | RedemptionCompletedEvent
    | FeeCollectedEvent
    | WithdrawRejectedEvent
)
