"""Core shared data models and schemas.

This module defines the canonical Pydantic models exchanged across the
engine boundary: pending redemption records, withdrawal outcomes and pool
capability descriptors. These types are treated as schema definitions
(see ``vault_engine/core/schemas``) and intentionally prioritize structural
clarity over minimal class size.

All amounts are integers in the smallest unit of the respective token.
"""

# pylint: disable=line-too-long,missing-class-docstring,missing-function-docstring
from __future__ import annotations

from typing import Literal

from pydantic import BaseModel, ConfigDict, Field, model_validator

# ---------------------------------------------------------------------------
# Pending redemption record
# ---------------------------------------------------------------------------


class PendingRedemption(BaseModel):
    """
    In-flight redemption awaiting asynchronous payout from the pool.

    Notes:
    - requested_assets and fee are frozen at request time and never recomputed.
    - requested_shares stay reserved on the owner's claim balance until finalize.
    """

    key: str = Field(..., min_length=1, description="Deterministic key derived from (receiver, owner).")
    owner: str = Field(..., min_length=1, description="Identity whose claim tokens back the redemption.")
    receiver: str = Field(..., min_length=1, description="Identity paid on finalize.")

    requested_assets: int = Field(..., ge=0, description="Gross asset amount promised to the receiver.")
    requested_shares: int = Field(..., ge=0, description="Claim-token units burned on finalize.")
    fee: int = Field(..., ge=0, description="Asset amount routed to the fee collector on finalize.")

    completed: bool = Field(False, description="Terminal marker; completed records are deleted immediately.")
    requested_seq: int = Field(..., ge=0, description="Ledger sequence number of the request.")

    model_config = ConfigDict(extra="forbid")

    @model_validator(mode="after")
    def validate_fee_within_gross(self) -> PendingRedemption:
        if self.fee > self.requested_assets:
            raise ValueError("fee must not exceed requested_assets")
        return self

    @property
    def net_assets(self) -> int:
        return self.requested_assets - self.fee


# ---------------------------------------------------------------------------
# Withdrawal outcome
# ---------------------------------------------------------------------------


OutcomeStatus = Literal["completed", "requested", "rejected_pending"]


class WithdrawOutcome(BaseModel):
    """
    Result of a single withdraw call.

    - completed: assets were paid; fee + net_assets == gross_assets.
    - requested: a redemption was requested from the pool; nothing was paid yet.
    - rejected_pending: an existing request is still waiting for funds; no state changed.
    """

    status: OutcomeStatus
    key: str = Field(..., min_length=1)

    owner: str = Field(..., min_length=1)
    receiver: str = Field(..., min_length=1)

    gross_assets: int = Field(..., ge=0)
    fee: int = Field(0, ge=0)
    net_assets: int = Field(0, ge=0)
    shares: int = Field(..., ge=0)

    reject_reason: str | None = Field(default=None, min_length=1)

    model_config = ConfigDict(extra="forbid")

    @model_validator(mode="after")
    def validate_status_payload(self) -> WithdrawOutcome:
        """
        Enforce the conditional requirements from the JSON schema:
        - completed: fee + net_assets == gross_assets, no reject_reason
        - requested: net_assets == 0, no reject_reason
        - rejected_pending: reject_reason required, nothing paid
        """
        if self.status == "completed":
            if self.fee + self.net_assets != self.gross_assets:
                raise ValueError("completed outcome must satisfy fee + net_assets == gross_assets")
            if self.reject_reason is not None:
                raise ValueError("reject_reason must be None for a completed outcome")
        elif self.status == "requested":
            if self.net_assets != 0:
                raise ValueError("requested outcome must not report paid net_assets")
            if self.reject_reason is not None:
                raise ValueError("reject_reason must be None for a requested outcome")
        else:
            if self.reject_reason is None:
                raise ValueError("reject_reason is required for a rejected_pending outcome")
            if self.net_assets != 0:
                raise ValueError("rejected_pending outcome must not report paid net_assets")
        return self

    def is_completed(self) -> bool:
        return self.status == "completed"

    def is_requested(self) -> bool:
        return self.status == "requested"

    def is_rejected(self) -> bool:
        return self.status == "rejected_pending"


# ---------------------------------------------------------------------------
# Pool capabilities
# ---------------------------------------------------------------------------


class PoolCapabilities(BaseModel):
    """Deposit interfaces a pool (or its router) supports."""

    supports_authorized_deposit: bool = False
    supports_referral_deposit: bool = False
    deposit_referral: str | None = Field(default=None, min_length=1)

    model_config = ConfigDict(extra="forbid")

    @model_validator(mode="after")
    def validate_referral(self) -> PoolCapabilities:
        if self.supports_referral_deposit and self.deposit_referral is None:
            raise ValueError("deposit_referral is required when supports_referral_deposit is set")
        return self
