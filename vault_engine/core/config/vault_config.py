"""Vault configuration model."""

from __future__ import annotations

from typing import Any

from pydantic import BaseModel, ConfigDict, Field, model_validator

from vault_engine.core.redemption.strategies import RedemptionStrategy

BPS_DENOMINATOR: int = 10_000


class VaultConfig(BaseModel):
    """Structured vault configuration.

    JSON example:
        "vault": {
          "vault_address": "vault",
          "asset_symbol": "USDC",
          "fee_collector": "fees",
          "fee_rate_bps": 100,
          "redemption_strategy": "local_custody"
        }
    """

    vault_address: str = Field(..., min_length=1)
    asset_symbol: str = Field(..., min_length=1)

    # Claim token metadata; derived from asset_symbol when omitted.
    name: str | None = Field(default=None, min_length=1)
    symbol: str | None = Field(default=None, min_length=1)

    fee_collector: str = Field(..., min_length=1)
    fee_rate_bps: int = Field(..., ge=0, le=BPS_DENOMINATOR)

    redemption_strategy: RedemptionStrategy = RedemptionStrategy.LOCAL_CUSTODY

    # Finalize before the pool paid: report a rejected_pending outcome, or
    # raise StillPendingError when set.
    raise_on_still_pending: bool = False

    # Deposit gate (fixed at configuration time)
    deposits_enabled: bool = True
    tvl_cap: int = Field(default=0, ge=0)  # 0 disables the cap

    model_config = ConfigDict(extra="forbid")

    @classmethod
    def from_json_obj(cls, vault_obj: dict[str, Any]) -> VaultConfig:
        """Create a VaultConfig instance from a JSON-compatible object."""
        return cls.model_validate(vault_obj)

    @model_validator(mode="after")
    def validate_consistency(self) -> VaultConfig:
        """Validate internal consistency of the vault configuration."""
        if self.fee_collector == self.vault_address:
            raise ValueError("fee_collector must differ from vault_address")
        return self

    @property
    def claim_name(self) -> str:
        return self.name if self.name is not None else f"Vault {self.asset_symbol} Claim"

    @property
    def claim_symbol(self) -> str:
        return self.symbol if self.symbol is not None else f"v{self.asset_symbol}"

    def has_tvl_cap(self) -> bool:
        return self.tvl_cap > 0
