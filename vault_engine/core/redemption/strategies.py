"""Named withdrawal strategies and deposit route negotiation.

Two withdrawal strategies exist and are chosen once, from configuration:

- LOCAL_CUSTODY: the pool pays the vault; the vault distributes fee and
  net amount on finalize. Claim tokens stay reserved until then.
- DIRECT_PAYOUT: the pool pays the receiver and the fee collector
  directly; claim tokens are burned when the redemption is requested.

The deposit route is resolved once from the pool's declared capabilities
instead of probing interfaces on every call.
"""

from __future__ import annotations

from enum import Enum
from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from vault_engine.core.domain.types import PoolCapabilities


class RedemptionStrategy(str, Enum):
    LOCAL_CUSTODY = "local_custody"
    DIRECT_PAYOUT = "direct_payout"


class DepositRoute(str, Enum):
    AUTHORIZE_AND_DEPOSIT = "authorize_and_deposit"
    DEPOSIT_WITH_REFERRAL = "deposit_with_referral"
    DIRECT = "direct"


def resolve_deposit_route(capabilities: PoolCapabilities) -> DepositRoute:
    """Pick the most specific deposit interface the pool supports."""
    if capabilities.supports_authorized_deposit:
        return DepositRoute.AUTHORIZE_AND_DEPOSIT
    if capabilities.supports_referral_deposit:
        return DepositRoute.DEPOSIT_WITH_REFERRAL
    return DepositRoute.DIRECT
