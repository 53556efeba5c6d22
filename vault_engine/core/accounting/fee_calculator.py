"""Yield-only fee accounting.

The fee is charged on the withdrawing holder's pro-rata share of realized
yield (NAV in excess of principal), never on principal. All divisions
round down, so the vault never promises more than NAV can cover.
"""

from __future__ import annotations

from dataclasses import dataclass

from vault_engine.core.config.vault_config import BPS_DENOMINATOR


@dataclass(frozen=True, slots=True)
class FeeQuote:
    """Fee and principal adjustment for one withdrawal."""

    fee: int
    new_principal: int
    user_yield_share: int


class FeeCalculator:
    """Computes the fee and principal delta for a withdrawal.

    The quote must be computed against the NAV snapshot taken at call entry,
    before any pool interaction.
    """

    def __init__(self, fee_rate_bps: int) -> None:
        if not 0 <= fee_rate_bps <= BPS_DENOMINATOR:
            raise ValueError(f"Invalid fee_rate_bps: {fee_rate_bps}")
        self._fee_rate_bps = int(fee_rate_bps)

    @property
    def fee_rate_bps(self) -> int:
        return self._fee_rate_bps

    def compute_fee_and_principal_delta(
        self,
        *,
        withdraw_shares: int,
        withdraw_assets: int,
        total_supply: int,
        total_principal: int,
        nav_before_withdraw: int,
    ) -> FeeQuote:
        """Return the fee and the principal remaining after the withdrawal.

        Without yield (empty supply, zero principal, or NAV at or below
        principal) the fee is zero and the whole withdrawal counts as
        principal. Otherwise the holder's yield share is
        ``withdraw_shares * total_yield // total_supply`` and only the rest
        of the withdrawal reduces principal.
        """
        if total_supply == 0 or total_principal == 0 or nav_before_withdraw <= total_principal:
            return FeeQuote(
                fee=0,
                new_principal=max(0, total_principal - withdraw_assets),
                user_yield_share=0,
            )

        total_yield = nav_before_withdraw - total_principal
        user_yield_share = withdraw_shares * total_yield // total_supply
        fee = user_yield_share * self._fee_rate_bps // BPS_DENOMINATOR

        principal_portion = withdraw_assets - user_yield_share
        if principal_portion <= total_principal:
            new_principal = total_principal - principal_portion
        else:
            new_principal = 0

        return FeeQuote(
            fee=fee,
            # A yield share larger than the withdrawal leaves principal untouched.
            new_principal=min(new_principal, total_principal),
            user_yield_share=user_yield_share,
        )
