"""External pool adapter protocol.

This module defines the boundary between the redemption engine and the
downstream yield-bearing pool. The pool is treated as an opaque oracle of
its exit exchange rate and as a black-box asynchronous payer: a redemption
request returns immediately and the assets arrive in the requester's
custody at some later, unobservable point (possibly within the same call).

Concrete implementations adapt a specific pool (or a simulation) to this
protocol.
"""

from __future__ import annotations

from typing import TYPE_CHECKING, Protocol

if TYPE_CHECKING:
    from vault_engine.core.domain.types import PoolCapabilities


class ExternalPoolAdapter(Protocol):
    """Pool-facing boundary.

    The engine must not depend on pool-specific APIs beyond this protocol.
    """

    def convert_to_exit_assets(self, shares: int) -> int:
        """Return the assets that ``shares`` pool shares redeem for right now."""

    def convert_to_exit_shares(self, assets: int) -> int:
        """Return the pool shares needed to redeem ``assets`` right now."""

    def position_of(self, holder: str) -> int:
        """Return pool shares backing ``holder``.

        Shares queued for redemption with ``holder`` as the payee still count;
        shares queued for payout to someone else do not.
        """

    def redeemable_shares_of(self, holder: str) -> int:
        """Return pool shares of ``holder`` not yet queued for redemption."""

    def request_redemption(self, shares: int, receiver: str, *, owner: str) -> None:
        """Queue ``shares`` held by ``owner`` for redemption, payable to ``receiver``.

        The call returns before payout; assets reach ``receiver`` at some later
        point that the caller cannot observe (possibly before this call returns).

        Raises:
            InsufficientPoolBackingError: ``owner`` lacks redeemable pool shares.
        """

    def capabilities(self) -> PoolCapabilities:
        """Describe which deposit interfaces the pool supports."""

    def authorize_and_deposit(self, assets: int, receiver: str) -> int:
        """Deposit through an authorizing router; return pool shares minted."""

    def deposit_with_referral(self, assets: int, receiver: str, referral: str) -> int:
        """Deposit with a referral/deposit-data tag; return pool shares minted."""

    def deposit(self, assets: int, receiver: str) -> int:
        """Plain deposit; return pool shares minted."""
