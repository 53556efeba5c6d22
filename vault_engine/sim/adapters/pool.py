"""Simulated yield pool with asynchronous redemptions.

The pool keeps its own share ledger and prices shares at
``pool asset balance / total shares``. Redemption requests move shares
into escrow and join a FIFO queue; assets are paid when the queue is
processed (``process_redemptions``), or immediately when the pool is
configured as synchronous. Yield is simulated by minting assets into the
pool (``accrue_yield``), which raises the exit rate for every holder.
"""

# pylint: disable=too-many-instance-attributes
from __future__ import annotations

import logging
from collections import defaultdict
from dataclasses import dataclass
from typing import TYPE_CHECKING, Callable

from vault_engine.core.domain.errors import InsufficientPoolBackingError
from vault_engine.core.domain.types import PoolCapabilities

if TYPE_CHECKING:
    from vault_engine.sim.adapters.tokens import InMemoryAssetToken

LOGGER = logging.getLogger(__name__)


@dataclass(slots=True)
class RedemptionTicket:
    ticket_id: int
    owner: str
    receiver: str
    shares: int


@dataclass(slots=True)
class DepositCall:
    route: str
    assets: int
    receiver: str
    referral: str | None = None


class SimulatedAsyncPool:
    """In-memory ExternalPoolAdapter implementation."""

    def __init__(
        self,
        asset: InMemoryAssetToken,
        *,
        address: str = "pool",
        async_redeem: bool = True,
        capabilities: PoolCapabilities | None = None,
    ) -> None:
        self.asset = asset
        self.address = address
        self.async_redeem = async_redeem
        self._capabilities = capabilities if capabilities is not None else PoolCapabilities()

        self._free_shares: defaultdict[str, int] = defaultdict(int)
        self._total_shares = 0
        self._queue: list[RedemptionTicket] = []
        self._next_ticket = 1

        self.deposit_calls: list[DepositCall] = []
        self.request_calls: list[RedemptionTicket] = []

        # Invoked at the start of request_redemption; lets tests model a
        # pool that calls back into its caller.
        self.on_request: Callable[[int, str, str], None] | None = None

    # ------------------------------------------------------------------
    # Exchange rate
    # ------------------------------------------------------------------

    def total_assets(self) -> int:
        return self.asset.balance_of(self.address)

    def total_shares(self) -> int:
        return self._total_shares

    def convert_to_exit_assets(self, shares: int) -> int:
        if self._total_shares == 0:
            return shares
        return shares * self.total_assets() // self._total_shares

    def convert_to_exit_shares(self, assets: int) -> int:
        # Rounds up: the redeemer never receives less than ``assets``.
        total_assets = self.total_assets()
        if self._total_shares == 0 or total_assets == 0:
            return assets
        return -(-assets * self._total_shares // total_assets)

    def convert_to_shares(self, assets: int) -> int:
        total_assets = self.total_assets()
        if self._total_shares == 0 or total_assets == 0:
            return assets
        return assets * self._total_shares // total_assets

    # ------------------------------------------------------------------
    # Positions
    # ------------------------------------------------------------------

    def redeemable_shares_of(self, holder: str) -> int:
        return self._free_shares.get(holder, 0)

    def position_of(self, holder: str) -> int:
        escrowed_for_self = sum(
            t.shares for t in self._queue if t.owner == holder and t.receiver == holder
        )
        return self.redeemable_shares_of(holder) + escrowed_for_self

    def queue_length(self) -> int:
        return len(self._queue)

    # ------------------------------------------------------------------
    # Deposits
    # ------------------------------------------------------------------

    def capabilities(self) -> PoolCapabilities:
        return self._capabilities

    def authorize_and_deposit(self, assets: int, receiver: str) -> int:
        if not self._capabilities.supports_authorized_deposit:
            raise NotImplementedError("pool does not support authorized deposits")
        return self._deposit("authorize_and_deposit", assets, receiver, None)

    def deposit_with_referral(self, assets: int, receiver: str, referral: str) -> int:
        if not self._capabilities.supports_referral_deposit:
            raise NotImplementedError("pool does not support referral deposits")
        return self._deposit("deposit_with_referral", assets, receiver, referral)

    def deposit(self, assets: int, receiver: str) -> int:
        return self._deposit("direct", assets, receiver, None)

    def _deposit(self, route: str, assets: int, receiver: str, referral: str | None) -> int:
        shares = self.convert_to_shares(assets)
        self.asset.transfer(receiver, self.address, assets)
        self._free_shares[receiver] += shares
        self._total_shares += shares
        self.deposit_calls.append(DepositCall(route=route, assets=assets, receiver=receiver, referral=referral))
        return shares

    # ------------------------------------------------------------------
    # Redemptions
    # ------------------------------------------------------------------

    def request_redemption(self, shares: int, receiver: str, *, owner: str) -> None:
        if self.on_request is not None:
            self.on_request(shares, receiver, owner)

        free = self.redeemable_shares_of(owner)
        if free < shares:
            raise InsufficientPoolBackingError(
                "insufficient pool shares for redemption",
                owner=owner,
                required=shares,
                available=free,
            )

        self._free_shares[owner] = free - shares
        ticket = RedemptionTicket(
            ticket_id=self._next_ticket,
            owner=owner,
            receiver=receiver,
            shares=shares,
        )
        self._next_ticket += 1
        self._queue.append(ticket)
        self.request_calls.append(ticket)

        if not self.async_redeem:
            self.process_redemptions()

    def process_redemptions(self, *, receiver: str | None = None, limit: int | None = None) -> int:
        """Pay queued tickets in FIFO order; return total assets paid.

        Processing stops at the first ticket the pool's liquidity cannot cover.
        """
        paid = 0
        processed = 0
        remaining: list[RedemptionTicket] = []
        blocked = False

        for ticket in self._queue:
            eligible = receiver is None or ticket.receiver == receiver
            if blocked or not eligible or (limit is not None and processed >= limit):
                remaining.append(ticket)
                continue

            assets = self.convert_to_exit_assets(ticket.shares)
            if assets > self.total_assets():
                blocked = True
                remaining.append(ticket)
                continue

            self._total_shares -= ticket.shares
            self.asset.transfer(self.address, ticket.receiver, assets)
            paid += assets
            processed += 1
            LOGGER.debug(
                "pool_redemption_paid",
                extra={"ticket_id": ticket.ticket_id, "receiver": ticket.receiver, "assets": assets},
            )

        self._queue = remaining
        return paid

    # ------------------------------------------------------------------
    # Simulation hooks
    # ------------------------------------------------------------------

    def accrue_yield(self, assets: int) -> None:
        """Mint ``assets`` into the pool, raising the exit rate."""
        self.asset.mint(self.address, assets)

    def realize_loss(self, assets: int) -> None:
        """Remove ``assets`` from the pool, lowering the exit rate."""
        self.asset.transfer(self.address, "loss-sink", assets)
