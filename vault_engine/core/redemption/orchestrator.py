"""Withdrawal orchestrator.

Entry point of the redemption engine. A withdraw call takes exactly one of
three mutually exclusive paths:

- finalize: a pending record exists for (owner, receiver); pay it out if the
  pool has delivered the funds, otherwise report it as still pending.
- instant: no record and enough free idle balance; pay out right away.
- request: no record and not enough idle balance; ask the pool to redeem and
  either settle in the same call or store a pending record.

Every call runs under the reentrancy guard and inside an atomic section:
ledger and registry are restored and buffered events are discarded when
the call raises.

Idle balance is one pool shared by all keys. A request only asks the pool
for the part of its amount that free idle does not already cover, and
finalize checks the plain idle balance. Whichever key finalizes first may
settle with funds the pool delivered for another key, which then waits for
later deliveries. Every record is paid in full or not at all.
"""

# pylint: disable=too-many-instance-attributes,too-many-arguments,too-many-locals
from __future__ import annotations

import logging
from contextlib import contextmanager
from typing import TYPE_CHECKING, Iterator

from vault_engine.core.domain.errors import (
    DuplicateRequestError,
    InsufficientPoolBackingError,
    InsufficientSharesError,
    StaleFinalizeError,
    StillPendingError,
)
from vault_engine.core.domain.keys import pending_redemption_key
from vault_engine.core.domain.reject_reasons import RejectReason
from vault_engine.core.domain.types import PendingRedemption, WithdrawOutcome
from vault_engine.core.events.events import (
    FeeCollectedEvent,
    RedemptionCompletedEvent,
    RedemptionRequestedEvent,
    WithdrawRejectedEvent,
)
from vault_engine.core.redemption.strategies import RedemptionStrategy

if TYPE_CHECKING:
    from vault_engine.core.accounting.fee_calculator import FeeCalculator, FeeQuote
    from vault_engine.core.accounting.valuation import ValuationEngine
    from vault_engine.core.config.vault_config import VaultConfig
    from vault_engine.core.domain.ledger import VaultLedger
    from vault_engine.core.events.event_bus import EventBus
    from vault_engine.core.events.events import VaultEvent
    from vault_engine.core.ports.pool_adapter import ExternalPoolAdapter
    from vault_engine.core.ports.tokens import AssetToken, ClaimToken
    from vault_engine.core.redemption.guard import ReentrancyGuard
    from vault_engine.core.redemption.registry import PendingRedemptionRegistry

LOGGER = logging.getLogger(__name__)


class WithdrawalOrchestrator:
    """Drives valuation, fee accounting, the pool and the registry for withdrawals."""

    def __init__(
        self,
        *,
        cfg: VaultConfig,
        asset: AssetToken,
        claim_token: ClaimToken,
        pool: ExternalPoolAdapter,
        ledger: VaultLedger,
        registry: PendingRedemptionRegistry,
        valuation: ValuationEngine,
        fee_calculator: FeeCalculator,
        guard: ReentrancyGuard,
        event_bus: EventBus,
    ) -> None:
        self._cfg = cfg
        self._asset = asset
        self._claim = claim_token
        self._pool = pool
        self._ledger = ledger
        self._registry = registry
        self._valuation = valuation
        self._fees = fee_calculator
        self._guard = guard
        self._event_bus = event_bus

        self._vault = cfg.vault_address
        self._strategy = RedemptionStrategy(cfg.redemption_strategy)
        self._buffered: list[VaultEvent] = []

    @property
    def strategy(self) -> RedemptionStrategy:
        return self._strategy

    # ------------------------------------------------------------------
    # Atomic section
    # ------------------------------------------------------------------

    @contextmanager
    def transaction(self, operation: str) -> Iterator[None]:
        """Run ``operation`` exclusively; commit all of it or none of it.

        Ledger and registry are snapshotted on entry and restored if the body
        raises. Events are buffered and only reach the bus on commit.
        """
        with self._guard.enter(operation):
            ledger_snap = self._ledger.snapshot()
            registry_snap = self._registry.snapshot()
            self._buffered = []
            try:
                yield
            except BaseException:
                self._ledger.restore(ledger_snap)
                self._registry.restore(registry_snap)
                self._buffered = []
                LOGGER.warning(
                    "vault_call_rolled_back",
                    extra={"operation": operation, "seq": self._ledger.sequence},
                )
                raise

            events, self._buffered = self._buffered, []
            self._event_bus.publish(events)

    def emit(self, event: VaultEvent) -> None:
        """Buffer an event until the surrounding transaction commits."""
        self._buffered.append(event)

    # ------------------------------------------------------------------
    # Public API
    # ------------------------------------------------------------------

    def get_pending_redemption(self, owner: str, receiver: str) -> PendingRedemption | None:
        return self._registry.get(pending_redemption_key(owner, receiver))

    def withdraw(self, owner: str, receiver: str, assets: int, shares: int) -> WithdrawOutcome:
        """Withdraw ``assets`` for ``receiver`` against ``shares`` of ``owner``.

        Returns:
            WithdrawOutcome with status completed, requested or rejected_pending.

        Raises:
            DuplicateRequestError: a different amount is pending for the same pair.
            StaleFinalizeError: the pending record is already completed.
            StillPendingError: the pool has not paid yet and
                ``raise_on_still_pending`` is set.
            InsufficientPoolBackingError: the pool cannot service the request.
            InsufficientSharesError: ``owner`` lacks unreserved claim tokens.
            ReentrantCallError: called from within another vault call.
        """
        if assets < 0 or shares < 0:
            raise ValueError(f"assets and shares must be non-negative: {assets}, {shares}")

        with self.transaction("withdraw"):
            key = pending_redemption_key(owner, receiver)

            record = self._registry.get(key)
            if record is not None:
                return self._finalize(key, record, assets)

            if self.free_idle_balance() >= assets:
                return self._withdraw_instant(key, owner, receiver, assets, shares)

            if self._strategy is RedemptionStrategy.DIRECT_PAYOUT:
                return self._request_direct_payout(key, owner, receiver, assets, shares)
            return self._request_local_custody(key, owner, receiver, assets, shares)

    def free_idle_balance(self) -> int:
        """Idle balance not earmarked for live pending redemptions."""
        return max(0, self._valuation.idle_balance() - self._registry.earmarked_assets())

    def outstanding_nav(self) -> int:
        """NAV less the assets already promised to live pending redemptions."""
        return max(0, self._valuation.compute_nav() - self._registry.earmarked_assets())

    def outstanding_supply(self) -> int:
        """Claim supply less the units reserved by live pending redemptions."""
        return self._claim.total_supply() - self._registry.reserved_shares()

    # ------------------------------------------------------------------
    # Finalize path
    # ------------------------------------------------------------------

    def _finalize(self, key: str, record: PendingRedemption, assets: int) -> WithdrawOutcome:
        if record.completed:
            raise StaleFinalizeError("pending redemption already completed", key=key)

        if assets != record.requested_assets:
            raise DuplicateRequestError(
                "a different redemption is already pending for this owner/receiver",
                key=key,
                requested_assets=record.requested_assets,
                attempted_assets=assets,
            )

        idle = self._valuation.idle_balance()
        if idle < record.requested_assets:
            LOGGER.info(
                "redemption_still_pending",
                extra={"key": key, "idle": idle, "requested_assets": record.requested_assets},
            )
            if self._cfg.raise_on_still_pending:
                raise StillPendingError(
                    "pool has not paid the pending redemption yet",
                    key=key,
                    idle=idle,
                    requested_assets=record.requested_assets,
                )
            self.emit(
                WithdrawRejectedEvent(
                    seq=self._ledger.sequence,
                    key=key,
                    owner=record.owner,
                    receiver=record.receiver,
                    gross_assets=record.requested_assets,
                    reason=RejectReason.STILL_PENDING,
                )
            )
            return WithdrawOutcome(
                status="rejected_pending",
                key=key,
                owner=record.owner,
                receiver=record.receiver,
                gross_assets=record.requested_assets,
                fee=record.fee,
                shares=record.requested_shares,
                reject_reason=RejectReason.STILL_PENDING,
            )

        self._registry.complete(key)
        self._claim.burn_reserved(record.owner, record.requested_shares)
        return self._pay_out(
            key=key,
            owner=record.owner,
            receiver=record.receiver,
            gross_assets=record.requested_assets,
            fee=record.fee,
            shares=record.requested_shares,
            path="finalize",
        )

    # ------------------------------------------------------------------
    # Instant path
    # ------------------------------------------------------------------

    def _withdraw_instant(
        self, key: str, owner: str, receiver: str, assets: int, shares: int
    ) -> WithdrawOutcome:
        quote = self._quote(shares, assets)
        self._require_available_shares(owner, shares)

        self._ledger.set_principal(quote.new_principal)
        self._claim.burn(owner, shares)
        return self._pay_out(
            key=key,
            owner=owner,
            receiver=receiver,
            gross_assets=assets,
            fee=min(quote.fee, assets),
            shares=shares,
            path="instant",
        )

    # ------------------------------------------------------------------
    # Request path
    # ------------------------------------------------------------------

    def _request_local_custody(
        self, key: str, owner: str, receiver: str, assets: int, shares: int
    ) -> WithdrawOutcome:
        # Fee basis is the NAV before any pool interaction.
        quote = self._quote(shares, assets)
        fee = min(quote.fee, assets)
        self._require_available_shares(owner, shares)

        # Free idle stays in the vault and counts toward this record.
        shortfall = assets - self.free_idle_balance()
        pool_shares = self._pool.convert_to_exit_shares(shortfall)
        self._pool.request_redemption(pool_shares, self._vault, owner=self._vault)

        self._ledger.set_principal(quote.new_principal)
        seq = self._ledger.next_seq()
        self.emit(
            RedemptionRequestedEvent(
                seq=seq,
                key=key,
                owner=owner,
                receiver=receiver,
                gross_assets=assets,
                shares=shares,
                fee=fee,
                pool_shares=pool_shares,
                strategy=self._strategy.value,
            )
        )

        # The pool may have paid synchronously.
        if self.free_idle_balance() >= assets:
            self._claim.burn(owner, shares)
            return self._pay_out(
                key=key,
                owner=owner,
                receiver=receiver,
                gross_assets=assets,
                fee=fee,
                shares=shares,
                path="same_call",
                seq=seq,
            )

        self._claim.reserve(owner, shares)
        record = PendingRedemption(
            key=key,
            owner=owner,
            receiver=receiver,
            requested_assets=assets,
            requested_shares=shares,
            fee=fee,
            completed=False,
            requested_seq=seq,
        )
        self._registry.put(key, record)

        LOGGER.info(
            "redemption_requested",
            extra={
                "key": key,
                "owner": owner,
                "receiver": receiver,
                "assets": assets,
                "shares": shares,
                "pool_shares": pool_shares,
            },
        )
        return WithdrawOutcome(
            status="requested",
            key=key,
            owner=owner,
            receiver=receiver,
            gross_assets=assets,
            fee=fee,
            shares=shares,
        )

    def _request_direct_payout(
        self, key: str, owner: str, receiver: str, assets: int, shares: int
    ) -> WithdrawOutcome:
        quote = self._quote(shares, assets)
        fee = min(quote.fee, assets)
        self._require_available_shares(owner, shares)

        # Free idle is paid from the vault; the pool covers the rest.
        local_assets = self.free_idle_balance()
        local_fee_assets = min(fee, local_assets)
        local_user_assets = local_assets - local_fee_assets
        pool_assets = assets - local_assets
        total_pool_shares = self._pool.convert_to_exit_shares(pool_assets)
        redeemable = self._pool.redeemable_shares_of(self._vault)
        if redeemable < total_pool_shares:
            raise InsufficientPoolBackingError(
                "pool position cannot back the requested redemption",
                required=total_pool_shares,
                available=redeemable,
            )

        # The fee comes out of the local part first. Pool shares split pro rata
        # on what is left, rounded down for the user; the remainder goes to the fee portion.
        user_pool_shares = _user_portion(total_pool_shares, pool_assets, fee - local_fee_assets)
        fee_pool_shares = total_pool_shares - user_pool_shares

        if user_pool_shares > 0:
            self._pool.request_redemption(user_pool_shares, receiver, owner=self._vault)
        if fee_pool_shares > 0:
            self._pool.request_redemption(fee_pool_shares, self._cfg.fee_collector, owner=self._vault)

        # Claim tokens are burned up front; the pool pays the receiver directly.
        self._ledger.set_principal(quote.new_principal)
        self._claim.burn(owner, shares)
        if local_fee_assets > 0:
            self._asset.transfer(self._vault, self._cfg.fee_collector, local_fee_assets)
        if local_user_assets > 0:
            self._asset.transfer(self._vault, receiver, local_user_assets)

        seq = self._ledger.next_seq()
        self.emit(
            RedemptionRequestedEvent(
                seq=seq,
                key=key,
                owner=owner,
                receiver=receiver,
                gross_assets=assets,
                shares=shares,
                fee=fee,
                pool_shares=total_pool_shares,
                strategy=self._strategy.value,
            )
        )
        LOGGER.info(
            "redemption_requested_direct",
            extra={
                "key": key,
                "user_pool_shares": user_pool_shares,
                "fee_pool_shares": fee_pool_shares,
                "local_assets": local_assets,
            },
        )
        return WithdrawOutcome(
            status="requested",
            key=key,
            owner=owner,
            receiver=receiver,
            gross_assets=assets,
            fee=fee,
            shares=shares,
        )

    # ------------------------------------------------------------------
    # Helpers
    # ------------------------------------------------------------------

    def _quote(self, shares: int, assets: int) -> FeeQuote:
        # Live records already left principal; keep them out of NAV and supply too.
        return self._fees.compute_fee_and_principal_delta(
            withdraw_shares=shares,
            withdraw_assets=assets,
            total_supply=self.outstanding_supply(),
            total_principal=self._ledger.total_principal,
            nav_before_withdraw=self.outstanding_nav(),
        )

    def _require_available_shares(self, owner: str, shares: int) -> None:
        available = self._claim.available_balance_of(owner)
        if available < shares:
            raise InsufficientSharesError(
                "owner does not hold enough unreserved claim tokens",
                owner=owner,
                required=shares,
                available=available,
            )

    def _pay_out(
        self,
        *,
        key: str,
        owner: str,
        receiver: str,
        gross_assets: int,
        fee: int,
        shares: int,
        path: str,
        seq: int | None = None,
    ) -> WithdrawOutcome:
        net_assets = gross_assets - fee
        if seq is None:
            seq = self._ledger.next_seq()

        if fee > 0:
            self._asset.transfer(self._vault, self._cfg.fee_collector, fee)
            self.emit(
                FeeCollectedEvent(
                    seq=seq,
                    key=key,
                    fee_collector=self._cfg.fee_collector,
                    gross_assets=gross_assets,
                    fee=fee,
                )
            )
        if net_assets > 0:
            self._asset.transfer(self._vault, receiver, net_assets)

        self.emit(
            RedemptionCompletedEvent(
                seq=seq,
                key=key,
                owner=owner,
                receiver=receiver,
                gross_assets=gross_assets,
                net_assets=net_assets,
                fee=fee,
                shares=shares,
                path=path,
            )
        )
        LOGGER.info(
            "redemption_completed",
            extra={"key": key, "path": path, "gross_assets": gross_assets, "fee": fee, "net_assets": net_assets},
        )
        return WithdrawOutcome(
            status="completed",
            key=key,
            owner=owner,
            receiver=receiver,
            gross_assets=gross_assets,
            fee=fee,
            net_assets=net_assets,
            shares=shares,
        )


def _user_portion(amount: int, gross_assets: int, fee: int) -> int:
    if gross_assets <= 0:
        return 0
    return amount * (gross_assets - fee) // gross_assets
