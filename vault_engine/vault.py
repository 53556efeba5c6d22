"""Yield vault facade.

Wires ledger, registry, valuation, fee accounting and the withdrawal
orchestrator around one asset token, one claim token and one pool, and
exposes the vault-level entry points: deposit, withdraw, redeem, and the
share/asset conversion helpers.

Share pricing follows the usual vault conventions: the first deposit mints
1:1, later deposits mint ``assets * supply // NAV``. Conversions that
determine what a holder receives round down; conversions that determine
what a holder must give up round up. Pending redemptions are priced out of
both sides: their frozen assets leave NAV and their reserved units leave
supply.
"""

# pylint: disable=too-many-instance-attributes
from __future__ import annotations

import logging
from typing import TYPE_CHECKING

from vault_engine.core.accounting.fee_calculator import FeeCalculator
from vault_engine.core.accounting.valuation import ValuationEngine
from vault_engine.core.domain.errors import DepositRejectedError
from vault_engine.core.domain.ledger import VaultLedger
from vault_engine.core.domain.reject_reasons import RejectReason
from vault_engine.core.events.events import DepositEvent
from vault_engine.core.redemption.guard import ReentrancyGuard
from vault_engine.core.redemption.orchestrator import WithdrawalOrchestrator
from vault_engine.core.redemption.registry import PendingRedemptionRegistry
from vault_engine.core.redemption.strategies import DepositRoute, resolve_deposit_route

if TYPE_CHECKING:
    from vault_engine.core.config.vault_config import VaultConfig
    from vault_engine.core.domain.types import PendingRedemption, WithdrawOutcome
    from vault_engine.core.events.event_bus import EventBus
    from vault_engine.core.ports.pool_adapter import ExternalPoolAdapter
    from vault_engine.core.ports.tokens import AssetToken, ClaimToken

LOGGER = logging.getLogger(__name__)


class YieldVault:
    """Deposit/withdraw surface over the redemption engine."""

    def __init__(
        self,
        *,
        cfg: VaultConfig,
        asset: AssetToken,
        claim_token: ClaimToken,
        pool: ExternalPoolAdapter,
        event_bus: EventBus,
    ) -> None:
        self.cfg = cfg
        self._asset = asset
        self._claim = claim_token
        self._pool = pool

        self._ledger = VaultLedger()
        self._registry = PendingRedemptionRegistry()
        self._valuation = ValuationEngine(asset=asset, pool=pool, vault_address=cfg.vault_address)
        self._orchestrator = WithdrawalOrchestrator(
            cfg=cfg,
            asset=asset,
            claim_token=claim_token,
            pool=pool,
            ledger=self._ledger,
            registry=self._registry,
            valuation=self._valuation,
            fee_calculator=FeeCalculator(cfg.fee_rate_bps),
            guard=ReentrancyGuard(),
            event_bus=event_bus,
        )

        # Resolved once; deposits never probe pool interfaces at call time.
        capabilities = pool.capabilities()
        self._deposit_route = resolve_deposit_route(capabilities)
        self._deposit_referral = capabilities.deposit_referral

        LOGGER.info(
            "vault_configured",
            extra={
                "vault": cfg.vault_address,
                "strategy": self._orchestrator.strategy.value,
                "deposit_route": self._deposit_route.value,
                "fee_rate_bps": cfg.fee_rate_bps,
            },
        )

    # ------------------------------------------------------------------
    # Introspection
    # ------------------------------------------------------------------

    @property
    def ledger(self) -> VaultLedger:
        return self._ledger

    @property
    def registry(self) -> PendingRedemptionRegistry:
        return self._registry

    @property
    def orchestrator(self) -> WithdrawalOrchestrator:
        return self._orchestrator

    @property
    def deposit_route(self) -> DepositRoute:
        return self._deposit_route

    def total_assets(self) -> int:
        """Current NAV."""
        return self._valuation.compute_nav()

    def total_principal(self) -> int:
        return self._ledger.total_principal

    def total_supply(self) -> int:
        return self._claim.total_supply()

    def idle_balance(self) -> int:
        return self._valuation.idle_balance()

    def get_pending_redemption(self, owner: str, receiver: str) -> PendingRedemption | None:
        return self._orchestrator.get_pending_redemption(owner, receiver)

    def pending_redemptions(self) -> list[PendingRedemption]:
        return list(self._registry)

    # ------------------------------------------------------------------
    # Conversions
    # ------------------------------------------------------------------

    def convert_to_shares(self, assets: int) -> int:
        supply = self._orchestrator.outstanding_supply()
        nav = self._orchestrator.outstanding_nav()
        if supply == 0 or nav == 0:
            return assets
        return assets * supply // nav

    def convert_to_assets(self, shares: int) -> int:
        supply = self._orchestrator.outstanding_supply()
        if supply == 0:
            return shares
        return shares * self._orchestrator.outstanding_nav() // supply

    def preview_deposit(self, assets: int) -> int:
        return self.convert_to_shares(assets)

    def preview_withdraw(self, assets: int) -> int:
        """Shares burned for withdrawing ``assets`` (rounds up)."""
        supply = self._orchestrator.outstanding_supply()
        nav = self._orchestrator.outstanding_nav()
        if supply == 0 or nav == 0:
            return assets
        return -(-assets * supply // nav)

    def preview_redeem(self, shares: int) -> int:
        return self.convert_to_assets(shares)

    def max_deposit(self, receiver: str) -> int | None:  # pylint: disable=unused-argument
        """Largest accepted deposit; ``None`` means unlimited."""
        if not self.cfg.deposits_enabled:
            return 0
        if not self.cfg.has_tvl_cap():
            return None
        return max(0, self.cfg.tvl_cap - self.total_assets())

    def max_redeem(self, owner: str) -> int:
        return self._claim.available_balance_of(owner)

    def max_withdraw(self, owner: str) -> int:
        return self.convert_to_assets(self.max_redeem(owner))

    # ------------------------------------------------------------------
    # Entry points
    # ------------------------------------------------------------------

    def deposit(self, sender: str, receiver: str, assets: int) -> int:
        """Deposit ``assets`` from ``sender``, mint claim tokens to ``receiver``.

        The assets are forwarded into the pool through the negotiated route.

        Raises:
            DepositRejectedError: deposits are disabled, the TVL cap would be
                exceeded, or the deposit would mint no claim tokens.
        """
        if assets <= 0:
            raise ValueError(f"deposit amount must be positive: {assets}")

        with self._orchestrator.transaction("deposit"):
            self._check_deposit_gate(assets)

            shares = self.convert_to_shares(assets)
            if shares == 0:
                raise DepositRejectedError(
                    "deposit too small to mint claim tokens",
                    reason=RejectReason.ZERO_SHARES,
                    assets=assets,
                )

            self._asset.transfer(sender, self.cfg.vault_address, assets)
            pool_shares = self._forward_to_pool(assets)

            self._ledger.add_principal(assets)
            self._claim.mint(receiver, shares)

            seq = self._ledger.next_seq()
            self._orchestrator.emit(
                DepositEvent(
                    seq=seq,
                    sender=sender,
                    receiver=receiver,
                    assets=assets,
                    shares=shares,
                    total_principal=self._ledger.total_principal,
                )
            )

        LOGGER.info(
            "deposit_completed",
            extra={"receiver": receiver, "assets": assets, "shares": shares, "pool_shares": pool_shares},
        )
        return shares

    def withdraw(self, owner: str, receiver: str, assets: int) -> WithdrawOutcome:
        """Withdraw ``assets``; a matching pending redemption is finalized instead.

        While a redemption is pending the shares frozen in the record are used,
        so a finalize call is unaffected by exchange-rate drift.
        """
        record = self.get_pending_redemption(owner, receiver)
        if record is not None and record.requested_assets == assets:
            shares = record.requested_shares
        else:
            shares = self.preview_withdraw(assets)
        return self._orchestrator.withdraw(owner, receiver, assets, shares)

    def redeem(self, owner: str, receiver: str, shares: int) -> WithdrawOutcome:
        """Redeem ``shares``; a matching pending redemption is finalized instead."""
        record = self.get_pending_redemption(owner, receiver)
        if record is not None and record.requested_shares == shares:
            assets = record.requested_assets
        else:
            assets = self.preview_redeem(shares)
        return self._orchestrator.withdraw(owner, receiver, assets, shares)

    # ------------------------------------------------------------------
    # Helpers
    # ------------------------------------------------------------------

    def _check_deposit_gate(self, assets: int) -> None:
        if not self.cfg.deposits_enabled:
            raise DepositRejectedError(
                "deposits are disabled",
                reason=RejectReason.DEPOSITS_DISABLED,
                assets=assets,
            )
        if self.cfg.has_tvl_cap() and self.total_assets() + assets > self.cfg.tvl_cap:
            raise DepositRejectedError(
                "deposit would exceed the TVL cap",
                reason=RejectReason.TVL_CAP_EXCEEDED,
                assets=assets,
                tvl_cap=self.cfg.tvl_cap,
            )

    def _forward_to_pool(self, assets: int) -> int:
        vault = self.cfg.vault_address
        if self._deposit_route is DepositRoute.AUTHORIZE_AND_DEPOSIT:
            return self._pool.authorize_and_deposit(assets, vault)
        if self._deposit_route is DepositRoute.DEPOSIT_WITH_REFERRAL:
            return self._pool.deposit_with_referral(assets, vault, self._deposit_referral)
        return self._pool.deposit(assets, vault)
