"""Public API for the vault_engine package.

Only symbols imported here are considered part of the stable,
supported external interface.
"""

from __future__ import annotations

from importlib.metadata import PackageNotFoundError, version

# ----------------------------------------------------------------------
# Accounting
# ----------------------------------------------------------------------
from vault_engine.core.accounting.fee_calculator import FeeCalculator, FeeQuote
from vault_engine.core.accounting.valuation import ValuationEngine

# ----------------------------------------------------------------------
# Config API
# ----------------------------------------------------------------------
from vault_engine.core.config.vault_config import VaultConfig

# ----------------------------------------------------------------------
# Domain Types
# ----------------------------------------------------------------------
from vault_engine.core.domain.errors import (
    DepositRejectedError,
    DuplicateRequestError,
    InsufficientPoolBackingError,
    InsufficientSharesError,
    ReentrantCallError,
    StaleFinalizeError,
    StillPendingError,
    VaultError,
)
from vault_engine.core.domain.keys import pending_redemption_key
from vault_engine.core.domain.reject_reasons import RejectReason
from vault_engine.core.domain.types import (
    PendingRedemption,
    PoolCapabilities,
    WithdrawOutcome,
)

# ----------------------------------------------------------------------
# Ports
# ----------------------------------------------------------------------
from vault_engine.core.ports.pool_adapter import ExternalPoolAdapter
from vault_engine.core.ports.tokens import AssetToken, ClaimToken

# ----------------------------------------------------------------------
# Redemption engine
# ----------------------------------------------------------------------
from vault_engine.core.redemption.orchestrator import WithdrawalOrchestrator
from vault_engine.core.redemption.registry import PendingRedemptionRegistry
from vault_engine.core.redemption.strategies import DepositRoute, RedemptionStrategy
from vault_engine.vault import YieldVault

# ----------------------------------------------------------------------
# Public API definition
# ----------------------------------------------------------------------

__all__ = [
    # Vault
    "YieldVault",
    "VaultConfig",
    "WithdrawalOrchestrator",
    "PendingRedemptionRegistry",
    "RedemptionStrategy",
    "DepositRoute",

    # Accounting
    "FeeCalculator",
    "FeeQuote",
    "ValuationEngine",

    # Ports
    "ExternalPoolAdapter",
    "AssetToken",
    "ClaimToken",

    # Domain
    "PendingRedemption",
    "PoolCapabilities",
    "WithdrawOutcome",
    "RejectReason",
    "pending_redemption_key",

    # Errors
    "VaultError",
    "StillPendingError",
    "DuplicateRequestError",
    "InsufficientPoolBackingError",
    "StaleFinalizeError",
    "ReentrantCallError",
    "InsufficientSharesError",
    "DepositRejectedError",

    # Version
    "__version__",
]

# ----------------------------------------------------------------------
# Package version
# ----------------------------------------------------------------------

try:
    __version__ = version("vault-engine")
except PackageNotFoundError:
    __version__ = "0.0.0"
