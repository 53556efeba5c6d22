"""Exception taxonomy for the redemption engine.

Every error is terminal for the call that raised it. The engine never
retries internally; callers decide whether and when to retry.
"""

from __future__ import annotations

from vault_engine.core.domain.reject_reasons import RejectReason


class VaultError(Exception):
    """Base class for all engine errors."""

    reason: str = "VAULT_ERROR"

    def __init__(self, message: str, **context: object) -> None:
        super().__init__(message)
        self.context = context


class StillPendingError(VaultError):
    """Finalize attempted before the pool paid the requested assets back."""

    reason = RejectReason.STILL_PENDING


class DuplicateRequestError(VaultError):
    """A second pending redemption was requested for an occupied key."""

    reason = RejectReason.DUPLICATE_REQUEST


class InsufficientPoolBackingError(VaultError):
    """The pool cannot service the requested share conversion."""

    reason = RejectReason.INSUFFICIENT_POOL_BACKING


class StaleFinalizeError(VaultError):
    """Finalize attempted on a record that is already completed."""

    reason = RejectReason.STALE_FINALIZE


class ReentrantCallError(VaultError):
    """A nested call entered the engine while another call was running."""

    reason = RejectReason.REENTRANT_CALL


class InsufficientSharesError(VaultError):
    """The owner does not hold enough unreserved claim tokens."""

    reason = RejectReason.INSUFFICIENT_SHARES


class DepositRejectedError(VaultError):
    """The deposit gate refused the deposit."""

    def __init__(self, message: str, reason: str, **context: object) -> None:
        super().__init__(message, **context)
        self.reason = reason
