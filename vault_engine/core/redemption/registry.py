"""Pending redemption registry.

Holds at most one in-flight redemption record per (owner, receiver) key and
owns the per-key lifecycle (see ``redemption_state_machine``). The registry
is the enforcement point for the one-pending-per-pair rule: ``put`` refuses
to overwrite a live record.
"""

# pylint: disable=missing-function-docstring
from __future__ import annotations

import logging
from typing import Iterator

from vault_engine.core.domain.errors import DuplicateRequestError, StaleFinalizeError
from vault_engine.core.domain.redemption_state_machine import (
    EMPTY,
    FINALIZED,
    REQUESTED,
    is_valid_transition,
)
from vault_engine.core.domain.types import PendingRedemption

LOGGER = logging.getLogger(__name__)


class PendingRedemptionRegistry:
    """Key -> live PendingRedemption mapping."""

    def __init__(self) -> None:
        self._records: dict[str, PendingRedemption] = {}

    # ------------------------------------------------------------------
    # Queries
    # ------------------------------------------------------------------

    def get(self, key: str) -> PendingRedemption | None:
        return self._records.get(key)

    def state_of(self, key: str) -> str:
        record = self._records.get(key)
        if record is None:
            return EMPTY
        if record.completed:
            return FINALIZED
        return REQUESTED

    def live_count(self) -> int:
        return sum(1 for r in self._records.values() if not r.completed)

    def earmarked_assets(self) -> int:
        """Sum of requested assets over live records."""
        return sum(r.requested_assets for r in self._records.values() if not r.completed)

    def reserved_shares(self) -> int:
        """Sum of claim-token units held back by live records."""
        return sum(r.requested_shares for r in self._records.values() if not r.completed)

    def __contains__(self, key: object) -> bool:
        return key in self._records

    def __len__(self) -> int:
        return len(self._records)

    def __iter__(self) -> Iterator[PendingRedemption]:
        return iter(list(self._records.values()))

    # ------------------------------------------------------------------
    # Mutations
    # ------------------------------------------------------------------

    def put(self, key: str, record: PendingRedemption) -> None:
        """Store a new requested record.

        Raises:
            DuplicateRequestError: a non-completed record already exists for ``key``.
        """
        if record.key != key:
            raise ValueError(f"record key {record.key!r} does not match registry key {key!r}")
        if record.completed:
            raise ValueError("cannot store a completed record")

        existing = self._records.get(key)
        # A completed record may be overwritten; it is logically deleted.
        prev_state = EMPTY if existing is None or existing.completed else REQUESTED
        if not is_valid_transition(prev_state, REQUESTED):
            raise DuplicateRequestError(
                "a pending redemption already exists for this owner/receiver",
                key=key,
                requested_assets=existing.requested_assets if existing is not None else 0,
            )

        self._records[key] = record
        LOGGER.debug(
            "pending_redemption_stored",
            extra={"key": key, "requested_assets": record.requested_assets},
        )

    def complete(self, key: str) -> PendingRedemption:
        """Mark the record for ``key`` completed, delete it and return it.

        Raises:
            KeyError: no record exists for ``key``.
            StaleFinalizeError: the record is already completed.
        """
        record = self._records[key]
        if record.completed:
            raise StaleFinalizeError("pending redemption already completed", key=key)
        if not is_valid_transition(REQUESTED, FINALIZED):
            raise StaleFinalizeError("invalid redemption transition", key=key)

        # Records are replaced, never mutated, so snapshots stay intact.
        completed = record.model_copy(update={"completed": True})
        self._records[key] = completed
        self.delete(key)
        return completed

    def delete(self, key: str) -> None:
        """Remove the record for ``key``; removing a missing key is a no-op."""
        self._records.pop(key, None)

    # ------------------------------------------------------------------
    # Atomic section support
    # ------------------------------------------------------------------

    def snapshot(self) -> dict[str, PendingRedemption]:
        return dict(self._records)

    def restore(self, snap: dict[str, PendingRedemption]) -> None:
        self._records = dict(snap)
