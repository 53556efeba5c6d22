"""Vault ledger state.

The ledger is owned by a single vault instance and mutated only by the
deposit and withdraw entry points. Only two balances are tracked: the
principal (here) and the total value (derived on demand by valuation).
"""

from __future__ import annotations

from dataclasses import dataclass


@dataclass(slots=True)
class VaultLedger:
    """Principal accounting plus the position in the linear state log."""

    total_principal: int = 0
    sequence: int = 0

    def add_principal(self, assets: int) -> None:
        if assets < 0:
            raise ValueError(f"principal increase must be non-negative: {assets}")
        self.total_principal += assets

    def set_principal(self, new_principal: int) -> None:
        # Floor at zero to absorb rounding drift.
        self.total_principal = max(0, new_principal)

    def next_seq(self) -> int:
        self.sequence += 1
        return self.sequence

    def snapshot(self) -> tuple[int, int]:
        return (self.total_principal, self.sequence)

    def restore(self, snap: tuple[int, int]) -> None:
        self.total_principal, self.sequence = snap
