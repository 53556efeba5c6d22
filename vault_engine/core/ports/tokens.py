"""Token protocols consumed by the vault.

The claim-token and asset-token bookkeeping is owned by external
components. The vault only needs the operations listed here.
"""

from __future__ import annotations

from typing import Protocol


class AssetToken(Protocol):
    """Fungible deposit asset."""

    def balance_of(self, holder: str) -> int:
        """Return the asset balance of ``holder``."""

    def transfer(self, sender: str, recipient: str, amount: int) -> None:
        """Move ``amount`` from ``sender`` to ``recipient``."""


class ClaimToken(Protocol):
    """Claim token issued by the vault.

    A reservation removes units from the owner's available (transferable)
    balance without removing them from the total supply. Reserved units
    leave only through ``burn_reserved``; pending redemptions never expire.
    """

    def total_supply(self) -> int:
        """Return claim-token units outstanding, reserved units included."""

    def balance_of(self, holder: str) -> int:
        """Return the full balance of ``holder``, reserved units included."""

    def available_balance_of(self, holder: str) -> int:
        """Return the unreserved balance of ``holder``."""

    def mint(self, to: str, amount: int) -> None:
        """Create ``amount`` units for ``to``."""

    def burn(self, holder: str, amount: int) -> None:
        """Destroy ``amount`` available units of ``holder``."""

    def reserve(self, holder: str, amount: int) -> None:
        """Move ``amount`` available units of ``holder`` into reservation."""

    def burn_reserved(self, holder: str, amount: int) -> None:
        """Destroy ``amount`` reserved units of ``holder``."""
