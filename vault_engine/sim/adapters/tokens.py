"""In-memory token implementations for simulations and tests.

These satisfy the ``AssetToken`` and ``ClaimToken`` protocols with plain
integer bookkeeping. They are the only place where the simulation decides
how balances are stored.
"""

# pylint: disable=missing-function-docstring
from __future__ import annotations

from collections import defaultdict


class InsufficientBalanceError(ValueError):
    """A transfer, burn or reservation exceeded the holder's balance."""


class InMemoryAssetToken:
    """Fungible asset with mint and transfer."""

    def __init__(self, symbol: str, decimals: int = 6) -> None:
        self.symbol = symbol
        self.decimals = decimals
        self._balances: defaultdict[str, int] = defaultdict(int)
        self._total_supply = 0

    def total_supply(self) -> int:
        return self._total_supply

    def balance_of(self, holder: str) -> int:
        return self._balances.get(holder, 0)

    def mint(self, to: str, amount: int) -> None:
        _require_non_negative(amount)
        self._balances[to] += amount
        self._total_supply += amount

    def transfer(self, sender: str, recipient: str, amount: int) -> None:
        _require_non_negative(amount)
        balance = self.balance_of(sender)
        if balance < amount:
            raise InsufficientBalanceError(
                f"{self.symbol}: {sender} holds {balance}, cannot transfer {amount}"
            )
        self._balances[sender] = balance - amount
        self._balances[recipient] += amount


class InMemoryClaimToken:
    """Claim token with reservations.

    ``balance_of`` includes reserved units; ``available_balance_of`` does not.
    Transfers and plain burns may only spend available units, so a
    reservation cannot be re-spent while a redemption is in flight.
    """

    def __init__(self, name: str, symbol: str) -> None:
        self.name = name
        self.symbol = symbol
        self._balances: defaultdict[str, int] = defaultdict(int)
        self._reserved: defaultdict[str, int] = defaultdict(int)
        self._total_supply = 0

    def total_supply(self) -> int:
        return self._total_supply

    def balance_of(self, holder: str) -> int:
        return self._balances.get(holder, 0)

    def reserved_of(self, holder: str) -> int:
        return self._reserved.get(holder, 0)

    def available_balance_of(self, holder: str) -> int:
        return self.balance_of(holder) - self.reserved_of(holder)

    def mint(self, to: str, amount: int) -> None:
        _require_non_negative(amount)
        self._balances[to] += amount
        self._total_supply += amount

    def burn(self, holder: str, amount: int) -> None:
        _require_non_negative(amount)
        self._require_available(holder, amount, "burn")
        self._balances[holder] -= amount
        self._total_supply -= amount

    def transfer(self, sender: str, recipient: str, amount: int) -> None:
        _require_non_negative(amount)
        self._require_available(sender, amount, "transfer")
        self._balances[sender] -= amount
        self._balances[recipient] += amount

    def reserve(self, holder: str, amount: int) -> None:
        _require_non_negative(amount)
        self._require_available(holder, amount, "reserve")
        self._reserved[holder] += amount

    def burn_reserved(self, holder: str, amount: int) -> None:
        _require_non_negative(amount)
        self._require_reserved(holder, amount, "burn_reserved")
        self._reserved[holder] -= amount
        self._balances[holder] -= amount
        self._total_supply -= amount

    def _require_available(self, holder: str, amount: int, action: str) -> None:
        available = self.available_balance_of(holder)
        if available < amount:
            raise InsufficientBalanceError(
                f"{self.symbol}: {holder} has {available} available, cannot {action} {amount}"
            )

    def _require_reserved(self, holder: str, amount: int, action: str) -> None:
        reserved = self.reserved_of(holder)
        if reserved < amount:
            raise InsufficientBalanceError(
                f"{self.symbol}: {holder} has {reserved} reserved, cannot {action} {amount}"
            )


def _require_non_negative(amount: int) -> None:
    if amount < 0:
        raise ValueError(f"amount must be non-negative: {amount}")
