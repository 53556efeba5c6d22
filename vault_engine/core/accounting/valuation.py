"""Net asset value computation."""

from __future__ import annotations

from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from vault_engine.core.ports.pool_adapter import ExternalPoolAdapter
    from vault_engine.core.ports.tokens import AssetToken


class ValuationEngine:
    """Computes NAV as idle balance plus the pool's exit valuation.

    All methods are read-only and may be called any number of times.
    Assets the pool has already paid back into the vault's custody show up
    in the idle balance, which is how NAV can grow without a new deposit.
    """

    def __init__(self, *, asset: AssetToken, pool: ExternalPoolAdapter, vault_address: str) -> None:
        self._asset = asset
        self._pool = pool
        self._vault_address = vault_address

    def idle_balance(self) -> int:
        return self._asset.balance_of(self._vault_address)

    def pool_position(self) -> int:
        return self._pool.position_of(self._vault_address)

    def pool_valuation(self) -> int:
        position = self.pool_position()
        if position <= 0:
            return 0
        return self._pool.convert_to_exit_assets(position)

    def compute_nav(self) -> int:
        return self.idle_balance() + self.pool_valuation()
