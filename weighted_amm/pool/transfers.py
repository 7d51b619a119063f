"""Asset transfer capability consumed by the pool.

The pool never moves underlying assets itself. It asks an AssetTransfers
collaborator to pull assets from a caller into the pool's custody or push
them back out, and treats a False return and a raised exception alike.
"""

from __future__ import annotations

from collections.abc import Callable
from typing import Protocol, runtime_checkable

import structlog

from weighted_amm.constants import POOL_ACCOUNT

logger = structlog.get_logger()


@runtime_checkable
class AssetTransfers(Protocol):
    """Transfer capability bound to one pool's custody account."""

    def pull(self, asset: str, source: str, amount: int) -> bool:
        """Move amount of asset from source into the pool. Returns success."""
        ...

    def push(self, asset: str, destination: str, amount: int) -> bool:
        """Move amount of asset from the pool to destination. Returns success."""
        ...

    def balance_of(self, asset: str, holder: str) -> int:
        """Externally observed balance of holder."""
        ...


TransferHook = Callable[[str, str, str, int], None]


class InMemoryAssetBank:
    """Reference AssetTransfers implementation keeping balances in memory.

    Misbehaving assets can be simulated:
    - assets in ``failing_assets`` report failure (return False)
    - assets in ``raising_assets`` raise RuntimeError
    - ``on_transfer`` is invoked before each transfer is applied with
      (asset, src, dst, amount), which lets tests re-enter the pool;
      if it raises, no balance changes

    Usage:
        bank = InMemoryAssetBank()
        bank.mint("WETH", "alice", 50 * ONE)
        pool = Pool(controller="alice", transfers=bank)
    """

    def __init__(self, custodian: str = POOL_ACCOUNT) -> None:
        self.custodian = custodian
        self._balances: dict[tuple[str, str], int] = {}
        self.failing_assets: set[str] = set()
        self.raising_assets: set[str] = set()
        self.on_transfer: TransferHook | None = None

    def mint(self, asset: str, holder: str, amount: int) -> None:
        self._balances[(asset, holder)] = self.balance_of(asset, holder) + amount

    def balance_of(self, asset: str, holder: str) -> int:
        return self._balances.get((asset, holder), 0)

    def transfer(self, asset: str, src: str, dst: str, amount: int) -> bool:
        """Move amount between any two holders."""
        if asset in self.raising_assets:
            raise RuntimeError(f"Transfer of {asset} reverted")
        if asset in self.failing_assets:
            logger.debug("bank_transfer_refused", asset=asset, src=src, dst=dst, amount=amount)
            return False
        held = self.balance_of(asset, src)
        if held < amount:
            return False
        if self.on_transfer is not None:
            self.on_transfer(asset, src, dst, amount)
        self._balances[(asset, src)] = held - amount
        self._balances[(asset, dst)] = self.balance_of(asset, dst) + amount
        return True

    def pull(self, asset: str, source: str, amount: int) -> bool:
        return self.transfer(asset, source, self.custodian, amount)

    def push(self, asset: str, destination: str, amount: int) -> bool:
        return self.transfer(asset, self.custodian, destination, amount)
