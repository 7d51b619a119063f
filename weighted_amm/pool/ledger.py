"""Pool share ledger.

ERC20-shaped bookkeeping for the fungible share representing proportional
ownership of a pool. Shares are minted and burned only through the pool's
own account; transfers follow the usual allowance rules, except that an
allowance of UINT256_MAX is treated as infinite and never decremented.
"""

from __future__ import annotations

import structlog

from weighted_amm.constants import POOL_ACCOUNT, UINT256_MAX
from weighted_amm.errors import InsufficientAllowance, InsufficientBalance
from weighted_amm.math.fixed_point import Bnum
from weighted_amm.pool.events import Approval, PoolEvent, Transfer

logger = structlog.get_logger()

DEFAULT_NAME = "Weighted Pool Token"
DEFAULT_SYMBOL = "WPT"


class PoolShareLedger:
    """Balances, allowances and total supply of pool shares.

    Invariant: sum of all balances == total_supply.
    """

    decimals = 18

    def __init__(
        self,
        pool_account: str = POOL_ACCOUNT,
        events: list[PoolEvent] | None = None,
        *,
        name: str = DEFAULT_NAME,
        symbol: str = DEFAULT_SYMBOL,
    ) -> None:
        self.pool_account = pool_account
        self.name = name
        self.symbol = symbol
        self.events: list[PoolEvent] = events if events is not None else []
        self._balances: dict[str, int] = {}
        self._allowances: dict[tuple[str, str], int] = {}
        self._total_supply = 0

    # --- Queries ---

    @property
    def total_supply(self) -> int:
        return self._total_supply

    def balance_of(self, owner: str) -> int:
        return self._balances.get(owner, 0)

    def allowance(self, owner: str, spender: str) -> int:
        return self._allowances.get((owner, spender), 0)

    # --- Allowances ---

    def approve(self, owner: str, spender: str, amount: int) -> bool:
        self._set_allowance(owner, spender, Bnum.of(amount).value)
        return True

    def increase_approval(self, owner: str, spender: str, amount: int) -> bool:
        current = Bnum(self.allowance(owner, spender))
        self._set_allowance(owner, spender, current.add(Bnum.of(amount)).value)
        return True

    def decrease_approval(self, owner: str, spender: str, amount: int) -> bool:
        """Lower an allowance, saturating at zero."""
        current = self.allowance(owner, spender)
        amount = Bnum.of(amount).value
        self._set_allowance(owner, spender, 0 if amount > current else current - amount)
        return True

    def _set_allowance(self, owner: str, spender: str, amount: int) -> None:
        self._allowances[(owner, spender)] = amount
        self.events.append(Approval(owner=owner, spender=spender, amount=amount))

    # --- Transfers ---

    def transfer(self, sender: str, dst: str, amount: int) -> bool:
        self.move(sender, dst, amount)
        return True

    def transfer_from(self, spender: str, src: str, dst: str, amount: int) -> bool:
        """Move shares from src to dst on behalf of spender.

        Raises:
            InsufficientAllowance: If spender is not src and its allowance is too small
            InsufficientBalance: If src holds fewer than amount shares
        """
        amount = Bnum.of(amount).value
        allowed = self.allowance(src, spender)
        if spender != src and amount > allowed:
            raise InsufficientAllowance(
                f"{spender} may spend {allowed} of {src}'s shares, requested {amount}"
            )
        self.move(src, dst, amount)
        if spender != src and allowed != UINT256_MAX:
            self._set_allowance(src, spender, allowed - amount)
        return True

    def move(self, src: str, dst: str, amount: int) -> None:
        """Move shares between accounts. Self-moves leave balances unchanged."""
        amount = Bnum.of(amount).value
        src_balance = self.balance_of(src)
        if src_balance < amount:
            raise InsufficientBalance(f"{src} holds {src_balance} shares, needs {amount}")
        self._balances[src] = src_balance - amount
        self._balances[dst] = Bnum(self.balance_of(dst)).add(Bnum(amount)).value
        self.events.append(Transfer(src=src, dst=dst, amount=amount))

    # --- Pool-only supply changes ---

    def mint(self, amount: int) -> None:
        """Create shares in the pool's own account."""
        amount = Bnum.of(amount).value
        self._total_supply = Bnum(self._total_supply).add(Bnum(amount)).value
        self._balances[self.pool_account] = self.balance_of(self.pool_account) + amount
        self.events.append(Transfer(src="", dst=self.pool_account, amount=amount))
        logger.debug("pool_shares_minted", amount=amount, total_supply=self._total_supply)

    def burn(self, amount: int) -> None:
        """Destroy shares held by the pool's own account."""
        amount = Bnum.of(amount).value
        held = self.balance_of(self.pool_account)
        if held < amount:
            raise InsufficientBalance(f"Pool holds {held} shares, cannot burn {amount}")
        self._balances[self.pool_account] = held - amount
        self._total_supply -= amount
        self.events.append(Transfer(src=self.pool_account, dst="", amount=amount))
        logger.debug("pool_shares_burned", amount=amount, total_supply=self._total_supply)

    def pull(self, src: str, amount: int) -> None:
        """Move shares from src into the pool's account."""
        self.move(src, self.pool_account, amount)

    def push(self, dst: str, amount: int) -> None:
        """Move shares from the pool's account to dst."""
        self.move(self.pool_account, dst, amount)

    # --- Rollback support ---

    def snapshot(self) -> tuple[dict[str, int], dict[tuple[str, str], int], int]:
        return dict(self._balances), dict(self._allowances), self._total_supply

    def restore(self, snapshot: tuple[dict[str, int], dict[tuple[str, str], int], int]) -> None:
        balances, allowances, total_supply = snapshot
        self._balances = dict(balances)
        self._allowances = dict(allowances)
        self._total_supply = total_supply
