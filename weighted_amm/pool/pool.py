"""Weighted pool state machine.

A Pool starts empty and unfinalized. The controller binds tokens one at a
time, sets the swap fee, and finally calls finalize(), which is irreversible:
it freezes composition, weights and fee, mints the initial share supply to
the controller and enables public swapping.

All pricing is delegated to weighted_amm.amm.weighted_math. Every mutating
operation runs under the pool lock and is atomic: on any failure the pool,
its share ledger and its event log are restored to their state before the
call, and underlying transfers already completed by the call are reversed.
"""

from __future__ import annotations

from collections.abc import Iterator, Sequence
from contextlib import contextmanager
from dataclasses import dataclass
from typing import Literal, NamedTuple

import structlog

from weighted_amm.amm.weighted_math import (
    calc_in_given_out,
    calc_out_given_in,
    calc_pool_in_given_single_out,
    calc_pool_out_given_single_in,
    calc_single_in_given_pool_out,
    calc_single_out_given_pool_in,
    calc_spot_price,
)
from weighted_amm.constants import POOL_ACCOUNT
from weighted_amm.errors import (
    AlreadyBoundError,
    AmountsMismatchError,
    AnchorTokenError,
    AnchorWeightTooLow,
    BadLimitPriceError,
    ExternalTransferFailed,
    FinalizedError,
    InvariantViolation,
    LimitInError,
    LimitOutError,
    LimitPriceError,
    MaxFeeError,
    MaxInRatioError,
    MaxOutRatioError,
    MaxTokensError,
    MaxTotalWeightError,
    MaxWeightError,
    MinBalanceError,
    MinFeeError,
    MinTokensError,
    MinWeightError,
    NotControllerError,
    NotFinalizedError,
    RoundingToZero,
    SwapNotPublicError,
)
from weighted_amm.math.fixed_point import Bnum
from weighted_amm.pool.config import DEFAULT_POOL_CONFIG, PoolConfig
from weighted_amm.pool.events import LogExit, LogJoin, LogSwap, PoolEvent
from weighted_amm.pool.ledger import DEFAULT_NAME, DEFAULT_SYMBOL, PoolShareLedger
from weighted_amm.pool.lock import PoolLock
from weighted_amm.pool.records import TokenRecord, TokenRegistry
from weighted_amm.pool.transfers import AssetTransfers

logger = structlog.get_logger()

Amount = int | Bnum


@dataclass(frozen=True)
class _TransferLeg:
    """An underlying transfer completed during the current operation."""

    direction: Literal["pull", "push"]
    asset: str
    account: str
    amount: int


class SwapResult(NamedTuple):
    """Result of a swap, unpackable as (amount, spot_price_after).

    Attributes:
        amount: Output amount (exact-in) or required input (exact-out)
        spot_price_after: Spot price of token_out in token_in after the swap
    """

    amount: int
    spot_price_after: int


class Pool:
    """Multi-asset weighted pool.

    Amounts passed in and returned are fixed-point integers scaled by 10^18.
    Every operation takes the calling account as its first argument.
    """

    def __init__(
        self,
        controller: str,
        transfers: AssetTransfers,
        config: PoolConfig = DEFAULT_POOL_CONFIG,
        *,
        address: str = POOL_ACCOUNT,
        name: str = DEFAULT_NAME,
        symbol: str = DEFAULT_SYMBOL,
    ) -> None:
        self.config = config
        self.address = address
        self.events: list[PoolEvent] = []
        self.ledger = PoolShareLedger(address, self.events, name=name, symbol=symbol)

        self._transfers = transfers
        self._controller = controller
        self._lock = PoolLock()
        self._registry = TokenRegistry()
        self._total_weight = Bnum.zero()
        self._swap_fee = Bnum(config.swap_fee)
        self._exit_fee = Bnum(config.exit_fee)
        self._finalized = False
        self._public_swap = False
        self._legs: list[_TransferLeg] = []

    # =========================================================================
    # Operation scaffolding
    # =========================================================================

    def _snapshot(self) -> tuple:
        return (
            self._registry.snapshot(),
            self.ledger.snapshot(),
            self._total_weight,
            self._swap_fee,
            self._finalized,
            self._public_swap,
            self._controller,
            len(self.events),
        )

    def _restore(self, snapshot: tuple) -> None:
        (
            registry,
            ledger,
            self._total_weight,
            self._swap_fee,
            self._finalized,
            self._public_swap,
            self._controller,
            event_count,
        ) = snapshot
        self._registry.restore(registry)
        self.ledger.restore(ledger)
        del self.events[event_count:]

    @contextmanager
    def _operation(self, name: str, caller: str) -> Iterator[None]:
        """Run a mutating operation exclusively and atomically."""
        with self._lock.mutating():
            snapshot = self._snapshot()
            self._legs = []
            try:
                yield
            except Exception as err:
                self._reverse_legs(name)
                self._restore(snapshot)
                logger.warning(
                    "pool_operation_rolled_back",
                    operation=name,
                    caller=caller,
                    error=type(err).__name__,
                    detail=str(err),
                )
                raise
            else:
                logger.debug("pool_operation_applied", operation=name, caller=caller)
            finally:
                self._legs = []

    def _reverse_legs(self, operation: str) -> None:
        """Undo underlying transfers completed by a failed operation, newest first."""
        for leg in reversed(self._legs):
            undo = self._transfers.push if leg.direction == "pull" else self._transfers.pull
            try:
                ok = undo(leg.asset, leg.account, leg.amount)
            except Exception as err:
                logger.error(
                    "transfer_reversal_raised",
                    operation=operation,
                    direction=leg.direction,
                    asset=leg.asset,
                    account=leg.account,
                    amount=leg.amount,
                    error=str(err),
                )
                continue
            if not ok:
                logger.error(
                    "transfer_reversal_failed",
                    operation=operation,
                    direction=leg.direction,
                    asset=leg.asset,
                    account=leg.account,
                    amount=leg.amount,
                )
            else:
                logger.warning(
                    "transfer_reversed",
                    operation=operation,
                    direction=leg.direction,
                    asset=leg.asset,
                    account=leg.account,
                    amount=leg.amount,
                )

    def _move_underlying(
        self, direction: Literal["pull", "push"], asset: str, account: str, amount: Bnum
    ) -> None:
        if amount.is_zero():
            return
        move = self._transfers.pull if direction == "pull" else self._transfers.push
        try:
            ok = move(asset, account, amount.value)
        except Exception as err:
            logger.warning(
                "asset_transfer_raised",
                direction=direction,
                asset=asset,
                account=account,
                amount=amount.value,
                error=str(err),
            )
            raise ExternalTransferFailed(
                f"{direction} of {amount.value} {asset} for {account} raised: {err}"
            ) from err
        if not ok:
            logger.warning(
                "asset_transfer_failed",
                direction=direction,
                asset=asset,
                account=account,
                amount=amount.value,
            )
            raise ExternalTransferFailed(f"{direction} of {amount.value} {asset} for {account} failed")
        self._legs.append(_TransferLeg(direction, asset, account, amount.value))

    def _pull_underlying(self, asset: str, source: str, amount: Bnum) -> None:
        self._move_underlying("pull", asset, source, amount)

    def _push_underlying(self, asset: str, destination: str, amount: Bnum) -> None:
        self._move_underlying("push", asset, destination, amount)

    def _mint_and_push_shares(self, to: str, amount: Bnum) -> None:
        self.ledger.mint(amount.value)
        self.ledger.push(to, amount.value)

    def _pull_and_burn_shares(self, source: str, amount: Bnum) -> None:
        """Take amount shares from source, send the exit fee to the sink and burn the rest."""
        exit_fee = amount.mul(self._exit_fee)
        self.ledger.pull(source, amount.value)
        if not exit_fee.is_zero():
            self.ledger.push(self.config.fee_sink, exit_fee.value)
        self.ledger.burn(amount.sub(exit_fee).value)

    # =========================================================================
    # Guards
    # =========================================================================

    def _require_controller(self, caller: str) -> None:
        if caller != self._controller:
            raise NotControllerError(f"{caller} is not the controller")

    def _require_not_finalized(self) -> None:
        if self._finalized:
            raise FinalizedError("Pool is finalized")

    def _require_finalized(self) -> None:
        if not self._finalized:
            raise NotFinalizedError("Pool is not finalized")

    def _require_public_swap(self) -> None:
        if not self._public_swap:
            raise SwapNotPublicError("Public swapping is disabled")

    def _anchor_weight(self) -> Bnum:
        anchor = self.config.anchor_token
        if anchor is None or not self._registry.is_bound(anchor) or self._total_weight.is_zero():
            return Bnum.zero()
        return self._registry.get(anchor).denorm.div(self._total_weight)

    def _check_anchor_weight(self) -> None:
        if self.config.anchor_token is None:
            return
        weight = self._anchor_weight()
        if weight.value < self.config.min_anchor_weight:
            raise AnchorWeightTooLow(
                f"Anchor {self.config.anchor_token} weight {weight.value} "
                f"below minimum {self.config.min_anchor_weight}"
            )

    def _check_limits(self, limits: Sequence[Amount]) -> list[Bnum]:
        if len(limits) != len(self._registry):
            raise AmountsMismatchError(
                f"Expected {len(self._registry)} limits, got {len(limits)}"
            )
        return [Bnum.of(limit) for limit in limits]

    def _max_in(self, record: TokenRecord) -> Bnum:
        return record.balance.mul(Bnum(self.config.max_in_ratio))

    def _max_out(self, record: TokenRecord) -> Bnum:
        return record.balance.mul(Bnum(self.config.max_out_ratio))

    # =========================================================================
    # Controller operations
    # =========================================================================

    def set_swap_fee(self, caller: str, swap_fee: Amount) -> None:
        swap_fee = Bnum.of(swap_fee)
        with self._operation("set_swap_fee", caller):
            self._require_not_finalized()
            self._require_controller(caller)
            if swap_fee.value < self.config.min_fee:
                raise MinFeeError(f"Swap fee {swap_fee.value} below {self.config.min_fee}")
            if swap_fee.value > self.config.max_fee:
                raise MaxFeeError(f"Swap fee {swap_fee.value} above {self.config.max_fee}")
            self._swap_fee = swap_fee

    def set_controller(self, caller: str, controller: str) -> None:
        with self._operation("set_controller", caller):
            self._require_controller(caller)
            self._controller = controller

    def set_public_swap(self, caller: str, public: bool) -> None:
        with self._operation("set_public_swap", caller):
            self._require_not_finalized()
            self._require_controller(caller)
            if public:
                self._check_anchor_weight()
            self._public_swap = public

    def finalize(self, caller: str) -> None:
        """Freeze the pool and mint the initial share supply to the caller."""
        with self._operation("finalize", caller):
            self._require_controller(caller)
            self._require_not_finalized()
            if len(self._registry) < self.config.min_assets:
                raise MinTokensError(
                    f"Pool has {len(self._registry)} tokens, needs {self.config.min_assets}"
                )
            self._check_anchor_weight()

            self._finalized = True
            self._public_swap = True

            self._mint_and_push_shares(caller, Bnum(self.config.init_pool_supply))
            logger.info(
                "pool_finalized",
                pool=self.address,
                tokens=self._registry.tokens,
                total_weight=self._total_weight.value,
            )

    def bind(self, caller: str, token: str, balance: Amount, denorm: Amount) -> None:
        """Add a token with an initial balance pulled from the caller."""
        with self._operation("bind", caller):
            self._require_controller(caller)
            if token in self._registry:
                raise AlreadyBoundError(f"Token {token} is already bound")
            self._require_not_finalized()
            if len(self._registry) >= self.config.max_assets:
                raise MaxTokensError(f"Pool already holds {self.config.max_assets} tokens")

            self._registry.add(token)
            self._rebind(caller, token, Bnum.of(balance), Bnum.of(denorm))

    def rebind(self, caller: str, token: str, balance: Amount, denorm: Amount) -> None:
        """Change a bound token's balance and weight, moving the balance delta."""
        with self._operation("rebind", caller):
            self._rebind(caller, token, Bnum.of(balance), Bnum.of(denorm))

    def _rebind(self, caller: str, token: str, balance: Bnum, denorm: Bnum) -> None:
        self._require_controller(caller)
        record = self._registry.get(token)
        self._require_not_finalized()

        if denorm.value < self.config.min_weight:
            raise MinWeightError(f"Weight {denorm.value} below {self.config.min_weight}")
        if denorm.value > self.config.max_weight:
            raise MaxWeightError(f"Weight {denorm.value} above {self.config.max_weight}")
        if balance.value < self.config.min_balance:
            raise MinBalanceError(f"Balance {balance.value} below {self.config.min_balance}")

        old_weight = record.denorm
        if denorm > old_weight:
            self._total_weight = self._total_weight.add(denorm.sub(old_weight))
            if self._total_weight.value > self.config.max_total_weight:
                raise MaxTotalWeightError(
                    f"Total weight {self._total_weight.value} above {self.config.max_total_weight}"
                )
        elif denorm < old_weight:
            self._total_weight = self._total_weight.sub(old_weight.sub(denorm))
        record.denorm = denorm

        if self._public_swap:
            self._check_anchor_weight()

        old_balance = record.balance
        record.balance = balance
        if balance > old_balance:
            self._pull_underlying(token, caller, balance.sub(old_balance))
        elif balance < old_balance:
            withdrawn = old_balance.sub(balance)
            exit_fee = withdrawn.mul(self._exit_fee)
            self._push_underlying(token, caller, withdrawn.sub(exit_fee))
            self._push_underlying(token, self.config.fee_sink, exit_fee)

    def unbind(self, caller: str, token: str) -> None:
        """Remove a token and return its balance to the caller, less the exit fee."""
        with self._operation("unbind", caller):
            self._require_controller(caller)
            record = self._registry.get(token)
            self._require_not_finalized()
            if token == self.config.anchor_token:
                raise AnchorTokenError(f"Anchor token {token} cannot be unbound")

            balance = record.balance
            exit_fee = balance.mul(self._exit_fee)

            self._total_weight = self._total_weight.sub(record.denorm)
            self._registry.remove(token)

            self._push_underlying(token, caller, balance.sub(exit_fee))
            self._push_underlying(token, self.config.fee_sink, exit_fee)

    def gulp(self, caller: str, token: str) -> None:
        """Sync a token's recorded balance with the balance held by the pool."""
        with self._operation("gulp", caller):
            record = self._registry.get(token)
            try:
                observed = self._transfers.balance_of(token, self.address)
            except Exception as err:
                raise ExternalTransferFailed(f"balance_of {token} raised: {err}") from err
            logger.debug(
                "pool_gulp",
                token=token,
                recorded=record.balance.value,
                observed=observed,
            )
            record.balance = Bnum.of(observed)

    # =========================================================================
    # Queries
    # =========================================================================

    def is_public_swap(self) -> bool:
        with self._lock.reading():
            return self._public_swap

    def is_finalized(self) -> bool:
        with self._lock.reading():
            return self._finalized

    def is_bound(self, token: str) -> bool:
        with self._lock.reading():
            return self._registry.is_bound(token)

    def get_num_tokens(self) -> int:
        with self._lock.reading():
            return len(self._registry)

    def get_current_tokens(self) -> list[str]:
        with self._lock.reading():
            return self._registry.tokens

    def get_final_tokens(self) -> list[str]:
        with self._lock.reading():
            self._require_finalized()
            return self._registry.tokens

    def get_denormalized_weight(self, token: str) -> int:
        with self._lock.reading():
            return self._registry.get(token).denorm.value

    def get_total_denormalized_weight(self) -> int:
        with self._lock.reading():
            return self._total_weight.value

    def get_normalized_weight(self, token: str) -> int:
        with self._lock.reading():
            return self._registry.get(token).denorm.div(self._total_weight).value

    def get_balance(self, token: str) -> int:
        with self._lock.reading():
            return self._registry.get(token).balance.value

    def get_swap_fee(self) -> int:
        with self._lock.reading():
            return self._swap_fee.value

    def get_exit_fee(self) -> int:
        return self._exit_fee.value

    def get_controller(self) -> str:
        with self._lock.reading():
            return self._controller

    def get_spot_price(self, token_in: str, token_out: str) -> int:
        with self._lock.reading():
            return self._spot_price(token_in, token_out, self._swap_fee).value

    def get_spot_price_sans_fee(self, token_in: str, token_out: str) -> int:
        with self._lock.reading():
            return self._spot_price(token_in, token_out, Bnum.zero()).value

    def _spot_price(self, token_in: str, token_out: str, swap_fee: Bnum) -> Bnum:
        in_record = self._registry.get(token_in)
        out_record = self._registry.get(token_out)
        return calc_spot_price(
            in_record.balance, in_record.denorm, out_record.balance, out_record.denorm, swap_fee
        )

    # --- Pool share (ERC20-shaped) ---

    def total_supply(self) -> int:
        with self._lock.reading():
            return self.ledger.total_supply

    def balance_of(self, owner: str) -> int:
        with self._lock.reading():
            return self.ledger.balance_of(owner)

    def allowance(self, owner: str, spender: str) -> int:
        with self._lock.reading():
            return self.ledger.allowance(owner, spender)

    def approve(self, caller: str, spender: str, amount: Amount) -> bool:
        with self._operation("approve", caller):
            return self.ledger.approve(caller, spender, Bnum.of(amount).value)

    def increase_approval(self, caller: str, spender: str, amount: Amount) -> bool:
        with self._operation("increase_approval", caller):
            return self.ledger.increase_approval(caller, spender, Bnum.of(amount).value)

    def decrease_approval(self, caller: str, spender: str, amount: Amount) -> bool:
        with self._operation("decrease_approval", caller):
            return self.ledger.decrease_approval(caller, spender, Bnum.of(amount).value)

    def transfer(self, caller: str, dst: str, amount: Amount) -> bool:
        with self._operation("transfer", caller):
            return self.ledger.transfer(caller, dst, Bnum.of(amount).value)

    def transfer_from(self, caller: str, src: str, dst: str, amount: Amount) -> bool:
        with self._operation("transfer_from", caller):
            return self.ledger.transfer_from(caller, src, dst, Bnum.of(amount).value)

    # =========================================================================
    # Proportional join / exit
    # =========================================================================

    def join_pool(
        self, caller: str, pool_amount_out: Amount, max_amounts_in: Sequence[Amount]
    ) -> list[int]:
        """Deposit every bound token in proportion and receive pool_amount_out shares.

        Token amounts are rounded up, in the pool's favor.

        Returns:
            Amount pulled for each token, in iteration order

        Raises:
            NotFinalizedError: If the pool is not finalized
            RoundingToZero: If the share ratio or any token amount rounds to zero
            LimitInError: If a token amount exceeds its max_amounts_in entry
        """
        pool_amount_out = Bnum.of(pool_amount_out)
        with self._operation("join_pool", caller):
            self._require_finalized()
            limits = self._check_limits(max_amounts_in)

            pool_total = Bnum(self.ledger.total_supply)
            ratio = pool_amount_out.div_up(pool_total)
            if ratio.is_zero():
                raise RoundingToZero("Join ratio rounds to zero")

            amounts_in: list[int] = []
            for token, limit in zip(self._registry, limits, strict=True):
                record = self._registry.get(token)
                amount_in = ratio.mul_up(record.balance)
                if amount_in.is_zero():
                    raise RoundingToZero(f"Join amount of {token} rounds to zero")
                if amount_in > limit:
                    raise LimitInError(f"{token}: needs {amount_in.value}, limit {limit.value}")
                record.balance = record.balance.add(amount_in)
                self.events.append(LogJoin(caller=caller, token_in=token, amount_in=amount_in.value))
                self._pull_underlying(token, caller, amount_in)
                amounts_in.append(amount_in.value)

            self._mint_and_push_shares(caller, pool_amount_out)
            return amounts_in

    def exit_pool(
        self, caller: str, pool_amount_in: Amount, min_amounts_out: Sequence[Amount]
    ) -> list[int]:
        """Redeem pool_amount_in shares for every bound token in proportion.

        The exit fee is taken from the shares first and sent to the fee sink;
        token amounts are rounded down, in the pool's favor.

        Returns:
            Amount pushed for each token, in iteration order
        """
        pool_amount_in = Bnum.of(pool_amount_in)
        with self._operation("exit_pool", caller):
            self._require_finalized()
            limits = self._check_limits(min_amounts_out)

            pool_total = Bnum(self.ledger.total_supply)
            exit_fee = pool_amount_in.mul(self._exit_fee)
            pool_amount_in_after_exit_fee = pool_amount_in.sub(exit_fee)
            ratio = pool_amount_in_after_exit_fee.div_down(pool_total)
            if ratio.is_zero():
                raise RoundingToZero("Exit ratio rounds to zero")

            self._pull_and_burn_shares(caller, pool_amount_in)

            amounts_out: list[int] = []
            for token, limit in zip(self._registry, limits, strict=True):
                record = self._registry.get(token)
                amount_out = ratio.mul(record.balance)
                if amount_out.is_zero():
                    raise RoundingToZero(f"Exit amount of {token} rounds to zero")
                if amount_out < limit:
                    raise LimitOutError(f"{token}: gets {amount_out.value}, limit {limit.value}")
                record.balance = record.balance.sub(amount_out)
                self.events.append(
                    LogExit(caller=caller, token_out=token, amount_out=amount_out.value)
                )
                self._push_underlying(token, caller, amount_out)
                amounts_out.append(amount_out.value)

            return amounts_out

    # =========================================================================
    # Swaps
    # =========================================================================

    def swap_exact_amount_in(
        self,
        caller: str,
        token_in: str,
        token_amount_in: Amount,
        token_out: str,
        min_amount_out: Amount,
        max_price: Amount,
    ) -> SwapResult:
        """Sell an exact amount of token_in for token_out.

        Returns:
            SwapResult with the output amount and the spot price after the swap

        Raises:
            SwapNotPublicError: If public swapping is disabled
            MaxInRatioError: If token_amount_in exceeds MAX_IN_RATIO of the balance
            BadLimitPriceError: If the current spot price is already above max_price
            LimitOutError: If the output is below min_amount_out
            LimitPriceError: If the spot price after the swap exceeds max_price
            InvariantViolation: If the price moved in the trader's favor
        """
        amount_in = Bnum.of(token_amount_in)
        min_amount_out = Bnum.of(min_amount_out)
        max_price = Bnum.of(max_price)
        with self._operation("swap_exact_amount_in", caller):
            in_record = self._registry.get(token_in)
            out_record = self._registry.get(token_out)
            self._require_public_swap()

            if amount_in > self._max_in(in_record):
                raise MaxInRatioError(
                    f"Input {amount_in.value} exceeds max ratio of balance {in_record.balance.value}"
                )

            spot_price_before = calc_spot_price(
                in_record.balance,
                in_record.denorm,
                out_record.balance,
                out_record.denorm,
                self._swap_fee,
            )
            if spot_price_before > max_price:
                raise BadLimitPriceError(
                    f"Spot price {spot_price_before.value} above limit {max_price.value}"
                )

            amount_out = calc_out_given_in(
                in_record.balance,
                in_record.denorm,
                out_record.balance,
                out_record.denorm,
                amount_in,
                self._swap_fee,
            )
            if amount_out < min_amount_out:
                raise LimitOutError(f"Output {amount_out.value} below {min_amount_out.value}")
            if amount_out.is_zero():
                raise RoundingToZero("Swap output rounds to zero")

            in_record.balance = in_record.balance.add(amount_in)
            out_record.balance = out_record.balance.sub(amount_out)

            spot_price_after = self._check_spot_price_after(
                in_record, out_record, spot_price_before, max_price, amount_in, amount_out
            )

            self.events.append(
                LogSwap(
                    caller=caller,
                    token_in=token_in,
                    token_out=token_out,
                    amount_in=amount_in.value,
                    amount_out=amount_out.value,
                )
            )
            self._pull_underlying(token_in, caller, amount_in)
            self._push_underlying(token_out, caller, amount_out)

            return SwapResult(amount=amount_out.value, spot_price_after=spot_price_after.value)

    def swap_exact_amount_out(
        self,
        caller: str,
        token_in: str,
        max_amount_in: Amount,
        token_out: str,
        token_amount_out: Amount,
        max_price: Amount,
    ) -> SwapResult:
        """Buy an exact amount of token_out, paying at most max_amount_in of token_in.

        Returns:
            SwapResult with the required input and the spot price after the swap
        """
        max_amount_in = Bnum.of(max_amount_in)
        amount_out = Bnum.of(token_amount_out)
        max_price = Bnum.of(max_price)
        with self._operation("swap_exact_amount_out", caller):
            in_record = self._registry.get(token_in)
            out_record = self._registry.get(token_out)
            self._require_public_swap()

            if amount_out > self._max_out(out_record):
                raise MaxOutRatioError(
                    f"Output {amount_out.value} exceeds max ratio of balance {out_record.balance.value}"
                )
            if amount_out.is_zero():
                raise RoundingToZero("Swap output is zero")

            spot_price_before = calc_spot_price(
                in_record.balance,
                in_record.denorm,
                out_record.balance,
                out_record.denorm,
                self._swap_fee,
            )
            if spot_price_before > max_price:
                raise BadLimitPriceError(
                    f"Spot price {spot_price_before.value} above limit {max_price.value}"
                )

            amount_in = calc_in_given_out(
                in_record.balance,
                in_record.denorm,
                out_record.balance,
                out_record.denorm,
                amount_out,
                self._swap_fee,
            )
            if amount_in.is_zero():
                raise RoundingToZero("Required input rounds to zero")
            if amount_in > max_amount_in:
                raise LimitInError(f"Input {amount_in.value} above {max_amount_in.value}")

            in_record.balance = in_record.balance.add(amount_in)
            out_record.balance = out_record.balance.sub(amount_out)

            spot_price_after = self._check_spot_price_after(
                in_record, out_record, spot_price_before, max_price, amount_in, amount_out
            )

            self.events.append(
                LogSwap(
                    caller=caller,
                    token_in=token_in,
                    token_out=token_out,
                    amount_in=amount_in.value,
                    amount_out=amount_out.value,
                )
            )
            self._pull_underlying(token_in, caller, amount_in)
            self._push_underlying(token_out, caller, amount_out)

            return SwapResult(amount=amount_in.value, spot_price_after=spot_price_after.value)

    def _check_spot_price_after(
        self,
        in_record: TokenRecord,
        out_record: TokenRecord,
        spot_price_before: Bnum,
        max_price: Bnum,
        amount_in: Bnum,
        amount_out: Bnum,
    ) -> Bnum:
        spot_price_after = calc_spot_price(
            in_record.balance,
            in_record.denorm,
            out_record.balance,
            out_record.denorm,
            self._swap_fee,
        )
        if spot_price_after < spot_price_before:
            raise InvariantViolation(
                f"Spot price fell from {spot_price_before.value} to {spot_price_after.value}"
            )
        if spot_price_after > max_price:
            raise LimitPriceError(
                f"Spot price {spot_price_after.value} above limit {max_price.value}"
            )
        # Effective price paid must not beat the pre-trade spot price
        if spot_price_before > amount_in.div(amount_out):
            raise InvariantViolation(
                f"Effective price {amount_in.div(amount_out).value} below spot {spot_price_before.value}"
            )
        return spot_price_after

    # =========================================================================
    # Single-asset join / exit
    # =========================================================================

    def joinswap_extern_amount_in(
        self, caller: str, token_in: str, token_amount_in: Amount, min_pool_amount_out: Amount
    ) -> int:
        """Deposit an exact amount of one token. Returns pool shares minted."""
        amount_in = Bnum.of(token_amount_in)
        min_pool_amount_out = Bnum.of(min_pool_amount_out)
        with self._operation("joinswap_extern_amount_in", caller):
            self._require_finalized()
            in_record = self._registry.get(token_in)

            if amount_in > self._max_in(in_record):
                raise MaxInRatioError(
                    f"Input {amount_in.value} exceeds max ratio of balance {in_record.balance.value}"
                )

            pool_amount_out = calc_pool_out_given_single_in(
                in_record.balance,
                in_record.denorm,
                Bnum(self.ledger.total_supply),
                self._total_weight,
                amount_in,
                self._swap_fee,
            )
            if pool_amount_out < min_pool_amount_out:
                raise LimitOutError(
                    f"Pool output {pool_amount_out.value} below {min_pool_amount_out.value}"
                )
            if pool_amount_out.is_zero():
                raise RoundingToZero("Pool output rounds to zero")

            in_record.balance = in_record.balance.add(amount_in)
            self.events.append(LogJoin(caller=caller, token_in=token_in, amount_in=amount_in.value))

            self._mint_and_push_shares(caller, pool_amount_out)
            self._pull_underlying(token_in, caller, amount_in)
            return pool_amount_out.value

    def joinswap_pool_amount_out(
        self, caller: str, token_in: str, pool_amount_out: Amount, max_amount_in: Amount
    ) -> int:
        """Mint an exact number of pool shares for one token. Returns the amount pulled."""
        pool_amount_out = Bnum.of(pool_amount_out)
        max_amount_in = Bnum.of(max_amount_in)
        with self._operation("joinswap_pool_amount_out", caller):
            self._require_finalized()
            in_record = self._registry.get(token_in)

            amount_in = calc_single_in_given_pool_out(
                in_record.balance,
                in_record.denorm,
                Bnum(self.ledger.total_supply),
                self._total_weight,
                pool_amount_out,
                self._swap_fee,
            )
            if amount_in.is_zero():
                raise RoundingToZero("Required input rounds to zero")
            if amount_in > max_amount_in:
                raise LimitInError(f"Input {amount_in.value} above {max_amount_in.value}")
            if amount_in > self._max_in(in_record):
                raise MaxInRatioError(
                    f"Input {amount_in.value} exceeds max ratio of balance {in_record.balance.value}"
                )

            in_record.balance = in_record.balance.add(amount_in)
            self.events.append(LogJoin(caller=caller, token_in=token_in, amount_in=amount_in.value))

            self._mint_and_push_shares(caller, pool_amount_out)
            self._pull_underlying(token_in, caller, amount_in)
            return amount_in.value

    def exitswap_pool_amount_in(
        self, caller: str, token_out: str, pool_amount_in: Amount, min_amount_out: Amount
    ) -> int:
        """Redeem an exact number of pool shares for one token. Returns the amount pushed."""
        pool_amount_in = Bnum.of(pool_amount_in)
        min_amount_out = Bnum.of(min_amount_out)
        with self._operation("exitswap_pool_amount_in", caller):
            self._require_finalized()
            out_record = self._registry.get(token_out)

            amount_out = calc_single_out_given_pool_in(
                out_record.balance,
                out_record.denorm,
                Bnum(self.ledger.total_supply),
                self._total_weight,
                pool_amount_in,
                self._swap_fee,
                exit_fee=self._exit_fee,
            )
            if amount_out < min_amount_out:
                raise LimitOutError(f"Output {amount_out.value} below {min_amount_out.value}")
            if amount_out.is_zero():
                raise RoundingToZero("Output rounds to zero")
            if amount_out > self._max_out(out_record):
                raise MaxOutRatioError(
                    f"Output {amount_out.value} exceeds max ratio of balance {out_record.balance.value}"
                )

            out_record.balance = out_record.balance.sub(amount_out)
            self.events.append(
                LogExit(caller=caller, token_out=token_out, amount_out=amount_out.value)
            )

            self._pull_and_burn_shares(caller, pool_amount_in)
            self._push_underlying(token_out, caller, amount_out)
            return amount_out.value

    def exitswap_extern_amount_out(
        self, caller: str, token_out: str, token_amount_out: Amount, max_pool_amount_in: Amount
    ) -> int:
        """Withdraw an exact amount of one token. Returns pool shares redeemed."""
        amount_out = Bnum.of(token_amount_out)
        max_pool_amount_in = Bnum.of(max_pool_amount_in)
        with self._operation("exitswap_extern_amount_out", caller):
            self._require_finalized()
            out_record = self._registry.get(token_out)

            if amount_out > self._max_out(out_record):
                raise MaxOutRatioError(
                    f"Output {amount_out.value} exceeds max ratio of balance {out_record.balance.value}"
                )

            pool_amount_in = calc_pool_in_given_single_out(
                out_record.balance,
                out_record.denorm,
                Bnum(self.ledger.total_supply),
                self._total_weight,
                amount_out,
                self._swap_fee,
                exit_fee=self._exit_fee,
            )
            if pool_amount_in.is_zero():
                raise RoundingToZero("Pool input rounds to zero")
            if pool_amount_in > max_pool_amount_in:
                raise LimitInError(
                    f"Pool input {pool_amount_in.value} above {max_pool_amount_in.value}"
                )

            out_record.balance = out_record.balance.sub(amount_out)
            self.events.append(
                LogExit(caller=caller, token_out=token_out, amount_out=amount_out.value)
            )

            self._pull_and_burn_shares(caller, pool_amount_in)
            self._push_underlying(token_out, caller, amount_out)
            return pool_amount_in.value
