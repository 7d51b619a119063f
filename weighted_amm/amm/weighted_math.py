"""Weighted pool bonding-curve math.

Pure functions over Bnum values for the weighted product invariant

    V = prod_i balance_i ^ (weight_i / total_weight)

Swap fees are charged only on the leg that changes the pool's relative
composition. Proportional joins and exits never pay the swap fee.
"""

from weighted_amm.constants import EXIT_FEE
from weighted_amm.math.fixed_point import Bnum

_ONE = Bnum.one()
_DEFAULT_EXIT_FEE = Bnum(EXIT_FEE)


def calc_spot_price(
    balance_in: Bnum,
    weight_in: Bnum,
    balance_out: Bnum,
    weight_out: Bnum,
    swap_fee: Bnum,
) -> Bnum:
    """Calculate the spot price of token_out in units of token_in.

    Formula:
        spot_price = (balance_in / weight_in) / (balance_out / weight_out) * (1 / (1 - swap_fee))

    Args:
        balance_in: Balance of input token
        weight_in: Denormalized weight of input token
        balance_out: Balance of output token
        weight_out: Denormalized weight of output token
        swap_fee: Swap fee (0 for the fee-less price)

    Returns:
        Spot price including fee
    """
    numer = balance_in.div(weight_in)
    denom = balance_out.div(weight_out)
    ratio = numer.div(denom)
    scale = _ONE.div(_ONE.sub(swap_fee))
    return ratio.mul(scale)


def calc_out_given_in(
    balance_in: Bnum,
    weight_in: Bnum,
    balance_out: Bnum,
    weight_out: Bnum,
    amount_in: Bnum,
    swap_fee: Bnum,
) -> Bnum:
    """Calculate output amount for an exact input (sell).

    The fee is charged on the input before it reaches the curve.

    Formula:
        adjusted_in = amount_in * (1 - swap_fee)
        amount_out = balance_out * (1 - (balance_in / (balance_in + adjusted_in))^(weight_in / weight_out))

    Args:
        balance_in: Balance of input token
        weight_in: Denormalized weight of input token
        balance_out: Balance of output token
        weight_out: Denormalized weight of output token
        amount_in: Exact input amount, fee inclusive
        swap_fee: Swap fee

    Returns:
        Output amount
    """
    weight_ratio = weight_in.div(weight_out)
    adjusted_in = amount_in.mul(_ONE.sub(swap_fee))
    y = balance_in.div(balance_in.add(adjusted_in))
    foo = y.pow(weight_ratio)
    bar = _ONE.sub(foo)
    return balance_out.mul(bar)


def calc_in_given_out(
    balance_in: Bnum,
    weight_in: Bnum,
    balance_out: Bnum,
    weight_out: Bnum,
    amount_out: Bnum,
    swap_fee: Bnum,
) -> Bnum:
    """Calculate the input required for an exact output (buy).

    Formula:
        amount_in = balance_in * ((balance_out / (balance_out - amount_out))^(weight_out / weight_in) - 1) / (1 - swap_fee)

    Returns:
        Input amount, fee inclusive

    Raises:
        Underflow: If amount_out > balance_out
        DivisionByZero: If amount_out == balance_out
    """
    weight_ratio = weight_out.div(weight_in)
    diff = balance_out.sub(amount_out)
    y = balance_out.div(diff)
    foo = y.pow(weight_ratio).sub(_ONE)
    return balance_in.mul(foo).div(_ONE.sub(swap_fee))


def calc_pool_out_given_single_in(
    balance_in: Bnum,
    weight_in: Bnum,
    pool_supply: Bnum,
    total_weight: Bnum,
    amount_in: Bnum,
    swap_fee: Bnum,
) -> Bnum:
    """Calculate pool shares minted for a single-asset deposit.

    Only the part of the deposit that is implicitly traded against the other
    assets pays the swap fee; that part is (1 - normalized_weight).

    Formula:
        w = weight_in / total_weight
        after_fee = amount_in * (1 - (1 - w) * swap_fee)
        pool_out = pool_supply * ((balance_in + after_fee) / balance_in)^w - pool_supply
    """
    normalized_weight = weight_in.div(total_weight)
    zaz = _ONE.sub(normalized_weight).mul(swap_fee)
    amount_in_after_fee = amount_in.mul(_ONE.sub(zaz))

    new_balance_in = balance_in.add(amount_in_after_fee)
    token_in_ratio = new_balance_in.div(balance_in)

    pool_ratio = token_in_ratio.pow(normalized_weight)
    new_pool_supply = pool_ratio.mul(pool_supply)
    return new_pool_supply.sub(pool_supply)


def calc_single_in_given_pool_out(
    balance_in: Bnum,
    weight_in: Bnum,
    pool_supply: Bnum,
    total_weight: Bnum,
    pool_amount_out: Bnum,
    swap_fee: Bnum,
) -> Bnum:
    """Calculate the single-asset deposit needed to mint pool_amount_out.

    Inverse of calc_pool_out_given_single_in.

    Formula:
        w = weight_in / total_weight
        ratio = ((pool_supply + pool_amount_out) / pool_supply)^(1 / w)
        amount_in = balance_in * (ratio - 1) / (1 - (1 - w) * swap_fee)
    """
    normalized_weight = weight_in.div(total_weight)
    new_pool_supply = pool_supply.add(pool_amount_out)
    pool_ratio = new_pool_supply.div(pool_supply)

    boo = _ONE.div(normalized_weight)
    token_in_ratio = pool_ratio.pow(boo)
    new_balance_in = token_in_ratio.mul(balance_in)
    amount_in_after_fee = new_balance_in.sub(balance_in)

    zar = _ONE.sub(normalized_weight).mul(swap_fee)
    return amount_in_after_fee.div(_ONE.sub(zar))


def calc_single_out_given_pool_in(
    balance_out: Bnum,
    weight_out: Bnum,
    pool_supply: Bnum,
    total_weight: Bnum,
    pool_amount_in: Bnum,
    swap_fee: Bnum,
    *,
    exit_fee: Bnum = _DEFAULT_EXIT_FEE,
) -> Bnum:
    """Calculate tokens paid out for redeeming pool_amount_in as one asset.

    The exit fee is charged on the pool shares first, then the swap fee on
    the non-proportional part of the withdrawal.

    Formula:
        w = weight_out / total_weight
        pool_in_after_exit_fee = pool_amount_in * (1 - exit_fee)
        ratio = ((pool_supply - pool_in_after_exit_fee) / pool_supply)^(1 / w)
        before_fee = balance_out * (1 - ratio)
        amount_out = before_fee * (1 - (1 - w) * swap_fee)
    """
    normalized_weight = weight_out.div(total_weight)
    pool_amount_in_after_exit_fee = pool_amount_in.mul(_ONE.sub(exit_fee))
    new_pool_supply = pool_supply.sub(pool_amount_in_after_exit_fee)
    pool_ratio = new_pool_supply.div(pool_supply)

    token_out_ratio = pool_ratio.pow(_ONE.div(normalized_weight))
    new_balance_out = token_out_ratio.mul(balance_out)

    amount_out_before_fee = balance_out.sub(new_balance_out)
    zaz = _ONE.sub(normalized_weight).mul(swap_fee)
    return amount_out_before_fee.mul(_ONE.sub(zaz))


def calc_pool_in_given_single_out(
    balance_out: Bnum,
    weight_out: Bnum,
    pool_supply: Bnum,
    total_weight: Bnum,
    amount_out: Bnum,
    swap_fee: Bnum,
    *,
    exit_fee: Bnum = _DEFAULT_EXIT_FEE,
) -> Bnum:
    """Calculate pool shares to redeem for an exact single-asset withdrawal.

    Inverse of calc_single_out_given_pool_in.

    Formula:
        w = weight_out / total_weight
        before_fee = amount_out / (1 - (1 - w) * swap_fee)
        ratio = ((balance_out - before_fee) / balance_out)^w
        pool_in = pool_supply * (1 - ratio) / (1 - exit_fee)
    """
    normalized_weight = weight_out.div(total_weight)
    zoo = _ONE.sub(normalized_weight)
    zar = zoo.mul(swap_fee)
    amount_out_before_fee = amount_out.div(_ONE.sub(zar))

    new_balance_out = balance_out.sub(amount_out_before_fee)
    token_out_ratio = new_balance_out.div(balance_out)

    pool_ratio = token_out_ratio.pow(normalized_weight)
    new_pool_supply = pool_ratio.mul(pool_supply)
    pool_amount_in_after_exit_fee = pool_supply.sub(new_pool_supply)

    return pool_amount_in_after_exit_fee.div(_ONE.sub(exit_fee))
