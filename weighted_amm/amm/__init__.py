"""Weighted product bonding curve.

Stateless pricing and liquidity math used by the pool state machine.
"""

from .weighted_math import (
    calc_in_given_out,
    calc_out_given_in,
    calc_pool_in_given_single_out,
    calc_pool_out_given_single_in,
    calc_single_in_given_pool_out,
    calc_single_out_given_pool_in,
    calc_spot_price,
)

__all__ = [
    "calc_spot_price",
    "calc_out_given_in",
    "calc_in_given_out",
    "calc_pool_out_given_single_in",
    "calc_single_in_given_pool_out",
    "calc_single_out_given_pool_in",
    "calc_pool_in_given_single_out",
]
