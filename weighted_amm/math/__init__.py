"""Mathematical utilities for weighted pools.

This package provides the fixed-point primitives used by the bonding curve:
- Bnum: 18-decimal unsigned fixed-point arithmetic with checked rounding
"""

from weighted_amm.math.fixed_point import Bnum

__all__ = ["Bnum"]
