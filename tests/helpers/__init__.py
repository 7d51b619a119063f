"""Test helpers module for shared test utilities.

- constants: account and asset names, funding amounts
- decimals: closed-form Decimal helpers
"""

from tests.helpers.constants import (
    ALL_ASSETS,
    CONTROLLER,
    DAI,
    FEE_SINK,
    FUNDING,
    KACY,
    LP,
    MKR,
    NO_LIMIT,
    TRADER,
    WETH,
    XXX,
)
from tests.helpers.decimals import dpow, from_fixed, rel_error, to_fixed

__all__ = [
    # Constants
    "CONTROLLER",
    "TRADER",
    "LP",
    "WETH",
    "DAI",
    "MKR",
    "XXX",
    "KACY",
    "ALL_ASSETS",
    "FEE_SINK",
    "FUNDING",
    "NO_LIMIT",
    # Decimal helpers
    "to_fixed",
    "from_fixed",
    "dpow",
    "rel_error",
]
