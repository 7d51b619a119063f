"""Protocol constants for weighted pools.

All fixed-point values are integers scaled by 10^18 (ONE).
"""

ONE = 10**18

# Every FixedPointValue must fit in an unsigned 256-bit word
UINT256_MAX = 2**256 - 1

# Pool composition
MIN_ASSETS = 2
MAX_ASSETS = 16

# Swap fee bounds (0.0001% .. 10%)
MIN_FEE = ONE // 10**6
MAX_FEE = ONE // 10
DEFAULT_SWAP_FEE = MIN_FEE

# Fee charged on redeemed pool shares
EXIT_FEE = 0

# Denormalized weight bounds
MIN_WEIGHT = ONE // 10
MAX_WEIGHT = ONE * 50
MAX_TOTAL_WEIGHT = ONE * 50

MIN_BALANCE = ONE // 10**12

# Pool shares minted to the controller on finalize
INIT_POOL_SUPPLY = ONE * 100

# Valid base range for the power function: (0, 2)
MIN_POW_BASE = 1
MAX_POW_BASE = 2 * ONE - 1
POW_PRECISION = ONE // 10**10

# Largest fraction of a balance a single operation may move
MAX_IN_RATIO = ONE // 2
MAX_OUT_RATIO = ONE // 3 + 1

# Account that holds pool shares owned by the pool itself
POOL_ACCOUNT = "pool"

# Default destination for exit fees
DEFAULT_FEE_SINK = "fee-sink"
