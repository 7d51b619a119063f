"""Pool configuration."""

from dataclasses import dataclass

from weighted_amm.constants import (
    DEFAULT_FEE_SINK,
    DEFAULT_SWAP_FEE,
    EXIT_FEE,
    INIT_POOL_SUPPLY,
    MAX_ASSETS,
    MAX_FEE,
    MAX_IN_RATIO,
    MAX_OUT_RATIO,
    MAX_TOTAL_WEIGHT,
    MAX_WEIGHT,
    MIN_ASSETS,
    MIN_BALANCE,
    MIN_FEE,
    MIN_WEIGHT,
    ONE,
)


@dataclass(frozen=True)
class PoolConfig:
    """Bounds and fee parameters for a pool instance.

    All amounts are fixed-point integers scaled by 10^18.

    Attributes:
        min_assets: Tokens required before finalize (default: 2)
        max_assets: Maximum bound tokens (default: 16)
        min_fee: Lowest allowed swap fee (default: 0.0001%)
        max_fee: Highest allowed swap fee (default: 10%)
        swap_fee: Swap fee a new pool starts with (default: min_fee)
        exit_fee: Fee on redeemed pool shares and withdrawn balances (default: 0)
        min_weight: Lowest denormalized weight (default: 0.1)
        max_weight: Highest denormalized weight (default: 50)
        max_total_weight: Cap on the sum of denormalized weights (default: 50)
        min_balance: Lowest balance of a bound token (default: 10^-12)
        init_pool_supply: Shares minted to the controller on finalize (default: 100)
        max_in_ratio: Largest fraction of a balance one operation may add (default: 1/2)
        max_out_ratio: Largest fraction of a balance one operation may remove (default: ~1/3)
        fee_sink: Account receiving exit fees
        anchor_token: Token that must keep min_anchor_weight of the pool,
            or None to disable the check
        min_anchor_weight: Minimum normalized weight of anchor_token
    """

    min_assets: int = MIN_ASSETS
    max_assets: int = MAX_ASSETS

    min_fee: int = MIN_FEE
    max_fee: int = MAX_FEE
    swap_fee: int = DEFAULT_SWAP_FEE
    exit_fee: int = EXIT_FEE

    min_weight: int = MIN_WEIGHT
    max_weight: int = MAX_WEIGHT
    max_total_weight: int = MAX_TOTAL_WEIGHT
    min_balance: int = MIN_BALANCE

    init_pool_supply: int = INIT_POOL_SUPPLY

    max_in_ratio: int = MAX_IN_RATIO
    max_out_ratio: int = MAX_OUT_RATIO

    fee_sink: str = DEFAULT_FEE_SINK

    anchor_token: str | None = None
    min_anchor_weight: int = 0

    def __post_init__(self) -> None:
        if not 1 <= self.min_assets <= self.max_assets:
            raise ValueError(f"Invalid asset bounds: [{self.min_assets}, {self.max_assets}]")
        if not 0 <= self.min_fee <= self.max_fee < ONE:
            raise ValueError(f"Invalid fee bounds: [{self.min_fee}, {self.max_fee}]")
        if not self.min_fee <= self.swap_fee <= self.max_fee:
            raise ValueError(
                f"Swap fee {self.swap_fee} outside [{self.min_fee}, {self.max_fee}]"
            )
        if not 0 <= self.exit_fee < ONE:
            raise ValueError(f"Exit fee must be in [0, 1), got {self.exit_fee}")
        if not 0 < self.min_weight <= self.max_weight <= self.max_total_weight:
            raise ValueError(
                f"Invalid weight bounds: min={self.min_weight} max={self.max_weight} "
                f"total={self.max_total_weight}"
            )
        if self.min_balance <= 0:
            raise ValueError("min_balance must be positive")
        if self.init_pool_supply <= 0:
            raise ValueError("init_pool_supply must be positive")
        if not 0 < self.max_in_ratio <= ONE or not 0 < self.max_out_ratio <= ONE:
            raise ValueError("Ratio caps must be in (0, 1]")
        if not 0 <= self.min_anchor_weight <= ONE:
            raise ValueError(f"min_anchor_weight must be in [0, 1], got {self.min_anchor_weight}")


# Default configuration instance
DEFAULT_POOL_CONFIG = PoolConfig()
