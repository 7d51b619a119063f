"""Weighted constant-value AMM engine."""

from weighted_amm.math.fixed_point import Bnum
from weighted_amm.pool import DEFAULT_POOL_CONFIG, InMemoryAssetBank, Pool, PoolConfig

__version__ = "0.1.0"
__all__ = ["Bnum", "Pool", "PoolConfig", "DEFAULT_POOL_CONFIG", "InMemoryAssetBank", "__version__"]
