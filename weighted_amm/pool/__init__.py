"""Weighted pool state machine and its collaborators."""

from weighted_amm.pool.config import DEFAULT_POOL_CONFIG, PoolConfig
from weighted_amm.pool.events import Approval, LogExit, LogJoin, LogSwap, PoolEvent, Transfer
from weighted_amm.pool.ledger import PoolShareLedger
from weighted_amm.pool.lock import PoolLock
from weighted_amm.pool.pool import Pool, SwapResult
from weighted_amm.pool.records import TokenRecord, TokenRegistry
from weighted_amm.pool.transfers import AssetTransfers, InMemoryAssetBank

__all__ = [
    # Pool
    "Pool",
    "SwapResult",
    "PoolConfig",
    "DEFAULT_POOL_CONFIG",
    # Collaborators
    "AssetTransfers",
    "InMemoryAssetBank",
    "PoolShareLedger",
    "PoolLock",
    "TokenRecord",
    "TokenRegistry",
    # Events
    "PoolEvent",
    "Transfer",
    "Approval",
    "LogSwap",
    "LogJoin",
    "LogExit",
]
