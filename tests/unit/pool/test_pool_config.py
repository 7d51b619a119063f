"""Tests for PoolConfig validation."""

import dataclasses

import pytest

from weighted_amm.constants import DEFAULT_SWAP_FEE, MAX_FEE, MIN_FEE, ONE
from weighted_amm.pool import InMemoryAssetBank, Pool
from weighted_amm.pool.config import DEFAULT_POOL_CONFIG, PoolConfig


class TestPoolConfig:
    """Tests for PoolConfig defaults and validation."""

    def test_defaults(self):
        """Default config carries the module-level bounds."""
        assert DEFAULT_POOL_CONFIG.min_fee == MIN_FEE
        assert DEFAULT_POOL_CONFIG.max_fee == MAX_FEE
        assert DEFAULT_POOL_CONFIG.swap_fee == DEFAULT_SWAP_FEE
        assert DEFAULT_POOL_CONFIG.exit_fee == 0
        assert DEFAULT_POOL_CONFIG.init_pool_supply == 100 * ONE
        assert DEFAULT_POOL_CONFIG.anchor_token is None

    def test_frozen(self):
        """Config instances are immutable."""
        with pytest.raises(dataclasses.FrozenInstanceError):
            DEFAULT_POOL_CONFIG.exit_fee = 1  # type: ignore[misc]

    @pytest.mark.parametrize(
        "overrides",
        [
            {"min_assets": 0},
            {"min_assets": 5, "max_assets": 4},
            {"min_fee": MAX_FEE + 1},
            {"max_fee": ONE},
            {"swap_fee": MIN_FEE - 1},
            {"swap_fee": MAX_FEE + 1},
            {"exit_fee": ONE},
            {"min_weight": 0},
            {"max_weight": 60 * ONE},
            {"min_balance": 0},
            {"init_pool_supply": 0},
            {"max_in_ratio": 0},
            {"max_out_ratio": ONE + 1},
            {"min_anchor_weight": ONE + 1},
        ],
    )
    def test_inconsistent_values_rejected(self, overrides):
        """Inconsistent bounds raise ValueError at construction."""
        with pytest.raises(ValueError):
            PoolConfig(**overrides)

    def test_custom_config(self):
        """Overridden fields are kept."""
        config = PoolConfig(exit_fee=ONE // 100, anchor_token="KACY", min_anchor_weight=ONE // 20)
        assert config.exit_fee == ONE // 100
        assert config.anchor_token == "KACY"

    def test_new_pool_starts_with_configured_swap_fee(self):
        """A fresh pool reports the configured initial swap fee."""
        pool = Pool("controller", InMemoryAssetBank(), PoolConfig(swap_fee=ONE // 1000))
        assert pool.get_swap_fee() == ONE // 1000

    def test_default_pool_swap_fee(self):
        """Without overrides a pool starts at the default swap fee."""
        pool = Pool("controller", InMemoryAssetBank())
        assert pool.get_swap_fee() == DEFAULT_SWAP_FEE
