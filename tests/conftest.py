"""Pytest configuration and fixtures."""

import pytest

from tests.helpers import (
    ALL_ASSETS,
    CONTROLLER,
    DAI,
    FEE_SINK,
    FUNDING,
    LP,
    MKR,
    TRADER,
    WETH,
    to_fixed,
)
from weighted_amm.constants import ONE
from weighted_amm.pool import InMemoryAssetBank, Pool, PoolConfig


@pytest.fixture
def bank() -> InMemoryAssetBank:
    """Asset bank with every test account holding FUNDING of each asset."""
    bank = InMemoryAssetBank()
    for asset in ALL_ASSETS:
        for account in (CONTROLLER, TRADER, LP):
            bank.mint(asset, account, FUNDING)
    return bank


@pytest.fixture
def pool(bank: InMemoryAssetBank) -> Pool:
    """Empty, unfinalized pool controlled by CONTROLLER."""
    return Pool(CONTROLLER, bank)


@pytest.fixture
def three_token_pool(pool: Pool) -> Pool:
    """Pool with WETH, MKR and DAI bound at weights 8/2/2, not finalized."""
    pool.bind(CONTROLLER, WETH, 80_000 * ONE, 8 * ONE)
    pool.bind(CONTROLLER, MKR, 40 * ONE, 2 * ONE)
    pool.bind(CONTROLLER, DAI, 10_000 * ONE, 2 * ONE)
    return pool


@pytest.fixture
def eth_dai_pool(pool: Pool) -> Pool:
    """Finalized 40 WETH / 10000 DAI pool, weights 1.5/1.5, swap fee 0.1%."""
    pool.bind(CONTROLLER, WETH, 40 * ONE, to_fixed("1.5"))
    pool.bind(CONTROLLER, DAI, 10_000 * ONE, to_fixed("1.5"))
    pool.set_swap_fee(CONTROLLER, to_fixed("0.001"))
    pool.finalize(CONTROLLER)
    return pool


@pytest.fixture
def exit_fee_pool(bank: InMemoryAssetBank) -> Pool:
    """Unfinalized 40 WETH / 10000 DAI pool charging a 1% exit fee to FEE_SINK."""
    pool = Pool(CONTROLLER, bank, PoolConfig(exit_fee=ONE // 100, fee_sink=FEE_SINK))
    pool.bind(CONTROLLER, WETH, 40 * ONE, to_fixed("1.5"))
    pool.bind(CONTROLLER, DAI, 10_000 * ONE, to_fixed("1.5"))
    pool.set_swap_fee(CONTROLLER, to_fixed("0.001"))
    return pool
