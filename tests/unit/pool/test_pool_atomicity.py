"""Tests for all-or-nothing operations, misbehaving assets and re-entry."""

import pytest
from structlog.testing import capture_logs

from tests.helpers import CONTROLLER, DAI, FUNDING, LP, NO_LIMIT, TRADER, WETH, XXX
from weighted_amm.constants import INIT_POOL_SUPPLY, ONE
from weighted_amm.errors import ExternalTransferFailed, ReentrancyError


def snapshot(pool, bank):
    return (
        pool.get_current_tokens(),
        [pool.get_balance(t) for t in pool.get_current_tokens()],
        pool.get_total_denormalized_weight(),
        pool.total_supply(),
        list(pool.events),
        {
            (asset, account): bank.balance_of(asset, account)
            for asset in (WETH, DAI, XXX)
            for account in (CONTROLLER, TRADER, LP, pool.address)
        },
    )


class TestFailingTransfers:
    """Tests for operations whose transfers fail."""

    def test_bind_with_refusing_asset(self, three_token_pool, bank):
        """A refused pull leaves the pool unchanged."""
        bank.failing_assets.add(XXX)
        before = snapshot(three_token_pool, bank)

        with pytest.raises(ExternalTransferFailed):
            three_token_pool.bind(CONTROLLER, XXX, ONE, ONE)

        assert not three_token_pool.is_bound(XXX)
        assert snapshot(three_token_pool, bank) == before

    def test_swap_push_failure_reverses_pull(self, eth_dai_pool, bank):
        """WETH already pulled from the trader is returned when the DAI push fails."""
        bank.failing_assets.add(DAI)
        before = snapshot(eth_dai_pool, bank)

        with capture_logs() as logs:
            with pytest.raises(ExternalTransferFailed):
                eth_dai_pool.swap_exact_amount_in(TRADER, WETH, 5 * ONE, DAI, 0, NO_LIMIT)

        assert snapshot(eth_dai_pool, bank) == before
        assert bank.balance_of(WETH, TRADER) == FUNDING
        events = [entry["event"] for entry in logs]
        assert "asset_transfer_failed" in events
        assert "transfer_reversed" in events
        assert "pool_operation_rolled_back" in events

    def test_join_raising_asset_reverses_earlier_pulls(self, eth_dai_pool, bank):
        """Pulls made before a raising transfer are reversed."""
        bank.raising_assets.add(DAI)
        before = snapshot(eth_dai_pool, bank)

        with pytest.raises(ExternalTransferFailed) as exc_info:
            eth_dai_pool.join_pool(LP, 10 * ONE, [NO_LIMIT, NO_LIMIT])

        assert isinstance(exc_info.value.__cause__, RuntimeError)
        assert snapshot(eth_dai_pool, bank) == before
        assert eth_dai_pool.balance_of(LP) == 0

    def test_exit_failure_restores_shares(self, eth_dai_pool, bank):
        """A failed push restores burned shares."""
        bank.failing_assets.add(DAI)
        before = snapshot(eth_dai_pool, bank)

        with pytest.raises(ExternalTransferFailed):
            eth_dai_pool.exit_pool(CONTROLLER, 10 * ONE, [0, 0])

        assert snapshot(eth_dai_pool, bank) == before
        assert eth_dai_pool.balance_of(CONTROLLER) == INIT_POOL_SUPPLY

    def test_failed_reversal_still_raises_original_error(self, eth_dai_pool, bank):
        """If undoing a leg fails too, the pool state is restored and the failure logged."""
        pool_balances = (eth_dai_pool.get_balance(WETH), eth_dai_pool.get_balance(DAI))

        def refuse_everything(asset, src, dst, amount):
            if asset == DAI:
                bank.failing_assets.update({WETH, DAI})
                raise RuntimeError("token paused")

        bank.on_transfer = refuse_everything

        with capture_logs() as logs:
            with pytest.raises(ExternalTransferFailed):
                eth_dai_pool.swap_exact_amount_in(TRADER, WETH, 5 * ONE, DAI, 0, NO_LIMIT)

        assert (eth_dai_pool.get_balance(WETH), eth_dai_pool.get_balance(DAI)) == pool_balances
        assert "transfer_reversal_failed" in [entry["event"] for entry in logs]
        # The bank kept the trader's WETH; the pool does not record it
        assert bank.balance_of(WETH, TRADER) == FUNDING - 5 * ONE

    def test_zero_amount_transfers_are_skipped(self, three_token_pool, bank):
        """Rebinding to the same balance moves nothing, even for a refusing asset."""
        bank.failing_assets.add(WETH)
        three_token_pool.rebind(CONTROLLER, WETH, 80_000 * ONE, 4 * ONE)
        assert three_token_pool.get_denormalized_weight(WETH) == 4 * ONE


class TestReentrancy:
    """Tests for re-entry from transfer callbacks."""

    def test_transfer_callback_cannot_swap(self, eth_dai_pool, bank):
        """A callback swapping on the pool aborts the outer operation."""
        errors: list[Exception] = []

        def reenter(asset, src, dst, amount):
            try:
                eth_dai_pool.swap_exact_amount_in(TRADER, WETH, ONE, DAI, 0, NO_LIMIT)
            except Exception as err:
                errors.append(err)
                raise

        bank.on_transfer = reenter
        before = snapshot(eth_dai_pool, bank)

        with pytest.raises(ExternalTransferFailed) as exc_info:
            eth_dai_pool.swap_exact_amount_in(TRADER, WETH, 5 * ONE, DAI, 0, NO_LIMIT)

        assert isinstance(exc_info.value.__cause__, ReentrancyError)
        assert len(errors) == 1

        bank.on_transfer = None
        assert snapshot(eth_dai_pool, bank) == before

    def test_transfer_callback_cannot_read(self, eth_dai_pool, bank):
        """A callback querying the pool aborts the outer operation."""
        def peek(asset, src, dst, amount):
            eth_dai_pool.get_balance(WETH)

        bank.on_transfer = peek
        with pytest.raises(ExternalTransferFailed) as exc_info:
            eth_dai_pool.join_pool(LP, ONE, [NO_LIMIT, NO_LIMIT])
        assert isinstance(exc_info.value.__cause__, ReentrancyError)

    def test_pool_usable_after_reentry_attempt(self, eth_dai_pool, bank):
        """The pool keeps working after a rejected re-entry."""
        def reenter(asset, src, dst, amount):
            eth_dai_pool.gulp(TRADER, WETH)

        bank.on_transfer = reenter
        with pytest.raises(ExternalTransferFailed):
            eth_dai_pool.swap_exact_amount_in(TRADER, WETH, ONE, DAI, 0, NO_LIMIT)

        bank.on_transfer = None
        amount_out, _ = eth_dai_pool.swap_exact_amount_in(TRADER, WETH, ONE, DAI, 0, NO_LIMIT)
        assert amount_out > 0
