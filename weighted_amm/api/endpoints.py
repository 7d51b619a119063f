"""Quote endpoints for the weighted pool bonding curve.

Each endpoint evaluates one curve function on caller-supplied pool state.
No pool state is held by the API.
"""

import structlog
from fastapi import APIRouter

from weighted_amm.amm import (
    calc_in_given_out,
    calc_out_given_in,
    calc_pool_in_given_single_out,
    calc_pool_out_given_single_in,
    calc_single_in_given_pool_out,
    calc_single_out_given_pool_in,
    calc_spot_price,
)
from weighted_amm.math.fixed_point import Bnum
from weighted_amm.models.quotes import (
    ErrorResponse,
    InGivenOutRequest,
    OutGivenInRequest,
    PoolInGivenSingleOutRequest,
    PoolOutGivenSingleInRequest,
    QuoteResponse,
    SingleAssetRequest,
    SingleInGivenPoolOutRequest,
    SingleOutGivenPoolInRequest,
    SpotPriceRequest,
)

logger = structlog.get_logger()

router = APIRouter(prefix="/quote", responses={422: {"model": ErrorResponse}})


def _b(value: str) -> Bnum:
    return Bnum(int(value))


def _pair(request: SpotPriceRequest) -> tuple[Bnum, Bnum, Bnum, Bnum]:
    return (
        _b(request.balance_in),
        _b(request.weight_in),
        _b(request.balance_out),
        _b(request.weight_out),
    )


def _single(request: SingleAssetRequest) -> tuple[Bnum, Bnum, Bnum, Bnum]:
    return (
        _b(request.token_balance),
        _b(request.token_weight),
        _b(request.pool_supply),
        _b(request.total_weight),
    )


def _respond(quote: str, amount: Bnum) -> QuoteResponse:
    logger.debug("quote_computed", quote=quote, amount=amount.value)
    return QuoteResponse(amount=str(amount.value))


@router.post("/spot-price")
async def spot_price(request: SpotPriceRequest) -> QuoteResponse:
    """Spot price of token_out in units of token_in, including the swap fee."""
    return _respond("spot_price", calc_spot_price(*_pair(request), _b(request.swap_fee)))


@router.post("/out-given-in")
async def out_given_in(request: OutGivenInRequest) -> QuoteResponse:
    """Output amount for an exact input."""
    amount = calc_out_given_in(*_pair(request), _b(request.amount_in), _b(request.swap_fee))
    return _respond("out_given_in", amount)


@router.post("/in-given-out")
async def in_given_out(request: InGivenOutRequest) -> QuoteResponse:
    """Required input for an exact output."""
    amount = calc_in_given_out(*_pair(request), _b(request.amount_out), _b(request.swap_fee))
    return _respond("in_given_out", amount)


@router.post("/pool-out-given-single-in")
async def pool_out_given_single_in(request: PoolOutGivenSingleInRequest) -> QuoteResponse:
    """Pool shares minted for a single-asset deposit."""
    amount = calc_pool_out_given_single_in(
        *_single(request), _b(request.token_amount_in), _b(request.swap_fee)
    )
    return _respond("pool_out_given_single_in", amount)


@router.post("/single-in-given-pool-out")
async def single_in_given_pool_out(request: SingleInGivenPoolOutRequest) -> QuoteResponse:
    """Single-asset deposit needed to mint an exact number of shares."""
    amount = calc_single_in_given_pool_out(
        *_single(request), _b(request.pool_amount_out), _b(request.swap_fee)
    )
    return _respond("single_in_given_pool_out", amount)


@router.post("/single-out-given-pool-in")
async def single_out_given_pool_in(request: SingleOutGivenPoolInRequest) -> QuoteResponse:
    """Single-asset withdrawal for an exact number of redeemed shares."""
    amount = calc_single_out_given_pool_in(
        *_single(request),
        _b(request.pool_amount_in),
        _b(request.swap_fee),
        exit_fee=_b(request.exit_fee),
    )
    return _respond("single_out_given_pool_in", amount)


@router.post("/pool-in-given-single-out")
async def pool_in_given_single_out(request: PoolInGivenSingleOutRequest) -> QuoteResponse:
    """Shares redeemed for an exact single-asset withdrawal."""
    amount = calc_pool_in_given_single_out(
        *_single(request),
        _b(request.token_amount_out),
        _b(request.swap_fee),
        exit_fee=_b(request.exit_fee),
    )
    return _respond("pool_in_given_single_out", amount)
