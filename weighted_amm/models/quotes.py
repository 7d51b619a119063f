"""Pydantic models for bonding-curve quote requests and responses.

Field names are camelCase on the wire and snake_case in Python.
"""

from pydantic import BaseModel, Field

from weighted_amm.constants import EXIT_FEE
from weighted_amm.models.types import Uint256

_CONFIG = {"populate_by_name": True}


class SpotPriceRequest(BaseModel):
    """Inputs of calc_spot_price."""

    balance_in: Uint256 = Field(alias="balanceIn")
    weight_in: Uint256 = Field(alias="weightIn")
    balance_out: Uint256 = Field(alias="balanceOut")
    weight_out: Uint256 = Field(alias="weightOut")
    swap_fee: Uint256 = Field(alias="swapFee")

    model_config = _CONFIG


class OutGivenInRequest(SpotPriceRequest):
    """Inputs of calc_out_given_in."""

    amount_in: Uint256 = Field(alias="amountIn")


class InGivenOutRequest(SpotPriceRequest):
    """Inputs of calc_in_given_out."""

    amount_out: Uint256 = Field(alias="amountOut")


class SingleAssetRequest(BaseModel):
    """Common inputs of the single-asset join/exit functions."""

    token_balance: Uint256 = Field(alias="tokenBalance")
    token_weight: Uint256 = Field(alias="tokenWeight")
    pool_supply: Uint256 = Field(alias="poolSupply")
    total_weight: Uint256 = Field(alias="totalWeight")
    swap_fee: Uint256 = Field(alias="swapFee")

    model_config = _CONFIG


class PoolOutGivenSingleInRequest(SingleAssetRequest):
    token_amount_in: Uint256 = Field(alias="tokenAmountIn")


class SingleInGivenPoolOutRequest(SingleAssetRequest):
    pool_amount_out: Uint256 = Field(alias="poolAmountOut")


class SingleOutGivenPoolInRequest(SingleAssetRequest):
    pool_amount_in: Uint256 = Field(alias="poolAmountIn")
    exit_fee: Uint256 = Field(default=str(EXIT_FEE), alias="exitFee")


class PoolInGivenSingleOutRequest(SingleAssetRequest):
    token_amount_out: Uint256 = Field(alias="tokenAmountOut")
    exit_fee: Uint256 = Field(default=str(EXIT_FEE), alias="exitFee")


class QuoteResponse(BaseModel):
    """Computed amount, fixed-point scaled by 10^18."""

    amount: Uint256 = Field(description="Computed amount as decimal string")


class ErrorResponse(BaseModel):
    """Pool math failure reported by a quote endpoint."""

    error: str = Field(description="Error class name, e.g. MaxInRatioError")
    detail: str
