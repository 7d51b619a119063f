"""Pydantic models for the quote API."""

from weighted_amm.models.quotes import (
    ErrorResponse,
    InGivenOutRequest,
    OutGivenInRequest,
    PoolInGivenSingleOutRequest,
    PoolOutGivenSingleInRequest,
    QuoteResponse,
    SingleInGivenPoolOutRequest,
    SingleOutGivenPoolInRequest,
    SpotPriceRequest,
)
from weighted_amm.models.types import Uint256

__all__ = [
    # Types
    "Uint256",
    # Requests
    "SpotPriceRequest",
    "OutGivenInRequest",
    "InGivenOutRequest",
    "PoolOutGivenSingleInRequest",
    "SingleInGivenPoolOutRequest",
    "SingleOutGivenPoolInRequest",
    "PoolInGivenSingleOutRequest",
    # Responses
    "QuoteResponse",
    "ErrorResponse",
]
