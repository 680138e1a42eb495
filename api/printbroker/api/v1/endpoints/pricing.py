"""Pricing calculator endpoints."""

from typing import List

from fastapi import APIRouter

from printbroker.schemas.pricing import (
    ProfitSplitRequest,
    ProfitSplitResponse,
    StandardSizeResponse,
    TierPricingRequest,
    TierPricingResponse,
)
from printbroker.services.pricing_service import (
    calculate_profit_split,
    calculate_tier_pricing,
    validate_pricing_input,
    validate_profit_split_input,
)
from printbroker.services.pricing_table import STANDARD_SIZES
from printbroker.services.serializers import profit_split_response, standard_size_response, tier_pricing_response

router = APIRouter()


@router.post("/tiers", response_model=TierPricingResponse)
def tier_pricing(request: TierPricingRequest):
    """
    Three-tier pricing for a quantity and size.

    Validation problems come back in ``errors`` and ``warnings``; the tiers
    are still computed.
    """
    validation = validate_pricing_input(
        request.quantity, request.size_name, request.custom_print_cpm, request.custom_paper_cpm
    )
    tiers = calculate_tier_pricing(
        request.quantity,
        request.size_name,
        request.paper_source,
        request.custom_print_cpm,
        request.custom_paper_cpm,
    )
    return tier_pricing_response(tiers, validation)


@router.post("/profit-split", response_model=ProfitSplitResponse)
def profit_split(request: ProfitSplitRequest):
    """Split the gross margin between broker and partner."""
    validation = validate_profit_split_input(request.sell_price, request.total_cost, request.paper_markup)
    result = calculate_profit_split(request.sell_price, request.total_cost, request.paper_markup)
    return profit_split_response(result, validation)


@router.get("/sizes", response_model=List[StandardSizeResponse])
def standard_sizes():
    """Standard self-mailer sizes with their rates per thousand."""
    return [standard_size_response(name, pricing) for name, pricing in STANDARD_SIZES.items()]
