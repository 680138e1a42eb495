"""Pricing schemas. Money is serialized as plain numbers rounded to cents."""

from decimal import Decimal
from typing import List, Optional

from pydantic import BaseModel, Field

from printbroker.constants import PaperSource, enum_pattern


class TierPricingRequest(BaseModel):
    """Input for the tier pricing calculator."""

    quantity: int = Field(..., ge=0)
    size_name: Optional[str] = Field(None, max_length=50)
    paper_source: str = Field(default=PaperSource.DEFAULT, pattern=enum_pattern(PaperSource.ALL))
    custom_print_cpm: Optional[Decimal] = None
    custom_paper_cpm: Optional[Decimal] = None


class ProfitSplitRequest(BaseModel):
    """Input for the profit split calculator."""

    sell_price: Decimal
    total_cost: Decimal
    paper_markup: Decimal = Decimal("0")


class Tier1Response(BaseModel):
    print_cpm: float
    print_total: float
    paper_cpm: float
    paper_total: float
    total_cost: float


class Tier2Response(BaseModel):
    print_cpm: float
    print_total: float
    paper_cpm: float
    paper_total: float
    paper_markup: float
    total_cost: float


class Tier3Response(BaseModel):
    suggested_min_price: float
    suggested_price: float
    target_sell_cpm: float


class TierPricingResponse(BaseModel):
    tier1: Tier1Response
    tier2: Tier2Response
    tier3: Tier3Response
    quantity: int
    size_name: Optional[str]
    paper_source: str
    is_standard_size: bool
    errors: List[str] = Field(default_factory=list)
    warnings: List[str] = Field(default_factory=list)


class ProfitSplitResponse(BaseModel):
    sell_price: float
    total_cost: float
    paper_markup: float
    gross_margin: float
    spread_amount: float
    partner_spread_share: float
    broker_spread_share: float
    partner_total: float
    broker_total: float
    margin_percent: float
    is_healthy: bool
    warnings: List[str] = Field(default_factory=list)
    errors: List[str] = Field(default_factory=list)


class CostBreakdownResponse(BaseModel):
    total_cost: float
    paper_cost: float
    paper_markup: float
    print_cost: float
    po_count: int


class StandardSizeResponse(BaseModel):
    """One row of the standard size table."""

    size_name: str
    roll_size: int
    print_cpm: float
    paper_lbs_per_m: float
    paper_cost_per_lb: float
    paper_cpm: float
    paper_sell_cpm: float
    partner_print_cpm: float
    partner_total_cpm: float
    broker_total_cpm: float
    partner_profit_cpm: float
    broker_profit_cpm: float
