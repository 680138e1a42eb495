"""
Tiered pricing and profit split.

Tier 1 (manufacturer -> partner): print + raw paper
Tier 2 (partner -> broker): print passes through; paper depends on who supplies it
    SELF_SUPPLIED      raw paper + 18% markup, markup kept by the partner
    VENDOR_SUPPLIED    raw paper, no markup
    CUSTOMER_SUPPLIED  no paper cost
Tier 3 (broker -> customer): suggested prices at a 25% target margin

Profit split: the spread (sell - cost) is split 50/50; the paper markup is
already inside the cost and is added to the partner's total only.

All amounts are Decimal and rounded half-up to cents at every computed field.
Everything here is pure; persistence lives in ``profit_split_service``.
"""

from dataclasses import dataclass, field
from decimal import ROUND_HALF_UP, Decimal
from typing import Any, Iterable, List, Optional

from printbroker.constants import CompanyIds, PaperSource
from printbroker.services.pricing_table import get_size_pricing, normalize_size

PAPER_MARKUP_RATE = Decimal("0.18")
TARGET_MARGIN = Decimal("0.25")
SPREAD_SHARE = Decimal("0.5")
LOW_MARGIN_PERCENT = Decimal("10")
HEALTHY_MARGIN_PERCENT = Decimal("15")

CENT = Decimal("0.01")
ZERO = Decimal("0")
THOUSAND = Decimal("1000")


# Money helpers

def to_decimal(value: Any) -> Decimal:
    """Convert a number, string or None to Decimal (None -> 0)."""
    if value is None:
        return ZERO
    if isinstance(value, Decimal):
        return value
    return Decimal(str(value))


def round_money(value: Any) -> Decimal:
    return to_decimal(value).quantize(CENT, rounding=ROUND_HALF_UP)


def to_money_float(value: Any) -> float:
    """
    Serialize a money value as a finite float rounded to cents.

    Raises:
        ValueError: If the value is NaN or infinite
    """
    amount = to_decimal(value)
    if not amount.is_finite():
        raise ValueError(f"Non-finite money value: {value!r}")
    return float(round_money(amount))


def to_optional_money_float(value: Any) -> Optional[float]:
    return None if value is None else to_money_float(value)


# Tier pricing

@dataclass(frozen=True)
class Tier1Pricing:
    print_cpm: Decimal
    print_total: Decimal
    paper_cpm: Decimal
    paper_total: Decimal
    total_cost: Decimal


@dataclass(frozen=True)
class Tier2Pricing:
    print_cpm: Decimal
    print_total: Decimal
    paper_cpm: Decimal
    paper_total: Decimal
    paper_markup: Decimal
    total_cost: Decimal


@dataclass(frozen=True)
class Tier3Pricing:
    suggested_min_price: Decimal
    suggested_price: Decimal
    target_sell_cpm: Decimal


@dataclass(frozen=True)
class TierPricing:
    tier1: Tier1Pricing
    tier2: Tier2Pricing
    tier3: Tier3Pricing
    quantity: int
    size_name: Optional[str]
    paper_source: str
    is_standard_size: bool


def calculate_tier_pricing(
    quantity: int,
    size_name: Optional[str] = None,
    paper_source: str = PaperSource.DEFAULT,
    custom_print_cpm: Any = None,
    custom_paper_cpm: Any = None,
) -> TierPricing:
    """
    Compute the three pricing tiers.

    Custom rates take precedence over the table; a size that is not in the
    table without custom rates prices at zero.

    Args:
        quantity: Total pieces
        size_name: Standard size name (normalized before lookup)
        paper_source: Who supplies the paper
        custom_print_cpm: Print rate per thousand overriding the table
        custom_paper_cpm: Raw paper rate per thousand overriding the table

    Returns:
        TierPricing with all three tiers
    """
    size_pricing = get_size_pricing(size_name) if size_name else None
    normalized = normalize_size(size_name) if size_name else None

    if custom_print_cpm is not None:
        print_cpm = to_decimal(custom_print_cpm)
    else:
        print_cpm = size_pricing.print_cpm if size_pricing else ZERO
    if custom_paper_cpm is not None:
        raw_paper_cpm = to_decimal(custom_paper_cpm)
    else:
        raw_paper_cpm = size_pricing.paper_cpm if size_pricing else ZERO

    qty_k = Decimal(quantity or 0) / THOUSAND

    print_total = round_money(print_cpm * qty_k)
    tier1_paper_total = round_money(raw_paper_cpm * qty_k)
    tier1 = Tier1Pricing(
        print_cpm=print_cpm,
        print_total=print_total,
        paper_cpm=raw_paper_cpm,
        paper_total=tier1_paper_total,
        total_cost=print_total + tier1_paper_total,
    )

    if paper_source == PaperSource.SELF_SUPPLIED:
        marked_up_cpm = raw_paper_cpm * (1 + PAPER_MARKUP_RATE)
        tier2_paper_cpm = round_money(marked_up_cpm)
        tier2_paper_total = round_money(marked_up_cpm * qty_k)
        paper_markup = round_money(raw_paper_cpm * PAPER_MARKUP_RATE * qty_k)
    elif paper_source == PaperSource.VENDOR_SUPPLIED:
        tier2_paper_cpm = round_money(raw_paper_cpm)
        tier2_paper_total = tier1_paper_total
        paper_markup = ZERO
    else:
        tier2_paper_cpm = ZERO
        tier2_paper_total = ZERO
        paper_markup = ZERO

    tier2_total = print_total + tier2_paper_total
    tier2 = Tier2Pricing(
        print_cpm=print_cpm,
        print_total=print_total,
        paper_cpm=tier2_paper_cpm,
        paper_total=round_money(tier2_paper_total),
        paper_markup=round_money(paper_markup),
        total_cost=round_money(tier2_total),
    )

    suggested_price = round_money(tier2.total_cost / (1 - TARGET_MARGIN))
    if size_pricing:
        target_sell_cpm = size_pricing.broker_total_cpm
    elif qty_k > 0:
        target_sell_cpm = round_money(suggested_price / qty_k)
    else:
        target_sell_cpm = ZERO
    tier3 = Tier3Pricing(
        suggested_min_price=tier2.total_cost,
        suggested_price=suggested_price,
        target_sell_cpm=round_money(target_sell_cpm),
    )

    return TierPricing(
        tier1=tier1,
        tier2=tier2,
        tier3=tier3,
        quantity=quantity or 0,
        size_name=normalized,
        paper_source=paper_source,
        is_standard_size=size_pricing is not None,
    )


def calculate_job_tier_pricing(job) -> TierPricing:
    """Tier pricing from a job's own size, quantity, paper source and print rate override."""
    return calculate_tier_pricing(
        quantity=job.quantity or 0,
        size_name=job.size_name,
        paper_source=job.paper_source or PaperSource.DEFAULT,
        custom_print_cpm=job.print_cpm,
    )


# Profit split

@dataclass(frozen=True)
class ProfitSplitResult:
    """
    Profit split of one job.

    The spread is halved, but when it has an odd number of cents the extra
    cent goes to ``partner_spread_share`` (370.17 -> 185.09 / 185.08), so
    the two shares always sum to ``gross_margin``.
    """

    sell_price: Decimal
    total_cost: Decimal
    paper_markup: Decimal
    gross_margin: Decimal
    spread_amount: Decimal
    partner_spread_share: Decimal
    broker_spread_share: Decimal
    partner_total: Decimal
    broker_total: Decimal
    margin_percent: Decimal
    is_healthy: bool
    warnings: List[str] = field(default_factory=list)


def calculate_profit_split(sell_price: Any, total_cost: Any, paper_markup: Any = 0) -> ProfitSplitResult:
    """
    Split the spread between partner and broker.

    ``total_cost`` already contains the paper markup, so the spread is the
    whole gross margin and the markup is added to the partner's total once.
    An odd cent of spread goes to the partner so that the two spread shares
    always add up to the gross margin exactly.

    Warnings are advisory: negative margin, margin below 10%, margin below
    15%, cost above sell price and a negative partner total.
    """
    sell = round_money(sell_price)
    cost = round_money(total_cost)
    markup = round_money(paper_markup)

    gross_margin = sell - cost
    spread = gross_margin
    partner_spread_share = round_money(spread * SPREAD_SHARE)
    broker_spread_share = spread - partner_spread_share
    partner_total = partner_spread_share + markup
    broker_total = broker_spread_share

    margin_percent = round_money(gross_margin / sell * 100) if sell > 0 else ZERO

    warnings = []
    if gross_margin < 0:
        warnings.append(f"Negative margin: Job is losing ${abs(gross_margin):.2f}")
    elif margin_percent < LOW_MARGIN_PERCENT:
        warnings.append(f"Low margin: {margin_percent:.1f}% is below 10% target")
    elif margin_percent < HEALTHY_MARGIN_PERCENT:
        warnings.append(f"Margin below target: {margin_percent:.1f}% (target: 15%+)")

    if sell > 0 and cost > sell:
        warnings.append("Cost exceeds sell price - job is losing money!")

    if partner_total < 0:
        warnings.append("Partner share is negative - check pricing")

    return ProfitSplitResult(
        sell_price=sell,
        total_cost=cost,
        paper_markup=markup,
        gross_margin=gross_margin,
        spread_amount=spread,
        partner_spread_share=partner_spread_share,
        broker_spread_share=broker_spread_share,
        partner_total=partner_total,
        broker_total=broker_total,
        margin_percent=margin_percent,
        is_healthy=margin_percent >= HEALTHY_MARGIN_PERCENT and gross_margin >= 0,
        warnings=warnings,
    )


# Cost breakdown from purchase orders

@dataclass(frozen=True)
class CostBreakdown:
    total_cost: Decimal
    paper_cost: Decimal
    paper_markup: Decimal
    print_cost: Decimal
    po_count: int


def broker_origin_orders(purchase_orders: Optional[Iterable[Any]]) -> list:
    """POs the broker pays; partner -> manufacturer POs are tracking only."""
    return [po for po in purchase_orders or () if po.origin_company_id == CompanyIds.BROKER]


def calculate_cost_breakdown(purchase_orders: Optional[Iterable[Any]]) -> CostBreakdown:
    orders = broker_origin_orders(purchase_orders)
    total_cost = round_money(sum((to_decimal(po.buy_cost) for po in orders), ZERO))
    paper_cost = round_money(sum((to_decimal(po.paper_cost) for po in orders), ZERO))
    paper_markup = round_money(sum((to_decimal(po.paper_markup) for po in orders), ZERO))
    return CostBreakdown(
        total_cost=total_cost,
        paper_cost=paper_cost,
        paper_markup=paper_markup,
        print_cost=total_cost - paper_cost - paper_markup,
        po_count=len(orders),
    )


def calculate_job_profit_split(job) -> ProfitSplitResult:
    """Profit split from the job's sell price and its broker-origin POs."""
    breakdown = calculate_cost_breakdown(job.purchase_orders)
    return calculate_profit_split(job.sell_price, breakdown.total_cost, breakdown.paper_markup)


# Validation

@dataclass(frozen=True)
class PricingValidation:
    is_valid: bool
    errors: List[str]
    warnings: List[str]


def validate_pricing_input(
    quantity: Optional[int],
    size_name: Optional[str] = None,
    custom_print_cpm: Any = None,
    custom_paper_cpm: Any = None,
) -> PricingValidation:
    errors = []
    warnings = []

    if not quantity or quantity <= 0:
        errors.append("Quantity must be greater than 0")
    elif quantity < 1000:
        warnings.append("Small quantity may have different pricing")

    if size_name and get_size_pricing(size_name) is None and not custom_print_cpm and not custom_paper_cpm:
        warnings.append(f'Size "{size_name}" not in standard pricing table - using custom pricing')

    if custom_print_cpm is not None and to_decimal(custom_print_cpm) < 0:
        errors.append("Print CPM cannot be negative")
    if custom_paper_cpm is not None and to_decimal(custom_paper_cpm) < 0:
        errors.append("Paper CPM cannot be negative")

    return PricingValidation(is_valid=not errors, errors=errors, warnings=warnings)


def validate_profit_split_input(sell_price: Any, total_cost: Any, paper_markup: Any = 0) -> PricingValidation:
    sell = to_decimal(sell_price)
    cost = to_decimal(total_cost)
    markup = to_decimal(paper_markup)
    errors = []
    warnings = []

    if sell < 0:
        errors.append("Sell price cannot be negative")
    if cost < 0:
        errors.append("Total cost cannot be negative")
    if markup < 0:
        errors.append("Paper markup cannot be negative")

    if sell > 0 and cost > sell:
        warnings.append("Total cost exceeds sell price - job will have negative margin")
    if markup > cost:
        warnings.append("Paper markup exceeds total cost - check values")

    return PricingValidation(is_valid=not errors, errors=errors, warnings=warnings)
