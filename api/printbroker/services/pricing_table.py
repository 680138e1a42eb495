"""
Standard self-mailer pricing table.

Rates are per thousand pieces (CPM):
- Tier 1, manufacturer -> partner: print CPM plus raw paper CPM
  (paper CPM = paper lbs per M x paper $/lb)
- Tier 2, partner -> broker: partner print CPM plus paper sell CPM (18% markup)
- Tier 3, broker -> customer: suggested broker sell CPM
"""

import re
from dataclasses import dataclass
from decimal import Decimal
from types import MappingProxyType
from typing import List, Optional


@dataclass(frozen=True)
class SizePricing:
    """Reference rates for one standard size."""

    roll_size: int
    # Tier 1
    print_cpm: Decimal
    paper_lbs_per_m: Decimal
    paper_cost_per_lb: Decimal
    paper_cpm: Decimal
    # Tier 2
    paper_sell_cpm: Decimal
    partner_print_cpm: Decimal
    partner_total_cpm: Decimal
    # Tier 3
    broker_total_cpm: Decimal
    # Profit per M at the suggested price
    partner_profit_cpm: Decimal
    broker_profit_cpm: Decimal


def _entry(roll_size, print_cpm, lbs, paper_cpm, paper_sell, partner_print, partner_total,
           broker_total, partner_profit, broker_profit) -> SizePricing:
    return SizePricing(
        roll_size=roll_size,
        print_cpm=Decimal(print_cpm),
        paper_lbs_per_m=Decimal(lbs),
        paper_cost_per_lb=Decimal("0.675"),
        paper_cpm=Decimal(paper_cpm),
        paper_sell_cpm=Decimal(paper_sell),
        partner_print_cpm=Decimal(partner_print),
        partner_total_cpm=Decimal(partner_total),
        broker_total_cpm=Decimal(broker_total),
        partner_profit_cpm=Decimal(partner_profit),
        broker_profit_cpm=Decimal(broker_profit),
    )


# Published rates; several paper CPMs are quoted figures rather than lbs x $/lb
STANDARD_SIZES = MappingProxyType({
    "7 1/4 x 16 3/8": _entry(15, "34.74", "22.90", "15.46", "18.55", "49.01", "67.56", "67.56", "17.05", "7.13"),
    "8 1/2 x 17 1/2": _entry(18, "38.41", "30.16", "20.36", "24.43", "56.57", "81.00", "81.00", "21.82", "9.08"),
    "9 3/4 x 22 1/8": _entry(20, "49.18", "52.98", "35.76", "42.91", "64.00", "106.91", "106.91", "14.82", "7.41"),
    "9 3/4 x 26": _entry(20, "49.18", "54.28", "36.91", "48.60", "64.00", "112.60", "112.60", "14.82", "7.41"),
    "6 x 9": _entry(20, "10.00", "17.10", "13.60", "16.32", "18.38", "34.70", "34.70", "8.66", "4.33"),
    "6 x 11": _entry(20, "10.00", "20.00", "15.90", "19.08", "18.38", "37.46", "37.46", "8.70", "4.35"),
})

_EIGHTHS = {
    1: "1/8",
    2: "1/4",
    3: "3/8",
    4: "1/2",
    5: "5/8",
    6: "3/4",
    7: "7/8",
}

_SEPARATOR_RE = re.compile(r"\s*x\s*", re.IGNORECASE)
_MIXED_FRACTION_RE = re.compile(r"^(\d+)\s+(\d+)/(\d+)$")
_FRACTION_RE = re.compile(r"^(\d+)/(\d+)$")


def _to_fraction(dimension: str) -> str:
    """7.25 -> '7 1/4'; values that are not whole eighths are returned unchanged."""
    if "/" in dimension:
        return dimension
    try:
        value = float(dimension)
    except ValueError:
        return dimension

    whole = int(value)
    remainder = value - whole
    if abs(remainder) < 0.01:
        return str(whole)
    for eighths, fraction in _EIGHTHS.items():
        if abs(remainder - eighths / 8) < 0.01:
            return f"{whole} {fraction}" if whole > 0 else fraction
    return dimension


def _dimension_value(dimension: str) -> float:
    match = _MIXED_FRACTION_RE.match(dimension)
    if match:
        return int(match.group(1)) + int(match.group(2)) / int(match.group(3))
    match = _FRACTION_RE.match(dimension)
    if match:
        return int(match.group(1)) / int(match.group(2))
    try:
        return float(dimension)
    except ValueError:
        return 0.0


def normalize_size(size: Optional[str]) -> str:
    """
    Normalize a size string to the table's form.

    Decimals become printer fractions and the smaller dimension goes first:
    "16.375 x 7.25" -> "7 1/4 x 16 3/8", "8.5x17.5" -> "8 1/2 x 17 1/2".
    Strings that are not two dimensions are returned stripped but otherwise as-is.
    """
    if not size:
        return ""
    parts = _SEPARATOR_RE.split(size.strip())
    if len(parts) != 2:
        return size.strip()

    first, second = (p.strip() for p in parts)
    a, b = _to_fraction(first), _to_fraction(second)
    if _dimension_value(first) <= _dimension_value(second):
        return f"{a} x {b}"
    return f"{b} x {a}"


def get_size_pricing(size: Optional[str]) -> Optional[SizePricing]:
    """Look up a size after normalization; None when it is not a standard size."""
    return STANDARD_SIZES.get(normalize_size(size))


def is_standard_size(size: Optional[str]) -> bool:
    return get_size_pricing(size) is not None


def standard_size_names() -> List[str]:
    return list(STANDARD_SIZES.keys())
