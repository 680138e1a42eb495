"""Business logic services."""

from printbroker.services.pricing_service import calculate_profit_split, calculate_tier_pricing
from printbroker.services.pricing_table import get_size_pricing, normalize_size

__all__ = ["calculate_profit_split", "calculate_tier_pricing", "get_size_pricing", "normalize_size"]
