"""Booking pricing package.

- calculators: pure price breakdown computation
- services: conservation fee resolution, quotes, calculate_price
"""

from .calculators import PriceBreakdown, PricingRates, compute_price_breakdown, round_money
from .services import PriceQuote, calculate_price, quote_trip

__all__ = [
    "PriceBreakdown",
    "PriceQuote",
    "PricingRates",
    "calculate_price",
    "compute_price_breakdown",
    "quote_trip",
    "round_money",
]
