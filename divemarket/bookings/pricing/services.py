"""Pricing services.

Resolves the inputs of the price calculator (settings rates, conservation
fee via the SiteFeeProvider) and produces quotes with reproducible
snapshots.
"""

import logging
from dataclasses import dataclass
from decimal import Decimal

from ..conf import get_currency, get_decimal_setting, get_setting, get_site_fee_provider
from ..exceptions import ValidationError
from .calculators import PriceBreakdown, PricingRates, compute_price_breakdown


logger = logging.getLogger(__name__)


FEE_SOURCE_INCLUDED = "included"
FEE_SOURCE_NO_SITE = "no_site"
FEE_SOURCE_SITE = "site"
FEE_SOURCE_DEFAULT = "default"


@dataclass(frozen=True)
class PriceQuote:
    """A price breakdown together with everything needed to reproduce it."""

    breakdown: PriceBreakdown
    rates: PricingRates
    conservation_fee_per_diver: Decimal
    conservation_fee_source: str
    price_per_person: Decimal
    equipment_rental_price: Decimal | None

    def snapshot(self) -> dict:
        """JSON-serialisable snapshot stored on the booking."""
        return {
            "breakdown": self.breakdown.as_dict(),
            "rates": self.rates.as_dict(),
            "inputs": {
                "price_per_person": str(self.price_per_person),
                "equipment_rental_price": (
                    str(self.equipment_rental_price)
                    if self.equipment_rental_price is not None
                    else None
                ),
                "conservation_fee_per_diver": str(self.conservation_fee_per_diver),
                "conservation_fee_source": self.conservation_fee_source,
            },
        }


def get_pricing_rates() -> PricingRates:
    """Current rates from settings."""
    return PricingRates(
        platform_fee_rate=get_decimal_setting("PLATFORM_FEE_RATE"),
        vat_rate=get_decimal_setting("VAT_RATE"),
        insurance_fee_per_diver=get_decimal_setting("INSURANCE_FEE_PER_DIVER"),
    )


def validate_number_of_divers(number_of_divers) -> int:
    """Validate a diver count against BOOKINGS_MAX_DIVERS_PER_BOOKING.

    Raises:
        ValidationError: If not an integer in 1..max
    """
    maximum = get_setting("MAX_DIVERS_PER_BOOKING")
    if isinstance(number_of_divers, bool) or not isinstance(number_of_divers, int):
        raise ValidationError(
            "Number of divers must be a whole number",
            errors={"number_of_divers": ["Must be a whole number"]},
        )
    if number_of_divers < 1 or number_of_divers > maximum:
        raise ValidationError(
            f"Number of divers must be between 1 and {maximum}",
            errors={"number_of_divers": [f"Must be between 1 and {maximum}"]},
        )
    return number_of_divers


def resolve_conservation_fee(trip, *, site_fee_provider=None) -> tuple[Decimal, str]:
    """Resolve the per-diver conservation fee for a trip.

    A lookup failure never fails the booking: a missing site or a
    provider error falls back to BOOKINGS_DEFAULT_CONSERVATION_FEE.

    Returns:
        (fee per diver, source) where source is one of the FEE_SOURCE_* values
    """
    if trip.conservation_fee_included:
        return Decimal("0"), FEE_SOURCE_INCLUDED
    if trip.site_id is None:
        return Decimal("0"), FEE_SOURCE_NO_SITE

    provider = site_fee_provider or get_site_fee_provider()
    try:
        fee = provider.get_fee_per_diver(trip.site_id)
    except Exception:
        logger.warning(
            "Site fee lookup failed for site %s, using default fee",
            trip.site_id,
            exc_info=True,
        )
        fee = None

    if fee is None:
        logger.warning("No conservation fee for site %s, using default fee", trip.site_id)
        return get_decimal_setting("DEFAULT_CONSERVATION_FEE"), FEE_SOURCE_DEFAULT

    return Decimal(str(fee)), FEE_SOURCE_SITE


def quote_trip(
    trip,
    *,
    number_of_divers: int,
    needs_equipment: bool = False,
    site_fee_provider=None,
) -> PriceQuote:
    """Price a booking of number_of_divers on trip.

    Args:
        trip: Trip instance (pricing fields are read, nothing is written)
        number_of_divers: Divers on the booking
        needs_equipment: True if rental equipment is requested
        site_fee_provider: SiteFeeProvider (defaults to the configured one)

    Returns:
        PriceQuote

    Raises:
        ValidationError: If number_of_divers is out of range
    """
    validate_number_of_divers(number_of_divers)

    rates = get_pricing_rates()
    fee_per_diver, fee_source = resolve_conservation_fee(
        trip, site_fee_provider=site_fee_provider
    )

    breakdown = compute_price_breakdown(
        price_per_person=trip.price_per_person,
        number_of_divers=number_of_divers,
        rates=rates,
        needs_equipment=needs_equipment,
        equipment_rental_price=trip.equipment_rental_price,
        conservation_fee_per_diver=fee_per_diver,
        currency=get_currency(),
    )

    return PriceQuote(
        breakdown=breakdown,
        rates=rates,
        conservation_fee_per_diver=fee_per_diver,
        conservation_fee_source=fee_source,
        price_per_person=trip.price_per_person,
        equipment_rental_price=trip.equipment_rental_price,
    )


def calculate_price(
    *,
    trip_id,
    number_of_divers: int,
    needs_equipment: bool = False,
    site_fee_provider=None,
) -> PriceBreakdown:
    """Price breakdown for a prospective booking.

    Raises:
        NotFoundError: If the trip does not exist
        ValidationError: If number_of_divers is out of range
    """
    from ..selectors import get_trip

    trip = get_trip(trip_id)
    return quote_trip(
        trip,
        number_of_divers=number_of_divers,
        needs_equipment=needs_equipment,
        site_fee_provider=site_fee_provider,
    ).breakdown
