"""Price breakdown calculator.

Pure functions: no database, cache or settings access. Every component is
rounded to two places before summation so the breakdown always adds up
exactly to the total.
"""

from dataclasses import dataclass
from decimal import ROUND_HALF_UP, Decimal

from ..exceptions import ValidationError


ZERO = Decimal("0.00")


def round_money(amount: Decimal, places: int = 2) -> Decimal:
    """Round to specified decimal places, halves away from zero."""
    quantize_str = "0." + "0" * places
    return Decimal(amount).quantize(Decimal(quantize_str), rounding=ROUND_HALF_UP)


@dataclass(frozen=True)
class PricingRates:
    """Rates and flat fees a breakdown was computed with."""

    platform_fee_rate: Decimal
    vat_rate: Decimal
    insurance_fee_per_diver: Decimal

    def as_dict(self) -> dict:
        return {
            "platform_fee_rate": str(self.platform_fee_rate),
            "vat_rate": str(self.vat_rate),
            "insurance_fee_per_diver": str(self.insurance_fee_per_diver),
        }


@dataclass(frozen=True)
class PriceBreakdown:
    """Immutable multi-component price for a booking.

    Invariant:
        total_amount == base_price + equipment_rental + conservation_fee
                        + insurance_fee + platform_fee + vat_amount
                        - discount_amount
    """

    base_price: Decimal
    equipment_rental: Decimal
    conservation_fee: Decimal
    insurance_fee: Decimal
    platform_fee: Decimal
    vat_amount: Decimal
    discount_amount: Decimal
    total_amount: Decimal
    currency: str
    number_of_divers: int

    def as_dict(self) -> dict:
        """String-valued amounts, suitable for JSON snapshots."""
        return {
            "base_price": str(self.base_price),
            "equipment_rental": str(self.equipment_rental),
            "conservation_fee": str(self.conservation_fee),
            "insurance_fee": str(self.insurance_fee),
            "platform_fee": str(self.platform_fee),
            "vat_amount": str(self.vat_amount),
            "discount_amount": str(self.discount_amount),
            "total_amount": str(self.total_amount),
            "currency": self.currency,
            "number_of_divers": self.number_of_divers,
        }

    def model_fields(self) -> dict:
        """Booking model field values for this breakdown."""
        return {
            "base_price": self.base_price,
            "equipment_rental": self.equipment_rental,
            "conservation_fee": self.conservation_fee,
            "insurance_fee": self.insurance_fee,
            "platform_fee": self.platform_fee,
            "vat_amount": self.vat_amount,
            "discount_amount": self.discount_amount,
            "total_amount": self.total_amount,
            "currency": self.currency,
        }


def compute_price_breakdown(
    *,
    price_per_person: Decimal,
    number_of_divers: int,
    rates: PricingRates,
    needs_equipment: bool = False,
    equipment_rental_price: Decimal | None = None,
    conservation_fee_per_diver: Decimal = ZERO,
    discount: Decimal = ZERO,
    currency: str = "SAR",
) -> PriceBreakdown:
    """Compute the price breakdown for a number of divers.

    Order of computation:
        1. base = price_per_person * divers
        2. equipment = rental price * divers, only if requested and offered
        3. conservation = fee per diver * divers
        4. insurance = flat fee per diver * divers
        5. platform fee = base * platform rate
        6. VAT = (base + platform fee) * VAT rate
        7. discount (none unless passed in)
        8. total = sum of the rounded components minus discount

    VAT is charged on base price and platform fee only.

    Args:
        price_per_person: Trip price per diver
        number_of_divers: Divers on the booking (>= 1)
        rates: Platform fee rate, VAT rate and insurance fee
        needs_equipment: True if rental equipment is requested
        equipment_rental_price: Per-diver rental price (None = not offered)
        conservation_fee_per_diver: Resolved conservation fee (0 if included)
        discount: Discount amount
        currency: Currency code

    Returns:
        PriceBreakdown

    Raises:
        ValidationError: If number_of_divers < 1
    """
    if number_of_divers < 1:
        raise ValidationError(
            "Number of divers must be at least 1",
            errors={"number_of_divers": ["Must be at least 1"]},
        )

    divers = Decimal(number_of_divers)

    base = round_money(Decimal(price_per_person) * divers)

    if needs_equipment and equipment_rental_price is not None:
        equipment = round_money(Decimal(equipment_rental_price) * divers)
    else:
        equipment = ZERO

    conservation = round_money(Decimal(conservation_fee_per_diver) * divers)
    insurance = round_money(rates.insurance_fee_per_diver * divers)
    platform_fee = round_money(base * rates.platform_fee_rate)
    vat = round_money((base + platform_fee) * rates.vat_rate)
    discount = round_money(discount)

    total = round_money(
        base + equipment + conservation + insurance + platform_fee + vat - discount
    )

    return PriceBreakdown(
        base_price=base,
        equipment_rental=equipment,
        conservation_fee=conservation,
        insurance_fee=insurance,
        platform_fee=platform_fee,
        vat_amount=vat,
        discount_amount=discount,
        total_amount=total,
        currency=currency,
        number_of_divers=number_of_divers,
    )
