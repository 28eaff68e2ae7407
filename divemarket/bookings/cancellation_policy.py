"""Time-tiered refund policy for booking cancellations.

Policy, evaluated in this order:
    1. hours until departure < trip.cancellation_deadline_hours -> no refund
    2. hours until departure >= BOOKINGS_FULL_REFUND_HOURS (48) -> full refund
    3. otherwise -> BOOKINGS_PARTIAL_REFUND_PERCENT (50%) of the total

The deadline check runs first. With a deadline above 48 hours the partial
band is unreachable; that ordering is part of the policy.

This module computes a DECISION. Money movement happens in the payment
system, which reports back through services.record_refund_outcome().
"""

from dataclasses import dataclass
from datetime import datetime
from decimal import Decimal

from django.utils import timezone

from .conf import get_setting
from .pricing.calculators import round_money


@dataclass(frozen=True)
class RefundDecision:
    """Immutable result of refund calculation.

    Attributes:
        refund_amount: Amount to refund (Decimal, 2 decimal places)
        refund_percent: Percentage applied (0-100)
        original_amount: Booking total the percentage was applied to
        hours_before_departure: Hours between cancellation and departure
        reason: Human-readable explanation
    """

    refund_amount: Decimal
    refund_percent: int
    original_amount: Decimal
    hours_before_departure: float
    reason: str

    def as_dict(self) -> dict:
        return {
            "refund_amount": str(self.refund_amount),
            "refund_percent": self.refund_percent,
            "original_amount": str(self.original_amount),
            "hours_before_departure": self.hours_before_departure,
            "reason": self.reason,
        }


def hours_until(departure_time: datetime, now: datetime) -> float:
    """Hours from now until departure (negative once departed)."""
    return (departure_time - now).total_seconds() / 3600


def compute_refund_decision(
    *,
    total_amount: Decimal,
    departure_time: datetime,
    cancellation_deadline_hours: int,
    now: datetime | None = None,
) -> RefundDecision:
    """Compute the refund for a diver-initiated cancellation.

    Args:
        total_amount: Booking total
        departure_time: When the trip departs
        cancellation_deadline_hours: Trip's no-refund deadline
        now: Cancellation time (defaults to timezone.now())

    Returns:
        RefundDecision
    """
    now = now or timezone.now()
    total_amount = Decimal(total_amount)
    hours = hours_until(departure_time, now)
    hours_reported = round(hours, 2)

    if hours < cancellation_deadline_hours:
        percent = 0
        reason = (
            f"No refund - cancelled {hours_reported} hours before departure, "
            f"within the {cancellation_deadline_hours} hour deadline"
        )
    elif hours >= get_setting("FULL_REFUND_HOURS"):
        percent = 100
        reason = f"Full refund - cancelled {hours_reported} hours before departure"
    else:
        percent = int(get_setting("PARTIAL_REFUND_PERCENT"))
        reason = f"{percent}% refund - cancelled {hours_reported} hours before departure"

    if percent == 100:
        amount = round_money(total_amount)
    else:
        amount = round_money(total_amount * Decimal(percent) / Decimal(100))

    return RefundDecision(
        refund_amount=amount,
        refund_percent=percent,
        original_amount=total_amount,
        hours_before_departure=hours_reported,
        reason=reason,
    )


def compute_operator_refund(total_amount: Decimal, *, reason: str = "") -> RefundDecision:
    """Full refund for a booking on a trip the diving center cancelled."""
    total_amount = Decimal(total_amount)
    return RefundDecision(
        refund_amount=round_money(total_amount),
        refund_percent=100,
        original_amount=total_amount,
        hours_before_departure=0.0,
        reason=reason or "Full refund - trip cancelled by the diving center",
    )
