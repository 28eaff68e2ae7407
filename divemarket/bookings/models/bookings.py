"""Booking model.

A Booking is a diver's reservation of one or more seats on a Trip.
Price fields are locked at creation time; price_snapshot holds the full
breakdown together with the rates that produced it.
"""

from decimal import Decimal

from django.conf import settings
from django.db import models
from django.db.models import Q

from .base import BaseModel


MONEY = {"max_digits": 10, "decimal_places": 2}


class Booking(BaseModel):
    """A diver's reservation on a trip."""

    STATUS_PENDING = "pending"
    STATUS_CONFIRMED = "confirmed"
    STATUS_PAID = "paid"
    STATUS_CHECKED_IN = "checked_in"
    STATUS_COMPLETED = "completed"
    STATUS_CANCELLED = "cancelled"
    STATUS_REFUNDED = "refunded"
    STATUS_PARTIALLY_REFUNDED = "partially_refunded"

    STATUS_CHOICES = [
        (STATUS_PENDING, "Pending"),
        (STATUS_CONFIRMED, "Confirmed"),
        (STATUS_PAID, "Paid"),
        (STATUS_CHECKED_IN, "Checked In"),
        (STATUS_COMPLETED, "Completed"),
        (STATUS_CANCELLED, "Cancelled"),
        (STATUS_REFUNDED, "Refunded"),
        (STATUS_PARTIALLY_REFUNDED, "Partially Refunded"),
    ]

    # Active bookings hold seats and block a second booking for the same diver
    ACTIVE_STATUSES = (
        STATUS_PENDING,
        STATUS_CONFIRMED,
        STATUS_PAID,
        STATUS_CHECKED_IN,
        STATUS_COMPLETED,
        STATUS_PARTIALLY_REFUNDED,
    )
    TERMINAL_STATUSES = (STATUS_COMPLETED, STATUS_CANCELLED, STATUS_REFUNDED)
    CANCELLABLE_STATUSES = (STATUS_PENDING, STATUS_CONFIRMED, STATUS_PAID)

    booking_number = models.CharField(max_length=20, unique=True)

    trip = models.ForeignKey(
        "bookings.Trip",
        on_delete=models.PROTECT,
        related_name="bookings",
    )
    diver = models.ForeignKey(
        settings.AUTH_USER_MODEL,
        on_delete=models.PROTECT,
        related_name="dive_bookings",
    )
    booked_by = models.ForeignKey(
        settings.AUTH_USER_MODEL,
        on_delete=models.SET_NULL,
        null=True,
        blank=True,
        related_name="dive_bookings_made",
    )

    status = models.CharField(
        max_length=20,
        choices=STATUS_CHOICES,
        default=STATUS_PENDING,
    )
    number_of_divers = models.PositiveSmallIntegerField(default=1)
    needs_equipment = models.BooleanField(default=False)

    # Price breakdown, locked at creation
    currency = models.CharField(max_length=3, default="SAR")
    base_price = models.DecimalField(**MONEY)
    equipment_rental = models.DecimalField(**MONEY, default=Decimal("0"))
    conservation_fee = models.DecimalField(**MONEY, default=Decimal("0"))
    insurance_fee = models.DecimalField(**MONEY, default=Decimal("0"))
    platform_fee = models.DecimalField(**MONEY, default=Decimal("0"))
    vat_amount = models.DecimalField(**MONEY, default=Decimal("0"))
    discount_amount = models.DecimalField(**MONEY, default=Decimal("0"))
    total_amount = models.DecimalField(**MONEY)
    price_snapshot = models.JSONField(
        default=dict,
        blank=True,
        help_text="Full pricing context at booking time (immutable snapshot)",
    )

    # Requests
    special_requests = models.TextField(blank=True)
    dietary_requirements = models.TextField(blank=True)
    equipment_sizes = models.JSONField(default=dict, blank=True)

    # Waiver and minors
    waiver_signed_at = models.DateTimeField(null=True, blank=True)
    waiver_ip_address = models.GenericIPAddressField(null=True, blank=True)
    parent_consent_required = models.BooleanField(default=False)
    parent_consent_given_at = models.DateTimeField(null=True, blank=True)
    parent_consent_by = models.CharField(max_length=200, blank=True)

    # Lifecycle timestamps
    confirmed_at = models.DateTimeField(null=True, blank=True)
    paid_at = models.DateTimeField(null=True, blank=True)
    checked_in_at = models.DateTimeField(null=True, blank=True)
    checked_in_by = models.ForeignKey(
        settings.AUTH_USER_MODEL,
        on_delete=models.SET_NULL,
        null=True,
        blank=True,
        related_name="dive_check_ins",
    )
    completed_at = models.DateTimeField(null=True, blank=True)

    # Cancellation and refunds
    cancelled_at = models.DateTimeField(null=True, blank=True)
    cancelled_by = models.ForeignKey(
        settings.AUTH_USER_MODEL,
        on_delete=models.SET_NULL,
        null=True,
        blank=True,
        related_name="dive_bookings_cancelled",
    )
    cancellation_reason = models.TextField(blank=True)
    refund_amount = models.DecimalField(
        **MONEY,
        null=True,
        blank=True,
        help_text="Refund computed by the booking core at cancellation",
    )
    amount_refunded = models.DecimalField(
        **MONEY,
        default=Decimal("0"),
        help_text="Money actually returned, as reported by the payment system",
    )

    class Meta(BaseModel.Meta):
        constraints = [
            # Cancelled and refunded bookings are excluded, allowing rebooking
            models.UniqueConstraint(
                fields=["trip", "diver"],
                name="bookings_booking_one_active_per_trip",
                condition=Q(
                    status__in=[
                        "pending",
                        "confirmed",
                        "paid",
                        "checked_in",
                        "completed",
                        "partially_refunded",
                    ]
                ),
            ),
            models.CheckConstraint(
                condition=Q(number_of_divers__gte=1),
                name="bookings_booking_number_of_divers_gte_one",
            ),
        ]
        indexes = [
            models.Index(fields=["trip", "status"], name="bookings_booking_trip_status"),
            models.Index(fields=["diver", "status"], name="bookings_booking_diver_status"),
        ]

    def __str__(self):
        return self.booking_number

    @property
    def is_terminal(self) -> bool:
        return self.status in self.TERMINAL_STATUSES

    @property
    def is_active(self) -> bool:
        return self.status in self.ACTIVE_STATUSES

    @property
    def price_breakdown(self) -> dict:
        """Locked price components as Decimals."""
        return {
            "base_price": self.base_price,
            "equipment_rental": self.equipment_rental,
            "conservation_fee": self.conservation_fee,
            "insurance_fee": self.insurance_fee,
            "platform_fee": self.platform_fee,
            "vat_amount": self.vat_amount,
            "discount_amount": self.discount_amount,
            "total_amount": self.total_amount,
        }
