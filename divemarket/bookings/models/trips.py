"""Trip model.

A Trip is a scheduled, finite-capacity dive outing run by a diving center.
current_participants is only ever changed by the capacity ledger through
conditional UPDATE statements; never assign it from Python.
"""

from django.db import models
from django.db.models import F, Q

from .base import BaseModel


class Trip(BaseModel):
    """A bookable dive trip with capacity, eligibility policy and pricing."""

    STATUS_DRAFT = "draft"
    STATUS_PUBLISHED = "published"
    STATUS_FULL = "full"
    STATUS_IN_PROGRESS = "in_progress"
    STATUS_COMPLETED = "completed"
    STATUS_CANCELLED = "cancelled"

    STATUS_CHOICES = [
        (STATUS_DRAFT, "Draft"),
        (STATUS_PUBLISHED, "Published"),
        (STATUS_FULL, "Full"),
        (STATUS_IN_PROGRESS, "In Progress"),
        (STATUS_COMPLETED, "Completed"),
        (STATUS_CANCELLED, "Cancelled"),
    ]

    # Statuses in which bookings and waiting list joins are accepted
    BOOKABLE_STATUSES = (STATUS_PUBLISHED, STATUS_FULL)
    TERMINAL_STATUSES = (STATUS_COMPLETED, STATUS_CANCELLED)

    center = models.ForeignKey(
        "bookings.DivingCenter",
        on_delete=models.PROTECT,
        related_name="trips",
    )
    site = models.ForeignKey(
        "bookings.DiveSite",
        on_delete=models.SET_NULL,
        null=True,
        blank=True,
        related_name="trips",
    )
    title = models.CharField(max_length=200)

    departure_time = models.DateTimeField()
    return_time = models.DateTimeField(null=True, blank=True)

    # Capacity
    max_participants = models.PositiveIntegerField()
    current_participants = models.PositiveIntegerField(default=0)

    status = models.CharField(
        max_length=20,
        choices=STATUS_CHOICES,
        default=STATUS_DRAFT,
    )

    # Eligibility policy
    min_age = models.PositiveSmallIntegerField(default=10)
    max_age = models.PositiveSmallIntegerField(null=True, blank=True)
    min_certification_level = models.CharField(max_length=100, blank=True)
    min_logged_dives = models.PositiveIntegerField(default=0)

    # Pricing
    price_per_person = models.DecimalField(max_digits=10, decimal_places=2)
    equipment_rental_price = models.DecimalField(
        max_digits=10,
        decimal_places=2,
        null=True,
        blank=True,
        help_text="Per-diver rental price (null = no rental offered)",
    )
    conservation_fee_included = models.BooleanField(default=False)

    # Cancellation
    cancellation_deadline_hours = models.PositiveIntegerField(default=24)

    published_at = models.DateTimeField(null=True, blank=True)
    cancelled_at = models.DateTimeField(null=True, blank=True)
    cancellation_reason = models.TextField(blank=True)

    class Meta(BaseModel.Meta):
        ordering = ["departure_time"]
        constraints = [
            models.CheckConstraint(
                condition=Q(max_participants__gt=0),
                name="bookings_trip_max_participants_gt_zero",
            ),
            models.CheckConstraint(
                condition=Q(current_participants__lte=F("max_participants")),
                name="bookings_trip_current_lte_max",
            ),
            models.CheckConstraint(
                condition=Q(price_per_person__gte=0),
                name="bookings_trip_price_gte_zero",
            ),
        ]
        indexes = [
            models.Index(fields=["status", "departure_time"], name="bookings_trip_status_dep"),
        ]

    def __str__(self):
        return f"{self.title} ({self.departure_time:%Y-%m-%d %H:%M})"

    @property
    def is_bookable(self) -> bool:
        return self.status in self.BOOKABLE_STATUSES
