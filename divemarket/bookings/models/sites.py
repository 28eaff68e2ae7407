"""Dive site model.

A DiveSite carries the conservation zone assigned by the external
conservation authority. The per-diver conservation fee is either stored
explicitly on the site or derived from its zone.
"""

from decimal import Decimal

from django.db import models
from django.db.models import Q

from .base import BaseModel


class DiveSite(BaseModel):
    """A dive site location with conservation fee metadata."""

    ZONE_0 = "zone_0"
    ZONE_1 = "zone_1"
    ZONE_2 = "zone_2"
    ZONE_3 = "zone_3"

    ZONE_CHOICES = [
        (ZONE_0, "Zone 0 (no fee)"),
        (ZONE_1, "Zone 1 (strict protection)"),
        (ZONE_2, "Zone 2 (managed use)"),
        (ZONE_3, "Zone 3 (general use)"),
    ]

    # Per-diver fee by zone when no explicit fee is stored
    ZONE_FEES = {
        ZONE_0: Decimal("0"),
        ZONE_1: Decimal("50"),
        ZONE_2: Decimal("35"),
        ZONE_3: Decimal("20"),
    }

    name = models.CharField(max_length=200)
    site_code = models.CharField(
        max_length=50,
        unique=True,
        help_text="Site code issued by the conservation authority",
    )
    conservation_zone = models.CharField(
        max_length=10,
        choices=ZONE_CHOICES,
        default=ZONE_2,
    )
    conservation_fee = models.DecimalField(
        max_digits=10,
        decimal_places=2,
        null=True,
        blank=True,
        help_text="Explicit per-diver fee (overrides the zone fee)",
    )

    class Meta(BaseModel.Meta):
        ordering = ["name"]
        constraints = [
            models.CheckConstraint(
                condition=Q(conservation_fee__isnull=True) | Q(conservation_fee__gte=0),
                name="bookings_site_conservation_fee_gte_zero",
            ),
        ]

    def __str__(self):
        return f"{self.name} ({self.site_code})"

    @property
    def fee_per_diver(self) -> Decimal | None:
        """Explicit fee if stored, else the zone fee, else None."""
        if self.conservation_fee is not None:
            return self.conservation_fee
        return self.ZONE_FEES.get(self.conservation_zone)
