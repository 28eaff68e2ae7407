"""Diver profile and certification models."""

from django.conf import settings
from django.db import models

from .base import BaseModel


class DiverProfile(BaseModel):
    """Diving attributes of a marketplace user.

    A user without a profile may still book trips that have no dive
    experience or certification requirement.
    """

    user = models.OneToOneField(
        settings.AUTH_USER_MODEL,
        on_delete=models.CASCADE,
        related_name="diver_profile",
    )
    date_of_birth = models.DateField(null=True, blank=True)
    total_logged_dives = models.PositiveIntegerField(default=0)

    def __str__(self):
        return f"Diver profile of {self.user}"


class DiverCertification(BaseModel):
    """A certification card held by a diver.

    Only certifications with verification_status == "verified" satisfy a
    trip's certification requirement. How verification happens is outside
    the booking core.
    """

    STATUS_PENDING = "pending"
    STATUS_VERIFIED = "verified"
    STATUS_REJECTED = "rejected"

    STATUS_CHOICES = [
        (STATUS_PENDING, "Pending"),
        (STATUS_VERIFIED, "Verified"),
        (STATUS_REJECTED, "Rejected"),
    ]

    diver = models.ForeignKey(
        DiverProfile,
        on_delete=models.CASCADE,
        related_name="certifications",
    )
    agency = models.CharField(max_length=50, blank=True)
    level = models.CharField(max_length=100)
    certification_number = models.CharField(max_length=100, blank=True)
    verification_status = models.CharField(
        max_length=20,
        choices=STATUS_CHOICES,
        default=STATUS_PENDING,
    )
    verified_at = models.DateTimeField(null=True, blank=True)

    class Meta(BaseModel.Meta):
        indexes = [
            models.Index(
                fields=["diver", "verification_status"],
                name="bookings_cert_diver_status",
            ),
        ]

    def __str__(self):
        return f"{self.agency} {self.level}".strip()
