"""Diving center model."""

from django.conf import settings
from django.db import models

from .base import BaseModel


class DivingCenter(BaseModel):
    """A diving center that runs trips on the marketplace.

    The owner and staff members may manage the center's trips and
    the bookings made on them.
    """

    name = models.CharField(max_length=200)
    owner = models.ForeignKey(
        settings.AUTH_USER_MODEL,
        on_delete=models.PROTECT,
        related_name="owned_centers",
    )
    staff = models.ManyToManyField(
        settings.AUTH_USER_MODEL,
        blank=True,
        related_name="staffed_centers",
    )

    class Meta(BaseModel.Meta):
        ordering = ["name"]

    def __str__(self):
        return self.name

    def is_member(self, user) -> bool:
        """Check whether user is the owner or a staff member."""
        if user is None or not getattr(user, "pk", None):
            return False
        if self.owner_id == user.pk:
            return True
        return self.staff.filter(pk=user.pk).exists()
