"""Waiting list model.

Positions per trip always form the dense sequence 1..N. Entries are only
created, removed and renumbered by divemarket.bookings.waitlist while the
trip row is locked.
"""

from django.conf import settings
from django.db import models


class WaitingListEntry(models.Model):
    """A diver queued for a seat on a full trip."""

    trip = models.ForeignKey(
        "bookings.Trip",
        on_delete=models.CASCADE,
        related_name="waiting_list",
    )
    diver = models.ForeignKey(
        settings.AUTH_USER_MODEL,
        on_delete=models.CASCADE,
        related_name="waiting_list_entries",
    )
    position = models.PositiveIntegerField()
    notified_at = models.DateTimeField(null=True, blank=True)
    expires_at = models.DateTimeField(null=True, blank=True)
    created_at = models.DateTimeField(auto_now_add=True)

    class Meta:
        ordering = ["trip", "position"]
        verbose_name_plural = "Waiting list entries"
        constraints = [
            models.UniqueConstraint(
                fields=["trip", "diver"],
                name="bookings_waitlist_one_per_diver",
            ),
            models.UniqueConstraint(
                fields=["trip", "position"],
                name="bookings_waitlist_unique_position",
            ),
        ]

    def __str__(self):
        return f"#{self.position} on {self.trip_id}"
