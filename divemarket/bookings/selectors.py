"""Selectors for the booking core.

Read-only queries. Lookups by id raise NotFoundError instead of the
model's DoesNotExist.
"""

from dataclasses import dataclass

from django.core.exceptions import ValidationError as DjangoValidationError

from .exceptions import NotFoundError, ValidationError
from .models import Booking, Trip, WaitingListEntry


MAX_PAGE_SIZE = 100


@dataclass(frozen=True)
class Page:
    """One page of a paginated listing."""

    items: list
    total: int
    page: int
    limit: int

    @property
    def pages(self) -> int:
        return (self.total + self.limit - 1) // self.limit if self.total else 0


def get_trip(trip_id) -> Trip:
    """Get a trip by id.

    Raises:
        NotFoundError: If no such trip exists
    """
    try:
        return Trip.objects.select_related("center", "site").get(pk=trip_id)
    except (Trip.DoesNotExist, DjangoValidationError, ValueError):
        raise NotFoundError(f"Trip {trip_id} not found") from None


def get_booking(booking_id) -> Booking:
    """Get a booking by id, with its trip and center.

    Raises:
        NotFoundError: If no such booking exists
    """
    try:
        return Booking.objects.select_related("trip", "trip__center", "diver").get(
            pk=booking_id
        )
    except (Booking.DoesNotExist, DjangoValidationError, ValueError):
        raise NotFoundError(f"Booking {booking_id} not found") from None


def _paginate(qs, page: int, limit: int) -> Page:
    if page < 1:
        raise ValidationError("Page must be at least 1", errors={"page": ["Must be at least 1"]})
    if limit < 1:
        raise ValidationError("Limit must be at least 1", errors={"limit": ["Must be at least 1"]})
    limit = min(limit, MAX_PAGE_SIZE)
    offset = (page - 1) * limit
    return Page(
        items=list(qs[offset : offset + limit]),
        total=qs.count(),
        page=page,
        limit=limit,
    )


def list_trip_bookings(trip_id, *, status: str | None = None, page: int = 1, limit: int = 20) -> Page:
    """Bookings on a trip, newest first.

    Args:
        trip_id: Trip primary key
        status: Only bookings in this status (optional)
        page: 1-based page number
        limit: Page size, capped at 100

    Raises:
        NotFoundError: If the trip does not exist
    """
    trip = get_trip(trip_id)
    qs = Booking.objects.filter(trip=trip).select_related("diver").order_by("-created_at")
    if status:
        qs = qs.filter(status=status)
    return _paginate(qs, page, limit)


def list_diver_bookings(diver_id, *, status: str | None = None, page: int = 1, limit: int = 20) -> Page:
    """A diver's bookings, newest first."""
    qs = (
        Booking.objects.filter(diver_id=diver_id)
        .select_related("trip", "trip__center", "trip__site")
        .order_by("-created_at")
    )
    if status:
        qs = qs.filter(status=status)
    return _paginate(qs, page, limit)


def get_waitlist(trip_id) -> list[WaitingListEntry]:
    """Waiting list of a trip in position order.

    Raises:
        NotFoundError: If the trip does not exist
    """
    trip = get_trip(trip_id)
    return list(
        WaitingListEntry.objects.filter(trip=trip).select_related("diver").order_by("position")
    )


def get_waitlist_entry(trip_id, diver_id) -> WaitingListEntry | None:
    return WaitingListEntry.objects.filter(trip_id=trip_id, diver_id=diver_id).first()
