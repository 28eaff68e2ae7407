"""Capacity ledger for trips.

Every change to Trip.current_participants is a single conditional UPDATE,
so two concurrent reservations can never both observe the same free seat:

    try_reserve: UPDATE ... SET current = current + n
                 WHERE current + n <= max AND status IN (published, full)
    release:     UPDATE ... SET current = GREATEST(current - n, 0)

recompute_status() flips published <-> full to match the counter. Trips in
any other status are left alone.
"""

import logging

from django.core.exceptions import ValidationError as DjangoValidationError
from django.db import models, transaction
from django.db.models import Case, F, Value, When
from django.db.models.functions import Greatest
from django.utils import timezone

from .exceptions import NotFoundError, ValidationError
from .models import Trip


logger = logging.getLogger(__name__)


def _validate_seats(seats) -> None:
    if isinstance(seats, bool) or not isinstance(seats, int) or seats < 1:
        raise ValidationError(
            "Seat count must be a positive whole number",
            errors={"seats": ["Must be at least 1"]},
        )


def lock_trip(trip_id) -> Trip:
    """Lock a trip row for the rest of the current transaction.

    Booking, waiting list and trip lifecycle writes for one trip all take
    this lock first, which serializes them per trip.

    Raises:
        NotFoundError: If the trip does not exist
    """
    try:
        return Trip.objects.select_for_update().get(pk=trip_id)
    except (Trip.DoesNotExist, DjangoValidationError, ValueError):
        raise NotFoundError(f"Trip {trip_id} not found") from None


@transaction.atomic
def try_reserve(trip_id, seats: int) -> bool:
    """Atomically reserve seats on a trip.

    Args:
        trip_id: Trip primary key
        seats: Number of seats to reserve (>= 1)

    Returns:
        True if the seats were reserved, False if the trip lacks capacity
        or is not open for bookings

    Raises:
        ValidationError: If seats is not a positive integer
    """
    _validate_seats(seats)

    updated = Trip.objects.filter(
        pk=trip_id,
        status__in=Trip.BOOKABLE_STATUSES,
        current_participants__lte=F("max_participants") - seats,
    ).update(
        current_participants=F("current_participants") + seats,
        updated_at=timezone.now(),
    )

    if not updated:
        logger.debug("Reservation of %s seat(s) on trip %s rejected", seats, trip_id)
        return False

    recompute_status(trip_id)
    logger.info("Reserved %s seat(s) on trip %s", seats, trip_id)
    return True


@transaction.atomic
def release(trip_id, seats: int) -> None:
    """Release seats on a trip. The counter never drops below zero.

    Raises:
        ValidationError: If seats is not a positive integer
        NotFoundError: If the trip does not exist
    """
    _validate_seats(seats)

    updated = Trip.objects.filter(pk=trip_id).update(
        current_participants=Greatest(F("current_participants") - seats, Value(0)),
        updated_at=timezone.now(),
    )
    if not updated:
        raise NotFoundError(f"Trip {trip_id} not found")

    recompute_status(trip_id)
    logger.info("Released %s seat(s) on trip %s", seats, trip_id)


def recompute_status(trip_id) -> None:
    """Set a published/full trip to full or published from its counter."""
    Trip.objects.filter(pk=trip_id, status__in=Trip.BOOKABLE_STATUSES).update(
        status=Case(
            When(
                current_participants__gte=F("max_participants"),
                then=Value(Trip.STATUS_FULL),
            ),
            default=Value(Trip.STATUS_PUBLISHED),
            output_field=models.CharField(),
        )
    )


def available_seats(trip) -> int:
    """Free seats on a trip instance, as last loaded."""
    return max(trip.max_participants - trip.current_participants, 0)
