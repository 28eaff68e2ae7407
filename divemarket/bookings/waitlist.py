"""Waiting list manager.

Each full trip keeps a FIFO queue of divers. Positions always form the
dense sequence 1..N: joins append at the end and every removal renumbers
the remaining entries. All mutations run while holding the trip row lock
(capacity.lock_trip), the same lock booking and cancellation take.

Promotion offers a freed seat to the head of the queue for a fixed window
(BOOKINGS_WAITLIST_PROMOTION_HOURS). It does not reserve the seat. Expiry
is evaluated lazily, on the next promotion attempt or by the periodic
sweep_waitlist_promotions command.
"""

import logging
from datetime import datetime, timedelta

from django.db import IntegrityError, transaction
from django.db.models import Max
from django.utils import timezone

from .audit import Actions, log_trip_event, log_waitlist_event
from .capacity import available_seats, lock_trip
from .conf import get_setting
from .exceptions import (
    AlreadyWaitlistedError,
    DuplicateBookingError,
    NotFoundError,
    TripNotBookable,
)
from .models import Booking, Trip, WaitingListEntry
from .notifications import WAITLIST_SPOT_AVAILABLE, dispatch_notification


logger = logging.getLogger(__name__)


@transaction.atomic
def join_waitlist(*, trip_id, diver_id, actor=None) -> WaitingListEntry:
    """Append a diver to a trip's waiting list.

    Args:
        trip_id: Trip primary key
        diver_id: Diver (user) primary key
        actor: User performing the action (defaults to none/system)

    Returns:
        The new WaitingListEntry

    Raises:
        NotFoundError: If the trip does not exist
        TripNotBookable: If the trip is not published or full
        AlreadyWaitlistedError: If the diver is already on the list
        DuplicateBookingError: If the diver already holds an active booking
    """
    trip = lock_trip(trip_id)
    return add_to_waitlist(trip, diver_id, actor=actor)


def add_to_waitlist(trip: Trip, diver_id, *, actor=None) -> WaitingListEntry:
    """Append a diver to the waiting list of a trip the caller has locked."""
    if not trip.is_bookable:
        raise TripNotBookable(f"Trip is {trip.status} and does not accept a waiting list")

    if WaitingListEntry.objects.filter(trip=trip, diver_id=diver_id).exists():
        raise AlreadyWaitlistedError("You are already on the waiting list for this trip")

    if Booking.objects.filter(
        trip=trip, diver_id=diver_id, status__in=Booking.ACTIVE_STATUSES
    ).exists():
        raise DuplicateBookingError("You already have an active booking for this trip")

    last_position = (
        WaitingListEntry.objects.filter(trip=trip).aggregate(last=Max("position"))["last"] or 0
    )

    try:
        with transaction.atomic():
            entry = WaitingListEntry.objects.create(
                trip=trip,
                diver_id=diver_id,
                position=last_position + 1,
            )
    except IntegrityError as e:
        raise AlreadyWaitlistedError(
            "You are already on the waiting list for this trip"
        ) from e

    log_waitlist_event(Actions.WAITLIST_JOINED, entry, actor=actor)
    logger.info("Diver %s joined waiting list of trip %s at #%s", diver_id, trip.pk, entry.position)
    return entry


@transaction.atomic
def leave_waitlist(*, trip_id, diver_id, actor=None, notification_sender=None) -> None:
    """Remove a diver from a trip's waiting list and renumber the rest.

    If the departing diver held the head of the queue while a seat is
    free, the next diver is offered the seat.

    Raises:
        NotFoundError: If the trip or the diver's entry does not exist
    """
    trip = lock_trip(trip_id)
    entry = WaitingListEntry.objects.filter(trip=trip, diver_id=diver_id).first()
    if entry is None:
        raise NotFoundError("You are not on the waiting list for this trip")

    _delete_entry(entry, Actions.WAITLIST_LEFT, actor=actor)
    _compact_positions(trip.pk)

    promote_next(trip_id=trip.pk, notification_sender=notification_sender)


def remove_diver_entry(trip: Trip, diver_id) -> bool:
    """Drop a diver's entry after they booked the trip.

    The caller holds the trip lock. Returns True if an entry was removed.
    """
    entry = WaitingListEntry.objects.filter(trip=trip, diver_id=diver_id).first()
    if entry is None:
        return False
    _delete_entry(entry, Actions.WAITLIST_LEFT, data={"reason": "booked"})
    _compact_positions(trip.pk)
    return True


def clear_waitlist(trip: Trip, *, actor=None) -> list:
    """Delete every entry of a trip. Returns the affected diver ids."""
    diver_ids = list(
        WaitingListEntry.objects.filter(trip=trip)
        .order_by("position")
        .values_list("diver_id", flat=True)
    )
    deleted, _ = WaitingListEntry.objects.filter(trip=trip).delete()
    if deleted:
        log_trip_event(
            Actions.WAITLIST_CLEARED,
            trip,
            actor=actor,
            data={"removed_divers": [str(pk) for pk in diver_ids]},
        )
    return diver_ids


@transaction.atomic
def promote_next(
    *,
    trip_id,
    now: datetime | None = None,
    notification_sender=None,
) -> WaitingListEntry | None:
    """Offer a free seat to the head of a trip's waiting list.

    Steps:
        1. Expired offers at the head are removed (positions compacted).
        2. If the trip is open with a free seat and the head entry has not
           been offered a seat yet, it is stamped with notified_at and
           expires_at and a notification is scheduled for after commit.

    An offer that is still open is left as is; its window is not extended.

    Args:
        trip_id: Trip primary key
        now: Reference time (defaults to timezone.now())
        notification_sender: NotificationSender (defaults to the configured one)

    Returns:
        The promoted entry, or None if nobody was promoted

    Raises:
        NotFoundError: If the trip does not exist
    """
    now = now or timezone.now()
    trip = lock_trip(trip_id)

    head = _expire_lapsed_offers(trip, now)

    if head is None or not trip.is_bookable or available_seats(trip) < 1:
        return None

    if head.notified_at is not None:
        return None

    head.notified_at = now
    head.expires_at = now + timedelta(hours=get_setting("WAITLIST_PROMOTION_HOURS"))
    head.save(update_fields=["notified_at", "expires_at"])

    log_waitlist_event(Actions.WAITLIST_PROMOTED, head)
    dispatch_notification(
        head.diver_id,
        WAITLIST_SPOT_AVAILABLE,
        {
            "trip_id": str(trip.pk),
            "trip_title": trip.title,
            "departure_time": trip.departure_time.isoformat(),
            "expires_at": head.expires_at.isoformat(),
        },
        sender=notification_sender,
    )
    logger.info(
        "Promoted diver %s on trip %s, offer expires %s",
        head.diver_id,
        trip.pk,
        head.expires_at,
    )
    return head


def sweep_expired_promotions(*, now: datetime | None = None, notification_sender=None) -> list:
    """Promote the next diver on every trip whose head offer has lapsed.

    Intended to be run periodically by an external scheduler.

    Returns:
        List of newly promoted entries
    """
    now = now or timezone.now()
    trip_ids = trips_with_lapsed_offers(now)

    promoted = []
    for trip_id in trip_ids:
        entry = promote_next(trip_id=trip_id, now=now, notification_sender=notification_sender)
        if entry is not None:
            promoted.append(entry)

    logger.info("Waiting list sweep: %s trip(s) checked, %s promoted", len(trip_ids), len(promoted))
    return promoted


def trips_with_lapsed_offers(now: datetime | None = None) -> list:
    now = now or timezone.now()
    return list(
        WaitingListEntry.objects.filter(expires_at__lte=now)
        .values_list("trip_id", flat=True)
        .distinct()
    )


def _head(trip_id) -> WaitingListEntry | None:
    return WaitingListEntry.objects.filter(trip_id=trip_id).order_by("position").first()


def _expire_lapsed_offers(trip: Trip, now: datetime) -> WaitingListEntry | None:
    """Remove head entries whose offer expired. Returns the new head."""
    head = _head(trip.pk)
    expired_any = False
    while head is not None and head.expires_at is not None and head.expires_at <= now:
        _delete_entry(head, Actions.WAITLIST_EXPIRED)
        expired_any = True
        head = _head(trip.pk)

    if expired_any:
        _compact_positions(trip.pk)
        head = _head(trip.pk)
    return head


def _delete_entry(entry: WaitingListEntry, action: str, *, actor=None, data=None) -> None:
    log_waitlist_event(action, entry, actor=actor, data=data)
    WaitingListEntry.objects.filter(pk=entry.pk).delete()


def _compact_positions(trip_id) -> None:
    """Renumber a trip's entries 1..N keeping their order.

    Entries are moved in ascending order, so each target position is
    already free when the row is updated.
    """
    entries = WaitingListEntry.objects.filter(trip_id=trip_id).order_by("position")
    for expected, (pk, position) in enumerate(entries.values_list("pk", "position"), start=1):
        if position != expected:
            WaitingListEntry.objects.filter(pk=pk).update(position=expected)
