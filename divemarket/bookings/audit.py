"""Audit logging adapter for the booking core.

Thin adapter over divemarket.audit_log for domain-specific audit events.
All domain code must call this adapter, not divemarket.audit_log directly.
This keeps action strings stable and metadata consistent.

Usage:
    from divemarket.bookings.audit import Actions, log_booking_event

    log_booking_event(
        action=Actions.BOOKING_CREATED,
        booking=booking,
        actor=user,
        data={"price_breakdown": breakdown.as_dict()},
    )
"""

from divemarket.audit_log import log as audit_log


# =============================================================================
# Stable Action Constants - PUBLIC CONTRACT
# =============================================================================
# DO NOT RENAME - changing them requires migration of existing audit data.


class Actions:
    """Stable audit action constants for booking core operations."""

    # -------------------------------------------------------------------------
    # Booking Actions
    # -------------------------------------------------------------------------
    BOOKING_CREATED = "booking_created"
    BOOKING_CONFIRMED = "booking_confirmed"
    BOOKING_PAID = "booking_paid"
    BOOKING_UPDATED = "booking_updated"
    BOOKING_CANCELLED = "booking_cancelled"
    BOOKING_COMPLETED = "booking_completed"
    BOOKING_REFUNDED = "booking_refunded"
    BOOKING_PARTIALLY_REFUNDED = "booking_partially_refunded"
    REFUND_REQUESTED = "refund_requested"
    DIVER_CHECKED_IN = "diver_checked_in"
    WAIVER_SIGNED = "waiver_signed"
    PARENT_CONSENT_GIVEN = "parent_consent_given"

    # -------------------------------------------------------------------------
    # Waiting List Actions
    # -------------------------------------------------------------------------
    WAITLIST_JOINED = "waitlist_joined"
    WAITLIST_LEFT = "waitlist_left"
    WAITLIST_PROMOTED = "waitlist_promoted"
    WAITLIST_EXPIRED = "waitlist_expired"
    WAITLIST_CLEARED = "waitlist_cleared"

    # -------------------------------------------------------------------------
    # Trip Actions
    # -------------------------------------------------------------------------
    TRIP_PUBLISHED = "trip_published"
    TRIP_CANCELLED = "trip_cancelled"
    TRIP_STARTED = "trip_started"
    TRIP_COMPLETED = "trip_completed"


# =============================================================================
# Specialized Logging Functions
# =============================================================================


def log_booking_event(
    action: str,
    booking,
    actor=None,
    data: dict | None = None,
    changes: dict | None = None,
):
    """Log an audit event for a booking operation.

    Args:
        action: One of Actions.BOOKING_* or related constants
        booking: Booking instance
        actor: Django User who performed the action
        data: Optional additional context
        changes: Optional field changes

    Returns:
        AuditLog instance
    """
    metadata = _build_booking_metadata(booking, data)

    return audit_log(
        action=action,
        obj=booking,
        actor=actor,
        changes=changes or {},
        metadata=metadata,
        is_system=actor is None,
    )


def log_trip_event(
    action: str,
    trip,
    actor=None,
    data: dict | None = None,
    changes: dict | None = None,
):
    """Log an audit event for a trip operation."""
    metadata = _build_trip_metadata(trip, data)

    return audit_log(
        action=action,
        obj=trip,
        actor=actor,
        changes=changes or {},
        metadata=metadata,
        is_system=actor is None,
    )


def log_waitlist_event(
    action: str,
    entry,
    actor=None,
    data: dict | None = None,
):
    """Log an audit event for a waiting list entry.

    The entry may already be deleted (leave, expiry), so the target is
    recorded by label and id rather than by instance.
    """
    metadata = {
        "trip_id": str(entry.trip_id),
        "diver_id": str(entry.diver_id),
        "position": entry.position,
    }
    if entry.expires_at is not None:
        metadata["expires_at"] = entry.expires_at.isoformat()
    if data:
        metadata.update(data)

    return audit_log(
        action=action,
        obj_label="bookings.waitinglistentry",
        obj_id=entry.pk,
        obj_repr=str(entry),
        actor=actor,
        metadata=metadata,
        is_system=actor is None,
    )


# =============================================================================
# Metadata Builders
# =============================================================================


def _build_booking_metadata(booking, data: dict | None = None) -> dict:
    metadata = {
        "booking_number": booking.booking_number,
        "trip_id": str(booking.trip_id),
        "diver_id": str(booking.diver_id),
        "status": booking.status,
        "number_of_divers": booking.number_of_divers,
        "total_amount": str(booking.total_amount),
        "currency": booking.currency,
    }
    if data:
        metadata.update(data)
    return metadata


def _build_trip_metadata(trip, data: dict | None = None) -> dict:
    metadata = {
        "center_id": str(trip.center_id),
        "status": trip.status,
        "departure_time": trip.departure_time.isoformat() if trip.departure_time else None,
        "max_participants": trip.max_participants,
    }
    if data:
        metadata.update(data)
    return metadata
