"""Services for the booking core.

Business logic for booking, cancellation, check-in and the trip lifecycle.
All write operations are atomic transactions. Operations that touch trip
capacity or the waiting list lock the trip row first (capacity.lock_trip)
and the booking row second.
"""

import logging
import secrets
from dataclasses import dataclass, field
from datetime import date, datetime
from decimal import Decimal

from django.core.exceptions import ValidationError as DjangoValidationError
from django.db import IntegrityError, transaction
from django.utils import timezone

from .audit import Actions, log_booking_event, log_trip_event
from .cancellation_policy import (
    RefundDecision,
    compute_operator_refund,
    compute_refund_decision,
)
from .capacity import lock_trip, release, try_reserve
from .conf import (
    get_authorization_policy,
    get_diver_profile_provider,
    get_payment_outcome_sink,
)
from .eligibility_service import evaluate_eligibility, is_minor
from .exceptions import (
    DuplicateBookingError,
    ForbiddenError,
    InvalidStatusTransition,
    NotFoundError,
    TripNotBookable,
    ValidationError,
)
from .models import Booking, Trip, WaitingListEntry
from .notifications import TRIP_CANCELLED, dispatch_notification
from .pricing.services import quote_trip
from .validators import (
    BookingRequest,
    BookingUpdate,
    validate_booking_request,
    validate_booking_update,
    validate_cancellation_reason,
)
from .waitlist import add_to_waitlist, clear_waitlist, promote_next, remove_diver_entry


logger = logging.getLogger(__name__)


ONE_ACTIVE_BOOKING_CONSTRAINT = "bookings_booking_one_active_per_trip"


# =============================================================================
# Results
# =============================================================================


@dataclass(frozen=True)
class CreateBookingResult:
    """Outcome of a booking attempt.

    Exactly one of three outcomes:
        booked: booking holds the new pending Booking
        waitlisted: the trip was full; waitlist_entry holds the queue entry
        ineligible: the diver failed eligibility; reasons lists why

    Attributes:
        outcome: "booked", "waitlisted" or "ineligible"
        booking: The created Booking (booked only)
        waitlist_entry: The WaitingListEntry (waitlisted only)
        reasons: Eligibility failure reasons (ineligible only)
    """

    BOOKED = "booked"
    WAITLISTED = "waitlisted"
    INELIGIBLE = "ineligible"

    outcome: str
    booking: Booking | None = None
    waitlist_entry: WaitingListEntry | None = None
    reasons: tuple[str, ...] = field(default_factory=tuple)

    @property
    def booked(self) -> bool:
        return self.outcome == self.BOOKED

    @property
    def waitlisted(self) -> bool:
        return self.outcome == self.WAITLISTED

    @property
    def eligible(self) -> bool:
        return self.outcome != self.INELIGIBLE

    @property
    def position(self) -> int | None:
        return self.waitlist_entry.position if self.waitlist_entry else None


@dataclass
class CancellationResult:
    """Result of a booking cancellation.

    Attributes:
        booking: The cancelled Booking instance
        refund_decision: The computed RefundDecision
    """

    booking: Booking
    refund_decision: RefundDecision

    @property
    def refund_amount(self) -> Decimal:
        return self.refund_decision.refund_amount


# =============================================================================
# Helpers
# =============================================================================


def generate_booking_number(now: datetime | None = None) -> str:
    """Booking reference in the form BK<YYMMDD>-<6 uppercase hex digits>."""
    now = timezone.localtime(now or timezone.now())
    return f"BK{now:%y%m%d}-{secrets.token_hex(3).upper()}"


def _get_constraint_name(exc: IntegrityError) -> str | None:
    """Extract PostgreSQL constraint name from IntegrityError.

    Returns constraint name if available, None otherwise.
    """
    if exc.__cause__ and hasattr(exc.__cause__, "diag"):
        return exc.__cause__.diag.constraint_name
    return None


def _is_duplicate_active_booking(exc: IntegrityError) -> bool:
    constraint = _get_constraint_name(exc)
    if constraint is not None:
        return constraint == ONE_ACTIVE_BOOKING_CONSTRAINT
    # SQLite reports the columns instead of the constraint name
    return "bookings_booking.trip_id" in str(exc)


def _apply_tracked_update(obj, field: str, new_value, changes: dict) -> None:
    """Apply a field update and track the change if value differs.

    Args:
        obj: Model instance to update
        field: Field name to update
        new_value: New value (None means no change requested)
        changes: Dict to record changes for audit log
    """
    if new_value is None:
        return

    old_value = getattr(obj, field)
    if new_value == old_value:
        return

    changes[field] = {"old": old_value, "new": new_value}
    setattr(obj, field, new_value)


def _authorize(decision) -> None:
    if not decision.allowed:
        raise ForbiddenError(decision.reason or "You are not allowed to do this")


def _lock_booking(booking_id) -> Booking:
    try:
        return Booking.objects.select_for_update().get(pk=booking_id)
    except (Booking.DoesNotExist, DjangoValidationError, ValueError):
        raise NotFoundError(f"Booking {booking_id} not found") from None


def _trip_id_of(booking_id):
    try:
        trip_id = Booking.objects.filter(pk=booking_id).values_list("trip_id", flat=True).first()
    except (DjangoValidationError, ValueError):
        trip_id = None
    if trip_id is None:
        raise NotFoundError(f"Booking {booking_id} not found")
    return trip_id


def _require_status(booking: Booking, allowed, action: str) -> None:
    if booking.status not in allowed:
        raise InvalidStatusTransition(
            f"Cannot {action} a booking that is {booking.get_status_display().lower()}"
        )


def _require_not_terminal(booking: Booking, action: str) -> None:
    if booking.is_terminal:
        raise InvalidStatusTransition(
            f"Cannot {action} a booking that is {booking.get_status_display().lower()}"
        )


def _actor_or_none(actor):
    return actor if getattr(actor, "pk", None) else None


# =============================================================================
# Booking Lifecycle
# =============================================================================


@transaction.atomic
def create_booking(
    *,
    trip_id,
    diver_id,
    request: BookingRequest | None = None,
    booked_by=None,
    profile_provider=None,
    site_fee_provider=None,
    today: date | None = None,
) -> CreateBookingResult:
    """Book seats on a trip for a diver.

    Order of checks:
        1. request validation
        2. trip must be published or full
        3. eligibility (ineligible -> result, not an error)
        4. no other active booking for (trip, diver)
        5. atomic seat reservation (no capacity -> waiting list, not an error)
        6. pricing and persistence of a pending booking

    Args:
        trip_id: Trip primary key
        diver_id: Diver (user) primary key
        request: Booking details (defaults to one diver, no equipment)
        booked_by: User making the booking (defaults to the diver)
        profile_provider: DiverProfileProvider (defaults to the configured one)
        site_fee_provider: SiteFeeProvider (defaults to the configured one)
        today: Reference day for age rules (defaults to the local date)

    Returns:
        CreateBookingResult

    Raises:
        ValidationError: If the request is malformed
        NotFoundError: If the trip does not exist
        TripNotBookable: If the trip is not open for bookings
        DuplicateBookingError: If the diver already has an active booking
        AlreadyWaitlistedError: If the trip is full and the diver is
            already on its waiting list
    """
    request = validate_booking_request(request or BookingRequest())
    booked_by = _actor_or_none(booked_by)
    trip = lock_trip(trip_id)

    if not trip.is_bookable:
        raise TripNotBookable(f"Trip is {trip.get_status_display().lower()} and cannot be booked")

    today = today or timezone.localdate()
    provider = profile_provider or get_diver_profile_provider()
    profile = provider.get_profile(diver_id)

    eligibility = evaluate_eligibility(profile, trip, today=today)
    if not eligibility.eligible:
        logger.info("Diver %s not eligible for trip %s: %s", diver_id, trip.pk, eligibility.reasons)
        return CreateBookingResult(
            outcome=CreateBookingResult.INELIGIBLE,
            reasons=eligibility.reasons,
        )

    if Booking.objects.filter(
        trip=trip, diver_id=diver_id, status__in=Booking.ACTIVE_STATUSES
    ).exists():
        raise DuplicateBookingError("You already have an active booking for this trip")

    if not try_reserve(trip.pk, request.number_of_divers):
        entry = add_to_waitlist(trip, diver_id, actor=booked_by)
        return CreateBookingResult(
            outcome=CreateBookingResult.WAITLISTED,
            waitlist_entry=entry,
        )

    quote = quote_trip(
        trip,
        number_of_divers=request.number_of_divers,
        needs_equipment=request.needs_equipment,
        site_fee_provider=site_fee_provider,
    )
    parent_consent_required = profile is not None and is_minor(profile.date_of_birth, today)

    try:
        with transaction.atomic():
            booking = Booking.objects.create(
                booking_number=generate_booking_number(),
                trip=trip,
                diver_id=diver_id,
                booked_by_id=booked_by.pk if booked_by else diver_id,
                status=Booking.STATUS_PENDING,
                number_of_divers=request.number_of_divers,
                needs_equipment=request.needs_equipment,
                special_requests=request.special_requests,
                dietary_requirements=request.dietary_requirements,
                equipment_sizes=request.equipment_sizes,
                parent_consent_required=parent_consent_required,
                price_snapshot=quote.snapshot(),
                **quote.breakdown.model_fields(),
            )
    except IntegrityError as e:
        if _is_duplicate_active_booking(e):
            raise DuplicateBookingError(
                "You already have an active booking for this trip"
            ) from e
        # Re-raise unknown IntegrityErrors
        raise

    was_waitlisted = remove_diver_entry(trip, diver_id)

    log_booking_event(
        action=Actions.BOOKING_CREATED,
        booking=booking,
        actor=booked_by,
        data={
            "price_snapshot": booking.price_snapshot,
            "parent_consent_required": parent_consent_required,
            "was_waitlisted": was_waitlisted,
        },
    )

    return CreateBookingResult(outcome=CreateBookingResult.BOOKED, booking=booking)


@transaction.atomic
def cancel_booking(
    *,
    booking_id,
    actor,
    reason: str,
    now: datetime | None = None,
    authorization_policy=None,
    payment_sink=None,
    notification_sender=None,
) -> CancellationResult:
    """Cancel a booking, compute its refund and free its seats.

    The refund is a DECISION. If the booking had been paid and the refund
    is positive, the PaymentOutcomeSink receives it inside this transaction;
    a sink failure aborts the cancellation. The freed seats are offered to
    the head of the waiting list.

    Args:
        booking_id: Booking primary key
        actor: User cancelling the booking
        reason: Cancellation reason (10 to 500 characters)
        now: Cancellation time (defaults to timezone.now())
        authorization_policy: AuthorizationPolicy (defaults to the configured one)
        payment_sink: PaymentOutcomeSink (defaults to the configured one)
        notification_sender: NotificationSender for the waitlist promotion

    Returns:
        CancellationResult with booking and refund decision

    Raises:
        ValidationError: If the reason is invalid
        NotFoundError: If the booking does not exist
        ForbiddenError: If actor may not manage the booking
        InvalidStatusTransition: If the booking is not pending, confirmed or paid
    """
    reason = validate_cancellation_reason(reason)
    now = now or timezone.now()

    trip = lock_trip(_trip_id_of(booking_id))
    booking = _lock_booking(booking_id)

    policy = authorization_policy or get_authorization_policy()
    _authorize(policy.can_manage_booking(actor, booking))

    _require_status(booking, Booking.CANCELLABLE_STATUSES, "cancel")

    refund_decision = compute_refund_decision(
        total_amount=booking.total_amount,
        departure_time=trip.departure_time,
        cancellation_deadline_hours=trip.cancellation_deadline_hours,
        now=now,
    )

    previous_status = booking.status
    booking.status = Booking.STATUS_CANCELLED
    booking.cancelled_at = now
    booking.cancelled_by = _actor_or_none(actor)
    booking.cancellation_reason = reason
    booking.refund_amount = refund_decision.refund_amount
    booking.save(
        update_fields=[
            "status",
            "cancelled_at",
            "cancelled_by",
            "cancellation_reason",
            "refund_amount",
            "updated_at",
        ]
    )

    release(trip.pk, booking.number_of_divers)

    if previous_status == Booking.STATUS_PAID and refund_decision.refund_amount > 0:
        sink = payment_sink or get_payment_outcome_sink()
        sink.request_refund(
            booking_id=booking.pk,
            refund_amount=refund_decision.refund_amount,
            currency=booking.currency,
        )

    log_booking_event(
        action=Actions.BOOKING_CANCELLED,
        booking=booking,
        actor=_actor_or_none(actor),
        data={
            "reason": reason,
            "refund": refund_decision.as_dict(),
        },
        changes={"status": {"old": previous_status, "new": booking.status}},
    )

    promote_next(trip_id=trip.pk, now=now, notification_sender=notification_sender)

    return CancellationResult(booking=booking, refund_decision=refund_decision)


@transaction.atomic
def confirm_booking(*, booking_id, actor, authorization_policy=None) -> Booking:
    """Confirm a pending booking (diving center decision).

    Raises:
        NotFoundError, ForbiddenError, InvalidStatusTransition
    """
    booking = _lock_booking(booking_id)
    policy = authorization_policy or get_authorization_policy()
    _authorize(policy.can_manage_trip(actor, booking.trip))
    _require_status(booking, (Booking.STATUS_PENDING,), "confirm")

    booking.status = Booking.STATUS_CONFIRMED
    booking.confirmed_at = timezone.now()
    booking.save(update_fields=["status", "confirmed_at", "updated_at"])

    log_booking_event(
        action=Actions.BOOKING_CONFIRMED,
        booking=booking,
        actor=_actor_or_none(actor),
        changes={"status": {"old": Booking.STATUS_PENDING, "new": booking.status}},
    )
    return booking


@transaction.atomic
def record_payment(*, booking_id, paid_at: datetime | None = None, reference: str = "") -> Booking:
    """Record that the payment system captured the booking's total.

    Called by the payment integration, not by an end user.

    Raises:
        NotFoundError, InvalidStatusTransition
    """
    booking = _lock_booking(booking_id)
    _require_status(
        booking, (Booking.STATUS_PENDING, Booking.STATUS_CONFIRMED), "record payment for"
    )

    previous_status = booking.status
    booking.status = Booking.STATUS_PAID
    booking.paid_at = paid_at or timezone.now()
    booking.save(update_fields=["status", "paid_at", "updated_at"])

    log_booking_event(
        action=Actions.BOOKING_PAID,
        booking=booking,
        data={"payment_reference": reference} if reference else None,
        changes={"status": {"old": previous_status, "new": booking.status}},
    )
    return booking


@transaction.atomic
def check_in(
    *,
    booking_id,
    actor,
    require_waiver: bool = False,
    authorization_policy=None,
) -> Booking:
    """Check a diver in at departure.

    Args:
        booking_id: Booking primary key
        actor: Center owner or staff performing check-in
        require_waiver: If True, the waiver must be signed
        authorization_policy: AuthorizationPolicy (defaults to the configured one)

    Returns:
        The checked-in Booking

    Raises:
        NotFoundError: If the booking does not exist
        ForbiddenError: If actor may not manage the trip
        InvalidStatusTransition: If the booking is not confirmed or paid
        ValidationError: If parent consent or a required waiver is missing
    """
    booking = _lock_booking(booking_id)
    policy = authorization_policy or get_authorization_policy()
    _authorize(policy.can_manage_trip(actor, booking.trip))
    _require_status(booking, (Booking.STATUS_CONFIRMED, Booking.STATUS_PAID), "check in")

    if booking.parent_consent_required and booking.parent_consent_given_at is None:
        raise ValidationError("Parent consent is required before check-in")

    if require_waiver and booking.waiver_signed_at is None:
        raise ValidationError("Waiver must be signed before check-in")

    previous_status = booking.status
    booking.status = Booking.STATUS_CHECKED_IN
    booking.checked_in_at = timezone.now()
    booking.checked_in_by = _actor_or_none(actor)
    booking.save(update_fields=["status", "checked_in_at", "checked_in_by", "updated_at"])

    log_booking_event(
        action=Actions.DIVER_CHECKED_IN,
        booking=booking,
        actor=_actor_or_none(actor),
        changes={"status": {"old": previous_status, "new": booking.status}},
    )
    return booking


def _complete(booking: Booking, actor=None) -> Booking:
    booking.status = Booking.STATUS_COMPLETED
    booking.completed_at = timezone.now()
    booking.save(update_fields=["status", "completed_at", "updated_at"])

    log_booking_event(
        action=Actions.BOOKING_COMPLETED,
        booking=booking,
        actor=_actor_or_none(actor),
        changes={"status": {"old": Booking.STATUS_CHECKED_IN, "new": booking.status}},
    )
    return booking


@transaction.atomic
def complete_booking(*, booking_id, actor, authorization_policy=None) -> Booking:
    """Mark a checked-in booking as completed.

    Raises:
        NotFoundError, ForbiddenError, InvalidStatusTransition
    """
    booking = _lock_booking(booking_id)
    policy = authorization_policy or get_authorization_policy()
    _authorize(policy.can_manage_trip(actor, booking.trip))
    _require_status(booking, (Booking.STATUS_CHECKED_IN,), "complete")
    return _complete(booking, actor)


@transaction.atomic
def record_refund_outcome(
    *,
    booking_id,
    amount_refunded: Decimal,
    notification_sender=None,
) -> Booking:
    """Record money actually returned by the payment system.

    Accepted for paid, partially refunded and cancelled bookings. Once the
    cumulative refunded amount reaches the total, or for a cancelled
    booking, the status becomes refunded; otherwise partially_refunded.

    A paid booking refunded in full outside a cancellation stops holding
    seats: they are released and offered to the waiting list.

    Args:
        booking_id: Booking primary key
        amount_refunded: Amount returned by this refund (> 0)
        notification_sender: NotificationSender for the waitlist promotion

    Raises:
        NotFoundError: If the booking does not exist
        InvalidStatusTransition: If the booking is in another status
        ValidationError: If the amount is not positive or exceeds the total
    """
    amount = Decimal(str(amount_refunded))
    if amount <= 0:
        raise ValidationError(
            "Refunded amount must be positive",
            errors={"amount_refunded": ["Must be greater than zero"]},
        )

    trip = lock_trip(_trip_id_of(booking_id))
    booking = _lock_booking(booking_id)
    _require_status(
        booking,
        (Booking.STATUS_PAID, Booking.STATUS_PARTIALLY_REFUNDED, Booking.STATUS_CANCELLED),
        "record a refund for",
    )

    cumulative = booking.amount_refunded + amount
    if cumulative > booking.total_amount:
        raise ValidationError(
            "Refunded amount exceeds the booking total",
            errors={"amount_refunded": ["Exceeds the booking total"]},
        )

    previous_status = booking.status
    if previous_status == Booking.STATUS_CANCELLED or cumulative >= booking.total_amount:
        booking.status = Booking.STATUS_REFUNDED
        action = Actions.BOOKING_REFUNDED
    else:
        booking.status = Booking.STATUS_PARTIALLY_REFUNDED
        action = Actions.BOOKING_PARTIALLY_REFUNDED

    booking.amount_refunded = cumulative
    booking.save(update_fields=["status", "amount_refunded", "updated_at"])

    log_booking_event(
        action=action,
        booking=booking,
        data={"amount": str(amount), "amount_refunded": str(cumulative)},
        changes={"status": {"old": previous_status, "new": booking.status}},
    )

    if previous_status != Booking.STATUS_CANCELLED and booking.status == Booking.STATUS_REFUNDED:
        release(trip.pk, booking.number_of_divers)
        promote_next(trip_id=trip.pk, notification_sender=notification_sender)

    return booking


@transaction.atomic
def sign_waiver(
    *,
    booking_id,
    actor,
    ip_address: str | None = None,
    authorization_policy=None,
) -> Booking:
    """Record the diver's liability waiver signature.

    Raises:
        NotFoundError: If the booking does not exist
        ForbiddenError: If actor is not the booking's diver
        InvalidStatusTransition: If the booking is terminal
        ValidationError: If the waiver is already signed
    """
    booking = _lock_booking(booking_id)
    policy = authorization_policy or get_authorization_policy()
    _authorize(policy.can_act_as_diver(actor, booking))
    _require_not_terminal(booking, "sign the waiver of")

    if booking.waiver_signed_at is not None:
        raise ValidationError("Waiver has already been signed")

    booking.waiver_signed_at = timezone.now()
    booking.waiver_ip_address = ip_address or None
    booking.save(update_fields=["waiver_signed_at", "waiver_ip_address", "updated_at"])

    log_booking_event(
        action=Actions.WAIVER_SIGNED,
        booking=booking,
        actor=_actor_or_none(actor),
        data={"ip_address": ip_address} if ip_address else None,
    )
    return booking


@transaction.atomic
def give_parent_consent(
    *,
    booking_id,
    actor,
    guardian_name: str,
    authorization_policy=None,
) -> Booking:
    """Record parent or guardian consent for a minor's booking.

    Raises:
        NotFoundError, ForbiddenError, InvalidStatusTransition
        ValidationError: If consent is not required, already given, or
            guardian_name is blank
    """
    booking = _lock_booking(booking_id)
    policy = authorization_policy or get_authorization_policy()
    _authorize(policy.can_manage_booking(actor, booking))
    _require_not_terminal(booking, "record consent for")

    if not booking.parent_consent_required:
        raise ValidationError("Parent consent is not required for this booking")
    if booking.parent_consent_given_at is not None:
        raise ValidationError("Parent consent has already been given")

    guardian_name = (guardian_name or "").strip()
    if not guardian_name:
        raise ValidationError(
            "Guardian name is required",
            errors={"guardian_name": ["This field is required"]},
        )

    booking.parent_consent_given_at = timezone.now()
    booking.parent_consent_by = guardian_name[:200]
    booking.save(update_fields=["parent_consent_given_at", "parent_consent_by", "updated_at"])

    log_booking_event(
        action=Actions.PARENT_CONSENT_GIVEN,
        booking=booking,
        actor=_actor_or_none(actor),
        data={"guardian_name": booking.parent_consent_by},
    )
    return booking


@transaction.atomic
def update_booking(
    *,
    booking_id,
    actor,
    update: BookingUpdate,
    authorization_policy=None,
) -> Booking:
    """Change the requests attached to a non-terminal booking.

    Returns:
        The updated Booking (unchanged if nothing differs)

    Raises:
        ValidationError, NotFoundError, ForbiddenError, InvalidStatusTransition
    """
    validate_booking_update(update)
    booking = _lock_booking(booking_id)
    policy = authorization_policy or get_authorization_policy()
    _authorize(policy.can_manage_booking(actor, booking))
    _require_not_terminal(booking, "update")

    changes = {}
    _apply_tracked_update(booking, "special_requests", update.special_requests, changes)
    _apply_tracked_update(booking, "dietary_requirements", update.dietary_requirements, changes)
    _apply_tracked_update(booking, "equipment_sizes", update.equipment_sizes, changes)

    if not changes:
        return booking

    booking.save(update_fields=[*changes.keys(), "updated_at"])

    log_booking_event(
        action=Actions.BOOKING_UPDATED,
        booking=booking,
        actor=_actor_or_none(actor),
        changes=changes,
    )
    return booking


# =============================================================================
# Trip Lifecycle
# =============================================================================


def _require_trip_status(trip: Trip, allowed, action: str) -> None:
    if trip.status not in allowed:
        raise InvalidStatusTransition(
            f"Cannot {action} a trip that is {trip.get_status_display().lower()}"
        )


@transaction.atomic
def publish_trip(*, trip_id, actor, authorization_policy=None) -> Trip:
    """Open a draft trip for bookings.

    Raises:
        NotFoundError, ForbiddenError, InvalidStatusTransition
        ValidationError: If the trip has already departed
    """
    trip = lock_trip(trip_id)
    policy = authorization_policy or get_authorization_policy()
    _authorize(policy.can_manage_trip(actor, trip))
    _require_trip_status(trip, (Trip.STATUS_DRAFT,), "publish")

    now = timezone.now()
    if trip.departure_time <= now:
        raise ValidationError("Cannot publish a trip whose departure time has passed")

    trip.status = Trip.STATUS_PUBLISHED
    trip.published_at = now
    trip.save(update_fields=["status", "published_at", "updated_at"])

    log_trip_event(
        action=Actions.TRIP_PUBLISHED,
        trip=trip,
        actor=_actor_or_none(actor),
        changes={"status": {"old": Trip.STATUS_DRAFT, "new": trip.status}},
    )
    return trip


@transaction.atomic
def cancel_trip(
    *,
    trip_id,
    actor,
    reason: str,
    authorization_policy=None,
    payment_sink=None,
    notification_sender=None,
) -> list[CancellationResult]:
    """Cancel a whole trip on behalf of its diving center.

    Every pending, confirmed or paid booking is cancelled with a full
    refund and its seats are released. The waiting list is cleared. Every
    affected diver is notified after commit.

    Returns:
        One CancellationResult per cancelled booking

    Raises:
        ValidationError: If the reason is invalid
        NotFoundError, ForbiddenError
        InvalidStatusTransition: If the trip is completed or cancelled
    """
    reason = validate_cancellation_reason(reason)
    trip = lock_trip(trip_id)
    policy = authorization_policy or get_authorization_policy()
    _authorize(policy.can_manage_trip(actor, trip))
    _require_trip_status(
        trip,
        (Trip.STATUS_DRAFT, Trip.STATUS_PUBLISHED, Trip.STATUS_FULL, Trip.STATUS_IN_PROGRESS),
        "cancel",
    )

    now = timezone.now()
    sink = None
    results = []

    bookings = (
        Booking.objects.select_for_update()
        .filter(trip=trip, status__in=Booking.CANCELLABLE_STATUSES)
        .order_by("created_at")
    )
    for booking in bookings:
        refund_decision = compute_operator_refund(booking.total_amount)
        previous_status = booking.status

        booking.status = Booking.STATUS_CANCELLED
        booking.cancelled_at = now
        booking.cancelled_by = _actor_or_none(actor)
        booking.cancellation_reason = reason
        booking.refund_amount = refund_decision.refund_amount
        booking.save(
            update_fields=[
                "status",
                "cancelled_at",
                "cancelled_by",
                "cancellation_reason",
                "refund_amount",
                "updated_at",
            ]
        )
        release(trip.pk, booking.number_of_divers)

        if previous_status == Booking.STATUS_PAID and refund_decision.refund_amount > 0:
            sink = sink or payment_sink or get_payment_outcome_sink()
            sink.request_refund(
                booking_id=booking.pk,
                refund_amount=refund_decision.refund_amount,
                currency=booking.currency,
            )

        log_booking_event(
            action=Actions.BOOKING_CANCELLED,
            booking=booking,
            actor=_actor_or_none(actor),
            data={"reason": reason, "refund": refund_decision.as_dict(), "trip_cancelled": True},
            changes={"status": {"old": previous_status, "new": booking.status}},
        )
        results.append(CancellationResult(booking=booking, refund_decision=refund_decision))

    waitlisted_divers = clear_waitlist(trip, actor=_actor_or_none(actor))

    previous_status = trip.status
    trip.status = Trip.STATUS_CANCELLED
    trip.cancelled_at = now
    trip.cancellation_reason = reason
    trip.save(update_fields=["status", "cancelled_at", "cancellation_reason", "updated_at"])

    log_trip_event(
        action=Actions.TRIP_CANCELLED,
        trip=trip,
        actor=_actor_or_none(actor),
        data={"reason": reason, "cancelled_bookings": len(results)},
        changes={"status": {"old": previous_status, "new": trip.status}},
    )

    payload = {
        "trip_id": str(trip.pk),
        "trip_title": trip.title,
        "departure_time": trip.departure_time.isoformat(),
        "reason": reason,
    }
    notified = set()
    for diver_id in [r.booking.diver_id for r in results] + waitlisted_divers:
        if diver_id in notified:
            continue
        notified.add(diver_id)
        dispatch_notification(diver_id, TRIP_CANCELLED, payload, sender=notification_sender)

    logger.info("Trip %s cancelled, %s booking(s) refunded in full", trip.pk, len(results))
    return results


@transaction.atomic
def start_trip(*, trip_id, actor, authorization_policy=None) -> Trip:
    """Mark a published or full trip as in progress.

    Raises:
        NotFoundError, ForbiddenError, InvalidStatusTransition
    """
    trip = lock_trip(trip_id)
    policy = authorization_policy or get_authorization_policy()
    _authorize(policy.can_manage_trip(actor, trip))
    _require_trip_status(trip, Trip.BOOKABLE_STATUSES, "start")

    previous_status = trip.status
    trip.status = Trip.STATUS_IN_PROGRESS
    trip.save(update_fields=["status", "updated_at"])

    log_trip_event(
        action=Actions.TRIP_STARTED,
        trip=trip,
        actor=_actor_or_none(actor),
        changes={"status": {"old": previous_status, "new": trip.status}},
    )
    return trip


@transaction.atomic
def complete_trip(*, trip_id, actor, authorization_policy=None) -> Trip:
    """Mark an in-progress trip as completed.

    Checked-in bookings are completed with it. Bookings in other statuses
    are left as they are.

    Raises:
        NotFoundError, ForbiddenError, InvalidStatusTransition
    """
    trip = lock_trip(trip_id)
    policy = authorization_policy or get_authorization_policy()
    _authorize(policy.can_manage_trip(actor, trip))
    _require_trip_status(trip, (Trip.STATUS_IN_PROGRESS,), "complete")

    checked_in = Booking.objects.select_for_update().filter(
        trip=trip, status=Booking.STATUS_CHECKED_IN
    )
    completed = [_complete(booking, actor) for booking in checked_in]

    trip.status = Trip.STATUS_COMPLETED
    trip.save(update_fields=["status", "updated_at"])

    log_trip_event(
        action=Actions.TRIP_COMPLETED,
        trip=trip,
        actor=_actor_or_none(actor),
        data={"completed_bookings": len(completed)},
        changes={"status": {"old": Trip.STATUS_IN_PROGRESS, "new": trip.status}},
    )
    return trip
