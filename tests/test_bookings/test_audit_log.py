"""Tests for the audit log and the booking audit adapter."""

import pytest


@pytest.mark.django_db
class TestAuditLogImmutability:
    def test_cannot_update(self, trip):
        from divemarket.audit_log import log

        entry = log(action="trip_published", obj=trip)
        entry.action = "tampered"

        with pytest.raises(ValueError):
            entry.save()

    def test_cannot_delete(self, trip):
        from divemarket.audit_log import log

        entry = log(action="trip_published", obj=trip)

        with pytest.raises(ValueError):
            entry.delete()


@pytest.mark.django_db
class TestLog:
    def test_extracts_target(self, trip, center_owner):
        from divemarket.audit_log import log

        entry = log(action="trip_published", obj=trip, actor=center_owner)

        assert entry.model_label == "bookings.trip"
        assert entry.object_id == str(trip.pk)
        assert entry.object_repr == str(trip)
        assert entry.actor_display == "owner@redsea-divers.test"
        assert entry.is_system is False

    def test_label_without_instance(self):
        from divemarket.audit_log import log

        entry = log(action="waitlist_left", obj_label="bookings.waitinglistentry", obj_id=42, obj_repr="#1")

        assert entry.model_label == "bookings.waitinglistentry"
        assert entry.object_id == "42"
        assert entry.actor_user is None
        assert str(entry) == "System waitlist_left bookings.waitinglistentry"


@pytest.mark.django_db
class TestBookingAuditAdapter:
    def test_booking_metadata(self, trip, book):
        from divemarket.bookings.audit import Actions, log_booking_event

        booking = book(trip)

        entry = log_booking_event(Actions.BOOKING_UPDATED, booking, data={"note": "x"})

        assert entry.is_system is True
        assert entry.metadata["booking_number"] == booking.booking_number
        assert entry.metadata["trip_id"] == str(trip.pk)
        assert entry.metadata["total_amount"] == str(booking.total_amount)
        assert entry.metadata["note"] == "x"

    def test_trip_metadata(self, trip, center_owner):
        from divemarket.bookings.audit import Actions, log_trip_event

        entry = log_trip_event(Actions.TRIP_STARTED, trip, actor=center_owner)

        assert entry.actor_user == center_owner
        assert entry.metadata["center_id"] == str(trip.center_id)
        assert entry.metadata["max_participants"] == trip.max_participants

    def test_full_booking_history(self, trip, diver, book, staff_member):
        from divemarket.audit_log.models import AuditLog
        from divemarket.bookings import services

        booking = book(trip)
        services.confirm_booking(booking_id=booking.pk, actor=staff_member)
        services.record_payment(booking_id=booking.pk)
        services.check_in(booking_id=booking.pk, actor=staff_member)
        services.complete_booking(booking_id=booking.pk, actor=staff_member)

        actions = AuditLog.objects.filter(object_id=str(booking.pk)).values_list("action", flat=True)
        assert sorted(actions) == sorted([
            "booking_created",
            "booking_confirmed",
            "booking_paid",
            "diver_checked_in",
            "booking_completed",
        ])
