"""Shared fixtures for booking core tests."""

from datetime import date, timedelta
from decimal import Decimal

import pytest
from django.contrib.auth import get_user_model
from django.core.cache import cache
from django.utils import timezone

User = get_user_model()


@pytest.fixture(autouse=True)
def clear_cache():
    """Site fee lookups are cached; start every test with an empty cache."""
    cache.clear()
    yield
    cache.clear()


@pytest.fixture
def center_owner(db):
    return User.objects.create_user(
        username="center_owner",
        email="owner@redsea-divers.test",
        password="testpass123",
    )


@pytest.fixture
def staff_member(db):
    return User.objects.create_user(
        username="center_staff",
        email="staff@redsea-divers.test",
        password="testpass123",
    )


@pytest.fixture
def outsider(db):
    return User.objects.create_user(
        username="outsider",
        email="outsider@example.test",
        password="testpass123",
    )


@pytest.fixture
def platform_admin(db):
    return User.objects.create_user(
        username="platform_admin",
        email="admin@divemarket.test",
        password="testpass123",
        is_staff=True,
    )


@pytest.fixture
def center(center_owner, staff_member):
    from divemarket.bookings.models import DivingCenter

    center = DivingCenter.objects.create(name="Red Sea Divers", owner=center_owner)
    center.staff.add(staff_member)
    return center


@pytest.fixture
def site(db):
    from divemarket.bookings.models import DiveSite

    return DiveSite.objects.create(
        name="Sharm Obhur Reef",
        site_code="JED-OBH-01",
        conservation_zone=DiveSite.ZONE_2,
    )


@pytest.fixture
def make_trip(center, site):
    """Factory for trips. Defaults to a published trip departing in 7 days."""
    from divemarket.bookings.models import Trip

    def _make_trip(**kwargs):
        defaults = {
            "center": center,
            "site": site,
            "title": "Morning reef dive",
            "departure_time": timezone.now() + timedelta(days=7),
            "max_participants": 10,
            "status": Trip.STATUS_PUBLISHED,
            "price_per_person": Decimal("500.00"),
            "equipment_rental_price": Decimal("100.00"),
            "min_age": 10,
            "min_logged_dives": 0,
        }
        defaults.update(kwargs)
        return Trip.objects.create(**defaults)

    return _make_trip


@pytest.fixture
def trip(make_trip):
    return make_trip()


@pytest.fixture
def make_diver(db):
    """Factory for divers (users) with an optional profile and certifications."""
    from divemarket.bookings.models import DiverCertification, DiverProfile

    counter = {"n": 0}

    def _make_diver(
        *,
        date_of_birth=date(1990, 5, 17),
        total_logged_dives=25,
        certifications=(("Open Water", "verified"),),
        with_profile=True,
    ):
        counter["n"] += 1
        user = User.objects.create_user(
            username=f"diver{counter['n']}",
            email=f"diver{counter['n']}@example.test",
            password="testpass123",
        )
        if with_profile:
            profile = DiverProfile.objects.create(
                user=user,
                date_of_birth=date_of_birth,
                total_logged_dives=total_logged_dives,
            )
            for level, status in certifications:
                DiverCertification.objects.create(
                    diver=profile,
                    agency="PADI",
                    level=level,
                    verification_status=status,
                )
        return user

    return _make_diver


@pytest.fixture
def diver(make_diver):
    return make_diver()


@pytest.fixture
def recording_sender():
    """NotificationSender that records every notification."""
    from divemarket.bookings.integrations import NotificationSender

    class RecordingSender(NotificationSender):
        def __init__(self):
            self.sent = []

        def notify(self, diver_id, kind, payload):
            self.sent.append((diver_id, kind, payload))

    return RecordingSender()


@pytest.fixture
def recording_sink():
    """PaymentOutcomeSink that records refund requests."""
    from divemarket.bookings.integrations import PaymentOutcomeSink

    class RecordingSink(PaymentOutcomeSink):
        def __init__(self):
            self.refunds = []

        def request_refund(self, *, booking_id, refund_amount, currency):
            self.refunds.append((booking_id, refund_amount, currency))

    return RecordingSink()


@pytest.fixture
def fixed_fee_provider():
    """Factory for SiteFeeProviders returning a fixed value."""
    from divemarket.bookings.integrations import SiteFeeProvider

    class FixedFeeProvider(SiteFeeProvider):
        def __init__(self, fee):
            self.fee = fee
            self.calls = 0

        def get_fee_per_diver(self, site_id):
            self.calls += 1
            return self.fee

    return FixedFeeProvider


@pytest.fixture
def book(diver):
    """Create a booked booking, optionally moved to a later status."""
    from divemarket.bookings import services
    from divemarket.bookings.models import Booking
    from divemarket.bookings.validators import BookingRequest

    def _book(trip, *, for_diver=None, number_of_divers=1, status=None, **request_kwargs):
        result = services.create_booking(
            trip_id=trip.pk,
            diver_id=(for_diver or diver).pk,
            request=BookingRequest(number_of_divers=number_of_divers, **request_kwargs),
        )
        assert result.booked, result
        booking = result.booking
        if status is not None:
            Booking.objects.filter(pk=booking.pk).update(status=status)
            booking.refresh_from_db()
        return booking

    return _book
