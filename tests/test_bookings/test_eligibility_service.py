"""Tests for trip eligibility evaluation.

Every failing rule contributes a reason; ineligibility is a result,
never an exception.
"""

from datetime import date
from types import SimpleNamespace

import pytest


TODAY = date(2026, 6, 15)


def _policy(**kwargs):
    defaults = {
        "min_age": 10,
        "max_age": None,
        "min_logged_dives": 0,
        "min_certification_level": "",
    }
    defaults.update(kwargs)
    return SimpleNamespace(**defaults)


def _profile(dob=date(1990, 1, 1), dives=0, certs=()):
    from divemarket.bookings.integrations import CertificationSnapshot, DiverProfileSnapshot

    return DiverProfileSnapshot(
        date_of_birth=dob,
        total_logged_dives=dives,
        certifications=tuple(CertificationSnapshot(level=l, verification_status=s) for l, s in certs),
    )


class TestCalculateAge:
    def test_birthday_not_yet_reached(self):
        from divemarket.bookings.eligibility_service import calculate_age

        assert calculate_age(date(2000, 6, 16), TODAY) == 25

    def test_birthday_today(self):
        from divemarket.bookings.eligibility_service import calculate_age

        assert calculate_age(date(2000, 6, 15), TODAY) == 26

    def test_is_minor(self):
        from divemarket.bookings.eligibility_service import is_minor

        assert is_minor(date(2010, 1, 1), TODAY) is True
        assert is_minor(date(2008, 6, 15), TODAY) is False
        assert is_minor(None, TODAY) is False


class TestCertificationRank:
    def test_hierarchy_order(self):
        from divemarket.bookings.eligibility_service import certification_rank

        assert certification_rank("Open Water") < certification_rank("Advanced Open Water")
        assert certification_rank("Rescue Diver") < certification_rank("Divemaster")
        assert certification_rank("Divemaster") < certification_rank("Instructor")

    def test_case_insensitive(self):
        from divemarket.bookings.eligibility_service import certification_rank

        assert certification_rank("advanced open WATER") == certification_rank("Advanced Open Water")

    def test_unknown_level(self):
        from divemarket.bookings.eligibility_service import certification_rank

        assert certification_rank("Sidemount Specialty") is None
        assert certification_rank("") is None


class TestEvaluateEligibility:
    def test_eligible_diver_has_no_reasons(self):
        from divemarket.bookings.eligibility_service import evaluate_eligibility

        result = evaluate_eligibility(_profile(dives=10), _policy(min_logged_dives=5), today=TODAY)

        assert result.eligible is True
        assert result.reasons == ()

    def test_reasons_accumulate(self):
        """A 9 year old with no dives fails both the age and the dive rule."""
        from divemarket.bookings.eligibility_service import evaluate_eligibility

        result = evaluate_eligibility(
            _profile(dob=date(2017, 1, 1), dives=0),
            _policy(min_age=10, min_logged_dives=5),
            today=TODAY,
        )

        assert result.reasons == (
            "Minimum age is 10 years (you are 9)",
            "Minimum 5 logged dives required (you have 0)",
        )

    def test_max_age(self):
        from divemarket.bookings.eligibility_service import evaluate_eligibility

        result = evaluate_eligibility(
            _profile(dob=date(1950, 1, 1)), _policy(max_age=65), today=TODAY
        )

        assert result.reasons == ("Maximum age is 65 years (you are 76)",)

    def test_missing_birth_date_skips_age_rules(self):
        from divemarket.bookings.eligibility_service import evaluate_eligibility

        result = evaluate_eligibility(_profile(dob=None), _policy(min_age=18, max_age=30), today=TODAY)

        assert result.eligible is True

    def test_certification_at_required_level(self):
        from divemarket.bookings.eligibility_service import evaluate_eligibility

        result = evaluate_eligibility(
            _profile(certs=[("Advanced Open Water", "verified")]),
            _policy(min_certification_level="Advanced Open Water"),
            today=TODAY,
        )

        assert result.eligible is True

    def test_higher_certification_satisfies_lower_requirement(self):
        from divemarket.bookings.eligibility_service import evaluate_eligibility

        result = evaluate_eligibility(
            _profile(certs=[("Divemaster", "verified")]),
            _policy(min_certification_level="Advanced Open Water"),
            today=TODAY,
        )

        assert result.eligible is True

    def test_lower_certification_fails(self):
        from divemarket.bookings.eligibility_service import evaluate_eligibility

        result = evaluate_eligibility(
            _profile(certs=[("Open Water", "verified")]),
            _policy(min_certification_level="Rescue Diver"),
            today=TODAY,
        )

        assert result.reasons == ("Rescue Diver certification or higher required",)

    def test_unverified_certification_does_not_count(self):
        from divemarket.bookings.eligibility_service import evaluate_eligibility

        result = evaluate_eligibility(
            _profile(certs=[("Instructor", "pending"), ("Divemaster", "rejected")]),
            _policy(min_certification_level="Open Water"),
            today=TODAY,
        )

        assert result.eligible is False

    def test_unknown_held_level_never_satisfies(self):
        from divemarket.bookings.eligibility_service import evaluate_eligibility

        result = evaluate_eligibility(
            _profile(certs=[("Cave Explorer", "verified")]),
            _policy(min_certification_level="Open Water"),
            today=TODAY,
        )

        assert result.eligible is False

    def test_unknown_required_level_imposes_nothing(self):
        from divemarket.bookings.eligibility_service import evaluate_eligibility

        result = evaluate_eligibility(
            _profile(certs=[]),
            _policy(min_certification_level="Ice Diver"),
            today=TODAY,
        )

        assert result.eligible is True

    def test_missing_profile_on_gated_trip(self):
        from divemarket.bookings.eligibility_service import (
            PROFILE_INCOMPLETE_REASON,
            evaluate_eligibility,
        )

        result = evaluate_eligibility(None, _policy(min_logged_dives=1), today=TODAY)

        assert result.eligible is False
        assert result.reasons == (PROFILE_INCOMPLETE_REASON,)

    def test_missing_profile_on_ungated_trip(self):
        from divemarket.bookings.eligibility_service import evaluate_eligibility

        result = evaluate_eligibility(None, _policy(), today=TODAY)

        assert result.eligible is True


@pytest.mark.django_db
class TestCheckEligibility:
    def test_reads_profile_from_database(self, make_trip, make_diver):
        from divemarket.bookings.eligibility_service import check_eligibility

        trip = make_trip(min_certification_level="Advanced Open Water", min_logged_dives=20)
        diver = make_diver(total_logged_dives=5, certifications=[("Open Water", "verified")])

        result = check_eligibility(trip_id=trip.pk, diver_id=diver.pk, today=TODAY)

        assert result.eligible is False
        assert result.reasons == (
            "Minimum 20 logged dives required (you have 5)",
            "Advanced Open Water certification or higher required",
        )

    def test_diver_without_profile(self, make_trip, make_diver):
        from divemarket.bookings.eligibility_service import check_eligibility

        trip = make_trip(min_logged_dives=10)
        diver = make_diver(with_profile=False)

        result = check_eligibility(trip_id=trip.pk, diver_id=diver.pk, today=TODAY)

        assert result.eligible is False

    def test_injected_provider(self, trip, diver):
        from divemarket.bookings.eligibility_service import check_eligibility
        from divemarket.bookings.integrations import DiverProfileProvider

        class MinorProvider(DiverProfileProvider):
            def get_profile(self, diver_id):
                return _profile(dob=date(2020, 1, 1))

        result = check_eligibility(
            trip_id=trip.pk, diver_id=diver.pk, profile_provider=MinorProvider(), today=TODAY
        )

        assert result.reasons == ("Minimum age is 10 years (you are 6)",)

    def test_unknown_trip(self, diver):
        import uuid

        from divemarket.bookings.eligibility_service import check_eligibility
        from divemarket.bookings.exceptions import NotFoundError

        with pytest.raises(NotFoundError):
            check_eligibility(trip_id=uuid.uuid4(), diver_id=diver.pk)
