"""Tests for the time-tiered refund policy."""

from datetime import datetime, timedelta, timezone as dt_timezone
from decimal import Decimal

import pytest
from freezegun import freeze_time


DEPARTURE = datetime(2026, 7, 1, 8, 0, tzinfo=dt_timezone.utc)
TOTAL = Decimal("1507.50")


def _decide(hours_before, deadline=24, total=TOTAL):
    from divemarket.bookings.cancellation_policy import compute_refund_decision

    return compute_refund_decision(
        total_amount=total,
        departure_time=DEPARTURE,
        cancellation_deadline_hours=deadline,
        now=DEPARTURE - timedelta(hours=hours_before),
    )


class TestComputeRefundDecision:
    @pytest.mark.parametrize(
        "hours_before,percent,amount",
        [
            (23.99, 0, Decimal("0.00")),
            (24.0, 50, Decimal("753.75")),
            (47.99, 50, Decimal("753.75")),
            (48.0, 100, Decimal("1507.50")),
            (240, 100, Decimal("1507.50")),
        ],
    )
    def test_tier_boundaries(self, hours_before, percent, amount):
        decision = _decide(hours_before)

        assert decision.refund_percent == percent
        assert decision.refund_amount == amount
        assert decision.original_amount == TOTAL

    def test_after_departure(self):
        decision = _decide(-3)

        assert decision.refund_amount == Decimal("0.00")
        assert decision.hours_before_departure == -3.0

    def test_deadline_checked_before_full_refund(self):
        """With a 72 hour deadline the partial band is unreachable."""
        assert _decide(60, deadline=72).refund_percent == 0
        assert _decide(71.99, deadline=72).refund_percent == 0
        assert _decide(72, deadline=72).refund_percent == 100

    def test_zero_deadline(self):
        assert _decide(1, deadline=0).refund_percent == 50

    def test_partial_refund_rounds_half_up(self):
        decision = _decide(30, total=Decimal("100.05"))

        assert decision.refund_amount == Decimal("50.03")

    def test_hours_reported_rounded(self):
        decision = _decide(30.123456)

        assert decision.hours_before_departure == 30.12
        assert "30.12 hours" in decision.reason

    def test_partial_percent_from_settings(self, settings):
        settings.BOOKINGS_PARTIAL_REFUND_PERCENT = 25

        assert _decide(30).refund_amount == Decimal("376.88")

    def test_full_refund_hours_from_settings(self, settings):
        settings.BOOKINGS_FULL_REFUND_HOURS = 72

        assert _decide(60).refund_percent == 50

    def test_defaults_to_current_time(self):
        from divemarket.bookings.cancellation_policy import compute_refund_decision

        with freeze_time(DEPARTURE - timedelta(hours=36)):
            decision = compute_refund_decision(
                total_amount=TOTAL,
                departure_time=DEPARTURE,
                cancellation_deadline_hours=24,
            )

        assert decision.refund_percent == 50
        assert decision.hours_before_departure == 36.0

    def test_as_dict(self):
        data = _decide(100).as_dict()

        assert data["refund_amount"] == "1507.50"
        assert data["refund_percent"] == 100
        assert data["reason"].startswith("Full refund")


class TestComputeOperatorRefund:
    def test_always_full(self):
        from divemarket.bookings.cancellation_policy import compute_operator_refund

        decision = compute_operator_refund(Decimal("605.00"))

        assert decision.refund_amount == Decimal("605.00")
        assert decision.refund_percent == 100
        assert "diving center" in decision.reason

    def test_custom_reason(self):
        from divemarket.bookings.cancellation_policy import compute_operator_refund

        decision = compute_operator_refund(Decimal("10"), reason="Storm warning")

        assert decision.reason == "Storm warning"
