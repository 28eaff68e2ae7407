"""Tests for the price breakdown calculator and pricing services."""

from decimal import Decimal

import pytest


def _rates():
    from divemarket.bookings.pricing import PricingRates

    return PricingRates(
        platform_fee_rate=Decimal("0.05"),
        vat_rate=Decimal("0.15"),
        insurance_fee_per_diver=Decimal("15"),
    )


class TestRoundMoney:
    def test_rounds_half_up(self):
        from divemarket.bookings.pricing import round_money

        assert round_money(Decimal("2.345")) == Decimal("2.35")
        assert round_money(Decimal("2.344")) == Decimal("2.34")
        assert round_money(Decimal("0.005")) == Decimal("0.01")


class TestComputePriceBreakdown:
    def test_two_divers_with_equipment(self):
        """500/person, 2 divers, 100 rental, 35 conservation fee."""
        from divemarket.bookings.pricing import compute_price_breakdown

        breakdown = compute_price_breakdown(
            price_per_person=Decimal("500.00"),
            number_of_divers=2,
            rates=_rates(),
            needs_equipment=True,
            equipment_rental_price=Decimal("100.00"),
            conservation_fee_per_diver=Decimal("35"),
        )

        assert breakdown.base_price == Decimal("1000.00")
        assert breakdown.equipment_rental == Decimal("200.00")
        assert breakdown.conservation_fee == Decimal("70.00")
        assert breakdown.insurance_fee == Decimal("30.00")
        assert breakdown.platform_fee == Decimal("50.00")
        assert breakdown.vat_amount == Decimal("157.50")
        assert breakdown.discount_amount == Decimal("0.00")
        assert breakdown.total_amount == Decimal("1507.50")
        assert breakdown.currency == "SAR"

    def test_vat_excludes_equipment_and_fees(self):
        from divemarket.bookings.pricing import compute_price_breakdown

        with_extras = compute_price_breakdown(
            price_per_person=Decimal("300"),
            number_of_divers=1,
            rates=_rates(),
            needs_equipment=True,
            equipment_rental_price=Decimal("80"),
            conservation_fee_per_diver=Decimal("50"),
        )
        without_extras = compute_price_breakdown(
            price_per_person=Decimal("300"),
            number_of_divers=1,
            rates=_rates(),
        )

        assert with_extras.vat_amount == without_extras.vat_amount

    def test_equipment_ignored_when_not_offered(self):
        from divemarket.bookings.pricing import compute_price_breakdown

        breakdown = compute_price_breakdown(
            price_per_person=Decimal("500"),
            number_of_divers=1,
            rates=_rates(),
            needs_equipment=True,
            equipment_rental_price=None,
        )

        assert breakdown.equipment_rental == Decimal("0.00")

    def test_equipment_ignored_when_not_requested(self):
        from divemarket.bookings.pricing import compute_price_breakdown

        breakdown = compute_price_breakdown(
            price_per_person=Decimal("500"),
            number_of_divers=3,
            rates=_rates(),
            needs_equipment=False,
            equipment_rental_price=Decimal("100"),
        )

        assert breakdown.equipment_rental == Decimal("0.00")

    @pytest.mark.parametrize(
        "price,divers,fee",
        [
            (Decimal("333.33"), 3, Decimal("17.25")),
            (Decimal("199.99"), 7, Decimal("0")),
            (Decimal("0.01"), 1, Decimal("35")),
            (Decimal("1234.57"), 20, Decimal("50")),
        ],
    )
    def test_components_sum_to_total(self, price, divers, fee):
        from divemarket.bookings.pricing import compute_price_breakdown

        b = compute_price_breakdown(
            price_per_person=price,
            number_of_divers=divers,
            rates=_rates(),
            needs_equipment=True,
            equipment_rental_price=Decimal("45.55"),
            conservation_fee_per_diver=fee,
            discount=Decimal("10"),
        )

        assert b.total_amount == (
            b.base_price
            + b.equipment_rental
            + b.conservation_fee
            + b.insurance_fee
            + b.platform_fee
            + b.vat_amount
            - b.discount_amount
        )
        for amount in (b.base_price, b.platform_fee, b.vat_amount, b.total_amount):
            assert amount == amount.quantize(Decimal("0.01"))

    def test_same_inputs_same_breakdown(self):
        from divemarket.bookings.pricing import compute_price_breakdown

        kwargs = dict(
            price_per_person=Decimal("421.17"),
            number_of_divers=4,
            rates=_rates(),
            conservation_fee_per_diver=Decimal("20"),
        )

        assert compute_price_breakdown(**kwargs) == compute_price_breakdown(**kwargs)

    def test_zero_divers_rejected(self):
        from divemarket.bookings.exceptions import ValidationError
        from divemarket.bookings.pricing import compute_price_breakdown

        with pytest.raises(ValidationError):
            compute_price_breakdown(
                price_per_person=Decimal("500"),
                number_of_divers=0,
                rates=_rates(),
            )

    def test_as_dict_uses_strings(self):
        from divemarket.bookings.pricing import compute_price_breakdown

        data = compute_price_breakdown(
            price_per_person=Decimal("500"),
            number_of_divers=1,
            rates=_rates(),
        ).as_dict()

        assert data["base_price"] == "500.00"
        assert data["total_amount"] == "618.75"
        assert data["number_of_divers"] == 1


@pytest.mark.django_db
class TestResolveConservationFee:
    def test_provider_fee(self, trip, fixed_fee_provider):
        from divemarket.bookings.pricing.services import FEE_SOURCE_SITE, resolve_conservation_fee

        fee, source = resolve_conservation_fee(trip, site_fee_provider=fixed_fee_provider(Decimal("50")))

        assert fee == Decimal("50")
        assert source == FEE_SOURCE_SITE

    def test_fee_included_in_price(self, make_trip, fixed_fee_provider):
        from divemarket.bookings.pricing.services import FEE_SOURCE_INCLUDED, resolve_conservation_fee

        trip = make_trip(conservation_fee_included=True)
        provider = fixed_fee_provider(Decimal("50"))

        fee, source = resolve_conservation_fee(trip, site_fee_provider=provider)

        assert fee == Decimal("0")
        assert source == FEE_SOURCE_INCLUDED
        assert provider.calls == 0

    def test_trip_without_site(self, make_trip, fixed_fee_provider):
        from divemarket.bookings.pricing.services import FEE_SOURCE_NO_SITE, resolve_conservation_fee

        trip = make_trip(site=None)

        fee, source = resolve_conservation_fee(trip, site_fee_provider=fixed_fee_provider(Decimal("50")))

        assert fee == Decimal("0")
        assert source == FEE_SOURCE_NO_SITE

    def test_unknown_site_uses_default(self, trip, fixed_fee_provider):
        from divemarket.bookings.pricing.services import FEE_SOURCE_DEFAULT, resolve_conservation_fee

        fee, source = resolve_conservation_fee(trip, site_fee_provider=fixed_fee_provider(None))

        assert fee == Decimal("35")
        assert source == FEE_SOURCE_DEFAULT

    def test_provider_failure_uses_default(self, trip):
        from divemarket.bookings.integrations import SiteFeeProvider
        from divemarket.bookings.pricing.services import FEE_SOURCE_DEFAULT, resolve_conservation_fee

        class BrokenProvider(SiteFeeProvider):
            def get_fee_per_diver(self, site_id):
                raise ConnectionError("quota service unavailable")

        fee, source = resolve_conservation_fee(trip, site_fee_provider=BrokenProvider())

        assert fee == Decimal("35")
        assert source == FEE_SOURCE_DEFAULT

    def test_default_fee_follows_settings(self, trip, fixed_fee_provider, settings):
        from divemarket.bookings.pricing.services import resolve_conservation_fee

        settings.BOOKINGS_DEFAULT_CONSERVATION_FEE = "12.50"

        fee, _ = resolve_conservation_fee(trip, site_fee_provider=fixed_fee_provider(None))

        assert fee == Decimal("12.50")


@pytest.mark.django_db
class TestDatabaseSiteFeeProvider:
    def test_zone_fee(self, site):
        from divemarket.bookings.integrations import DatabaseSiteFeeProvider

        assert DatabaseSiteFeeProvider().get_fee_per_diver(site.pk) == Decimal("35")

    def test_explicit_fee_overrides_zone(self, site):
        from divemarket.bookings.integrations import DatabaseSiteFeeProvider

        site.conservation_fee = Decimal("42.00")
        site.save()

        assert DatabaseSiteFeeProvider().get_fee_per_diver(site.pk) == Decimal("42.00")

    def test_fee_is_cached(self, site):
        from divemarket.bookings.integrations import DatabaseSiteFeeProvider
        from divemarket.bookings.models import DiveSite

        provider = DatabaseSiteFeeProvider()
        provider.get_fee_per_diver(site.pk)

        DiveSite.objects.filter(pk=site.pk).update(conservation_fee=Decimal("99"))

        assert provider.get_fee_per_diver(site.pk) == Decimal("35")

    def test_unknown_site(self):
        import uuid

        from divemarket.bookings.integrations import DatabaseSiteFeeProvider

        assert DatabaseSiteFeeProvider().get_fee_per_diver(uuid.uuid4()) is None


@pytest.mark.django_db
class TestCalculatePrice:
    def test_uses_trip_pricing(self, trip, fixed_fee_provider):
        from divemarket.bookings.pricing import calculate_price

        breakdown = calculate_price(
            trip_id=trip.pk,
            number_of_divers=2,
            needs_equipment=True,
            site_fee_provider=fixed_fee_provider(Decimal("35")),
        )

        assert breakdown.total_amount == Decimal("1507.50")

    def test_configured_provider(self, trip):
        from divemarket.bookings.pricing import calculate_price

        breakdown = calculate_price(trip_id=trip.pk, number_of_divers=1)

        assert breakdown.conservation_fee == Decimal("35.00")

    def test_rates_follow_settings(self, trip, fixed_fee_provider, settings):
        from divemarket.bookings.pricing import calculate_price

        settings.BOOKINGS_VAT_RATE = "0.10"
        settings.BOOKINGS_PLATFORM_FEE_RATE = "0"

        breakdown = calculate_price(
            trip_id=trip.pk,
            number_of_divers=1,
            site_fee_provider=fixed_fee_provider(Decimal("0")),
        )

        assert breakdown.platform_fee == Decimal("0.00")
        assert breakdown.vat_amount == Decimal("50.00")

    @pytest.mark.parametrize("divers", [0, 21, -1])
    def test_out_of_range_divers(self, trip, divers):
        from divemarket.bookings.exceptions import ValidationError
        from divemarket.bookings.pricing import calculate_price

        with pytest.raises(ValidationError) as exc_info:
            calculate_price(trip_id=trip.pk, number_of_divers=divers)

        assert "number_of_divers" in exc_info.value.errors

    def test_unknown_trip(self):
        import uuid

        from divemarket.bookings.exceptions import NotFoundError
        from divemarket.bookings.pricing import calculate_price

        with pytest.raises(NotFoundError):
            calculate_price(trip_id=uuid.uuid4(), number_of_divers=1)


@pytest.mark.django_db
class TestQuoteSnapshot:
    def test_snapshot_reproduces_breakdown(self, trip, fixed_fee_provider):
        from divemarket.bookings.pricing import PricingRates, compute_price_breakdown, quote_trip

        quote = quote_trip(
            trip,
            number_of_divers=3,
            needs_equipment=True,
            site_fee_provider=fixed_fee_provider(Decimal("20")),
        )
        snapshot = quote.snapshot()
        rates = snapshot["rates"]
        inputs = snapshot["inputs"]

        replayed = compute_price_breakdown(
            price_per_person=Decimal(inputs["price_per_person"]),
            number_of_divers=snapshot["breakdown"]["number_of_divers"],
            rates=PricingRates(
                platform_fee_rate=Decimal(rates["platform_fee_rate"]),
                vat_rate=Decimal(rates["vat_rate"]),
                insurance_fee_per_diver=Decimal(rates["insurance_fee_per_diver"]),
            ),
            needs_equipment=True,
            equipment_rental_price=Decimal(inputs["equipment_rental_price"]),
            conservation_fee_per_diver=Decimal(inputs["conservation_fee_per_diver"]),
        )

        assert replayed.as_dict() == snapshot["breakdown"]
        assert inputs["conservation_fee_source"] == "site"
