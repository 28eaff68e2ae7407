"""Booking core configuration.

All settings can be overridden in your Django settings.py with a
``BOOKINGS_`` prefix. Values are read at call time so that
``override_settings`` applies in tests.

Example:
    # settings.py
    BOOKINGS_VAT_RATE = "0.15"
    BOOKINGS_SITE_FEE_PROVIDER = "myproject.fees.QuotaServiceFeeProvider"
"""

from decimal import Decimal

from django.conf import settings
from django.utils.module_loading import import_string


DEFAULTS = {
    "CURRENCY": "SAR",
    "PLATFORM_FEE_RATE": "0.05",
    "VAT_RATE": "0.15",
    "INSURANCE_FEE_PER_DIVER": "15",
    "DEFAULT_CONSERVATION_FEE": "35",
    "FULL_REFUND_HOURS": 48,
    "PARTIAL_REFUND_PERCENT": 50,
    "WAITLIST_PROMOTION_HOURS": 24,
    "SITE_FEE_CACHE_SECONDS": 300,
    "MAX_DIVERS_PER_BOOKING": 20,
    "DIVER_PROFILE_PROVIDER": "divemarket.bookings.integrations.DatabaseDiverProfileProvider",
    "SITE_FEE_PROVIDER": "divemarket.bookings.integrations.DatabaseSiteFeeProvider",
    "NOTIFICATION_SENDER": "divemarket.bookings.integrations.LoggingNotificationSender",
    "PAYMENT_OUTCOME_SINK": "divemarket.bookings.integrations.AuditPaymentOutcomeSink",
    "AUTHORIZATION_POLICY": "divemarket.bookings.integrations.CenterAuthorizationPolicy",
}


def get_setting(name: str, default=None):
    """Get a setting with BOOKINGS_ prefix."""
    if default is None:
        default = DEFAULTS.get(name)
    return getattr(settings, f"BOOKINGS_{name}", default)


def get_decimal_setting(name: str) -> Decimal:
    """Get a money or rate setting as a Decimal.

    Values are converted through ``str`` so float settings do not leak
    binary representation error into money calculations.
    """
    return Decimal(str(get_setting(name)))


def get_currency() -> str:
    return get_setting("CURRENCY")


def _load(name: str):
    value = get_setting(name)
    if isinstance(value, str):
        value = import_string(value)
    return value() if isinstance(value, type) else value


def get_diver_profile_provider():
    """Return the configured DiverProfileProvider instance."""
    return _load("DIVER_PROFILE_PROVIDER")


def get_site_fee_provider():
    """Return the configured SiteFeeProvider instance."""
    return _load("SITE_FEE_PROVIDER")


def get_notification_sender():
    """Return the configured NotificationSender instance."""
    return _load("NOTIFICATION_SENDER")


def get_payment_outcome_sink():
    """Return the configured PaymentOutcomeSink instance."""
    return _load("PAYMENT_OUTCOME_SINK")


def get_authorization_policy():
    """Return the configured AuthorizationPolicy instance."""
    return _load("AUTHORIZATION_POLICY")
