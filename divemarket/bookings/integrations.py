"""External collaborators of the booking core.

The core consumes diver profiles, per-site conservation fees, a
notification channel, a payment outcome sink and an authorization
policy. Each is an abstract interface with a database-backed default
implementation; the active class is chosen with a BOOKINGS_* setting
(see conf.py) and every service also accepts an explicit instance.
"""

import logging
from abc import ABC, abstractmethod
from dataclasses import dataclass, field
from datetime import date
from decimal import Decimal

from django.core.cache import cache

from .conf import get_setting


logger = logging.getLogger(__name__)


# =============================================================================
# Value objects
# =============================================================================


@dataclass(frozen=True)
class CertificationSnapshot:
    """A certification as seen by the eligibility evaluator."""

    level: str
    verification_status: str = "pending"

    @property
    def is_verified(self) -> bool:
        return self.verification_status == "verified"


@dataclass(frozen=True)
class DiverProfileSnapshot:
    """Read-only view of the diver attributes eligibility depends on."""

    date_of_birth: date | None = None
    total_logged_dives: int = 0
    certifications: tuple[CertificationSnapshot, ...] = field(default_factory=tuple)


@dataclass(frozen=True)
class AccessDecision:
    """Result of an authorization check."""

    allowed: bool
    reason: str = ""

    def __bool__(self) -> bool:
        return self.allowed

    @classmethod
    def allow(cls) -> "AccessDecision":
        return cls(allowed=True)

    @classmethod
    def deny(cls, reason: str) -> "AccessDecision":
        return cls(allowed=False, reason=reason)


# =============================================================================
# Interfaces
# =============================================================================


class DiverProfileProvider(ABC):
    """Supplies diver attributes by diver id."""

    @abstractmethod
    def get_profile(self, diver_id) -> DiverProfileSnapshot | None:
        """Return the diver's profile, or None if the diver has none."""
        raise NotImplementedError


class SiteFeeProvider(ABC):
    """Supplies the per-diver conservation fee of a dive site."""

    @abstractmethod
    def get_fee_per_diver(self, site_id) -> Decimal | None:
        """Return the fee, or None if the site is unknown."""
        raise NotImplementedError


class NotificationSender(ABC):
    """Delivers notifications to divers.

    Calls are best-effort: the booking core logs and discards any
    exception raised here.
    """

    @abstractmethod
    def notify(self, diver_id, kind: str, payload: dict) -> None:
        raise NotImplementedError


class PaymentOutcomeSink(ABC):
    """Receives refunds computed by the booking core.

    Money movement happens outside the core. Once executed, the payment
    system reports back through services.record_refund_outcome().
    """

    @abstractmethod
    def request_refund(self, *, booking_id, refund_amount: Decimal, currency: str) -> None:
        raise NotImplementedError


class AuthorizationPolicy(ABC):
    """Capability checks for actors operating on bookings and trips."""

    @abstractmethod
    def can_manage_booking(self, actor, booking) -> AccessDecision:
        """May actor cancel, check in or otherwise change this booking?"""
        raise NotImplementedError

    @abstractmethod
    def can_manage_trip(self, actor, trip) -> AccessDecision:
        """May actor publish, start, complete or cancel this trip?"""
        raise NotImplementedError

    @abstractmethod
    def can_act_as_diver(self, actor, booking) -> AccessDecision:
        """Is actor the diver the booking belongs to?"""
        raise NotImplementedError


# =============================================================================
# Default implementations
# =============================================================================


class DatabaseDiverProfileProvider(DiverProfileProvider):
    """Reads DiverProfile and DiverCertification rows."""

    def get_profile(self, diver_id) -> DiverProfileSnapshot | None:
        from .models import DiverProfile

        profile = (
            DiverProfile.objects.filter(user_id=diver_id)
            .prefetch_related("certifications")
            .first()
        )
        if profile is None:
            return None

        return DiverProfileSnapshot(
            date_of_birth=profile.date_of_birth,
            total_logged_dives=profile.total_logged_dives,
            certifications=tuple(
                CertificationSnapshot(
                    level=cert.level,
                    verification_status=cert.verification_status,
                )
                for cert in profile.certifications.all()
            ),
        )


class DatabaseSiteFeeProvider(SiteFeeProvider):
    """Reads the fee from DiveSite, cached in the Django cache.

    Unknown sites are cached too, as an empty string.
    """

    cache_key_prefix = "bookings:site-fee"

    def cache_key(self, site_id) -> str:
        return f"{self.cache_key_prefix}:{site_id}"

    def get_fee_per_diver(self, site_id) -> Decimal | None:
        key = self.cache_key(site_id)
        cached = cache.get(key)
        if cached is not None:
            return Decimal(cached) if cached != "" else None

        fee = self._lookup(site_id)
        cache.set(
            key,
            "" if fee is None else str(fee),
            timeout=get_setting("SITE_FEE_CACHE_SECONDS"),
        )
        return fee

    def _lookup(self, site_id) -> Decimal | None:
        from .models import DiveSite

        site = DiveSite.objects.filter(pk=site_id).first()
        if site is None:
            logger.debug("Dive site %s not found for fee lookup", site_id)
            return None
        return site.fee_per_diver


class LoggingNotificationSender(NotificationSender):
    """Writes notifications to the log. Replace with a real channel."""

    def notify(self, diver_id, kind: str, payload: dict) -> None:
        logger.info("Notify diver %s: %s %s", diver_id, kind, payload)


class AuditPaymentOutcomeSink(PaymentOutcomeSink):
    """Records refund requests in the audit trail."""

    def request_refund(self, *, booking_id, refund_amount: Decimal, currency: str) -> None:
        from .audit import Actions, log_booking_event
        from .models import Booking

        booking = Booking.objects.get(pk=booking_id)
        log_booking_event(
            action=Actions.REFUND_REQUESTED,
            booking=booking,
            data={
                "refund_amount": str(refund_amount),
                "refund_currency": currency,
            },
        )


class CenterAuthorizationPolicy(AuthorizationPolicy):
    """Diving center membership based authorization.

    - The diver may manage their own booking.
    - The center owner and staff may manage the center's trips and bookings.
    - Django staff users may manage everything.
    """

    def _is_platform_staff(self, actor) -> bool:
        return bool(getattr(actor, "is_staff", False))

    def can_manage_booking(self, actor, booking) -> AccessDecision:
        if actor is None or not getattr(actor, "pk", None):
            return AccessDecision.deny("Authentication required")
        if actor.pk == booking.diver_id:
            return AccessDecision.allow()
        if self._is_platform_staff(actor):
            return AccessDecision.allow()
        if booking.trip.center.is_member(actor):
            return AccessDecision.allow()
        return AccessDecision.deny("You are not allowed to manage this booking")

    def can_manage_trip(self, actor, trip) -> AccessDecision:
        if actor is None or not getattr(actor, "pk", None):
            return AccessDecision.deny("Authentication required")
        if self._is_platform_staff(actor):
            return AccessDecision.allow()
        if trip.center.is_member(actor):
            return AccessDecision.allow()
        return AccessDecision.deny("You are not allowed to manage this trip")

    def can_act_as_diver(self, actor, booking) -> AccessDecision:
        if actor is not None and getattr(actor, "pk", None) == booking.diver_id:
            return AccessDecision.allow()
        return AccessDecision.deny("Only the booking's diver can do this")
