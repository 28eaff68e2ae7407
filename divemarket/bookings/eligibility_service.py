"""Eligibility service for booking trips.

Decides whether a diver may book a trip based on the trip's policy:
- min_age / max_age against the diver's age in whole years
- min_logged_dives against the diver's total logged dives
- min_certification_level against the diver's verified certifications

All rules are evaluated independently and every failing rule contributes
a reason. Ineligibility is a normal result, never an exception.
"""

from dataclasses import dataclass, field
from datetime import date

from django.utils import timezone

from .conf import get_diver_profile_provider
from .integrations import DiverProfileSnapshot


# Ordered lowest to highest. Compared case-insensitively.
CERTIFICATION_LEVELS = (
    "Open Water",
    "Advanced Open Water",
    "Rescue Diver",
    "Divemaster",
    "Instructor",
)

_LEVEL_RANKS = {level.lower(): rank for rank, level in enumerate(CERTIFICATION_LEVELS)}

ADULT_AGE = 18

PROFILE_INCOMPLETE_REASON = "Diver profile not found - please complete your profile"


@dataclass(frozen=True)
class EligibilityResult:
    """Immutable result of an eligibility check.

    Attributes:
        eligible: True if the diver meets every requirement
        reasons: One message per failing requirement (empty if eligible)
    """

    eligible: bool
    reasons: tuple[str, ...] = field(default_factory=tuple)

    def __bool__(self) -> bool:
        return self.eligible


def certification_rank(level: str | None) -> int | None:
    """Rank of a level in CERTIFICATION_LEVELS, or None if unknown."""
    if not level:
        return None
    return _LEVEL_RANKS.get(level.strip().lower())


def calculate_age(date_of_birth: date, today: date) -> int:
    """Age in whole years on the given day."""
    age = today.year - date_of_birth.year
    if (today.month, today.day) < (date_of_birth.month, date_of_birth.day):
        age -= 1
    return age


def is_minor(date_of_birth: date | None, today: date) -> bool:
    """True if the diver is under 18. Unknown birth dates are not minors."""
    if date_of_birth is None:
        return False
    return calculate_age(date_of_birth, today) < ADULT_AGE


def is_gated(trip) -> bool:
    """True if the trip requires dive experience or a certification."""
    return trip.min_logged_dives > 0 or bool(trip.min_certification_level)


def evaluate_eligibility(
    profile: DiverProfileSnapshot | None,
    trip,
    *,
    today: date,
) -> EligibilityResult:
    """Evaluate a diver profile against a trip's eligibility policy.

    Pure function: no database access.

    Args:
        profile: The diver's attributes, or None if no profile exists
        trip: Any object with min_age, max_age, min_logged_dives and
            min_certification_level attributes
        today: Reference day for age calculation

    Returns:
        EligibilityResult with every failing reason
    """
    reasons = []

    if profile is None:
        if is_gated(trip):
            reasons.append(PROFILE_INCOMPLETE_REASON)
        return EligibilityResult(eligible=not reasons, reasons=tuple(reasons))

    if profile.date_of_birth is not None:
        age = calculate_age(profile.date_of_birth, today)
        if trip.min_age is not None and age < trip.min_age:
            reasons.append(f"Minimum age is {trip.min_age} years (you are {age})")
        if trip.max_age is not None and age > trip.max_age:
            reasons.append(f"Maximum age is {trip.max_age} years (you are {age})")

    if trip.min_logged_dives > 0 and profile.total_logged_dives < trip.min_logged_dives:
        reasons.append(
            f"Minimum {trip.min_logged_dives} logged dives required "
            f"(you have {profile.total_logged_dives})"
        )

    required_rank = certification_rank(trip.min_certification_level)
    if required_rank is not None:
        held_ranks = [
            rank
            for rank in (
                certification_rank(cert.level)
                for cert in profile.certifications
                if cert.is_verified
            )
            if rank is not None
        ]
        if not held_ranks or max(held_ranks) < required_rank:
            reasons.append(
                f"{CERTIFICATION_LEVELS[required_rank]} certification or higher required"
            )

    return EligibilityResult(eligible=not reasons, reasons=tuple(reasons))


def check_eligibility(
    *,
    trip_id,
    diver_id,
    profile_provider=None,
    today: date | None = None,
) -> EligibilityResult:
    """Check whether a diver may book a trip.

    Args:
        trip_id: Trip primary key
        diver_id: Diver (user) primary key
        profile_provider: DiverProfileProvider (defaults to the configured one)
        today: Reference day (defaults to the current local date)

    Returns:
        EligibilityResult

    Raises:
        NotFoundError: If the trip does not exist
    """
    from .selectors import get_trip

    trip = get_trip(trip_id)
    provider = profile_provider or get_diver_profile_provider()
    profile = provider.get_profile(diver_id)
    return evaluate_eligibility(profile, trip, today=today or timezone.localdate())
