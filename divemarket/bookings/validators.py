"""Input validation for booking requests.

Validators collect every field error and raise a single ValidationError
whose ``errors`` maps field name to messages.
"""

from dataclasses import dataclass, field

from .conf import get_setting
from .exceptions import ValidationError


SPECIAL_REQUESTS_MAX_LENGTH = 1000
DIETARY_REQUIREMENTS_MAX_LENGTH = 500
CANCELLATION_REASON_MIN_LENGTH = 10
CANCELLATION_REASON_MAX_LENGTH = 500

# Allowed equipment size keys and their maximum lengths
EQUIPMENT_SIZE_LIMITS = {
    "wetsuit": 10,
    "bcd": 10,
    "fins": 10,
    "boots": 10,
    "mask": 20,
}


@dataclass
class BookingRequest:
    """A diver's request to book a trip."""

    number_of_divers: int = 1
    needs_equipment: bool = False
    special_requests: str = ""
    dietary_requirements: str = ""
    equipment_sizes: dict = field(default_factory=dict)


@dataclass
class BookingUpdate:
    """Changes a diver may make to a non-terminal booking.

    Fields left as None are not changed.
    """

    special_requests: str | None = None
    dietary_requirements: str | None = None
    equipment_sizes: dict | None = None


def _check_text(errors: dict, name: str, value, max_length: int, required: bool = False) -> None:
    if value is None:
        if required:
            errors.setdefault(name, []).append("Must be text")
        return
    if not isinstance(value, str):
        errors.setdefault(name, []).append("Must be text")
    elif len(value) > max_length:
        errors.setdefault(name, []).append(f"Must be at most {max_length} characters")


def _check_equipment_sizes(errors: dict, sizes, required: bool = False) -> None:
    if sizes is None:
        if required:
            errors.setdefault("equipment_sizes", []).append("Must be a mapping of item to size")
        return
    if not isinstance(sizes, dict):
        errors.setdefault("equipment_sizes", []).append("Must be a mapping of item to size")
        return
    for key, value in sizes.items():
        limit = EQUIPMENT_SIZE_LIMITS.get(key)
        if limit is None:
            errors.setdefault("equipment_sizes", []).append(f"Unknown equipment item: {key}")
        elif not isinstance(value, str) or len(value) > limit:
            errors.setdefault("equipment_sizes", []).append(
                f"Size for {key} must be text of at most {limit} characters"
            )


def validate_booking_request(request: BookingRequest) -> BookingRequest:
    """Validate a booking request.

    Raises:
        ValidationError: With every failing field in ``errors``
    """
    errors = {}
    maximum = get_setting("MAX_DIVERS_PER_BOOKING")

    divers = request.number_of_divers
    if isinstance(divers, bool) or not isinstance(divers, int):
        errors["number_of_divers"] = ["Must be a whole number"]
    elif divers < 1 or divers > maximum:
        errors["number_of_divers"] = [f"Must be between 1 and {maximum}"]

    if not isinstance(request.needs_equipment, bool):
        errors["needs_equipment"] = ["Must be true or false"]

    _check_text(
        errors,
        "special_requests",
        request.special_requests,
        SPECIAL_REQUESTS_MAX_LENGTH,
        required=True,
    )
    _check_text(
        errors,
        "dietary_requirements",
        request.dietary_requirements,
        DIETARY_REQUIREMENTS_MAX_LENGTH,
        required=True,
    )
    _check_equipment_sizes(errors, request.equipment_sizes, required=True)

    if errors:
        raise ValidationError("Invalid booking request", errors=errors)
    return request


def validate_booking_update(update: BookingUpdate) -> BookingUpdate:
    """Validate a booking update.

    Raises:
        ValidationError: With every failing field in ``errors``
    """
    errors = {}
    _check_text(errors, "special_requests", update.special_requests, SPECIAL_REQUESTS_MAX_LENGTH)
    _check_text(
        errors, "dietary_requirements", update.dietary_requirements, DIETARY_REQUIREMENTS_MAX_LENGTH
    )
    _check_equipment_sizes(errors, update.equipment_sizes)

    if errors:
        raise ValidationError("Invalid booking update", errors=errors)
    return update


def validate_cancellation_reason(reason) -> str:
    """Validate and strip a cancellation reason.

    Raises:
        ValidationError: If the reason is not 10 to 500 characters long
    """
    reason = reason.strip() if isinstance(reason, str) else ""
    if not CANCELLATION_REASON_MIN_LENGTH <= len(reason) <= CANCELLATION_REASON_MAX_LENGTH:
        raise ValidationError(
            "Cancellation reason must be between "
            f"{CANCELLATION_REASON_MIN_LENGTH} and {CANCELLATION_REASON_MAX_LENGTH} characters",
            errors={
                "reason": [
                    f"Must be {CANCELLATION_REASON_MIN_LENGTH} to "
                    f"{CANCELLATION_REASON_MAX_LENGTH} characters"
                ]
            },
        )
    return reason
