"""Exceptions for the booking core.

Eligibility failure and waitlisting are not exceptions; they are returned
as results by the services that produce them.
"""


class BookingsError(Exception):
    """Base exception for booking operations."""


class ValidationError(BookingsError):
    """Malformed input or an operation not allowed in the current state.

    Attributes:
        errors: Optional mapping of field name to list of messages
    """

    def __init__(self, message, errors=None):
        super().__init__(message)
        self.message = message
        self.errors = errors or {}


class NotFoundError(BookingsError):
    """Unknown trip, booking, or waiting list entry."""


class ConflictError(BookingsError):
    """Operation conflicts with existing state."""


class ForbiddenError(BookingsError):
    """Actor lacks rights over the booking or trip."""


class InvalidStatusTransition(ValidationError):
    """Status transition not allowed from the current status."""


class TripNotBookable(ValidationError):
    """Trip is not open for bookings or waiting list joins."""


class DuplicateBookingError(ConflictError):
    """Diver already has an active booking for this trip."""


class AlreadyWaitlistedError(ConflictError):
    """Diver is already on the waiting list for this trip."""
