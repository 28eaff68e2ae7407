"""Booking core models package.

Import from divemarket.bookings.models:
    from divemarket.bookings.models import Trip, Booking

- base.py: BaseModel (UUID primary key + timestamps)
- centers.py: DivingCenter
- sites.py: DiveSite
- diver.py: DiverProfile, DiverCertification
- trips.py: Trip
- bookings.py: Booking
- waitlist.py: WaitingListEntry
"""

from .bookings import Booking
from .centers import DivingCenter
from .diver import DiverCertification, DiverProfile
from .sites import DiveSite
from .trips import Trip
from .waitlist import WaitingListEntry

__all__ = [
    "Booking",
    "DiveSite",
    "DiverCertification",
    "DiverProfile",
    "DivingCenter",
    "Trip",
    "WaitingListEntry",
]
