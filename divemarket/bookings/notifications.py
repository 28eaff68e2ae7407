"""Best-effort notification dispatch.

Notifications are emitted after the surrounding transaction commits, so a
rolled back operation never notifies anyone. Delivery failures are logged
and discarded: they never block or reverse the state change that
triggered them.
"""

import logging
from functools import partial

from django.db import transaction

from .conf import get_notification_sender


logger = logging.getLogger(__name__)


WAITLIST_SPOT_AVAILABLE = "waitlist_spot_available"
TRIP_CANCELLED = "trip_cancelled"


def dispatch_notification(diver_id, kind: str, payload: dict, *, sender=None) -> None:
    """Schedule a notification for delivery once the transaction commits.

    Args:
        diver_id: Recipient diver (user) primary key
        kind: Notification kind, e.g. WAITLIST_SPOT_AVAILABLE
        payload: JSON-serialisable details
        sender: NotificationSender (defaults to the configured one)
    """
    sender = sender or get_notification_sender()
    transaction.on_commit(partial(_deliver, sender, diver_id, kind, payload))


def _deliver(sender, diver_id, kind: str, payload: dict) -> None:
    try:
        sender.notify(diver_id, kind, payload)
    except Exception:
        logger.exception("Failed to deliver %s notification to diver %s", kind, diver_id)
