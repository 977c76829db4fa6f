"""Booking state machine.

States:
- pending: Hold placed, waiting for the customer to scan in
- checked_in: Customer is on site
- completed: Checked out and paid
- cancelled: Released by the customer, provider or admin before arrival
- expired: Hold window elapsed without a check-in
"""

from datetime import UTC, datetime, timedelta

from washpoint.config import BOOKING_HOLD_MINUTES
from washpoint.core.exceptions import InvalidBookingStatus

BOOKING_TRANSITIONS = {
    "pending": {"checked_in", "cancelled", "expired"},
    "checked_in": {"completed"},
    "completed": set(),
    "cancelled": set(),
    "expired": set(),
}

ACTIVE_STATUSES = frozenset({"pending", "checked_in"})
TERMINAL_STATUSES = frozenset({"completed", "cancelled", "expired"})

# Bookings without a specific room carry this value in place of a room id.
GENERAL_ROOM = "general"

HOLD_WINDOW = timedelta(minutes=BOOKING_HOLD_MINUTES)


def assert_booking_transition(current: str, target: str) -> None:
    """Validate booking state transition.

    Raises:
        InvalidBookingStatus: If transition is not allowed
    """
    allowed = BOOKING_TRANSITIONS.get(current, set())
    if target not in allowed:
        raise InvalidBookingStatus(f"Invalid booking transition: {current} → {target}")


def hold_expiry(booking_time: datetime) -> datetime:
    """Deadline of a hold placed at ``booking_time``."""
    return booking_time + HOLD_WINDOW


def as_utc(value: datetime) -> datetime:
    """Treat naive timestamps read back from the database as UTC."""
    if value.tzinfo is None:
        return value.replace(tzinfo=UTC)
    return value


def is_hold_expired(expiry_time: datetime, now: datetime | None = None) -> bool:
    now = now or datetime.now(UTC)
    return as_utc(expiry_time) <= as_utc(now)
