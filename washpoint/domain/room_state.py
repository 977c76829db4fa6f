"""Room occupancy states.

Lifecycle-driven moves (reserve, check-in, walk-in, release) are applied by the
booking service. Providers may only toggle a free room in and out of
maintenance by hand.
"""

from washpoint.core.exceptions import ValidationError

ROOM_STATUSES = ("available", "booked", "occupied", "maintenance")
ROOM_TYPES = ("single", "couple", "family")

# Status a room must be in before each lifecycle effect, and the status it moves to.
LIFECYCLE_EFFECTS = {
    "reserve": ({"available"}, "booked"),
    "check_in": ({"booked"}, "occupied"),
    "walk_in": ({"available"}, "occupied"),
    "release": ({"booked", "occupied"}, "available"),
}

MANUAL_TRANSITIONS = {
    "available": {"maintenance"},
    "maintenance": {"available"},
    "booked": set(),
    "occupied": set(),
}

# Rooms in these states hold a live booking and cannot be deleted.
HELD_STATUSES = frozenset({"booked", "occupied"})


def assert_manual_room_transition(current: str, target: str) -> None:
    """Validate a provider-initiated status change."""
    if target not in ROOM_STATUSES:
        raise ValidationError(f"Unknown room status: {target}")
    if current == target:
        return
    if target not in MANUAL_TRANSITIONS.get(current, set()):
        raise ValidationError(
            f"Room status cannot be changed by hand: {current} → {target}"
        )


def can_delete_room(status: str) -> tuple[bool, str | None]:
    """Check if a room can be removed.

    Returns:
        Tuple of (can_delete, error_message)
    """
    if status in HELD_STATUSES:
        return False, f"Room is {status} and cannot be deleted"
    return True, None
