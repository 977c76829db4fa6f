"""Database models."""

from washpoint.models.admin import AuditLog
from washpoint.models.booking import Booking, CheckInHistory
from washpoint.models.facility import Facility, Room
from washpoint.models.operations import Incident, InventoryItem, MaintenanceTask
from washpoint.models.review import Review
from washpoint.models.user import User

__all__ = [
    # User
    "User",
    # Catalog
    "Facility",
    "Room",
    # Booking
    "Booking",
    "CheckInHistory",
    # Review
    "Review",
    # Operations
    "Incident",
    "InventoryItem",
    "MaintenanceTask",
    # Admin
    "AuditLog",
]
