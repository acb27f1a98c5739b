from __future__ import annotations

from enum import Enum


class Role(str, Enum):
    """Roles used for authorization decisions."""

    STUDENT = "Student"
    MODERATOR = "Moderator"
    ADMINISTRATOR = "Administrator"


class VerificationStatus(str, Enum):
    """Audit-relevant status of an attendance record."""

    PENDING = "Pending"
    APPROVED = "Approved"
    REJECTED = "Rejected"


class EventStatus(str, Enum):
    ACTIVE = "Active"
    COMPLETED = "Completed"
    CANCELLED = "Cancelled"


class RateLimitPolicy(str, Enum):
    """Which limiter guards a boundary."""

    AUTH = "auth"
    QR_VALIDATION = "qr"
