from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime
from typing import Optional

from ..core.enums import VerificationStatus
from ..geo.model import Coordinate


@dataclass(frozen=True)
class CheckSubmission:
    """One side of an attendance record (check-in or check-out).

    distance_m is always computed server-side from coordinate and venue.
    """

    submitted_at: datetime
    coordinate: Coordinate
    distance_m: float


@dataclass(frozen=True)
class AttendanceRecord:
    """Domain entity: one subject's participation in one event."""

    attendance_id: int
    event_id: int
    subject_id: int
    verification_status: VerificationStatus
    check_in: Optional[CheckSubmission] = None
    check_out: Optional[CheckSubmission] = None
    status_reason: Optional[str] = None
    dispute_note: Optional[str] = None
    resolution_notes: Optional[str] = None
    verified_by: Optional[int] = None
    verified_at: Optional[datetime] = None
    appeal_message: Optional[str] = None
    appealed_at: Optional[datetime] = None
    resolved_by: Optional[int] = None
    resolved_at: Optional[datetime] = None

    @property
    def human_verified(self) -> bool:
        """A moderator decided it, or a dispute over it was resolved."""
        return self.verified_by is not None or self.resolved_by is not None

    @property
    def accepts_automatic_status(self) -> bool:
        """Check-out may still recompute the status: nobody decided and nobody appealed."""
        return not self.human_verified and self.appeal_message is None

    @property
    def has_open_appeal(self) -> bool:
        return self.appeal_message is not None and self.resolved_by is None
