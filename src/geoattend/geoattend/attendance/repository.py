from __future__ import annotations

from datetime import datetime
from typing import Optional, Protocol

from ..core.enums import VerificationStatus
from .model import AttendanceRecord, CheckSubmission


class AttendanceRepository(Protocol):
    """Persistence contract for attendance records.

    Every write that can race is conditional and reports whether it applied;
    the service turns a False into the matching typed error.
    """

    def get_by_id(self, attendance_id: int) -> Optional[AttendanceRecord]:
        raise NotImplementedError

    def get_for_event_and_subject(self, event_id: int, subject_id: int) -> Optional[AttendanceRecord]:
        raise NotImplementedError

    def create_checkin(
        self,
        *,
        event_id: int,
        subject_id: int,
        check_in: CheckSubmission,
        status: VerificationStatus,
        status_reason: Optional[str],
        verified_at: Optional[datetime],
    ) -> Optional[int]:
        """Insert a new record. Returns None when (event, subject) already exists."""

        raise NotImplementedError

    def record_checkout(
        self,
        *,
        attendance_id: int,
        check_out: CheckSubmission,
        status: VerificationStatus,
        status_reason: Optional[str],
        verified_at: Optional[datetime],
    ) -> bool:
        """Store check-out fields if none are stored yet.

        status/status_reason/verified_at are applied only while verified_by is
        NULL; a human decision is never overwritten.
        """

        raise NotImplementedError

    def record_decision(
        self,
        *,
        attendance_id: int,
        status: VerificationStatus,
        verifier_id: int,
        verified_at: datetime,
        dispute_note: Optional[str] = None,
        resolution_notes: Optional[str] = None,
    ) -> bool:
        """Manual decision, applied only while verified_by is NULL."""

        raise NotImplementedError

    def record_appeal(self, *, attendance_id: int, appeal_message: str, appealed_at: datetime) -> bool:
        """Rejected -> Pending, applied only once and only on a Rejected record."""

        raise NotImplementedError

    def record_resolution(
        self,
        *,
        attendance_id: int,
        status: VerificationStatus,
        resolver_id: int,
        resolved_at: datetime,
        resolution_notes: str,
    ) -> bool:
        """Closes an open appeal, applied only while resolved_by is NULL."""

        raise NotImplementedError
