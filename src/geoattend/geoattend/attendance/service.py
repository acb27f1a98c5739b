from __future__ import annotations

from datetime import datetime
from typing import Optional

from ..common.datetime_utils import Clock, fmt_iso, now_local
from ..common.logging import audit, get_logger
from ..common.validators import optional_text, require_length, require_non_empty
from ..core.constants import MAX_NOTE_LENGTH, MIN_APPEAL_LENGTH, MIN_RESOLUTION_LENGTH
from ..core.enums import EventStatus, VerificationStatus
from ..core.exceptions import (
    AlreadyVerifiedError,
    AuthorizationError,
    ConflictError,
    NotFoundError,
    ValidationError,
)
from ..events.model import Event
from ..events.repository import EventRepository
from ..geo.distance import haversine_distance
from ..geo.model import Coordinate
from ..users.model import Principal
from .classifier import ProximityClassifier
from .model import AttendanceRecord, CheckSubmission
from .policy import can_verify as _can_verify
from .repository import AttendanceRepository

logger = get_logger(__name__)


class AttendanceService:
    """Verification state machine for attendance records.

    Automatic writers (check-in/check-out) and human writers (approve/reject,
    dispute resolution) share verification_status; the repository's
    conditional updates keep a human decision from ever being overwritten.
    Once appealed, a record is decided only through resolve_dispute.
    """

    def __init__(
        self,
        attendance: AttendanceRepository,
        events: EventRepository,
        *,
        classifier: ProximityClassifier | None = None,
        clock: Clock = now_local,
    ):
        self._attendance = attendance
        self._events = events
        self._classifier = classifier or ProximityClassifier()
        self._clock = clock

    # ---- reads ----

    def get_record(self, attendance_id: int) -> AttendanceRecord:
        record = self._attendance.get_by_id(int(attendance_id))
        if not record:
            raise NotFoundError("Attendance record not found")
        return record

    def get_event(self, event_id: int) -> Event:
        event = self._events.get_by_id(int(event_id))
        if not event:
            raise NotFoundError("Event not found")
        return event

    def get_event_for_record(self, attendance_id: int) -> Event:
        return self.get_event(self.get_record(attendance_id).event_id)

    def can_verify(self, principal: Principal, event: Event) -> bool:
        return _can_verify(principal, event)

    # ---- automatic transitions ----

    def submit_check_in(
        self,
        event_id: int,
        subject_id: int,
        coordinate: Coordinate,
        *,
        now: datetime | None = None,
    ) -> AttendanceRecord:
        now = now or self._clock()
        event = self.get_event(event_id)
        self._ensure_check_in_open(event, now)

        if self._attendance.get_for_event_and_subject(event.event_id, int(subject_id)):
            raise ValidationError("Already checked in to this event")

        distance = haversine_distance(coordinate, event.as_venue().coordinate)
        decision = self._classifier.classify(distance)

        attendance_id = self._attendance.create_checkin(
            event_id=event.event_id,
            subject_id=int(subject_id),
            check_in=CheckSubmission(submitted_at=now, coordinate=coordinate, distance_m=distance),
            status=decision.status,
            status_reason=decision.note,
            verified_at=now if decision.status == VerificationStatus.APPROVED else None,
        )
        if attendance_id is None:
            # Lost the race against a concurrent submission for the same pair.
            raise ValidationError("Already checked in to this event")

        logger.info("Check-in %s for event %s: %.1fm -> %s", attendance_id, event.event_id, distance, decision.status.value)
        audit(
            "ATTENDANCE_CHECKED_IN",
            attendance_id=attendance_id,
            event_id=event.event_id,
            subject_id=int(subject_id),
            distance_m=distance,
            status=decision.status.value,
        )
        return self.get_record(attendance_id)

    def submit_check_out(
        self,
        attendance_id: int,
        coordinate: Coordinate,
        *,
        now: datetime | None = None,
    ) -> AttendanceRecord:
        now = now or self._clock()
        record = self.get_record(attendance_id)
        if record.check_in is None:
            raise ValidationError("Must check in before checking out")
        if record.check_out is not None:
            raise ValidationError("Already checked out of this event")

        event = self.get_event(record.event_id)
        self._ensure_check_out_open(event, now)

        distance = haversine_distance(coordinate, event.as_venue().coordinate)
        decision = self._classifier.classify(record.check_in.distance_m, distance)

        applied = self._attendance.record_checkout(
            attendance_id=record.attendance_id,
            check_out=CheckSubmission(submitted_at=now, coordinate=coordinate, distance_m=distance),
            status=decision.status,
            status_reason=decision.note,
            verified_at=now if decision.status == VerificationStatus.APPROVED else None,
        )
        if not applied:
            raise ConflictError("Check-out was already recorded by a concurrent request")

        updated = self.get_record(record.attendance_id)
        if not updated.accepts_automatic_status:
            logger.info(
                "Check-out %s stored; kept decided or appealed status %s (auto result was %s)",
                updated.attendance_id,
                updated.verification_status.value,
                decision.status.value,
            )
        audit(
            "ATTENDANCE_CHECKED_OUT",
            attendance_id=updated.attendance_id,
            event_id=updated.event_id,
            subject_id=updated.subject_id,
            distance_m=distance,
            status=updated.verification_status.value,
        )
        return updated

    # ---- manual transitions ----

    def approve(
        self,
        attendance_id: int,
        verifier_id: int,
        *,
        resolution_notes: Optional[str] = None,
        now: datetime | None = None,
    ) -> AttendanceRecord:
        notes = optional_text(resolution_notes, "Resolution notes", max_len=MAX_NOTE_LENGTH)
        return self._decide(
            attendance_id,
            verifier_id,
            status=VerificationStatus.APPROVED,
            dispute_note=None,
            resolution_notes=notes,
            now=now,
        )

    def reject(
        self,
        attendance_id: int,
        verifier_id: int,
        dispute_note: Optional[str],
        *,
        resolution_notes: Optional[str] = None,
        now: datetime | None = None,
    ) -> AttendanceRecord:
        note = require_non_empty(dispute_note, "Dispute note")
        note = require_length(note, "Dispute note", max_len=MAX_NOTE_LENGTH)
        notes = optional_text(resolution_notes, "Resolution notes", max_len=MAX_NOTE_LENGTH)
        return self._decide(
            attendance_id,
            verifier_id,
            status=VerificationStatus.REJECTED,
            dispute_note=note,
            resolution_notes=notes,
            now=now,
        )

    def _decide(
        self,
        attendance_id: int,
        verifier_id: int,
        *,
        status: VerificationStatus,
        dispute_note: Optional[str],
        resolution_notes: Optional[str],
        now: datetime | None,
    ) -> AttendanceRecord:
        now = now or self._clock()
        record = self.get_record(attendance_id)
        if record.human_verified:
            raise AlreadyVerifiedError("Attendance has already been verified")
        if record.has_open_appeal:
            raise ValidationError("Attendance has an open appeal; resolve the dispute instead")

        applied = self._attendance.record_decision(
            attendance_id=record.attendance_id,
            status=status,
            verifier_id=int(verifier_id),
            verified_at=now,
            dispute_note=dispute_note,
            resolution_notes=resolution_notes,
        )
        if not applied:
            # Another verifier or an appeal got there between our read and the write.
            raise AlreadyVerifiedError("Attendance has already been verified")

        event_name = "ATTENDANCE_VERIFIED" if status == VerificationStatus.APPROVED else "ATTENDANCE_REJECTED"
        audit(
            event_name,
            attendance_id=record.attendance_id,
            event_id=record.event_id,
            verifier_id=int(verifier_id),
            previous_status=record.verification_status.value,
            dispute_note=dispute_note,
        )
        return self.get_record(record.attendance_id)

    # ---- appeals ----

    def appeal(
        self,
        attendance_id: int,
        subject_id: int,
        message: Optional[str],
        *,
        now: datetime | None = None,
    ) -> AttendanceRecord:
        now = now or self._clock()
        text = require_length(message, "Appeal message", min_len=MIN_APPEAL_LENGTH, max_len=MAX_NOTE_LENGTH)

        record = self.get_record(attendance_id)
        if record.subject_id != int(subject_id):
            raise AuthorizationError("You can only appeal your own attendance")
        if record.appeal_message is not None:
            raise ValidationError("This attendance has already been appealed")
        if record.verification_status != VerificationStatus.REJECTED:
            raise ValidationError("Only rejected attendance can be appealed")

        if not self._attendance.record_appeal(attendance_id=record.attendance_id, appeal_message=text, appealed_at=now):
            raise ConflictError("Attendance changed while the appeal was submitted")

        audit("ATTENDANCE_APPEALED", attendance_id=record.attendance_id, subject_id=record.subject_id)
        return self.get_record(record.attendance_id)

    def resolve_dispute(
        self,
        attendance_id: int,
        resolver_id: int,
        status: VerificationStatus,
        resolution_notes: Optional[str],
        *,
        now: datetime | None = None,
    ) -> AttendanceRecord:
        now = now or self._clock()
        try:
            status = VerificationStatus(status)
        except ValueError:
            raise ValidationError(f"Unknown verification status: {status}")
        if status == VerificationStatus.PENDING:
            raise ValidationError("A dispute resolves to Approved or Rejected")
        notes = require_length(
            resolution_notes, "Resolution notes", min_len=MIN_RESOLUTION_LENGTH, max_len=MAX_NOTE_LENGTH
        )

        record = self.get_record(attendance_id)
        if record.resolved_by is not None:
            raise AlreadyVerifiedError("Dispute has already been resolved")
        if record.appeal_message is None:
            raise ValidationError("Attendance has no open appeal")

        applied = self._attendance.record_resolution(
            attendance_id=record.attendance_id,
            status=status,
            resolver_id=int(resolver_id),
            resolved_at=now,
            resolution_notes=notes,
        )
        if not applied:
            raise AlreadyVerifiedError("Dispute has already been resolved")

        audit(
            "ATTENDANCE_DISPUTE_RESOLVED",
            attendance_id=record.attendance_id,
            resolver_id=int(resolver_id),
            status=status.value,
        )
        return self.get_record(record.attendance_id)

    # ---- windows ----

    def _ensure_check_in_open(self, event: Event, now: datetime) -> None:
        if event.status != EventStatus.ACTIVE:
            raise ValidationError(f"Event is {event.status.value.lower()}; check-in is closed")
        if now < event.check_in_opens_at():
            raise ValidationError(f"Check-in opens at {fmt_iso(event.check_in_opens_at())}")
        if now > event.check_in_closes_at():
            raise ValidationError(f"Check-in closed at {fmt_iso(event.check_in_closes_at())}")

    def _ensure_check_out_open(self, event: Event, now: datetime) -> None:
        if event.status != EventStatus.ACTIVE:
            raise ValidationError(f"Event is {event.status.value.lower()}; check-out is closed")
        if now < event.check_out_opens_at():
            raise ValidationError(f"Check-out opens at {fmt_iso(event.check_out_opens_at())}")
        if now > event.check_out_closes_at():
            raise ValidationError(f"Check-out closed at {fmt_iso(event.check_out_closes_at())}")
