from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime
from typing import List, Optional

from ..attendance.repository import AttendanceRepository
from ..common.datetime_utils import Clock, fmt_iso, now_local
from ..core.enums import EventStatus, RateLimitPolicy
from ..core.exceptions import NotFoundError, ValidationError
from ..ratelimit.service import RateLimitService
from .model import Event
from .qr import parse_qr_payload
from .repository import EventRepository


@dataclass(frozen=True)
class QRValidationResult:
    event: Event
    opens_at: datetime
    closes_at: datetime
    is_open: bool
    has_checked_in: bool
    errors: List[str] = field(default_factory=list)

    @property
    def valid(self) -> bool:
        return not self.errors

    @property
    def event_id(self) -> int:
        return self.event.event_id


class QRValidationService:
    """Pre-check a scanned QR code before the attendance form is shown.

    Problems the student can act on are reported in the result, not raised.
    """

    def __init__(
        self,
        events: EventRepository,
        attendance: AttendanceRepository,
        rate_limits: RateLimitService,
        *,
        clock: Clock = now_local,
    ):
        self._events = events
        self._attendance = attendance
        self._rate_limits = rate_limits
        self._clock = clock

    def validate(
        self,
        payload: Optional[str],
        ip_address: Optional[str],
        subject_id: int,
        *,
        now: datetime | None = None,
    ) -> QRValidationResult:
        now = now or self._clock()
        self._rate_limits.enforce(ip_address or "unknown", RateLimitPolicy.QR_VALIDATION, now=now)

        parsed = parse_qr_payload(payload)
        if parsed is None:
            raise ValidationError("Invalid QR code format")

        event = self._events.get_by_id(parsed.event_id)
        if not event:
            raise NotFoundError("Event not found for QR code")

        # The QR stays usable across the whole event, from check-in opening to check-out closing.
        opens_at = event.check_in_opens_at()
        closes_at = event.check_out_closes_at()
        is_open = opens_at <= now <= closes_at

        errors: List[str] = []
        if event.status == EventStatus.CANCELLED:
            errors.append("Event has been cancelled")
        elif event.status == EventStatus.COMPLETED:
            errors.append("Event has been completed")

        if not is_open:
            if now < opens_at:
                errors.append(f"Check-in opens at {fmt_iso(opens_at)}")
            else:
                errors.append(f"Check-in window closed at {fmt_iso(closes_at)}")

        existing = self._attendance.get_for_event_and_subject(event.event_id, int(subject_id))
        if existing:
            errors.append("You have already checked in to this event")

        if event.qr_payload != (payload or "").strip():
            errors.append("This QR code has been regenerated. Please scan the latest QR code.")

        return QRValidationResult(
            event=event,
            opens_at=opens_at,
            closes_at=closes_at,
            is_open=is_open,
            has_checked_in=existing is not None,
            errors=errors,
        )
