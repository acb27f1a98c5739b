"""In-memory fakes for the repository and counter-store protocols."""
from __future__ import annotations

from dataclasses import replace
from datetime import datetime
from typing import Optional

from src.geoattend.geoattend.attendance.model import AttendanceRecord
from src.geoattend.geoattend.core.enums import EventStatus, VerificationStatus
from src.geoattend.geoattend.events.model import Event
from src.geoattend.geoattend.geo.model import Coordinate
from src.geoattend.geoattend.ratelimit.store import CounterStoreError, refill_bucket

VENUE = Coordinate(9.787448, 125.494373)


def offset_north(coordinate: Coordinate, degrees: float) -> Coordinate:
    # 0.00018 deg of latitude is about 20 m
    return Coordinate(coordinate.latitude + degrees, coordinate.longitude)


class InMemoryEvents:
    def __init__(self):
        self.events: dict[int, Event] = {}
        self.complete_calls = 0

    def add(self, event: Event) -> Event:
        self.events[event.event_id] = event
        return event

    def get_by_id(self, event_id: int) -> Optional[Event]:
        return self.events.get(int(event_id))

    def find_active_events_ending_before(self, moment: datetime):
        return [e for e in self.events.values() if e.status == EventStatus.ACTIVE and e.end_at <= moment]

    def complete_if_active(self, event_ids) -> int:
        self.complete_calls += 1
        changed = 0
        for event_id in event_ids:
            e = self.events.get(int(event_id))
            if e and e.status == EventStatus.ACTIVE:
                self.events[e.event_id] = replace(e, status=EventStatus.COMPLETED)
                changed += 1
        return changed

    def update_qr_payload(self, event_id: int, payload: str) -> bool:
        e = self.events.get(int(event_id))
        if not e or e.status != EventStatus.ACTIVE:
            return False
        self.events[e.event_id] = replace(e, qr_payload=payload)
        return True


class InMemoryAttendance:
    """Mirrors the conditional UPDATEs of the MySQL repository."""

    def __init__(self):
        self.records: dict[int, AttendanceRecord] = {}
        self._id = 0

    def get_by_id(self, attendance_id: int) -> Optional[AttendanceRecord]:
        return self.records.get(int(attendance_id))

    def get_for_event_and_subject(self, event_id: int, subject_id: int) -> Optional[AttendanceRecord]:
        for r in self.records.values():
            if r.event_id == event_id and r.subject_id == subject_id:
                return r
        return None

    def create_checkin(self, *, event_id, subject_id, check_in, status, status_reason, verified_at) -> Optional[int]:
        if self.get_for_event_and_subject(event_id, subject_id):
            return None
        self._id += 1
        self.records[self._id] = AttendanceRecord(
            attendance_id=self._id,
            event_id=event_id,
            subject_id=subject_id,
            verification_status=status,
            check_in=check_in,
            status_reason=status_reason,
            verified_at=verified_at,
        )
        return self._id

    def record_checkout(self, *, attendance_id, check_out, status, status_reason, verified_at) -> bool:
        r = self.records.get(attendance_id)
        if not r or r.check_out is not None:
            return False
        r = replace(r, check_out=check_out)
        if r.accepts_automatic_status:
            r = replace(r, verification_status=status, status_reason=status_reason, verified_at=verified_at)
        self.records[attendance_id] = r
        return True

    def record_decision(
        self, *, attendance_id, status, verifier_id, verified_at, dispute_note=None, resolution_notes=None
    ) -> bool:
        r = self.records.get(attendance_id)
        if not r or not r.accepts_automatic_status:
            return False
        self.records[attendance_id] = replace(
            r,
            verification_status=status,
            verified_by=verifier_id,
            verified_at=verified_at,
            dispute_note=dispute_note,
            resolution_notes=resolution_notes,
        )
        return True

    def record_appeal(self, *, attendance_id, appeal_message, appealed_at) -> bool:
        r = self.records.get(attendance_id)
        if not r or r.verification_status != VerificationStatus.REJECTED or r.appeal_message is not None:
            return False
        self.records[attendance_id] = replace(
            r,
            verification_status=VerificationStatus.PENDING,
            appeal_message=appeal_message,
            appealed_at=appealed_at,
        )
        return True

    def record_resolution(self, *, attendance_id, status, resolver_id, resolved_at, resolution_notes) -> bool:
        r = self.records.get(attendance_id)
        if not r or r.appeal_message is None or r.resolved_by is not None:
            return False
        self.records[attendance_id] = replace(
            r,
            verification_status=status,
            resolved_by=resolver_id,
            resolved_at=resolved_at,
            resolution_notes=resolution_notes,
        )
        return True


class InMemoryCounterStore:
    """Single-process stand-in for the Redis token bucket store; expiry is not modelled."""

    def __init__(self):
        self.buckets: dict[str, tuple[int, int]] = {}
        self.failing = False

    def _check(self):
        if self.failing:
            raise CounterStoreError("store down")

    def debit_token(self, key, *, capacity, refill_tokens, refill_interval_ms, now_ms):
        self._check()
        if key in self.buckets:
            tokens, refilled_at = refill_bucket(
                *self.buckets[key],
                capacity=capacity,
                refill_tokens=refill_tokens,
                refill_interval_ms=refill_interval_ms,
                now_ms=now_ms,
            )
        else:
            tokens, refilled_at = capacity, now_ms
        allowed = tokens > 0
        if allowed:
            tokens -= 1
        self.buckets[key] = (tokens, refilled_at)
        return allowed, tokens, refilled_at + refill_interval_ms

    def delete(self, *keys: str) -> None:
        self._check()
        for key in keys:
            self.buckets.pop(key, None)


