from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime, timedelta
from typing import Optional

from ..core.enums import EventStatus
from ..geo.model import Coordinate, Venue


@dataclass(frozen=True)
class Event:
    """Domain entity: an event students attend at a fixed venue."""

    event_id: int
    name: str
    venue: Coordinate
    start_at: datetime
    end_at: datetime
    check_in_buffer_minutes: int
    check_out_buffer_minutes: int
    status: EventStatus
    created_by: Optional[int] = None
    qr_payload: Optional[str] = None

    def as_venue(self) -> Venue:
        """The geofence centre attendance distances are measured against."""
        return Venue(event_id=self.event_id, coordinate=self.venue, name=self.name)

    def check_in_opens_at(self) -> datetime:
        return self.start_at - timedelta(minutes=self.check_in_buffer_minutes)

    def check_in_closes_at(self) -> datetime:
        return self.start_at

    def check_out_opens_at(self) -> datetime:
        return self.end_at

    def check_out_closes_at(self) -> datetime:
        """Also the moment after which the lifecycle monitor completes the event."""
        return self.end_at + timedelta(minutes=self.check_out_buffer_minutes)

    def is_expired(self, now: datetime) -> bool:
        return self.end_at <= now and self.check_out_closes_at() < now


@dataclass(frozen=True)
class SweepResult:
    transitioned: int
    candidates: int
    ran_at: datetime
