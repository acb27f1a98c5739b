from __future__ import annotations

from datetime import datetime, timedelta

import pytest
from limits.storage import MemoryStorage

from src.geoattend.geoattend.attendance.service import AttendanceService
from src.geoattend.geoattend.core.enums import EventStatus
from src.geoattend.geoattend.events.model import Event
from src.geoattend.geoattend.events.monitor import EventLifecycleMonitor

from tests.support import VENUE, InMemoryAttendance, InMemoryCounterStore, InMemoryEvents


@pytest.fixture
def fixed_now() -> datetime:
    return datetime(2026, 3, 2, 9, 0, 0)


@pytest.fixture
def events_repo() -> InMemoryEvents:
    return InMemoryEvents()


@pytest.fixture
def attendance_repo() -> InMemoryAttendance:
    return InMemoryAttendance()


@pytest.fixture
def counter_store() -> InMemoryCounterStore:
    return InMemoryCounterStore()


@pytest.fixture
def window_storage() -> MemoryStorage:
    return MemoryStorage()


@pytest.fixture
def make_event(events_repo, fixed_now):
    """Add an event starting at fixed_now and lasting two hours unless overridden."""

    counter = {"next": 0}

    def _make(**overrides) -> Event:
        counter["next"] += 1
        fields = dict(
            event_id=counter["next"],
            name=f"Event {counter['next']}",
            venue=VENUE,
            start_at=fixed_now,
            end_at=fixed_now + timedelta(hours=2),
            check_in_buffer_minutes=30,
            check_out_buffer_minutes=30,
            status=EventStatus.ACTIVE,
            created_by=100,
        )
        fields.update(overrides)
        return events_repo.add(Event(**fields))

    return _make


@pytest.fixture
def attendance_service(attendance_repo, events_repo, fixed_now) -> AttendanceService:
    return AttendanceService(attendance_repo, events_repo, clock=lambda: fixed_now)


@pytest.fixture
def monitor(events_repo, fixed_now) -> EventLifecycleMonitor:
    return EventLifecycleMonitor(events_repo, clock=lambda: fixed_now)
