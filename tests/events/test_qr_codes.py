from __future__ import annotations

from dataclasses import replace
from datetime import timedelta

import pytest

from src.geoattend.geoattend.common.datetime_utils import to_epoch_ms
from src.geoattend.geoattend.container import wire
from src.geoattend.geoattend.core.enums import EventStatus
from src.geoattend.geoattend.core.exceptions import NotFoundError, RateLimitExceeded, ValidationError
from src.geoattend.geoattend.events.qr import build_qr_payload, parse_qr_payload, render_qr_png

from tests.support import VENUE


def test_build_payload_is_attendance_url(fixed_now):
    payload = build_qr_payload(12, "https://attend.example.edu/", now=fixed_now)

    assert payload == f"https://attend.example.edu/attendance/12?t={to_epoch_ms(fixed_now)}&src=qr"


def test_build_payload_requires_absolute_base_url(fixed_now):
    with pytest.raises(ValueError):
        build_qr_payload(12, "attend.example.edu", now=fixed_now)


def test_parse_url_payload(fixed_now):
    parsed = parse_qr_payload(build_qr_payload(12, "https://attend.example.edu", now=fixed_now))

    assert parsed.event_id == 12
    assert parsed.timestamp_ms == to_epoch_ms(fixed_now)
    assert parsed.source == "qr"


def test_parse_legacy_payload():
    parsed = parse_qr_payload("attendance:34:1767225600000")

    assert parsed.event_id == 34
    assert parsed.timestamp_ms == 1767225600000
    assert parsed.source is None


@pytest.mark.parametrize(
    "payload",
    [None, "", "hello", "https://attend.example.edu/events/12", "attendance:abc:1", "/attendance/12?t=1"],
)
def test_parse_rejects_unknown_formats(payload):
    assert parse_qr_payload(payload) is None


def test_render_png():
    png = render_qr_png("https://attend.example.edu/attendance/1?t=1&src=qr")
    assert png[:8] == b"\x89PNG\r\n\x1a\n"


@pytest.fixture
def container(events_repo, attendance_repo, counter_store, fixed_now):
    return wire(
        events_repo=events_repo,
        attendance_repo=attendance_repo,
        counter_store=counter_store,
        rate_limit_enabled=True,
        qr_limit=(2, 2, 60),
        app_url="https://attend.example.edu",
        clock=lambda: fixed_now,
    )


def _event_with_qr(make_event, fixed_now, **overrides):
    event = make_event(**overrides)
    return event, build_qr_payload(event.event_id, "https://attend.example.edu", now=fixed_now)


def test_validate_reports_valid_for_open_event(container, make_event, events_repo, fixed_now):
    event, payload = _event_with_qr(make_event, fixed_now)
    events_repo.add(replace(event, qr_payload=payload))

    result = container.qr_validation_service.validate(payload, "10.0.0.1", 7, now=fixed_now)

    assert result.valid
    assert result.event_id == event.event_id
    assert result.is_open
    assert result.opens_at == fixed_now - timedelta(minutes=30)
    assert result.closes_at == event.end_at + timedelta(minutes=30)


def test_validate_collects_problems_without_raising(container, make_event, events_repo, attendance_service, fixed_now):
    event, payload = _event_with_qr(make_event, fixed_now)
    events_repo.add(replace(event, qr_payload=payload))
    attendance_service.submit_check_in(event.event_id, 7, VENUE, now=fixed_now)
    events_repo.add(replace(events_repo.get_by_id(event.event_id), status=EventStatus.CANCELLED, qr_payload="stale"))

    result = container.qr_validation_service.validate(payload, "10.0.0.1", 7, now=fixed_now + timedelta(hours=4))

    assert not result.valid
    assert result.has_checked_in
    assert not result.is_open
    assert "Event has been cancelled" in result.errors
    assert "You have already checked in to this event" in result.errors
    assert any(e.startswith("Check-in window closed") for e in result.errors)
    assert any("regenerated" in e for e in result.errors)


def test_validate_raises_for_bad_payload_and_unknown_event(container, fixed_now):
    with pytest.raises(ValidationError):
        container.qr_validation_service.validate("not a qr", "10.0.0.1", 7, now=fixed_now)
    with pytest.raises(NotFoundError):
        container.qr_validation_service.validate("attendance:999:1", "10.0.0.1", 7, now=fixed_now)


def test_validate_is_rate_limited_per_ip(container, fixed_now):
    for _ in range(2):
        with pytest.raises(NotFoundError):
            container.qr_validation_service.validate("attendance:999:1", "10.0.0.1", 7, now=fixed_now)

    with pytest.raises(RateLimitExceeded) as exc:
        container.qr_validation_service.validate("attendance:999:1", "10.0.0.1", 7, now=fixed_now)
    assert exc.value.remaining == 0
    assert exc.value.reset_at == fixed_now + timedelta(seconds=60)

    # Other clients keep their own bucket.
    with pytest.raises(NotFoundError):
        container.qr_validation_service.validate("attendance:999:1", "10.0.0.2", 7, now=fixed_now)


def test_regenerate_qr_replaces_payload(container, make_event, events_repo, fixed_now):
    event = make_event()

    payload = container.event_service.regenerate_qr(event.event_id, now=fixed_now)

    assert events_repo.get_by_id(event.event_id).qr_payload == payload
    assert parse_qr_payload(payload).event_id == event.event_id


def test_regenerate_qr_refuses_closed_events(container, make_event, fixed_now):
    event = make_event(status=EventStatus.CANCELLED)

    with pytest.raises(ValidationError):
        container.event_service.regenerate_qr(event.event_id, now=fixed_now)


def test_get_event_completes_expired_event_on_read(container, make_event, fixed_now):
    event = make_event(start_at=fixed_now - timedelta(hours=3), end_at=fixed_now - timedelta(hours=2))

    assert container.event_service.get_event(event.event_id).status == EventStatus.COMPLETED
    with pytest.raises(NotFoundError):
        container.event_service.get_event(404)
