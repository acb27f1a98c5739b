from __future__ import annotations

from dataclasses import replace
from datetime import timedelta

from src.geoattend.geoattend.core.enums import EventStatus


def test_event_still_within_check_out_buffer_is_not_completed(monitor, make_event, events_repo, fixed_now):
    event = make_event(
        start_at=fixed_now - timedelta(hours=2),
        end_at=fixed_now - timedelta(minutes=10),
        check_out_buffer_minutes=30,
    )

    assert monitor.sweep(fixed_now) == 0
    assert events_repo.get_by_id(event.event_id).status == EventStatus.ACTIVE


def test_event_past_check_out_buffer_is_completed(monitor, make_event, events_repo, fixed_now):
    event = make_event(
        start_at=fixed_now - timedelta(hours=2),
        end_at=fixed_now - timedelta(minutes=10),
        check_out_buffer_minutes=5,
    )

    assert monitor.sweep(fixed_now) == 1
    assert events_repo.get_by_id(event.event_id).status == EventStatus.COMPLETED


def test_close_at_exactly_now_is_not_yet_expired(monitor, make_event, fixed_now):
    make_event(
        start_at=fixed_now - timedelta(hours=2),
        end_at=fixed_now - timedelta(minutes=5),
        check_out_buffer_minutes=5,
    )

    assert monitor.sweep(fixed_now) == 0
    assert monitor.sweep(fixed_now + timedelta(seconds=1)) == 1


def test_sweep_twice_transitions_once(monitor, make_event, fixed_now):
    make_event(start_at=fixed_now - timedelta(hours=3), end_at=fixed_now - timedelta(hours=1))
    make_event(start_at=fixed_now - timedelta(hours=3), end_at=fixed_now - timedelta(hours=2))

    assert monitor.sweep(fixed_now) == 2
    assert monitor.sweep(fixed_now) == 0


def test_sweep_ignores_future_cancelled_and_completed_events(monitor, make_event, fixed_now):
    make_event()
    make_event(start_at=fixed_now - timedelta(hours=3), end_at=fixed_now - timedelta(hours=2), status=EventStatus.CANCELLED)
    make_event(start_at=fixed_now - timedelta(hours=3), end_at=fixed_now - timedelta(hours=2), status=EventStatus.COMPLETED)

    result = monitor.sweep_detailed(fixed_now)
    assert result.transitioned == 0
    assert result.candidates == 0


def test_lost_race_with_cancellation_is_not_counted(monitor, make_event, events_repo, fixed_now, monkeypatch):
    a = make_event(start_at=fixed_now - timedelta(hours=3), end_at=fixed_now - timedelta(hours=2))
    b = make_event(start_at=fixed_now - timedelta(hours=3), end_at=fixed_now - timedelta(hours=2))

    original = events_repo.find_active_events_ending_before

    def find_then_cancel(moment):
        found = original(moment)
        # A moderator cancels b after it was selected but before the write.
        events_repo.add(replace(b, status=EventStatus.CANCELLED))
        return found

    monkeypatch.setattr(events_repo, "find_active_events_ending_before", find_then_cancel)

    result = monitor.sweep_detailed(fixed_now)
    assert result.candidates == 2
    assert result.transitioned == 1
    assert events_repo.get_by_id(a.event_id).status == EventStatus.COMPLETED
    assert events_repo.get_by_id(b.event_id).status == EventStatus.CANCELLED


def test_sweep_uses_one_batched_write(monitor, make_event, events_repo, fixed_now):
    for _ in range(3):
        make_event(start_at=fixed_now - timedelta(hours=3), end_at=fixed_now - timedelta(hours=2))

    assert monitor.sweep(fixed_now) == 3
    assert events_repo.complete_calls == 1


def test_sweep_defaults_to_injected_clock(monitor, make_event, fixed_now):
    make_event(start_at=fixed_now - timedelta(hours=3), end_at=fixed_now - timedelta(hours=2))

    assert monitor.sweep() == 1


def test_check_one(monitor, make_event, events_repo, fixed_now):
    expired = make_event(start_at=fixed_now - timedelta(hours=3), end_at=fixed_now - timedelta(hours=2))
    running = make_event()

    assert monitor.check_one(expired.event_id, fixed_now) is True
    assert events_repo.get_by_id(expired.event_id).status == EventStatus.COMPLETED
    assert monitor.check_one(expired.event_id, fixed_now) is False
    assert monitor.check_one(running.event_id, fixed_now) is False
    assert monitor.check_one(404, fixed_now) is False
