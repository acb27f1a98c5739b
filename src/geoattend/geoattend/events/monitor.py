from __future__ import annotations

from datetime import datetime
from typing import Optional

from ..common.datetime_utils import Clock, now_local
from ..common.logging import audit, get_logger
from ..core.enums import EventStatus
from .model import SweepResult
from .repository import EventRepository

logger = get_logger(__name__)


class EventLifecycleMonitor:
    """Moves Active events to Completed once their check-out window has passed.

    Schedule-agnostic: callers (a RecurringTask, a cron endpoint, a read path)
    decide when to call it, and overlapping calls are safe.
    """

    def __init__(self, events: EventRepository, *, clock: Clock = now_local):
        self._events = events
        self._clock = clock

    def sweep(self, now: Optional[datetime] = None) -> int:
        return self.sweep_detailed(now).transitioned

    def sweep_detailed(self, now: Optional[datetime] = None) -> SweepResult:
        now = now or self._clock()

        candidates = self._events.find_active_events_ending_before(now)
        expired = [e.event_id for e in candidates if e.is_expired(now)]
        if not expired:
            return SweepResult(transitioned=0, candidates=len(candidates), ran_at=now)

        # Rows cancelled or completed by someone else in between are not counted.
        transitioned = self._events.complete_if_active(expired)
        if transitioned:
            logger.info("Event status monitor: transitioned %d event(s) to Completed", transitioned)
            audit("EVENT_COMPLETED", event_ids=expired, transitioned=transitioned)
        if transitioned < len(expired):
            logger.debug("Event status monitor: %d event(s) already changed by another writer", len(expired) - transitioned)

        return SweepResult(transitioned=transitioned, candidates=len(candidates), ran_at=now)

    def check_one(self, event_id: int, now: Optional[datetime] = None) -> bool:
        """On-demand check for a single event, e.g. when it is read outside the sweep cadence."""

        now = now or self._clock()
        event = self._events.get_by_id(int(event_id))
        if not event or event.status != EventStatus.ACTIVE:
            return False
        if not event.is_expired(now):
            return False

        changed = self._events.complete_if_active([event.event_id]) > 0
        if changed:
            audit("EVENT_COMPLETED", event_ids=[event.event_id], transitioned=1)
        return changed
