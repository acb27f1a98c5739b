from __future__ import annotations

from datetime import datetime

from ..common.datetime_utils import Clock, now_local
from ..common.logging import get_logger
from ..core.enums import EventStatus
from ..core.exceptions import NotFoundError, ValidationError
from .model import Event
from .monitor import EventLifecycleMonitor
from .qr import build_qr_payload
from .repository import EventRepository

logger = get_logger(__name__)


class EventService:
    def __init__(
        self,
        events: EventRepository,
        monitor: EventLifecycleMonitor,
        *,
        app_url: str,
        clock: Clock = now_local,
    ):
        self._events = events
        self._monitor = monitor
        self._app_url = app_url
        self._clock = clock

    def get_event(self, event_id: int, *, now: datetime | None = None) -> Event:
        """Read an event, completing it first if its check-out window has already passed."""

        now = now or self._clock()
        if self._monitor.check_one(event_id, now=now):
            logger.info("Event %s completed on read", event_id)

        event = self._events.get_by_id(int(event_id))
        if not event:
            raise NotFoundError("Event not found")
        return event

    def regenerate_qr(self, event_id: int, *, now: datetime | None = None) -> str:
        """New payload for an Active event; previously printed codes become stale."""

        now = now or self._clock()
        event = self.get_event(event_id, now=now)
        if event.status != EventStatus.ACTIVE:
            raise ValidationError(f"Cannot regenerate QR code for {event.status.value} event")

        payload = build_qr_payload(event.event_id, self._app_url, now=now)
        if not self._events.update_qr_payload(event.event_id, payload):
            raise ValidationError("Event is no longer active")
        return payload
