from __future__ import annotations

from datetime import datetime
from typing import Optional, Protocol, Sequence

from .model import Event


class EventRepository(Protocol):
    """Persistence contract for events.

    Status writes are conditional: only rows still observed as Active move to
    Completed, so concurrent sweeps and manual cancellation never collide.
    """

    def get_by_id(self, event_id: int) -> Optional[Event]:
        raise NotImplementedError

    def find_active_events_ending_before(self, moment: datetime) -> Sequence[Event]:
        raise NotImplementedError

    def complete_if_active(self, event_ids: Sequence[int]) -> int:
        """Batched Active -> Completed. Returns the number of rows actually changed."""

        raise NotImplementedError

    def update_qr_payload(self, event_id: int, payload: str) -> bool:
        """Replace the stored QR payload of an Active event. False when the event is not Active."""

        raise NotImplementedError
