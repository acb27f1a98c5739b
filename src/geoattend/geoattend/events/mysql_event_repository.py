from __future__ import annotations

from datetime import datetime
from typing import Any, Optional, Sequence

from ..core.enums import EventStatus
from ..database.connection import DatabaseConnection
from ..database.mysql_base import as_float, db_cursor, execute_update, fetchall, fetchone
from ..geo.model import Coordinate
from .model import Event
from .repository import EventRepository

_COLUMNS = """
    event_id, name, venue_latitude, venue_longitude, start_at, end_at,
    check_in_buffer_minutes, check_out_buffer_minutes, status, created_by, qr_payload
"""


def _to_event(r: dict[str, Any]) -> Event:
    return Event(
        event_id=int(r["event_id"]),
        name=r["name"],
        venue=Coordinate(as_float(r["venue_latitude"]), as_float(r["venue_longitude"])),
        start_at=r["start_at"],
        end_at=r["end_at"],
        check_in_buffer_minutes=int(r["check_in_buffer_minutes"]),
        check_out_buffer_minutes=int(r["check_out_buffer_minutes"]),
        status=EventStatus(r["status"]),
        created_by=int(r["created_by"]) if r.get("created_by") is not None else None,
        qr_payload=r.get("qr_payload"),
    )


class MySQLEventRepository(EventRepository):
    def __init__(self, conn_factory: DatabaseConnection):
        self._conn_factory = conn_factory

    def get_by_id(self, event_id: int) -> Optional[Event]:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(f"SELECT {_COLUMNS} FROM events WHERE event_id=%s", (int(event_id),))
            r = fetchone(cur)
            return _to_event(r) if r else None

    def find_active_events_ending_before(self, moment: datetime) -> Sequence[Event]:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                f"""
                SELECT {_COLUMNS}
                FROM events
                WHERE status=%s AND end_at <= %s
                ORDER BY end_at ASC
                """,
                (EventStatus.ACTIVE.value, moment),
            )
            return [_to_event(r) for r in fetchall(cur)]

    def complete_if_active(self, event_ids: Sequence[int]) -> int:
        ids = [int(i) for i in event_ids]
        if not ids:
            return 0

        placeholders = ",".join(["%s"] * len(ids))
        return execute_update(
            self._conn_factory,
            f"""
            UPDATE events
            SET status=%s
            WHERE status=%s AND event_id IN ({placeholders})
            """,
            (EventStatus.COMPLETED.value, EventStatus.ACTIVE.value, *ids),
        )

    def update_qr_payload(self, event_id: int, payload: str) -> bool:
        changed = execute_update(
            self._conn_factory,
            "UPDATE events SET qr_payload=%s WHERE event_id=%s AND status=%s",
            (payload, int(event_id), EventStatus.ACTIVE.value),
        )
        return changed > 0
