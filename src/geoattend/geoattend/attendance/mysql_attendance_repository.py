from __future__ import annotations

from datetime import datetime
from typing import Any, Optional

from mysql.connector import errorcode
from mysql.connector.errors import IntegrityError

from ..core.enums import VerificationStatus
from ..database.connection import DatabaseConnection
from ..database.mysql_base import as_float, db_cursor, execute_update, fetchone
from ..geo.model import Coordinate
from .model import AttendanceRecord, CheckSubmission
from .repository import AttendanceRepository

_COLUMNS = """
    attendance_id, event_id, subject_id, verification_status, status_reason,
    check_in_at, check_in_latitude, check_in_longitude, check_in_distance,
    check_out_at, check_out_latitude, check_out_longitude, check_out_distance,
    dispute_note, resolution_notes, verified_by, verified_at,
    appeal_message, appealed_at, resolved_by, resolved_at
"""

# Rows whose status only the classifier has written. resolved_by is only ever
# set on appealed rows, so the appeal check covers resolutions too.
_AUTOMATIC_ONLY = "verified_by IS NULL AND appeal_message IS NULL"


def _submission(r: dict[str, Any], prefix: str) -> Optional[CheckSubmission]:
    if r.get(f"{prefix}_at") is None:
        return None
    return CheckSubmission(
        submitted_at=r[f"{prefix}_at"],
        coordinate=Coordinate(as_float(r[f"{prefix}_latitude"]), as_float(r[f"{prefix}_longitude"])),
        distance_m=as_float(r[f"{prefix}_distance"]),
    )


def _opt_int(value: Any) -> Optional[int]:
    return int(value) if value is not None else None


def _to_record(r: dict[str, Any]) -> AttendanceRecord:
    return AttendanceRecord(
        attendance_id=int(r["attendance_id"]),
        event_id=int(r["event_id"]),
        subject_id=int(r["subject_id"]),
        verification_status=VerificationStatus(r["verification_status"]),
        check_in=_submission(r, "check_in"),
        check_out=_submission(r, "check_out"),
        status_reason=r.get("status_reason"),
        dispute_note=r.get("dispute_note"),
        resolution_notes=r.get("resolution_notes"),
        verified_by=_opt_int(r.get("verified_by")),
        verified_at=r.get("verified_at"),
        appeal_message=r.get("appeal_message"),
        appealed_at=r.get("appealed_at"),
        resolved_by=_opt_int(r.get("resolved_by")),
        resolved_at=r.get("resolved_at"),
    )


class MySQLAttendanceRepository(AttendanceRepository):
    def __init__(self, conn_factory: DatabaseConnection):
        self._conn_factory = conn_factory

    def get_by_id(self, attendance_id: int) -> Optional[AttendanceRecord]:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(f"SELECT {_COLUMNS} FROM attendance_records WHERE attendance_id=%s", (int(attendance_id),))
            r = fetchone(cur)
            return _to_record(r) if r else None

    def get_for_event_and_subject(self, event_id: int, subject_id: int) -> Optional[AttendanceRecord]:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                f"SELECT {_COLUMNS} FROM attendance_records WHERE event_id=%s AND subject_id=%s",
                (int(event_id), int(subject_id)),
            )
            r = fetchone(cur)
            return _to_record(r) if r else None

    def create_checkin(
        self,
        *,
        event_id: int,
        subject_id: int,
        check_in: CheckSubmission,
        status: VerificationStatus,
        status_reason: Optional[str],
        verified_at: Optional[datetime],
    ) -> Optional[int]:
        try:
            with db_cursor(self._conn_factory) as (_, cur):
                cur.execute(
                    """
                    INSERT INTO attendance_records(
                        event_id, subject_id, verification_status, status_reason,
                        check_in_at, check_in_latitude, check_in_longitude, check_in_distance,
                        verified_at
                    )
                    VALUES(%s,%s,%s,%s,%s,%s,%s,%s,%s)
                    """,
                    (
                        int(event_id),
                        int(subject_id),
                        status.value,
                        status_reason,
                        check_in.submitted_at,
                        check_in.coordinate.latitude,
                        check_in.coordinate.longitude,
                        check_in.distance_m,
                        verified_at,
                    ),
                )
                return int(cur.lastrowid)
        except IntegrityError as e:
            # uq_attendance_event_subject: a concurrent check-in won.
            if e.errno == errorcode.ER_DUP_ENTRY:
                return None
            raise

    def record_checkout(
        self,
        *,
        attendance_id: int,
        check_out: CheckSubmission,
        status: VerificationStatus,
        status_reason: Optional[str],
        verified_at: Optional[datetime],
    ) -> bool:
        # None of the guarded columns is assigned here, so every CASE sees the pre-update row.
        changed = execute_update(
            self._conn_factory,
            f"""
            UPDATE attendance_records
            SET check_out_at=%s, check_out_latitude=%s, check_out_longitude=%s, check_out_distance=%s,
                verification_status=CASE WHEN {_AUTOMATIC_ONLY} THEN %s ELSE verification_status END,
                status_reason=CASE WHEN {_AUTOMATIC_ONLY} THEN %s ELSE status_reason END,
                verified_at=CASE WHEN {_AUTOMATIC_ONLY} THEN %s ELSE verified_at END
            WHERE attendance_id=%s AND check_out_at IS NULL
            """,
            (
                check_out.submitted_at,
                check_out.coordinate.latitude,
                check_out.coordinate.longitude,
                check_out.distance_m,
                status.value,
                status_reason,
                verified_at,
                int(attendance_id),
            ),
        )
        return changed > 0

    def record_decision(
        self,
        *,
        attendance_id: int,
        status: VerificationStatus,
        verifier_id: int,
        verified_at: datetime,
        dispute_note: Optional[str] = None,
        resolution_notes: Optional[str] = None,
    ) -> bool:
        changed = execute_update(
            self._conn_factory,
            f"""
            UPDATE attendance_records
            SET verification_status=%s, verified_by=%s, verified_at=%s,
                dispute_note=%s, resolution_notes=%s
            WHERE attendance_id=%s AND {_AUTOMATIC_ONLY}
            """,
            (status.value, int(verifier_id), verified_at, dispute_note, resolution_notes, int(attendance_id)),
        )
        return changed > 0

    def record_appeal(self, *, attendance_id: int, appeal_message: str, appealed_at: datetime) -> bool:
        changed = execute_update(
            self._conn_factory,
            """
            UPDATE attendance_records
            SET verification_status=%s, appeal_message=%s, appealed_at=%s
            WHERE attendance_id=%s AND verification_status=%s AND appeal_message IS NULL
            """,
            (
                VerificationStatus.PENDING.value,
                appeal_message,
                appealed_at,
                int(attendance_id),
                VerificationStatus.REJECTED.value,
            ),
        )
        return changed > 0

    def record_resolution(
        self,
        *,
        attendance_id: int,
        status: VerificationStatus,
        resolver_id: int,
        resolved_at: datetime,
        resolution_notes: str,
    ) -> bool:
        changed = execute_update(
            self._conn_factory,
            """
            UPDATE attendance_records
            SET verification_status=%s, resolved_by=%s, resolved_at=%s, resolution_notes=%s
            WHERE attendance_id=%s AND appeal_message IS NOT NULL AND resolved_by IS NULL
            """,
            (status.value, int(resolver_id), resolved_at, resolution_notes, int(attendance_id)),
        )
        return changed > 0
