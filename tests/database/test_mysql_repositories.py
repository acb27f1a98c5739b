from __future__ import annotations

from datetime import datetime
from decimal import Decimal
from pathlib import Path
from unittest.mock import MagicMock

import pytest
from mysql.connector.errors import IntegrityError

from src.geoattend.geoattend.attendance.model import CheckSubmission
from src.geoattend.geoattend.attendance.mysql_attendance_repository import MySQLAttendanceRepository
from src.geoattend.geoattend.core.enums import EventStatus, VerificationStatus
from src.geoattend.geoattend.database.bootstrap import split_schema
from src.geoattend.geoattend.database.connection import DBConfig
from src.geoattend.geoattend.events.mysql_event_repository import MySQLEventRepository

from tests.support import VENUE

NOW = datetime(2026, 3, 2, 9, 0, 0)


@pytest.fixture
def cursor():
    return MagicMock()


@pytest.fixture
def conn_factory(cursor):
    factory = MagicMock()
    factory.connect.return_value.cursor.return_value = cursor
    return factory


def _sql(cursor) -> str:
    return " ".join(cursor.execute.call_args[0][0].split())


def test_decision_update_skips_decided_or_appealed_rows(conn_factory, cursor):
    cursor.rowcount = 0
    repo = MySQLAttendanceRepository(conn_factory)

    applied = repo.record_decision(attendance_id=5, status=VerificationStatus.APPROVED, verifier_id=9, verified_at=NOW)

    assert applied is False
    assert "WHERE attendance_id=%s AND verified_by IS NULL AND appeal_message IS NULL" in _sql(cursor)
    conn_factory.connect.return_value.commit.assert_called_once()


def test_checkout_keeps_human_status_in_sql(conn_factory, cursor):
    cursor.rowcount = 1
    repo = MySQLAttendanceRepository(conn_factory)

    applied = repo.record_checkout(
        attendance_id=5,
        check_out=CheckSubmission(submitted_at=NOW, coordinate=VENUE, distance_m=0.0),
        status=VerificationStatus.REJECTED,
        status_reason="Auto-rejected",
        verified_at=None,
    )

    sql = _sql(cursor)
    assert applied is True
    assert "verification_status=CASE WHEN verified_by IS NULL AND appeal_message IS NULL THEN %s ELSE verification_status END" in sql
    assert "check_out_at IS NULL" in sql


def test_duplicate_check_in_returns_none(conn_factory, cursor):
    cursor.execute.side_effect = IntegrityError(msg="Duplicate entry", errno=1062)
    repo = MySQLAttendanceRepository(conn_factory)

    result = repo.create_checkin(
        event_id=1,
        subject_id=7,
        check_in=CheckSubmission(submitted_at=NOW, coordinate=VENUE, distance_m=0.0),
        status=VerificationStatus.APPROVED,
        status_reason=None,
        verified_at=NOW,
    )

    assert result is None
    conn_factory.connect.return_value.rollback.assert_called_once()


def test_row_mapping_handles_decimal_columns(conn_factory, cursor):
    cursor.fetchone.return_value = {
        "attendance_id": 5,
        "event_id": 1,
        "subject_id": 7,
        "verification_status": "Pending",
        "status_reason": None,
        "check_in_at": NOW,
        "check_in_latitude": Decimal("9.787448"),
        "check_in_longitude": Decimal("125.494373"),
        "check_in_distance": Decimal("42.5"),
        "check_out_at": None,
        "check_out_latitude": None,
        "check_out_longitude": None,
        "check_out_distance": None,
        "dispute_note": None,
        "resolution_notes": None,
        "verified_by": None,
        "verified_at": None,
        "appeal_message": None,
        "appealed_at": None,
        "resolved_by": None,
        "resolved_at": None,
    }

    record = MySQLAttendanceRepository(conn_factory).get_by_id(5)

    assert record.verification_status == VerificationStatus.PENDING
    assert record.check_in.coordinate == VENUE
    assert record.check_in.distance_m == 42.5
    assert record.check_out is None


def test_sweep_is_one_batched_conditional_update(conn_factory, cursor):
    cursor.rowcount = 2
    repo = MySQLEventRepository(conn_factory)

    assert repo.complete_if_active([3, 4, 5]) == 2
    sql = _sql(cursor)
    assert "WHERE status=%s AND event_id IN (%s,%s,%s)" in sql
    assert cursor.execute.call_args[0][1] == (EventStatus.COMPLETED.value, EventStatus.ACTIVE.value, 3, 4, 5)
    assert cursor.execute.call_count == 1


def test_sweep_with_no_ids_does_not_touch_database(conn_factory):
    assert MySQLEventRepository(conn_factory).complete_if_active([]) == 0
    conn_factory.connect.assert_not_called()


def test_schema_splits_into_table_statements():
    schema = Path(__file__).resolve().parents[2] / "database" / "schema.sql"

    statements = list(split_schema(schema.read_text(encoding="utf-8")))

    assert len(statements) == 2
    assert statements[0].startswith("CREATE TABLE IF NOT EXISTS events")
    assert statements[1].startswith("CREATE TABLE IF NOT EXISTS attendance_records")
    assert not any(s.rstrip().endswith(";") for s in statements)


def test_db_config_from_mapping_and_dsn_hides_password():
    cfg = DBConfig.from_mapping({"host": "db", "port": "3307", "user": "app", "password": "pw", "database": "ga"})

    assert cfg.port == 3307
    assert cfg.dsn() == "app@db:3307/ga"
    assert "pw" not in cfg.dsn()
    assert "database" not in cfg.connect_kwargs(with_database=False)
