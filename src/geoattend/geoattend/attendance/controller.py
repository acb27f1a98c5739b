from __future__ import annotations

from typing import Any, Optional

from flask import Flask, request

from ..common.datetime_utils import fmt_iso
from ..common.http import client_ip, current_principal, fail, login_required, ok
from ..core.exceptions import AuthorizationError
from ..geo.model import Coordinate
from .model import AttendanceRecord, CheckSubmission


def _submission_to_dict(s: Optional[CheckSubmission]) -> Optional[dict[str, Any]]:
    if s is None:
        return None
    return {
        "submitted_at": fmt_iso(s.submitted_at),
        "latitude": s.coordinate.latitude,
        "longitude": s.coordinate.longitude,
        "distance_m": s.distance_m,
    }


def record_to_dict(r: AttendanceRecord) -> dict[str, Any]:
    return {
        "attendance_id": r.attendance_id,
        "event_id": r.event_id,
        "subject_id": r.subject_id,
        "verification_status": r.verification_status.value,
        "status_reason": r.status_reason,
        "check_in": _submission_to_dict(r.check_in),
        "check_out": _submission_to_dict(r.check_out),
        "dispute_note": r.dispute_note,
        "resolution_notes": r.resolution_notes,
        "verified_by": r.verified_by,
        "verified_at": fmt_iso(r.verified_at) if r.verified_at else None,
        "appeal_message": r.appeal_message,
        "appealed_at": fmt_iso(r.appealed_at) if r.appealed_at else None,
        "resolved_by": r.resolved_by,
        "resolved_at": fmt_iso(r.resolved_at) if r.resolved_at else None,
    }


def _body() -> dict[str, Any]:
    return request.get_json(silent=True) or {}


def register(app: Flask, container) -> None:
    service = container.attendance_service

    def _require_verifier(attendance_id: int):
        principal = current_principal()
        event = service.get_event_for_record(attendance_id)
        if not service.can_verify(principal, event):
            raise AuthorizationError("You are not allowed to verify attendance for this event")
        return principal

    @app.route("/api/events/<int:event_id>/check-in", methods=["POST"], endpoint="attendance_check_in")
    @login_required
    def check_in(event_id: int):
        data = _body()
        coordinate = Coordinate.parse(data.get("latitude"), data.get("longitude"))
        record = service.submit_check_in(event_id, current_principal().user_id, coordinate)
        return ok(record_to_dict(record), 201)

    @app.route("/api/attendance/<int:attendance_id>/check-out", methods=["POST"], endpoint="attendance_check_out")
    @login_required
    def check_out(attendance_id: int):
        if service.get_record(attendance_id).subject_id != current_principal().user_id:
            raise AuthorizationError("You can only check out of your own attendance")
        data = _body()
        coordinate = Coordinate.parse(data.get("latitude"), data.get("longitude"))
        record = service.submit_check_out(attendance_id, coordinate)
        return ok(record_to_dict(record))

    @app.route("/api/attendance/<int:attendance_id>", methods=["GET"], endpoint="attendance_detail")
    @login_required
    def detail(attendance_id: int):
        record = service.get_record(attendance_id)
        principal = current_principal()
        if record.subject_id != principal.user_id:
            _require_verifier(attendance_id)
        return ok(record_to_dict(record))

    @app.route("/api/attendance/<int:attendance_id>/approve", methods=["POST"], endpoint="attendance_approve")
    @login_required
    def approve(attendance_id: int):
        principal = _require_verifier(attendance_id)
        data = _body()
        record = service.approve(attendance_id, principal.user_id, resolution_notes=data.get("resolution_notes"))
        return ok(record_to_dict(record))

    @app.route("/api/attendance/<int:attendance_id>/reject", methods=["POST"], endpoint="attendance_reject")
    @login_required
    def reject(attendance_id: int):
        principal = _require_verifier(attendance_id)
        data = _body()
        record = service.reject(
            attendance_id,
            principal.user_id,
            data.get("dispute_note"),
            resolution_notes=data.get("resolution_notes"),
        )
        return ok(record_to_dict(record))

    @app.route("/api/attendance/<int:attendance_id>/appeal", methods=["POST"], endpoint="attendance_appeal")
    @login_required
    def appeal(attendance_id: int):
        record = service.appeal(attendance_id, current_principal().user_id, _body().get("message"))
        return ok(record_to_dict(record))

    @app.route("/api/attendance/<int:attendance_id>/resolve", methods=["POST"], endpoint="attendance_resolve")
    @login_required
    def resolve(attendance_id: int):
        principal = _require_verifier(attendance_id)
        data = _body()
        status = data.get("status")
        if not status:
            return fail("status is required", 400)
        record = service.resolve_dispute(attendance_id, principal.user_id, status, data.get("resolution_notes"))
        return ok(record_to_dict(record))

    @app.route("/api/attendance/validate-qr", methods=["POST"], endpoint="attendance_validate_qr")
    @login_required
    def validate_qr():
        result = container.qr_validation_service.validate(
            _body().get("qr_payload"),
            client_ip(),
            current_principal().user_id,
        )
        return ok(
            {
                "valid": result.valid,
                "event_id": result.event_id,
                "event_name": result.event.name,
                "status": result.event.status.value,
                "check_in_window": {
                    "opens_at": fmt_iso(result.opens_at),
                    "closes_at": fmt_iso(result.closes_at),
                    "is_open": result.is_open,
                },
                "has_checked_in": result.has_checked_in,
                "validation_errors": result.errors,
            }
        )
