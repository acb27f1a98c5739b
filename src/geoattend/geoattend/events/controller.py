from __future__ import annotations

import hmac
from typing import Any

from flask import Flask, Response, request

from ..common.datetime_utils import fmt_iso
from ..common.http import current_principal, fail, login_required, ok
from ..common.logging import get_logger
from ..core.exceptions import AuthorizationError, NotFoundError
from .model import Event
from .qr import render_qr_png

logger = get_logger(__name__)


def event_to_dict(e: Event) -> dict[str, Any]:
    return {
        "event_id": e.event_id,
        "name": e.name,
        "venue_latitude": e.venue.latitude,
        "venue_longitude": e.venue.longitude,
        "start_at": fmt_iso(e.start_at),
        "end_at": fmt_iso(e.end_at),
        "check_in_buffer_minutes": e.check_in_buffer_minutes,
        "check_out_buffer_minutes": e.check_out_buffer_minutes,
        "status": e.status.value,
        "created_by": e.created_by,
    }


def register(app: Flask, container) -> None:
    service = container.event_service

    @app.route("/api/events/<int:event_id>", methods=["GET"], endpoint="event_detail")
    @login_required
    def detail(event_id: int):
        return ok(event_to_dict(service.get_event(event_id)))

    @app.route("/api/events/<int:event_id>/qr", methods=["POST"], endpoint="event_regenerate_qr")
    @login_required
    def regenerate_qr(event_id: int):
        event = service.get_event(event_id)
        if not container.attendance_service.can_verify(current_principal(), event):
            raise AuthorizationError("Only the event creator or an administrator can regenerate its QR code")
        return ok({"event_id": event.event_id, "qr_payload": service.regenerate_qr(event_id)})

    @app.route("/api/events/<int:event_id>/qr.png", methods=["GET"], endpoint="event_qr_image")
    @login_required
    def qr_image(event_id: int):
        event = service.get_event(event_id)
        if not event.qr_payload:
            raise NotFoundError("Event has no QR code yet")
        return Response(render_qr_png(event.qr_payload), mimetype="image/png")

    @app.route("/api/cron/update-event-status", methods=["POST"], endpoint="cron_update_event_status")
    def cron_update_event_status():
        secret = container.cron_secret
        if secret:
            expected = f"Bearer {secret}"
            if not hmac.compare_digest(request.headers.get("Authorization", "").encode(), expected.encode()):
                return fail("Unauthorized", 401)

        result = container.event_monitor.sweep_detailed()
        logger.info("Cron sweep completed: %d event(s) transitioned", result.transitioned)
        return ok({"transitioned": result.transitioned, "candidates": result.candidates, "ran_at": fmt_iso(result.ran_at)})
