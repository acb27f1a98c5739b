from __future__ import annotations

import io
import re
from dataclasses import dataclass
from datetime import datetime
from typing import Optional
from urllib.parse import parse_qs, urlencode, urlsplit

import qrcode

from ..common.datetime_utils import to_epoch_ms

_PATH_RE = re.compile(r"/attendance/(\d+)(?:/|$)")
_LEGACY_RE = re.compile(r"^attendance:(\d+):(\d+)$")


@dataclass(frozen=True)
class QRPayload:
    event_id: int
    timestamp_ms: Optional[int]
    source: Optional[str] = None


def build_qr_payload(event_id: int, base_url: str, *, now: datetime) -> str:
    """URL printed in an event's QR code. The timestamp makes every regeneration unique."""

    base = (base_url or "").strip().rstrip("/")
    if not urlsplit(base).scheme or not urlsplit(base).netloc:
        raise ValueError(f"Invalid base URL configuration: {base_url!r}")
    query = urlencode({"t": to_epoch_ms(now), "src": "qr"})
    return f"{base}/attendance/{int(event_id)}?{query}"


def parse_qr_payload(payload: Optional[str]) -> Optional[QRPayload]:
    """Accepts the URL form and the legacy ``attendance:{id}:{ms}`` form; None otherwise."""

    text = (payload or "").strip()
    if not text:
        return None

    legacy = _LEGACY_RE.match(text)
    if legacy:
        return QRPayload(event_id=int(legacy.group(1)), timestamp_ms=int(legacy.group(2)))

    parts = urlsplit(text)
    if not parts.scheme or not parts.netloc:
        return None
    match = _PATH_RE.search(parts.path)
    if not match:
        return None

    query = parse_qs(parts.query)
    raw_ts = (query.get("t") or [None])[0]
    timestamp_ms = int(raw_ts) if raw_ts and raw_ts.isdigit() else None
    source = (query.get("src") or [None])[0]
    return QRPayload(event_id=int(match.group(1)), timestamp_ms=timestamp_ms, source=source)


def render_qr_png(payload: str, *, box_size: int = 10, border: int = 2) -> bytes:
    qr = qrcode.QRCode(
        version=None,
        error_correction=qrcode.constants.ERROR_CORRECT_H,
        box_size=box_size,
        border=border,
    )
    qr.add_data(payload)
    qr.make(fit=True)

    img = qr.make_image(fill_color="black", back_color="white")

    buf = io.BytesIO()
    img.save(buf, format="PNG")
    return buf.getvalue()
