from __future__ import annotations

from datetime import datetime
from typing import Callable

Clock = Callable[[], datetime]


def now_local() -> datetime:
    """Current local time.

    Note: Wrapped so services can take it as an injectable clock.
    """
    return datetime.now()


def to_epoch_ms(value: datetime) -> int:
    return int(value.timestamp() * 1000)


def from_epoch_ms(value: int) -> datetime:
    return datetime.fromtimestamp(value / 1000)


def fmt_iso(value: datetime) -> str:
    return value.isoformat(timespec="seconds")
