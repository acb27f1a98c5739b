from __future__ import annotations

from dataclasses import dataclass
from typing import Mapping, Optional, Sequence

from limits.storage import MemoryStorage, Storage, storage_from_string

from .attendance.mysql_attendance_repository import MySQLAttendanceRepository
from .attendance.repository import AttendanceRepository
from .attendance.classifier import ProximityClassifier
from .attendance.service import AttendanceService
from .common.datetime_utils import Clock, now_local
from .core.constants import (
    DEFAULT_AUTH_LIMIT,
    DEFAULT_AUTH_WINDOW_SECONDS,
    DEFAULT_QR_CAPACITY,
    DEFAULT_QR_REFILL_SECONDS,
    DEFAULT_QR_REFILL_TOKENS,
)
from .core.enums import RateLimitPolicy
from .database.connection import DBConfig, DatabaseConnection
from .events.monitor import EventLifecycleMonitor
from .events.mysql_event_repository import MySQLEventRepository
from .events.qr_service import QRValidationService
from .events.repository import EventRepository
from .events.service import EventService
from .ratelimit.limiter import SlidingWindowLimiter, TokenBucketLimiter
from .ratelimit.model import SlidingWindowPolicy, TokenBucketPolicy
from .ratelimit.redis_store import RedisCounterStore
from .ratelimit.service import RateLimitService
from .ratelimit.store import CounterStore


@dataclass(frozen=True)
class Container:
    events_repo: EventRepository
    attendance_repo: AttendanceRepository
    counter_store: CounterStore

    attendance_service: AttendanceService
    event_monitor: EventLifecycleMonitor
    event_service: EventService
    rate_limit_service: RateLimitService
    qr_validation_service: QRValidationService

    cron_secret: str = ""
    conn: Optional[DatabaseConnection] = None


def wire(
    *,
    events_repo: EventRepository,
    attendance_repo: AttendanceRepository,
    counter_store: CounterStore,
    window_storage: Optional[Storage] = None,
    rate_limit_enabled: bool,
    rate_limit_fail_open: bool = False,
    auth_limit: Sequence[int] = (DEFAULT_AUTH_LIMIT, DEFAULT_AUTH_WINDOW_SECONDS),
    qr_limit: Sequence[int] = (DEFAULT_QR_CAPACITY, DEFAULT_QR_REFILL_TOKENS, DEFAULT_QR_REFILL_SECONDS),
    app_url: str = "",
    cron_secret: str = "",
    clock: Clock = now_local,
    conn: Optional[DatabaseConnection] = None,
) -> Container:
    """Compose services over whatever repositories and counter store the caller provides."""

    auth_count, auth_window = auth_limit
    qr_capacity, qr_refill, qr_interval = qr_limit
    rate_limit_service = RateLimitService(
        {
            RateLimitPolicy.AUTH: SlidingWindowLimiter(
                window_storage if window_storage is not None else MemoryStorage(),
                SlidingWindowPolicy(limit=int(auth_count), window_seconds=int(auth_window)),
                prefix=RateLimitPolicy.AUTH.value,
            ),
            RateLimitPolicy.QR_VALIDATION: TokenBucketLimiter(
                counter_store,
                TokenBucketPolicy(capacity=int(qr_capacity), refill_tokens=int(qr_refill), refill_seconds=int(qr_interval)),
                prefix=RateLimitPolicy.QR_VALIDATION.value,
            ),
        },
        enabled=rate_limit_enabled,
        fail_open=rate_limit_fail_open,
        clock=clock,
    )

    event_monitor = EventLifecycleMonitor(events_repo, clock=clock)
    attendance_service = AttendanceService(
        attendance_repo,
        events_repo,
        classifier=ProximityClassifier(),
        clock=clock,
    )
    event_service = EventService(events_repo, event_monitor, app_url=app_url, clock=clock)
    qr_validation_service = QRValidationService(events_repo, attendance_repo, rate_limit_service, clock=clock)

    return Container(
        events_repo=events_repo,
        attendance_repo=attendance_repo,
        counter_store=counter_store,
        attendance_service=attendance_service,
        event_monitor=event_monitor,
        event_service=event_service,
        rate_limit_service=rate_limit_service,
        qr_validation_service=qr_validation_service,
        cron_secret=cron_secret,
        conn=conn,
    )


def build_container(*, db_config: Mapping, redis_url: str, **options) -> Container:
    conn = DatabaseConnection.get_instance(DBConfig.from_mapping(db_config))
    return wire(
        events_repo=MySQLEventRepository(conn),
        attendance_repo=MySQLAttendanceRepository(conn),
        counter_store=RedisCounterStore.from_url(redis_url),
        window_storage=storage_from_string(redis_url, wrap_exceptions=True),
        conn=conn,
        **options,
    )
