from __future__ import annotations

import atexit
import importlib
from pathlib import Path
from typing import Optional

from dotenv import load_dotenv
from flask import Flask
from werkzeug.middleware.proxy_fix import ProxyFix

from config import get_settings_module

from .attendance.controller import register as register_attendance
from .common.http import register_error_handlers
from .common.logging import configure_logging, get_logger
from .container import Container, build_container
from .core.constants import DEFAULT_MONITOR_INTERVAL_SECONDS
from .database.bootstrap import apply_schema, list_tables
from .database.connection import DBConfig
from .events.controller import register as register_events
from .events.scheduler import RecurringTask

logger = get_logger(__name__)


def create_app(container: Optional[Container] = None) -> Flask:
    load_dotenv(override=False)
    app = Flask(__name__)

    settings_module = get_settings_module()
    settings = importlib.import_module(settings_module)
    configure_logging(getattr(settings, "LOG_LEVEL", "INFO"), environment=settings_module.split(".")[-1])

    app.secret_key = getattr(settings, "SECRET_KEY")
    db_config = getattr(settings, "DB_CONFIG")
    app.config["DEBUG"] = bool(getattr(settings, "DEBUG", False))
    app.config["TESTING"] = bool(getattr(settings, "TESTING", False))

    # Client IP (QR rate limit key) comes from X-Forwarded-For behind a proxy.
    if getattr(settings, "TRUST_PROXY", False):
        app.wsgi_app = ProxyFix(app.wsgi_app, x_for=1, x_proto=1)

    logger.info("settings=%s db=%s", settings_module, DBConfig.from_mapping(db_config).dsn())

    if container is None:
        if bool(getattr(settings, "AUTO_INIT_DB", False)):
            schema_path = Path(__file__).resolve().parents[3] / "database" / "schema.sql"
            apply_schema(db_config, schema_path=schema_path)
            logger.info("schema ready (tables=%d)", len(list_tables(db_config)))

        container = build_container(
            db_config=db_config,
            redis_url=getattr(settings, "REDIS_URL"),
            rate_limit_enabled=bool(getattr(settings, "RATE_LIMIT_ENABLED")),
            rate_limit_fail_open=bool(getattr(settings, "RATE_LIMIT_FAIL_OPEN", False)),
            auth_limit=getattr(settings, "AUTH_RATE_LIMIT"),
            qr_limit=getattr(settings, "QR_RATE_LIMIT"),
            app_url=getattr(settings, "APP_URL", ""),
            cron_secret=getattr(settings, "CRON_SECRET", ""),
        )

    if not container.rate_limit_service.enabled:
        logger.warning("Rate limiting is DISABLED by configuration (RATE_LIMIT_ENABLED=0)")

    app.extensions["geoattend"] = container

    register_error_handlers(app)
    register_attendance(app, container)
    register_events(app, container)

    if bool(getattr(settings, "EVENT_MONITOR_ENABLED", False)):
        task = RecurringTask(
            container.event_monitor.sweep,
            interval_seconds=int(getattr(settings, "EVENT_MONITOR_INTERVAL_SECONDS", DEFAULT_MONITOR_INTERVAL_SECONDS)),
            name="event-status-monitor",
        )
        task.start()
        atexit.register(task.stop, timeout=5)
        app.extensions["geoattend.event_monitor_task"] = task

    return app
