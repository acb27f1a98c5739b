"""Run the event lifecycle sweep outside the web process.

Once (for cron):      python scripts/run_event_monitor.py --once
Forever (systemd):    python scripts/run_event_monitor.py --interval 60
"""
from __future__ import annotations

import argparse
import importlib
import signal
import sys
import threading
from pathlib import Path

REPO_ROOT = Path(__file__).resolve().parents[1]
if str(REPO_ROOT) not in sys.path:
    sys.path.insert(0, str(REPO_ROOT))

from dotenv import load_dotenv

from config import get_settings_module

from src.geoattend.geoattend.common.logging import configure_logging, get_logger
from src.geoattend.geoattend.core.constants import DEFAULT_MONITOR_INTERVAL_SECONDS
from src.geoattend.geoattend.database.connection import DBConfig, DatabaseConnection
from src.geoattend.geoattend.events.monitor import EventLifecycleMonitor
from src.geoattend.geoattend.events.mysql_event_repository import MySQLEventRepository
from src.geoattend.geoattend.events.scheduler import RecurringTask

logger = get_logger("geoattend.scripts.run_event_monitor")


def main(argv: list[str] | None = None) -> int:
    load_dotenv(override=False)
    settings = importlib.import_module(get_settings_module())

    parser = argparse.ArgumentParser(description="Complete events whose check-out window has passed.")
    parser.add_argument("--once", action="store_true", help="run a single sweep and exit")
    parser.add_argument(
        "--interval",
        type=int,
        default=int(getattr(settings, "EVENT_MONITOR_INTERVAL_SECONDS", DEFAULT_MONITOR_INTERVAL_SECONDS)),
        help="seconds between sweeps",
    )
    args = parser.parse_args(argv)

    configure_logging(getattr(settings, "LOG_LEVEL", "INFO"), environment=get_settings_module().split(".")[-1])

    conn = DatabaseConnection.get_instance(DBConfig.from_mapping(settings.DB_CONFIG))
    monitor = EventLifecycleMonitor(MySQLEventRepository(conn))

    if args.once:
        logger.info("Transitioned %d event(s)", monitor.sweep())
        return 0

    stopped = threading.Event()
    task = RecurringTask(monitor.sweep, interval_seconds=args.interval, name="event-status-monitor")

    def _shutdown(signum, _frame):
        logger.info("Received signal %s, stopping", signum)
        stopped.set()

    signal.signal(signal.SIGINT, _shutdown)
    signal.signal(signal.SIGTERM, _shutdown)

    task.start()
    stopped.wait()
    task.stop(timeout=10)
    return 0


if __name__ == "__main__":
    sys.exit(main())
