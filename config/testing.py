import os

SECRET_KEY = "test-secret"

DB_CONFIG = {
    "host": os.getenv("DB_HOST", "localhost"),
    "port": int(os.getenv("DB_PORT", "3306")),
    "user": os.getenv("DB_USER", "root"),
    "password": os.getenv("DB_PASSWORD", ""),
    "database": os.getenv("DB_NAME", "geoattend_test"),
}

REDIS_URL = os.getenv("REDIS_URL", "redis://localhost:6379/15")
APP_URL = "http://testserver"

DEBUG = False
TESTING = True
LOG_LEVEL = "WARNING"

AUTO_INIT_DB = False

CRON_SECRET = "test-cron-secret"

EVENT_MONITOR_ENABLED = False
EVENT_MONITOR_INTERVAL_SECONDS = 60

RATE_LIMIT_ENABLED = False
RATE_LIMIT_FAIL_OPEN = False
AUTH_RATE_LIMIT = (5, 3600)
QR_RATE_LIMIT = (10, 10, 60)

TRUST_PROXY = False
