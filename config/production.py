import os

SECRET_KEY = os.getenv("SECRET_KEY", "please-set-SECRET_KEY")

DB_CONFIG = {
    "host": os.getenv("DB_HOST", "localhost"),
    "port": int(os.getenv("DB_PORT", "3306")),
    "user": os.getenv("DB_USER", "root"),
    "password": os.getenv("DB_PASSWORD", ""),
    "database": os.getenv("DB_NAME", "geoattend"),
}

REDIS_URL = os.getenv("REDIS_URL", "redis://localhost:6379/0")
APP_URL = os.getenv("APP_URL", "")

DEBUG = False
LOG_LEVEL = os.getenv("LOG_LEVEL", "INFO")

AUTO_INIT_DB = bool(int(os.getenv("AUTO_INIT_DB", "0")))

CRON_SECRET = os.getenv("CRON_SECRET", "")

EVENT_MONITOR_ENABLED = bool(int(os.getenv("EVENT_MONITOR_ENABLED", "1")))
EVENT_MONITOR_INTERVAL_SECONDS = int(os.getenv("EVENT_MONITOR_INTERVAL_SECONDS", "60"))

# Never bypassed in production.
RATE_LIMIT_ENABLED = True
RATE_LIMIT_FAIL_OPEN = bool(int(os.getenv("RATE_LIMIT_FAIL_OPEN", "0")))
AUTH_RATE_LIMIT = (5, 3600)
QR_RATE_LIMIT = (10, 10, 60)

TRUST_PROXY = bool(int(os.getenv("TRUST_PROXY", "1")))
