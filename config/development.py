import os

SECRET_KEY = os.getenv("SECRET_KEY", "dev-secret-key")

DB_CONFIG = {
    "host": os.getenv("DB_HOST", "localhost"),
    "port": int(os.getenv("DB_PORT", "3306")),
    "user": os.getenv("DB_USER", "root"),
    "password": os.getenv("DB_PASSWORD", ""),
    "database": os.getenv("DB_NAME", "geoattend"),
}

REDIS_URL = os.getenv("REDIS_URL", "redis://localhost:6379/0")

# Base URL printed into event QR codes
APP_URL = os.getenv("APP_URL", "http://localhost:5000")

DEBUG = True
LOG_LEVEL = os.getenv("LOG_LEVEL", "DEBUG")

# If enabled, app will apply schema.sql on startup (idempotent: CREATE IF NOT EXISTS)
AUTO_INIT_DB = bool(int(os.getenv("AUTO_INIT_DB", "1")))

# Empty secret leaves the cron endpoint open; fine on a laptop only.
CRON_SECRET = os.getenv("CRON_SECRET", "")

EVENT_MONITOR_ENABLED = bool(int(os.getenv("EVENT_MONITOR_ENABLED", "1")))
EVENT_MONITOR_INTERVAL_SECONDS = int(os.getenv("EVENT_MONITOR_INTERVAL_SECONDS", "60"))

# Set RATE_LIMIT_ENABLED=0 to work without a local Redis.
RATE_LIMIT_ENABLED = bool(int(os.getenv("RATE_LIMIT_ENABLED", "1")))
RATE_LIMIT_FAIL_OPEN = bool(int(os.getenv("RATE_LIMIT_FAIL_OPEN", "0")))
AUTH_RATE_LIMIT = (5, 3600)
QR_RATE_LIMIT = (10, 10, 60)

TRUST_PROXY = bool(int(os.getenv("TRUST_PROXY", "0")))
