"""Constants and defaults.

Note: Keep constants here to avoid magic numbers spread across code.
"""

EARTH_RADIUS_M = 6_371_000

# Proximity tiers (meters)
APPROVE_MAX_DISTANCE_M = 20.0
PENDING_MAX_DISTANCE_M = 80.0
COMBINED_REJECT_DISTANCE_M = 80.0
OUTER_CUTOFF_DISTANCE_M = 100.0

MAX_NOTE_LENGTH = 1000
MIN_APPEAL_LENGTH = 10
MIN_RESOLUTION_LENGTH = 10

DEFAULT_MONITOR_INTERVAL_SECONDS = 60

# Sliding window: attempts per window (seconds)
DEFAULT_AUTH_LIMIT = 5
DEFAULT_AUTH_WINDOW_SECONDS = 3600

# Token bucket: capacity, refill tokens per interval (seconds)
DEFAULT_QR_CAPACITY = 10
DEFAULT_QR_REFILL_TOKENS = 10
DEFAULT_QR_REFILL_SECONDS = 60
