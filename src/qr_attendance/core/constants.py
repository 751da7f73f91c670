"""Constants and defaults.

Note: Keep constants here to avoid magic numbers spread across code.
"""

DEFAULT_LATE_THRESHOLD_HOUR = 8
DEFAULT_NOTIFY_DELAY_SECONDS = 1.0
DEFAULT_TRANSPORT_TIMEOUT_SECONDS = 10.0
DEFAULT_SCAN_CONFLICT_RETRIES = 3
QR_TOKEN_PREFIX = "QR-"
