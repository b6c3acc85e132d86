"""Constants and defaults.

Note: Keep constants here to avoid magic numbers spread across code.
"""

DEFAULT_DISPLAY_TIMEZONE = "UTC"
DEFAULT_VISIBLE_WINDOW_DAYS = 7
DEFAULT_DURATION_TICK_SECONDS = 1.0
DEFAULT_FEED_POLL_SECONDS = 1.0
DEFAULT_FEED_BATCH_SIZE = 200
# Event ids behind the newest delivered one that are re-read on every poll.
DEFAULT_FEED_LOOKBACK_EVENTS = 500
DEFAULT_RESYNC_RETRY_SECONDS = 1.0
DEFAULT_RESYNC_MAX_RETRY_SECONDS = 30.0

REPORT_TIMESTAMP_FORMAT = "%d/%m/%Y %H:%M"
DEFAULT_REPORT_COLUMNS = ("Name", "Email", "Punch In", "Punch Out", "Created At")
