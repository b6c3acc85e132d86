import os

SECRET_KEY = os.getenv("SECRET_KEY", "dev-secret-key")

DB_CONFIG = {
    "host": os.getenv("DB_HOST", "localhost"),
    "port": int(os.getenv("DB_PORT", "3306")),
    "user": os.getenv("DB_USER", "root"),
    "password": os.getenv("DB_PASSWORD", ""),
    "database": os.getenv("DB_NAME", "break_tracker"),
}

DEBUG = True

# If enabled, app will apply schema.sql on startup (idempotent: CREATE IF NOT EXISTS)
AUTO_INIT_DB = bool(int(os.getenv("AUTO_INIT_DB", "1")))
# Optional: also insert the demo roster on startup
AUTO_SEED_DB = bool(int(os.getenv("AUTO_SEED_DB", "0")))

# Timestamps are stored in UTC; this only affects display and CSV export.
DISPLAY_TIMEZONE = os.getenv("DISPLAY_TIMEZONE", "UTC")
VISIBLE_WINDOW_DAYS = int(os.getenv("VISIBLE_WINDOW_DAYS", "7"))
# Comma-separated; empty keeps Name,Email,Punch In,Punch Out,Created At. "Duration" is also available.
REPORT_COLUMNS = tuple(c.strip() for c in os.getenv("REPORT_COLUMNS", "").split(",") if c.strip())

DURATION_TICK_SECONDS = float(os.getenv("DURATION_TICK_SECONDS", "1"))
FEED_POLL_SECONDS = float(os.getenv("FEED_POLL_SECONDS", "1"))
FEED_BATCH_SIZE = int(os.getenv("FEED_BATCH_SIZE", "200"))
FEED_LOOKBACK_EVENTS = int(os.getenv("FEED_LOOKBACK_EVENTS", "500"))
RESYNC_RETRY_SECONDS = float(os.getenv("RESYNC_RETRY_SECONDS", "1"))
RESYNC_MAX_RETRY_SECONDS = float(os.getenv("RESYNC_MAX_RETRY_SECONDS", "30"))

LOG_LEVEL = os.getenv("LOG_LEVEL", "DEBUG")
LOG_JSON = bool(int(os.getenv("LOG_JSON", "0")))
