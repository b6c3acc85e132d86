import os

SECRET_KEY = "test-secret"

DB_CONFIG = {
    "host": os.getenv("DB_HOST", "localhost"),
    "port": int(os.getenv("DB_PORT", "3306")),
    "user": os.getenv("DB_USER", "root"),
    "password": os.getenv("DB_PASSWORD", ""),
    "database": os.getenv("DB_NAME", "break_tracker_test"),
}

DEBUG = False
TESTING = True

AUTO_INIT_DB = bool(int(os.getenv("AUTO_INIT_DB", "0")))
AUTO_SEED_DB = bool(int(os.getenv("AUTO_SEED_DB", "0")))

DISPLAY_TIMEZONE = "UTC"
VISIBLE_WINDOW_DAYS = 7
REPORT_COLUMNS = ()

DURATION_TICK_SECONDS = 0.01
FEED_POLL_SECONDS = 0.01
FEED_BATCH_SIZE = 50
FEED_LOOKBACK_EVENTS = 100
RESYNC_RETRY_SECONDS = 0.01
RESYNC_MAX_RETRY_SECONDS = 0.05

LOG_LEVEL = "WARNING"
LOG_JSON = False
