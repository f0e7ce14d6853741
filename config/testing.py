import os

SECRET_KEY = "test-secret"

DB_CONFIG = {
    "host": os.getenv("DB_HOST", "localhost"),
    "port": int(os.getenv("DB_PORT", "3306")),
    "user": os.getenv("DB_USER", "root"),
    "password": os.getenv("DB_PASSWORD", ""),
    "database": os.getenv("DB_NAME", "sunday_attendance_test"),
}

SERVICE_DB_CONFIG = dict(DB_CONFIG)

DEBUG = False
TESTING = True
LOG_LEVEL = "WARNING"

DEV_BYPASS_AUTH = True

SHEETS_API_URL = ""
ABSENCE_ALERT_THRESHOLD = 3
QUERY_STALE_TIME = 0

AUTO_INIT_DB = False
AUTO_SEED_DB = False
