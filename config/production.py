import os

from config import env_flag

SECRET_KEY = os.getenv("SECRET_KEY", "please-set-SECRET_KEY")

DB_CONFIG = {
    "host": os.getenv("DB_HOST", "localhost"),
    "port": int(os.getenv("DB_PORT", "3306")),
    "user": os.getenv("DB_USER", "sunday_app"),
    "password": os.getenv("DB_PASSWORD", ""),
    "database": os.getenv("DB_NAME", "sunday_attendance"),
}

SERVICE_DB_CONFIG = {
    **DB_CONFIG,
    "user": os.getenv("DB_SERVICE_USER", ""),
    "password": os.getenv("DB_SERVICE_PASSWORD", ""),
}

DEBUG = False
LOG_LEVEL = os.getenv("LOG_LEVEL", "INFO")

# Never honoured in production
DEV_BYPASS_AUTH = False

SHEETS_API_URL = os.getenv("SHEETS_API_URL", "")
ABSENCE_ALERT_THRESHOLD = int(os.getenv("ABSENCE_ALERT_THRESHOLD", "3"))
QUERY_STALE_TIME = 55 * 60

AUTO_INIT_DB = env_flag("AUTO_INIT_DB")
AUTO_SEED_DB = env_flag("AUTO_SEED_DB")
