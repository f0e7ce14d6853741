import os

from config import env_flag

SECRET_KEY = os.getenv("SECRET_KEY", "dev-secret-key")

# Public tier: what the running app connects with
DB_CONFIG = {
    "host": os.getenv("DB_HOST", "localhost"),
    "port": int(os.getenv("DB_PORT", "3306")),
    "user": os.getenv("DB_USER", "root"),
    "password": os.getenv("DB_PASSWORD", ""),
    "database": os.getenv("DB_NAME", "sunday_attendance"),
}

# Privileged tier: migration and maintenance scripts only
SERVICE_DB_CONFIG = {
    **DB_CONFIG,
    "user": os.getenv("DB_SERVICE_USER", DB_CONFIG["user"]),
    "password": os.getenv("DB_SERVICE_PASSWORD", DB_CONFIG["password"]),
}

DEBUG = True
LOG_LEVEL = os.getenv("LOG_LEVEL", "DEBUG")

# Skip the identity provider and sign in as a mock admin teacher
DEV_BYPASS_AUTH = env_flag("DEV_BYPASS_AUTH")

SHEETS_API_URL = os.getenv("SHEETS_API_URL", "")
ABSENCE_ALERT_THRESHOLD = int(os.getenv("ABSENCE_ALERT_THRESHOLD", "3"))
QUERY_STALE_TIME = 55 * 60

# If enabled, app will apply schema.sql on startup (idempotent: CREATE IF NOT EXISTS)
AUTO_INIT_DB = env_flag("AUTO_INIT_DB", "1")
AUTO_SEED_DB = env_flag("AUTO_SEED_DB")
