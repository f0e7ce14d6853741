"""Create the database and apply ``database/schema.sql`` with the service credentials.

Usage: python scripts/init_db.py [--schema PATH]
"""

from __future__ import annotations

import argparse
import importlib
import sys
from pathlib import Path

REPO_ROOT = Path(__file__).resolve().parents[1]
if str(REPO_ROOT) not in sys.path:
    sys.path.insert(0, str(REPO_ROOT))

from dotenv import load_dotenv

from config import get_settings_module

from src.sunday_attendance.sunday_attendance.database.bootstrap import apply_schema, list_tables

REQUIRED_TABLES = (
    "auth_identities",
    "students",
    "teachers",
    "service_times",
    "lessons",
    "schedules",
    "schedule_assignments",
    "attendance_records",
)


def main() -> int:
    load_dotenv(override=False)
    parser = argparse.ArgumentParser(description="Apply the attendance schema (service credentials).")
    parser.add_argument("--schema", type=Path, default=REPO_ROOT / "database" / "schema.sql")
    args = parser.parse_args()

    settings = importlib.import_module(get_settings_module())
    db_config = dict(getattr(settings, "SERVICE_DB_CONFIG", settings.DB_CONFIG))
    print(f"Service user {db_config.get('user')!r} -> {db_config.get('host')}:{db_config.get('port', 3306)}/{db_config.get('database')}")

    apply_schema(db_config, schema_path=args.schema)

    missing = sorted(set(REQUIRED_TABLES) - set(list_tables(db_config)))
    if missing:
        print(f"Schema incomplete, missing: {', '.join(missing)}", file=sys.stderr)
        return 1
    print(f"Schema ready ({len(REQUIRED_TABLES)} tables) from {args.schema.name}")
    return 0


if __name__ == "__main__":
    sys.exit(main())
