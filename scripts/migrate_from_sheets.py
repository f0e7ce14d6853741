"""Import students, lessons and schedules from the legacy spreadsheet endpoint.

Usage: python scripts/migrate_from_sheets.py [--url URL]
Attendance history is not migrated.
"""

from __future__ import annotations

import argparse
import importlib
import logging
import sys
from pathlib import Path

REPO_ROOT = Path(__file__).resolve().parents[1]
if str(REPO_ROOT) not in sys.path:
    sys.path.insert(0, str(REPO_ROOT))

from dotenv import load_dotenv

from config import get_settings_module

from src.sunday_attendance.sunday_attendance.container import build_container
from src.sunday_attendance.sunday_attendance.core.exceptions import DomainError


def main() -> int:
    load_dotenv(override=False)
    settings = importlib.import_module(get_settings_module())
    logging.basicConfig(level=getattr(logging, str(getattr(settings, "LOG_LEVEL", "INFO")).upper(), logging.INFO))

    parser = argparse.ArgumentParser(description="Migrate roster, lessons and schedules from the spreadsheet.")
    parser.add_argument("--url", default=getattr(settings, "SHEETS_API_URL", ""))
    args = parser.parse_args()

    if not args.url:
        print("Missing spreadsheet URL: set SHEETS_API_URL or pass --url", file=sys.stderr)
        return 1

    db_config = dict(getattr(settings, "SERVICE_DB_CONFIG", settings.DB_CONFIG))
    if not db_config.get("user"):
        print("Missing DB_SERVICE_USER / DB_SERVICE_PASSWORD", file=sys.stderr)
        return 1

    container = build_container(db_config=db_config, shared_connection=False)
    try:
        summary = container.migration.run_from_url(args.url)
    except DomainError as e:
        print(f"Migration failed: {e}", file=sys.stderr)
        return 1

    print("Migration complete.")
    for line in summary.lines():
        print(f"  - {line}")
    return 0


if __name__ == "__main__":
    sys.exit(main())
