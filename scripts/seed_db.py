"""Seed service times and teachers, then create a password login for the first admin.

Usage: python scripts/seed_db.py [--email EMAIL] [--password PASSWORD]
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

from src.sunday_attendance.sunday_attendance.database.bootstrap import apply_seed_sql, ensure_demo_login


def main() -> int:
    load_dotenv(override=False)
    parser = argparse.ArgumentParser(description="Seed service times, teachers and a demo login.")
    parser.add_argument("--email", default="admin@igreja.local")
    parser.add_argument("--password", default="admin123")
    args = parser.parse_args()

    settings = importlib.import_module(get_settings_module())
    db_config = dict(getattr(settings, "SERVICE_DB_CONFIG", settings.DB_CONFIG))
    print(f"Seeding {db_config.get('database')} as service user {db_config.get('user')!r}")

    apply_seed_sql(db_config, seed_path=REPO_ROOT / "database" / "seed.sql")
    ensure_demo_login(db_config, email=args.email, password=args.password)

    print(f"Demo teacher login: {args.email}")
    if args.password == parser.get_default("password"):
        print("Default password in use; change it before sharing this install.")
    return 0


if __name__ == "__main__":
    sys.exit(main())
