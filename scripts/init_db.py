"""Create the attendance tables (schedules, roster, records, device log).

Usage: APP_ENV=production python scripts/init_db.py
Safe to re-run; every statement in schema.sql is CREATE ... IF NOT EXISTS.
"""

from __future__ import annotations

import importlib
import logging
import sys
from pathlib import Path

REPO_ROOT = Path(__file__).resolve().parents[1]
for p in (REPO_ROOT, REPO_ROOT / "src"):
    if str(p) not in sys.path:
        sys.path.insert(0, str(p))

from dotenv import load_dotenv

from config import get_settings_module

from classroom_attendance.database.bootstrap import apply_schema, list_tables

logger = logging.getLogger("init_db")


def main() -> None:
    load_dotenv(override=False)
    settings = importlib.import_module(get_settings_module())
    logging.basicConfig(level=getattr(settings, "LOG_LEVEL", "INFO"))
    db_config = dict(settings.DB_CONFIG)

    apply_schema(db_config, schema_path=REPO_ROOT / "database" / "schema.sql")
    tables = set(list_tables(db_config))
    expected = {"schedules", "students", "section_students", "attendance_records", "device_events"}
    missing = sorted(expected - tables)
    if missing:
        raise SystemExit(f"schema applied but tables are missing: {', '.join(missing)}")
    logger.info(
        "attendance schema ready on %s@%s:%s/%s",
        db_config.get("user"),
        db_config.get("host"),
        db_config.get("port", 3306),
        db_config.get("database"),
    )


if __name__ == "__main__":
    main()
