"""Create the configured database and apply database/schema.sql.

Usage: APP_ENV=development python scripts/init_db.py
"""
from __future__ import annotations

import importlib
import logging
import sys
from pathlib import Path

REPO_ROOT = Path(__file__).resolve().parents[1]
if str(REPO_ROOT) not in sys.path:
    sys.path.insert(0, str(REPO_ROOT))

from dotenv import load_dotenv

from config import get_settings_module

from src.school_records.school_records.database.bootstrap import apply_schema, list_tables
from src.school_records.school_records.database.connection import DBConfig


def main() -> int:
    load_dotenv(override=False)
    logging.basicConfig(level=logging.INFO, format="%(levelname)s %(name)s: %(message)s")

    settings = importlib.import_module(get_settings_module())
    db_config = dict(settings.DB_CONFIG)

    count = apply_schema(db_config, schema_path=REPO_ROOT / "database" / "schema.sql")
    tables = list_tables(db_config)
    print(f"schema applied to {DBConfig.from_mapping(db_config).describe()}: {count} statements, {len(tables)} tables")
    return 0


if __name__ == "__main__":
    sys.exit(main())
