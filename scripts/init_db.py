from __future__ import annotations

import importlib
import sys
from pathlib import Path

from dotenv import load_dotenv

REPO_ROOT = Path(__file__).resolve().parents[1]
if str(REPO_ROOT) not in sys.path:
    sys.path.insert(0, str(REPO_ROOT))

from config import get_settings_module

from src.break_tracker.break_tracker.database.bootstrap import apply_schema, describe_target, missing_tables
from src.break_tracker.break_tracker.main import SCHEMA_PATH


def main() -> int:
    load_dotenv(override=False)
    settings = importlib.import_module(get_settings_module())
    db_config = dict(settings.DB_CONFIG)

    apply_schema(db_config, schema_path=SCHEMA_PATH)
    missing = missing_tables(db_config)
    if missing:
        print(f"FAIL: Schema incomplete -> {describe_target(db_config)} (missing={', '.join(missing)})")
        return 1

    print(f"OK: Schema ready -> {describe_target(db_config)}")
    return 0


if __name__ == "__main__":
    sys.exit(main())
