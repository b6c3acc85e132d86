from __future__ import annotations

import importlib
import sys
from pathlib import Path

from dotenv import load_dotenv

REPO_ROOT = Path(__file__).resolve().parents[1]
if str(REPO_ROOT) not in sys.path:
    sys.path.insert(0, str(REPO_ROOT))

from config import get_settings_module

from src.break_tracker.break_tracker.database.bootstrap import describe_target, ensure_demo_members


def main() -> None:
    load_dotenv(override=False)
    settings = importlib.import_module(get_settings_module())
    db_config = dict(settings.DB_CONFIG)

    added = ensure_demo_members(db_config)
    print(f"OK: Seeded demo roster -> {describe_target(db_config)} (added={added})")


if __name__ == "__main__":
    main()
