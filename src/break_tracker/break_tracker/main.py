from __future__ import annotations

import importlib
import logging
from pathlib import Path
from typing import Optional

from dotenv import load_dotenv
from flask import Flask

from config import get_settings_module

from .container import Container, build_container
from .core.logging import configure_logging
from .database.bootstrap import apply_schema, describe_target, ensure_demo_members, missing_tables
from .intervals.controller import register as register_intervals
from .members.controller import register as register_members
from .reports.controller import register as register_reports

logger = logging.getLogger(__name__)

SCHEMA_PATH = Path(__file__).resolve().parents[3] / "database" / "schema.sql"


def create_app(container: Optional[Container] = None) -> Flask:
    load_dotenv(override=False)
    app = Flask(__name__)

    settings_module = get_settings_module()
    settings = importlib.import_module(settings_module)
    app.secret_key = getattr(settings, "SECRET_KEY")
    db_config = getattr(settings, "DB_CONFIG")
    app.config["DEBUG"] = bool(getattr(settings, "DEBUG", False))
    app.config["TESTING"] = bool(getattr(settings, "TESTING", False))

    configure_logging(
        getattr(settings, "LOG_LEVEL", "INFO"),
        json_lines=bool(getattr(settings, "LOG_JSON", True)),
    )
    logger.info("Starting break tracker: settings=%s db=%s", settings_module, describe_target(db_config))

    if container is None:
        if bool(getattr(settings, "AUTO_INIT_DB", False)):
            apply_schema(db_config, schema_path=SCHEMA_PATH)
            missing = missing_tables(db_config)
            if missing:
                logger.warning("Schema incomplete, missing tables: %s", ", ".join(missing))
            else:
                logger.info("Schema ready")
        if bool(getattr(settings, "AUTO_SEED_DB", False)):
            logger.info("Demo members added: %d", ensure_demo_members(db_config))
        container = build_container(db_config=db_config, settings=settings)

    app.extensions["break_tracker"] = container

    register_members(app, container)
    register_intervals(app, container)
    register_reports(app, container)

    return app
