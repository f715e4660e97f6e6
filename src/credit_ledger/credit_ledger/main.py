from __future__ import annotations

import importlib
import logging
from pathlib import Path
from typing import Optional

from dotenv import load_dotenv
from flask import Flask

from .adjustments.controller import register as register_adjustments
from .attendance.controller import register as register_attendance
from .config import get_settings_module
from .container import Container, build_container
from .credits.controller import register as register_credits
from .database.bootstrap import apply_schema, apply_sql_file, list_tables

logger = logging.getLogger(__name__)

DATABASE_DIR = Path(__file__).resolve().parents[3] / "database"


def create_app(container: Optional[Container] = None) -> Flask:
    load_dotenv(override=False)
    app = Flask(__name__)

    settings_module = get_settings_module()
    settings = importlib.import_module(settings_module)
    app.secret_key = getattr(settings, "SECRET_KEY")
    app.config["DEBUG"] = bool(getattr(settings, "DEBUG", False))
    app.config["TESTING"] = bool(getattr(settings, "TESTING", False))

    logging.basicConfig(
        level=getattr(settings, "LOG_LEVEL", "INFO"),
        format="%(asctime)s %(levelname)s [%(name)s] %(message)s",
    )

    if container is None:
        db_config = getattr(settings, "DB_CONFIG")
        logger.info(
            "settings=%s db=%s@%s:%s/%s",
            settings_module,
            db_config.get("user"),
            db_config.get("host"),
            db_config.get("port", 3306),
            db_config.get("database"),
        )

        if bool(getattr(settings, "AUTO_INIT_DB", False)):
            apply_schema(db_config, schema_path=DATABASE_DIR / "schema.sql")
            logger.info("schema ready (tables=%s)", len(list_tables(db_config)))
        if bool(getattr(settings, "AUTO_SEED_DB", False)):
            apply_sql_file(db_config, sql_path=DATABASE_DIR / "seed.sql")
            logger.info("demo catalog ready")

        container = build_container(
            db_config=db_config,
            max_attempts=int(getattr(settings, "TRANSACTION_MAX_ATTEMPTS", 5)),
            prevent_duplicate_checkin=bool(getattr(settings, "PREVENT_DUPLICATE_CHECKIN", False)),
            low_credit_threshold=int(getattr(settings, "LOW_CREDIT_THRESHOLD", 3)),
        )

    app.extensions["credit_ledger"] = container

    register_credits(app, container)
    register_attendance(app, container)
    register_adjustments(app, container)

    return app
