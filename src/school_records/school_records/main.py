from __future__ import annotations

import importlib
from pathlib import Path

from dotenv import load_dotenv
from flask import Flask

from config import get_settings_module

from .app_logger import get_logger, setup_logging
from .common.http import register_error_handlers
from .container import build_container
from .core.constants import MAX_ATTACHMENT_BYTES
from .database.bootstrap import apply_schema, list_tables
from .database.connection import DBConfig
from .attendance.controller import register as register_attendance
from .grades.controller import register as register_grades
from .justifications.controller import register as register_justifications

log = get_logger("main")


def create_app() -> Flask:
    load_dotenv(override=False)
    app = Flask(__name__)

    settings_module = get_settings_module()
    settings = importlib.import_module(settings_module)
    app.secret_key = getattr(settings, "SECRET_KEY")
    db_config = getattr(settings, "DB_CONFIG")
    app.config["DEBUG"] = bool(getattr(settings, "DEBUG", False))
    app.config["TESTING"] = bool(getattr(settings, "TESTING", False))

    setup_logging(getattr(settings, "LOG_LEVEL", None))

    max_attachment = int(getattr(settings, "MAX_ATTACHMENT_BYTES", MAX_ATTACHMENT_BYTES))
    app.config["UPLOAD_DIR"] = str(getattr(settings, "UPLOAD_DIR", "uploads/justifications"))
    # Leave room for the multipart envelope; the attachment policy enforces the real limit.
    app.config["MAX_CONTENT_LENGTH"] = max_attachment + 64 * 1024

    log.info("settings=%s db=%s", settings_module, DBConfig.from_mapping(db_config).describe())

    if bool(getattr(settings, "AUTO_INIT_DB", False)):
        schema_path = Path(__file__).resolve().parents[3] / "database" / "schema.sql"
        apply_schema(db_config, schema_path=schema_path)
        log.info("schema ready (tables=%d)", len(list_tables(db_config)))

    container = build_container(db_config=db_config, max_attachment_bytes=max_attachment)

    register_error_handlers(app)
    register_grades(app, container)
    register_attendance(app, container)
    register_justifications(app, container)

    return app
