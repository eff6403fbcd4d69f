from __future__ import annotations

import importlib
import logging
from typing import Optional

from dotenv import load_dotenv
from flask import Flask, jsonify
from werkzeug.exceptions import HTTPException

from .attendance.controller import register as register_attendance
from .common.log_config import setup_logging
from .config import get_settings_module
from .container import Container, build_container
from .core.exceptions import DomainError
from .corrections.controller import register as register_corrections
from .database.bootstrap import apply_schema, ensure_demo_directory, list_tables
from .jobs import register as register_jobs
from .leaves.controller import register as register_leaves

logger = logging.getLogger(__name__)

_SETTING_KEYS = (
    "JWT_SECRET",
    "JWT_ALGORITHM",
    "OFFICE_LATITUDE",
    "OFFICE_LONGITUDE",
    "GEOFENCE_RADIUS",
    "WORK_START",
    "WORK_END",
    "LATE_TOLERANCE_MINUTES",
    "EARLY_LEAVE_TOLERANCE_MINUTES",
    "CORRECTION_MONTHLY_LIMIT",
    "CORRECTION_MAX_AGE_DAYS",
)


def register_error_handlers(app: Flask) -> None:
    @app.errorhandler(DomainError)
    def handle_domain_error(exc: DomainError):
        return jsonify({"message": str(exc)}), exc.status_code

    @app.errorhandler(HTTPException)
    def handle_http_error(exc: HTTPException):
        return jsonify({"message": exc.description}), exc.code

    @app.errorhandler(Exception)
    def handle_unexpected(exc: Exception):
        logger.exception("Unhandled error")
        return jsonify({"message": "Internal server error"}), 500


def create_app(settings_module: Optional[str] = None, container: Optional[Container] = None) -> Flask:
    load_dotenv(override=False)
    app = Flask(__name__)

    settings_module = settings_module or get_settings_module()
    settings = importlib.import_module(settings_module)
    setup_logging(getattr(settings, "LOG_LEVEL", "INFO"))

    app.secret_key = getattr(settings, "SECRET_KEY")
    app.config["DEBUG"] = bool(getattr(settings, "DEBUG", False))
    app.config["TESTING"] = bool(getattr(settings, "TESTING", False))
    for key in _SETTING_KEYS:
        if hasattr(settings, key):
            app.config[key] = getattr(settings, key)

    db_config = getattr(settings, "DB_CONFIG")
    logger.info(
        "settings=%s db=%s@%s:%s/%s",
        settings_module,
        db_config.get("user"),
        db_config.get("host"),
        db_config.get("port", 3306),
        db_config.get("database"),
    )

    if container is None:
        if bool(getattr(settings, "AUTO_INIT_DB", False)):
            apply_schema(db_config)
            logger.info("Schema ready (tables=%s)", len(list_tables(db_config)))
        if bool(getattr(settings, "AUTO_SEED_DB", False)):
            ensure_demo_directory(db_config)
        container = build_container(db_config=db_config, settings=settings)

    app.extensions["presensi"] = container

    register_error_handlers(app)
    register_attendance(app, container)
    register_corrections(app, container)
    register_leaves(app, container)
    register_jobs(app, container)

    return app
