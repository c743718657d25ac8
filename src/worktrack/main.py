from __future__ import annotations

import importlib

from dotenv import load_dotenv
from flask import Flask
from werkzeug.exceptions import HTTPException

from .attendance.controller import register as register_attendance
from .cli import register_commands
from .common.http import json_error
from .config import get_settings_module
from .container import Container, build_container
from .core.constants import DEFAULT_RATE_LIMIT_MAX, DEFAULT_RATE_LIMIT_WINDOW_SECONDS
from .core.logging import configure_logging, get_logger
from .database.bootstrap import apply_schema
from .stats.controller import register as register_stats
from .targets.controller import register as register_targets
from .time_entries.controller import register as register_time_entries
from .timers.controller import register as register_timers

logger = get_logger(__name__)


def create_app(*, container: Container | None = None, settings_module: str | None = None) -> Flask:
    load_dotenv(override=False)
    app = Flask(__name__)

    settings_module = settings_module or get_settings_module()
    settings = importlib.import_module(settings_module)
    configure_logging(getattr(settings, "LOG_LEVEL", "INFO"))

    app.secret_key = getattr(settings, "SECRET_KEY")
    app.config["DEBUG"] = bool(getattr(settings, "DEBUG", False))
    app.config["TESTING"] = bool(getattr(settings, "TESTING", False))
    app.config["DB_CONFIG"] = dict(getattr(settings, "DB_CONFIG"))
    app.config["RATE_LIMIT_MAX"] = int(getattr(settings, "RATE_LIMIT_MAX", DEFAULT_RATE_LIMIT_MAX))
    app.config["RATE_LIMIT_WINDOW_SECONDS"] = int(getattr(settings, "RATE_LIMIT_WINDOW_SECONDS", DEFAULT_RATE_LIMIT_WINDOW_SECONDS))

    if container is None:
        db_config = app.config["DB_CONFIG"]
        logger.info(
            "settings=%s db=%s@%s:%s/%s",
            settings_module,
            db_config.get("user"),
            db_config.get("host"),
            db_config.get("port", 3306),
            db_config.get("database"),
        )
        if bool(getattr(settings, "AUTO_INIT_DB", False)):
            apply_schema(db_config)
        container = build_container(db_config=db_config, settings=settings)

    app.extensions["worktrack"] = container

    @app.errorhandler(HTTPException)
    def handle_http_error(e: HTTPException):
        return json_error(e.description or e.name, code=e.name.upper().replace(" ", "_"), status=e.code or 500)

    register_timers(app, container)
    register_time_entries(app, container)
    register_stats(app, container)
    register_attendance(app, container)
    register_targets(app, container)
    register_commands(app, container)

    return app
