from __future__ import annotations

import importlib
import logging
from pathlib import Path
from typing import Optional
from urllib.parse import urlsplit

from dotenv import load_dotenv
from flask import Flask, render_template, request, url_for

from config import get_settings_module

from .alerts.controller import register as register_alerts
from .attendance.controller import register as register_attendance
from .auth.controller import register as register_auth
from .auth.decorators import current_teacher
from .common.datetime_utils import format_br_date
from .container import Container, build_container
from .core.exceptions import DataAccessError, DomainError, NotFoundError, ValidationError
from .database.bootstrap import apply_schema, apply_seed_sql, ensure_demo_login, list_tables
from .lessons.controller import register as register_lessons
from .students.controller import register as register_students

logger = logging.getLogger(__name__)

ROOT = Path(__file__).resolve().parents[3]


def _configure_logging(level: str) -> None:
    logging.basicConfig(
        level=getattr(logging, str(level).upper(), logging.INFO),
        format="%(asctime)s %(levelname)s [%(name)s] %(message)s",
    )


def _retry_url() -> str:
    """GET pages retry themselves; form posts go back to the page that sent them."""
    if request.method == "GET":
        return request.url
    referrer = request.referrer
    if referrer and urlsplit(referrer).netloc == request.host:
        return referrer
    return url_for("home")


def _register_error_handlers(app: Flask) -> None:
    def _render(message: str, status: int):
        return (
            render_template("error.html", message=message, retry_url=_retry_url()),
            status,
        )

    @app.errorhandler(NotFoundError)
    def handle_not_found(e: NotFoundError):
        return _render(str(e), 404)

    @app.errorhandler(ValidationError)
    def handle_validation(e: ValidationError):
        return _render(str(e), 400)

    @app.errorhandler(DataAccessError)
    def handle_data_access(e: DataAccessError):
        logger.error("Unhandled data access error on %s: %s", request.path, e)
        return _render("Não foi possível carregar os dados. Verifique a conexão e tente novamente.", 503)

    @app.errorhandler(DomainError)
    def handle_domain(e: DomainError):
        logger.error("Unhandled domain error on %s: %s", request.path, e)
        return _render(str(e), 500)


def create_app(container: Optional[Container] = None) -> Flask:
    load_dotenv(override=False)
    app = Flask(__name__, template_folder=str(ROOT / "templates"), static_folder=str(ROOT / "static"))

    settings_module = get_settings_module()
    settings = importlib.import_module(settings_module)
    _configure_logging(getattr(settings, "LOG_LEVEL", "INFO"))

    app.secret_key = getattr(settings, "SECRET_KEY")
    db_config = getattr(settings, "DB_CONFIG")
    app.config["DEBUG"] = bool(getattr(settings, "DEBUG", False))
    app.config["TESTING"] = bool(getattr(settings, "TESTING", False))
    app.config["DEV_BYPASS_AUTH"] = bool(getattr(settings, "DEV_BYPASS_AUTH", False))
    app.jinja_env.filters["br_date"] = format_br_date
    app.jinja_env.globals["current_teacher"] = current_teacher

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
            apply_schema(db_config, schema_path=ROOT / "database" / "schema.sql")
            logger.info("Schema ready (tables=%d)", len(list_tables(db_config)))
        if bool(getattr(settings, "AUTO_SEED_DB", False)):
            apply_seed_sql(db_config, seed_path=ROOT / "database" / "seed.sql")
            ensure_demo_login(db_config)
            logger.info("Demo seed ready")

        container = build_container(
            db_config=db_config,
            absence_threshold=int(getattr(settings, "ABSENCE_ALERT_THRESHOLD", 3)),
            stale_time=float(getattr(settings, "QUERY_STALE_TIME", 55 * 60)),
        )

    register_auth(app, container)
    register_attendance(app, container)
    register_students(app, container)
    register_lessons(app, container)
    register_alerts(app, container)
    _register_error_handlers(app)

    return app
