# backend/partsdesk/__init__.py
import logging
import time

from flask import Flask, g, jsonify, request
from sqlalchemy.exc import SQLAlchemyError
from werkzeug.exceptions import HTTPException

from .config import Config
from .extensions import db, migrate
from .storage import init_store


def _seed_defaults(app: Flask) -> None:
    """Sample catalogue and letterhead for a fresh install."""
    from .services import products_service, settings_service

    with app.app_context():
        try:
            created = products_service.seed_default_products()
            settings_service.get_settings()
        except SQLAlchemyError:
            # Tables not created yet; `flask shop init` or `flask db upgrade` first
            db.session.rollback()
            app.logger.warning("Skipping default data: database schema is not ready")
            return
        if created:
            app.logger.info("Seeded %s default products", created)


def create_app(config_object=None) -> Flask:
    app = Flask(__name__, instance_relative_config=True)
    app.config.from_object(config_object or Config)

    app.logger.setLevel(getattr(logging, str(app.config.get("LOG_LEVEL", "INFO")).upper(), logging.INFO))

    # Initialize extensions
    db.init_app(app)
    migrate.init_app(app, db)

    # Import models so Alembic can discover metadata reliably
    from . import models  # noqa: F401

    init_store(app)

    if app.config.get("SEED_DEFAULT_PRODUCTS"):
        _seed_defaults(app)

    # Register blueprints
    from .routes.system import system_bp
    from .routes.auth import auth_bp
    from .routes.products import products_bp
    from .routes.invoices import invoices_bp
    from .routes.settings import settings_bp

    app.register_blueprint(system_bp)
    app.register_blueprint(auth_bp)
    app.register_blueprint(products_bp)
    app.register_blueprint(invoices_bp)
    app.register_blueprint(settings_bp)

    @app.before_request
    def start_timer():
        g.request_started = time.perf_counter()

    @app.after_request
    def log_request(response):
        started = g.pop("request_started", None)
        if started is not None and request.path.startswith("/api"):
            elapsed_ms = (time.perf_counter() - started) * 1000
            app.logger.info(
                "%s %s %s in %dms", request.method, request.path, response.status_code, elapsed_ms
            )
        return response

    @app.after_request
    def add_cors_headers(response):
        origin = request.headers.get("Origin")
        allowed_origins = app.config.get("CORS_ALLOWED_ORIGINS") or set()
        if origin in allowed_origins:
            response.headers["Access-Control-Allow-Origin"] = origin
            response.headers["Vary"] = "Origin"
            response.headers["Access-Control-Allow-Credentials"] = "true"
            response.headers["Access-Control-Allow-Headers"] = "Content-Type"
            response.headers["Access-Control-Allow-Methods"] = "GET,POST,PUT,DELETE,OPTIONS"
        return response

    @app.errorhandler(HTTPException)
    def handle_http_error(e):
        return jsonify({"message": e.description}), e.code

    @app.errorhandler(Exception)
    def handle_unexpected_error(e):
        app.logger.exception("Unhandled error on %s %s", request.method, request.path)
        return jsonify({"message": "Internal server error"}), 500

    # Register CLI commands
    from .cli import register_commands
    register_commands(app)

    return app
