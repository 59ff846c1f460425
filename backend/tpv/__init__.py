# backend/tpv/__init__.py
import logging

from flask import Flask, request

from .config import Config
from .extensions import db, migrate


def create_app(test_config: dict | None = None) -> Flask:
    app = Flask(__name__, instance_relative_config=True)
    app.config.from_object(Config)
    if test_config:
        app.config.update(test_config)

    level = getattr(logging, str(app.config.get("LOG_LEVEL", "INFO")).upper(), logging.INFO)
    app.logger.setLevel(level)
    logging.getLogger("tpv").setLevel(level)
    if not logging.getLogger().handlers:
        logging.basicConfig(level=level, format="%(asctime)s %(levelname)s %(name)s: %(message)s")

    from .services.persistence import NullStore, SqlStore
    from .services.runtime import build_runtime

    # Without a database URL the app runs local-only
    if app.config.get("SQLALCHEMY_DATABASE_URI"):
        db.init_app(app)
        migrate.init_app(app, db)

        # Import models so Alembic can discover metadata reliably
        from . import models  # noqa: F401

        store = SqlStore()
    else:
        store = NullStore()

    with app.app_context():
        if store.configured and app.config.get("AUTO_CREATE_SCHEMA"):
            db.create_all()
        app.extensions["tpv"] = build_runtime(app, store)

    # Register blueprints
    from .routes.system import system_bp
    from .routes.shifts import shifts_bp
    from .routes.sales import sales_bp
    from .routes.inventory import inventory_bp
    from .routes.waste import waste_bp
    from .routes.expenses import expenses_bp
    from .routes.tables import tables_bp
    from .routes.forecast import forecast_bp

    app.register_blueprint(system_bp)
    app.register_blueprint(shifts_bp)
    app.register_blueprint(sales_bp)
    app.register_blueprint(inventory_bp)
    app.register_blueprint(waste_bp)
    app.register_blueprint(expenses_bp)
    app.register_blueprint(tables_bp)
    app.register_blueprint(forecast_bp)

    @app.after_request
    def add_cors_headers(response):
        origin = request.headers.get("Origin")
        allowed_origins = {
            "http://localhost:5173",
            "http://127.0.0.1:5173",
            "http://localhost:4173",
            "http://127.0.0.1:4173",
        }
        if origin in allowed_origins:
            response.headers["Access-Control-Allow-Origin"] = origin
            response.headers["Vary"] = "Origin"
            response.headers["Access-Control-Allow-Headers"] = "X-User-Id, Content-Type"
            response.headers["Access-Control-Allow-Methods"] = "GET,POST,PUT,DELETE,PATCH,OPTIONS"
        return response

    # Register CLI commands
    from .cli import register_commands
    register_commands(app)

    return app
