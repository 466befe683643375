"""
procureflow/__init__.py

Flask application factory for the Procurement Request Management system.

Requirements:
- Clear architecture, stable imports.
- PostgreSQL-ready (SQLAlchemy + migrations) but SQLite is used for dev.
- Identity is supplied by the caller; every role rule is enforced in the
  lifecycle engine, not in the routes.
"""

from __future__ import annotations

import logging

import click
from flask import Flask, jsonify

from .errors import ProcurementError
from .extensions import db, migrate

# Blueprint imports kept inside create_app() where possible to reduce import side effects.


def _configure_logging(app: Flask) -> None:
    """
    app.logger is the "procureflow" logger, so module loggers
    (procureflow.engine, procureflow.catalog, ...) propagate to Flask's handler.
    """
    level = logging.getLevelName(str(app.config.get("LOG_LEVEL", "INFO")).upper())
    if not isinstance(level, int):
        level = logging.INFO
    app.logger.setLevel(level)


def create_app(config_object: str | object = "config.Config") -> Flask:
    """Create and configure the Flask application."""
    app = Flask(__name__)
    app.config.from_object(config_object)

    _configure_logging(app)

    # Extensions
    db.init_app(app)
    migrate.init_app(app, db)

    # ----------------------------------------------------------------------
    # Errors: every core error is rendered as {"error": code, "message": ...}
    # ----------------------------------------------------------------------
    @app.errorhandler(ProcurementError)
    def _handle_procurement_error(exc: ProcurementError):
        return jsonify(exc.to_dict()), exc.http_status

    # ----------------------------------------------------------------------
    # Blueprints
    # ----------------------------------------------------------------------
    from .blueprints.requests import requests_bp
    from .blueprints.catalog import catalog_bp

    app.register_blueprint(requests_bp)
    app.register_blueprint(catalog_bp)

    # ----------------------------------------------------------------------
    # CLI
    # ----------------------------------------------------------------------
    @app.cli.command("init-db")
    def init_db_command():
        """Create all tables (development; use `flask db upgrade` with migrations)."""
        db.create_all()
        click.echo("Database tables created.")

    @app.cli.command("seed-catalog")
    def seed_catalog_command():
        """Seed demo users, categories and items."""
        from .seed import seed_demo_data

        created = seed_demo_data()
        click.echo(
            "Seeded {users} user(s), {categories} categor(y/ies), {items} item(s).".format(**created)
        )

    # ----------------------------------------------------------------------
    # Health
    # ----------------------------------------------------------------------
    @app.route("/health")
    def health():
        return jsonify({"status": "ok", "app": app.config.get("APP_NAME")})

    return app
