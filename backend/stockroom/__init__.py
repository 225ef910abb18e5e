# backend/stockroom/__init__.py
from flask import Flask

from .config import Config
from .extensions import db, migrate
from .roles import validate_role_masks


def create_app(config: dict | None = None) -> Flask:
    """
    Application factory.

    `config` overrides Config and is applied before the extensions are
    initialized, so a test can point SQLALCHEMY_DATABASE_URI elsewhere.
    """
    app = Flask(__name__, instance_relative_config=True)
    app.config.from_object(Config)
    if config:
        app.config.update(config)

    # Service module loggers (stockroom.services.*) propagate to app.logger
    app.logger.setLevel(str(app.config.get("LOG_LEVEL", "INFO")).upper())

    # Refuse to start with overlapping role masks
    validate_role_masks()

    # Initialize extensions
    db.init_app(app)
    migrate.init_app(app, db)

    # Import models so Alembic can discover metadata reliably
    from . import models  # noqa: F401

    # Register blueprints
    from .routes.system import system_bp
    from .routes.auth import auth_bp
    from .routes.sales import sales_bp
    from .routes.products import products_bp
    from .routes.locations import locations_bp
    from .routes.users import users_bp

    app.register_blueprint(system_bp)
    app.register_blueprint(auth_bp)
    app.register_blueprint(sales_bp)
    app.register_blueprint(products_bp)
    app.register_blueprint(locations_bp)
    app.register_blueprint(users_bp)

    from .errors import register_error_handlers
    register_error_handlers(app)

    # Register CLI commands
    from .cli import register_commands
    register_commands(app)

    return app
