# backend/facil/__init__.py
import atexit
import logging

from flask import Flask, request

from .config import Config
from .errors import ProviderError
from .extensions import db, migrate



def create_app(config_object=None) -> Flask:
    app = Flask(__name__, instance_relative_config=True)
    app.config.from_object(config_object or Config)

    app.logger.setLevel(getattr(logging, str(app.config.get("LOG_LEVEL", "INFO")).upper(), logging.INFO))

    # Initialize extensions
    db.init_app(app)
    migrate.init_app(app, db)

    # Import models so Alembic can discover metadata reliably
    from . import models  # noqa: F401

    # Persistence provider and credential store, chosen once per app
    from .providers import build_provider
    from .services.auth_service import CredentialPolicy, CredentialStore, PasswordMigrator

    provider = build_provider(app.config)
    migrator = PasswordMigrator(app, run_async=app.config.get("PASSWORD_MIGRATION_ASYNC", True))
    app.extensions["facil.provider"] = provider
    app.extensions["facil.credentials"] = CredentialStore(
        provider,
        CredentialPolicy.from_config(app.config),
        migrator,
    )
    # Drain pending password migrations before the interpreter exits
    atexit.register(migrator.shutdown)
    app.logger.info("Using %s persistence provider", provider.name)

    # Register blueprints
    from .routes.system import system_bp
    from .routes.auth import auth_bp
    from .routes.products import products_bp
    from .routes.people import people_bp
    from .routes.outputs import outputs_bp
    from .routes.users import users_bp
    from .routes.finance import finance_bp

    app.register_blueprint(system_bp)
    app.register_blueprint(auth_bp)
    app.register_blueprint(products_bp)
    app.register_blueprint(people_bp)
    app.register_blueprint(outputs_bp)
    app.register_blueprint(users_bp)
    app.register_blueprint(finance_bp)

    @app.errorhandler(ProviderError)
    def handle_provider_error(error):
        app.logger.exception("Persistence provider failed: %s", error)
        return {"error": "Storage backend unavailable"}, 503

    @app.errorhandler(500)
    def handle_internal_error(error):
        return {"error": "Internal server error"}, 500

    @app.after_request
    def add_cors_headers(response):
        origin = request.headers.get("Origin")
        if origin in app.config.get("CORS_ORIGINS", set()):
            response.headers["Access-Control-Allow-Origin"] = origin
            response.headers["Vary"] = "Origin"
            response.headers["Access-Control-Allow-Headers"] = "Authorization, Content-Type"
            response.headers["Access-Control-Allow-Methods"] = "GET,POST,PUT,DELETE,PATCH,OPTIONS"
        return response

    # Register CLI commands
    from .cli import register_commands
    register_commands(app)

    return app
