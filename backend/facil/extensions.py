# Overview: Flask extension instances and accessors for the app-wide services.

from flask import current_app
from flask_sqlalchemy import SQLAlchemy
from flask_migrate import Migrate

db = SQLAlchemy()
migrate = Migrate()


def get_provider():
    """Persistence provider selected by create_app()."""
    return current_app.extensions["facil.provider"]


def get_credentials():
    """CredentialStore bound to the current provider."""
    return current_app.extensions["facil.credentials"]
