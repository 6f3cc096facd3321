# backend/facil/config.py
from __future__ import annotations
import os


def _env_bool(name: str, default: bool) -> bool:
    value = os.environ.get(name)
    if value is None:
        return default
    return value.strip().lower() in {"1", "true", "yes", "on"}


def _env_roster(name: str) -> list[int] | None:
    value = os.environ.get(name, "").strip()
    if not value:
        return None
    return [int(part) for part in value.split(",") if part.strip()]


class Config:
    # Optional "SECRET_KEY", with default dev key
    SECRET_KEY = os.environ.get("SECRET_KEY", "dev-secret-key-change-me")

    # Local store (also holds session tokens when the hosted backend is used)
    SQLALCHEMY_DATABASE_URI = os.environ.get(
        "DATABASE_URL",
        "sqlite:///facil.sqlite3",
    )
    SQLALCHEMY_TRACK_MODIFICATIONS = False

    # Hosted backend: both must be set to switch the persistence provider
    BACKEND_URL = os.environ.get("BACKEND_URL")
    BACKEND_API_KEY = os.environ.get("BACKEND_API_KEY")
    BACKEND_TIMEOUT = float(os.environ.get("BACKEND_TIMEOUT", "10"))

    BCRYPT_ROUNDS = int(os.environ.get("BCRYPT_ROUNDS", "10"))
    PASSWORD_MIN_LENGTH = int(os.environ.get("PASSWORD_MIN_LENGTH", "6"))
    PASSWORD_MIGRATION_ASYNC = _env_bool("PASSWORD_MIGRATION_ASYNC", True)

    # Development convenience only, never enable in production
    ALLOW_BOOTSTRAP_LOGIN = _env_bool("ALLOW_BOOTSTRAP_LOGIN", False)
    BOOTSTRAP_IDENTIFIER = os.environ.get("BOOTSTRAP_IDENTIFIER", "admin@condo.com")
    BOOTSTRAP_SECRET = os.environ.get("BOOTSTRAP_SECRET", "admin")

    ALLOW_SELF_REGISTRATION = _env_bool("ALLOW_SELF_REGISTRATION", True)

    # None: roster is taken from the residents table
    APARTMENT_ROSTER = _env_roster("APARTMENT_ROSTER")

    LOG_LEVEL = os.environ.get("LOG_LEVEL", "INFO")

    CORS_ORIGINS = {
        origin.strip()
        for origin in os.environ.get(
            "CORS_ORIGINS",
            "http://localhost:5173,http://127.0.0.1:5173,http://localhost:4173,http://127.0.0.1:4173",
        ).split(",")
        if origin.strip()
    }


class DevelopmentConfig(Config):
    ALLOW_BOOTSTRAP_LOGIN = True
    LOG_LEVEL = "DEBUG"


class TestingConfig(Config):
    TESTING = True
    SECRET_KEY = "test"
    SQLALCHEMY_DATABASE_URI = "sqlite:///:memory:"
    BACKEND_URL = None
    BACKEND_API_KEY = None
    BCRYPT_ROUNDS = 4
    PASSWORD_MIGRATION_ASYNC = False
    ALLOW_BOOTSTRAP_LOGIN = False
    APARTMENT_ROSTER = None
