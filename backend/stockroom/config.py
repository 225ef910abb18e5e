# backend/stockroom/config.py
from __future__ import annotations
import os


def _env_bool(name: str, default: bool) -> bool:
    value = os.environ.get(name)
    if value is None:
        return default
    return value.strip().lower() in {"1", "true", "yes", "on"}


class Config:
    # Optional "SECRET_KEY", with default dev key
    SECRET_KEY = os.environ.get("SECRET_KEY", "dev-secret-key-change-me")

    # SQLite DB stored in backend/instance/stockroom.sqlite3
    SQLALCHEMY_DATABASE_URI = os.environ.get(
        "DATABASE_URL", #optional alternative location
        "sqlite:///stockroom.sqlite3", #default local location
    )
    SQLALCHEMY_TRACK_MODIFICATIONS = False

    # Signed access token (JWT). Short-lived on purpose; refresh extends the session.
    ACCESS_TOKEN_SECRET = os.environ.get("ACCESS_SECRET", "dev-access-secret-change-me")
    ACCESS_TOKEN_ALGORITHM = "HS256"
    ACCESS_TOKEN_TTL = int(os.environ.get("ACCESS_TOKEN_TTL", 15 * 60))

    # Opaque refresh token, stored server-side as a digest with an expiry
    REFRESH_TOKEN_TTL = int(os.environ.get("REFRESH_TOKEN_TTL", 7 * 24 * 60 * 60))

    # bcrypt cost factor
    BCRYPT_ROUNDS = int(os.environ.get("BCRYPT_ROUNDS", 12))

    ACCESS_COOKIE = os.environ.get("ACCESS_COOKIE", "access_token")
    REFRESH_COOKIE = os.environ.get("REFRESH_COOKIE", "refresh_token")
    COOKIE_SECURE = _env_bool("COOKIE_SECURE", True)

    # Bootstrap admin account (flask system init)
    ADMIN_USERNAME = os.environ.get("ADMIN_USERNAME")
    ADMIN_PASSWORD = os.environ.get("ADMIN_PASSWORD")

    LOG_LEVEL = os.environ.get("LOG_LEVEL", "INFO")
