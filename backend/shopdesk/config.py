# backend/shopdesk/config.py
from __future__ import annotations
import os


def _env_flag(name: str, default: bool) -> bool:
    value = os.environ.get(name)
    if value is None:
        return default
    return value.strip().lower() in {"1", "true", "yes", "on"}


class Config:
    # Optional "SECRET_KEY", with default dev key
    SECRET_KEY = os.environ.get("SECRET_KEY", "dev-secret-key-change-me")

    # SQLite DB stored in backend/instance/shopdesk.sqlite3
    SQLALCHEMY_DATABASE_URI = os.environ.get(
        "DATABASE_URL", #optional alternative location
        "sqlite:///shopdesk.sqlite3", #default local location
    )
    SQLALCHEMY_TRACK_MODIFICATIONS = False

    # Signed credentials. Access and refresh tokens use different secrets.
    JWT_SECRET_KEY = os.environ.get("JWT_SECRET_KEY", "dev-access-secret-change-in-production")
    JWT_REFRESH_SECRET_KEY = os.environ.get("JWT_REFRESH_SECRET_KEY", "dev-refresh-secret-change-in-production")
    JWT_ALGORITHM = "HS256"
    ACCESS_TOKEN_TTL_MINUTES = int(os.environ.get("ACCESS_TOKEN_TTL_MINUTES", "15"))
    REFRESH_TOKEN_TTL_DAYS = int(os.environ.get("REFRESH_TOKEN_TTL_DAYS", "7"))

    REFRESH_COOKIE_NAME = "refreshToken"
    REFRESH_COOKIE_SECURE = _env_flag("REFRESH_COOKIE_SECURE", True)

    BCRYPT_ROUNDS = int(os.environ.get("BCRYPT_ROUNDS", "12"))

    FRONTEND_URL = os.environ.get("FRONTEND_URL")
    CORS_ORIGINS = [
        o.strip()
        for o in os.environ.get(
            "CORS_ORIGINS",
            "http://localhost:5173,http://localhost:5174,http://localhost:3000",
        ).split(",")
        if o.strip()
    ]

    # Include exception text in 500 responses (never in hardened deployments)
    EXPOSE_ERROR_DETAILS = _env_flag("EXPOSE_ERROR_DETAILS", False)

    # First generated invoice is INV-<base + 1>
    INVOICE_NUMBER_BASE = int(os.environ.get("INVOICE_NUMBER_BASE", "10260000"))
    INVOICE_NUMBER_PREFIX = "INV-"
    INVOICE_DEFAULT_TERM_DAYS = 30

    # Brute-force protection (counted from security_events)
    LOGIN_MAX_FAILED_ATTEMPTS = int(os.environ.get("LOGIN_MAX_FAILED_ATTEMPTS", "5"))
    LOGIN_LOCKOUT_MINUTES = int(os.environ.get("LOGIN_LOCKOUT_MINUTES", "60"))
    REGISTER_MAX_ATTEMPTS = int(os.environ.get("REGISTER_MAX_ATTEMPTS", "10"))
    REGISTER_WINDOW_MINUTES = int(os.environ.get("REGISTER_WINDOW_MINUTES", "15"))
