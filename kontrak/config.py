# FILE: kontrak/config.py
# DESCRIPTION: Environment-driven configuration for the Kontrak Digital app.

import os
from dotenv import load_dotenv

# Load environment variables
load_dotenv(os.getenv("ENV_FILE", ".env"))


def _env_bool(name: str, default: str = "false") -> bool:
    return os.getenv(name, default).lower() == "true"


class Config:
    """Base configuration read once from the environment."""

    APP_ENV = os.getenv("APP_ENV", "production")

    DATABASE_URL = os.getenv("DATABASE_URL", "sqlite:///kontrak.db")

    JWT_SECRET = os.getenv("JWT_SECRET", "change-me-kontrak-digital-dev-secret")
    JWT_EXPIRES_DAYS = int(os.getenv("JWT_EXPIRES_DAYS", "7"))
    BCRYPT_ROUNDS = int(os.getenv("BCRYPT_ROUNDS", "12"))

    FRONTEND_URL = os.getenv("FRONTEND_URL", "https://kontrakdigital.com")
    DEFAULT_USER_PASSWORD = os.getenv("DEFAULT_USER_PASSWORD", "trader123")

    RATE_LIMIT_WINDOW_SECONDS = int(os.getenv("RATE_LIMIT_WINDOW_SECONDS", "900"))
    RATE_LIMIT_MAX_REQUESTS = int(os.getenv("RATE_LIMIT_MAX_REQUESTS", "100"))
    RATE_LIMIT_MAX_CLIENTS = int(os.getenv("RATE_LIMIT_MAX_CLIENTS", "10000"))
    # Reverse proxies in front of the app; 0 when clients connect directly
    TRUSTED_PROXY_COUNT = int(os.getenv("TRUSTED_PROXY_COUNT", "1"))

    NOTIFY_WEBHOOK_URL = os.getenv("NOTIFY_WEBHOOK_URL")
    DISABLE_WEBHOOKS = _env_bool("DISABLE_WEBHOOKS")

    # Request bodies carry base64 signature images
    MAX_CONTENT_LENGTH = 10 * 1024 * 1024
