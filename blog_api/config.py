"""
Environment-aware configuration.
Secrets, token lifetimes, cookie flags and the database URL all come from the
environment (a local .env is loaded first).
"""
import os
from dotenv import load_dotenv
from datetime import timedelta

load_dotenv()  # Read .env if present

DEV_JWT_SECRET = "dev-access-secret-change-me"
DEV_JWT_REFRESH_SECRET = "dev-refresh-secret-change-me"


def _env_bool(name: str, default: str = "false") -> bool:
    return os.getenv(name, default).strip().lower() in ("1", "true", "yes")


class BaseConfig:
    SECRET_KEY = os.getenv("SECRET_KEY", "dev-secret-key")  # Set a strong key in production
    DEBUG = False
    TESTING = False
    APP_ENV = os.getenv("APP_ENV", "dev")
    LOG_LEVEL = os.getenv("LOG_LEVEL", "INFO")
    DATABASE_URL = os.getenv("DATABASE_URL", "sqlite:///blog.db")
    SQL_ECHO = _env_bool("SQL_ECHO")
    # Comma-separated list; credentials are allowed so origins must be explicit in prod
    CORS_ORIGINS = os.getenv("CORS_ORIGINS", "http://localhost:3000,http://localhost:5173,http://localhost:8080")

    # Access and refresh tokens are signed with distinct secrets
    JWT_SECRET = os.getenv("JWT_SECRET", DEV_JWT_SECRET)
    JWT_REFRESH_SECRET = os.getenv("JWT_REFRESH_SECRET", DEV_JWT_REFRESH_SECRET)
    JWT_ALGORITHM = os.getenv("JWT_ALGORITHM", "HS256")
    JWT_ACCESS_EXPIRES = timedelta(seconds=int(os.getenv("JWT_ACCESS_EXPIRES_SECONDS", "604800")))
    JWT_REFRESH_EXPIRES = timedelta(seconds=int(os.getenv("JWT_REFRESH_EXPIRES_SECONDS", "2592000")))
    JWT_ROTATE_REFRESH = _env_bool("JWT_ROTATE_REFRESH")

    ACCESS_COOKIE_NAME = "accessToken"
    REFRESH_COOKIE_NAME = "refreshToken"
    COOKIE_SECURE = _env_bool("COOKIE_SECURE")
    COOKIE_SAMESITE = os.getenv("COOKIE_SAMESITE", "Lax")

    DEFAULT_ROLE = "Reader"

    # Flask-Limiter; 429s use the error envelope with retryAfter in seconds
    RATELIMIT_ENABLED = _env_bool("RATELIMIT_ENABLED", "true")
    RATELIMIT_STORAGE_URI = os.getenv("RATELIMIT_STORAGE_URI", "memory://")
    RATELIMIT_DEFAULT = os.getenv("RATELIMIT_DEFAULT", "100 per 15 minutes")
    RATELIMIT_HEADERS_ENABLED = True
    AUTH_RATE_LIMIT = os.getenv("AUTH_RATE_LIMIT", "5 per 15 minutes")
    BLOG_CREATE_RATE_LIMIT = os.getenv("BLOG_CREATE_RATE_LIMIT", "10 per hour")


class DevelopmentConfig(BaseConfig):
    DEBUG = True
    # In dev, propagate exceptions so our error handler has full context
    PROPAGATE_EXCEPTIONS = True


class TestingConfig(BaseConfig):
    TESTING = True
    APP_ENV = "test"
    DATABASE_URL = "sqlite://"
    SQL_ECHO = False
    JWT_SECRET = "test-access-secret-0123456789abcdef"
    JWT_REFRESH_SECRET = "test-refresh-secret-0123456789abcdef"
    LOG_LEVEL = "WARNING"


class ProductionConfig(BaseConfig):
    DEBUG = False
    APP_ENV = "production"
    COOKIE_SECURE = _env_bool("COOKIE_SECURE", "true")


def validate_config(config) -> None:
    """
    Refuse to boot production with development secrets.
    Raises RuntimeError so the process fails at startup rather than on first login.
    """
    if config.get("APP_ENV", "dev") not in ("prod", "production"):
        return
    if config["JWT_SECRET"] == DEV_JWT_SECRET or config["JWT_REFRESH_SECRET"] == DEV_JWT_REFRESH_SECRET:
        raise RuntimeError("JWT_SECRET and JWT_REFRESH_SECRET must be set in production")
    if config["JWT_SECRET"] == config["JWT_REFRESH_SECRET"]:
        raise RuntimeError("JWT_SECRET and JWT_REFRESH_SECRET must differ")


def get_config(name: str | None):
    """
    Select config class.
    - If name is provided, choose by name.
    - Else choose based on APP_ENV (dev/test/prod).
    """
    env = (name or os.getenv("APP_ENV", "dev")).lower()
    if env in ["prod", "production"]:
        return ProductionConfig
    if env in ["test", "testing"]:
        return TestingConfig
    return DevelopmentConfig
