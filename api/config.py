"""
Environment-aware configuration.
Signing secrets and token lifetimes are read once here; create_app() turns them
into an immutable TokenConfig and refuses to start without the secrets.
"""
import os
from dotenv import load_dotenv
from datetime import timedelta

load_dotenv()  # Read .env if present


def _bool_env(name: str, default: str) -> bool:
    return os.getenv(name, default).lower() in ("1", "true", "yes")


class BaseConfig:
    DEBUG = False
    TESTING = False
    APP_ENV = os.getenv("APP_ENV", "dev")
    LOG_LEVEL = os.getenv("LOG_LEVEL", "INFO")
    DATABASE_URL = os.getenv("DATABASE_URL", "sqlite:///accounts.db")
    SQL_ECHO = _bool_env("SQL_ECHO", "false")
    # CORS: comma-separated allow-list; credentials are allowed so cookies travel.
    # Empty means no cross-origin access at all.
    CORS_ORIGINS = [o.strip() for o in os.getenv("CORS_ORIGIN", "").split(",") if o.strip()]
    # Token signing: no defaults, the app refuses to start without them
    ACCESS_TOKEN_SECRET = os.getenv("ACCESS_TOKEN_SECRET")
    ACCESS_TOKEN_EXPIRES = timedelta(seconds=int(os.getenv("ACCESS_TOKEN_EXPIRES_SECONDS", "900")))
    REFRESH_TOKEN_SECRET = os.getenv("REFRESH_TOKEN_SECRET")
    REFRESH_TOKEN_EXPIRES = timedelta(seconds=int(os.getenv("REFRESH_TOKEN_EXPIRES_SECONDS", "864000")))
    JWT_ALGORITHM = os.getenv("JWT_ALGORITHM", "HS256")
    JWT_ISSUER = os.getenv("JWT_ISSUER", "accounts-api")
    # Session cookies
    COOKIE_SECURE = _bool_env("COOKIE_SECURE", "true")
    COOKIE_SAMESITE = os.getenv("COOKIE_SAMESITE", "Lax")
    # Media
    UPLOAD_TEMP_DIR = os.getenv("UPLOAD_TEMP_DIR", "public/temp")
    MEDIA_ROOT = os.getenv("MEDIA_ROOT", "public/media")
    MEDIA_PUBLIC_BASE_URL = os.getenv("MEDIA_PUBLIC_BASE_URL", "/media")
    MEDIA_UPLOAD_URL = os.getenv("MEDIA_UPLOAD_URL", "")
    MEDIA_UPLOAD_API_KEY = os.getenv("MEDIA_UPLOAD_API_KEY", "")
    MEDIA_UPLOAD_TIMEOUT = float(os.getenv("MEDIA_UPLOAD_TIMEOUT", "30"))
    MAX_CONTENT_LENGTH = int(os.getenv("MAX_CONTENT_LENGTH", str(5 * 1024 * 1024)))


class DevelopmentConfig(BaseConfig):
    DEBUG = True
    # Local http development cannot send secure cookies
    COOKIE_SECURE = _bool_env("COOKIE_SECURE", "false")


class ProductionConfig(BaseConfig):
    DEBUG = False
    COOKIE_SECURE = True


class TestingConfig(BaseConfig):
    TESTING = True
    DATABASE_URL = "sqlite://"
    ACCESS_TOKEN_SECRET = "test-access-secret"
    REFRESH_TOKEN_SECRET = "test-refresh-secret"
    COOKIE_SECURE = False
    MEDIA_UPLOAD_URL = ""
    CORS_ORIGINS = ["http://localhost:3000"]


def get_config(name: str | None):
    """
    Select config class.
    - If name is provided, choose by name.
    - Else choose based on APP_ENV (dev/prod/test).
    """
    env = (name or os.getenv("APP_ENV", "dev")).lower()
    if env in ["prod", "production"]:
        return ProductionConfig
    if env in ["test", "testing"]:
        return TestingConfig
    return DevelopmentConfig
