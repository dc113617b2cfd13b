import os

from dotenv import load_dotenv

# read .env before the app is created
load_dotenv()


def _env_int(name: str, default: int) -> int:
    value = os.environ.get(name)
    return int(value) if value else default


class Config:
    SECRET_KEY = os.environ.get("SECRET_KEY", "authvault-dev-secret-key")

    # memory | json | sqlite
    STORAGE_BACKEND = os.environ.get("STORAGE_BACKEND", "json")
    JSON_STORE_PATH = os.environ.get("JSON_STORE_PATH", "authvault.json")
    SQLITE_PATH = os.environ.get("SQLITE_PATH", "database/authvault.db")

    LOG_LEVEL = os.environ.get("LOG_LEVEL", "INFO")
    DEFAULT_ISSUER = os.environ.get("DEFAULT_ISSUER", "authvault")
    VERIFY_WINDOW = _env_int("VERIFY_WINDOW", 1)
    CORS_ORIGINS = os.environ.get("CORS_ORIGINS", "*")

    SESSION_COOKIE_HTTPONLY = True
    SESSION_COOKIE_SAMESITE = "Lax"


class TestConfig(Config):
    TESTING = True
    SECRET_KEY = "test-secret-key"
    STORAGE_BACKEND = "memory"
    LOG_LEVEL = "WARNING"
