"""
portal/config/settings.py
Environment-driven settings

.env is loaded from the project root before anything reads os.environ,
so importing this module first is enough to configure the process.
"""
import os
from pathlib import Path

from dotenv import load_dotenv

from portal.config.feature_flags import get_bool_env

PROJECT_ROOT = Path(__file__).resolve().parent.parent.parent
ENV_FILE = PROJECT_ROOT / ".env"

load_dotenv(dotenv_path=ENV_FILE)


def get_int_env(key: str, default: int) -> int:
    """Get an integer value from environment variable, falling back on bad input."""
    value = os.getenv(key)
    if value is None or value.strip() == "":
        return default
    try:
        return int(value)
    except ValueError:
        return default


def get_list_env(key: str) -> list:
    """Comma-separated environment variable as a list of non-empty strings."""
    return [item.strip() for item in os.getenv(key, "").split(",") if item.strip()]


class Settings:
    ENVIRONMENT: str = os.getenv("ENVIRONMENT", "development")
    HOST: str = os.getenv("HOST", "0.0.0.0")
    PORT: int = get_int_env("PORT", 8000)
    LOG_LEVEL: str = os.getenv("LOG_LEVEL", "INFO").upper()

    # In-memory by default: portal state lives only as long as the process
    DATABASE_URL: str = os.getenv("DATABASE_URL", "sqlite+aiosqlite:///:memory:")
    SEED_DEMO_DATA: bool = get_bool_env("SEED_DEMO_DATA", True)

    JWT_SECRET_KEY: str = os.getenv("JWT_SECRET_KEY", "dev-secret-key-change-in-production")
    JWT_ALGORITHM: str = "HS256"
    ACCESS_TOKEN_EXPIRE_MINUTES: int = get_int_env("ACCESS_TOKEN_EXPIRE_MINUTES", 60)
    RESET_TOKEN_EXPIRE_MINUTES: int = get_int_env("RESET_TOKEN_EXPIRE_MINUTES", 30)
    BCRYPT_ROUNDS: int = get_int_env("BCRYPT_ROUNDS", 10)
    MIN_PASSWORD_LENGTH: int = 6

    RATE_LIMIT_ENABLED: bool = get_bool_env("RATE_LIMIT_ENABLED", True)
    LOGIN_RATE_LIMIT: str = os.getenv("LOGIN_RATE_LIMIT", "10/minute")

    GEMINI_API_KEY: str = os.getenv("GEMINI_API_KEY", "")
    GEMINI_MODEL: str = os.getenv("GEMINI_MODEL", "gemini-1.5-flash")
    AI_MAX_INPUT_CHARS: int = get_int_env("AI_MAX_INPUT_CHARS", 20000)

    ALLOWED_ORIGINS: list = get_list_env("ALLOWED_ORIGINS")

    @property
    def is_development(self) -> bool:
        return self.ENVIRONMENT == "development"

    @property
    def gemini_configured(self) -> bool:
        return bool(self.GEMINI_API_KEY)


settings = Settings()
