"""Application configuration and constants."""
import logging
import os
from pathlib import Path


def _parse_int_env(name: str, default: int) -> int:
    """Parse integer from environment variable."""
    raw = os.environ.get(name)
    if raw is None:
        return default
    try:
        return int(raw)
    except ValueError:
        return default


# Database
DB_DIR = Path(os.environ.get("DB_DIR", Path.cwd() / "data"))
DATABASE_URL = os.environ.get("DATABASE_URL", f"sqlite:///{DB_DIR / 'quiz.db'}")

# Authentication
SECRET_KEY = os.environ.get(
    "SECRET_KEY",
    "CHANGE_ME_IN_PRODUCTION_USE_openssl_rand_hex_32"
)
ALGORITHM = "HS256"

# Pricing
DEFAULT_CURRENCY = os.environ.get("DEFAULT_CURRENCY", "USD")

# Derived data caches (capacity in entries, TTL in seconds)
TEST_CACHE_SIZE = _parse_int_env("TEST_CACHE_SIZE", 20)
TEST_CACHE_TTL_SECONDS = _parse_int_env("TEST_CACHE_TTL_SECONDS", 10 * 60)
QUESTIONS_CACHE_SIZE = _parse_int_env("QUESTIONS_CACHE_SIZE", 50)
QUESTIONS_CACHE_TTL_SECONDS = _parse_int_env("QUESTIONS_CACHE_TTL_SECONDS", 15 * 60)
ANSWERS_CACHE_SIZE = _parse_int_env("ANSWERS_CACHE_SIZE", 100)
ANSWERS_CACHE_TTL_SECONDS = _parse_int_env("ANSWERS_CACHE_TTL_SECONDS", 20 * 60)

# Logging
LOG_LEVEL = getattr(logging, os.environ.get("LOG_LEVEL", "INFO").upper(), logging.INFO)
