import os
from dotenv import load_dotenv

load_dotenv()

APP_ENV = os.getenv("APP_ENV", "production").lower()
DEBUG_MODE = os.getenv("DEBUG_MODE", "false").lower() == "true"
QUEUE_MODE = os.getenv("QUEUE_MODE", "redis")
VALID_QUEUE_MODES = ["redis", "request", "redislite"]
if QUEUE_MODE not in VALID_QUEUE_MODES:
    raise ValueError(
        f"Invalid QUEUE_MODE: {QUEUE_MODE}. Must be one of {VALID_QUEUE_MODES}"
    )

DATABASE_URL = os.getenv("DATABASE_URL", "sqlite:///./prpal.db")

REDIS_HOST = os.getenv("REDIS_HOST", "localhost")
REDIS_PORT = int(os.getenv("REDIS_PORT", 6379))
REDISLITE_DB_PATH = os.getenv("REDISLITE_DB_PATH", "prpal-redislite.db")
LOG_DRIVER: str = os.getenv("LOG_DRIVER", "console")
LOG_FILE: str = os.getenv("LOG_FILE", "prpal.log")
LOG_LEVEL: str = os.getenv("LOG_LEVEL", "DEBUG" if DEBUG_MODE else "INFO").upper()
VALID_LOG_LEVELS = ["DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"]
if LOG_LEVEL not in VALID_LOG_LEVELS:
    raise ValueError(
        f"Invalid LOG_LEVEL: {LOG_LEVEL}. Must be one of {VALID_LOG_LEVELS}"
    )

PRPAL_SECRET_KEY = os.getenv("PRPAL_SECRET_KEY")
PRPAL_API_KEY = os.getenv("PRPAL_API_KEY")

FORCE_DUMMY_DATA = os.getenv("FORCE_DUMMY_DATA", "false").lower() == "true"
PULL_REQUEST_DATA_PROVIDER = os.getenv("PULL_REQUEST_DATA_PROVIDER", "").lower()
GITHUB_API_BASE = os.getenv("GITHUB_API_BASE", "https://api.github.com")

DEFAULT_LLM_PROVIDER = os.getenv("DEFAULT_LLM_PROVIDER", "anthropic")
DEFAULT_LLM_MODEL = os.getenv("DEFAULT_LLM_MODEL", "claude-3-sonnet-20241022")
LLM_PROVIDERS = ["openai", "anthropic"]
LLM_PROVIDER_ENV_KEYS = {
    "anthropic": os.getenv("ANTHROPIC_API_KEY"),
    "openai": os.getenv("OPENAI_API_KEY"),
}

SESSION_DURATION_HOURS = int(os.getenv("SESSION_DURATION_HOURS", 24 * 14))


if PRPAL_SECRET_KEY is None:
    raise ValueError("PRPAL_SECRET_KEY environment variable is not set.")
