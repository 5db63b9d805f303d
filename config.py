import logging
import os
from decimal import Decimal
from typing import Optional

from dotenv import load_dotenv

# Load environment variables
load_dotenv()

# Default to local SQLite, but allow override for a hosted Postgres
DATABASE_URL = os.getenv("DATABASE_URL", "sqlite:///pocketwise.db")

OPENAI_API_KEY = os.getenv("OPENAI_API_KEY", "")
OPENAI_MODEL = os.getenv("OPENAI_MODEL", "gpt-4o-mini")
# Value shipped in .env.example; treated the same as a missing key
OPENAI_KEY_PLACEHOLDER = "sk-your-openai-api-key-here"

LOG_LEVEL = os.getenv("LOG_LEVEL", "INFO")

SESSION_TTL_HOURS = int(os.getenv("SESSION_TTL_HOURS", "168"))
RESET_TOKEN_TTL_MINUTES = int(os.getenv("RESET_TOKEN_TTL_MINUTES", "60"))
DEFAULT_MONTHLY_BUDGET = Decimal(os.getenv("DEFAULT_MONTHLY_BUDGET", "500000"))
APP_BASE_URL = os.getenv("APP_BASE_URL", "http://localhost:8501")


def ai_key_configured(api_key: Optional[str] = None) -> bool:
    """True when a usable OpenAI key is set (not empty, not the placeholder)."""
    key = (OPENAI_API_KEY if api_key is None else api_key or "").strip()
    return bool(key) and key != OPENAI_KEY_PLACEHOLDER


def configure_logging(level: Optional[str] = None):
    logging.basicConfig(
        level=(level or LOG_LEVEL).upper(),
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )
