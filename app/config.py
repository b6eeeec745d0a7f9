import os

from dotenv import load_dotenv

load_dotenv()

OPENAI_API_KEY = os.getenv("OPENAI_API_KEY")
# Override the model without touching code: LLM_MODEL=gpt-4o-mini (default) or gpt-4o, etc.
LLM_MODEL = os.getenv("LLM_MODEL", "gpt-4o-mini")
LLM_TIMEOUT_SECONDS = float(os.getenv("LLM_TIMEOUT_SECONDS", "60"))

# Prefer DATABASE_URL (e.g., Postgres in production). Fallback to local SQLite.
DATABASE_URL = os.getenv("DATABASE_URL", "sqlite:///./studylens.db")

JWT_SECRET = os.getenv("JWT_SECRET", "dev-secret-change-me")

RATE_LIMIT_ENABLED = os.getenv("RATE_LIMIT_ENABLED", "true").lower() not in ("0", "false", "no")
AI_GENERATION_RATE_LIMIT = os.getenv("AI_GENERATION_RATE_LIMIT", "5/minute")

LOG_LEVEL = os.getenv("LOG_LEVEL", "INFO").upper()
