import os

from dotenv import load_dotenv

# Load environment variables from .env file
load_dotenv()


def _flag(name: str, default: str) -> bool:
    return os.getenv(name, default).strip().lower() in ("1", "true", "yes", "on")


DATABASE_URL = os.getenv("DATABASE_URL")
DATABASE_NAME = os.getenv("DATABASE_NAME")
DB_TIMEOUT_MS = int(os.getenv("DB_TIMEOUT_MS", 5000))

JWT_SECRET = os.getenv("JWT_SECRET", "dev-secret-key-change-me-before-deploying")
JWT_ALGO = os.getenv("JWT_ALGO", "HS256")
TOKEN_TTL_DAYS = int(os.getenv("TOKEN_TTL_DAYS", 7))

# Serve the synthetic catalog when the store is unreachable. Turn off in production.
CATALOG_DEMO_FALLBACK = _flag("CATALOG_DEMO_FALLBACK", "1")

LOG_LEVEL = os.getenv("LOG_LEVEL", "INFO").upper()
PORT = int(os.getenv("PORT", 8000))
