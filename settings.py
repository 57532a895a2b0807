import os
from dotenv import load_dotenv

# Load environment variables from .env file
load_dotenv()


def _require(name: str) -> str:
    value = os.environ.get(name)
    if not value:
        raise ValueError(f"{name} is not set. Please check your .env file.")
    return value


DATABASE_URL = _require("DATABASE_URL")
SQL_ECHO = os.environ.get("SQL_ECHO", "false").lower() in {"1", "true", "yes"}

# Token signing + payload encryption secrets
JWT_SECRET = _require("JWT_SECRET")
ENC_KEY = _require("ENC_KEY")
JWT_ALGORITHM = "HS256"
JWT_EXPIRES_HOURS = int(os.environ.get("JWT_EXPIRES_HOURS", "8"))
TOKEN_HEADER = "jwt"

BCRYPT_ROUNDS = int(os.environ.get("BCRYPT_ROUNDS", "10"))

# seeds.py drops every table before seeding when set
WIPE = os.environ.get("WIPE", "false").lower() == "true"

LOG_LEVEL = os.environ.get("ROOMBOOK_LOG_LEVEL", "INFO").upper()
CORS_ORIGINS = [o.strip() for o in os.environ.get("CORS_ORIGINS", "*").split(",") if o.strip()]

# Availability query defaults
DEFAULT_SLOT_INTERVAL_MINUTES = 30
DEFAULT_AVAILABILITY_WINDOW_HOURS = 24
MAX_AVAILABILITY_SLOTS = int(os.environ.get("MAX_AVAILABILITY_SLOTS", "2000"))
