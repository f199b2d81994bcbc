"""Application configuration and settings."""
import os
from dotenv import load_dotenv

# Load environment variables from .env (if present)
load_dotenv()


def _env_flag(name: str, default: str) -> bool:
    return os.getenv(name, default).strip().lower() in ("1", "true", "yes", "on")


# Database configuration
SQLALCHEMY_DATABASE_URL = os.getenv("DATABASE_URL", "sqlite:///./privileges.db")

# sqlite has no schemas; the grant tables live in a file attached as "mysql"
GRANT_SCHEMA_PATH = os.getenv("GRANT_SCHEMA_PATH", "./mysql.db")

# Security configuration - REQUIRED, no default for security
ADMIN_API_KEY = os.environ.get("ADMIN_API_KEY")
if not ADMIN_API_KEY:
    raise ValueError(
        "ADMIN_API_KEY environment variable is required. "
        "Please set it in your .env file or environment variables."
    )

# Reload behaviour
RELOAD_POLICY = os.getenv("RELOAD_POLICY", "reject").strip().lower()
if RELOAD_POLICY not in ("reject", "wait"):
    raise ValueError(f"RELOAD_POLICY must be 'reject' or 'wait', got '{RELOAD_POLICY}'")

RELOAD_WAIT_TIMEOUT = float(os.getenv("RELOAD_WAIT_TIMEOUT", "0"))
RELOAD_TIMEOUT = float(os.getenv("RELOAD_TIMEOUT", "0"))
RELOAD_ON_STARTUP = _env_flag("RELOAD_ON_STARTUP", "true")
STRICT_TIMESTAMPS = _env_flag("STRICT_TIMESTAMPS", "false")

# Logging
LOG_DIR = os.getenv("LOG_DIR", "logs")

# CORS origins for an admin UI, comma separated
CORS_ORIGINS = [
    origin.strip()
    for origin in os.getenv("CORS_ORIGINS", "http://localhost:8000,http://127.0.0.1:8000").split(",")
    if origin.strip()
]
