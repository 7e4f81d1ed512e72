import os
import sys
import logging

from dotenv import load_dotenv

# Load .env but don't override existing environment variables
# This allows tests to set their own values before import
load_dotenv(".env", override=False)


def _exit_with_config_error(name: str, reason: str, expected: str) -> None:
    print(f"\n ERROR: Invalid {name} configuration\n", file=sys.stderr)
    print(f"Reason: {reason}", file=sys.stderr)
    print(f"Expected: {expected}", file=sys.stderr)
    print(f"Current value: {os.environ.get(name, '(not set)')}\n", file=sys.stderr)
    sys.exit(1)


def _read_positive_int(name: str, default: int) -> int:
    raw = os.environ.get(name)
    if raw is None or raw.strip() == "":
        return default
    try:
        value = int(raw)
        if value <= 0:
            raise ValueError(f"{name} must be positive (got: {value})")
    except ValueError as e:
        _exit_with_config_error(name, str(e), "Positive integer")
    return value


# Database
DB_URL = os.environ.get("DB_URL", "sqlite+aiosqlite:///data/catalog.db")

# Uploaded media (2D images and 3D models)
UPLOAD_ROOT = os.environ.get("UPLOAD_ROOT", "uploads")
UPLOAD_URL_PREFIX = "/uploads"

# Storage quota for all media references together (default: 2 GiB)
STORAGE_LIMIT_BYTES = _read_positive_int("STORAGE_LIMIT_BYTES", 2 * 1024 * 1024 * 1024)

# Admin token verification
JWT_SECRET = os.environ.get("JWT_SECRET", "change_me_secret")
JWT_ALGORITHM = os.environ.get("JWT_ALGORITHM", "HS256")
JWT_EXPIRE_HOURS = _read_positive_int("JWT_EXPIRE_HOURS", 12)

if JWT_SECRET == "change_me_secret":
    logging.warning("[Config] JWT_SECRET is not set, using the insecure default secret")

# HTTP server
WEBAPP_HOST = os.environ.get("WEBAPP_HOST", "0.0.0.0")
WEBAPP_PORT = _read_positive_int("WEBAPP_PORT", 10000)

# Security headers on every response (nosniff matters for served uploads)
SECURITY_HEADERS_ENABLED = os.environ.get("SECURITY_HEADERS_ENABLED", "true") == "true"

# CORS: comma-separated origins, "*" allows all
CORS_ALLOWED_ORIGINS = [
    origin.strip()
    for origin in os.environ.get("CORS_ALLOWED_ORIGINS", "*").split(",")
    if origin.strip()
]

# Shared cart ledger name
CART_LEDGER_NAME = os.environ.get("CART_LEDGER_NAME", "shared")

# Logging
LOG_LEVEL = os.environ.get("LOG_LEVEL", "INFO")
LOG_DIR = os.environ.get("LOG_DIR", "logs")
LOG_RETENTION_DAYS = _read_positive_int("LOG_RETENTION_DAYS", 7)
LOG_MASK_SECRETS = os.environ.get("LOG_MASK_SECRETS", "true") == "true"
