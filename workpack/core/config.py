# workpack/core/config.py
"""Application settings read from the environment (and an optional .env file)."""

import os
from dotenv import load_dotenv

load_dotenv()


def _env_bool(name: str, default: str = "false") -> bool:
    return os.getenv(name, default).lower() in ("1", "true", "yes")


# ===== DATABASE =====
DATABASE_URL = os.getenv("DATABASE_URL", "sqlite:///./workpack.db")
SEED_SAMPLE_DATA = _env_bool("WORKPACK_SEED_SAMPLE_DATA")

# ===== LOGGING =====
APPLICATION_ID = os.getenv("APPLICATION_ID", "Unknown")
LOG_EXCLUDED_PATHS = ["/api/logs", "/api/docs", "/api/openapi.json"]

# ===== QUERY DEFAULTS =====
DEFAULT_PAGE_SIZE = int(os.getenv("DEFAULT_PAGE_SIZE", "20"))
MAX_PAGE_SIZE = int(os.getenv("MAX_PAGE_SIZE", "1000"))
CURRENCY_UNIT = os.getenv("CURRENCY_UNIT", "EUR")

# ===== VISIBILITY =====
# Permissions every viewer holds in public projects, members or not
PUBLIC_PERMISSIONS = [
    p.strip() for p in os.getenv("PUBLIC_PERMISSIONS", "view_project,view_work_packages").split(",") if p.strip()
]
