"""Environment-driven settings.

Values are read once at import time from the process environment (and a
`.env` file when present).
"""
import os
from dotenv import load_dotenv

load_dotenv()

_TRUTHY = {"1", "true", "yes", "on"}


def _flag(name, default="0"):
    return os.getenv(name, default).strip().lower() in _TRUTHY


def database_url():
    url = os.getenv("DATABASE_URL") or os.getenv("POSTGRES_URL") or "sqlite:///./garage_sales.db"
    # SQLAlchemy 2.x doesn't accept 'postgres://'
    if url.startswith("postgres://"):
        url = url.replace("postgres://", "postgresql+psycopg2://", 1)
    return url


DB_POOL_SIZE = int(os.getenv("DB_POOL_SIZE", 5))
DB_MAX_OVERFLOW = int(os.getenv("DB_MAX_OVERFLOW", 10))

ROUTE_DWELL_MINUTES = int(os.getenv("ROUTE_DWELL_MINUTES", "30"))
ROUTE_SPEED_MINUTES_PER_KM = float(os.getenv("ROUTE_SPEED_MINUTES_PER_KM", "3.0"))
# 0 disables the cap
ROUTE_MAX_STOPS = int(os.getenv("ROUTE_MAX_STOPS", "25"))

# Yellowknife centre
DEFAULT_START_LAT = float(os.getenv("DEFAULT_START_LAT", "62.454"))
DEFAULT_START_LON = float(os.getenv("DEFAULT_START_LON", "-114.3718"))

STORE_RETRY_TRIES = int(os.getenv("STORE_RETRY_TRIES", "3"))
STORE_RETRY_DELAY = float(os.getenv("STORE_RETRY_DELAY", "0.5"))
STORE_RETRY_BACKOFF = float(os.getenv("STORE_RETRY_BACKOFF", "2"))
STORE_RETRY_MAX_DELAY = float(os.getenv("STORE_RETRY_MAX_DELAY", "5"))
DEGRADED_FALLBACK = _flag("DEGRADED_FALLBACK", "1")

SCHEDULER_ENABLED = _flag("SCHEDULER_ENABLED")
RETIRE_INTERVAL_MINUTES = int(os.getenv("RETIRE_INTERVAL_MINUTES", "60"))

REQUEST_TIMEOUT_SECONDS = float(os.getenv("REQUEST_TIMEOUT_SECONDS", "10"))
