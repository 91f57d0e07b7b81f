"""
Runtime configuration.

All values come from environment variables and are read once at import time.
"""

import os


def _env_int(name: str, default: int) -> int:
    try:
        return int(os.environ.get(name, default))
    except (TypeError, ValueError):
        return default


def _env_float(name: str, default: float) -> float:
    try:
        return float(os.environ.get(name, default))
    except (TypeError, ValueError):
        return default


# Backends
SUPABASE_URL = os.environ.get("SUPABASE_URL", "")
SUPABASE_SERVICE_ROLE_KEY = os.environ.get("SUPABASE_SERVICE_ROLE_KEY", "")

# Upstash Redis - standard env var names per docs
UPSTASH_REDIS_REST_URL = os.environ.get("UPSTASH_REDIS_REST_URL", "")
UPSTASH_REDIS_REST_TOKEN = os.environ.get("UPSTASH_REDIS_REST_TOKEN", "")

# Cart storage
CART_TTL_SECONDS = _env_int("CART_TTL_SECONDS", 86400)  # 24 hours

# Stock ledger
LEDGER_TIMEOUT_SECONDS = _env_float("LEDGER_TIMEOUT_SECONDS", 5.0)
STOCK_MAX_ATTEMPTS = max(1, _env_int("STOCK_MAX_ATTEMPTS", 3))
STOCK_RETRY_WAIT_MAX = max(0.0, _env_float("STOCK_RETRY_WAIT_MAX", 0.0))
