"""
Logging setup for the storefront.

    from storefront.logging import get_logger
    logger = get_logger(__name__)

The root logger is configured once, on first import, from LOG_LEVEL.
"""

import logging
import os
import sys
from functools import cache

LOG_FORMAT = "%(asctime)s - %(name)s - %(levelname)s - %(message)s"

# Control characters that could forge extra log lines (CWE-117)
_UNSAFE = str.maketrans({"\n": "\\n", "\r": "\\r", "\t": "\\t", "\x00": None})


def _configure_root_logger() -> None:
    root = logging.getLogger()
    if root.handlers:
        return

    level = getattr(logging, os.environ.get("LOG_LEVEL", "INFO").upper(), logging.INFO)
    handler = logging.StreamHandler(sys.stdout)
    handler.setFormatter(logging.Formatter(LOG_FORMAT))
    root.setLevel(level)
    root.addHandler(handler)

    # Supabase and Upstash both talk over httpx; one line per request is noise
    for noisy in ("httpx", "httpcore"):
        logging.getLogger(noisy).setLevel(logging.WARNING)


_configure_root_logger()


@cache
def get_logger(name: str) -> logging.Logger:
    return logging.getLogger(name)


def sanitize_id_for_logging(id_value: str | None) -> str:
    """Escaped, truncated to 8 chars; product and session ids come from clients."""
    if not id_value:
        return "N/A"
    return str(id_value).translate(_UNSAFE)[:8]


def sanitize_string_for_logging(value: str | None, max_length: int = 50) -> str:
    """Escaped and truncated free text (backend error messages)."""
    if not value:
        return "N/A"
    safe_value = str(value).translate(_UNSAFE)
    return safe_value if len(safe_value) <= max_length else safe_value[:max_length] + "..."
