"""
Common Error Constants and Stock Ledger Errors

Centralized error messages to avoid string duplication, plus the error kinds
the reservation engine branches on.
"""

import re
from enum import Enum

# Product errors
ERROR_PRODUCT_NOT_FOUND = "Product not found."

# Stock ledger errors
ERROR_STOCK_CONFLICT = "Stock update conflict. Please try again."
ERROR_LEDGER_TIMEOUT = "Stock ledger did not respond in time."
ERROR_LEDGER_UNAVAILABLE = "Stock ledger unavailable"
ERROR_STOCK_ROW_HIDDEN = "Stock update blocked by row-level security policy."

# Cart errors
ERROR_CART_UNAVAILABLE = "Cart service unavailable"
ERROR_SESSION_REQUIRED = "Cart session header is required"


class LedgerErrorKind(str, Enum):
    """Why a ledger round trip did not produce a stock value."""

    NOT_FOUND = "not_found"
    CONFLICT = "conflict"
    POLICY_DENIED = "policy_denied"
    GENERIC = "generic"


class StockLedgerError(Exception):
    """Raised by ledger clients when a read or conditional write fails."""

    def __init__(self, kind: LedgerErrorKind, message: str):
        super().__init__(message)
        self.kind = kind
        self.message = message


class CartStoreUnavailable(ValueError):
    """The cart backend could not be read or written."""


# PostgREST / Postgres codes for "the caller may not write this row"
# 42501: insufficient_privilege (row-level security violations included)
# PGRST301/302: JWT invalid, expired or missing
POLICY_DENIED_CODES = frozenset({"42501", "PGRST301", "PGRST302", "401", "403"})

_POLICY_DENIED_PATTERN = re.compile(
    r"permission|not allowed|forbidden|row-level security|\brls\b|jwt|auth|policy"
    r"|(?:token|credential)s? (?:rejected|invalid|expired)",
    re.IGNORECASE,
)


def is_policy_denial(message: str | None) -> bool:
    """Match the access-control vocabulary in a backend error message."""
    return bool(_POLICY_DENIED_PATTERN.search(str(message or "")))


def classify_ledger_error(code: str | int | None, message: str | None) -> LedgerErrorKind:
    """Map a backend error to a ledger error kind.

    The structured code wins; message text is only consulted when the code
    is absent or unknown.
    """
    if code is not None and str(code) in POLICY_DENIED_CODES:
        return LedgerErrorKind.POLICY_DENIED
    if is_policy_denial(message):
        return LedgerErrorKind.POLICY_DENIED
    return LedgerErrorKind.GENERIC
