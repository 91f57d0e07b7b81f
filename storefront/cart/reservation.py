"""Inventory reservation engine.

Claims and returns units on the shared stock ledger with optimistic
concurrency: read the counter, compute the new value, and write it back only
if the counter has not moved in between. A lost race is retried with a fresh
read, up to a fixed number of attempts. The engine keeps no state between
calls and never locks.
"""
from dataclasses import dataclass
from typing import Any, Optional

from tenacity import (
    AsyncRetrying,
    RetryError,
    retry_if_exception_type,
    stop_after_attempt,
    wait_none,
    wait_random_exponential,
)

from storefront.config import STOCK_MAX_ATTEMPTS, STOCK_RETRY_WAIT_MAX
from storefront.errors import (
    ERROR_STOCK_CONFLICT,
    LedgerErrorKind,
    StockLedgerError,
    is_policy_denial,
)
from storefront.logging import get_logger, sanitize_id_for_logging
from .ledger import StockLedger
from .models import parse_int, to_positive_int

logger = get_logger(__name__)


class StockRaceLost(Exception):
    """The counter moved between our read and our conditional write."""


@dataclass
class ReservationResult:
    reserved: int
    stock: int
    error: str = ""
    kind: Optional[LedgerErrorKind] = None

    @property
    def policy_denied(self) -> bool:
        return _is_policy_denied(self.kind, self.error)


@dataclass
class ReleaseResult:
    stock: int
    error: str = ""
    kind: Optional[LedgerErrorKind] = None

    @property
    def policy_denied(self) -> bool:
        return _is_policy_denied(self.kind, self.error)


def _is_policy_denied(kind: Optional[LedgerErrorKind], error: str) -> bool:
    if kind == LedgerErrorKind.POLICY_DENIED:
        return True
    # Ledgers that cannot report a structured kind still get text matching
    return kind == LedgerErrorKind.GENERIC and is_policy_denial(error)


class ReservationEngine:
    """Reserve and release units on a StockLedger."""

    def __init__(
        self,
        ledger: StockLedger,
        max_attempts: int = STOCK_MAX_ATTEMPTS,
        retry_wait_max: float = STOCK_RETRY_WAIT_MAX,
    ):
        self.ledger = ledger
        self.max_attempts = max(1, int(max_attempts))
        self.retry_wait_max = max(0.0, float(retry_wait_max))

    def _attempts(self) -> AsyncRetrying:
        if self.retry_wait_max > 0:
            wait = wait_random_exponential(multiplier=0.05, max=self.retry_wait_max)
        else:
            wait = wait_none()
        return AsyncRetrying(
            stop=stop_after_attempt(self.max_attempts),
            wait=wait,
            retry=retry_if_exception_type(StockRaceLost),
        )

    async def reserve(self, product_id: str, wanted_qty: Any) -> ReservationResult:
        """Claim up to ``wanted_qty`` units (at least 1).

        Partial claims are normal: when fewer units remain than wanted, all
        remaining units are claimed and ``reserved < wanted``.
        """
        wanted = to_positive_int(wanted_qty, 1)
        try:
            async for attempt in self._attempts():
                with attempt:
                    result = await self._try_reserve(product_id, wanted)
        except RetryError:
            logger.warning(
                f"Stock reserve conflict for product {sanitize_id_for_logging(product_id)} "
                f"after {self.max_attempts} attempts"
            )
            return ReservationResult(
                reserved=0, stock=0, error=ERROR_STOCK_CONFLICT, kind=LedgerErrorKind.CONFLICT
            )
        return result

    async def _try_reserve(self, product_id: str, wanted: int) -> ReservationResult:
        try:
            current = max(0, await self.ledger.read_stock(product_id))
        except StockLedgerError as e:
            return ReservationResult(reserved=0, stock=0, error=e.message, kind=e.kind)

        claim = min(current, wanted)
        if claim <= 0:
            return ReservationResult(reserved=0, stock=current)

        try:
            updated = await self.ledger.conditional_set_stock(product_id, current, current - claim)
        except StockLedgerError as e:
            return ReservationResult(reserved=0, stock=0, error=e.message, kind=e.kind)

        if updated is None:
            raise StockRaceLost(product_id)
        return ReservationResult(reserved=claim, stock=max(0, updated))

    async def release(self, product_id: str, qty: Any) -> ReleaseResult:
        """Give ``qty`` units back to the ledger.

        A non-positive quantity, numeric string included, is a no-op. Losing a race here never loses
        inventory; it only forces another read.
        """
        parsed = parse_int(qty)
        if parsed is not None and parsed <= 0:
            return ReleaseResult(stock=0)

        count = to_positive_int(qty, 1)
        try:
            async for attempt in self._attempts():
                with attempt:
                    result = await self._try_release(product_id, count)
        except RetryError:
            logger.warning(
                f"Stock release conflict for product {sanitize_id_for_logging(product_id)} "
                f"after {self.max_attempts} attempts"
            )
            return ReleaseResult(stock=0, error=ERROR_STOCK_CONFLICT, kind=LedgerErrorKind.CONFLICT)
        return result

    async def _try_release(self, product_id: str, count: int) -> ReleaseResult:
        try:
            current = max(0, await self.ledger.read_stock(product_id))
            updated = await self.ledger.conditional_set_stock(product_id, current, current + count)
        except StockLedgerError as e:
            return ReleaseResult(stock=0, error=e.message, kind=e.kind)

        if updated is None:
            raise StockRaceLost(product_id)
        return ReleaseResult(stock=max(0, updated))
