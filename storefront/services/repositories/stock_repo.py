"""Stock Repository - remaining-stock counter on the products table.

The conditional write is a single PostgREST request:
    UPDATE products SET stock = :new WHERE id = :id AND stock = :expected
so atomicity comes from Postgres, never from a lock in this process.
"""
import asyncio
from typing import Optional

import httpx
from postgrest.exceptions import APIError

from storefront.cart.ledger import StockLedger
from storefront.config import LEDGER_TIMEOUT_SECONDS
from storefront.errors import (
    ERROR_LEDGER_TIMEOUT,
    ERROR_LEDGER_UNAVAILABLE,
    ERROR_PRODUCT_NOT_FOUND,
    ERROR_STOCK_ROW_HIDDEN,
    LedgerErrorKind,
    StockLedgerError,
    classify_ledger_error,
)
from storefront.logging import get_logger, sanitize_id_for_logging
from .base import BaseRepository

logger = get_logger(__name__)


def _stock_value(row: dict) -> int:
    return max(0, int(row.get("stock") or 0))


class StockRepository(BaseRepository, StockLedger):
    """Stock counter database operations."""

    def __init__(self, client, timeout: float = LEDGER_TIMEOUT_SECONDS) -> None:
        super().__init__(client)
        self.timeout = timeout

    async def _execute(self, query, product_id: str):
        """Run a PostgREST query with a timeout, translating backend failures."""
        try:
            return await asyncio.wait_for(query.execute(), timeout=self.timeout)
        except asyncio.TimeoutError:
            logger.error(f"Stock ledger timeout for product {sanitize_id_for_logging(product_id)}")
            raise StockLedgerError(LedgerErrorKind.GENERIC, ERROR_LEDGER_TIMEOUT)
        except APIError as e:
            message = e.message or str(e)
            kind = classify_ledger_error(e.code, message)
            logger.error(
                f"Stock ledger rejected request for product {sanitize_id_for_logging(product_id)}: "
                f"code={e.code} kind={kind.value}"
            )
            raise StockLedgerError(kind, message)
        except httpx.HTTPError as e:
            logger.error(f"Stock ledger transport error: {e}")
            raise StockLedgerError(
                classify_ledger_error(None, str(e)), f"{ERROR_LEDGER_UNAVAILABLE}: {e}"
            )

    async def read_stock(self, product_id: str) -> int:
        """Read the current counter for a product."""
        query = self.client.table("products").select("stock").eq("id", product_id).limit(1)
        result = await self._execute(query, product_id)

        if not result.data:
            raise StockLedgerError(LedgerErrorKind.NOT_FOUND, ERROR_PRODUCT_NOT_FOUND)
        return _stock_value(result.data[0])

    async def conditional_set_stock(
        self, product_id: str, expected_stock: int, new_stock: int
    ) -> Optional[int]:
        """Compare-and-swap the counter (atomic on the database side).

        An empty update result means either the counter moved or a row-level
        security USING clause hid the row from the update. PostgREST reports
        both the same way, so re-read: an unchanged counter means the write
        was filtered by policy, not lost to another shopper.
        """
        query = self.client.table("products").update({
            "stock": new_stock
        }).eq("id", product_id).eq("stock", expected_stock)
        result = await self._execute(query, product_id)

        if not result.data:
            if await self.read_stock(product_id) == expected_stock:
                logger.warning(
                    f"Stock update matched no row for product {sanitize_id_for_logging(product_id)} "
                    f"while the counter is unchanged"
                )
                raise StockLedgerError(LedgerErrorKind.POLICY_DENIED, ERROR_STOCK_ROW_HIDDEN)
            return None
        return _stock_value(result.data[0])
