"""Stock ledger interface.

The ledger owns one remaining-stock counter per product. The cart only needs
two things from it: a read, and a write that succeeds only while the counter
still holds the value the caller last saw.
"""

from abc import ABC, abstractmethod
from typing import Optional


class StockLedger(ABC):
    """Remote per-product stock counter with compare-and-swap writes."""

    @abstractmethod
    async def read_stock(self, product_id: str) -> int:
        """Return the current counter.

        Raises:
            StockLedgerError: NOT_FOUND if the product is missing, another
                kind if the backend failed.
        """

    @abstractmethod
    async def conditional_set_stock(
        self, product_id: str, expected_stock: int, new_stock: int
    ) -> Optional[int]:
        """Set the counter to ``new_stock`` only if it still equals ``expected_stock``.

        Returns the stored value on success, None when the counter had moved
        (nothing written).

        Raises:
            StockLedgerError: the write was rejected for any other reason.
        """
