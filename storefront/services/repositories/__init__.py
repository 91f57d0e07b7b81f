"""
Repository Pattern for Database Operations

- ProductRepository: catalog reads
- StockRepository: remaining-stock counter (read + compare-and-swap)
"""
from .product_repo import ProductRepository
from .stock_repo import StockRepository

__all__ = [
    "ProductRepository",
    "StockRepository",
]
