# Services Module
from .models import Product
from .repositories import ProductRepository, StockRepository

__all__ = ["Product", "ProductRepository", "StockRepository"]
