"""Database Models - Pydantic models for catalog rows."""
from decimal import Decimal
from typing import Optional
from pydantic import BaseModel, field_validator

from storefront.services.money import to_decimal as _to_decimal


class Product(BaseModel):
    """Catalog product as read from the products table.

    ``stock`` is the remaining-stock counter; None means the product is not
    inventoried and the cart never reserves it.
    """
    id: str
    name: str
    price: Decimal = Decimal("0")
    image_url: Optional[str] = None
    stock: Optional[int] = None
    status: str = "active"

    class Config:
        extra = "ignore"  # Ignore unknown fields from DB

    @field_validator("price", mode="before")
    @classmethod
    def convert_to_decimal(cls, v):
        return _to_decimal(v)

    @field_validator("stock", mode="before")
    @classmethod
    def clamp_stock(cls, v):
        if v is None:
            return None
        return max(0, int(v))
