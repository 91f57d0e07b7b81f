"""Request models for cart endpoints."""
from pydantic import BaseModel


class AddToCartRequest(BaseModel):
    product_id: str
    quantity: int = 1
    source: str = ""


class UpdateCartItemRequest(BaseModel):
    product_id: str
    quantity: int = 1  # 0 removes the line


class ClearCartRequest(BaseModel):
    release_stock: bool = False
